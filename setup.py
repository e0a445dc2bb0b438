from setuptools import setup, find_packages

setup(
    name="safety_advisor",
    version="0.1.0",
    packages=find_packages(include=["safety_advisor", "safety_advisor.*"]),
    package_data={"safety_advisor.services": ["*.yaml"]},
    install_requires=[
        "fastapi",
        "uvicorn",
        "httpx",
        "pydantic>=2",
        "openai",
        "anthropic",
        "python-dotenv",
        "pyyaml"
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
