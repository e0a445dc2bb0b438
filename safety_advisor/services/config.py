"""
Configuration for Safety Advisor.

Environment variables are read after loading an optional .env file. Static
configuration (dataset file names, vocabularies, error messages) lives in
YAML files next to this module.
"""
import os
import yaml
from dotenv import load_dotenv

load_dotenv()

# Get the absolute path to the services directory
SERVICES_DIR = os.path.dirname(os.path.abspath(__file__))

# Dataset location
SAFETY_DATA_BASE_URL = os.getenv("SAFETY_DATA_BASE_URL", "http://127.0.0.1:8000/output")
SAFETY_DATA_TIMEOUT = float(os.getenv("SAFETY_DATA_TIMEOUT", "30"))
SAFETY_DATA_DIR = os.getenv(
    "SAFETY_DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(SERVICES_DIR)), "output")
)

# LLM settings
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-latest")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_TIMEOUT = 60.0


def load_yaml_config(filename: str, required_key: str = None):
    """Load a YAML configuration file with error handling."""
    filepath = os.path.join(SERVICES_DIR, filename)
    try:
        with open(filepath, 'r', encoding='utf-8') as file:
            config = yaml.safe_load(file)
            if config is None:
                raise ValueError(f"Empty configuration file: {filename}")
            if required_key and required_key not in config:
                raise ValueError(f"Missing required key '{required_key}' in {filename}")
            return config[required_key] if required_key else config
    except FileNotFoundError:
        raise ValueError(f"Configuration file not found: {filename}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {filename}: {str(e)}")
