"""
Main application module for Safety Advisor.

This module defines the FastAPI application, routes, and middleware.
"""
import os
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from safety_advisor.schemas.entities import AccidentType
from safety_advisor.schemas.responses import AnalysisResult, AnalyzeRequest
from safety_advisor.services.analysis import analyze_work_safety
from safety_advisor.services.config import SAFETY_DATA_DIR
from safety_advisor.services.data_loader import dataset_loader
from safety_advisor.services.error_handler import error_handler
from safety_advisor.services.errors import ClassificationError, LoadError, NoClassificationResult

# HTTP status per error type
ERROR_STATUS = {
    LoadError: 503,
    ClassificationError: 502,
    NoClassificationResult: 422,
}

# Create FastAPI app
app = FastAPI(
    title="Safety Advisor",
    description="AI-assisted industrial accident risk analysis",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Serve the static dataset the loader and the browser client fetch
if os.path.isdir(SAFETY_DATA_DIR):
    app.mount("/output", StaticFiles(directory=SAFETY_DATA_DIR), name="output")
else:
    print(f"Dataset directory not found, /output not mounted: {SAFETY_DATA_DIR}")


def _raise_user_error(error: Exception):
    status_code = ERROR_STATUS.get(type(error), 500)
    detail = error_handler.handle(error)
    print(f"Error {status_code}: {type(error).__name__}: {str(error)}")
    raise HTTPException(status_code=status_code, detail=detail) from error


@app.get("/ping")
@app.head("/ping")
async def ping():
    """Health check endpoint. Supports both GET and HEAD methods."""
    return {"status": "ok", "dataset_loaded": dataset_loader.is_loaded}


@app.get("/accident-types", response_model=List[AccidentType])
async def accident_types():
    """Return the accident type catalog."""
    try:
        return await dataset_loader.load_accident_types()
    except LoadError as e:
        _raise_user_error(e)


@app.post("/analyze", response_model=AnalysisResult)
async def analyze(request: AnalyzeRequest):
    """
    Analyze a work description and optional photo.

    Args:
        request: Description, optional image data URL and industry description

    Returns:
        AnalysisResult with accident types, countermeasures, videos and cases
    """
    if not request.description.strip() and not request.image:
        error_handler.track_error("invalid_request")
        raise HTTPException(status_code=400, detail=error_handler.get_user_friendly_error("invalid_request"))

    print(f"Analyze endpoint received description: '{request.description[:80]}', image: {bool(request.image)}")
    try:
        return await analyze_work_safety(
            request.image,
            request.description,
            industry_description=request.industry,
            analyze_risks=request.analyze_risks,
            enable_debug=request.debug
        )
    except (LoadError, ClassificationError, NoClassificationResult) as e:
        _raise_user_error(e)


@app.get("/errors/stats")
async def error_stats():
    """Return error counts and the most recent errors."""
    return error_handler.get_error_stats()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.environ.get("HOST", "127.0.0.1"), port=int(os.environ.get("PORT", "8000")))
