"""
API request and response schemas for Safety Advisor.

This module defines the Pydantic models for the /analyze endpoint.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from safety_advisor.schemas.entities import (
    AccidentCase, AccidentType, FullAnalysisResult, MasterItem
)


class AnalyzeRequest(BaseModel):
    """Request model for the /analyze endpoint."""
    description: str = Field("", description="Free-text description of the work task")
    image: Optional[str] = Field(None, description="Photo of the work site as a data URL")
    industry: str = Field("", description="Free-text description of the industry")
    analyze_risks: bool = Field(True, description="Also run the risk element / countermeasure chain")
    debug: bool = Field(False, description="Include intermediate step values")


class SelectedVideo(BaseModel):
    """A sampled video with the accident type it illustrates."""
    url: str
    type_name: str
    index: int = Field(..., description="1-based position within its accident type")


class AnalysisDebug(BaseModel):
    """Intermediate values of each analysis step."""
    step0_llm_industries: List[str] = Field(default_factory=list)
    step0_industry_ids: List[int] = Field(default_factory=list)
    step1_llm_risks: List[str] = Field(default_factory=list)
    step2_risk_ids: List[int] = Field(default_factory=list)
    step3_all_hazard_item_ids: List[int] = Field(default_factory=list)
    step3_all_hazard_item_names: List[str] = Field(default_factory=list)
    step4_filtered_hazard_items: List[str] = Field(default_factory=list)
    step5_action_ids: List[int] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Response model for the /analyze endpoint."""
    accident_types: List[AccidentType] = Field(..., description="Identified accident types, most likely first")
    selected_industries: List[str] = Field(default_factory=list)
    selected_risk_elements: List[str] = Field(default_factory=list)
    relevant_hazard_items: List[str] = Field(default_factory=list)
    recommended_actions: List[MasterItem] = Field(default_factory=list)
    full_matching_data: List[FullAnalysisResult] = Field(
        default_factory=list,
        description="Relationship rows matching every selected condition"
    )
    is_industry_matched: bool = False
    videos: List[SelectedVideo] = Field(default_factory=list)
    cases: List[AccidentCase] = Field(default_factory=list)
    debug: Optional[AnalysisDebug] = None
