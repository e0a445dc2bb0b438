"""
Entity schemas for Safety Advisor.

This module defines the immutable Pydantic records for the static safety dataset:
the six master tables, the relationship rows joining them, and the accident
catalogs (types, videos, cases) used for display.
"""
from typing import List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MasterItem(BaseModel):
    """One row of a master table (risk element, hazard item, countermeasure, ...)."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    count: int = Field(..., description="Occurrence weight, informational only")


class Relationship(BaseModel):
    """
    One co-occurrence fact linking a row of each master table.

    Accepts both the English field names and the Korean column names used by
    the source JSON files.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    row_id: int
    industry_id: int = Field(..., validation_alias=AliasChoices("industry_id", "업종_id"))
    work_process_id: int = Field(..., validation_alias=AliasChoices("work_process_id", "작업공정_id"))
    risk_factor_id: int = Field(..., validation_alias=AliasChoices("risk_factor_id", "위험요인_id"))
    risk_element_id: int = Field(..., validation_alias=AliasChoices("risk_element_id", "위험요소_id"))
    hazard_item_id: int = Field(
        ..., validation_alias=AliasChoices("hazard_item_id", "유해위험요인항목_id")
    )
    countermeasure_id: int = Field(..., validation_alias=AliasChoices("countermeasure_id", "대책_id"))


class FullAnalysisResult(BaseModel):
    """A relationship row with all six foreign keys resolved."""
    model_config = ConfigDict(frozen=True)

    risk_element: MasterItem
    hazard_item: MasterItem
    countermeasure: MasterItem
    industry: MasterItem
    work_process: MasterItem
    risk_factor: MasterItem


class AccidentType(BaseModel):
    """An entry of the closed industrial-accident type catalog."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    examples: List[str] = Field(default_factory=list)
    frequency: str = ""


class AccidentVideoSet(BaseModel):
    """Video URLs illustrating one accident type."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    videos: List[str] = Field(default_factory=list)
    video_count: int = Field(0, alias="videoCount")


class AccidentCase(BaseModel):
    """A real accident case tagged with its accident type."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str
    industry: str = ""
    description: str = ""
    accident_type: str = Field("", alias="accidentType")
    accident_type_id: int = Field(..., alias="accidentTypeId")
    original_type: str = Field("", alias="originalType")
