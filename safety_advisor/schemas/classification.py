"""
Schemas for LLM classification answers.

The LLM is asked to answer in JSON using the camelCase keys below. Entries are
kept loose here: malformed entries inside a list are dropped, and vocabulary
conformance is checked by the classifier. Only a wrongly shaped container
fails validation.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _keep_strings(value):
    if isinstance(value, list):
        return [entry for entry in value if isinstance(entry, str)]
    return value


def _choice_from_entry(entry) -> Optional[dict]:
    # Some answers list plain names instead of {id, name} objects
    if isinstance(entry, str):
        return {"name": entry}
    if not isinstance(entry, dict):
        return None
    choice = {}
    entry_id = entry.get("id")
    if isinstance(entry_id, int) and not isinstance(entry_id, bool):
        choice["id"] = entry_id
    elif isinstance(entry_id, str) and entry_id.strip().isdigit():
        choice["id"] = int(entry_id)
    if isinstance(entry.get("name"), str):
        choice["name"] = entry["name"]
    return choice or None


class AccidentTypeChoice(BaseModel):
    """One accident type picked by the LLM."""
    id: Optional[int] = None
    name: Optional[str] = None


class AccidentTypeSelection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    accident_types: List[AccidentTypeChoice] = Field(default_factory=list, alias="accidentTypes")

    @field_validator("accident_types", mode="before")
    @classmethod
    def drop_malformed_choices(cls, value):
        if isinstance(value, list):
            choices = [_choice_from_entry(entry) for entry in value]
            return [choice for choice in choices if choice is not None]
        return value


class RiskElementSelection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    risk_elements: List[str] = Field(default_factory=list, alias="riskElements")

    drop_non_strings = field_validator("risk_elements", mode="before")(_keep_strings)


class IndustrySelection(BaseModel):
    industries: List[str] = Field(default_factory=list)

    drop_non_strings = field_validator("industries", mode="before")(_keep_strings)


class HazardItemSelection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    relevant_items: List[str] = Field(default_factory=list, alias="relevantItems")

    drop_non_strings = field_validator("relevant_items", mode="before")(_keep_strings)
