from __future__ import annotations

from typing import List

from pydantic import BaseModel


class RecordFiltersModel(BaseModel):
    year: str = "All"
    department: str = "All"
    user_type: str = "All"


class FilterOptionsResponse(BaseModel):
    years: List[str]
    departments: List[str]
    user_types: List[str]


class InsightResponse(BaseModel):
    insight: str
    period: str
