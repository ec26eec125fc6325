from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

import pandas as pd

from core.dates import year_key

ALL = "All"


@dataclass(frozen=True)
class RecordFilters:
    year: str = ALL
    department: str = ALL
    user_type: str = ALL


def _as_criterion(value: Optional[object], *, strip: bool = False) -> str:
    if value is None:
        return ALL
    s = str(value)
    if strip:
        s = s.strip()
    if not s.strip():
        return ALL
    return s


def normalize_filters(raw: Optional[Mapping[str, object]]) -> RecordFilters:
    raw = raw or {}
    return RecordFilters(
        year=_as_criterion(raw.get("year"), strip=True),
        department=_as_criterion(raw.get("department")),
        user_type=_as_criterion(raw.get("user_type")),
    )


def has_active_filters(filters: RecordFilters) -> bool:
    return any(v != ALL for v in (filters.year, filters.department, filters.user_type))


def describe_period(year: str) -> str:
    return "All Time" if year == ALL else f"Year {year}"


def record_years(frame: pd.DataFrame) -> pd.Series:
    """Year string per record, ``None`` where the date is unparseable."""
    if frame.empty:
        return pd.Series(dtype=object, index=frame.index)
    return frame["date"].map(year_key)


def filter_records(frame: pd.DataFrame, filters: RecordFilters) -> pd.DataFrame:
    """Return the records matching every non-"All" criterion, in input order."""
    if frame.empty:
        return frame
    mask = pd.Series(True, index=frame.index)
    if filters.year != ALL:
        mask &= record_years(frame) == filters.year
    if filters.department != ALL:
        mask &= frame["department"] == filters.department
    if filters.user_type != ALL:
        mask &= frame["user_type"] == filters.user_type
    return frame[mask]


def filter_options(frame: pd.DataFrame) -> Dict[str, List[str]]:
    if frame.empty:
        return {"years": [], "departments": [], "user_types": []}
    years = {y for y in record_years(frame) if y is not None}
    departments = {d for d in frame["department"] if d}
    user_types = {u for u in frame["user_type"] if u}
    return {
        "years": sorted(years, reverse=True),
        "departments": sorted(departments),
        "user_types": sorted(user_types),
    }
