"""Aggregations over a paper-usage record frame.

Every function here is pure: it reads only its arguments, never mutates the
input frame and returns plain JSON-serializable values. Grouped breakdowns keep
first-appearance order among equal values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from core.config import Settings, get_settings
from core.data import round_half_up
from core.dates import date_key, year_key

UNKNOWN = "Unknown"
DEPARTMENT_TOP_N = 10

CATEGORY_PALETTE = ("#3b82f6", "#8b5cf6", "#10b981", "#f59e0b", "#ef4444", "#64748b")
STANDARD_LABEL = "Standard (1 Page/Sheet)"
ECO_LABEL = "Eco-Mode (>1 Page/Sheet)"
STANDARD_COLOR = "#f87171"
ECO_COLOR = "#10b981"


@dataclass(frozen=True)
class ImpactCoefficients:
    """Published per-sheet conversion factors; estimates, not measurements."""

    sheets_per_tree: float = 8333.0
    water_liters_per_sheet: float = 0.015
    co2_kg_per_sheet: float = 0.005
    cost_per_sheet: float = 0.45
    currency: str = "THB"


DEFAULT_COEFFICIENTS = ImpactCoefficients()


def coefficients_from_settings(settings: Optional[Settings] = None) -> ImpactCoefficients:
    settings = settings or get_settings()
    return ImpactCoefficients(
        sheets_per_tree=settings.sheets_per_tree,
        water_liters_per_sheet=settings.water_liters_per_sheet,
        co2_kg_per_sheet=settings.co2_kg_per_sheet,
        cost_per_sheet=settings.cost_per_sheet,
        currency=settings.currency,
    )


@dataclass(frozen=True)
class DashboardStats:
    total_sheets: int = 0
    total_requests: int = 0
    total_pages: int = 0
    trees_consumed: float = 0.0
    water_consumed: int = 0
    co2_emitted: float = 0.0
    estimated_cost: int = 0
    sheets_saved: int = 0


def calculate_stats(frame: pd.DataFrame, coefficients: ImpactCoefficients = DEFAULT_COEFFICIENTS) -> DashboardStats:
    if frame.empty:
        return DashboardStats()

    total_sheets = int(frame["sheet_used"].sum())
    # A zero total_pages means the logical count was not logged; fall back to sheets.
    logical_pages = frame["total_pages"].where(frame["total_pages"] != 0, frame["sheet_used"])
    total_pages = int(logical_pages.sum())

    trees = (
        round_half_up(total_sheets / coefficients.sheets_per_tree, 2)
        if coefficients.sheets_per_tree > 0
        else 0.0
    )
    return DashboardStats(
        total_sheets=total_sheets,
        total_requests=int(len(frame)),
        total_pages=total_pages,
        trees_consumed=trees,
        water_consumed=int(round_half_up(total_sheets * coefficients.water_liters_per_sheet)),
        co2_emitted=round_half_up(total_sheets * coefficients.co2_kg_per_sheet, 1),
        estimated_cost=int(round_half_up(total_sheets * coefficients.cost_per_sheet)),
        sheets_saved=max(0, total_pages - total_sheets),
    )


def _category_usage(frame: pd.DataFrame, column: str) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    keys = frame[column].where(frame[column] != "", UNKNOWN)
    sums = (
        frame["sheet_used"]
        .groupby(keys, sort=False)
        .sum()
        .sort_values(ascending=False, kind="stable")
    )
    return [{"name": str(name), "value": int(value)} for name, value in sums.items()]


def get_department_usage(frame: pd.DataFrame, top_n: int = DEPARTMENT_TOP_N) -> List[Dict[str, Any]]:
    return _category_usage(frame, "department")[:top_n]


def get_user_type_usage(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return _category_usage(frame, "user_type")


def assign_colors(series: Sequence[Dict[str, Any]], palette: Sequence[str] = CATEGORY_PALETTE) -> List[Dict[str, Any]]:
    """Color by rank: the i-th entry gets ``palette[i % len(palette)]``."""
    return [{**item, "color": palette[i % len(palette)]} for i, item in enumerate(series)]


def get_user_type_pie_data(frame: pd.DataFrame, palette: Sequence[str] = CATEGORY_PALETTE) -> List[Dict[str, Any]]:
    return assign_colors(get_user_type_usage(frame), palette)


def _trend(frame: pd.DataFrame, key_fn: Callable[[object], Optional[str]]) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    keys = frame["date"].map(key_fn)
    # None keys (unparseable dates) are dropped by groupby.
    sums = frame["sheet_used"].groupby(keys, sort=True).sum()
    return [{"date": str(key), "sheets": int(value)} for key, value in sums.items()]


def get_daily_trend(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return _trend(frame, date_key)


def get_yearly_trend(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return _trend(frame, year_key)


def get_paper_saving_ratio(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    standard = eco = 0
    if not frame.empty:
        eco_mask = frame["pages_per_sheet"] > 1
        eco = int(frame.loc[eco_mask, "sheet_used"].sum())
        standard = int(frame.loc[~eco_mask, "sheet_used"].sum())
    return [
        {"name": STANDARD_LABEL, "value": standard, "color": STANDARD_COLOR},
        {"name": ECO_LABEL, "value": eco, "color": ECO_COLOR},
    ]
