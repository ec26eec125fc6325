from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Literal, Mapping, Optional, Union

import pandas as pd

from core.charts import department_bar_chart, to_vega_spec, trend_area_chart, usage_pie_chart
from core.filters import RecordFilters, filter_records, has_active_filters, normalize_filters
from core.metrics_usage import (
    DEFAULT_COEFFICIENTS,
    ImpactCoefficients,
    calculate_stats,
    get_department_usage,
    get_paper_saving_ratio,
    get_user_type_pie_data,
    get_user_type_usage,
    get_yearly_trend,
)

ChartMode = Literal["department", "userType"]


def prepare_context(
    filters: Union[Mapping[str, object], RecordFilters, None],
    records: pd.DataFrame,
) -> Dict[str, Any]:
    filt = filters if isinstance(filters, RecordFilters) else normalize_filters(filters)
    return {
        "filters": filt,
        "records": records,
        "filtered_records": filter_records(records, filt),
    }


def compute_overview(
    filters: RecordFilters,
    ctx: Dict[str, Any],
    *,
    chart_mode: ChartMode = "department",
    coefficients: Optional[ImpactCoefficients] = None,
) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered_records", pd.DataFrame())
    coefficients = coefficients or DEFAULT_COEFFICIENTS

    stats = calculate_stats(filtered, coefficients)
    department_usage = get_department_usage(filtered)
    user_type_usage = get_user_type_usage(filtered)
    yearly_trend = get_yearly_trend(filtered)
    saving_ratio = get_paper_saving_ratio(filtered)
    user_type_pie = get_user_type_pie_data(filtered)

    bar_series = department_usage if chart_mode == "department" else user_type_usage
    bar_title = "Department" if chart_mode == "department" else "User Type"
    charts: Dict[str, Any] = {}
    if not filtered.empty:
        charts = {
            "usage_bar": to_vega_spec(department_bar_chart(bar_series, title=bar_title)),
            "yearly_trend": to_vega_spec(trend_area_chart(yearly_trend)),
            "paper_saving": to_vega_spec(usage_pie_chart(saving_ratio)),
            "user_type_pie": to_vega_spec(usage_pie_chart(user_type_pie)),
        }

    return {
        "filters": asdict(filters),
        "has_active_filters": has_active_filters(filters),
        "record_count": int(len(filtered)),
        "stats": asdict(stats),
        "currency": coefficients.currency,
        "department_usage": department_usage,
        "user_type_usage": user_type_usage,
        "yearly_trend": yearly_trend,
        "paper_saving_ratio": saving_ratio,
        "user_type_pie": user_type_pie,
        "chart_mode": chart_mode,
        "charts": charts,
    }
