from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FilterOptionsResponse, InsightResponse, RecordFiltersModel
from core.config import get_settings
from core.data import DataSourceError, load_records
from core.export import export_filename, records_to_csv
from core.filters import RecordFilters, describe_period, filter_options, normalize_filters
from core.insights import insight_or_fallback
from core.metrics_overview import compute_overview, prepare_context
from core.metrics_usage import calculate_stats, coefficients_from_settings, get_department_usage


app = FastAPI(title="EcoPrint Analytics API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: RecordFiltersModel) -> RecordFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    status = 502 if isinstance(exc, DataSourceError) else 500
    return JSONResponse(status_code=status, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/filters", response_model=FilterOptionsResponse)
def meta_filters():
    try:
        return _json(filter_options(load_records()))
    except Exception as exc:
        logger.exception("meta_filters failed")
        return _error(exc)


@app.post("/overview")
def overview(
    filters: RecordFiltersModel,
    chart_mode: Literal["department", "userType"] = Query(default="department"),
):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_records())
        return _json(compute_overview(f, ctx, chart_mode=chart_mode, coefficients=coefficients_from_settings()))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/export")
def export_records(filters: RecordFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_records())
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)

    csv_text = records_to_csv(ctx["filtered_records"])
    filename = export_filename()
    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.post("/insights")
def insights(filters: RecordFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_records())
    except Exception as exc:
        logger.exception("insights failed")
        return _error(exc)

    filtered = ctx["filtered_records"]
    stats = calculate_stats(filtered, coefficients_from_settings())
    text = insight_or_fallback(stats, get_department_usage(filtered), f.year)
    return _json(InsightResponse(insight=text, period=describe_period(f.year)))
