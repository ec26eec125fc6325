import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from core import data as dc
from core.charts import department_bar_chart, trend_area_chart, usage_pie_chart
from core.export import export_filename, records_to_csv
from core.filters import ALL, RecordFilters, describe_period, filter_options, has_active_filters
from core.insights import insight_or_fallback
from core.metrics_overview import prepare_context
from core.metrics_usage import (
    calculate_stats,
    coefficients_from_settings,
    get_department_usage,
    get_paper_saving_ratio,
    get_user_type_pie_data,
    get_user_type_usage,
    get_yearly_trend,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

FILTER_KEYS = ("year_filter", "department_filter", "user_type_filter")


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .app-top-bar .page-title span {color: #059669;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #059669;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #ecfdf5;border: 1px solid #d1fae5;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #065f46;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: RecordFilters) -> str:
    chips = [
        f"Period: {describe_period(filters.year)}",
        "Department: All" if filters.department == ALL else f"Department: {filters.department}",
        "User Type: All" if filters.user_type == ALL else f"User Type: {filters.user_type}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def reset_filters():
    for key in FILTER_KEYS:
        st.session_state[key] = ALL


def render_page_header(filters: RecordFilters, export_df: pd.DataFrame):
    inject_base_styles()
    c1, c2 = st.columns([7, 3])
    with c1:
        st.markdown(
            "<div class='app-top-bar'><div class='breadcrumb'>Paper Usage Dashboard</div>"
            "<div class='page-title'>EcoPrint <span>Analytics</span></div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Refresh"):
            dc.clear_records_cache()
            st.rerun()
        csv_text = records_to_csv(export_df)
        if csv_text:
            btn_cols[1].download_button(
                "Export Report",
                data=csv_text.encode("utf-8"),
                file_name=export_filename(),
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)


def render_kpi_tiles(filtered: pd.DataFrame):
    coefficients = coefficients_from_settings()
    stats = calculate_stats(filtered, coefficients)
    cols = st.columns(4)
    cols[0].metric("Total Sheets", dc.format_number(stats.total_sheets), help="Physical sheets used.")
    cols[1].metric("Print Requests", dc.format_number(stats.total_requests))
    cols[2].metric(
        "Estimated Cost",
        dc.format_currency(stats.estimated_cost, coefficients.currency),
        help=f"{coefficients.cost_per_sheet} {coefficients.currency} per sheet (paper + toner).",
    )
    cols[3].metric(
        "Sheets Saved",
        dc.format_number(stats.sheets_saved),
        help="Logical pages minus physical sheets (double-sided / N-up printing).",
    )
    eco_cols = st.columns(3)
    eco_cols[0].metric("Trees Consumed", f"{stats.trees_consumed:,.2f}", help=f"1 tree ≈ {coefficients.sheets_per_tree:,.0f} sheets.")
    eco_cols[1].metric("Water Used (L)", dc.format_number(stats.water_consumed))
    eco_cols[2].metric("CO2 Emitted (kg)", f"{stats.co2_emitted:,.1f}")
    return stats


def render_insight(filtered: pd.DataFrame, filters: RecordFilters, stats):
    with card("AI Insight", actions=describe_period(filters.year)):
        if st.button("Generate AI Insight"):
            with st.spinner("Analyzing paper usage..."):
                st.session_state["insight_text"] = insight_or_fallback(stats, get_department_usage(filtered), filters.year)
        text = st.session_state.get("insight_text")
        if text:
            st.markdown(text)
        else:
            st.caption("Generate a short sustainability assessment for the current filters.")


# ---------- UI setup ----------
st.set_page_config(page_title="EcoPrint Analytics", layout="wide")
inject_base_styles()

try:
    records = dc.load_records()
except dc.DataSourceError as exc:
    st.error(f"Failed to load dashboard data. Please try again. ({exc})")
    st.stop()

if records.empty:
    st.error("No paper usage records found. Check the configured data source.")
    st.stop()

options = filter_options(records)
for key in FILTER_KEYS:
    st.session_state.setdefault(key, ALL)

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Filter Data")
    year = st.selectbox("Year", options=[ALL] + options["years"], key="year_filter", format_func=lambda y: "All Years" if y == ALL else y)
    department = st.selectbox(
        "Department", options=[ALL] + options["departments"], key="department_filter",
        format_func=lambda d: "All Departments" if d == ALL else d,
    )
    user_type = st.selectbox(
        "User Type", options=[ALL] + options["user_types"], key="user_type_filter",
        format_func=lambda u: "All User Types" if u == ALL else u,
    )
    filters = RecordFilters(year=year, department=department, user_type=user_type)
    if has_active_filters(filters):
        st.button("Reset filters", on_click=reset_filters)

    st.markdown("---")
    chart_mode = st.radio("Usage breakdown", ["Department", "User Type"], index=0, horizontal=True)

ctx = prepare_context(filters, records)
filtered_records: pd.DataFrame = ctx["filtered_records"]

render_page_header(filters, filtered_records)

if filtered_records.empty:
    st.info("No records match the selected filters.")
    st.stop()

with card("Key Metrics"):
    stats = render_kpi_tiles(filtered_records)

chart_cols = st.columns([3, 2])
with chart_cols[0]:
    if chart_mode == "Department":
        with card("Top 10 Departments by Sheets"):
            st.altair_chart(department_bar_chart(get_department_usage(filtered_records)), use_container_width=True)
    else:
        with card("Usage by User Type"):
            st.altair_chart(
                department_bar_chart(get_user_type_usage(filtered_records), title="User Type"),
                use_container_width=True,
            )
with chart_cols[1]:
    with card("Printing Efficiency"):
        st.altair_chart(usage_pie_chart(get_paper_saving_ratio(filtered_records)), use_container_width=True)

trend_cols = st.columns([3, 2])
with trend_cols[0]:
    with card("Yearly Usage Trend"):
        st.altair_chart(trend_area_chart(get_yearly_trend(filtered_records)), use_container_width=True)
with trend_cols[1]:
    with card("User Type Share"):
        st.altair_chart(usage_pie_chart(get_user_type_pie_data(filtered_records)), use_container_width=True)

render_insight(filtered_records, filters, stats)

with st.expander("Filtered records"):
    st.dataframe(filtered_records, hide_index=True, use_container_width=True)
