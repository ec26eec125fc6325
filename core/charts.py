from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def department_bar_chart(series: Sequence[Dict[str, Any]], title: str = "Department") -> alt.Chart:
    src = pd.DataFrame(list(series), columns=["name", "value"])
    order: List[str] = src["name"].tolist()
    return (
        alt.Chart(src)
        .mark_bar(cornerRadiusEnd=4, color="#10b981")
        .encode(
            x=alt.X("value:Q", title="Sheets", axis=alt.Axis(format="~s")),
            y=alt.Y("name:N", title=title, sort=order),
            tooltip=["name", alt.Tooltip("value:Q", title="Sheets", format=",")],
        )
        .properties(height=max(160, 28 * len(src)))
    )


def usage_pie_chart(series: Sequence[Dict[str, Any]]) -> alt.Chart:
    src = pd.DataFrame(list(series), columns=["name", "value", "color"])
    return (
        alt.Chart(src)
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(
                "name:N",
                scale=alt.Scale(domain=src["name"].tolist(), range=src["color"].tolist()),
                legend=alt.Legend(title=None, orient="bottom"),
            ),
            tooltip=["name", alt.Tooltip("value:Q", title="Sheets", format=",")],
        )
        .properties(height=260)
    )


def trend_area_chart(series: Sequence[Dict[str, Any]], x_title: str = "Year") -> alt.Chart:
    src = pd.DataFrame(list(series), columns=["date", "sheets"])
    return (
        alt.Chart(src)
        .mark_area(line={"color": "#059669"}, color="#a7f3d0", point=True)
        .encode(
            x=alt.X("date:O", title=x_title, sort=None),
            y=alt.Y("sheets:Q", title="Sheets", axis=alt.Axis(format="~s", gridDash=[4, 4])),
            tooltip=["date", alt.Tooltip("sheets:Q", format=",")],
        )
        .properties(height=260)
    )
