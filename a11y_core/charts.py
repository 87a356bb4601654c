from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

LEVEL_COLORS = {"A": "#dc2626", "AA": "#f97316", "AAA": "#fbbf24"}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def share_bar_chart(records: Iterable[Mapping[str, Any]], *, category: str, title: str) -> alt.Chart:
    df = pd.DataFrame(list(records), columns=[category, "count", "share"])
    return (
        alt.Chart(df)
        .mark_bar(cornerRadiusEnd=4)
        .encode(
            x=alt.X("count:Q", title="Segnalazioni"),
            y=alt.Y(f"{category}:N", title=title, sort=None),
            tooltip=[category, alt.Tooltip("count:Q", format=","), alt.Tooltip("share:Q", format=".1f", title="%")],
        )
        .properties(height=alt.Step(22))
    )


def touchpoint_level_chart(rows: Iterable[Mapping[str, Any]]) -> alt.Chart:
    """Stacked A/AA/AAA bars, one per touchpoint, in the order given."""
    records: List[Dict[str, Any]] = []
    order: List[str] = []
    for r in rows:
        order.append(r["name"])
        for level in LEVEL_COLORS:
            records.append({"name": r["name"], "level": level, "count": r.get(level, 0)})
    df = pd.DataFrame(records, columns=["name", "level", "count"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", stack="zero", title="Segnalazioni"),
            y=alt.Y("name:N", title="Touchpoint", sort=order),
            color=alt.Color(
                "level:N",
                scale=alt.Scale(domain=list(LEVEL_COLORS), range=list(LEVEL_COLORS.values())),
                title="Livello",
            ),
            tooltip=["name", "level", alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=alt.Step(22))
    )
