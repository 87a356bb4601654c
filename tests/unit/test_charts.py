from __future__ import annotations

from a11y_core.charts import LEVEL_COLORS, share_bar_chart, to_vega_spec, touchpoint_level_chart


def test_share_bar_chart_spec():
    spec = to_vega_spec(
        share_bar_chart([{"level": "A", "count": 3, "share": 50.0}], category="level", title="Livello")
    )
    assert spec["mark"]["type"] == "bar"
    assert spec["encoding"]["y"]["field"] == "level"


def test_touchpoint_level_chart_keeps_row_order():
    rows = [{"name": "Login", "A": 10, "AA": 2, "AAA": 1}, {"name": "Home", "A": 5}]
    spec = to_vega_spec(touchpoint_level_chart(rows))
    assert spec["encoding"]["y"]["sort"] == ["Login", "Home"]
    assert spec["encoding"]["color"]["scale"]["domain"] == list(LEVEL_COLORS)
