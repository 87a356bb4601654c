from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional, Tuple

from a11y_core.charts import share_bar_chart, to_vega_spec
from a11y_core.rows import labeled_value, tidy_number

TOTAL_ISSUES_LABEL = "Totale Segnalazioni"
TO_TEST_LABEL = "Totale touchpoint da testare"
TESTED_LABEL = "Totale touchpoint testati"

KPI_CARDS = [
    (TOTAL_ISSUES_LABEL, "Totale segnalazioni"),
    (TO_TEST_LABEL, "Touchpoint da testare"),
    (TESTED_LABEL, "Touchpoint testati"),
]


class Section(Enum):
    NONE = "none"
    LEVELS = "levels"
    TOUCHPOINTS = "touchpoints"


@dataclass(frozen=True)
class LevelBucket:
    level: str
    count: float


@dataclass(frozen=True)
class TouchpointCount:
    name: str
    count: float


@dataclass(frozen=True)
class OverviewState:
    section: Section = Section.NONE
    totals: Dict[str, float] = field(default_factory=dict)
    levels: Tuple[LevelBucket, ...] = ()
    touchpoints: Tuple[TouchpointCount, ...] = ()


@dataclass(frozen=True)
class OverviewSheet:
    totals: Dict[str, float]
    level_dist: List[LevelBucket]
    touchpoints: List[TouchpointCount]

    @property
    def is_empty(self) -> bool:
        return not (self.totals or self.level_dist or self.touchpoints)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totals": {k: tidy_number(v) for k, v in self.totals.items()},
            "level_dist": [{"level": b.level, "count": tidy_number(b.count)} for b in self.level_dist],
            "touchpoints": [{"name": t.name, "count": tidy_number(t.count)} for t in self.touchpoints],
        }


def divider_section(label: str) -> Optional[Section]:
    # Substring match: the sheet's divider labels carry typos that change between exports.
    lowered = label.lower()
    if "distribuzione" in lowered and "livello" in lowered:
        return Section.LEVELS
    if "distribuzione" in lowered and "touchpoint" in lowered:
        return Section.TOUCHPOINTS
    return None


def reduce_row(state: OverviewState, row: Any) -> OverviewState:
    lv = labeled_value(row)
    if lv is None:
        return state
    label, value = lv.label, lv.value

    if not label and (math.isnan(value) or value == 0):
        return state

    section = divider_section(label)
    if section is not None:
        return replace(state, section=section)

    if not label or label == "-" or math.isnan(value):
        return state

    if state.section is Section.LEVELS:
        return replace(state, levels=state.levels + (LevelBucket(label, value),))
    if state.section is Section.TOUCHPOINTS:
        return replace(state, touchpoints=state.touchpoints + (TouchpointCount(label, value),))
    return replace(state, totals={**state.totals, label: value})


def parse_overview_sheet(rows: Iterable[Any]) -> OverviewSheet:
    """Split the flat "Panoramica" sheet into KPI totals, level buckets and touchpoint counts.

    Rows before the first divider are KPI totals; a "distribuzione ... livello"
    row opens the level section and a "distribuzione ... touchpoint" row opens
    the touchpoint section. Unusable rows are dropped, nothing raises.
    """
    state = reduce(reduce_row, rows, OverviewState())
    touchpoints = [t for t in state.touchpoints if t.name and t.count >= 0]
    touchpoints.sort(key=lambda t: t.count, reverse=True)
    return OverviewSheet(
        totals=dict(state.totals),
        level_dist=list(state.levels),
        touchpoints=touchpoints,
    )


def _capped_pct(value: float, total: float) -> float:
    if not total:
        return 0.0
    return min(100.0, value / total * 100)


def compute_coverage(tested: Optional[float], to_test: Optional[float]) -> Optional[float]:
    if not tested or not to_test:
        return None
    c = min(100.0, tested / to_test * 100)
    return c if math.isfinite(c) else None


def compute_overview(sheet: OverviewSheet) -> Dict[str, Any]:
    totals = sheet.totals
    total_issues = totals.get(TOTAL_ISSUES_LABEL)
    to_test = totals.get(TO_TEST_LABEL)
    tested = totals.get(TESTED_LABEL)

    kpis = [
        {"key": key, "title": title, "value": tidy_number(totals[key])}
        for key, title in KPI_CARDS
        if key in totals
    ]

    total_levels = sum(b.count for b in sheet.level_dist)
    levels = [
        {
            "level": b.level,
            "count": tidy_number(b.count),
            "share": _capped_pct(b.count, total_levels or b.count),
        }
        for b in sheet.level_dist
    ]

    touchpoints = [
        {
            "name": t.name,
            "count": tidy_number(t.count),
            "share": _capped_pct(t.count, total_issues or 0),
        }
        for t in sheet.touchpoints
    ]

    charts: Dict[str, Any] = {}
    if levels:
        charts["levels"] = to_vega_spec(share_bar_chart(levels, category="level", title="Livello"))
    if touchpoints:
        charts["touchpoints"] = to_vega_spec(share_bar_chart(touchpoints, category="name", title="Touchpoint"))

    return {
        "kpis": kpis,
        "totals": {k: tidy_number(v) for k, v in totals.items()},
        "coverage": compute_coverage(tested, to_test),
        "tested": tidy_number(tested) if tested is not None else None,
        "to_test": tidy_number(to_test) if to_test is not None else None,
        "levels": levels,
        "total_levels": tidy_number(float(total_levels)),
        "touchpoints": touchpoints,
        "charts": charts,
        "empty": sheet.is_empty,
    }
