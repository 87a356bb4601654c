from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern, Sequence

from a11y_core.charts import to_vega_spec, touchpoint_level_chart
from a11y_core.filters import TouchpointFilters
from a11y_core.rows import normalize_key, tidy_number, to_number, to_text

# Patterns run against normalize_key() output; "segnal[a-z]*" tolerates typos
# like "Segnalzioni".
NAME_PATTERNS = [re.compile(r"^(touchpoint)$")]
LEVEL_PATTERNS = {
    level: [
        re.compile(rf"(gravita|livello).*\b{level.lower()}\b"),
        re.compile(rf"(segnal[a-z]*).*\blivello {level.lower()}\b"),
    ]
    for level in ("A", "AA", "AAA")
}
UNRESOLVED_PATTERNS = [re.compile(r"non risolt")]
RESOLVED_PATTERNS = [re.compile(r"(?<!non )risolt[ei]\b")]
RECHECK_PATTERNS = [re.compile(r"recheck")]


@dataclass(frozen=True)
class TouchpointSummary:
    name: str
    A: float
    AA: float
    AAA: float
    total: float
    unresolved: Optional[float] = None
    resolved: Optional[float] = None
    recheck: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: tidy_number(v) if isinstance(v, float) else v for k, v in asdict(self).items() if v is not None}


def find_key(row: Mapping[str, Any], patterns: Sequence[Pattern[str]]) -> Optional[str]:
    """First key, in row order, whose normalized name matches any pattern."""
    for key in row:
        normalized = normalize_key(key)
        if any(rx.search(normalized) for rx in patterns):
            return key
    return None


def _count(row: Mapping[str, Any], key: Optional[str]) -> float:
    if key is None:
        return 0.0
    value = to_number(row.get(key))
    return 0.0 if math.isnan(value) else value


def parse_touchpoint_row(row: Any) -> Optional[TouchpointSummary]:
    if not isinstance(row, Mapping) or not row:
        return None

    name_key = find_key(row, NAME_PATTERNS)
    name = to_text(row[name_key]).strip() if name_key is not None else ""
    if not name:
        return None

    a = _count(row, find_key(row, LEVEL_PATTERNS["A"]))
    aa = _count(row, find_key(row, LEVEL_PATTERNS["AA"]))
    aaa = _count(row, find_key(row, LEVEL_PATTERNS["AAA"]))

    unresolved_key = find_key(row, UNRESOLVED_PATTERNS)
    resolved_key = find_key(row, RESOLVED_PATTERNS)
    recheck_key = find_key(row, RECHECK_PATTERNS)

    return TouchpointSummary(
        name=name,
        A=a,
        AA=aa,
        AAA=aaa,
        # Always recomputed; a "Totale" column in the sheet is ignored.
        total=a + aa + aaa,
        unresolved=_count(row, unresolved_key) if unresolved_key is not None else None,
        resolved=_count(row, resolved_key) if resolved_key is not None else None,
        recheck=_count(row, recheck_key) if recheck_key is not None else None,
    )


def parse_touchpoint_sheet(rows: Iterable[Any]) -> List[TouchpointSummary]:
    parsed = [s for s in (parse_touchpoint_row(r) for r in rows) if s is not None]
    parsed.sort(key=lambda s: s.total, reverse=True)
    return parsed


def _sort_rows(rows: List[TouchpointSummary], sort_by: str, direction: str) -> List[TouchpointSummary]:
    if sort_by == "name":
        return sorted(rows, key=lambda s: s.name.casefold(), reverse=direction == "desc")
    return sorted(rows, key=lambda s: getattr(s, sort_by), reverse=direction == "desc")


def compute_touchpoints(rows: List[TouchpointSummary], filters: TouchpointFilters) -> Dict[str, Any]:
    totals = {
        "A": sum(r.A for r in rows),
        "AA": sum(r.AA for r in rows),
        "AAA": sum(r.AAA for r in rows),
        "total": sum(r.total for r in rows),
        "unresolved": sum(r.unresolved or 0 for r in rows),
    }

    q = normalize_key(filters.query)
    visible = [r for r in rows if q in normalize_key(r.name)] if q else list(rows)
    visible = _sort_rows(visible, filters.sort_by, filters.direction)
    table = [r.to_dict() for r in visible]

    charts: Dict[str, Any] = {}
    if table:
        charts["levels"] = to_vega_spec(touchpoint_level_chart(table))

    return {
        "filters": asdict(filters),
        "totals": {k: tidy_number(float(v)) for k, v in totals.items()},
        "rows": table,
        "row_count": len(rows),
        "charts": charts,
        "empty": not rows,
    }
