from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

SORT_KEYS = ("total", "A", "AA", "AAA", "name")
DIRECTIONS = ("desc", "asc")


@dataclass(frozen=True)
class TouchpointFilters:
    query: str = ""
    sort_by: str = "total"
    direction: str = "desc"


def normalize_filters(raw: Optional[Mapping[str, Any]]) -> TouchpointFilters:
    raw = raw or {}
    query = str(raw.get("query") or "").strip()

    sort_by = str(raw.get("sort_by") or "total")
    if sort_by not in SORT_KEYS:
        # Accept "aa" / "Name" from query strings.
        sort_by = next((k for k in SORT_KEYS if k.lower() == sort_by.lower()), "total")

    direction = str(raw.get("direction") or "desc").lower()
    if direction not in DIRECTIONS:
        direction = "desc"

    return TouchpointFilters(query=query, sort_by=sort_by, direction=direction)
