from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from a11y_core.errors import NO_DATA_MESSAGE
from a11y_core.rows import to_text

STATUS_COLUMN = "stato"

STATUS_TONES = {
    "da risolvere": "danger",
    "non risolto": "danger",
    "in corso": "warning",
    "da testare nel codice": "warning",
    "risolto dal team": "success",
    "risolto e verificato": "success",
}


def status_tone(value: Any) -> str:
    return STATUS_TONES.get(to_text(value).lower(), "neutral")


def find_status_column(headers: Iterable[str]) -> Optional[str]:
    return next((h for h in headers if h.lower() == STATUS_COLUMN), None)


def compute_details(rows: List[Mapping[str, Any]]) -> Dict[str, Any]:
    """Flat findings table. Headers come verbatim from the first row."""
    records = [r for r in rows if isinstance(r, Mapping)]
    if not records:
        return {"headers": [], "rows": [], "status_column": None, "empty": True, "message": NO_DATA_MESSAGE}

    headers = [str(h) for h in records[0].keys()]
    status_column = find_status_column(headers)

    table: List[Dict[str, Any]] = []
    for r in records:
        cells = {h: to_text(r.get(h)) for h in headers}
        entry: Dict[str, Any] = {"cells": cells}
        if status_column is not None:
            entry["status_tone"] = status_tone(cells[status_column])
        table.append(entry)

    return {
        "headers": headers,
        "rows": table,
        "status_column": status_column,
        "empty": False,
        "message": None,
    }
