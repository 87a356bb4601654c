"""Core (UI-agnostic) accessibility dashboard logic.

This package contains:
- settings and error types
- tolerant sheet-row parsing (JSON export -> typed records)
- view compute functions (JSON-serializable payloads)
- fetch / refresh client and the cancellable per-view controller
- chart helpers (Altair -> Vega-Lite spec dict)
"""

from __future__ import annotations
