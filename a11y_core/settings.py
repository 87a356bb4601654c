from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from a11y_core.errors import ConfigError


DATA_URL = "https://api.accessibilitydays.it/json-storages/excel-be"
DETAILS_URL = (
    "https://script.google.com/macros/s/"
    "AKfycbzKBulKgKMUZ0JKp89x2xhlZtA4covcQQOq5fw7SsHL8j0FTLLayvmZuiCuqR4pnHAG/exec"
)

OVERVIEW_SHEET_NAME = "Panoramica"
TOUCHPOINT_SHEET_NAME = "Touchpoint"
DETAILS_SHEET_NAME = "Report Pagine Sito Istituzionale"

VIEW_NAMES = ("Panoramica", "Touchpoint", "Dettagli")


@dataclass(frozen=True)
class SheetNames:
    overview: str = OVERVIEW_SHEET_NAME
    touchpoints: str = TOUCHPOINT_SHEET_NAME
    details: str = DETAILS_SHEET_NAME


@dataclass(frozen=True)
class DashboardSettings:
    data_url: str = DATA_URL
    details_url: str = DETAILS_URL
    # The Apps Script behind the details endpoint also regenerates the export.
    refresh_url: str = DETAILS_URL
    timeout: float = 30.0
    sheets: SheetNames = field(default_factory=SheetNames)
    disabled_views: Tuple[str, ...] = ()


def _as_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"invalid timeout: {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"timeout must be positive: {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> DashboardSettings:
    """Build settings from defaults, overridden by ``A11Y_*`` environment variables."""
    env = os.environ if environ is None else environ

    data_url = env.get("A11Y_DATA_URL") or DATA_URL
    details_url = env.get("A11Y_DETAILS_URL") or DETAILS_URL
    refresh_url = env.get("A11Y_REFRESH_URL") or details_url

    raw_timeout = (env.get("A11Y_TIMEOUT") or "").strip()
    timeout = _as_timeout(raw_timeout) if raw_timeout else 30.0

    disabled = tuple(
        name.strip()
        for name in (env.get("A11Y_DISABLED_VIEWS") or "").split(",")
        if name.strip()
    )
    unknown = [name for name in disabled if name not in VIEW_NAMES]
    if unknown:
        raise ConfigError(f"unknown views in A11Y_DISABLED_VIEWS: {', '.join(unknown)}")

    return DashboardSettings(
        data_url=data_url,
        details_url=details_url,
        refresh_url=refresh_url,
        timeout=timeout,
        disabled_views=disabled,
    )
