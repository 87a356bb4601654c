from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import httpx

from a11y_core.errors import BadStatusError, MalformedPayloadError, TransportFailure
from a11y_core.overview import OverviewSheet, parse_overview_sheet
from a11y_core.settings import DashboardSettings
from a11y_core.touchpoints import TouchpointSummary, parse_touchpoint_sheet

logger = logging.getLogger(__name__)

REFRESH_OK_MESSAGE = "Aggiornamento dei dati avviato. Ricarica la pagina per vedere i nuovi dati."
REFRESH_FAILED_MESSAGE = "Errore durante l'aggiornamento dei dati."


@dataclass(frozen=True)
class RefreshOutcome:
    ok: bool
    message: str
    status_code: Optional[int] = None


def build_client(settings: DashboardSettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.timeout, follow_redirects=True, transport=transport)


async def fetch_json(client: httpx.AsyncClient, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
    logger.debug("GET %s", url)
    try:
        response = await client.get(url, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("fetch failed for %s: %s", url, exc)
        raise TransportFailure(f"request to {url} failed: {exc}") from exc

    if not response.is_success:
        logger.warning("fetch returned HTTP %s for %s", response.status_code, url)
        raise BadStatusError(response.status_code, url)

    try:
        return response.json()
    except ValueError as exc:
        raise MalformedPayloadError(f"response from {url} is not JSON: {exc}") from exc


def extract_sheet(payload: Any, sheet_name: str) -> List[Any]:
    """Return the rows of ``sheet_name`` from either export envelope.

    The data endpoint wraps sheets as ``{"value": {"data": {...}}}`` while the
    details endpoint returns ``{...}`` directly; the wrapped form wins when both
    are present.
    """
    candidates: List[Mapping[str, Any]] = []
    if isinstance(payload, Mapping):
        value = payload.get("value")
        data = value.get("data") if isinstance(value, Mapping) else None
        if isinstance(data, Mapping):
            candidates.append(data)
        candidates.append(payload)

    for sheets in candidates:
        if sheet_name in sheets:
            rows = sheets[sheet_name]
            if not isinstance(rows, list):
                raise MalformedPayloadError(f"sheet {sheet_name!r} is not a list", sheet_name)
            return rows
    raise MalformedPayloadError(f"sheet {sheet_name!r} not found", sheet_name)


async def load_overview(client: httpx.AsyncClient, settings: DashboardSettings) -> OverviewSheet:
    payload = await fetch_json(client, settings.data_url)
    rows = extract_sheet(payload, settings.sheets.overview)
    sheet = parse_overview_sheet(rows)
    logger.info(
        "overview parsed: %d totals, %d levels, %d touchpoints",
        len(sheet.totals),
        len(sheet.level_dist),
        len(sheet.touchpoints),
    )
    return sheet


async def load_touchpoints(client: httpx.AsyncClient, settings: DashboardSettings) -> List[TouchpointSummary]:
    payload = await fetch_json(client, settings.data_url)
    rows = extract_sheet(payload, settings.sheets.touchpoints)
    parsed = parse_touchpoint_sheet(rows)
    logger.info("touchpoints parsed: %d of %d rows", len(parsed), len(rows))
    return parsed


async def load_details(client: httpx.AsyncClient, settings: DashboardSettings) -> List[Any]:
    payload = await fetch_json(client, settings.details_url)
    rows = extract_sheet(payload, settings.sheets.details)
    logger.info("details loaded: %d rows", len(rows))
    return rows


async def trigger_refresh(client: httpx.AsyncClient, settings: DashboardSettings) -> RefreshOutcome:
    """Ask the export job to regenerate the spreadsheet JSON.

    Does not touch any view state; users reload to see the new data.
    """
    try:
        response = await client.get(settings.refresh_url, headers={"Accept": "application/json"})
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("refresh failed: %s", exc)
        return RefreshOutcome(ok=False, message=REFRESH_FAILED_MESSAGE)

    if not response.is_success:
        logger.warning("refresh returned HTTP %s", response.status_code)
        return RefreshOutcome(ok=False, message=REFRESH_FAILED_MESSAGE, status_code=response.status_code)

    logger.info("refresh triggered (HTTP %s)", response.status_code)
    return RefreshOutcome(ok=True, message=REFRESH_OK_MESSAGE, status_code=response.status_code)
