from __future__ import annotations

from dataclasses import asdict
import logging
import math
from functools import lru_cache
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import pandas as pd
from fastapi import Depends, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from a11y_api.schemas import ErrorResponse, RefreshResponse, TouchpointFiltersModel
from a11y_core.data import build_client, load_details, load_overview, load_touchpoints, trigger_refresh
from a11y_core.details import compute_details
from a11y_core.errors import DataUnavailableError
from a11y_core.filters import TouchpointFilters, normalize_filters
from a11y_core.overview import compute_overview
from a11y_core.settings import DashboardSettings, load_settings
from a11y_core.touchpoints import compute_touchpoints


app = FastAPI(title="A11Y Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_settings() -> DashboardSettings:
    return load_settings()


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    return None


async def get_client(
    settings: DashboardSettings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
) -> AsyncIterator[httpx.AsyncClient]:
    async with build_client(settings, transport) as client:
        yield client


def _filters_from_model(model: TouchpointFiltersModel) -> TouchpointFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with NaN/inf mapped to null."""

    def _safe_float(value: float) -> Optional[float]:
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    return JSONResponse(content=jsonable_encoder(data, custom_encoder={float: _safe_float}))


def _unavailable(exc: DataUnavailableError) -> JSONResponse:
    return JSONResponse(status_code=502, content=ErrorResponse(error=exc.user_message, type=type(exc).__name__).model_dump())


def _failed(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc), type=type(exc).__name__).model_dump())


@app.get("/overview")
async def overview(
    client: httpx.AsyncClient = Depends(get_client),
    settings: DashboardSettings = Depends(get_settings),
):
    try:
        sheet = await load_overview(client, settings)
        return _json(compute_overview(sheet))
    except DataUnavailableError as exc:
        logger.warning("overview unavailable: %s", exc)
        return _unavailable(exc)
    except Exception as exc:
        logger.exception("overview failed")
        return _failed(exc)


@app.get("/touchpoints")
async def touchpoints(
    filters: TouchpointFiltersModel = Depends(),
    client: httpx.AsyncClient = Depends(get_client),
    settings: DashboardSettings = Depends(get_settings),
):
    try:
        rows = await load_touchpoints(client, settings)
        return _json(compute_touchpoints(rows, _filters_from_model(filters)))
    except DataUnavailableError as exc:
        logger.warning("touchpoints unavailable: %s", exc)
        return _unavailable(exc)
    except Exception as exc:
        logger.exception("touchpoints failed")
        return _failed(exc)


@app.get("/details")
async def details(
    client: httpx.AsyncClient = Depends(get_client),
    settings: DashboardSettings = Depends(get_settings),
):
    try:
        rows = await load_details(client, settings)
        return _json(compute_details(rows))
    except DataUnavailableError as exc:
        logger.warning("details unavailable: %s", exc)
        return _unavailable(exc)
    except Exception as exc:
        logger.exception("details failed")
        return _failed(exc)


@app.post("/refresh", response_model=RefreshResponse)
async def refresh(
    client: httpx.AsyncClient = Depends(get_client),
    settings: DashboardSettings = Depends(get_settings),
):
    outcome = await trigger_refresh(client, settings)
    return RefreshResponse(**asdict(outcome))


async def _export_records(view: str, client: httpx.AsyncClient, settings: DashboardSettings) -> List[Dict[str, Any]]:
    if view == "overview":
        return compute_overview(await load_overview(client, settings))["touchpoints"]
    if view == "touchpoints":
        return [r.to_dict() for r in await load_touchpoints(client, settings)]
    if view == "details":
        return [r["cells"] for r in compute_details(await load_details(client, settings))["rows"]]
    return []


@app.get("/export/{view}")
async def export_view(
    view: str,
    client: httpx.AsyncClient = Depends(get_client),
    settings: DashboardSettings = Depends(get_settings),
):
    try:
        records = await _export_records(view, client, settings)
    except DataUnavailableError as exc:
        logger.warning("export %s unavailable: %s", view, exc)
        return _unavailable(exc)
    except Exception as exc:
        logger.exception("export %s failed", view)
        return _failed(exc)

    export_df = pd.DataFrame(records)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={view}.csv"},
    )
