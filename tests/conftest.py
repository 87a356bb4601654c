# Shared pytest fixtures
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from a11y_core.settings import DashboardSettings

DATA_URL = "https://data.example.test/excel-be"
DETAILS_URL = "https://script.example.test/exec"
REFRESH_URL = "https://script.example.test/refresh"


@pytest.fixture()
def settings() -> DashboardSettings:
    return DashboardSettings(data_url=DATA_URL, details_url=DETAILS_URL, refresh_url=REFRESH_URL, timeout=5.0)


@pytest.fixture()
def overview_rows() -> List[Dict[str, Any]]:
    # Shape of the real "Panoramica" export: the counts column is headed by the grand total.
    return [
        {"Livello": "Totale Segnalazioni ", "459": 459},
        {"Livello": "Totale touchpoint da testare", "459": 40},
        {"Livello": "Totale touchpoint testati", "459": 30},
        {"Livello": "", "459": ""},
        {"Livello": "Distribuzione per Livello", "459": 0},
        {"Livello": "A", "459": 120},
        {"Livello": "AA", "459": 200},
        {"Livello": "AAA", "459": 139},
        {"Livello": "-", "459": 0},
        {"Livello": "Distribuzione segnalzioni per touchpoint", "459": ""},
        {"Livello": "Login", "459": 12},
        {"Livello": "Home", "459": 80},
        {"Livello": "Bonifico", "459": "n/d"},
        {"Livello": "Carte", "459": "35"},
    ]


@pytest.fixture()
def touchpoint_rows() -> List[Dict[str, Any]]:
    return [
        {
            "Touchpoint": "Home",
            "Gravità A": "5",
            "Gravità AA": "3",
            "Gravità AAA": "0",
            "Totale": 99,
            "Segnalazioni non risolte": 4,
            "Segnalazioni risolte": 3,
            "In attesa di recheck": 1,
        },
        {
            "Touchpoint": "Login",
            "Segnalzioni livello A": 10,
            "Segnalzioni livello AA": 2,
            "Segnalzioni livello AAA": 1,
        },
        {"Touchpoint": "  ", "Gravità A": 50},
        {"Touchpoint": "Carte", "Gravità A": "x", "Gravità AA": 7, "Gravità AAA": None},
    ]


@pytest.fixture()
def details_rows() -> List[Dict[str, Any]]:
    return [
        {"Pagina": "/home", "Criterio": "1.1.1", "Stato": "Da risolvere"},
        {"Pagina": "/login", "Criterio": "2.4.7", "Stato": "Risolto e verificato"},
        {"Pagina": "/carte", "Criterio": "1.4.3", "Stato": "In corso"},
        {"Pagina": "/faq", "Criterio": "4.1.2", "Stato": "Sconosciuto"},
    ]


@pytest.fixture()
def data_payload(overview_rows, touchpoint_rows) -> Dict[str, Any]:
    return {"value": {"data": {"Panoramica": overview_rows, "Touchpoint": touchpoint_rows}}}


@pytest.fixture()
def details_payload(details_rows) -> Dict[str, Any]:
    return {"Report Pagine Sito Istituzionale": details_rows}


@pytest.fixture()
def make_transport() -> Callable[..., httpx.MockTransport]:
    """Build a MockTransport serving JSON per URL; records every request in ``.calls``."""

    def _make(routes: Dict[str, Any]) -> httpx.MockTransport:
        calls: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            url = str(request.url)
            route = routes.get(url)
            if route is None:
                return httpx.Response(404, json={"error": "not found"})
            if isinstance(route, Exception):
                raise route
            if isinstance(route, int):
                return httpx.Response(route)
            if isinstance(route, bytes):
                return httpx.Response(200, content=route)
            return httpx.Response(200, content=json.dumps(route).encode("utf-8"), headers={"Content-Type": "application/json"})

        transport = httpx.MockTransport(handler)
        transport.calls = calls  # type: ignore[attr-defined]
        return transport

    return _make
