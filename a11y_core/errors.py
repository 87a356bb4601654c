from __future__ import annotations

from typing import Optional

DATA_UNAVAILABLE_MESSAGE = "Impossibile caricare i dati"
NO_DATA_MESSAGE = "Nessun dato disponibile"


class DashboardError(Exception):
    pass


class ConfigError(DashboardError):
    pass


class DataUnavailableError(DashboardError):
    """A view could not obtain its sheet. Shown to users as a single message."""

    user_message = DATA_UNAVAILABLE_MESSAGE


class TransportFailure(DataUnavailableError):
    pass


class BadStatusError(DataUnavailableError):
    def __init__(self, status_code: int, url: str):
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class MalformedPayloadError(DataUnavailableError):
    def __init__(self, message: str, sheet_name: Optional[str] = None):
        super().__init__(message)
        self.sheet_name = sheet_name
