from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class TouchpointFiltersModel(BaseModel):
    query: str = ""
    sort_by: Literal["total", "A", "AA", "AAA", "name"] = "total"
    direction: Literal["desc", "asc"] = "desc"


class RefreshResponse(BaseModel):
    ok: bool
    message: str
    status_code: Optional[int] = None


class ErrorResponse(BaseModel):
    error: str
    type: str
