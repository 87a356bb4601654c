from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import httpx

from a11y_core.data import build_client
from a11y_core.errors import DATA_UNAVAILABLE_MESSAGE, DataUnavailableError
from a11y_core.settings import DashboardSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[T]]
ClientLoader = Callable[[httpx.AsyncClient, DashboardSettings], Awaitable[T]]


@dataclass(frozen=True)
class ViewState(Generic[T]):
    loading: bool = False
    data: Optional[T] = None
    error: Optional[str] = None


def bind_loader(
    load: ClientLoader[T],
    settings: DashboardSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Loader[T]:
    """Wrap a ``load_*`` function so each call runs on its own short-lived client."""

    async def _load() -> T:
        async with build_client(settings, transport) as client:
            return await load(client, settings)

    return _load


class ViewController(Generic[T]):
    """Owns one view's snapshot and its single in-flight fetch.

    ``open`` fetches on first display only; ``close`` cancels whatever is in
    flight and makes any late result a no-op; ``reload`` is the explicit
    re-trigger. There is no automatic retry.
    """

    def __init__(self, name: str, loader: Loader[T]):
        self.name = name
        self._loader = loader
        self.state: ViewState[T] = ViewState()
        self._task: Optional[asyncio.Task] = None
        self._token: Optional[object] = None
        self._active = False
        self._started = False

    @property
    def active(self) -> bool:
        return self._active

    async def open(self) -> ViewState[T]:
        self._active = True
        if not self._started:
            self._started = True
            self._start()
        await self._wait()
        return self.state

    async def reload(self) -> ViewState[T]:
        self._cancel()
        self._active = True
        self._started = True
        self._start()
        await self._wait()
        return self.state

    def close(self) -> None:
        self._active = False
        self._started = False
        self._cancel()

    def _start(self) -> None:
        token = object()
        self._token = token
        self.state = ViewState(loading=True)
        self._task = asyncio.get_running_loop().create_task(self._run(token))

    async def _wait(self) -> None:
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def _cancel(self) -> None:
        self._token = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, token: object) -> None:
        try:
            data = await self._loader()
        except asyncio.CancelledError:
            logger.debug("view %s: load cancelled", self.name)
            raise
        except DataUnavailableError as exc:
            logger.warning("view %s: %s", self.name, exc)
            self._commit(token, ViewState(error=exc.user_message))
            return
        except Exception:
            logger.exception("view %s: unexpected failure while loading", self.name)
            self._commit(token, ViewState(error=DATA_UNAVAILABLE_MESSAGE))
            return
        self._commit(token, ViewState(data=data))

    def _commit(self, token: object, state: ViewState[T]) -> None:
        if token is not self._token or not self._active:
            logger.debug("view %s: dropping stale result", self.name)
            return
        self.state = state
