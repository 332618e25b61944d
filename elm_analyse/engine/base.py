"""Engine handle interface — message ports to one running analysis engine."""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from enum import Enum
from typing import Any, Callable, TypeVar

import structlog

from elm_analyse.exceptions import EngineExitedError
from elm_analyse.models import EngineConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PortCallback = Callable[[Any], Any]


class Port(str, Enum):
    """Port names shared with the engine."""

    # inbound
    ON_FILE = "onFile"
    FILE_CONTENT = "fileContent"
    ON_LOADED_CONTEXT = "onLoadedContext"
    # outbound
    PARSE_RESPONSE = "parseResponse"
    SEND_REPORT_VALUE = "sendReportValue"
    LOG = "log"
    LOAD_FILE = "loadFile"
    LOAD_CONTEXT = "loadContext"


class EngineHandle(ABC):
    """
    Handle to one engine instance bound to an immutable EngineConfig.

    Outbound messages are delivered to subscribers one at a time, in arrival
    order. Subclasses feed them in through ``_dispatch`` and call
    ``_mark_exited`` once the engine is gone.
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self._subscribers: dict[str, list[PortCallback]] = {}
        self._exited = asyncio.Event()
        self.returncode: int | None = None

    def subscribe(self, port: Port | str, callback: PortCallback) -> None:
        self._subscribers.setdefault(_port_name(port), []).append(callback)

    @abstractmethod
    async def start(self) -> None:
        """Boot the engine. Raises EngineStartupError."""
        ...

    @abstractmethod
    async def send(self, port: Port | str, payload: Any) -> None:
        """Submit one message on an inbound port."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Stop the engine. Safe to call more than once."""
        ...

    @property
    def exited(self) -> bool:
        return self._exited.is_set()

    async def wait_for(self, awaitable: Awaitable[T]) -> T:
        """Wait for ``awaitable``; raise EngineExitedError if the engine dies first."""
        task = asyncio.ensure_future(awaitable)
        exit_waiter = asyncio.ensure_future(self._exited.wait())
        try:
            await asyncio.wait({task, exit_waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            exit_waiter.cancel()
        if task.done():
            return task.result()
        task.cancel()
        raise EngineExitedError(self.returncode)

    async def _dispatch(self, port: str, payload: Any) -> None:
        callbacks = self._subscribers.get(port)
        if not callbacks:
            logger.debug("engine.unhandled_port", port=port)
            return
        for cb in list(callbacks):
            try:
                result = cb(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("engine.callback_error", port=port)

    def _mark_exited(self, returncode: int | None) -> None:
        self.returncode = returncode
        self._exited.set()


def _port_name(port: Port | str) -> str:
    return port.value if isinstance(port, Port) else port
