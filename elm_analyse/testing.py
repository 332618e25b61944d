"""Test doubles for elm_analyse — an in-memory engine.

Usage::

    from elm_analyse.testing import FakeEngine

    engine = FakeEngine(results={"a.elm": ("ok", 12)})     # parse results per path
    engine = FakeEngine(report={"messages": [], "unusedDependencies": []})
"""

from __future__ import annotations

import asyncio
from typing import Any

from elm_analyse.engine.base import EngineHandle, Port, _port_name
from elm_analyse.models import NOTHING, EngineConfig


class FakeEngine(EngineHandle):
    """Drop-in EngineHandle that answers from a script instead of a process.

    Parameters
    ----------
    results:
        ``{path: (result, elapsed_ms)}`` answered on ``parseResponse`` for
        each ``onFile`` submission. Unknown paths answer ``"Nothing"`` in 0 ms.
    report:
        Payload emitted on ``sendReportValue`` right after ``start()``.
        ``None`` means no report is ever sent.
    exit_after_start:
        Simulate an engine that dies right after booting.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        results: dict[str, tuple[Any, float]] | None = None,
        report: Any = None,
        exit_after_start: bool = False,
    ) -> None:
        super().__init__(config or EngineConfig(server=False, elm_package={}, registry=[]))
        self.results = dict(results or {})
        self.report_payload = report
        self.exit_after_start = exit_after_start
        self.sent: list[tuple[str, Any]] = []
        self.started = False
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0
        self._tasks: set[asyncio.Task[None]] = set()

    async def start(self) -> None:
        self.started = True
        if self.exit_after_start:
            self._mark_exited(1)
            return
        if self.report_payload is not None:
            asyncio.get_running_loop().call_soon(self._emit_soon, Port.SEND_REPORT_VALUE, self.report_payload)

    async def send(self, port: Port | str, payload: Any) -> None:
        name = _port_name(port)
        self.sent.append((name, payload))
        if name == Port.ON_FILE.value:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            path = payload[0]
            result, elapsed = self.results.get(path, (NOTHING, 0))
            asyncio.get_running_loop().call_soon(
                self._emit_soon, Port.PARSE_RESPONSE, [path, result, elapsed]
            )

    async def close(self) -> None:
        self.closed = True
        if not self.exited:
            self._mark_exited(0)

    async def emit(self, port: Port | str, payload: Any) -> None:
        """Push an outbound message to subscribers, as the engine would."""
        if _port_name(port) == Port.PARSE_RESPONSE.value:
            self.in_flight -= 1
        await self._dispatch(_port_name(port), payload)

    def _emit_soon(self, port: Port, payload: Any) -> None:
        task = asyncio.ensure_future(self.emit(port, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending_emits(self) -> int:
        return len(self._tasks)

    def submitted_paths(self) -> list[str]:
        return [payload[0] for name, payload in self.sent if name == Port.ON_FILE.value]
