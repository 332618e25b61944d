"""Sequential dispatch queue: one file in flight at a time."""

from __future__ import annotations

import asyncio
import json
from collections import deque
from collections.abc import Awaitable, Iterable
from decimal import Decimal
from typing import Any, Callable

import click
import structlog

from elm_analyse.engine.base import EngineHandle, Port
from elm_analyse.models import Candidate, CompletionEvent
from elm_analyse.ports.file_loading import read_source
from elm_analyse.prescreen import should_skip
from elm_analyse.progress import RunStatistics, RunSummary

logger = structlog.get_logger(__name__)


class SequentialDispatchQueue:
    """
    Feed candidates to the engine strictly one at a time.

    Each non-skipped candidate is sent on ``onFile``; the next one is only
    sent after the matching ``parseResponse`` has arrived, so completions
    are consumed in submission order.
    """

    def __init__(
        self,
        engine: EngineHandle,
        candidates: Iterable[Candidate],
        *,
        read_file: Callable[[str], Awaitable[str]] = read_source,
        echo: Callable[[str], Any] = click.echo,
    ) -> None:
        self.engine = engine
        self.stats = RunStatistics()
        self._backlog: deque[Candidate] = deque(candidates)
        self._read_file = read_file
        self._echo = echo
        self._pending: asyncio.Future[CompletionEvent] | None = None
        self._done = False

        engine.subscribe(Port.PARSE_RESPONSE, self._on_parse_response)

    @property
    def remaining(self) -> int:
        return len(self._backlog)

    async def run(self) -> RunSummary:
        """Drain the backlog and return the run summary."""
        if self._done:
            raise RuntimeError("Dispatch queue has already been drained")

        while self._backlog:
            candidate = self._backlog.popleft()
            content = candidate.content
            if content is None:
                content = await self._read_file(candidate.path)

            if should_skip(content):
                self.stats.record_skip(candidate.path)
                continue

            event = await self._submit(candidate.path, content)
            if event.path != candidate.path:
                logger.warning("dispatch.path_mismatch", submitted=candidate.path, received=event.path)
            self.stats.record_completion(event)
            self._echo_progress(event)

        self._done = True
        summary = self.stats.summary()
        self._print_summary(summary)
        return summary

    async def _submit(self, path: str, content: str) -> CompletionEvent:
        self._pending = asyncio.get_running_loop().create_future()
        try:
            await self.engine.send(Port.ON_FILE, [path, content])
            return await self.engine.wait_for(self._pending)
        finally:
            self._pending = None

    def _on_parse_response(self, message: Any) -> None:
        pending = self._pending
        if pending is None or pending.done():
            logger.warning("dispatch.unexpected_response", message=repr(message)[:200])
            return
        try:
            pending.set_result(CompletionEvent.from_message(message))
        except Exception as e:
            pending.set_exception(e)

    def _echo_progress(self, event: CompletionEvent) -> None:
        self._echo(
            f"{self.stats.processed} Analysed file: {event.path} "
            f"in milliseconds {_fmt_number(event.elapsed_ms)}"
        )
        if event.failed:
            self._echo("  > Failed")

    def _print_summary(self, summary: RunSummary) -> None:
        self._echo(f"Failed: {summary.failed}")
        self._echo(f"Invalid: {summary.skipped}")
        self._echo(f"Counter: {summary.processed}")
        self._echo(f"Total Time: {_fmt_number(summary.total_time_seconds)}")
        self._echo("")
        self._echo(json.dumps(list(summary.failed_files), indent=2))


def _fmt_number(value: float) -> str:
    """Plain decimal notation: 12 -> "12", 1e-05 -> "0.00001"."""
    if float(value).is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")
