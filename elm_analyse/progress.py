"""Run statistics for the sequential dispatch queue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import structlog

from elm_analyse.models import CompletionEvent

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RunSummary:
    processed: int
    failed: int
    skipped: int
    total_time_ms: float
    failed_files: tuple[str, ...] = ()

    @property
    def total_time_seconds(self) -> float:
        return self.total_time_ms / 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "skipped": self.skipped,
            "total_time_seconds": self.total_time_seconds,
            "failed_files": list(self.failed_files),
        }


class RunStatistics:
    """Accumulate per-file outcomes for one dispatch run."""

    def __init__(self) -> None:
        self.processed = 0
        self.failed = 0
        self.skipped = 0
        self.total_time_ms: float = 0
        self.failed_files: list[str] = []
        self.callbacks: list[Callable[[CompletionEvent], None]] = []

    def record_completion(self, event: CompletionEvent) -> None:
        self.processed += 1
        self.total_time_ms += event.elapsed_ms
        if event.failed:
            self.failed += 1
            self.failed_files.append(event.path)
        self._notify(event)

    def record_skip(self, path: str) -> None:
        self.skipped += 1
        logger.debug("dispatch.skipped", path=path, skipped=self.skipped)

    def summary(self) -> RunSummary:
        return RunSummary(
            processed=self.processed,
            failed=self.failed,
            skipped=self.skipped,
            total_time_ms=self.total_time_ms,
            failed_files=tuple(self.failed_files),
        )

    def _notify(self, event: CompletionEvent) -> None:
        for cb in self.callbacks:
            try:
                cb(event)
            except Exception:
                logger.debug("progress.callback_error", path=event.path, exc_info=True)
