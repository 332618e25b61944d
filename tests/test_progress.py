"""Tests for RunStatistics."""

from __future__ import annotations

from elm_analyse.models import CompletionEvent
from elm_analyse.progress import RunStatistics, RunSummary


class TestRunStatistics:
    def test_basic_flow(self):
        stats = RunStatistics()
        stats.record_completion(CompletionEvent("a.elm", {"ok": True}, 12))
        stats.record_completion(CompletionEvent("b.elm", "Nothing", 8))
        stats.record_skip("c.elm")

        summary = stats.summary()
        assert summary.processed == 2
        assert summary.failed == 1
        assert summary.skipped == 1
        assert summary.total_time_ms == 20
        assert summary.failed_files == ("b.elm",)

    def test_total_time_seconds(self):
        summary = RunSummary(processed=1, failed=0, skipped=0, total_time_ms=12)
        assert summary.total_time_seconds == 0.012

    def test_none_result_counts_as_failure(self):
        stats = RunStatistics()
        stats.record_completion(CompletionEvent("a.elm", None, 1))
        assert stats.failed == 1

    def test_callback(self):
        seen = []
        stats = RunStatistics()
        stats.callbacks.append(lambda e: seen.append((e.path, stats.processed)))

        stats.record_completion(CompletionEvent("a.elm", "ok", 1))
        stats.record_completion(CompletionEvent("b.elm", "ok", 1))

        assert seen == [("a.elm", 1), ("b.elm", 2)]

    def test_callback_error_does_not_break_accounting(self):
        stats = RunStatistics()
        stats.callbacks.append(lambda e: 1 / 0)

        stats.record_completion(CompletionEvent("a.elm", "ok", 3))

        assert stats.processed == 1
        assert stats.total_time_ms == 3

    def test_skip_does_not_touch_time(self):
        stats = RunStatistics()
        stats.record_skip("a.elm")
        assert stats.summary().total_time_ms == 0
        assert stats.summary().processed == 0

    def test_to_dict(self):
        stats = RunStatistics()
        stats.record_completion(CompletionEvent("c.elm", "Nothing", 5))
        assert stats.summary().to_dict() == {
            "processed": 1,
            "failed": 1,
            "skipped": 0,
            "total_time_seconds": 0.005,
            "failed_files": ["c.elm"],
        }
