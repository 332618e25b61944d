"""Tests for SubprocessEngine against a scripted Python engine process."""

from __future__ import annotations

import asyncio
import sys

import pytest

from elm_analyse.dispatch import SequentialDispatchQueue
from elm_analyse.engine.base import Port
from elm_analyse.engine.subprocess_engine import SubprocessEngine, create_engine
from elm_analyse.exceptions import EngineExitedError, EngineStartupError
from elm_analyse.models import Candidate, EngineConfig

CONFIG = EngineConfig(server=False, elm_package={}, registry=[])


class TestLifecycle:
    def test_empty_command(self):
        with pytest.raises(EngineStartupError):
            SubprocessEngine(CONFIG, [])

    def test_create_engine_splits_string(self):
        engine = create_engine(CONFIG, "node engine.js --worker")
        assert engine.command == ["node", "engine.js", "--worker"]

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path):
        engine = SubprocessEngine(CONFIG, [str(tmp_path / "no-such-engine")])
        with pytest.raises(EngineStartupError):
            await engine.start()

    @pytest.mark.asyncio
    async def test_send_before_start(self):
        engine = SubprocessEngine(CONFIG, [sys.executable])
        with pytest.raises(RuntimeError):
            await engine.send(Port.ON_FILE, ["a.elm", ""])

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, engine_command):
        engine = SubprocessEngine(CONFIG, engine_command())
        await engine.start()
        await engine.close()
        await engine.close()
        assert engine.exited

    @pytest.mark.asyncio
    async def test_close_without_start(self):
        engine = SubprocessEngine(CONFIG, [sys.executable])
        await engine.close()
        assert not engine.exited


class TestMessaging:
    @pytest.mark.asyncio
    async def test_boot_flags_reach_engine(self, engine_command):
        engine = SubprocessEngine(CONFIG, engine_command())
        logs: asyncio.Queue = asyncio.Queue()
        engine.subscribe(Port.LOG, logs.put_nowait)

        await engine.start()
        try:
            message = await asyncio.wait_for(logs.get(), timeout=10)
        finally:
            await engine.close()

        assert message == ["INFO", "booted server=False"]

    @pytest.mark.asyncio
    async def test_dispatch_queue_over_process(self, engine_command):
        engine = SubprocessEngine(CONFIG, engine_command())
        lines: list[str] = []
        queue = SequentialDispatchQueue(
            engine,
            [
                Candidate("A.elm", "module A exposing (..)\na = 1"),
                Candidate("Old.elm", "module Old where\n"),
                Candidate("B.elm", "module B exposing (..)\nbroken"),
            ],
            echo=lines.append,
        )

        await engine.start()
        try:
            summary = await queue.run()
        finally:
            await engine.close()

        assert summary.processed == 2
        assert summary.skipped == 1
        assert summary.failed_files == ("B.elm",)
        assert lines[0].startswith("1 Analysed file: A.elm in milliseconds ")
        assert lines[1].startswith("2 Analysed file: B.elm")
        assert lines[2] == "  > Failed"

    @pytest.mark.asyncio
    async def test_engine_death_surfaces(self, engine_command):
        engine = SubprocessEngine(CONFIG, engine_command(exit_after_init=True))
        queue = SequentialDispatchQueue(engine, [Candidate("A.elm", "a = 1")], echo=lambda _: None)

        await engine.start()
        try:
            with pytest.raises(EngineExitedError) as exc_info:
                await queue.run()
        finally:
            await engine.close()

        assert exc_info.value.returncode == 3
