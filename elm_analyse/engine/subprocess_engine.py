"""Subprocess engine — runs the analyser as an external command.

Messages are newline-delimited JSON objects ``{"port": ..., "data": ...}``
on the child's stdin (inbound) and stdout (outbound). The first line sent is
the boot record on the ``init`` port.
"""

from __future__ import annotations

import asyncio
import json
import shlex
from typing import Any

import structlog

from elm_analyse.engine.base import EngineHandle, Port, _port_name
from elm_analyse.exceptions import EngineExitedError, EngineStartupError
from elm_analyse.models import EngineConfig

logger = structlog.get_logger(__name__)

# asyncio's default 64 KiB line limit is too small for whole-project reports
_STREAM_LIMIT = 16 * 1024 * 1024


class SubprocessEngine(EngineHandle):
    """
    Engine handle backed by a child process.

    Workflow:
        start() -> spawn command -> write {"port": "init", "data": flags}
            -> reader task decodes stdout lines -> subscribers
        EOF on stdout -> engine marked as exited
    """

    def __init__(self, config: EngineConfig, command: list[str]) -> None:
        super().__init__(config)
        if not command:
            raise EngineStartupError("No engine command configured (set ELM_ANALYSE_ENGINE or --engine)")
        self.command = list(command)
        self._proc: asyncio.subprocess.Process | None = None
        self._reader: asyncio.Task[None] | None = None
        self._stderr_reader: asyncio.Task[None] | None = None
        self._closing = False

    async def start(self) -> None:
        if self._proc is not None:
            raise EngineStartupError("Engine already started")
        try:
            flags = json.dumps({"port": "init", "data": self.config.to_flags()})
        except (TypeError, ValueError) as e:
            raise EngineStartupError(f"Engine configuration is not serialisable: {e}") from e

        try:
            self._proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_STREAM_LIMIT,
            )
        except OSError as e:
            raise EngineStartupError(f"Failed to launch engine {self.command[0]!r}: {e}") from e

        self._reader = asyncio.create_task(self._read_stdout(), name="engine-stdout")
        self._stderr_reader = asyncio.create_task(self._read_stderr(), name="engine-stderr")
        logger.info("engine.started", command=self.command, pid=self._proc.pid)

        try:
            await self._write_line(flags)
        except (BrokenPipeError, ConnectionResetError) as e:
            raise EngineStartupError(f"Engine exited during boot: {e}") from e

    async def send(self, port: Port | str, payload: Any) -> None:
        if self._proc is None:
            raise RuntimeError("Engine not started")
        line = json.dumps({"port": _port_name(port), "data": payload})
        try:
            await self._write_line(line)
        except (BrokenPipeError, ConnectionResetError) as e:
            returncode = await self._proc.wait()
            self._mark_exited(returncode)
            raise EngineExitedError(returncode) from e

    async def close(self) -> None:
        proc = self._proc
        if proc is None:
            return
        self._closing = True
        if proc.returncode is None:
            if proc.stdin is not None and not proc.stdin.is_closing():
                proc.stdin.close()
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
            await proc.wait()
        for task in (self._reader, self._stderr_reader):
            if task is not None:
                await asyncio.gather(task, return_exceptions=True)
        self._mark_exited(proc.returncode)
        logger.debug("engine.closed", returncode=proc.returncode)

    async def _write_line(self, line: str) -> None:
        assert self._proc is not None and self._proc.stdin is not None
        self._proc.stdin.write(line.encode("utf-8") + b"\n")
        await self._proc.stdin.drain()

    async def _read_stdout(self) -> None:
        assert self._proc is not None and self._proc.stdout is not None
        stdout = self._proc.stdout
        while True:
            raw = await stdout.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("engine.bad_message", line=line[:200])
                continue
            if not isinstance(message, dict) or "port" not in message:
                logger.warning("engine.bad_message", line=line[:200])
                continue
            await self._dispatch(str(message["port"]), message.get("data"))

        returncode = await self._proc.wait()
        if returncode and not self._closing:
            logger.warning("engine.exited", returncode=returncode)
        self._mark_exited(returncode)

    async def _read_stderr(self) -> None:
        assert self._proc is not None and self._proc.stderr is not None
        async for raw in self._proc.stderr:
            logger.debug("engine.stderr", line=raw.decode("utf-8", errors="replace").rstrip())


def create_engine(config: EngineConfig, command: str | list[str]) -> SubprocessEngine:
    """Create a SubprocessEngine from a command string or argv list."""
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    return SubprocessEngine(config, argv)
