"""Forward engine log lines to structlog."""

from __future__ import annotations

from typing import Any

import structlog

from elm_analyse.config import RunConfig
from elm_analyse.engine.base import EngineHandle, Port

logger = structlog.get_logger("elm_analyse.engine.log")

_LEVELS = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARN": "warning",
    "WARNING": "warning",
    "ERROR": "error",
}


class LoggingPorts:
    def __init__(self, engine: EngineHandle, config: RunConfig) -> None:
        self.engine = engine
        self.config = config

    def wire(self) -> None:
        self.engine.subscribe(Port.LOG, self.on_log)

    def on_log(self, payload: Any) -> None:
        """Payload is ``[level, message]``; a bare string logs at info."""
        if isinstance(payload, (list, tuple)) and len(payload) == 2:
            level, message = str(payload[0]).upper(), str(payload[1])
        else:
            level, message = "INFO", str(payload)

        if level == "DEBUG" and not self.config.verbose:
            return
        method = getattr(logger, _LEVELS.get(level, "info"))
        method("engine.log", engine_level=level, message=message)
