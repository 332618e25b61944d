"""Logging setup for the CLI: structlog events rendered through a stdlib handler."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

import structlog

# Loggers that are chatty at INFO/DEBUG and never useful to a CLI user
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def setup_logging(verbose: bool = False, stream: IO[str] | None = None) -> None:
    """Route all logging to stderr (stdout carries reports and progress).

    ``-v`` lowers the level to DEBUG and adds timestamps and logger names.
    ELM_ANALYSE_LOG_LEVEL overrides the level; ELM_ANALYSE_LOG_FORMAT=json
    switches to one JSON object per line for CI log collectors.
    """
    level = os.environ.get("ELM_ANALYSE_LOG_LEVEL", "DEBUG" if verbose else "WARNING").upper()
    as_json = os.environ.get("ELM_ANALYSE_LOG_FORMAT", "console").lower() == "json"

    pre_chain: list[structlog.types.Processor] = [structlog.stdlib.add_log_level]
    if verbose or as_json:
        pre_chain += [
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ]

    if as_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars, *pre_chain,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
