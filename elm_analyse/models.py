"""Data models exchanged with the analysis engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from elm_analyse.exceptions import EngineProtocolError

# Result value the engine sends when it could not analyse a file
NOTHING = "Nothing"


@dataclass(frozen=True)
class Candidate:
    """One file queued for analysis. Content is read lazily when ``None``."""

    path: str
    content: str | None = None


@dataclass(frozen=True)
class CompletionEvent:
    """Per-file outcome reported by the engine on the parseResponse port."""

    path: str
    result: Any
    elapsed_ms: float

    @property
    def failed(self) -> bool:
        return self.result is None or self.result == NOTHING

    @classmethod
    def from_message(cls, message: Any) -> CompletionEvent:
        """Build from the wire triple ``[filePath, result, elapsedMs]``."""
        if not isinstance(message, (list, tuple)) or len(message) != 3:
            raise EngineProtocolError(f"Malformed parseResponse message: {message!r}")
        path, result, elapsed = message
        if not isinstance(elapsed, (int, float)):
            raise EngineProtocolError(f"Non-numeric elapsed time in parseResponse: {elapsed!r}")
        return cls(path=str(path), result=result, elapsed_ms=elapsed)


@dataclass
class Report:
    """
    Run-terminal aggregate sent once by the engine.
    ``raw`` keeps the original payload for the JSON reporter.
    """

    messages: list[dict[str, Any]] = field(default_factory=list)
    unused_dependencies: list[Any] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> Report:
        if not isinstance(payload, dict):
            raise EngineProtocolError(f"Report payload must be an object, got {type(payload).__name__}")
        for key in ("messages", "unusedDependencies"):
            if not isinstance(payload.get(key), list):
                raise EngineProtocolError(f"Report payload is missing list field '{key}'")
        return cls(
            messages=list(payload["messages"]),
            unused_dependencies=list(payload["unusedDependencies"]),
            raw=payload,
        )


@dataclass(frozen=True)
class EngineConfig:
    """Boot configuration handed to the engine once, at creation time."""

    server: bool
    elm_package: dict[str, Any]
    registry: list[Any]

    def to_flags(self) -> dict[str, Any]:
        return {
            "server": self.server,
            "elmPackage": self.elm_package,
            "registry": self.registry,
        }
