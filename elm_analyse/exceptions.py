"""Custom exceptions for elm-analyse."""


class AnalyserError(Exception):
    """Base exception for all analyser errors."""


class ConfigError(AnalyserError):
    """Raised when elm.json or elm-analyse.json cannot be loaded."""


class DependencyResolutionError(AnalyserError):
    """Raised when the package registry cannot be fetched and no cache exists."""


class EngineStartupError(AnalyserError):
    """Raised when the analysis engine fails to boot."""


class EngineExitedError(AnalyserError):
    """Raised when the engine exits while a result is still awaited."""

    def __init__(self, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(f"Analysis engine exited unexpectedly (returncode={returncode})")


class EngineProtocolError(AnalyserError):
    """Raised when the engine sends a message that does not match the port contract."""
