"""elm-analyse: drive an external Elm analysis engine from the command line."""

__version__ = "0.1.0"

from elm_analyse.dispatch import SequentialDispatchQueue
from elm_analyse.engine.base import EngineHandle, Port
from elm_analyse.engine.subprocess_engine import SubprocessEngine, create_engine
from elm_analyse.models import Candidate, CompletionEvent, EngineConfig, Report
from elm_analyse.orchestrator import AnalysisOrchestrator, exit_code_for
from elm_analyse.prescreen import should_skip
from elm_analyse.progress import RunStatistics, RunSummary

__all__ = [
    "AnalysisOrchestrator",
    "Candidate",
    "CompletionEvent",
    "EngineConfig",
    "EngineHandle",
    "Port",
    "Report",
    "RunStatistics",
    "RunSummary",
    "SequentialDispatchQueue",
    "SubprocessEngine",
    "create_engine",
    "exit_code_for",
    "should_skip",
]
