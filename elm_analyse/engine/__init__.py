"""Analysis engine handles."""

from elm_analyse.engine.base import EngineHandle, Port
from elm_analyse.engine.subprocess_engine import SubprocessEngine, create_engine

__all__ = ["EngineHandle", "Port", "SubprocessEngine", "create_engine"]
