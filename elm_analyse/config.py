"""Run configuration — elm.json, elm-analyse.json and environment defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from elm_analyse.exceptions import ConfigError

ELM_JSON = "elm.json"
SETTINGS_JSON = "elm-analyse.json"

REPORT_FORMATS = ("human", "json")

_DEFAULT_REGISTRY_URL = "https://package.elm-lang.org/search.json"


class ElmPackage(BaseModel):
    """The subset of elm.json the driver relies on. Other keys pass through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = "application"
    source_directories: list[str] = Field(default_factory=lambda: ["src"], alias="source-directories")
    dependencies: dict[str, Any] = Field(default_factory=dict)
    test_dependencies: dict[str, Any] = Field(default_factory=dict, alias="test-dependencies")

    def source_dirs(self) -> list[str]:
        # packages keep their sources in src/ regardless of the field
        if self.type == "package":
            return ["src"]
        return self.source_directories


class AnalyseSettings(BaseModel):
    """elm-analyse.json: per-check switches and excluded paths."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    checks: dict[str, bool] = Field(default_factory=dict)
    excluded_paths: list[str] = Field(default_factory=list, alias="excludedPaths")


@dataclass
class RunConfig:
    """Configuration for one CLI invocation."""

    directory: Path = field(default_factory=Path.cwd)
    format: str = "human"
    engine_command: str = ""
    verbose: bool = False
    settings: AnalyseSettings = field(default_factory=AnalyseSettings)

    def __post_init__(self) -> None:
        if self.format not in REPORT_FORMATS:
            raise ConfigError(f"Unknown report format '{self.format}' (expected one of {REPORT_FORMATS})")
        self.directory = Path(self.directory)
        if not self.engine_command:
            self.engine_command = default_engine_command()


def default_engine_command() -> str:
    return os.environ.get("ELM_ANALYSE_ENGINE", "")


def default_registry_url() -> str:
    return os.environ.get("ELM_ANALYSE_REGISTRY_URL", _DEFAULT_REGISTRY_URL)


def default_cache_dir() -> Path:
    return Path(os.environ.get("ELM_ANALYSE_CACHE_DIR", Path.home() / ".elm-analyse"))


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def load_elm_package(directory: str | Path) -> ElmPackage:
    """Load and validate ``elm.json`` from the project directory."""
    path = Path(directory) / ELM_JSON
    if not path.is_file():
        raise ConfigError(f"No {ELM_JSON} found in {directory}")
    try:
        return ElmPackage.model_validate(_read_json(path))
    except ValidationError as e:
        raise ConfigError(f"Invalid {ELM_JSON}: {e}") from e


def load_settings(directory: str | Path) -> AnalyseSettings:
    """Load ``elm-analyse.json``; a missing file means default settings."""
    path = Path(directory) / SETTINGS_JSON
    if not path.is_file():
        return AnalyseSettings()
    try:
        return AnalyseSettings.model_validate(_read_json(path))
    except ValidationError as e:
        raise ConfigError(f"Invalid {SETTINGS_JSON}: {e}") from e
