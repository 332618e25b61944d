"""Tests for configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from elm_analyse.config import (
    ElmPackage,
    RunConfig,
    default_engine_command,
    load_elm_package,
    load_settings,
)
from elm_analyse.exceptions import ConfigError


class TestLoadElmPackage:
    def test_application(self, elm_project):
        pkg = load_elm_package(elm_project)
        assert pkg.type == "application"
        assert pkg.source_dirs() == ["src"]
        assert pkg.dependencies["direct"] == {"elm/core": "1.0.5"}

    def test_package_uses_src(self):
        pkg = ElmPackage.model_validate({"type": "package", "source-directories": ["lib"]})
        assert pkg.source_dirs() == ["src"]

    def test_extra_keys_round_trip(self, elm_project):
        dumped = load_elm_package(elm_project).model_dump(by_alias=True)
        assert dumped["elm-version"] == "0.19.1"
        assert "source-directories" in dumped

    def test_missing(self, tmp_path):
        with pytest.raises(ConfigError, match="No elm.json"):
            load_elm_package(tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / "elm.json").write_text("{nope")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_elm_package(tmp_path)

    def test_invalid_shape(self, tmp_path):
        (tmp_path / "elm.json").write_text(json.dumps({"source-directories": "src"}))
        with pytest.raises(ConfigError, match="Invalid elm.json"):
            load_elm_package(tmp_path)


class TestLoadSettings:
    def test_defaults_when_absent(self, tmp_path):
        settings = load_settings(tmp_path)
        assert settings.checks == {}
        assert settings.excluded_paths == []

    def test_reads_file(self, tmp_path):
        (tmp_path / "elm-analyse.json").write_text(
            json.dumps({"checks": {"ExposeAll": False}, "excludedPaths": ["src/Vendor"]})
        )
        settings = load_settings(tmp_path)
        assert settings.checks == {"ExposeAll": False}
        assert settings.excluded_paths == ["src/Vendor"]

    def test_invalid(self, tmp_path):
        (tmp_path / "elm-analyse.json").write_text(json.dumps({"excludedPaths": "src"}))
        with pytest.raises(ConfigError):
            load_settings(tmp_path)


class TestRunConfig:
    def test_unknown_format(self):
        with pytest.raises(ConfigError):
            RunConfig(format="xml", engine_command="x")

    def test_engine_from_env(self, monkeypatch):
        monkeypatch.setenv("ELM_ANALYSE_ENGINE", "node worker.js")
        assert default_engine_command() == "node worker.js"
        assert RunConfig().engine_command == "node worker.js"

    def test_directory_coerced(self):
        assert RunConfig(directory="proj", engine_command="x").directory == Path("proj")
