"""Shared pytest fixtures for elm-analyse tests."""

import json
import sys
import textwrap

import pytest

from elm_analyse.config import RunConfig

# Minimal line-oriented engine used by subprocess tests.
#   init     -> log line, optional report
#   onFile   -> parseResponse ("Nothing" when the content contains "broken")
ENGINE_SCRIPT = textwrap.dedent(
    """
    import json
    import sys

    REPORT = {report!r}
    EXIT_AFTER_INIT = {exit_after_init!r}


    def emit(port, data):
        sys.stdout.write(json.dumps({{"port": port, "data": data}}) + "\\n")
        sys.stdout.flush()


    for line in sys.stdin:
        msg = json.loads(line)
        port, data = msg["port"], msg["data"]
        if port == "init":
            if EXIT_AFTER_INIT:
                sys.exit(3)
            emit("log", ["INFO", "booted server=%s" % data["server"]])
            if REPORT is not None:
                emit("sendReportValue", REPORT)
        elif port == "onFile":
            path, content = data
            result = "Nothing" if "broken" in content else {{"module": path}}
            emit("parseResponse", [path, result, len(content)])
    """
)


@pytest.fixture
def engine_command(tmp_path):
    """Factory returning an argv for a scripted engine process."""

    def _make(*, report=None, exit_after_init=False):
        script = tmp_path / "engine.py"
        script.write_text(ENGINE_SCRIPT.format(report=report, exit_after_init=exit_after_init))
        return [sys.executable, str(script)]

    return _make


@pytest.fixture
def elm_project(tmp_path):
    """A small Elm application on disk."""
    root = tmp_path / "project"
    (root / "src" / "Vendor").mkdir(parents=True)
    (root / "elm-stuff").mkdir()
    (root / "elm.json").write_text(
        json.dumps(
            {
                "type": "application",
                "source-directories": ["src"],
                "elm-version": "0.19.1",
                "dependencies": {"direct": {"elm/core": "1.0.5"}, "indirect": {}},
                "test-dependencies": {"direct": {}, "indirect": {}},
            }
        )
    )
    (root / "src" / "Main.elm").write_text("module Main exposing (main)\n\nmain = 1\n")
    (root / "src" / "Util.elm").write_text("module Util exposing (..)\n\nx = 1\n")
    (root / "src" / "Vendor" / "Lib.elm").write_text("module Vendor.Lib exposing (..)\n")
    (root / "elm-stuff" / "Cached.elm").write_text("module Cached exposing (..)\n")
    return root


@pytest.fixture
def run_config(elm_project):
    return RunConfig(directory=elm_project, engine_command="unused-engine")


class FakeResolver:
    def __init__(self, registry=None):
        self.registry = registry if registry is not None else [{"name": "elm/core"}]
        self.calls = 0

    async def get_dependencies(self):
        self.calls += 1
        return self.registry


@pytest.fixture
def resolver():
    return FakeResolver()
