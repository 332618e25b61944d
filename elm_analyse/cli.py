"""CLI entry point: elm-analyse.

Subcommands:
    elm-analyse check [DIRECTORY]           # Analyse a project, exit 1 on findings
    elm-analyse parse-files [PATHS...]      # Feed files one by one, print parse stats
    elm-analyse init-config -o FILE         # Generate an elm-analyse.json template
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from elm_analyse.config import (
    REPORT_FORMATS,
    SETTINGS_JSON,
    RunConfig,
    default_engine_command,
    load_settings,
)
from elm_analyse.core.logging import setup_logging
from elm_analyse.dependencies import DependencyResolver
from elm_analyse.dispatch import SequentialDispatchQueue
from elm_analyse.engine.base import EngineHandle
from elm_analyse.engine.subprocess_engine import create_engine
from elm_analyse.exceptions import AnalyserError
from elm_analyse.models import Candidate, EngineConfig
from elm_analyse.orchestrator import AnalysisOrchestrator
from elm_analyse.ports.file_loading import ELM_EXTENSION, collect_source_files
from elm_analyse.progress import RunSummary

# Settings template
_SETTINGS_TEMPLATE = {
    "checks": {
        "ExposeAll": False,
        "ImportAll": False,
        "TriggerWords": True,
    },
    "excludedPaths": ["src/Vendor"],
}


class AnalyseFailed(click.ClickException):
    """Startup, configuration or protocol failure (exit code 1 means findings)."""

    exit_code = 2


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """elm-analyse: run the Elm analysis engine over a project."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command("check")
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--format", "fmt", type=click.Choice(REPORT_FORMATS), default="human", show_default=True,
    help="Report format",
)
@click.option("--engine", "engine_command", default=None, help="Engine command (default: $ELM_ANALYSE_ENGINE)")
@click.pass_context
def check(ctx: click.Context, directory: str, fmt: str, engine_command: str | None) -> None:
    """Analyse the project in DIRECTORY and exit 1 if anything was reported."""
    try:
        config = RunConfig(
            directory=Path(directory),
            format=fmt,
            engine_command=engine_command or default_engine_command(),
            verbose=ctx.obj["verbose"],
            settings=load_settings(directory),
        )
        code = asyncio.run(_build_orchestrator(config).run())
    except AnalyserError as e:
        raise AnalyseFailed(str(e)) from e
    sys.exit(code)


@main.command("parse-files")
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--engine", "engine_command", default=None, help="Engine command (default: $ELM_ANALYSE_ENGINE)")
def parse_files(paths: tuple[str, ...], engine_command: str | None) -> None:
    """Submit every .elm file under PATHS to the engine, one at a time."""
    targets = target_files(paths or (".",))
    try:
        engine = create_engine(
            EngineConfig(server=False, elm_package={}, registry=[]),
            engine_command or default_engine_command(),
        )
        asyncio.run(run_queue(engine, [Candidate(path=p) for p in targets]))
    except AnalyserError as e:
        raise AnalyseFailed(str(e)) from e


@main.command("init-config")
@click.option("-o", "--output", default=SETTINGS_JSON, help="Output file path")
def init_config(output: str) -> None:
    """Generate an elm-analyse.json template."""
    if Path(output).exists():
        click.echo(f"Error: {output} already exists", err=True)
        sys.exit(1)
    Path(output).write_text(json.dumps(_SETTINGS_TEMPLATE, indent=2) + "\n")
    click.echo(f"Settings template written to {output}")


def _build_orchestrator(config: RunConfig) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(config, DependencyResolver())


def target_files(paths: tuple[str, ...] | list[str]) -> list[str]:
    """Expand directories to their .elm files; explicit files are kept as given."""
    targets: list[str] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            targets.extend(str(path / rel) for rel in collect_source_files(path))
        elif path.suffix == ELM_EXTENSION:
            targets.append(str(path))
    return targets


async def run_queue(engine: EngineHandle, candidates: list[Candidate]) -> RunSummary:
    """Start the engine, drain the candidates through it, then stop it."""
    queue = SequentialDispatchQueue(engine, candidates)
    try:
        await engine.start()
        return await queue.run()
    finally:
        await engine.close()


if __name__ == "__main__":
    main()
