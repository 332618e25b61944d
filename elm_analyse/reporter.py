"""Report rendering as human-readable text or raw JSON."""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Any, Callable

import click

from elm_analyse.exceptions import ConfigError
from elm_analyse.models import Report


def report(fmt: str, result: Report, echo: Callable[[str], Any] = click.echo) -> None:
    if fmt == "human":
        _human(result, echo)
    elif fmt == "json":
        echo(json.dumps(result.raw or _payload(result)))
    else:
        raise ConfigError(f"Unknown report format '{fmt}'")


def _payload(result: Report) -> dict[str, Any]:
    return {"messages": result.messages, "unusedDependencies": result.unused_dependencies}


def _human(result: Report, echo: Callable[[str], Any]) -> None:
    if not result.messages and not result.unused_dependencies:
        echo("No messages found.")
        return

    count = len(result.messages)
    echo(f"Found {count} message{'s' if count != 1 else ''}")

    by_file: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for message in result.messages:
        by_file[str(message.get("file", "?"))].append(message)

    for file in sorted(by_file):
        echo("")
        echo(f"- {file}")
        for message in by_file[file]:
            echo(f"  > {_describe(message)}")

    if result.unused_dependencies:
        echo("")
        echo("Unused dependencies:")
        for dep in result.unused_dependencies:
            echo(f"  - {_dependency_name(dep)}")


def _describe(message: dict[str, Any]) -> str:
    kind = message.get("type")
    data = message.get("data")
    description = data.get("description") if isinstance(data, dict) else None
    description = description or message.get("description") or "(no description)"
    return f"{kind}: {description}" if kind else str(description)


def _dependency_name(dep: Any) -> str:
    if isinstance(dep, (list, tuple)) and dep:
        return str(dep[0])
    if isinstance(dep, dict):
        return str(dep.get("name", dep))
    return str(dep)
