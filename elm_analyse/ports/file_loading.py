"""Target discovery and the engine's file-read requests."""

from __future__ import annotations

import asyncio
import hashlib
import os
from pathlib import Path
from typing import Any

import structlog

from elm_analyse.config import RunConfig
from elm_analyse.engine.base import EngineHandle, Port

logger = structlog.get_logger(__name__)

ELM_EXTENSION = ".elm"

# Directories never scanned for sources
_SKIP_DIRS = {
    ".git",
    "elm-stuff",
    "node_modules",
}


async def read_source(path: str, errors: str = "replace") -> str:
    """Read a source file as UTF-8 without blocking the event loop.

    Undecodable bytes become U+FFFD unless ``errors="strict"``.
    """
    raw = await asyncio.to_thread(Path(path).read_bytes)
    return raw.decode("utf-8", errors=errors)


def collect_source_files(
    directory: str | Path,
    source_dirs: list[str] | None = None,
    excluded_paths: list[str] | None = None,
) -> list[str]:
    """
    Collect ``.elm`` files under ``source_dirs`` (default: the whole directory).

    Returns sorted POSIX paths relative to ``directory``. A file is dropped
    when its relative path equals or lies under an excluded path.
    """
    root = Path(directory)
    excluded = [_normalise(p) for p in (excluded_paths or [])]
    found: set[str] = set()

    for source_dir in source_dirs or ["."]:
        base = (root / source_dir).resolve()
        if not base.is_dir():
            logger.warning("file_loading.missing_source_dir", source_dir=source_dir)
            continue
        for dirpath, dirnames, filenames in os.walk(base):
            dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
            for f in filenames:
                if not f.endswith(ELM_EXTENSION):
                    continue
                rel = _relative_to(Path(dirpath) / f, root)
                if not _is_excluded(rel, excluded):
                    found.add(rel)
    return sorted(found)


def _relative_to(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _normalise(path: str) -> str:
    return Path(path).as_posix().strip("/").removeprefix("./")


def _is_excluded(rel: str, excluded: list[str]) -> bool:
    return any(rel == ex or rel.startswith(ex + "/") for ex in excluded)


def sha1_of(content: str) -> str:
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


class FileLoadingPorts:
    """Answer the engine's context and file-read requests from disk."""

    def __init__(self, engine: EngineHandle, config: RunConfig, source_dirs: list[str]) -> None:
        self.engine = engine
        self.config = config
        self.source_dirs = source_dirs

    def wire(self) -> None:
        self.engine.subscribe(Port.LOAD_CONTEXT, self.on_load_context)
        self.engine.subscribe(Port.LOAD_FILE, self.on_load_file)

    async def on_load_context(self, _payload: Any = None) -> None:
        source_files = collect_source_files(
            self.config.directory,
            self.source_dirs,
            self.config.settings.excluded_paths,
        )
        logger.info("file_loading.context", files=len(source_files))
        await self.engine.send(
            Port.ON_LOADED_CONTEXT,
            {
                "sourceFiles": source_files,
                "configuration": self.config.settings.model_dump(by_alias=True),
            },
        )

    async def on_load_file(self, payload: Any) -> None:
        path = str(payload)
        try:
            content: str | None = await read_source(str(self.config.directory / path), errors="strict")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("file_loading.read_failed", path=path, error=str(e))
            content = None

        await self.engine.send(
            Port.FILE_CONTENT,
            {
                "path": path,
                "success": content is not None,
                "content": content,
                "sha1": sha1_of(content) if content is not None else None,
            },
        )
