"""Package registry resolution with an on-disk cache."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import httpx
import structlog

from elm_analyse.config import default_cache_dir, default_registry_url
from elm_analyse.exceptions import DependencyResolutionError

logger = structlog.get_logger(__name__)

CACHE_FILE = "registry.json"
CACHE_MAX_AGE = 24 * 60 * 60  # seconds


class DependencyResolver:
    """
    Resolve the package registry handed to the engine at boot.

    A cache younger than ``max_age`` is used as-is. Otherwise the registry is
    fetched once (no retries); if that fails a stale cache is still accepted.
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        registry_url: str | None = None,
        max_age: float = CACHE_MAX_AGE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.cache_path = Path(cache_dir or default_cache_dir()) / CACHE_FILE
        self.registry_url = registry_url or default_registry_url()
        self.max_age = max_age
        self._client = client

    async def get_dependencies(self) -> list[Any]:
        cached = self._read_cache()
        if cached is not None and self._cache_age() < self.max_age:
            logger.debug("registry.cache_hit", path=str(self.cache_path))
            return cached

        try:
            registry = await self._fetch()
        except (httpx.HTTPError, ValueError) as e:
            if cached is not None:
                logger.warning("registry.fetch_failed_using_cache", error=str(e))
                return cached
            raise DependencyResolutionError(
                f"Could not fetch package registry from {self.registry_url}: {e}"
            ) from e

        self._write_cache(registry)
        return registry

    async def _fetch(self) -> list[Any]:
        logger.info("registry.fetch", url=self.registry_url)
        if self._client is not None:
            response = await self._client.get(self.registry_url)
        else:
            async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
                response = await client.get(self.registry_url)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, got {type(data).__name__}")
        return data

    def _read_cache(self) -> list[Any] | None:
        if not self.cache_path.is_file():
            return None
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("registry.cache_unreadable", path=str(self.cache_path))
            return None
        return data if isinstance(data, list) else None

    def _cache_age(self) -> float:
        return time.time() - self.cache_path.stat().st_mtime

    def _write_cache(self, registry: list[Any]) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(registry), encoding="utf-8")
        except OSError as e:
            logger.warning("registry.cache_write_failed", path=str(self.cache_path), error=str(e))
