"""Read-through result caching for suggestion requests.

Caching is optional: without a backend every request is computed fresh.
Empty results are cached as a sentinel so that known-empty queries (very
common while a user types a misspelled word) do not hit the engine again.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import structlog

from esautocomplete.config.constants import CACHE_EMPTY_SENTINEL, CACHE_KEY_SPACE

logger = structlog.get_logger()


@runtime_checkable
class CacheBackend(Protocol):
    """External key-value store."""

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...


class MemoryCache:
    """Process-local dict-backed cache."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        self._data.clear()


class JsonSerializer:
    """JSON encoding shared by cache keys, cached values and JSON output."""

    def dumps(self, obj: Any) -> str:
        return json.dumps(obj, ensure_ascii=False)

    def loads(self, data: str) -> Any:
        return json.loads(data)

    def canonical(self, obj: Any) -> str:
        """Key-sorted compact encoding: equal values always encode identically."""
        return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


class CacheGateway:
    """Mediates cache reads and writes around a compute function."""

    def __init__(
        self,
        backend: CacheBackend | None = None,
        serializer: JsonSerializer | None = None,
        debug: int = 0,
    ) -> None:
        self.backend = backend
        self.serializer = serializer or JsonSerializer()
        self.debug = debug

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    def cache_key(self, params: dict[str, Any]) -> str:
        return self.serializer.canonical(params).replace(" ", CACHE_KEY_SPACE)

    def fetch(self, compute: Callable[[dict[str, Any]], Any], params: dict[str, Any]) -> Any:
        """Return the cached result for ``params`` or compute and cache it.

        Returns None for an empty result, whether computed or cached.
        """
        if self.backend is None:
            return compute(params) or None

        key = self.cache_key(params)
        cached = self.backend.get(key)
        if cached:
            if cached == CACHE_EMPTY_SENTINEL:
                logger.debug("cache.hit_empty", key=key)
                return None
            logger.debug("cache.hit", key=key)
            return self.serializer.loads(cached)

        logger.debug("cache.miss", key=key)
        result = compute(params)
        if self.debug >= 2:
            logger.debug("cache.computed", key=key, result=result)
        if not result:
            self.backend.put(key, CACHE_EMPTY_SENTINEL)
            return None
        self.backend.put(key, self.serializer.dumps(result))
        return result
