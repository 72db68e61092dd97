"""Search engine collaborator interface.

Everything the autocomplete layer needs from the engine, expressed as a
Protocol so tests and alternative transports can stand in for the HTTP
adapter. Calls are blocking; nothing here retries.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class SearchHit:
    """A single search hit."""

    id: str
    score: float | None
    source: dict[str, Any] = field(default_factory=dict)
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class BulkRecord:
    """One document to write in a bulk request."""

    index: str
    type: str
    source: dict[str, Any]
    id: str | None = None


@dataclass
class BulkResult:
    """Outcome of a bulk request. ``errors`` holds one entry per failed record."""

    items: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ScrollPage:
    """One page of a scrolled search."""

    scroll_id: str | None
    hits: list[SearchHit] = field(default_factory=list)
    total: int = 0


@runtime_checkable
class SearchEngine(Protocol):
    """Blocking engine operations consumed by the autocomplete layer."""

    def create_index(self, name: str, settings: dict[str, Any]) -> None: ...

    def delete_index(self, name: str) -> None: ...

    def put_mapping(self, index: str, type: str, schema: dict[str, Any]) -> None: ...

    def delete_mapping(self, index: str, type: str) -> None: ...

    def delete_by_query(self, index: str, type: str, filter: dict[str, Any]) -> None: ...

    def get_mapping(self, index: str) -> dict[str, Any]: ...

    def bulk_write(self, records: Sequence[BulkRecord]) -> BulkResult: ...

    def search(
        self,
        index: str,
        type: str,
        body: dict[str, Any],
        size: int,
    ) -> list[SearchHit]: ...

    def count(self, index: str, type: str, filter: dict[str, Any] | None = None) -> int: ...

    def wait_for_health(self, index: str | None, status: str = "green") -> None: ...

    def update_settings(self, index: str, settings: dict[str, Any]) -> None: ...

    def optimize(self, index: str, max_num_segments: int = 1) -> None: ...

    def refresh(self, index: str) -> None: ...

    def get_alias(self, alias: str) -> str | None: ...

    def atomic_alias_swap(self, actions: Sequence[dict[str, Any]]) -> None: ...

    def open_scroll(
        self,
        index: str,
        body: dict[str, Any],
        size: int,
        keepalive: str,
    ) -> ScrollPage: ...

    def scroll(self, scroll_id: str, keepalive: str) -> ScrollPage: ...

    def clear_scroll(self, scroll_id: str) -> None: ...
