"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides an in-memory engine that records every call.
"""

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from esautocomplete.engine.base import (  # noqa: E402
    BulkRecord,
    BulkResult,
    ScrollPage,
    SearchHit,
)


class FakeEngine:
    """SearchEngine stand-in. Canned responses in, recorded calls out."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.hits: list[SearchHit] = []
        self.aliases: dict[str, str] = {}
        self.mapping: dict[str, Any] = {}
        self.counts: dict[str, int] = {}
        self.bulk_errors: list[dict[str, Any]] = []
        self.scroll_pages: list[ScrollPage] = []
        self.written: list[BulkRecord] = []
        self.failures: dict[str, Exception] = {}

    def __enter__(self) -> "FakeEngine":
        return self

    def __exit__(self, *_: object) -> None:
        self.closed = True

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    def call_names(self) -> list[str]:
        return [call for call, _ in self.calls]

    def create_index(self, name: str, settings: dict[str, Any]) -> None:
        self._record("create_index", name, settings)

    def delete_index(self, name: str) -> None:
        self._record("delete_index", name)

    def put_mapping(self, index: str, type: str, schema: dict[str, Any]) -> None:
        self._record("put_mapping", index, type, schema)

    def delete_mapping(self, index: str, type: str) -> None:
        self._record("delete_mapping", index, type)

    def delete_by_query(self, index: str, type: str, filter: dict[str, Any]) -> None:
        self._record("delete_by_query", index, type, filter)

    def get_mapping(self, index: str) -> dict[str, Any]:
        self._record("get_mapping", index)
        return self.mapping

    def bulk_write(self, records: Sequence[BulkRecord]) -> BulkResult:
        self._record("bulk_write", list(records))
        self.written.extend(records)
        return BulkResult(items=len(records), errors=list(self.bulk_errors))

    def search(
        self,
        index: str,
        type: str,
        body: dict[str, Any],
        size: int,
    ) -> list[SearchHit]:
        self._record("search", index, type, body, size)
        return list(self.hits[:size])

    def count(self, index: str, type: str, filter: dict[str, Any] | None = None) -> int:
        self._record("count", index, type, filter)
        field = (filter or {}).get("exists", {}).get("field")
        return self.counts.get(field, 0)

    def wait_for_health(self, index: str | None, status: str = "green") -> None:
        self._record("wait_for_health", index, status)

    def update_settings(self, index: str, settings: dict[str, Any]) -> None:
        self._record("update_settings", index, settings)

    def optimize(self, index: str, max_num_segments: int = 1) -> None:
        self._record("optimize", index, max_num_segments)

    def refresh(self, index: str) -> None:
        self._record("refresh", index)

    def get_alias(self, alias: str) -> str | None:
        self._record("get_alias", alias)
        return self.aliases.get(alias)

    def atomic_alias_swap(self, actions: Sequence[dict[str, Any]]) -> None:
        self._record("atomic_alias_swap", list(actions))
        for action in actions:
            if "remove" in action:
                self.aliases.pop(action["remove"]["alias"], None)
            if "add" in action:
                self.aliases[action["add"]["alias"]] = action["add"]["index"]

    def open_scroll(
        self,
        index: str,
        body: dict[str, Any],
        size: int,
        keepalive: str,
    ) -> ScrollPage:
        self._record("open_scroll", index, body, size, keepalive)
        return self._next_page()

    def scroll(self, scroll_id: str, keepalive: str) -> ScrollPage:
        self._record("scroll", scroll_id, keepalive)
        return self._next_page()

    def clear_scroll(self, scroll_id: str) -> None:
        self._record("clear_scroll", scroll_id)

    def _next_page(self) -> ScrollPage:
        if self.scroll_pages:
            return self.scroll_pages.pop(0)
        return ScrollPage(scroll_id=None, hits=[])


@pytest.fixture
def engine() -> FakeEngine:
    """Fresh recording engine."""
    return FakeEngine()


@pytest.fixture
def make_hit():
    """Factory for SearchHit objects."""

    def _make(id: str = "1", score: float | None = 1.0, **source: Any) -> SearchHit:
        fields = source.pop("fields", {})
        return SearchHit(id=id, score=score, source=source, fields=fields)

    return _make
