"""Where aggregation passes get their documents and phrase dumps."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

import structlog

from esautocomplete.core.errors import AggregationError
from esautocomplete.engine.base import SearchEngine, SearchHit
from esautocomplete.indexer.accumulator import PhraseRecord

logger = structlog.get_logger()


class ScrollSource:
    """Pulls every document matching a query from the engine with a scroll cursor.

    Document order is whatever the engine returns; aggregation does not
    depend on it.
    """

    def __init__(
        self,
        engine: SearchEngine,
        index: str,
        query: Mapping[str, Any] | None = None,
        size: int = 100,
        keepalive: str = "5m",
    ) -> None:
        self.engine = engine
        self.index = index
        self.query = dict(query) if query else {"match_all": {}}
        self.size = size
        self.keepalive = keepalive

    @classmethod
    def from_query(
        cls,
        engine: SearchEngine,
        query: Mapping[str, Any],
        size: int = 100,
        keepalive: str = "5m",
    ) -> ScrollSource:
        """Build from ``{"index": ..., "query": {...}}``."""
        index = query.get("index")
        if not index:
            raise AggregationError.missing_source()
        return cls(engine, index, query.get("query"), size=size, keepalive=keepalive)

    def __iter__(self) -> Iterator[SearchHit]:
        page = self.engine.open_scroll(
            self.index, {"query": self.query}, size=self.size, keepalive=self.keepalive
        )
        logger.info("aggregate.scroll_opened", index=self.index, total=page.total)
        scroll_id = page.scroll_id
        try:
            while page.hits:
                yield from page.hits
                if not page.scroll_id:
                    break
                page = self.engine.scroll(page.scroll_id, self.keepalive)
                scroll_id = page.scroll_id or scroll_id
        finally:
            if scroll_id:
                self.engine.clear_scroll(scroll_id)


def write_phrase_file(path: Path | str, phrases: Iterable[PhraseRecord]) -> Path:
    """Dump aggregated phrases as a JSON list."""
    path = Path(path)
    data = [phrase.to_dict() for phrase in phrases]
    try:
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise AggregationError.phrase_file(str(path), str(e)) from e
    logger.info("phrases.saved", path=str(path), phrases=len(data))
    return path


def read_phrase_file(path: Path | str) -> list[PhraseRecord]:
    """Load phrases written by write_phrase_file()."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise AggregationError.phrase_file(str(path), str(e)) from e
    if not isinstance(data, list):
        raise AggregationError.phrase_file(str(path), "expected a JSON list of phrases")
    return [PhraseRecord.from_dict(entry) for entry in data]
