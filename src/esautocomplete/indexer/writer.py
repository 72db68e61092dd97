"""Populating one autocomplete type inside an index generation."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

import structlog

from esautocomplete.config.constants import BULK_ERROR_SAMPLES
from esautocomplete.config.models import IndexerConfig
from esautocomplete.core.errors import AggregationError, BulkIndexError
from esautocomplete.engine.base import BulkRecord, SearchEngine
from esautocomplete.engine.schema import rank_field, type_mapping
from esautocomplete.indexer.accumulator import ParsedPhrase, PhraseRecord, RankAccumulator
from esautocomplete.indexer.models import IndexGeneration
from esautocomplete.indexer.source import ScrollSource, read_phrase_file, write_phrase_file
from esautocomplete.suggest.context import clean_context
from esautocomplete.suggest.service import AutocompleteType

logger = structlog.get_logger()

ParsedValues = ParsedPhrase | Mapping[str, Any] | Iterable[ParsedPhrase | Mapping[str, Any]] | None
Parser = Callable[["TypeIndexer", Any], ParsedValues]


def _parsed_values(result: ParsedValues) -> Iterable[ParsedPhrase | Mapping[str, Any]]:
    if result is None:
        return ()
    if isinstance(result, (ParsedPhrase, Mapping)):
        return (result,)
    return result


class TypeIndexer:
    """Writes one type's phrases into a specific (usually not yet live) index.

    Usage::

        indexer = lifecycle.type("names")
        indexer.init()
        indexer.index_phrases(
            parser=lambda ix, hit: {"phrase": hit.source["name"], "contexts": hit.source["folders"]},
            query={"index": "contacts", "query": {"match_all": {}}},
        )
    """

    def __init__(
        self,
        engine: SearchEngine,
        index: str,
        type: AutocompleteType,
        config: IndexerConfig | None = None,
        generation: IndexGeneration | None = None,
        debug: int = 0,
    ) -> None:
        self.engine = engine
        self.index = index
        self.type = type
        self.config = config or IndexerConfig()
        self.generation = generation
        self.debug = debug

    @property
    def name(self) -> str:
        return self.type.name

    def tokenize(self, text: str | None) -> list[str]:
        return self.type.tokenize(text)

    def clean_context(self, context: str | None) -> str:
        return clean_context(context)

    def init(self) -> None:
        """Create the type's mapping in the index."""
        logger.debug("type.put_mapping", index=self.index, type=self.name)
        self.engine.put_mapping(
            self.index,
            self.name,
            type_mapping(self.type.ascii_folding, self.type.custom_fields),
        )
        self.engine.wait_for_health(self.index, "green")

    def delete_type(self) -> None:
        logger.debug("type.delete", index=self.index, type=self.name)
        self.engine.delete_mapping(self.index, self.name)

    def delete_contexts(
        self,
        contexts: Iterable[str] | None = None,
        prefix: str | None = None,
    ) -> list[str]:
        """Delete phrases ranked in any of ``contexts`` or in contexts under ``prefix``.

        With neither, the type is dropped and its mapping recreated. Phrases
        without a ``doc_id`` are added again rather than replaced when
        re-indexed, so clear their contexts first. Returns the contexts cleared.
        """
        if contexts is None and prefix is None:
            self.delete_type()
            self.init()
            return []
        if contexts is None:
            wanted = self.type.contexts(prefix, index=self.index)
        else:
            wanted = sorted({clean_context(c) for c in contexts})
        if not wanted:
            return []
        logger.info("type.delete_contexts", index=self.index, type=self.name, contexts=wanted)
        self.engine.delete_by_query(
            self.index,
            self.name,
            {
                "bool": {
                    "should": [{"exists": {"field": rank_field(c)}} for c in wanted],
                    "minimum_should_match": 1,
                }
            },
        )
        return wanted

    def accumulator(self) -> RankAccumulator:
        return RankAccumulator(
            self.type.tokenizer,
            self.type.token_filter,
            custom_fields=self.type.custom_fields,
        )

    def _source(
        self,
        source: Iterable[Any] | None,
        query: Mapping[str, Any] | None,
    ) -> Iterable[Any]:
        if source is not None:
            return source
        if query is not None:
            return ScrollSource.from_query(
                self.engine,
                query,
                size=self.config.scroll_size,
                keepalive=self.config.scroll_keepalive,
            )
        raise AggregationError.missing_source()

    def aggregate_phrases(
        self,
        parser: Parser | None,
        source: Iterable[Any] | None = None,
        *,
        query: Mapping[str, Any] | None = None,
        min_rank: int | None = None,
    ) -> list[PhraseRecord]:
        """Run every source document through ``parser`` and fold the results.

        Args:
            parser: Called as ``parser(indexer, document)``; returns None, one
                ParsedPhrase/mapping, or an iterable of them.
            source: Iterable of documents. Mutually exclusive with ``query``.
            query: ``{"index": ..., "query": {...}}`` to scroll from the engine.
            min_rank: Drop contexts ranked below this (defaults to config).
        """
        if parser is None:
            raise AggregationError.missing_parser()
        documents = self._source(source, query)

        acc = self.accumulator()
        total = 0
        for doc in documents:
            acc.add_all(_parsed_values(parser(self, doc)))
            total += 1
            if total % 1000 == 0:
                logger.debug("aggregate.progress", type=self.name, documents=total)

        min_rank = self.config.min_rank if min_rank is None else min_rank
        return list(acc.finalize(min_rank).values())

    def save_phrases(
        self,
        path: Path | str,
        parser: Parser | None,
        source: Iterable[Any] | None = None,
        *,
        query: Mapping[str, Any] | None = None,
        min_rank: int | None = None,
    ) -> Path:
        phrases = self.aggregate_phrases(parser, source, query=query, min_rank=min_rank)
        return write_phrase_file(path, phrases)

    def load_phrases(self, path: Path | str, min_rank: int | None = None) -> list[PhraseRecord]:
        """Read a save_phrases() dump, dropping contexts ranked below ``min_rank``.

        ``min_rank`` defaults to config; zero or negative ranks never survive.
        """
        threshold = max(1, self.config.min_rank if min_rank is None else min_rank)
        kept = []
        for phrase in read_phrase_file(path):
            phrase.rank = {ctx: value for ctx, value in phrase.rank.items() if value >= threshold}
            if phrase.rank:
                kept.append(phrase)
        return kept

    def index_phrases(
        self,
        phrases: Iterable[PhraseRecord] | None = None,
        *,
        filename: Path | str | None = None,
        parser: Parser | None = None,
        source: Iterable[Any] | None = None,
        query: Mapping[str, Any] | None = None,
        min_rank: int | None = None,
        refresh: bool = True,
    ) -> int:
        """Bulk-write phrases, flushing every ``batch_size`` records.

        Phrases come from ``phrases``, a ``filename`` written by
        save_phrases(), or an aggregation pass over ``source``/``query``.
        Returns the number of records written.

        Raises:
            BulkIndexError: A batch had per-record failures; the pass stops there.
        """
        if phrases is None:
            if filename is not None:
                phrases = self.load_phrases(filename, min_rank)
            else:
                phrases = self.aggregate_phrases(parser, source, query=query, min_rank=min_rank)

        batch: list[BulkRecord] = []
        written = 0
        for phrase in phrases:
            batch.append(
                BulkRecord(
                    index=self.index,
                    type=self.name,
                    id=phrase.doc_id,
                    source=phrase.to_source(),
                )
            )
            if len(batch) >= self.config.batch_size:
                written += self._bulk_index(batch, written)
                batch = []
        written += self._bulk_index(batch, written)
        logger.info("index.phrases_written", index=self.index, type=self.name, records=written)

        if refresh:
            self.engine.refresh(self.index)
        if self.generation is not None and written:
            self.generation.mark_populated()
        return written

    def _bulk_index(self, batch: list[BulkRecord], written: int) -> int:
        if not batch:
            return 0
        result = self.engine.bulk_write(batch)
        if result.errors:
            serializer = self.type.serializer
            samples = [serializer.dumps(err) for err in result.errors[:BULK_ERROR_SAMPLES]]
            remaining = max(0, len(result.errors) - BULK_ERROR_SAMPLES)
            raise BulkIndexError.from_errors(samples, remaining, written)
        if self.debug >= 3:
            logger.debug("index.batch", type=self.name, records=written + len(batch))
        return len(batch)
