"""Autocomplete type: the query-side entry point.

A type is one kind of phrase (names, places, tags...) stored in an index.
It owns the tokenizer, token filter, query builder, formatter and cache
gateway used to answer suggestion requests for that kind of phrase.

Usage::

    names = AutocompleteType(engine, index="suggest", name="names")
    names.suggest("jo bl", context="/Inbox/Personal")
    # ['jon bloggs', 'jock bloggs']
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import structlog

from esautocomplete.config.constants import CONTEXT_COUNT_DEFAULT_MAX
from esautocomplete.config.models import TypeConfig
from esautocomplete.core.errors import ConfigError, EngineError, UnknownContextError
from esautocomplete.engine.base import SearchEngine, SearchHit
from esautocomplete.engine.schema import rank_field
from esautocomplete.suggest.cache import CacheBackend, CacheGateway, JsonSerializer
from esautocomplete.suggest.context import clean_context
from esautocomplete.suggest.formatter import LabelFormatter, SuggestionFormatter
from esautocomplete.suggest.query import GeoLocation, SuggestionQueryBuilder, SuggestRequest
from esautocomplete.suggest.tokenizer import TokenFilter, Tokenizer, UnicodeTokenizer, query_tokens

logger = structlog.get_logger()

# Engine complaints about a rank field that was never mapped: nothing has
# been indexed under that context.
_UNKNOWN_CONTEXT = re.compile(
    r"(No mapping found for|field mapper for field|No field found for) \[rank\."
)


class AutocompleteType:
    """Suggestions for one phrase type in one index (or alias)."""

    def __init__(
        self,
        engine: SearchEngine | None,
        index: str | None,
        name: str | None,
        config: TypeConfig | None = None,
        *,
        tokenizer: Tokenizer | None = None,
        formatter: SuggestionFormatter | None = None,
        cache: CacheBackend | None = None,
        serializer: JsonSerializer | None = None,
        debug: int = 0,
    ) -> None:
        if engine is None:
            raise ConfigError.missing_required("engine")
        if not index:
            raise ConfigError.missing_required("index")
        if not name:
            raise ConfigError.missing_required("name")

        self.engine = engine
        self.index = index
        self.name = name
        self.config = config or TypeConfig()
        self.debug = debug
        self.serializer = serializer or JsonSerializer()

        self.tokenizer: Tokenizer = tokenizer or UnicodeTokenizer()
        self.formatter: SuggestionFormatter = formatter or LabelFormatter(
            self.config.ascii_folding
        )
        self.token_filter = TokenFilter(
            min_length=self.config.min_length,
            stop_words=self.config.stop_words,
            max_tokens=self.config.max_tokens,
        )
        self.query_builder = SuggestionQueryBuilder(
            geo=self.config.geo,
            suggestion_filters=self.config.suggestion_filters,
            popular_filters=self.config.popular_filters,
        )
        self.cache = CacheGateway(cache, self.serializer, debug=debug)

    def __repr__(self) -> str:
        return f"AutocompleteType(index={self.index!r}, name={self.name!r})"

    @property
    def ascii_folding(self) -> bool:
        return self.config.ascii_folding

    @property
    def custom_fields(self) -> Mapping[str, str]:
        return self.config.custom_fields

    def tokenize(self, text: str | None) -> list[str]:
        return self.tokenizer.tokenize(text)

    def filter_tokens(self, tokens: Iterable[str | None]) -> list[str]:
        return self.token_filter.filter(tokens)

    def clean_context(self, context: str | None) -> str:
        return clean_context(context)

    def search_request(
        self,
        phrase: str | None,
        *,
        context: str | None = None,
        max_results: int | None = None,
        match_boost: float | None = None,
        location: GeoLocation | Mapping[str, Any] | None = None,
        loose: bool = False,
        fields: Sequence[str] = (),
    ) -> SuggestRequest:
        return SuggestRequest(
            index=self.index,
            type=self.name,
            context=clean_context(context),
            size=max_results or self.config.max_results,
            match_boost=self.config.match_boost if match_boost is None else match_boost,
            tokens=tuple(query_tokens(phrase, self.tokenizer, self.token_filter)),
            location=GeoLocation.from_value(location),
            fields=tuple(fields),
            loose=loose,
        )

    def suggest(self, phrase: str | None, **options: Any) -> list[Any]:
        """Suggestions for what the user has typed so far.

        Args:
            phrase: Raw user input, possibly ending in a partial word.
            **options: context, max_results, match_boost, location, loose,
                fields (see search_request).

        Raises:
            UnknownContextError: Nothing was ever indexed under the context.
        """
        request = self.search_request(phrase, **options)
        logger.debug(
            "suggest",
            index=request.index,
            type=request.type,
            context=request.context,
            tokens=list(request.tokens) or "<NONE>",
        )
        result = self.cache.fetch(lambda _params: self._suggestions(request), request.params())
        return result or []

    def suggest_json(self, phrase: str | None, **options: Any) -> str:
        return self.serializer.dumps(self.suggest(phrase, **options))

    def _suggestions(self, request: SuggestRequest) -> list[Any]:
        body = self.query_builder.build(request)
        if self.debug >= 2:
            logger.debug("suggest.query", body=body)
        hits = self._context_search(request, body)
        return self.formatter.format(request, hits)

    def _context_search(self, request: SuggestRequest, body: dict[str, Any]) -> list[SearchHit]:
        try:
            return self.engine.search(request.index, request.type, body, size=request.size)
        except EngineError as e:
            if _UNKNOWN_CONTEXT.search(e.reason):
                raise UnknownContextError.for_context(request.context, e.reason) from e
            raise

    def contexts(self, prefix: str | None = None, index: str | None = None) -> list[str]:
        """Context paths that have a rank field in the mapping of ``index``."""
        mapping = self.engine.get_mapping(index or self.index)
        ranks = mapping.get("properties", {}).get("rank", {}).get("properties", {})
        wanted = clean_context(prefix) if prefix else None
        return [c for c in ranks if not wanted or c.startswith(wanted)]

    def context_count(self, context: str | None = None) -> int:
        """Number of phrases with a rank in ``context``."""
        return self.engine.count(
            self.index,
            self.name,
            {"exists": {"field": rank_field(clean_context(context))}},
        )

    def context_counts(
        self,
        prefix: str | None = None,
        max: int = CONTEXT_COUNT_DEFAULT_MAX,
    ) -> list[tuple[str, int]]:
        """Phrase totals per context, largest first.

        Args:
            prefix: Only contexts starting with this path, e.g. ``/Inbox/Personal``.
            max: Maximum number of contexts returned.
        """
        counts = []
        for context in self.contexts(prefix):
            total = self.context_count(context)
            if total:
                counts.append((context, total))
        counts.sort(key=lambda item: (-item[1], item[0]))
        return counts[:max]
