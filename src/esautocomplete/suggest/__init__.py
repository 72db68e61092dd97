"""Query side: tokenizing, caching, building and formatting suggestions."""

from esautocomplete.suggest.cache import CacheBackend, CacheGateway, JsonSerializer, MemoryCache
from esautocomplete.suggest.context import clean_context
from esautocomplete.suggest.formatter import (
    DetailedFormatter,
    LabelFormatter,
    SuggestionFormatter,
    label_builder,
)
from esautocomplete.suggest.query import GeoLocation, SuggestionQueryBuilder, SuggestRequest
from esautocomplete.suggest.service import AutocompleteType
from esautocomplete.suggest.tokenizer import (
    TokenFilter,
    Tokenizer,
    UnicodeTokenizer,
    phrase_identity,
    query_tokens,
)

__all__ = [
    "AutocompleteType",
    "CacheBackend",
    "CacheGateway",
    "DetailedFormatter",
    "GeoLocation",
    "JsonSerializer",
    "LabelFormatter",
    "MemoryCache",
    "SuggestRequest",
    "SuggestionFormatter",
    "SuggestionQueryBuilder",
    "TokenFilter",
    "Tokenizer",
    "UnicodeTokenizer",
    "clean_context",
    "label_builder",
    "phrase_identity",
    "query_tokens",
]
