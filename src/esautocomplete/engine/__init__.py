"""Search engine interface, HTTP adapter and index schema."""

from esautocomplete.engine.base import (
    BulkRecord,
    BulkResult,
    ScrollPage,
    SearchEngine,
    SearchHit,
)
from esautocomplete.engine.http import HttpSearchEngine
from esautocomplete.engine.schema import index_settings, rank_field, type_mapping

__all__ = [
    "BulkRecord",
    "BulkResult",
    "HttpSearchEngine",
    "ScrollPage",
    "SearchEngine",
    "SearchHit",
    "index_settings",
    "rank_field",
    "type_mapping",
]
