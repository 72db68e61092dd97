"""Index settings and per-type mappings.

Tokens are indexed twice: whole (``tokens``) for exact-token boosting and
as edge n-grams (``tokens.ngram``) for prefix matching. Ranks live under
``rank.<context>`` and are mapped as integers on first sight.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from esautocomplete.config.constants import EDGE_NGRAM_MAX


def index_settings() -> dict[str, Any]:
    """Settings for a new generation: one shard, no replicas, no refresh while loading."""
    return {
        "settings": {
            "index": {
                "number_of_shards": 1,
                "number_of_replicas": 0,
                "refresh_interval": -1,
            },
            "analysis": {
                "filter": {
                    "edge_ngram": {
                        "type": "edge_ngram",
                        "min_gram": 1,
                        "max_gram": EDGE_NGRAM_MAX,
                    },
                },
                "analyzer": {
                    "std": {
                        "type": "custom",
                        "tokenizer": "standard",
                        "filter": ["lowercase"],
                    },
                    "ascii_std": {
                        "type": "custom",
                        "tokenizer": "standard",
                        "filter": ["lowercase", "asciifolding"],
                    },
                    "edge_ngram": {
                        "type": "custom",
                        "tokenizer": "standard",
                        "filter": ["lowercase", "edge_ngram"],
                    },
                    "ascii_edge_ngram": {
                        "type": "custom",
                        "tokenizer": "standard",
                        "filter": ["lowercase", "asciifolding", "edge_ngram"],
                    },
                },
            },
        }
    }


def type_mapping(ascii_folding: bool, custom_fields: Mapping[str, str]) -> dict[str, Any]:
    """Mapping for one autocomplete type."""
    ascii = "ascii_" if ascii_folding else ""
    properties: dict[str, Any] = {
        "tokens": {
            "type": "text",
            "analyzer": f"{ascii}std",
            "fields": {
                "ngram": {
                    "type": "text",
                    "analyzer": f"{ascii}edge_ngram",
                    "search_analyzer": f"{ascii}std",
                },
            },
        },
        "label": {"type": "keyword"},
        "rank": {"type": "object"},
        "location": {"type": "geo_point"},
    }
    for name, field_type in custom_fields.items():
        properties[name] = {"type": field_type}
    return {
        "dynamic_templates": [
            {
                "rank": {
                    "path_match": "rank.*",
                    "mapping": {"type": "integer"},
                }
            }
        ],
        "properties": properties,
    }


def rank_field(context: str) -> str:
    return f"rank.{context}"
