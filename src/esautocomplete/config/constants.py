"""Configuration constants.

Values that should NOT be user-configurable: wire formats, sentinels and
engine limits. For configurable values, see models.py.
"""

TOKEN_SEPARATOR = "\t"
"""Joins sorted tokens into a phrase identity. Tokens never contain it."""

DEFAULT_CONTEXT = "/"
"""Root context used when a document names none."""

CACHE_EMPTY_SENTINEL = "UNDEF"
"""Cached in place of an empty result so known-empty queries are not recomputed."""

CACHE_KEY_SPACE = "_"
"""Replaces spaces in cache keys (some backends treat spaces as delimiters)."""

BULK_ERROR_SAMPLES = 5
"""Per-record bulk errors quoted in a BulkIndexError."""

EDGE_NGRAM_MAX = 20
"""Longest prefix indexed for partial-token matching."""

CONTEXT_COUNT_DEFAULT_MAX = 10
"""Default number of contexts returned by context_counts()."""

DOC_TYPE_FIELD = "doc_type"
"""Keyword field the HTTP engine uses to keep several types in one index."""
