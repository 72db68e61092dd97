"""Context-sensitive, frequency-ranked autocomplete on Elasticsearch."""

from esautocomplete.indexer import IndexLifecycle, ParsedPhrase, TypeIndexer
from esautocomplete.suggest import AutocompleteType, MemoryCache

__version__ = "0.1.0"

__all__ = [
    "AutocompleteType",
    "IndexLifecycle",
    "MemoryCache",
    "ParsedPhrase",
    "TypeIndexer",
    "__version__",
]
