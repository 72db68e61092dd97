"""Index side: phrase aggregation, bulk population and generation lifecycle."""

from esautocomplete.indexer.accumulator import ParsedPhrase, PhraseRecord, RankAccumulator
from esautocomplete.indexer.lifecycle import IndexLifecycle
from esautocomplete.indexer.models import IndexGeneration, LifecycleState
from esautocomplete.indexer.source import ScrollSource, read_phrase_file, write_phrase_file
from esautocomplete.indexer.writer import TypeIndexer

__all__ = [
    "IndexGeneration",
    "IndexLifecycle",
    "LifecycleState",
    "ParsedPhrase",
    "PhraseRecord",
    "RankAccumulator",
    "ScrollSource",
    "TypeIndexer",
    "read_phrase_file",
    "write_phrase_file",
]
