"""Folding parsed documents into per-context phrase ranks.

Each parsed document names a phrase (explicit tokens, or text to
tokenize), the contexts it counts toward, and optionally an explicit rank.
Documents whose tokens reduce to the same sorted set, or that share an
explicit id, collapse into one PhraseRecord. The first document to produce
an identity fixes the record's tokens, label, location, doc id and custom
fields; later ones only touch ranks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from esautocomplete.config.constants import DEFAULT_CONTEXT
from esautocomplete.core.errors import AggregationError, ConfigError
from esautocomplete.suggest.context import clean_context
from esautocomplete.suggest.tokenizer import TokenFilter, Tokenizer, phrase_identity

logger = structlog.get_logger()

_PARSED_KEYS = frozenset(
    {"tokens", "phrase", "contexts", "rank", "label", "location", "id", "doc_id"}
)


@dataclass
class ParsedPhrase:
    """One value produced by a document parser."""

    tokens: Sequence[str] | None = None
    phrase: str | None = None
    contexts: Sequence[str] = ()
    rank: int | None = None
    label: str | None = None
    location: Any = None
    id: str | None = None
    doc_id: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: ParsedPhrase | Mapping[str, Any]) -> ParsedPhrase:
        """Accept a ParsedPhrase or a plain mapping; unknown keys are custom fields."""
        if isinstance(value, ParsedPhrase):
            return value
        contexts = value.get("contexts") or ()
        if isinstance(contexts, str):
            contexts = (contexts,)
        return cls(
            tokens=value.get("tokens"),
            phrase=value.get("phrase"),
            contexts=tuple(contexts),
            rank=value.get("rank"),
            label=value.get("label"),
            location=value.get("location"),
            id=value.get("id"),
            doc_id=value.get("doc_id"),
            fields={k: v for k, v in value.items() if k not in _PARSED_KEYS},
        )


@dataclass
class PhraseRecord:
    """An aggregated phrase with its rank per context."""

    id: str
    tokens: list[str]
    rank: dict[str, int] = field(default_factory=dict)
    label: str | None = None
    location: Any = None
    doc_id: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def to_source(self) -> dict[str, Any]:
        """Engine document body, without unset values."""
        source: dict[str, Any] = {
            "tokens": self.tokens,
            "rank": {clean_context(ctx): value for ctx, value in self.rank.items()},
            "label": self.label,
            "location": self.location,
            **self.fields,
        }
        return {k: v for k, v in source.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "tokens": self.tokens,
            "rank": self.rank,
            "label": self.label,
            "location": self.location,
            "doc_id": self.doc_id,
            "fields": self.fields,
        }
        return {k: v for k, v in data.items() if v is not None and v != {}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PhraseRecord:
        tokens = list(data.get("tokens") or [])
        # Older dumps call the rank map "contexts"
        rank = data.get("rank", data.get("contexts")) or {}
        return cls(
            id=data.get("id") or phrase_identity(tokens),
            tokens=tokens,
            rank={str(k): int(v) for k, v in rank.items()},
            label=data.get("label"),
            location=data.get("location"),
            doc_id=data.get("doc_id"),
            fields=dict(data.get("fields") or {}),
        )


class RankAccumulator:
    """In-memory phrase aggregation for one indexing pass.

    Ranks are either counted (each document adds one per context) or given
    explicitly (last write wins). A phrase may not mix the two in the same
    context during one pass.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        token_filter: TokenFilter,
        custom_fields: Mapping[str, str] | None = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.token_filter = token_filter
        self.custom_fields = dict(custom_fields or {})
        self.phrases: dict[str, PhraseRecord] = {}
        self.documents = 0
        # (phrase id, context) -> True for explicit ranks, False for counted
        self._explicit: dict[tuple[str, str], bool] = {}

    def __len__(self) -> int:
        return len(self.phrases)

    def add_all(self, values: Iterable[ParsedPhrase | Mapping[str, Any]]) -> None:
        for value in values:
            self.add_document(value)

    def add_document(self, value: ParsedPhrase | Mapping[str, Any]) -> PhraseRecord | None:
        """Fold one parsed value in. Returns the touched record, or None if it had no tokens."""
        parsed = ParsedPhrase.from_value(value)
        self.documents += 1

        if parsed.tokens is not None:
            tokens = list(parsed.tokens)
        else:
            tokens = self.tokenizer.tokenize(parsed.phrase or parsed.label)
        tokens = self.token_filter.filter(tokens)
        if not tokens:
            return None

        undeclared = sorted(set(parsed.fields) - set(self.custom_fields))
        if undeclared:
            raise ConfigError.invalid_value(
                "custom_fields", ", ".join(undeclared), "field is not declared for this type"
            )

        phrase_id = parsed.id or phrase_identity(tokens)
        record = self.phrases.get(phrase_id)
        if record is None:
            record = PhraseRecord(
                id=phrase_id,
                tokens=tokens,
                label=parsed.label or None,
                location=parsed.location,
                doc_id=parsed.doc_id,
                fields=dict(parsed.fields),
            )
            self.phrases[phrase_id] = record

        contexts = [clean_context(c) for c in parsed.contexts] or [DEFAULT_CONTEXT]
        explicit = parsed.rank is not None
        for context in contexts:
            key = (phrase_id, context)
            if self._explicit.setdefault(key, explicit) != explicit:
                raise AggregationError.rank_mode_conflict(phrase_id, context)
            if explicit:
                record.rank[context] = int(parsed.rank)  # type: ignore[arg-type]
            else:
                record.rank[context] = record.rank.get(context, 0) + 1
        return record

    def finalize(self, min_rank: int = 1) -> dict[str, PhraseRecord]:
        """Drop contexts ranked below ``min_rank`` and phrases left without contexts.

        Counted ranks start at 1, so with no explicit ranks a threshold of 1
        keeps everything; explicit zero or negative ranks are always dropped.
        """
        threshold = max(1, min_rank)
        for phrase_id in list(self.phrases):
            ranks = self.phrases[phrase_id].rank
            for context in [c for c, value in ranks.items() if value < threshold]:
                del ranks[context]
            if not ranks:
                del self.phrases[phrase_id]
        logger.debug(
            "aggregate.finalized",
            documents=self.documents,
            phrases=len(self.phrases),
            min_rank=min_rank,
        )
        return self.phrases
