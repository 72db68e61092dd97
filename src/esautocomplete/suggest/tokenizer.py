"""Token extraction and filtering.

The same tokenizer feeds both sides: phrase aggregation at index time and
query parsing at suggest time, so a phrase typed by a user splits exactly
like the stored one.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from esautocomplete.config.constants import TOKEN_SEPARATOR

_NON_WORD = re.compile(r"\W+")
_ENDS_IN_WORD = re.compile(r"\w$")


@runtime_checkable
class Tokenizer(Protocol):
    """Turns raw text into an ordered, de-duplicated token list."""

    def tokenize(self, text: str | None) -> list[str]: ...


class UnicodeTokenizer:
    """NFC-normalize, lowercase, split on non-word runs, keep first occurrences."""

    def tokenize(self, text: str | None) -> list[str]:
        if not text:
            return []
        normalized = unicodedata.normalize("NFC", text).lower()
        return list(dict.fromkeys(t for t in _NON_WORD.split(normalized) if t))


class TokenFilter:
    """Drops short and stop-word tokens, then caps the token count."""

    def __init__(
        self,
        min_length: int = 1,
        stop_words: Iterable[str] = (),
        max_tokens: int = 10,
    ) -> None:
        self.min_length = min_length
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self.max_tokens = max_tokens

    def filter(self, tokens: Iterable[str | None]) -> list[str]:
        kept = [
            t
            for t in tokens
            if t is not None and len(t) >= self.min_length and t not in self.stop_words
        ]
        return kept[: self.max_tokens]


def query_tokens(text: str | None, tokenizer: Tokenizer, token_filter: TokenFilter) -> list[str]:
    """Tokens for a suggestion request.

    When the text ends in a word character the user is still typing the
    last word, so that stub skips filtering and always takes part in
    prefix matching.
    """
    text = text or ""
    tokens = tokenizer.tokenize(text)
    if tokens and _ENDS_IN_WORD.search(text):
        last = tokens.pop()
        return [*token_filter.filter(tokens), last]
    return token_filter.filter(tokens)


def phrase_identity(tokens: Sequence[str], separator: str = TOKEN_SEPARATOR) -> str:
    """Identity of a phrase without an explicit id: its sorted tokens."""
    return separator.join(sorted(tokens))
