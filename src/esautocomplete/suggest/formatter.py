"""Turning engine hits into suggestions."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from unidecode import unidecode

from esautocomplete.engine.base import SearchHit
from esautocomplete.suggest.query import SuggestRequest


def _identity(token: str) -> str:
    return token


def label_builder(ascii_folding: bool, tokens: Sequence[str] | None) -> Callable[[SearchHit], str]:
    """Build a function that renders a hit as a display label.

    A stored label is used verbatim. Otherwise the stored tokens are
    reordered to follow the query: each query token claims the first unused
    stored token it is a (case-insensitive) prefix of, in query order, and
    the unclaimed stored tokens follow alphabetically. Query ``jo bl``
    against stored ``bloggs jon`` gives ``jon bloggs``.
    """
    canonicalize = unidecode if ascii_folding else _identity
    wanted = [canonicalize(t).lower() for t in tokens or ()]

    def build(hit: SearchHit) -> str:
        label = hit.source.get("label")
        if label:
            return str(label)

        stored = hit.source.get("tokens") or []
        candidates = [stored] if isinstance(stored, str) else list(stored)
        unused = {c: canonicalize(c).lower() for c in candidates}

        ordered = []
        for token in wanted:
            for candidate, canon in unused.items():
                if canon.startswith(token):
                    del unused[candidate]
                    ordered.append(candidate)
                    break

        ordered.extend(c for c in sorted(candidates) if c in unused)
        return " ".join(ordered)

    return build


@runtime_checkable
class SuggestionFormatter(Protocol):
    """Renders the hits for a request into the suggestion list returned to callers."""

    def format(self, request: SuggestRequest, hits: Sequence[SearchHit]) -> list[Any]: ...


class LabelFormatter:
    """Suggestions as plain label strings."""

    def __init__(self, ascii_folding: bool = True) -> None:
        self.ascii_folding = ascii_folding

    def format(self, request: SuggestRequest, hits: Sequence[SearchHit]) -> list[Any]:
        build = label_builder(self.ascii_folding, request.tokens)
        return [build(hit) for hit in hits]


class DetailedFormatter(LabelFormatter):
    """Suggestions as dicts: label, rank in the context, distance and extra fields."""

    def format(self, request: SuggestRequest, hits: Sequence[SearchHit]) -> list[Any]:
        build = label_builder(self.ascii_folding, request.tokens)
        results = []
        for hit in hits:
            entry: dict[str, Any] = {
                "label": build(hit),
                "rank": (hit.source.get("rank") or {}).get(request.context),
            }
            distance = hit.fields.get("distance")
            if distance:
                entry["distance"] = distance[0]
            for name in request.fields:
                entry[name] = hit.source.get(name)
            results.append(entry)
        return results
