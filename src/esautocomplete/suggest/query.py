"""Suggestion requests and the engine queries built from them.

Two query shapes:

- token query: every token must prefix-match ``tokens.ngram`` (any token in
  loose mode), whole-token matches on ``tokens`` add ``match_boost``, and
  the score is multiplied by the phrase's rank in the requested context.
  A location adds concentric distance bands on top.
- popularity query: no tokens typed yet, so phrases in the context are
  listed by rank, ties broken by label.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from esautocomplete.config.models import GeoDecayConfig
from esautocomplete.engine.schema import rank_field

DISTANCE_SCRIPT = (
    "doc['location'].size() == 0 ? null : "
    "Math.floor(doc['location'].arcDistance(params.lat, params.lon) / 1000)"
)


@dataclass(frozen=True)
class GeoLocation:
    """A point to rank suggestions around, with optional decay overrides."""

    lat: float | None = None
    lon: float | None = None
    radius_km: float | None = None
    exponent: float | None = None
    steps: int | None = None
    boost: float | None = None

    @property
    def is_complete(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def point(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}  # type: ignore[dict-item]

    @classmethod
    def from_value(cls, value: GeoLocation | Mapping[str, Any] | None) -> GeoLocation | None:
        """Accept a GeoLocation or a mapping with lat/lon and optional radius/exp/steps/boost."""
        if value is None or isinstance(value, GeoLocation):
            return value
        return cls(
            lat=value.get("lat"),
            lon=value.get("lon"),
            radius_km=value.get("radius_km", value.get("radius")),
            exponent=value.get("exponent", value.get("exp")),
            steps=value.get("steps"),
            boost=value.get("boost"),
        )

    def to_params(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass(frozen=True)
class SuggestRequest:
    """Everything that determines a suggestion result."""

    index: str
    type: str
    context: str
    size: int
    match_boost: float
    tokens: tuple[str, ...] = ()
    location: GeoLocation | None = None
    fields: tuple[str, ...] = ()
    loose: bool = False

    def params(self) -> dict[str, Any]:
        """Effective parameters, optional ones only when set. Used as the cache key."""
        params: dict[str, Any] = {
            "index": self.index,
            "type": self.type,
            "context": self.context,
            "size": self.size,
            "match_boost": self.match_boost,
        }
        if self.tokens:
            params["tokens"] = list(self.tokens)
        if self.location is not None:
            params["location"] = self.location.to_params()
        if self.fields:
            params["fields"] = sorted(self.fields)
        if self.loose:
            params["loose"] = True
        return params


@dataclass
class SuggestionQueryBuilder:
    """Builds engine search bodies for suggestion requests."""

    geo: GeoDecayConfig = field(default_factory=GeoDecayConfig)
    suggestion_filters: Sequence[dict[str, Any]] = ()
    popular_filters: Sequence[dict[str, Any]] = ()

    def build(self, request: SuggestRequest) -> dict[str, Any]:
        if request.tokens:
            body = self.token_query(request)
        else:
            body = self.popular_query(request)
        body["_source"] = ["tokens", "label", "location", "rank", *request.fields]
        return body

    def token_query(self, request: SuggestRequest) -> dict[str, Any]:
        rank = rank_field(request.context)
        query_string = " ".join(request.tokens)
        base = {
            "function_score": {
                "query": {
                    "bool": {
                        "must": [
                            {
                                "match": {
                                    "tokens.ngram": {
                                        "query": query_string,
                                        "operator": "or" if request.loose else "and",
                                    }
                                }
                            }
                        ],
                        "should": [
                            {
                                "match": {
                                    "tokens": {
                                        "query": query_string,
                                        "boost": request.match_boost,
                                    }
                                }
                            }
                        ],
                        "filter": [{"exists": {"field": rank}}, *self.suggestion_filters],
                    }
                },
                "field_value_factor": {"field": rank},
                "boost_mode": "multiply",
            }
        }

        location = request.location
        if location is None or not location.is_complete:
            return {"query": base}

        return {
            "query": {
                "function_score": {
                    "query": base,
                    "functions": self.geo_bands(location),
                    "score_mode": "first",
                    "boost_mode": "sum",
                }
            },
            "script_fields": {
                "distance": {
                    "script": {
                        "source": DISTANCE_SCRIPT,
                        "params": location.point,
                    }
                }
            },
        }

    def geo_bands(self, location: GeoLocation) -> list[dict[str, Any]]:
        """Distance bands, innermost (highest weight) first.

        With the defaults (radius 1000km, exponent 2, 4 steps, boost 5) the
        bands are 125km/5, 250km/3.75, 500km/2.5 and 1000km/1.25.
        """
        radius = location.radius_km or self.geo.radius_km
        exponent = location.exponent or self.geo.exponent
        steps = location.steps or self.geo.steps
        boost = location.boost or self.geo.boost
        step = boost / steps

        bands: list[dict[str, Any]] = []
        for i in reversed(range(steps)):
            bands.insert(
                0,
                {
                    "filter": {
                        "geo_distance": {
                            "distance": f"{radius}km",
                            "location": location.point,
                        }
                    },
                    "weight": boost - step * i,
                },
            )
            radius /= exponent
        return bands

    def popular_query(self, request: SuggestRequest) -> dict[str, Any]:
        rank = rank_field(request.context)
        filters: list[dict[str, Any]] = [{"exists": {"field": rank}}, *self.popular_filters]
        location = request.location
        if location is not None and location.is_complete:
            radius = location.radius_km or self.geo.popular_radius_km
            filters.append(
                {
                    "geo_distance": {
                        "distance": f"{radius}km",
                        "location": location.point,
                    }
                }
            )
        return {
            "query": {"bool": {"filter": filters}},
            "sort": [
                {rank: {"order": "desc"}},
                {"label": {"order": "asc"}},
            ],
        }
