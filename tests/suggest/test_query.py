"""Tests for suggestion requests and the engine queries built from them."""

from esautocomplete.config.models import GeoDecayConfig
from esautocomplete.suggest.query import (
    DISTANCE_SCRIPT,
    GeoLocation,
    SuggestionQueryBuilder,
    SuggestRequest,
)


def request(**overrides) -> SuggestRequest:
    values = {
        "index": "suggest",
        "type": "names",
        "context": "/Inbox",
        "size": 10,
        "match_boost": 1.0,
    }
    values.update(overrides)
    return SuggestRequest(**values)


class TestSuggestRequestParams:
    def test_optional_values_omitted_when_unset(self) -> None:
        assert request().params() == {
            "index": "suggest",
            "type": "names",
            "context": "/Inbox",
            "size": 10,
            "match_boost": 1.0,
        }

    def test_optional_values_included_when_set(self) -> None:
        params = request(
            tokens=("jo",),
            location=GeoLocation(lat=51.5, lon=-0.1),
            fields=("email", "city"),
            loose=True,
        ).params()
        assert params["tokens"] == ["jo"]
        assert params["location"] == {"lat": 51.5, "lon": -0.1}
        assert params["fields"] == ["city", "email"]
        assert params["loose"] is True


class TestGeoLocation:
    def test_from_mapping_accepts_short_names(self) -> None:
        location = GeoLocation.from_value({"lat": 1, "lon": 2, "radius": 50, "exp": 3})
        assert location == GeoLocation(lat=1, lon=2, radius_km=50, exponent=3)

    def test_incomplete_without_lon(self) -> None:
        assert not GeoLocation(lat=1).is_complete

    def test_none_passes_through(self) -> None:
        assert GeoLocation.from_value(None) is None


class TestTokenQuery:
    def setup_method(self) -> None:
        self.builder = SuggestionQueryBuilder()

    def test_all_tokens_must_prefix_match(self) -> None:
        body = self.builder.build(request(tokens=("jon", "bl")))

        score = body["query"]["function_score"]
        must = score["query"]["bool"]["must"][0]["match"]["tokens.ngram"]
        assert must == {"query": "jon bl", "operator": "and"}
        assert score["field_value_factor"] == {"field": "rank./Inbox"}
        assert score["boost_mode"] == "multiply"
        assert score["query"]["bool"]["filter"] == [{"exists": {"field": "rank./Inbox"}}]

    def test_loose_matches_any_token(self) -> None:
        body = self.builder.build(request(tokens=("jon", "bl"), loose=True))
        must = body["query"]["function_score"]["query"]["bool"]["must"][0]
        assert must["match"]["tokens.ngram"]["operator"] == "or"

    def test_whole_token_matches_boosted(self) -> None:
        body = self.builder.build(request(tokens=("jon",), match_boost=2.5))
        should = body["query"]["function_score"]["query"]["bool"]["should"][0]
        assert should == {"match": {"tokens": {"query": "jon", "boost": 2.5}}}

    def test_extra_suggestion_filters_appended(self) -> None:
        builder = SuggestionQueryBuilder(suggestion_filters=[{"term": {"active": True}}])
        body = builder.build(request(tokens=("jon",)))
        filters = body["query"]["function_score"]["query"]["bool"]["filter"]
        assert filters[-1] == {"term": {"active": True}}

    def test_source_includes_requested_fields(self) -> None:
        body = self.builder.build(request(tokens=("jon",), fields=("email",)))
        assert body["_source"] == ["tokens", "label", "location", "rank", "email"]

    def test_incomplete_location_adds_no_geo(self) -> None:
        body = self.builder.build(request(tokens=("jon",), location=GeoLocation(lat=1.0)))
        assert "script_fields" not in body
        assert "functions" not in body["query"]["function_score"]


class TestGeoBands:
    def test_default_bands_innermost_first(self) -> None:
        bands = SuggestionQueryBuilder().geo_bands(GeoLocation(lat=51.5, lon=-0.1))

        assert [b["filter"]["geo_distance"]["distance"] for b in bands] == [
            "125.0km",
            "250.0km",
            "500.0km",
            "1000.0km",
        ]
        assert [b["weight"] for b in bands] == [5.0, 3.75, 2.5, 1.25]
        assert bands[0]["filter"]["geo_distance"]["location"] == {"lat": 51.5, "lon": -0.1}

    def test_location_overrides_decay(self) -> None:
        location = GeoLocation(lat=0, lon=0, radius_km=90, exponent=3, steps=2, boost=4)
        bands = SuggestionQueryBuilder().geo_bands(location)

        assert [b["filter"]["geo_distance"]["distance"] for b in bands] == ["30.0km", "90km"]
        assert [b["weight"] for b in bands] == [4, 2.0]

    def test_location_query_wraps_token_query(self) -> None:
        builder = SuggestionQueryBuilder(geo=GeoDecayConfig(steps=2))
        body = builder.build(request(tokens=("jon",), location=GeoLocation(lat=1.0, lon=2.0)))

        outer = body["query"]["function_score"]
        assert outer["score_mode"] == "first"
        assert outer["boost_mode"] == "sum"
        assert len(outer["functions"]) == 2
        assert "field_value_factor" in outer["query"]["function_score"]
        distance = body["script_fields"]["distance"]["script"]
        assert distance["source"] == DISTANCE_SCRIPT
        assert distance["params"] == {"lat": 1.0, "lon": 2.0}


class TestPopularQuery:
    def test_sorted_by_rank_then_label(self) -> None:
        body = SuggestionQueryBuilder().build(request())

        assert body["query"] == {"bool": {"filter": [{"exists": {"field": "rank./Inbox"}}]}}
        assert body["sort"] == [
            {"rank./Inbox": {"order": "desc"}},
            {"label": {"order": "asc"}},
        ]

    def test_location_filters_by_popular_radius(self) -> None:
        builder = SuggestionQueryBuilder(popular_filters=[{"term": {"active": True}}])
        body = builder.build(request(location=GeoLocation(lat=1.0, lon=2.0)))

        filters = body["query"]["bool"]["filter"]
        assert filters[1] == {"term": {"active": True}}
        assert filters[2] == {
            "geo_distance": {"distance": "500.0km", "location": {"lat": 1.0, "lon": 2.0}}
        }
