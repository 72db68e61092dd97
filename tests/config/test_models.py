"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from esautocomplete.config.models import (
    AutocompleteConfig,
    EngineConfig,
    GeoDecayConfig,
    IndexerConfig,
    LogOutputConfig,
    TypeConfig,
)


class TestEngineConfig:
    def test_defaults(self) -> None:
        config = EngineConfig()
        assert config.url == "http://127.0.0.1:9200"
        assert config.health_timeout == "30s"

    def test_trailing_slash_stripped(self) -> None:
        assert EngineConfig(url="http://search:9200/").url == "http://search:9200"

    def test_rejects_url_without_scheme(self) -> None:
        with pytest.raises(ValidationError):
            EngineConfig(url="search:9200")


class TestTypeConfig:
    def test_defaults(self) -> None:
        config = TypeConfig()
        assert config.ascii_folding is True
        assert config.max_results == 10
        assert config.min_length == 1
        assert config.max_tokens == 10
        assert config.match_boost == 1.0
        assert config.stop_words == []

    def test_stop_words_lowercased(self) -> None:
        assert TypeConfig(stop_words=["The", "OF"]).stop_words == ["the", "of"]

    def test_custom_fields_accept_engine_types(self) -> None:
        config = TypeConfig(custom_fields={"email": "keyword", "score": "float"})
        assert config.custom_fields["email"] == "keyword"

    @pytest.mark.parametrize("name", ["tokens", "label", "rank", "location", "doc_type"])
    def test_custom_fields_cannot_shadow_builtin(self, name: str) -> None:
        with pytest.raises(ValidationError):
            TypeConfig(custom_fields={name: "keyword"})

    def test_custom_field_type_must_be_known(self) -> None:
        with pytest.raises(ValidationError):
            TypeConfig(custom_fields={"email": "blob"})


class TestGeoDecayConfig:
    def test_defaults(self) -> None:
        geo = GeoDecayConfig()
        assert (geo.boost, geo.radius_km, geo.exponent, geo.steps) == (5.0, 1000.0, 2.0, 4)
        assert geo.popular_radius_km == 500.0

    def test_steps_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            GeoDecayConfig(steps=0)


class TestIndexerConfig:
    def test_defaults(self) -> None:
        config = IndexerConfig()
        assert config.min_rank == 1
        assert config.batch_size == 5000
        assert config.replicas == "0-all"
        assert config.optimize is True

    def test_min_rank_at_least_one(self) -> None:
        with pytest.raises(ValidationError):
            IndexerConfig(min_rank=0)


class TestLogOutputConfig:
    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/out.log")

    def test_stream_destinations_pass_through(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"


class TestAutocompleteConfig:
    def test_type_config_falls_back_to_suggest_defaults(self) -> None:
        config = AutocompleteConfig(
            suggest=TypeConfig(max_results=7),
            types={"places": TypeConfig(ascii_folding=False)},
        )
        assert config.type_config("places").ascii_folding is False
        assert config.type_config("names").max_results == 7
