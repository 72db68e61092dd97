"""Tests for the Elasticsearch HTTP adapter, against httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from esautocomplete.config.models import EngineConfig
from esautocomplete.core.errors import EngineError, ErrorCode
from esautocomplete.engine.base import BulkRecord
from esautocomplete.engine.http import HttpSearchEngine

Handler = Callable[[httpx.Request], httpx.Response]


class Recorder:
    """Collects requests and answers them with a handler."""

    def __init__(self, handler: Handler | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.handler = handler or (lambda _request: httpx.Response(200, json={}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def body_of(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def make_engine() -> Callable[[Handler | None], tuple[HttpSearchEngine, Recorder]]:
    def _make(handler: Handler | None = None) -> tuple[HttpSearchEngine, Recorder]:
        recorder = Recorder(handler)
        config = EngineConfig(url="http://search:9200")
        client = httpx.Client(base_url=config.url, transport=httpx.MockTransport(recorder))
        return HttpSearchEngine(config, client=client), recorder

    return _make


class TestRequests:
    def test_create_index_puts_settings(self, make_engine) -> None:
        engine, recorder = make_engine()

        engine.create_index("suggest_1", {"settings": {"index": {"number_of_shards": 1}}})

        assert recorder.last.method == "PUT"
        assert recorder.last.url.path == "/suggest_1"
        assert body_of(recorder.last)["settings"]["index"]["number_of_shards"] == 1

    def test_error_status_raises_with_root_cause(self, make_engine) -> None:
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={
                    "error": {
                        "root_cause": [{"reason": "No mapping found for [rank./Nope] in order to sort on"}],
                        "reason": "all shards failed",
                    }
                },
            )

        engine, _ = make_engine(handler)

        with pytest.raises(EngineError) as exc_info:
            engine.search("suggest", "names", {"query": {"match_all": {}}}, size=5)

        assert exc_info.value.code == ErrorCode.ENGINE_REQUEST_FAILED
        assert exc_info.value.reason.startswith("No mapping found for [rank./Nope]")

    def test_connection_error_is_unavailable(self, make_engine) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        engine, _ = make_engine(handler)

        with pytest.raises(EngineError) as exc_info:
            engine.refresh("suggest_1")

        assert exc_info.value.code == ErrorCode.ENGINE_UNAVAILABLE
        assert exc_info.value.retryable is True


class TestSearch:
    def test_wraps_query_with_type_filter_and_size(self, make_engine) -> None:
        def handler(_request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "hits": {
                        "hits": [
                            {
                                "_id": "a",
                                "_score": 2.5,
                                "_source": {"tokens": ["jon", "bloggs"]},
                                "fields": {"distance": [12]},
                            }
                        ]
                    }
                },
            )

        engine, recorder = make_engine(handler)

        hits = engine.search("suggest", "names", {"query": {"term": {"x": 1}}, "sort": []}, size=3)

        sent = body_of(recorder.last)
        assert sent["size"] == 3
        assert sent["sort"] == []
        assert sent["query"] == {
            "bool": {"must": [{"term": {"x": 1}}], "filter": [{"term": {"doc_type": "names"}}]}
        }
        assert recorder.last.url.params["preference"] == "_local"
        assert hits[0].id == "a"
        assert hits[0].source["tokens"] == ["jon", "bloggs"]
        assert hits[0].fields["distance"] == [12]

    def test_count_filters_type_and_extra_clause(self, make_engine) -> None:
        engine, recorder = make_engine(lambda _r: httpx.Response(200, json={"count": 4}))

        total = engine.count("suggest", "names", {"exists": {"field": "rank./"}})

        assert total == 4
        assert body_of(recorder.last)["query"]["bool"]["filter"] == [
            {"term": {"doc_type": "names"}},
            {"exists": {"field": "rank./"}},
        ]


class TestBulk:
    def test_sends_ndjson_with_doc_type(self, make_engine) -> None:
        engine, recorder = make_engine(
            lambda _r: httpx.Response(200, json={"items": [{"index": {"status": 201}}]})
        )

        result = engine.bulk_write(
            [BulkRecord(index="suggest_1", type="names", id="7", source={"tokens": ["jon"]})]
        )

        lines = recorder.last.content.decode().strip().split("\n")
        assert json.loads(lines[0]) == {"index": {"_index": "suggest_1", "_id": "7"}}
        assert json.loads(lines[1]) == {"tokens": ["jon"], "doc_type": "names"}
        assert recorder.last.headers["content-type"] == "application/x-ndjson"
        assert result.ok

    def test_collects_per_record_errors(self, make_engine) -> None:
        items = [
            {"index": {"status": 201}},
            {"index": {"status": 400, "error": {"type": "mapper_parsing_exception"}}},
        ]
        engine, _ = make_engine(
            lambda _r: httpx.Response(200, json={"errors": True, "items": items})
        )

        result = engine.bulk_write([BulkRecord(index="i", type="t", source={})] * 2)

        assert result.items == 2
        assert len(result.errors) == 1
        assert not result.ok

    def test_empty_batch_sends_nothing(self, make_engine) -> None:
        engine, recorder = make_engine()
        assert engine.bulk_write([]).items == 0
        assert recorder.requests == []


class TestAliases:
    def test_get_alias_returns_concrete_index(self, make_engine) -> None:
        engine, _ = make_engine(
            lambda _r: httpx.Response(200, json={"suggest_1700": {"aliases": {"suggest": {}}}})
        )
        assert engine.get_alias("suggest") == "suggest_1700"

    def test_get_alias_missing_returns_none(self, make_engine) -> None:
        engine, _ = make_engine(lambda _r: httpx.Response(404, json={"error": "alias missing"}))
        assert engine.get_alias("suggest") is None

    def test_atomic_swap_posts_all_actions_at_once(self, make_engine) -> None:
        engine, recorder = make_engine()
        actions = [
            {"remove": {"index": "suggest_1", "alias": "suggest"}},
            {"add": {"index": "suggest_2", "alias": "suggest"}},
        ]

        engine.atomic_alias_swap(actions)

        assert len(recorder.requests) == 1
        assert recorder.last.url.path == "/_aliases"
        assert body_of(recorder.last) == {"actions": actions}


class TestHealth:
    def test_timed_out_health_raises(self, make_engine) -> None:
        engine, recorder = make_engine(
            lambda _r: httpx.Response(408, json={"status": "yellow", "timed_out": True})
        )

        with pytest.raises(EngineError) as exc_info:
            engine.wait_for_health("suggest_1", "green")

        assert exc_info.value.code == ErrorCode.ENGINE_HEALTH_TIMEOUT
        assert recorder.last.url.params["wait_for_status"] == "green"


class TestMappings:
    def test_put_mapping_adds_doc_type_keyword(self, make_engine) -> None:
        engine, recorder = make_engine()

        engine.put_mapping("suggest_1", "names", {"properties": {"label": {"type": "keyword"}}})

        sent = body_of(recorder.last)
        assert sent["properties"]["doc_type"] == {"type": "keyword"}
        assert sent["properties"]["label"] == {"type": "keyword"}

    def test_get_mapping_unwraps_index_name(self, make_engine) -> None:
        mappings = {"properties": {"rank": {"properties": {"/": {"type": "integer"}}}}}
        engine, _ = make_engine(
            lambda _r: httpx.Response(200, json={"suggest_1700": {"mappings": mappings}})
        )
        assert engine.get_mapping("suggest") == mappings

    def test_delete_mapping_deletes_type_documents(self, make_engine) -> None:
        engine, recorder = make_engine()

        engine.delete_mapping("suggest_1", "names")

        assert recorder.last.url.path == "/suggest_1/_delete_by_query"
        assert body_of(recorder.last) == {"query": {"term": {"doc_type": "names"}}}

    def test_delete_by_query_scopes_filter_to_type(self, make_engine) -> None:
        engine, recorder = make_engine()

        engine.delete_by_query("suggest_1", "names", {"exists": {"field": "rank./Inbox"}})

        assert recorder.last.url.path == "/suggest_1/_delete_by_query"
        assert recorder.last.url.params["refresh"] == "true"
        assert body_of(recorder.last) == {
            "query": {
                "bool": {
                    "filter": [
                        {"term": {"doc_type": "names"}},
                        {"exists": {"field": "rank./Inbox"}},
                    ]
                }
            }
        }


class TestScroll:
    def test_open_scroll_and_continue(self, make_engine) -> None:
        pages = iter(
            [
                {"_scroll_id": "s1", "hits": {"total": {"value": 2}, "hits": [{"_id": "1"}]}},
                {"_scroll_id": "s2", "hits": {"total": {"value": 2}, "hits": [{"_id": "2"}]}},
            ]
        )
        engine, recorder = make_engine(lambda _r: httpx.Response(200, json=next(pages)))

        first = engine.open_scroll("contacts", {"query": {"match_all": {}}}, size=1, keepalive="1m")
        second = engine.scroll(first.scroll_id, "1m")

        assert first.total == 2
        assert [h.id for h in first.hits + second.hits] == ["1", "2"]
        assert recorder.requests[0].url.params["scroll"] == "1m"
        assert body_of(recorder.requests[1]) == {"scroll_id": "s1", "scroll": "1m"}
