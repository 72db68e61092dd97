"""Elasticsearch REST adapter over httpx.

Current Elasticsearch releases have one mapping per index, so autocomplete
types sharing a generation are kept apart with a ``doc_type`` keyword
field: bulk writes stamp it, searches and counts filter on it and
``delete_mapping`` removes a type's documents by query.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from esautocomplete.config.constants import DOC_TYPE_FIELD
from esautocomplete.config.models import EngineConfig
from esautocomplete.core.errors import EngineError
from esautocomplete.engine.base import BulkRecord, BulkResult, ScrollPage, SearchHit

logger = structlog.get_logger()


def _reason(response: httpx.Response) -> str:
    """Pull the most specific error reason out of an engine error body."""
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        causes = error.get("root_cause") or []
        if causes and isinstance(causes[0], dict) and causes[0].get("reason"):
            return str(causes[0]["reason"])
        return str(error.get("reason") or error)
    if error:
        return str(error)
    return response.text


def _type_filter(type: str) -> dict[str, Any]:
    return {"term": {DOC_TYPE_FIELD: type}}


def _to_hit(raw: dict[str, Any]) -> SearchHit:
    return SearchHit(
        id=str(raw.get("_id", "")),
        score=raw.get("_score"),
        source=raw.get("_source") or {},
        fields=raw.get("fields") or {},
    )


def _to_page(body: dict[str, Any]) -> ScrollPage:
    hits = body.get("hits", {})
    total = hits.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    return ScrollPage(
        scroll_id=body.get("_scroll_id"),
        hits=[_to_hit(raw) for raw in hits.get("hits", [])],
        total=int(total),
    )


class HttpSearchEngine:
    """SearchEngine implementation talking to Elasticsearch over HTTP.

    Usage::

        with HttpSearchEngine(EngineConfig(url="http://127.0.0.1:9200")) as engine:
            engine.create_index("suggest_1", index_settings())
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._client = client or httpx.Client(
            base_url=self.config.url,
            timeout=self.config.timeout_sec,
            headers={"Content-Type": "application/json"},
        )

    def __enter__(self) -> HttpSearchEngine:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        content: str | None = None,
        params: dict[str, Any] | None = None,
        allow_missing: bool = False,
        accept: tuple[int, ...] = (),
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        try:
            response = self._client.request(
                method,
                path,
                json=body,
                content=content,
                params=params,
                headers=headers,
            )
        except httpx.RequestError as e:
            raise EngineError.unavailable(self.config.url, str(e)) from e

        if allow_missing and response.status_code == 404:
            return None
        if response.is_error and response.status_code not in accept:
            reason = _reason(response)
            logger.debug(
                "engine.request_failed",
                method=method,
                path=path,
                status=response.status_code,
                reason=reason,
            )
            raise EngineError.request_failed(method, path, response.status_code, reason)
        if not response.content:
            return {}
        return response.json()  # type: ignore[no-any-return]

    # Indices

    def create_index(self, name: str, settings: dict[str, Any]) -> None:
        self._request("PUT", f"/{name}", body=settings)

    def delete_index(self, name: str) -> None:
        self._request("DELETE", f"/{name}")

    def update_settings(self, index: str, settings: dict[str, Any]) -> None:
        self._request("PUT", f"/{index}/_settings", body={"index": settings})

    def optimize(self, index: str, max_num_segments: int = 1) -> None:
        self._request(
            "POST",
            f"/{index}/_forcemerge",
            params={"max_num_segments": max_num_segments},
        )

    def refresh(self, index: str) -> None:
        self._request("POST", f"/{index}/_refresh")

    def wait_for_health(self, index: str | None, status: str = "green") -> None:
        path = f"/_cluster/health/{index}" if index else "/_cluster/health"
        body = self._request(
            "GET",
            path,
            params={"wait_for_status": status, "timeout": self.config.health_timeout},
            # Elasticsearch answers a timed-out wait with 408 and timed_out: true
            accept=(408,),
        )
        if body and body.get("timed_out"):
            raise EngineError.health_timeout(index or "_cluster", status)

    # Mappings

    def put_mapping(self, index: str, type: str, schema: dict[str, Any]) -> None:
        mapping = {
            **schema,
            "properties": {
                **schema.get("properties", {}),
                DOC_TYPE_FIELD: {"type": "keyword"},
            },
        }
        self._request("PUT", f"/{index}/_mapping", body=mapping)

    def delete_mapping(self, index: str, type: str) -> None:
        self._request(
            "POST",
            f"/{index}/_delete_by_query",
            body={"query": _type_filter(type)},
            params={"refresh": "true"},
        )

    def delete_by_query(self, index: str, type: str, filter: dict[str, Any]) -> None:
        self._request(
            "POST",
            f"/{index}/_delete_by_query",
            body={"query": {"bool": {"filter": [_type_filter(type), filter]}}},
            params={"refresh": "true"},
        )

    def get_mapping(self, index: str) -> dict[str, Any]:
        body = self._request("GET", f"/{index}/_mapping") or {}
        # An alias resolves to the concrete index name in the response
        for defn in body.values():
            return defn.get("mappings", {})  # type: ignore[no-any-return]
        return {}

    # Aliases

    def get_alias(self, alias: str) -> str | None:
        body = self._request("GET", f"/_alias/{alias}", allow_missing=True)
        if not body:
            return None
        return next(iter(body))

    def atomic_alias_swap(self, actions: Sequence[dict[str, Any]]) -> None:
        self._request("POST", "/_aliases", body={"actions": list(actions)})

    # Documents

    def bulk_write(self, records: Sequence[BulkRecord]) -> BulkResult:
        if not records:
            return BulkResult()
        lines = []
        for rec in records:
            action: dict[str, Any] = {"_index": rec.index}
            if rec.id is not None:
                action["_id"] = rec.id
            lines.append(json.dumps({"index": action}))
            lines.append(json.dumps({**rec.source, DOC_TYPE_FIELD: rec.type}))
        body = self._request(
            "POST",
            "/_bulk",
            content="\n".join(lines) + "\n",
            headers={"Content-Type": "application/x-ndjson"},
        ) or {}
        items = body.get("items", [])
        errors = [
            op
            for item in items
            for op in item.values()
            if isinstance(op, dict) and op.get("error")
        ]
        return BulkResult(items=len(items), errors=errors)

    def search(
        self,
        index: str,
        type: str,
        body: dict[str, Any],
        size: int,
    ) -> list[SearchHit]:
        request = dict(body)
        query = request.pop("query", {"match_all": {}})
        request["query"] = {"bool": {"must": [query], "filter": [_type_filter(type)]}}
        request["size"] = size
        result = self._request(
            "POST",
            f"/{index}/_search",
            body=request,
            params={"preference": "_local"},
        ) or {}
        return [_to_hit(raw) for raw in result.get("hits", {}).get("hits", [])]

    def count(self, index: str, type: str, filter: dict[str, Any] | None = None) -> int:
        filters = [_type_filter(type)]
        if filter:
            filters.append(filter)
        body = self._request(
            "POST",
            f"/{index}/_count",
            body={"query": {"bool": {"filter": filters}}},
        ) or {}
        return int(body.get("count", 0))

    # Scrolling

    def open_scroll(
        self,
        index: str,
        body: dict[str, Any],
        size: int,
        keepalive: str,
    ) -> ScrollPage:
        result = self._request(
            "POST",
            f"/{index}/_search",
            body={"sort": ["_doc"], **body, "size": size},
            params={"scroll": keepalive},
        ) or {}
        return _to_page(result)

    def scroll(self, scroll_id: str, keepalive: str) -> ScrollPage:
        result = self._request(
            "POST",
            "/_search/scroll",
            body={"scroll_id": scroll_id, "scroll": keepalive},
        ) or {}
        return _to_page(result)

    def clear_scroll(self, scroll_id: str) -> None:
        self._request(
            "DELETE",
            "/_search/scroll",
            body={"scroll_id": scroll_id},
            allow_missing=True,
        )
