"""Tests for the search endpoint."""

from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

_HITS = {
    "hits": {
        "total": {"value": 1, "relation": "eq"},
        "hits": [{"_index": "searchpress-1", "_source": {"post_id": 42, "post_title": "Solar nowcasting"}}],
    },
    "aggregations": {"types": {"buckets": []}},
}


class TestSearchEndpoint:
    def test_search(self, client: TestClient, routes) -> None:
        routes[("POST", "/searchpress-1/post/_search")] = (200, _HITS)

        response = client.post("/v1/search", json={"query": {"s": "solar"}})

        assert response.status_code == 200
        assert response.json() == {
            "found_posts": 1,
            "posts": [{"post_id": 42, "post_title": "Solar nowcasting", "site_id": 1}],
            "aggregations": {"types": {"buckets": []}},
        }

    def test_network_scope(self, client: TestClient, routes) -> None:
        routes[("POST", "/searchpress-global/post/_search")] = (200, _HITS)

        response = client.post("/v1/search", json={"query": {"s": "solar"}, "scope": "all"})

        assert response.json()["found_posts"] == 1

    def test_site_list_scope(self, client: TestClient, routes) -> None:
        routes[("POST", "/searchpress-2,searchpress-3/post/_search")] = (200, _HITS)

        response = client.post("/v1/search", json={"query": {"s": "solar"}, "scope": [2, 3]})

        assert response.json()["found_posts"] == 1

    def test_cluster_error_is_an_empty_result(self, client: TestClient, routes) -> None:
        routes[("POST", "/searchpress-1/post/_search")] = (400, {"error": {"reason": "parse failure"}})

        response = client.post("/v1/search", json={"query": {"s": "solar"}})

        assert response.status_code == 200
        assert response.json()["found_posts"] == 0

    def test_unreachable_cluster(self, client: TestClient, routes) -> None:
        routes[("POST", "/searchpress-1/post/_search")] = httpx.ConnectError("connection refused")

        response = client.post("/v1/search", json={"query": {"s": "solar"}})

        assert response.status_code == 502

    def test_invalid_query(self, client: TestClient) -> None:
        response = client.post("/v1/search", json={"query": {"posts_per_page": "lots"}})
        assert response.status_code == 422
