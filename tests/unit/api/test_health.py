"""Tests for the health check endpoint."""

from __future__ import annotations

from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient, routes) -> None:
        routes[("GET", "/")] = (200, {"version": {"number": "8.1.0"}})

        response = client.get("/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "searchpress"
        assert data["index"] == "searchpress-1"
        assert data["cluster_alive"] is True
        assert "version" in data

    def test_degraded_when_cluster_is_down(self, client: TestClient) -> None:
        data = client.get("/v1/health").json()
        assert data["status"] == "degraded"
        assert data["cluster_alive"] is False
