"""API test fixtures: the application wired to a fake cluster."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from searchpress.api.app import create_app
from searchpress.config.settings import Settings
from searchpress.core.operations import IndexOperations

Routes = dict[tuple[str, str], Any]


@pytest.fixture
def routes() -> Routes:
    """``(method, path) -> (status, body)`` answers; an exception value is raised instead."""
    return {}


@pytest.fixture
def client(settings: Settings, routes: Routes, make_transport) -> Iterator[TestClient]:
    def handler(request: httpx.Request) -> httpx.Response:
        answer = routes.get((request.method, request.url.path), (404, {}))
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        return httpx.Response(status, json=body)

    operations = IndexOperations.from_settings(settings, transport=make_transport(handler))
    with TestClient(create_app(settings, operations=operations)) as test_client:
        yield test_client
    operations.close()
