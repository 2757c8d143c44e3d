"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from fastapi import Request

from searchpress.core.operations import IndexOperations


def get_operations(request: Request) -> IndexOperations:
    """Return the facade attached to the application by ``create_app``."""
    return request.app.state.operations
