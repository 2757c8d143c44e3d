"""API v1 Router — Search, status, and health endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from searchpress.api.v1.endpoints.health import router as health_router
from searchpress.api.v1.endpoints.search import router as search_router
from searchpress.api.v1.endpoints.status import router as status_router

router = APIRouter(tags=["v1"])
router.include_router(search_router)
router.include_router(status_router)
router.include_router(health_router)
