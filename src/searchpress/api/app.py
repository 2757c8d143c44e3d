"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from searchpress import __version__
from searchpress.api.v1.router import router as v1_router
from searchpress.config.settings import Settings
from searchpress.core.operations import IndexOperations

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, operations: IndexOperations | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment
            (or ``searchpress-config.yaml`` when present).
        operations: Facade to serve. Built from ``settings`` when omitted;
            a facade passed in is not closed on shutdown.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        yaml_path = Path("searchpress-config.yaml")
        if yaml_path.exists():
            logger.info("Loading configuration from %s", yaml_path)
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    owns_operations = operations is None
    if operations is None:
        operations = IndexOperations.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting SearchPress v%s (index %s)", __version__, operations.index_name)
        if not operations.is_alive():
            # Served anyway: searches fail over per request and /v1/health reports "degraded".
            logger.warning("Search cluster is not reachable at startup (%s)", settings.cluster.host)
        yield
        if owns_operations:
            operations.close()
        logger.info("SearchPress shutdown complete")

    app = FastAPI(
        title="SearchPress",
        description="Search-cluster bridge for content repositories: query translation, indexing and search.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.operations = operations

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/v1")

    return app
