"""Health check endpoint — service and cluster reachability."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from searchpress import __version__
from searchpress.api.deps import get_operations
from searchpress.core.operations import IndexOperations

router = APIRouter()


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="'healthy' when the cluster answers, 'degraded' otherwise")
    version: str = Field(description="SearchPress server version")
    service: str = Field(description="Service name ('searchpress')")
    index: str = Field(description="Index served by this instance")
    cluster_alive: bool = Field(description="Whether the search cluster answered its liveness check")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
    description="Returns server version, the served index and whether the search cluster is reachable.",
)
def health_check(
    operations: IndexOperations = Depends(get_operations),
) -> HealthResponse:
    alive = operations.is_alive()
    return HealthResponse(
        status="healthy" if alive else "degraded",
        version=__version__,
        service="searchpress",
        index=operations.index_name,
        cluster_alive=alive,
    )
