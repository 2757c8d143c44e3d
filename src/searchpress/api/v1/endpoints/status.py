"""Status endpoints — cluster, indexing and search statistics."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from searchpress.api.deps import get_operations
from searchpress.core.operations import IndexOperations, Scope
from searchpress.models.response import ApiStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/status")


def _scope(site_id: int | None = Query(default=None, description="Site id; omit for the current site")) -> Scope:
    return "current" if site_id is None else site_id


@router.get(
    "/cluster",
    summary="Cluster Statistics",
    description="Raw cluster stats document, or a status object with an error message.",
)
def cluster_status(operations: IndexOperations = Depends(get_operations)) -> Any:
    return operations.get_cluster_status()


@router.get(
    "/index",
    response_model=ApiStatus,
    summary="Indexing Statistics",
    description="Primary-shard indexing statistics of a site index.",
)
def index_status(
    scope: Scope = Depends(_scope),
    operations: IndexOperations = Depends(get_operations),
) -> ApiStatus:
    return operations.get_index_status(scope)


@router.get(
    "/search",
    response_model=ApiStatus,
    summary="Search Statistics",
    description="Primary-shard search statistics of a site index.",
)
def search_status(
    scope: Scope = Depends(_scope),
    operations: IndexOperations = Depends(get_operations),
) -> ApiStatus:
    return operations.get_search_status(scope)
