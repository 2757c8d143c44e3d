"""Search endpoint — runs a content query against the search cluster."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from searchpress.api.deps import get_operations
from searchpress.core.operations import IndexOperations
from searchpress.models.query import ContentQuery
from searchpress.models.response import ResultSet, TransportError

logger = logging.getLogger(__name__)

router = APIRouter()


class SearchRequest(BaseModel):
    """Search request body."""

    query: ContentQuery = Field(
        default_factory=ContentQuery,
        description="Content query (s, tax_query, meta_query, ...)",
    )
    scope: Literal["current", "all"] | int | list[int] = Field(
        default="current",
        description="'current', 'all' (network alias), a site id or a list of site ids",
    )


@router.post(
    "/search",
    response_model=ResultSet,
    summary="Content Search",
    description=(
        "Translate a content query into a search request, run it and return the "
        "matching posts with the total count and any aggregations.\n\n"
        "Error responses from the cluster yield an empty result set; a cluster "
        "that cannot be reached yields HTTP 502."
    ),
    responses={
        422: {"description": "Validation error — invalid query body"},
        502: {"description": "Search cluster unreachable"},
    },
)
def search(
    request: SearchRequest,
    operations: IndexOperations = Depends(get_operations),
) -> ResultSet:
    result = operations.search(request.query, scope=request.scope)
    if isinstance(result, TransportError):
        logger.error("Search failed: %s", result.message)
        raise HTTPException(status_code=502, detail=result.message)
    return result
