"""Transport and result models.

Failures are values: the request client returns either a
``TransportResponse`` or a ``TransportError``; the facade turns cluster
error bodies into ``BackendError`` / ``ApiStatus`` and malformed search
responses into an empty ``ResultSet``.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

TransportErrorKind = Literal["host_unavailable", "connection", "timeout", "http_status"]


class TransportResponse(BaseModel):
    """Raw HTTP response received from a search host.

    A non-blocking send that was dispatched without waiting for an answer
    has no ``status_code`` and an empty body.
    """

    status_code: int | None = Field(default=None, description="HTTP status code; None when not awaited")
    reason: str = Field(default="", description="HTTP reason phrase")
    body: str = Field(default="", description="Raw response body")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    host: str | None = Field(default=None, description="Host that produced the response")
    url: str | None = Field(default=None, description="Requested URL")

    @property
    def ok(self) -> bool:
        """True for any 2xx status."""
        return self.status_code is not None and 200 <= self.status_code < 300

    def json_body(self) -> Any:
        """Decode the body as JSON, returning None when it is not valid JSON."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None


class TransportError(BaseModel):
    """A request that could not be completed.

    ``http_status`` errors carry the status code and reason of the response
    that was rejected (for example a failed bulk request).
    """

    kind: TransportErrorKind = Field(description="Failure category")
    message: str = Field(description="Human-readable error message")
    status_code: int | None = Field(default=None, description="HTTP status, for http_status errors")
    host: str | None = Field(default=None, description="Host involved in the failure")
    response: TransportResponse | None = Field(default=None, description="Rejected response, if any")

    @property
    def ok(self) -> bool:
        return False


class BackendError(BaseModel):
    """The cluster answered with a structured error body."""

    message: str = Field(description="Error reported by the cluster")
    hint: str | None = Field(default=None, description="Remediation hint for operators")
    status_code: int | None = Field(default=None, description="HTTP status of the error response")


class ApiStatus(BaseModel):
    """Outcome of a status query (cluster, index or search statistics)."""

    status: bool = Field(description="Whether the query succeeded")
    msg: str | None = Field(default=None, description="Failure message or remediation hint")
    data: Any = Field(default=None, description="Statistics returned by the cluster")


class ResultSet(BaseModel):
    """Search results mapped from a cluster response."""

    found_posts: int = Field(default=0, description="Total number of matching documents")
    posts: list[dict[str, Any]] = Field(default_factory=list, description="Source documents with site_id")
    aggregations: dict[str, Any] = Field(default_factory=dict, description="Aggregation buckets, if requested")

    @classmethod
    def empty(cls) -> ResultSet:
        return cls()
