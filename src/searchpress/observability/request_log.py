"""Request diagnostics — one entry per outbound call to the search cluster.

The request client writes to whatever ``RequestLog`` it was given.  The
default ``NullRequestLog`` discards entries; ``MemoryRequestLog`` keeps them
for the lifetime of the process and mirrors each one to structlog at debug
level.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from pydantic import BaseModel, Field

_log = structlog.get_logger("searchpress.requests")


class RequestLogEntry(BaseModel):
    """Diagnostic record of a single outbound call."""

    time_start: float = Field(description="Epoch seconds when the call started")
    time_finish: float | None = Field(default=None, description="Epoch seconds when the call finished")
    method: str = Field(default="GET", description="HTTP method")
    path: str = Field(default="", description="Request path relative to the host")
    url: str | None = Field(default=None, description="Full URL of the last attempt")
    host: str | None = Field(default=None, description="Host used for the last attempt")
    failed_hosts: list[str] = Field(default_factory=list, description="Hosts that failed before the last attempt")
    blocking: bool = Field(default=True, description="Whether the caller waited for the response")
    args: dict[str, Any] = Field(default_factory=dict, description="Request arguments (body, timeout, ...)")
    status_code: int | None = Field(default=None, description="HTTP status of the last attempt")
    response: str | None = Field(default=None, description="Raw response body of the last attempt")
    error: str | None = Field(default=None, description="Transport error message, if any")

    @property
    def duration_ms(self) -> int | None:
        if self.time_finish is None:
            return None
        return int((self.time_finish - self.time_start) * 1000)


class RequestLog(Protocol):
    """Sink for request diagnostics."""

    def add(self, entry: RequestLogEntry) -> None: ...

    def entries(self) -> list[RequestLogEntry]: ...


class NullRequestLog:
    """Request log that keeps nothing."""

    def add(self, entry: RequestLogEntry) -> None:
        return None

    def entries(self) -> list[RequestLogEntry]:
        return []


class MemoryRequestLog:
    """Append-only, process-local request log."""

    def __init__(self) -> None:
        self._entries: list[RequestLogEntry] = []

    def add(self, entry: RequestLogEntry) -> None:
        self._entries.append(entry)
        _log.debug(
            "search_request",
            method=entry.method,
            url=entry.url,
            status_code=entry.status_code,
            failed_hosts=entry.failed_hosts,
            duration_ms=entry.duration_ms,
            error=entry.error,
        )

    def entries(self) -> list[RequestLogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
