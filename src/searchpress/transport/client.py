"""Resilient request client — sends requests to the cluster with one failover.

Each call:
  1. Resolves a host (sticky unless ``force_host_refresh`` is set).
  2. Sends the request with the auth headers configured at call time.
  3. Non-blocking calls return once the request is written: no status
     check, no retry.
  4. A blocking call that errors or gets a non-2xx status is re-sent once
     to a freshly resolved backup host; without one, the first outcome is
     returned.
  5. The call is recorded in the injected request log.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from typing import Any

import httpx

from searchpress.config.settings import ClusterSettings
from searchpress.core.hooks import HookPoint, Hooks
from searchpress.models.response import TransportError, TransportResponse
from searchpress.observability.request_log import NullRequestLog, RequestLog, RequestLogEntry
from searchpress.transport.hosts import HostEndpoint, HostResolver

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-SearchPress-API-Key"

# Seconds a non-blocking send waits for the response head before returning.
DISPATCH_READ_TIMEOUT = 0.01

SendResult = TransportResponse | TransportError


class RequestClient:
    """Synchronous HTTP client for the search cluster.

    Args:
        cluster: Cluster settings. Credentials and host-selection flags are
            read from it on every call, so runtime changes take effect
            without rebuilding the client.
        resolver: Host resolver. Built from ``cluster`` when omitted.
        request_log: Diagnostics sink. Defaults to ``NullRequestLog``.
        hooks: Extension points (``REQUEST_HEADERS``).
        transport: Optional ``httpx`` transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        cluster: ClusterSettings,
        *,
        resolver: HostResolver | None = None,
        request_log: RequestLog | None = None,
        hooks: Hooks | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._cluster = cluster
        self.resolver = resolver or HostResolver.from_settings(cluster)
        self.request_log: RequestLog = request_log or NullRequestLog()
        self._hooks = hooks or Hooks()
        self._http = httpx.Client(transport=transport, verify=cluster.verify_certs)

    def __enter__(self) -> RequestClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    # ── Headers ──

    def format_request_headers(self) -> dict[str, str]:
        """Build the authentication headers from the current configuration."""
        headers: dict[str, str] = {}
        if self._cluster.api_key:
            headers[API_KEY_HEADER] = self._cluster.api_key
        if self._cluster.shield:
            token = base64.b64encode(self._cluster.shield.encode()).decode()
            headers["Authorization"] = f"Basic {token}"
        return self._hooks.apply(HookPoint.REQUEST_HEADERS, headers)

    # ── Requests ──

    def send(
        self,
        path: str,
        *,
        method: str = "GET",
        body: str | bytes | dict[str, Any] | list[Any] | None = None,
        headers: dict[str, str] | None = None,
        blocking: bool = True,
        timeout: float | None = None,
    ) -> SendResult:
        """Send a request, failing over to a backup host once.

        Args:
            path: Path relative to the host (e.g. ``"searchpress-1/post/_search"``).
            method: HTTP method.
            body: Raw body, or a dict/list that is JSON-encoded.
            headers: Extra headers; auth headers are always added.
            blocking: When False the response is not inspected or retried.
            timeout: Timeout in seconds (defaults to the cluster read timeout).

        Returns:
            The last response received, or a ``TransportError``.
        """
        timeout = timeout if timeout is not None else self._cluster.read_timeout
        content = json.dumps(body) if isinstance(body, (dict, list)) else body
        request_headers = {**self.format_request_headers(), **(headers or {})}
        if content and not any(k.lower() == "content-type" for k in request_headers):
            request_headers["Content-Type"] = "application/json"

        entry = RequestLogEntry(
            time_start=time.time(),
            method=method,
            path=path,
            blocking=blocking,
            args={"body": content if isinstance(content, str) else None, "timeout": timeout},
        )

        force = self._cluster.force_host_refresh
        use_backups = self._cluster.use_only_backups

        host = self.resolver.resolve(force=force, use_backups=use_backups)
        if isinstance(host, TransportError):
            logger.error("Search request %s %s aborted: %s", method, path, host.message)
            entry.failed_hosts.append(host.message)
            return self._finish(entry, host)

        result = self._attempt(host, path, method, content, request_headers, timeout, blocking)
        entry.host, entry.url = host.url, host.join(path)

        if not blocking:
            return self._finish(entry, result)

        if result.ok:
            return self._finish(entry, result)

        logger.warning(
            "Search request %s %s failed on %s (%s), retrying on a backup host",
            method,
            path,
            host.url,
            _describe(result),
        )
        entry.failed_hosts.append(host.url)

        backup = self.resolver.resolve(force=True, use_backups=True)
        if isinstance(backup, TransportError):
            # No backup to fail over to: the first attempt's outcome stands.
            entry.failed_hosts.append(backup.message)
            return self._finish(entry, result)

        result = self._attempt(backup, path, method, content, request_headers, timeout, blocking)
        entry.host, entry.url = backup.url, backup.join(path)
        if not result.ok:
            logger.error("Search request %s %s failed on backup %s (%s)", method, path, backup.url, _describe(result))
        return self._finish(entry, result)

    def is_alive(self, host: str | None = None) -> bool:
        """Return True when ``host`` (or the resolved host) answers 200 on its root URL.

        Tries backups when no host is given and the primary cannot be resolved.
        """
        if host is None:
            resolved = self.resolver.resolve()
            if isinstance(resolved, TransportError):
                resolved = self.resolver.resolve(force=True, use_backups=True)
            if isinstance(resolved, TransportError):
                return False
            host = resolved.url

        try:
            response = self._http.get(host, headers=self.format_request_headers(), timeout=self._cluster.read_timeout)
        except httpx.HTTPError as e:
            logger.debug("Liveness check for %s failed: %s", host, e)
            return False
        return response.status_code == 200

    # ── Internals ──

    def _attempt(
        self,
        host: HostEndpoint,
        path: str,
        method: str,
        content: str | bytes | None,
        headers: dict[str, str],
        timeout: float,
        blocking: bool,
    ) -> SendResult:
        url = host.join(path)
        request_timeout: float | httpx.Timeout = timeout
        if not blocking:
            # Connect and write get the full timeout; the answer is not waited for.
            request_timeout = httpx.Timeout(timeout, read=DISPATCH_READ_TIMEOUT)
        request = self._http.build_request(method, url, content=content, headers=headers, timeout=request_timeout)
        try:
            response = self._http.send(request, stream=not blocking)
        except httpx.ReadTimeout as e:
            if not blocking:
                return TransportResponse(host=host.url, url=url)
            return TransportError(kind="timeout", message=f"Request to {url} timed out: {e}", host=host.url)
        except httpx.TimeoutException as e:
            return TransportError(kind="timeout", message=f"Request to {url} timed out: {e}", host=host.url)
        except httpx.HTTPError as e:
            return TransportError(kind="connection", message=f"Request to {url} failed: {e}", host=host.url)

        if not blocking:
            response.close()
            return TransportResponse(
                status_code=response.status_code,
                reason=response.reason_phrase,
                host=host.url,
                url=url,
            )

        return TransportResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=response.text,
            headers=dict(response.headers),
            host=host.url,
            url=url,
        )

    def _finish(self, entry: RequestLogEntry, result: SendResult) -> SendResult:
        entry.time_finish = time.time()
        if isinstance(result, TransportError):
            entry.error = result.message
            entry.status_code = result.status_code
        else:
            entry.status_code = result.status_code
            entry.response = result.body
        self.request_log.add(entry)
        return result


def _describe(result: SendResult) -> str:
    if isinstance(result, TransportError):
        return result.message
    return f"HTTP {result.status_code}"
