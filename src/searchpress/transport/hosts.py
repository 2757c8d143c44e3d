"""Host resolution — picks the cluster endpoint a request is sent to.

The resolver keeps an ordered endpoint list (primary first, then backups)
and a sticky "current" selection.  A forced resolution ignores the sticky
host; a backups-only resolution never returns the primary.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum

from pydantic import BaseModel, Field

from searchpress.config.settings import ClusterSettings
from searchpress.models.response import TransportError

logger = logging.getLogger(__name__)


class HostRole(str, Enum):
    PRIMARY = "primary"
    BACKUP = "backup"


class HostEndpoint(BaseModel):
    """A cluster URL and its role."""

    url: str = Field(description="Base URL of the cluster node")
    role: HostRole = Field(default=HostRole.PRIMARY)

    def join(self, path: str) -> str:
        return f"{self.url.rstrip('/')}/{path.lstrip('/')}"


class HostResolver:
    """Selects the endpoint for the next request.

    Args:
        endpoints: Ordered endpoints; primaries are expected before backups.
        liveness_check: Optional callable. When given, a candidate is only
            selected if ``liveness_check(url)`` returns True.
    """

    def __init__(
        self,
        endpoints: Sequence[HostEndpoint],
        liveness_check: Callable[[str], bool] | None = None,
    ) -> None:
        self._endpoints = list(endpoints)
        self._liveness_check = liveness_check
        self._current: HostEndpoint | None = None

    @classmethod
    def from_settings(
        cls, cluster: ClusterSettings, liveness_check: Callable[[str], bool] | None = None
    ) -> HostResolver:
        endpoints: list[HostEndpoint] = []
        if cluster.host:
            endpoints.append(HostEndpoint(url=cluster.host, role=HostRole.PRIMARY))
        endpoints.extend(HostEndpoint(url=url, role=HostRole.BACKUP) for url in cluster.backup_hosts)
        return cls(endpoints, liveness_check=liveness_check)

    @property
    def endpoints(self) -> list[HostEndpoint]:
        return list(self._endpoints)

    @property
    def current(self) -> HostEndpoint | None:
        return self._current

    def resolve(self, force: bool = False, use_backups: bool = False) -> HostEndpoint | TransportError:
        """Return the endpoint to use, or a ``host_unavailable`` error.

        Args:
            force: Ignore the sticky selection and walk the candidates again.
            use_backups: Only consider backup endpoints.
        """
        current = self._current
        if current is not None and not force and (not use_backups or current.role is HostRole.BACKUP):
            return current

        if use_backups:
            candidates = [e for e in self._endpoints if e.role is HostRole.BACKUP]
        else:
            candidates = list(self._endpoints)

        for endpoint in candidates:
            if self._liveness_check is None or self._liveness_check(endpoint.url):
                if current is None or endpoint.url != current.url:
                    logger.info("Selected search host %s (%s)", endpoint.url, endpoint.role.value)
                self._current = endpoint
                return endpoint
            logger.warning("Search host %s failed liveness check", endpoint.url)

        self._current = None
        scope = "backup hosts" if use_backups else "hosts"
        return TransportError(kind="host_unavailable", message=f"No {scope} available for the search cluster")

    def reset(self) -> None:
        """Forget the sticky selection."""
        self._current = None
