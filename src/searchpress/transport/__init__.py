"""HTTP transport to the search cluster with host failover."""

from searchpress.transport.client import RequestClient
from searchpress.transport.hosts import HostEndpoint, HostResolver, HostRole

__all__ = ["HostEndpoint", "HostResolver", "HostRole", "RequestClient"]
