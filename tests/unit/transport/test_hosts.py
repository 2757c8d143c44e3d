"""Tests for host resolution."""

from __future__ import annotations

from searchpress.config.settings import ClusterSettings
from searchpress.models.response import TransportError
from searchpress.transport.hosts import HostEndpoint, HostResolver, HostRole


def _resolver(liveness_check=None) -> HostResolver:
    cluster = ClusterSettings(host="http://a:9200", backup_hosts=["http://b:9200", "http://c:9200"])
    return HostResolver.from_settings(cluster, liveness_check=liveness_check)


class TestHostEndpoint:
    def test_join_normalises_slashes(self) -> None:
        endpoint = HostEndpoint(url="http://a:9200/")
        assert endpoint.join("/idx/_search") == "http://a:9200/idx/_search"
        assert endpoint.join("idx") == "http://a:9200/idx"


class TestHostResolver:
    def test_endpoints_from_settings(self) -> None:
        endpoints = _resolver().endpoints
        assert [e.url for e in endpoints] == ["http://a:9200", "http://b:9200", "http://c:9200"]
        assert [e.role for e in endpoints] == [HostRole.PRIMARY, HostRole.BACKUP, HostRole.BACKUP]

    def test_primary_first_then_sticky(self) -> None:
        resolver = _resolver()
        assert resolver.resolve().url == "http://a:9200"
        assert resolver.current.url == "http://a:9200"
        assert resolver.resolve().url == "http://a:9200"

    def test_backups_only(self) -> None:
        resolver = _resolver()
        resolver.resolve()
        assert resolver.resolve(use_backups=True).url == "http://b:9200"

    def test_liveness_check_skips_dead_hosts(self) -> None:
        checked: list[str] = []

        def liveness_check(url: str) -> bool:
            checked.append(url)
            return url == "http://c:9200"

        assert _resolver(liveness_check).resolve().url == "http://c:9200"
        assert checked == ["http://a:9200", "http://b:9200", "http://c:9200"]

    def test_force_ignores_sticky_host(self) -> None:
        alive = {"http://a:9200": False, "http://b:9200": True, "http://c:9200": True}
        resolver = _resolver(lambda url: alive[url])
        assert resolver.resolve().url == "http://b:9200"

        alive["http://a:9200"] = True
        assert resolver.resolve().url == "http://b:9200"
        assert resolver.resolve(force=True).url == "http://a:9200"

    def test_nothing_available(self) -> None:
        resolver = _resolver(lambda url: False)
        result = resolver.resolve()
        assert isinstance(result, TransportError)
        assert result.kind == "host_unavailable"
        assert resolver.current is None

    def test_no_backups_configured(self) -> None:
        resolver = HostResolver.from_settings(ClusterSettings(host="http://a:9200"))
        result = resolver.resolve(use_backups=True)
        assert isinstance(result, TransportError)
        assert "backup" in result.message

    def test_reset(self) -> None:
        resolver = _resolver()
        resolver.resolve()
        resolver.reset()
        assert resolver.current is None
