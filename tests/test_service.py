"""Tests for dashboard_cache.service module."""

from unittest.mock import patch

import pytest

from dashboard_cache.config import CacheConfig
from dashboard_cache.service import CacheService, get_cache, reset_cache
from dashboard_cache.types import CacheKey, DataDomain


class TestCacheService:
    """Tests for the cache facade."""

    def test_defaults(self):
        cache = CacheService()
        assert cache.store.max_size == 1000
        assert cache.config.single_flight is False
        assert cache.metrics.backend_type == "simple"

    def test_config_applied(self, clock):
        config = CacheConfig(max_size=2, ttl={"employees": 10}, default_ttl=20)
        cache = CacheService(config, clock=clock)

        cache.set("org:a:employees:all", [1])
        cache.set("org:a:reports", [2])
        clock.advance(15)

        assert cache.get("org:a:employees:all") is None
        assert cache.get("org:a:reports") == [2]

    def test_store_operations(self, clock):
        cache = CacheService(clock=clock)
        key = CacheKey.org("a", DataDomain.TEAMS)
        cache.set(key, ["t1"])
        assert cache.has(key)
        assert cache.get(key) == ["t1"]
        cache.delete(key)
        assert not cache.has(key)

    def test_clear_by_prefix(self, clock):
        cache = CacheService(clock=clock)
        cache.set("org:a:warnings", [])
        cache.set("org:a:teams", [])
        cache.set("org:b:teams", [])
        assert cache.clear_by_prefix("org:a:") == 2
        assert cache.get_stats().size == 1

    def test_reset(self, clock):
        cache = CacheService(clock=clock)
        cache.set("k", 1)
        cache.get("k")
        cache.reset()
        stats = cache.get_stats()
        assert stats.size == 0
        assert stats.hits == 0

    def test_missing_keys(self, clock):
        cache = CacheService(clock=clock)
        cache.set("org:acme:categories", [])

        missing = cache.missing_keys("acme")

        assert missing == ["org:acme:employees:all", "org:acme:organization"]

    def test_missing_keys_does_not_count_lookups(self, clock):
        cache = CacheService(clock=clock)
        cache.missing_keys("acme")
        assert cache.get_stats().misses == 0

    @pytest.mark.asyncio
    async def test_get_or_fetch(self, clock):
        cache = CacheService(clock=clock)
        calls = []

        async def supplier():
            calls.append(1)
            return ["c1"]

        assert await cache.get_or_fetch("org:a:categories", supplier) == ["c1"]
        assert await cache.get_or_fetch("org:a:categories", supplier) == ["c1"]
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_cleanup_lifecycle(self):
        cache = CacheService(CacheConfig(cleanup_interval=30))
        task = cache.start_cleanup()
        assert task is not None
        assert cache.store.cleanup_running
        await cache.close()
        assert not cache.store.cleanup_running

    @pytest.mark.asyncio
    async def test_cleanup_disabled(self):
        cache = CacheService(CacheConfig(cleanup_interval=0))
        assert cache.start_cleanup() is None


class TestFromConfig:

    def test_from_config_file(self, tmp_path):
        path = tmp_path / "cache.yaml"
        path.write_text("cache:\n  max_size: 7\n  single_flight: true\n")

        cache = CacheService.from_config(str(path), configure_logging=False)

        assert cache.store.max_size == 7
        assert cache.config.single_flight is True

    def test_prometheus_server_started_on_configured_port(self, tmp_path):
        """metrics.port is where the Prometheus endpoint listens."""
        path = tmp_path / "cache.yaml"
        path.write_text("metrics:\n  enabled: true\n  type: prometheus\n  port: 9311\n")

        with patch("dashboard_cache.utils.metrics.start_http_server") as start:
            cache = CacheService.from_config(str(path), configure_logging=False)

        start.assert_called_once_with(9311, registry=cache.metrics.backend.registry)

    def test_prometheus_server_opt_out(self, tmp_path):
        path = tmp_path / "cache.yaml"
        path.write_text("metrics:\n  enabled: true\n  type: prometheus\n")

        with patch("dashboard_cache.utils.metrics.start_http_server") as start:
            cache = CacheService.from_config(
                str(path), configure_logging=False, start_metrics_server=False,
            )

        start.assert_not_called()
        assert cache.metrics.backend_type == "prometheus"

    def test_no_server_for_simple_metrics(self, tmp_path):
        path = tmp_path / "cache.yaml"
        path.write_text("metrics:\n  enabled: true\n  type: simple\n  port: 9311\n")

        with patch("dashboard_cache.utils.metrics.start_http_server") as start:
            CacheService.from_config(str(path), configure_logging=False)

        start.assert_not_called()


class TestDefaultCache:
    """Process-wide default instance."""

    def test_get_cache_is_singleton(self):
        reset_cache()
        assert get_cache() is get_cache()

    def test_reset_cache_replaces_instance(self):
        first = get_cache()
        first.set("k", 1)
        second = reset_cache(CacheConfig(max_size=5))
        assert second is not first
        assert get_cache() is second
        assert second.get("k") is None
        assert second.store.max_size == 5
