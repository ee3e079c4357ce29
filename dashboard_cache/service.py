"""
Application-facing cache service.

Bundles the store, TTL policy, fetch-or-populate orchestrator and metrics
behind one object. A process-wide default instance is available through
``get_cache()``; tests build their own instances or call ``reset_cache()``.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Callable, List, Optional

from .config import CacheConfig
from .orchestrator import FetchOrchestrator, Supplier
from .store import CacheStore, KeyLike
from .types import CacheStats, DataDomain, generate_org_key
from .utils.logging import setup_logging
from .utils.metrics import CacheMetrics

logger = logging.getLogger(__name__)


class CacheService:
    """
    Cache facade used by the rest of the application.

    Usage:
        cache = CacheService(CacheConfig(max_size=200))
        employees = await cache.get_or_fetch(
            "org:acme:employees:all",
            lambda: api.employees(org_id="acme"),
        )
        cache.clear_by_prefix("org:acme:")
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or CacheConfig()
        self._metrics = CacheMetrics(self._config.metrics_config())
        self._store = CacheStore(
            max_size=self._config.max_size,
            default_ttl=self._config.default_ttl,
            ttl_policy=self._config.ttl_policy(),
            clock=clock,
            metrics=self._metrics,
        )
        self._orchestrator = FetchOrchestrator(
            self._store,
            single_flight=self._config.single_flight,
            metrics=self._metrics,
        )

    @classmethod
    def from_config(
        cls,
        config_path: str,
        configure_logging: bool = True,
        start_metrics_server: bool = True,
    ) -> "CacheService":
        """
        Create a cache service from a YAML config file.

        Args:
            config_path: Path to YAML configuration file
            configure_logging: Apply the file's logging section
            start_metrics_server: Expose Prometheus metrics on ``metrics.port``
                when the file enables the prometheus backend

        Returns:
            CacheService instance
        """
        config = CacheConfig.load(config_path)
        if configure_logging:
            setup_logging(config)
        service = cls(config=config)
        if start_metrics_server and service.metrics.backend_type == "prometheus":
            service.metrics.start_server()
            logger.info(f"Prometheus metrics served on port {config.metrics_port}")
        return service

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def metrics(self) -> CacheMetrics:
        return self._metrics

    # === Store operations ===

    def get(self, key: KeyLike) -> Any:
        return self._store.get(key)

    def set(self, key: KeyLike, value: Any, ttl: Optional[float] = None) -> None:
        self._store.set(key, value, ttl)

    def delete(self, key: KeyLike) -> None:
        self._store.delete(key)

    def has(self, key: KeyLike) -> bool:
        return self._store.has(key)

    def clear_by_prefix(self, prefix: str) -> int:
        return self._store.clear_by_prefix(prefix)

    def clear(self) -> None:
        self._store.clear()

    def cleanup_expired(self) -> int:
        return self._store.cleanup_expired()

    def get_stats(self) -> CacheStats:
        return self._store.get_stats()

    async def get_or_fetch(
        self,
        key: KeyLike,
        supplier: Supplier,
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the cached value for ``key`` or populate it from ``supplier``."""
        return await self._orchestrator.get_or_fetch(key, supplier, ttl)

    # === Lifecycle ===

    def start_cleanup(self) -> Optional[asyncio.Task]:
        """Start the background sweep if ``cleanup_interval`` is set."""
        if self._config.cleanup_interval <= 0:
            return None
        return self._store.start_cleanup(self._config.cleanup_interval)

    async def stop_cleanup(self) -> None:
        await self._store.stop_cleanup()

    def reset(self) -> None:
        """Drop all entries and statistics."""
        self._store.reset()

    async def close(self) -> None:
        await self.stop_cleanup()
        self.reset()

    # === Monitoring ===

    def missing_keys(self, organization_id: str) -> List[str]:
        """
        Predicted dashboard keys for an organization that are not cached.

        Uses ``has`` so the check does not disturb LRU order.
        """
        predictions = [
            generate_org_key(organization_id, DataDomain.EMPLOYEES.value, "all"),
            generate_org_key(organization_id, DataDomain.CATEGORIES.value),
            generate_org_key(organization_id, DataDomain.ORGANIZATION.value),
        ]
        missing = [k for k in predictions if not self._store.has(k)]
        if missing:
            logger.debug(f"Cache missing {len(missing)} predicted keys for org {organization_id}")
        return missing


_default_cache: Optional[CacheService] = None
_default_lock = threading.Lock()


def get_cache() -> CacheService:
    """Process-wide default cache service (created on first use)."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = CacheService()
        return _default_cache


def reset_cache(config: Optional[CacheConfig] = None) -> CacheService:
    """Replace the process-wide cache with a fresh instance."""
    global _default_cache
    with _default_lock:
        _default_cache = CacheService(config)
        return _default_cache
