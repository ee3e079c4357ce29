"""Fetch-or-populate on top of the cache store."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .store import CacheStore, KeyLike
from .utils.metrics import CacheMetrics

logger = logging.getLogger(__name__)

Supplier = Callable[[], Awaitable[Any]]


class FetchOrchestrator:
    """
    Return a cached value, or run a supplier and cache what it returns.

    Supplier errors propagate to the caller and nothing is cached.

    Without ``single_flight``, two concurrent misses on the same key each
    run their own supplier. With ``single_flight=True`` the second caller
    awaits the first caller's in-flight result instead.
    """

    def __init__(
        self,
        store: CacheStore,
        single_flight: bool = False,
        metrics: Optional[CacheMetrics] = None,
    ) -> None:
        self._store = store
        self._single_flight = single_flight
        self._metrics = metrics
        self._in_flight: Dict[str, "asyncio.Future[Any]"] = {}

    @property
    def single_flight(self) -> bool:
        return self._single_flight

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def get_or_fetch(
        self,
        key: KeyLike,
        supplier: Supplier,
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Get ``key`` from the cache, populating it from ``supplier`` on a miss.

        Args:
            key: Cache key
            supplier: Zero-argument coroutine function producing the value
            ttl: Optional explicit lifetime in seconds

        Returns:
            The cached or freshly fetched value. A supplier result of None
            is returned but not cached, since None means "miss".
        """
        cached = self._store.get(key)
        if cached is not None:
            return cached

        k = str(key)
        if not self._single_flight:
            logger.debug(f"Cache miss: {k} - fetching...")
            return await self._fetch_and_store(key, supplier, ttl)

        pending = self._in_flight.get(k)
        if pending is not None:
            logger.debug(f"Cache miss: {k} - joining in-flight fetch")
            return await asyncio.shield(pending)

        logger.debug(f"Cache miss: {k} - fetching...")
        future: "asyncio.Future[Any]" = asyncio.get_running_loop().create_future()
        self._in_flight[k] = future
        try:
            value = await self._fetch_and_store(key, supplier, ttl)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved so an unshared failure does not log "never retrieved"
            future.exception()
            raise
        else:
            future.set_result(value)
            return value
        finally:
            self._in_flight.pop(k, None)

    async def _fetch_and_store(self, key: KeyLike, supplier: Supplier, ttl: Optional[float]) -> Any:
        try:
            value = await supplier()
        except Exception:
            if self._metrics:
                self._metrics.record_supplier_failure()
            raise
        if value is not None:
            self._store.set(key, value, ttl)
        return value
