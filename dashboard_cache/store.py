"""
In-memory cache store with TTL expiry and LRU eviction.

Entries expire lazily on access; an optional background task sweeps
expired entries to bound memory between accesses. When the store is full,
the least recently used entry is evicted to make room for a new key.
"""

import asyncio
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import ConfigError
from .ttl import DEFAULT_TTL, TTLPolicy
from .types import CacheEntry, CacheKey, CacheStats
from .utils.metrics import CacheMetrics

logger = logging.getLogger(__name__)

KeyLike = Union[str, CacheKey]


class CacheStore:
    """
    Keyed store of ``CacheEntry`` objects with an access-order ledger.

    Every ``get`` hit and every ``set`` stamps the key with the next value
    of a monotonically increasing access counter and moves it to the end of
    the ledger, so the first ledger key is always the least recently used.

    Thread-safe: all operations hold an internal lock.

    Usage:
        store = CacheStore(max_size=500)
        store.set("org:acme:employees:all", employees)
        store.get("org:acme:employees:all")
        store.clear_by_prefix("org:acme:")
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: float = DEFAULT_TTL,
        ttl_policy: Optional[TTLPolicy] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[CacheMetrics] = None,
    ) -> None:
        if max_size <= 0:
            raise ConfigError("max_size must be greater than 0")
        if default_ttl <= 0:
            raise ConfigError("default_ttl must be greater than 0")

        self._max_size = max_size
        self._policy = ttl_policy or TTLPolicy(default=default_ttl)
        self._clock = clock
        self._metrics = metrics

        self._entries: Dict[str, CacheEntry] = {}
        self._access: "OrderedDict[str, int]" = OrderedDict()
        self._access_counter = 0
        self._lock = threading.RLock()

        # Stats
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl_policy(self) -> TTLPolicy:
        return self._policy

    def get(self, key: KeyLike) -> Any:
        """
        Get a live value.

        Returns:
            The stored value, or None if the key is absent or expired.
            Expired entries are removed.
        """
        k = str(key)
        with self._lock:
            entry = self._live_entry(k)
            if entry is None:
                self._misses += 1
                self._record_lookup(False)
                return None

            self._touch(k)
            self._hits += 1
            self._record_lookup(True)
            logger.debug(f"Cache hit: {k}")
            return entry.value

    def set(self, key: KeyLike, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key (string or structured ``CacheKey``)
            value: Payload, opaque to the store
            ttl: Lifetime in seconds. If None, the TTL policy decides.

        Raises:
            ValueError: If ``ttl`` is given and not positive
        """
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be greater than 0")

        effective_ttl = ttl if ttl is not None else self._policy.resolve_key(key)
        k = str(key)

        with self._lock:
            if k not in self._entries and len(self._entries) >= self._max_size:
                self._purge_expired()
                if len(self._entries) >= self._max_size:
                    self._evict_lru()

            now = self._clock()
            self._entries[k] = CacheEntry(
                key=k,
                value=value,
                inserted_at=now,
                expires_at=now + effective_ttl,
            )
            self._touch(k)
            self._report_size()

        logger.debug(f"Cache set: {k} (TTL: {effective_ttl:g}s)")

    def delete(self, key: KeyLike) -> None:
        """Remove an entry if present."""
        k = str(key)
        with self._lock:
            self._remove(k)
            self._report_size()

    def has(self, key: KeyLike) -> bool:
        """
        Check for a live entry without changing LRU order.

        Expired entries are removed, as with ``get``.
        """
        with self._lock:
            return self._live_entry(str(key)) is not None

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, CacheKey)):
            return False
        return self.has(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[str]:
        """Snapshot of stored keys, least recently used first."""
        with self._lock:
            return list(self._access)

    def clear_by_prefix(self, prefix: str) -> int:
        """
        Remove every key that starts with ``prefix``.

        Plain string prefix match: ``"org:A:"`` leaves ``"org:AB:x"`` alone.

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                self._remove(k)
            self._report_size()

        logger.info(f"Cleared {len(doomed)} cache entries with prefix: {prefix}")
        return len(doomed)

    def clear(self) -> None:
        """Remove everything and reset the access counter."""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
            self._access.clear()
            self._access_counter = 0
            self._report_size()
        logger.info(f"Cleared all {size} cache entries")

    def reset(self) -> None:
        """Clear entries and statistics (test teardown)."""
        self.clear()
        with self._lock:
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expirations = 0

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            removed = self._purge_expired()
            self._report_size()
        if removed:
            logger.debug(f"Cleaned {removed} expired cache entries")
        return removed

    def get_stats(self) -> CacheStats:
        """Snapshot of cache statistics."""
        with self._lock:
            oldest = next(iter(self._access), None)
            newest = next(reversed(self._access), None)
            return CacheStats(
                size=len(self._entries),
                max_size=self._max_size,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                oldest_entry=oldest,
                newest_entry=newest,
            )

    def access_count(self, key: KeyLike) -> Optional[int]:
        """Access counter value recorded for ``key`` (None if absent)."""
        with self._lock:
            return self._access.get(str(key))

    # === Background cleanup ===

    def start_cleanup(self, interval: float = 60.0) -> asyncio.Task:
        """
        Start a periodic sweep of expired entries on the running loop.

        Returns the existing task if one is already running.
        """
        if interval <= 0:
            raise ValueError("interval must be greater than 0")
        if self._cleanup_task and not self._cleanup_task.done():
            return self._cleanup_task
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval))
        logger.debug(f"Cache cleanup task started (interval: {interval}s)")
        return self._cleanup_task

    async def stop_cleanup(self) -> None:
        """Cancel the periodic sweep, if running."""
        task = self._cleanup_task
        self._cleanup_task = None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    async def _cleanup_loop(self, interval: float) -> None:
        while True:
            try:
                await asyncio.sleep(interval)
                self.cleanup_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Cache cleanup error: {e}")

    # === Internals (lock held) ===

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._remove(key)
            self._expirations += 1
            self._record_removal("expired")
            self._report_size()
            logger.debug(f"Cache entry expired: {key}")
            return None
        return entry

    def _touch(self, key: str) -> None:
        self._access_counter += 1
        self._access[key] = self._access_counter
        self._access.move_to_end(key)

    def _remove(self, key: str) -> bool:
        self._access.pop(key, None)
        return self._entries.pop(key, None) is not None

    def _purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            self._remove(k)
        self._expirations += len(expired)
        self._record_removal("expired", len(expired))
        return len(expired)

    def _evict_lru(self) -> None:
        if not self._access:
            return
        lru_key = next(iter(self._access))
        self._remove(lru_key)
        self._evictions += 1
        self._record_removal("lru")
        logger.debug(f"LRU evicted: {lru_key}")

    def _record_lookup(self, hit: bool) -> None:
        if self._metrics:
            self._metrics.record_lookup(hit)

    def _record_removal(self, reason: str, count: int = 1) -> None:
        if self._metrics:
            self._metrics.record_removal(reason, count)

    def _report_size(self) -> None:
        if self._metrics:
            self._metrics.set_size(len(self._entries))
