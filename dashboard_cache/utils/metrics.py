"""
Metrics collection for the dashboard cache.

Counts cache hits, misses, evictions, expirations and supplier failures.
Two backends: a simple in-memory collector and Prometheus.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


@dataclass
class MetricsConfig:
    """
    Metrics configuration.

    Attributes:
        enabled: Whether metrics collection is active
        type: Metrics backend type ("prometheus" or "simple")
        port: HTTP port for the Prometheus endpoint
    """
    enabled: bool = False
    type: str = "simple"  # prometheus, simple
    port: int = 9090


class SimpleMetrics:
    """
    Simple in-memory metrics collector.

    Provides labelled counters and gauges.
    """

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._gauges: Dict[str, float] = {}
        self._start_time = time.time()

    def inc_counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter."""
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge value."""
        key = self._make_key(name, labels)
        self._gauges[key] = value

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> int:
        """Get counter value."""
        key = self._make_key(name, labels)
        return self._counters.get(key, 0)

    def get_gauge(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Get gauge value."""
        key = self._make_key(name, labels)
        return self._gauges.get(key, 0.0)

    def get_all(self) -> Dict[str, Any]:
        """Get all metrics as a dictionary."""
        return {
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "uptime_seconds": time.time() - self._start_time,
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._counters.clear()
        self._gauges.clear()
        self._start_time = time.time()

    @staticmethod
    def _make_key(name: str, labels: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for a metric with labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


class PrometheusMetrics:
    """
    Prometheus metrics collector.

    Each instance owns its registry so several caches (or tests) can
    coexist in one process.
    """

    def __init__(self, port: int = 9090) -> None:
        self._port = port
        self._server_started = False
        self.registry = CollectorRegistry()

        self._lookups = Counter(
            "dashboard_cache_lookups_total",
            "Cache lookups by result",
            ["result"],
            registry=self.registry,
        )
        self._evictions = Counter(
            "dashboard_cache_evictions_total",
            "Entries removed by LRU eviction or expiry",
            ["reason"],
            registry=self.registry,
        )
        self._supplier_failures = Counter(
            "dashboard_cache_supplier_failures_total",
            "Suppliers that raised during get_or_fetch",
            registry=self.registry,
        )
        self._size = Gauge(
            "dashboard_cache_entries",
            "Entries currently stored",
            registry=self.registry,
        )

    def start_server(self) -> None:
        """Start the Prometheus HTTP server."""
        if not self._server_started:
            start_http_server(self._port, registry=self.registry)
            self._server_started = True

    def record_lookup(self, hit: bool) -> None:
        self._lookups.labels(result="hit" if hit else "miss").inc()

    def record_removal(self, reason: str, count: int = 1) -> None:
        self._evictions.labels(reason=reason).inc(count)

    def record_supplier_failure(self) -> None:
        self._supplier_failures.inc()

    def set_size(self, size: int) -> None:
        self._size.set(size)


class CacheMetrics:
    """
    Cache metrics collector.

    Chooses the backend from configuration.
    """

    def __init__(self, config: Optional[MetricsConfig] = None) -> None:
        self._config = config or MetricsConfig()
        self._backend: Any

        if self._config.enabled and self._config.type == "prometheus":
            self._backend = PrometheusMetrics(port=self._config.port)
        else:
            self._backend = SimpleMetrics()

    @property
    def is_enabled(self) -> bool:
        """Check if metrics are enabled."""
        return self._config.enabled

    @property
    def backend_type(self) -> str:
        """Get current backend type."""
        if isinstance(self._backend, PrometheusMetrics):
            return "prometheus"
        return "simple"

    @property
    def backend(self) -> Any:
        return self._backend

    def start_server(self) -> None:
        """Start metrics HTTP server (Prometheus only)."""
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.start_server()

    def record_lookup(self, hit: bool) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_lookup(hit)
        else:
            self._backend.inc_counter("lookups", labels={"result": "hit" if hit else "miss"})

    def record_removal(self, reason: str, count: int = 1) -> None:
        """Record entries dropped by "lru" eviction or "expired" cleanup."""
        if count <= 0:
            return
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_removal(reason, count)
        else:
            self._backend.inc_counter("removals", count, labels={"reason": reason})

    def record_supplier_failure(self) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_supplier_failure()
        else:
            self._backend.inc_counter("supplier_failures")

    def set_size(self, size: int) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.set_size(size)
        else:
            self._backend.set_gauge("entries", size)

    def get_all(self) -> Dict[str, Any]:
        """Get all metrics (simple backend only)."""
        if isinstance(self._backend, SimpleMetrics):
            return self._backend.get_all()
        return {"note": "Use Prometheus endpoint for metrics"}
