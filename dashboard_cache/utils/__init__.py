"""Dashboard cache utilities."""

from .logging import get_logger, setup_logging, setup_logging_from_dict
from .metrics import CacheMetrics, MetricsConfig, PrometheusMetrics, SimpleMetrics

__all__ = [
    "get_logger",
    "setup_logging",
    "setup_logging_from_dict",
    "CacheMetrics",
    "MetricsConfig",
    "PrometheusMetrics",
    "SimpleMetrics",
]
