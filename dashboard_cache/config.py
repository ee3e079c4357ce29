"""
Dashboard cache configuration handling.

Provides YAML configuration loading and validation.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict

import yaml

from .errors import ConfigError
from .ttl import DEFAULT_TTL, DEFAULT_TTL_TABLE, TTLPolicy
from .utils.metrics import MetricsConfig

_METRICS_TYPES = ("simple", "prometheus")


def _coerce(name: str, value: Any, kind: Callable[[Any], Any]) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


@dataclass
class CacheConfig:
    """
    Dashboard cache configuration.

    Can be loaded from a YAML file or created programmatically.
    """
    # Cache
    max_size: int = 1000
    default_ttl: float = DEFAULT_TTL
    cleanup_interval: float = 60.0  # seconds, 0 = disabled
    single_flight: bool = False

    # Ordered domain substring -> seconds
    ttl: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TTL_TABLE))

    # Logging
    log_level: str = "INFO"
    log_file: str = ""
    log_format: str = "%(asctime)s %(name)s %(levelname)s %(message)s"
    log_max_bytes: int = 10485760  # 10MB
    log_backup_count: int = 3

    # Metrics
    metrics_enabled: bool = False
    metrics_type: str = "simple"  # prometheus, simple
    metrics_port: int = 9090

    def __post_init__(self) -> None:
        self.max_size = _coerce("cache.max_size", self.max_size, int)
        self.default_ttl = _coerce("cache.default_ttl", self.default_ttl, float)
        self.cleanup_interval = _coerce("cache.cleanup_interval", self.cleanup_interval, float)
        self.log_max_bytes = _coerce("logging.max_bytes", self.log_max_bytes, int)
        self.log_backup_count = _coerce("logging.backup_count", self.log_backup_count, int)
        self.metrics_port = _coerce("metrics.port", self.metrics_port, int)

        if self.max_size <= 0:
            raise ConfigError("cache.max_size must be greater than 0")
        if self.default_ttl <= 0:
            raise ConfigError("cache.default_ttl must be greater than 0")
        if self.cleanup_interval < 0:
            raise ConfigError("cache.cleanup_interval must not be negative")
        if self.metrics_type not in _METRICS_TYPES:
            raise ConfigError(
                f"metrics.type must be one of {', '.join(_METRICS_TYPES)}, got {self.metrics_type!r}"
            )
        # Validates every entry
        self.ttl_policy()

    @classmethod
    def load(cls, path: str) -> "CacheConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            CacheConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file is invalid YAML
            ConfigError: If a value is out of range
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            CacheConfig instance
        """
        # An empty section in YAML loads as None
        cache_cfg = data.get("cache") or {}
        ttl_cfg = data.get("ttl")
        logging_cfg = data.get("logging") or {}
        metrics_cfg = data.get("metrics") or {}

        return cls(
            max_size=cache_cfg.get("max_size", 1000),
            default_ttl=cache_cfg.get("default_ttl", DEFAULT_TTL),
            cleanup_interval=cache_cfg.get("cleanup_interval", 60.0),
            single_flight=cache_cfg.get("single_flight", False),
            ttl=dict(ttl_cfg) if ttl_cfg is not None else dict(DEFAULT_TTL_TABLE),
            log_level=logging_cfg.get("level", "INFO"),
            log_file=logging_cfg.get("file", ""),
            log_format=logging_cfg.get("format", "%(asctime)s %(name)s %(levelname)s %(message)s"),
            log_max_bytes=logging_cfg.get("max_bytes", 10485760),
            log_backup_count=logging_cfg.get("backup_count", 3),
            metrics_enabled=metrics_cfg.get("enabled", False),
            metrics_type=metrics_cfg.get("type", "simple"),
            metrics_port=metrics_cfg.get("port", 9090),
        )

    def ttl_policy(self) -> TTLPolicy:
        """Build the TTL policy described by this configuration."""
        return TTLPolicy.from_mapping(self.ttl, default=self.default_ttl)

    def metrics_config(self) -> MetricsConfig:
        return MetricsConfig(
            enabled=self.metrics_enabled,
            type=self.metrics_type,
            port=self.metrics_port,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Configuration as dictionary
        """
        return {
            "cache": {
                "max_size": self.max_size,
                "default_ttl": self.default_ttl,
                "cleanup_interval": self.cleanup_interval,
                "single_flight": self.single_flight,
            },
            "ttl": dict(self.ttl),
            "logging": {
                "level": self.log_level,
                "file": self.log_file,
                "format": self.log_format,
                "max_bytes": self.log_max_bytes,
                "backup_count": self.log_backup_count,
            },
            "metrics": {
                "enabled": self.metrics_enabled,
                "type": self.metrics_type,
                "port": self.metrics_port,
            },
        }

    def save(self, path: str) -> None:
        """
        Save configuration to a YAML file.

        Args:
            path: Path to save the configuration file
        """
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
