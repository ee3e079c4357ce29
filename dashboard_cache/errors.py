"""Exception types raised by the dashboard cache library."""


class DashboardCacheError(Exception):
    """Base class for all library errors."""


class ConfigError(DashboardCacheError, ValueError):
    """Invalid configuration value."""


class SetupError(DashboardCacheError):
    """Dashboard context (organization or user) is missing at load start."""
