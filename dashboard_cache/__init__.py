"""
Dashboard Cache: client-side cache and progressive loading for HR dashboards.

An in-memory TTL/LRU cache with a fetch-or-populate helper, and a loader
that renders a role-specific dashboard shell immediately while each data
domain (employees, warnings, reports, ...) loads independently.

Basic Usage:
    from dashboard_cache import CacheService

    cache = CacheService()
    employees = await cache.get_or_fetch(
        "org:acme:employees:all",
        lambda: source.fetch_by_org("acme", "employees"),
    )

Progressive Dashboard:
    from dashboard_cache import DashboardLoader, DomainLoadedEvent

    loader = DashboardLoader(cache, source, organization=org, user=user, role="hr")

    @loader.on(DomainLoadedEvent)
    def on_loaded(event):
        print(event.domain.value, len(event.data))

    state = await loader.load()   # shell ready, domains still loading
    await loader.wait()
"""

__version__ = "1.0.0"

# Configuration
from .config import CacheConfig

# Remote data sources
from .datasource import HttpDataSource, InMemoryDataSource, RemoteDataSource

# Errors
from .errors import ConfigError, DashboardCacheError, SetupError

# Event system
from .events import (
    DashboardEvent,
    DomainFailedEvent,
    DomainLoadedEvent,
    EventEmitter,
    SetupErrorEvent,
    ShellReadyEvent,
)

# Progressive loading
from .loader import DashboardLoader, required_domains

# Cache
from .orchestrator import FetchOrchestrator
from .service import CacheService, get_cache, reset_cache
from .state import DashboardState, DomainResult
from .store import CacheStore
from .ttl import DEFAULT_TTL, DEFAULT_TTL_TABLE, TTLPolicy

# Type definitions
from .types import (
    CacheEntry,
    CacheKey,
    CacheStats,
    DashboardRole,
    DataDomain,
    KeyScope,
    OrganizationContext,
    UserContext,
    generate_org_key,
    generate_user_key,
)

__all__ = [
    # Version
    "__version__",
    # Cache
    "CacheService",
    "CacheStore",
    "FetchOrchestrator",
    "TTLPolicy",
    "DEFAULT_TTL",
    "DEFAULT_TTL_TABLE",
    "get_cache",
    "reset_cache",
    # Configuration
    "CacheConfig",
    # Loader
    "DashboardLoader",
    "DashboardState",
    "DomainResult",
    "required_domains",
    # Data sources
    "RemoteDataSource",
    "InMemoryDataSource",
    "HttpDataSource",
    # Types
    "CacheEntry",
    "CacheKey",
    "CacheStats",
    "DashboardRole",
    "DataDomain",
    "KeyScope",
    "OrganizationContext",
    "UserContext",
    "generate_org_key",
    "generate_user_key",
    # Events
    "DashboardEvent",
    "DomainFailedEvent",
    "DomainLoadedEvent",
    "EventEmitter",
    "SetupErrorEvent",
    "ShellReadyEvent",
    # Errors
    "ConfigError",
    "DashboardCacheError",
    "SetupError",
]
