"""
Dashboard Cache type definitions.

This module contains all public types used by the dashboard cache library.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class DataDomain(Enum):
    """Named categories of dashboard data, each with its own key namespace."""
    ORGANIZATION = "organization"
    CATEGORIES = "categories"
    PERMISSIONS = "permissions"
    EMPLOYEES = "employees"
    FOLLOW_UPS = "followUps"
    WARNINGS = "warnings"
    REPORTS = "reports"
    TEAMS = "teams"
    METRICS = "metrics"

    @property
    def is_collection(self) -> bool:
        """True if the domain holds a list, False if it holds a mapping."""
        return self not in _OBJECT_DOMAINS

    def empty(self) -> Any:
        """Fresh empty default for this domain's data slice."""
        return [] if self.is_collection else {}


_OBJECT_DOMAINS = frozenset({
    DataDomain.ORGANIZATION,
    DataDomain.PERMISSIONS,
    DataDomain.METRICS,
})


class DashboardRole(Enum):
    """Dashboard roles that drive which domains are loaded."""
    TEAM_LEAD = "team-lead"
    HR = "hr"
    BUSINESS_OWNER = "business-owner"
    SUPER_ADMIN = "super-admin"

    @classmethod
    def parse(cls, value: Any) -> "DashboardRole | None":
        """
        Parse a role from a string, enum or ``{"id": ...}`` mapping.

        Accepts the historical aliases used by the product (``hod``,
        ``hr-manager``, ``business_owner``, ...). Returns None for
        unknown roles.
        """
        if isinstance(value, DashboardRole):
            return value
        if isinstance(value, Mapping):
            value = value.get("id")
        if not isinstance(value, str) or not value:
            return None
        return _ROLE_ALIASES.get(value.strip().lower())

    @property
    def sees_all_employees(self) -> bool:
        """HR and owners see every employee, not just their own team."""
        return self in (DashboardRole.HR, DashboardRole.BUSINESS_OWNER)


_ROLE_ALIASES = {
    "team-lead": DashboardRole.TEAM_LEAD,
    "team_lead": DashboardRole.TEAM_LEAD,
    "hod": DashboardRole.TEAM_LEAD,
    "hr": DashboardRole.HR,
    "hr-manager": DashboardRole.HR,
    "hr_manager": DashboardRole.HR,
    "business-owner": DashboardRole.BUSINESS_OWNER,
    "business_owner": DashboardRole.BUSINESS_OWNER,
    "owner": DashboardRole.BUSINESS_OWNER,
    "super-admin": DashboardRole.SUPER_ADMIN,
    "super_admin": DashboardRole.SUPER_ADMIN,
}


class KeyScope(Enum):
    """Scope prefix of a cache key."""
    ORG = "org"
    USER = "user"


@dataclass(frozen=True)
class CacheKey:
    """
    Structured cache key.

    Renders to ``<scope>:<scope_id>:<domain>[:<param>...]``. The ``domain``
    field lets the TTL policy pick a duration by exact lookup instead of
    guessing from the key's text.
    """
    scope: KeyScope
    scope_id: str
    domain: str
    params: tuple[str, ...] = ()

    @classmethod
    def org(cls, organization_id: str, domain: "str | DataDomain", *params: str) -> "CacheKey":
        return cls(KeyScope.ORG, organization_id, _domain_name(domain), tuple(params))

    @classmethod
    def user(cls, user_id: str, domain: "str | DataDomain", *params: str) -> "CacheKey":
        return cls(KeyScope.USER, user_id, _domain_name(domain), tuple(params))

    @property
    def prefix(self) -> str:
        """Scope prefix shared by every key of this scope, e.g. ``org:acme:``."""
        return f"{self.scope.value}:{self.scope_id}:"

    def __str__(self) -> str:
        suffix = "".join(f":{p}" for p in self.params)
        return f"{self.prefix}{self.domain}{suffix}"


def _domain_name(domain: "str | DataDomain") -> str:
    return domain.value if isinstance(domain, DataDomain) else domain


def generate_org_key(organization_id: str, kind: str, *params: str) -> str:
    """Build an organization-scoped key string: ``org:<id>:<kind>[:params]``."""
    return str(CacheKey(KeyScope.ORG, organization_id, kind, tuple(params)))


def generate_user_key(user_id: str, kind: str, *params: str) -> str:
    """Build a user-scoped key string: ``user:<id>:<kind>[:params]``."""
    return str(CacheKey(KeyScope.USER, user_id, kind, tuple(params)))


@dataclass
class CacheEntry:
    """A stored value with its freshness window (owned by the store)."""
    key: str
    value: Any
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class CacheStats:
    """Cache statistics snapshot."""
    size: int
    max_size: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    oldest_entry: str | None = None
    newest_entry: str | None = None

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "oldest_entry": self.oldest_entry,
            "newest_entry": self.newest_entry,
        }


@dataclass
class OrganizationContext:
    """Organization already loaded by the surrounding application."""
    id: str
    name: str = ""
    categories: list[Any] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class UserContext:
    """Signed-in user as provided by the auth layer."""
    id: str
    organization_id: str | None = None
    role: Any = None  # "hr" | {"id": "hr-manager", "name": ...} | None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def dashboard_role(self) -> DashboardRole | None:
        return DashboardRole.parse(self.role)
