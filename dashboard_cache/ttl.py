"""
TTL policy for cache entries.

Decides how long an entry lives based on the data domain in its key.
"""

from typing import Iterable, Mapping, Union

from .errors import ConfigError
from .types import CacheKey, DataDomain

DEFAULT_TTL = 5 * 60.0

# Order matters: the first substring contained in a key wins.
DEFAULT_TTL_TABLE: tuple[tuple[str, float], ...] = (
    # Frequently changing data
    ("employees", 2 * 60.0),
    ("warnings", 1 * 60.0),
    ("followUps", 30.0),
    # Moderately changing data
    ("categories", 10 * 60.0),
    ("organization", 15 * 60.0),
    ("settings", 15 * 60.0),
    # Rarely changing data
    ("userOrgIndex", 30 * 60.0),
    ("sectors", 60 * 60.0),
    ("roles", 60 * 60.0),
)


def _validate_ttl(name: str, seconds: float) -> float:
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        raise ConfigError(f"TTL for {name!r} must be a number, got {seconds!r}") from None
    if value <= 0:
        raise ConfigError(f"TTL for {name!r} must be greater than 0")
    return value


class TTLPolicy:
    """
    Ordered ``(domain substring, seconds)`` table with a default.

    Plain string keys are resolved by substring match in table order, so a
    key such as ``org:a:employees:warnings`` gets the employees TTL because
    employees comes first. Structured ``CacheKey`` values are resolved by
    exact domain lookup, which has no such ambiguity.

    Usage:
        policy = TTLPolicy()
        policy.resolve("org:acme:employees:all")   # 120.0
        policy.resolve("org:acme:reports")         # 300.0 (default)
    """

    def __init__(
        self,
        table: Iterable[tuple[str, float]] = DEFAULT_TTL_TABLE,
        default: float = DEFAULT_TTL,
    ) -> None:
        self._table = tuple((str(name), _validate_ttl(name, ttl)) for name, ttl in table)
        self._by_domain = dict(self._table)
        self._default = _validate_ttl("default", default)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float], default: float = DEFAULT_TTL) -> "TTLPolicy":
        """Build a policy from an ordered mapping (e.g. the ``ttl`` config section)."""
        return cls(table=list(mapping.items()), default=default)

    @property
    def default(self) -> float:
        return self._default

    def entries(self) -> list[tuple[str, float]]:
        """The resolution table in match order."""
        return list(self._table)

    def resolve(self, key: str) -> float:
        """TTL for a plain string key (first matching substring wins)."""
        for name, ttl in self._table:
            if name in key:
                return ttl
        return self._default

    def for_domain(self, domain: Union[str, DataDomain]) -> float:
        """TTL for an exact domain name."""
        name = domain.value if isinstance(domain, DataDomain) else domain
        return self._by_domain.get(name, self._default)

    def resolve_key(self, key: Union[str, CacheKey]) -> float:
        if isinstance(key, CacheKey):
            return self.for_domain(key.domain)
        return self.resolve(key)
