"""
Dashboard state and the reducer that applies domain results to it.

Each domain fetch produces exactly one ``DomainResult``. The reducer
accepts it only if it belongs to the current load cycle (epoch) and the
domain is still loading, so a domain gets at most one terminal update per
cycle and results from superseded cycles are dropped.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .types import DataDomain, OrganizationContext, UserContext


@dataclass
class DomainResult:
    """Terminal outcome of one domain fetch."""
    domain: DataDomain
    epoch: int
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DashboardState:
    """
    Progressive dashboard state.

    ``overall_loading`` flips to False once per cycle, when the shell is
    ready; it never waits for domains. Individual domains report their own
    ``loading`` flag.
    """

    def __init__(self) -> None:
        self.organization: Optional[OrganizationContext] = None
        self.user: Optional[UserContext] = None
        self.data: Dict[DataDomain, Any] = {d: d.empty() for d in DataDomain}
        self.loading: Dict[DataDomain, bool] = {d: False for d in DataDomain}
        self.overall_loading = True
        self.error: Optional[str] = None
        self.epoch = 0
        self.required: List[DataDomain] = []
        self._lock = threading.Lock()

    def begin_cycle(
        self,
        epoch: int,
        organization: Optional[OrganizationContext],
        user: UserContext,
        required: Iterable[DataDomain],
    ) -> None:
        """Shell-ready transition: empty slices, required domains loading."""
        required = list(required)
        with self._lock:
            self.epoch = epoch
            self.organization = organization
            self.user = user
            self.required = required
            self.data = {d: d.empty() for d in DataDomain}
            self.loading = {d: d in required for d in DataDomain}
            self.overall_loading = False
            self.error = None

    def fail_setup(
        self,
        epoch: int,
        error: str,
        organization: Optional[OrganizationContext] = None,
        user: Optional[UserContext] = None,
    ) -> None:
        """
        Hard setup failure: nothing loads, aggregate error is set.

        Only the context that is actually present is kept, so a missing
        user or organization leaves the shell not ready.
        """
        with self._lock:
            self.epoch = epoch
            self.organization = organization
            self.user = user
            self.required = []
            self.data = {d: d.empty() for d in DataDomain}
            self.loading = {d: False for d in DataDomain}
            self.overall_loading = False
            self.error = error

    def apply(self, result: DomainResult) -> bool:
        """
        Apply a domain result.

        Returns:
            True if the result was applied, False if it was stale or the
            domain already reached a terminal state this cycle.
        """
        with self._lock:
            if result.epoch != self.epoch or not self.loading.get(result.domain, False):
                return False
            self.data[result.domain] = result.data if result.ok else result.domain.empty()
            self.loading[result.domain] = False
            return True

    @property
    def is_ready(self) -> bool:
        """Shell can render: not overall-loading and context present."""
        return not self.overall_loading and self.organization is not None and self.user is not None

    @property
    def pending_domains(self) -> List[DataDomain]:
        with self._lock:
            return [d for d in self.required if self.loading[d]]

    @property
    def is_fully_loaded(self) -> bool:
        return self.is_ready and not self.pending_domains

    def __getitem__(self, domain: DataDomain) -> Any:
        return self.data[domain]

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view, keyed by domain name."""
        with self._lock:
            return {
                "organization_id": self.organization.id if self.organization else None,
                "user_id": self.user.id if self.user else None,
                "epoch": self.epoch,
                "overall_loading": self.overall_loading,
                "error": self.error,
                "required": [d.value for d in self.required],
                "loading": {d.value: flag for d, flag in self.loading.items()},
                "data": {d.value: value for d, value in self.data.items()},
            }
