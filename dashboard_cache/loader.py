"""
Progressive dashboard loader.

Turns (role, organization, user) into a set of data domains, publishes a
"shell ready" state immediately, then loads every domain as an independent
asyncio task through the cache. Each task ends with exactly one result
that is applied to the shared ``DashboardState`` and emitted as an event;
no domain waits on another.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple

from .datasource import RemoteDataSource
from .errors import SetupError
from .events import (
    DomainFailedEvent,
    DomainLoadedEvent,
    EventEmitter,
    SetupErrorEvent,
    ShellReadyEvent,
)
from .service import CacheService
from .state import DashboardState, DomainResult
from .types import CacheKey, DashboardRole, DataDomain, OrganizationContext, UserContext

logger = logging.getLogger(__name__)

CORE_DOMAINS: Tuple[DataDomain, ...] = (
    DataDomain.ORGANIZATION,
    DataDomain.CATEGORIES,
    DataDomain.PERMISSIONS,
)

ROLE_DOMAINS: Dict[DashboardRole, Tuple[DataDomain, ...]] = {
    DashboardRole.TEAM_LEAD: (
        DataDomain.EMPLOYEES,
        DataDomain.FOLLOW_UPS,
    ),
    DashboardRole.HR: (
        DataDomain.EMPLOYEES,
        DataDomain.FOLLOW_UPS,
        DataDomain.WARNINGS,
        DataDomain.REPORTS,
        DataDomain.METRICS,
    ),
    DashboardRole.BUSINESS_OWNER: (
        DataDomain.EMPLOYEES,
        DataDomain.TEAMS,
        DataDomain.REPORTS,
        DataDomain.METRICS,
    ),
    DashboardRole.SUPER_ADMIN: (
        DataDomain.EMPLOYEES,
        DataDomain.WARNINGS,
        DataDomain.REPORTS,
        DataDomain.METRICS,
        DataDomain.TEAMS,
    ),
}

_UNSET: Any = object()


def required_domains(
    role: Optional[DashboardRole],
    skip_domains: Iterable[DataDomain] = (),
) -> List[DataDomain]:
    """
    Domains a role's dashboard needs: core domains, then the role's own.

    Unknown roles (None) get the core domains only.
    """
    skip = set(skip_domains)
    domains = list(CORE_DOMAINS)
    if role is not None:
        domains.extend(ROLE_DOMAINS.get(role, ()))
    return [d for d in domains if d not in skip]


def _normalize(domain: DataDomain, data: Any) -> Any:
    if domain.is_collection:
        return data if isinstance(data, list) else []
    return data if isinstance(data, dict) else {}


class DashboardLoader(EventEmitter):
    """
    Loads a role-specific dashboard progressively.

    Usage:
        loader = DashboardLoader(cache, source, organization=org, user=user, role="hr")

        @loader.on(DomainLoadedEvent)
        def on_loaded(event):
            view.render(event.domain, event.data)

        state = await loader.load()   # returns as soon as the shell is ready
        state.is_ready                # True
        await loader.wait()           # every domain has settled
        await loader.refresh()        # drop org cache entries and reload
    """

    def __init__(
        self,
        cache: CacheService,
        data_source: RemoteDataSource,
        organization: Optional[OrganizationContext] = None,
        user: Optional[UserContext] = None,
        role: Any = None,
        skip_domains: Iterable[DataDomain] = (),
    ) -> None:
        super().__init__()
        self._cache = cache
        self._source = data_source
        self._organization = organization
        self._user = user
        self._role = role
        self._skip = tuple(skip_domains)

        self._state = DashboardState()
        self._epoch = 0
        self._loaded_session: Optional[str] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state.is_ready

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def organization_id(self) -> Optional[str]:
        """Organization in scope, falling back to the user's organization."""
        if self._organization is not None:
            return self._organization.id
        if self._user is not None:
            return self._user.organization_id
        return None

    @property
    def role(self) -> Optional[DashboardRole]:
        """Effective dashboard role: explicit role, else the user's, else team lead."""
        if self._role is not None:
            return DashboardRole.parse(self._role)
        if self._user is not None and self._user.role is not None:
            return self._user.dashboard_role
        return DashboardRole.TEAM_LEAD

    def _role_label(self) -> str:
        role = self.role
        if role is not None:
            return role.value
        raw = self._role if self._role is not None else getattr(self._user, "role", None)
        if isinstance(raw, dict):
            raw = raw.get("id")
        return str(raw)

    # === Loading ===

    async def load(self) -> DashboardState:
        """
        Start a load cycle and return once the shell is ready.

        Domain fetches continue in the background; use ``wait()`` to await
        them. A repeated call for the same organization, user and role is
        a no-op until ``refresh()`` or a context change.
        """
        try:
            organization_id, user = self._require_context()
            role = self.role
            session_id = f"{organization_id}-{user.id}-{self._role_label()}"
            if session_id == self._loaded_session:
                logger.debug(f"Dashboard session already dispatched: {session_id}")
                return self._state

            domains = required_domains(role, self._skip)
            self._epoch += 1
            epoch = self._epoch
            logger.debug(f"Progressive loading for role {self._role_label()}: {[d.value for d in domains]}")

            organization = self._organization or OrganizationContext(id=organization_id)
            self._state.begin_cycle(epoch, organization, user, domains)
            self.emit(ShellReadyEvent(
                organization_id=organization_id,
                epoch=epoch,
                user_id=user.id,
                role=self._role_label(),
                required_domains=list(domains),
            ))

            for domain in domains:
                key = self.domain_key(domain, organization_id, user)
                supplier = self._supplier(domain, organization_id, user)
                task = asyncio.create_task(
                    self._load_domain(domain, key, supplier, epoch, organization_id),
                    name=f"dashboard:{domain.value}",
                )
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

            self._loaded_session = session_id
            logger.info(
                f"Dashboard shell ready: org={organization_id} user={user.id} "
                f"role={self._role_label()} domains={len(domains)}"
            )
        except Exception as e:
            if not isinstance(e, SetupError):
                logger.exception("Failed to initialize progressive loading")
            self._fail_setup(str(e) or "Failed to load dashboard data")

        return self._state

    async def refresh(self) -> DashboardState:
        """
        Invalidate the organization's cache entries and reload everything.

        Results still in flight from the previous cycle are discarded.
        """
        organization_id = self.organization_id
        if organization_id:
            self._cache.clear_by_prefix(f"org:{organization_id}:")
        self._loaded_session = None
        return await self.load()

    async def update_context(
        self,
        organization: Optional[OrganizationContext] = _UNSET,
        user: Optional[UserContext] = _UNSET,
        role: Any = _UNSET,
    ) -> DashboardState:
        """Replace context (any subset) and re-evaluate the dashboard."""
        if organization is not _UNSET:
            self._organization = organization
        if user is not _UNSET:
            self._user = user
        if role is not _UNSET:
            self._role = role
        return await self.load()

    async def wait(self) -> DashboardState:
        """Wait until every dispatched domain task has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._state

    async def close(self) -> None:
        """Cancel domain tasks still in flight."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # === Domains ===

    def domain_key(self, domain: DataDomain, organization_id: str, user: UserContext) -> CacheKey:
        """Organization-scoped cache key for a domain."""
        if domain is DataDomain.EMPLOYEES:
            if self._sees_all_employees(user):
                return CacheKey.org(organization_id, domain, "all")
            return CacheKey.org(organization_id, domain, "manager", user.id)
        if domain in (DataDomain.PERMISSIONS, DataDomain.FOLLOW_UPS):
            return CacheKey.org(organization_id, domain, user.id)
        return CacheKey.org(organization_id, domain)

    def _sees_all_employees(self, user: UserContext) -> bool:
        # The user's actual role decides, not the dashboard being viewed
        actual = user.dashboard_role if user.role is not None else self.role
        return actual is not None and actual.sees_all_employees

    def _supplier(
        self, domain: DataDomain, organization_id: str, user: UserContext
    ) -> Callable[[], Awaitable[Any]]:
        source = self._source

        async def organization() -> Any:
            doc = await source.fetch_by_key(organization_id, "organizations", organization_id)
            if doc is None and self._organization is not None:
                return dict(self._organization.data, id=self._organization.id, name=self._organization.name)
            return doc or {}

        async def permissions() -> Any:
            return await source.fetch_by_key(organization_id, "permissions", user.id) or {}

        async def employees() -> Any:
            if self._sees_all_employees(user):
                return await source.fetch_by_org(organization_id, "employees")
            return await source.query(organization_id, "employees", "managerId", user.id)

        async def follow_ups() -> Any:
            return await source.query(organization_id, "followUps", "managerId", user.id)

        async def metrics() -> Any:
            return await source.fetch_by_key(organization_id, "analytics", "dashboard") or {}

        def collection(name: str) -> Callable[[], Awaitable[Any]]:
            async def fetch() -> Any:
                return await source.fetch_by_org(organization_id, name)
            return fetch

        suppliers: Dict[DataDomain, Callable[[], Awaitable[Any]]] = {
            DataDomain.ORGANIZATION: organization,
            DataDomain.CATEGORIES: collection("categories"),
            DataDomain.PERMISSIONS: permissions,
            DataDomain.EMPLOYEES: employees,
            DataDomain.FOLLOW_UPS: follow_ups,
            DataDomain.WARNINGS: collection("warnings"),
            DataDomain.REPORTS: collection("reports"),
            DataDomain.TEAMS: collection("teams"),
            DataDomain.METRICS: metrics,
        }
        return suppliers[domain]

    async def _load_domain(
        self,
        domain: DataDomain,
        key: CacheKey,
        supplier: Callable[[], Awaitable[Any]],
        epoch: int,
        organization_id: str,
    ) -> None:
        try:
            data = await self._cache.get_or_fetch(key, supplier)
            result = DomainResult(domain, epoch, data=_normalize(domain, data))
        except Exception as e:
            logger.error(f"Failed to load {domain.value}: {e}")
            result = DomainResult(domain, epoch, error=str(e) or type(e).__name__)

        if not self._state.apply(result):
            logger.debug(f"Dropped stale {domain.value} result (epoch {epoch})")
            return

        if result.ok:
            self.emit(DomainLoadedEvent(
                organization_id=organization_id,
                epoch=epoch,
                domain=domain,
                data=result.data,
            ))
        else:
            self.emit(DomainFailedEvent(
                organization_id=organization_id,
                epoch=epoch,
                domain=domain,
                error=result.error or "",
            ))

    # === Setup ===

    def _require_context(self) -> Tuple[str, UserContext]:
        if self._user is None:
            raise SetupError("No user available for dashboard")
        organization_id = self.organization_id
        if not organization_id:
            raise SetupError("No organization available for dashboard")
        return organization_id, self._user

    def _fail_setup(self, error: str) -> None:
        self._epoch += 1
        self._loaded_session = None
        organization_id = self.organization_id
        organization = self._organization
        if organization is None and organization_id:
            organization = OrganizationContext(id=organization_id)
        self._state.fail_setup(self._epoch, error, organization, self._user)
        logger.error(f"Dashboard setup failed: {error}")
        self.emit(SetupErrorEvent(
            organization_id=self.organization_id or "",
            epoch=self._epoch,
            error=error,
        ))
