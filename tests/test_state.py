"""Tests for dashboard_cache.state module."""

from dashboard_cache.state import DashboardState, DomainResult
from dashboard_cache.types import DataDomain, OrganizationContext, UserContext

ORG = OrganizationContext(id="acme")
USER = UserContext(id="u1", organization_id="acme")
REQUIRED = [DataDomain.ORGANIZATION, DataDomain.EMPLOYEES, DataDomain.WARNINGS]


def started(epoch: int = 1) -> DashboardState:
    state = DashboardState()
    state.begin_cycle(epoch, ORG, USER, REQUIRED)
    return state


class TestInitialState:

    def test_defaults(self):
        state = DashboardState()
        assert state.overall_loading is True
        assert state.is_ready is False
        assert state.error is None
        assert state[DataDomain.EMPLOYEES] == []
        assert state[DataDomain.METRICS] == {}
        assert not any(state.loading.values())


class TestBeginCycle:
    """Shell-ready transition."""

    def test_required_domains_loading(self):
        state = started()
        assert state.overall_loading is False
        assert state.is_ready
        assert state.loading[DataDomain.EMPLOYEES] is True
        assert state.loading[DataDomain.TEAMS] is False
        assert state.pending_domains == REQUIRED
        assert not state.is_fully_loaded

    def test_slices_reset_to_empty(self):
        state = started()
        state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=["e1"]))
        state.begin_cycle(2, ORG, USER, REQUIRED)
        assert state[DataDomain.EMPLOYEES] == []

    def test_clears_previous_error(self):
        state = DashboardState()
        state.fail_setup(1, "No user")
        state.begin_cycle(2, ORG, USER, REQUIRED)
        assert state.error is None


class TestApply:
    """Reducer rules."""

    def test_success_sets_data(self):
        state = started()
        assert state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=["e1"]))
        assert state[DataDomain.EMPLOYEES] == ["e1"]
        assert state.loading[DataDomain.EMPLOYEES] is False

    def test_failure_sets_empty_default_without_error(self):
        state = started()
        assert state.apply(DomainResult(DataDomain.WARNINGS, 1, error="offline"))
        assert state[DataDomain.WARNINGS] == []
        assert state.loading[DataDomain.WARNINGS] is False
        assert state.error is None

    def test_one_terminal_update_per_domain(self):
        state = started()
        assert state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=["e1"]))
        assert not state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=["e2"]))
        assert state[DataDomain.EMPLOYEES] == ["e1"]

    def test_stale_epoch_dropped(self):
        state = started(epoch=1)
        state.begin_cycle(2, ORG, USER, REQUIRED)
        assert not state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=["old"]))
        assert state[DataDomain.EMPLOYEES] == []
        assert state.loading[DataDomain.EMPLOYEES] is True

    def test_unrequired_domain_ignored(self):
        state = started()
        assert not state.apply(DomainResult(DataDomain.TEAMS, 1, data=["t1"]))
        assert state[DataDomain.TEAMS] == []

    def test_fully_loaded(self):
        state = started()
        state.apply(DomainResult(DataDomain.ORGANIZATION, 1, data={"name": "Acme"}))
        state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=[]))
        state.apply(DomainResult(DataDomain.WARNINGS, 1, error="x"))
        assert state.pending_domains == []
        assert state.is_fully_loaded


class TestFailSetup:

    def test_fail_setup(self):
        state = started()
        state.fail_setup(2, "No organization available for dashboard")
        assert state.error == "No organization available for dashboard"
        assert state.overall_loading is False
        assert not any(state.loading.values())
        assert state.required == []
        assert not state.apply(DomainResult(DataDomain.EMPLOYEES, 1, data=["e1"]))

    def test_fail_setup_keeps_only_present_context(self):
        state = started()
        state.fail_setup(2, "No user available for dashboard", organization=ORG)
        assert state.organization is ORG
        assert state.user is None
        assert state.is_ready is False


class TestSnapshot:

    def test_snapshot_keys_by_domain_name(self):
        state = started(epoch=4)
        state.apply(DomainResult(DataDomain.EMPLOYEES, 4, data=["e1"]))
        snap = state.snapshot()

        assert snap["organization_id"] == "acme"
        assert snap["user_id"] == "u1"
        assert snap["epoch"] == 4
        assert snap["required"] == ["organization", "employees", "warnings"]
        assert snap["loading"]["warnings"] is True
        assert snap["data"]["employees"] == ["e1"]
        assert snap["data"]["followUps"] == []
