"""Shared fixtures for dashboard cache tests."""

import copy

import pytest

from dashboard_cache.datasource import InMemoryDataSource
from dashboard_cache.types import OrganizationContext, UserContext

ORG1_DOCUMENTS = {
    "org1": {
        "organizations": {"org1": {"name": "Acme Mining", "industry": "mining"}},
        "categories": {
            "c1": {"name": "Attendance"},
            "c2": {"name": "Safety"},
        },
        "permissions": {"u1": {"canIssueWarnings": True}},
        "employees": {
            "e1": {"name": "Ada", "managerId": "u1"},
            "e2": {"name": "Ben", "managerId": "u1"},
            "e3": {"name": "Cleo", "managerId": "u9"},
        },
        "followUps": {
            "f1": {"employeeId": "e1", "managerId": "u1"},
        },
        "warnings": {"w1": {"employeeId": "e3", "level": 1}},
        "reports": {"r1": {"title": "Q3"}},
        "teams": {"t1": {"name": "Night shift"}},
        "analytics": {"dashboard": {"activeWarnings": 1, "employees": 3}},
    },
}


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def org1():
    return OrganizationContext(id="org1", name="Acme Mining", categories=[{"id": "c1"}])


@pytest.fixture
def u1():
    return UserContext(id="u1", organization_id="org1", role="team-lead")


@pytest.fixture
def source():
    """One organization with documents in every collection."""
    return InMemoryDataSource(copy.deepcopy(ORG1_DOCUMENTS))


@pytest.fixture
def slow_source():
    """Same documents, with enough latency to overlap load cycles."""
    return InMemoryDataSource(copy.deepcopy(ORG1_DOCUMENTS), latency=0.02)


@pytest.fixture
def org1_documents():
    return copy.deepcopy(ORG1_DOCUMENTS)
