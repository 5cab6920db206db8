"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest

from rbac import (
    Actor,
    AuditLogStore,
    DecisionEngine,
    PermissionCatalog,
    PermissionQueryFacade,
    RequestContext,
    Role,
    RolePermissionMatrix,
)


class FakeClock:
    """Controllable clock for the engine's audit timestamps."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def catalog():
    return PermissionCatalog()


@pytest.fixture
def matrix(catalog):
    return RolePermissionMatrix(catalog)


@pytest.fixture
def store():
    return AuditLogStore(max_entries=None)


@pytest.fixture
def engine(matrix, store, clock):
    return DecisionEngine(matrix, store, clock=clock)


@pytest.fixture
def teacher_facade(engine):
    """Facade bound to a teacher request, as a web handler would build it."""
    actor = Actor(user_id="t-100", role=Role.TEACHER)
    context = RequestContext(ip="10.0.0.7", user_agent="pytest-browser")
    return PermissionQueryFacade(engine, actor=actor, request_context=context)
