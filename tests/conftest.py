"""Shared test fixtures for the attendance approval workflow."""

from datetime import datetime, timedelta, timezone

import pytest

from attendance_svc.directory.base import Employee
from attendance_svc.directory.memory import InMemoryEmployeeDirectory, InMemoryIdentityDirectory
from attendance_svc.profiles import build_profile_table
from attendance_svc.requests.engine import WorkflowEngine
from attendance_svc.requests.repository import RequestRepository
from attendance_svc.requests.stats import RequestStatistics
from attendance_svc.store.memory import MemoryStore
from attendance_svc.store.mirror import MirrorFile
from attendance_svc.work_modes import WorkMode


class FakeClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 6, 1, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def store() -> MemoryStore:
    """Empty in-memory primary store."""
    return MemoryStore()


@pytest.fixture
def mirror_path(tmp_path):
    return tmp_path / "signup_requests.yaml"


@pytest.fixture
def mirror(mirror_path) -> MirrorFile:
    """Mirror file in a temp directory."""
    return MirrorFile(mirror_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(store, mirror, clock) -> RequestRepository:
    """Repository over an empty store and mirror."""
    return RequestRepository(store, mirror=mirror, clock=clock)


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def identity() -> InMemoryIdentityDirectory:
    """Identity directory with one existing account."""
    return InMemoryIdentityDirectory({
        "testadmin": {"email": "testadmin@company.com", "name": "Test Admin"},
    })


@pytest.fixture
def employees() -> InMemoryEmployeeDirectory:
    """Employee roster."""
    return InMemoryEmployeeDirectory([
        Employee(employee_id="E1", name="John Doe", username="john.doe",
                 department="Engineering", work_mode=WorkMode.IN_OFFICE),
        Employee(employee_id="E2", name="Jane Smith", username="jane.smith",
                 department="Design", work_mode=WorkMode.FULLY_REMOTE),
        Employee(employee_id="E3", name="Mike Johnson", username="mike.johnson",
                 department="Sales", work_mode=WorkMode.SEMI_REMOTE),
    ])


@pytest.fixture
def profiles():
    return build_profile_table({
        "alice": {
            "department": "Engineering",
            "position": "AI Engineer",
            "work_mode": "semi_remote",
            "hire_date": "2024-02-01",
        },
    })


# =============================================================================
# Engine Fixtures
# =============================================================================

@pytest.fixture
def engine(repository, identity, employees, profiles, clock) -> WorkflowEngine:
    return WorkflowEngine(repository, identity, employees=employees, profiles=profiles, clock=clock)


@pytest.fixture
def stats(repository, employees) -> RequestStatistics:
    return RequestStatistics(repository, employees=employees)


@pytest.fixture
def make_candidate():
    """Factory for valid signup candidates."""
    def _make(username: str = "alice", **overrides) -> dict:
        candidate = {
            "username": username,
            "password": "s3cret-pass",
            "name": f"{username.title()} Example",
            "email": f"{username}@company.com",
        }
        candidate.update(overrides)
        return candidate
    return _make
