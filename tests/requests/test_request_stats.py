"""Tests for reviewer dashboard counters."""

import httpx
import pytest

from attendance_svc.config import DirectoryConfig
from attendance_svc.directory.http import HttpEmployeeDirectory
from attendance_svc.requests.errors import DirectoryUnavailable
from attendance_svc.requests.stats import RequestStatistics
from attendance_svc.requests.types import RequestKind


def _unavailable_employees() -> HttpEmployeeDirectory:
    """Employee directory whose gateway answers every call with 503."""
    client = httpx.AsyncClient(
        base_url="http://gateway.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    return HttpEmployeeDirectory(DirectoryConfig(mode="http", base_url="http://gateway.test"), client=client)


@pytest.fixture
def populated(engine, make_candidate):
    """Submit a mix of requests and resolve some of them."""
    async def _populate():
        alice = await engine.submit_signup(make_candidate("alice"))
        bob = await engine.submit_signup(make_candidate("bob"))
        await engine.submit_signup(make_candidate("carol"))
        e1 = await engine.submit_work_mode_change("E1", "fully_remote")
        await engine.submit_work_mode_change("E2", "semi_remote")
        await engine.submit_work_mode_change("E3", "fully_remote")

        await engine.approve(alice.request_id, "hrmanager")
        await engine.reject(bob.request_id, "hrmanager", "duplicate")
        await engine.approve(e1.request_id, "hrmanager")
    return _populate


class TestCounts:
    """Tests for status and kind counters."""

    @pytest.mark.asyncio
    async def test_empty(self, stats):
        assert await stats.counts_by_status() == {
            "pending": 0, "approved": 0, "rejected": 0, "total": 0,
        }
        assert await stats.pending_count() == 0

    @pytest.mark.asyncio
    async def test_counts_by_status(self, stats, populated):
        await populated()

        assert await stats.counts_by_status() == {
            "pending": 3, "approved": 2, "rejected": 1, "total": 6,
        }
        assert await stats.counts_by_status(RequestKind.ACCOUNT_SIGNUP) == {
            "pending": 1, "approved": 1, "rejected": 1, "total": 3,
        }

    @pytest.mark.asyncio
    async def test_pending_counts_by_kind(self, stats, populated):
        await populated()

        assert await stats.pending_count() == 3
        assert await stats.pending_count(RequestKind.ACCOUNT_SIGNUP) == 1
        assert await stats.pending_count(RequestKind.WORK_MODE_CHANGE) == 2

    @pytest.mark.asyncio
    async def test_pending_views(self, stats, populated):
        await populated()

        assert [r.subject for r in await stats.pending_signups()] == ["carol"]
        assert [r.subject for r in await stats.pending_work_mode_changes()] == ["E3", "E2"]


class TestWorkModeCounts:
    """Tests for work-mode projections."""

    @pytest.mark.asyncio
    async def test_requested_modes(self, stats, populated):
        await populated()

        assert await stats.counts_by_work_mode() == {
            "In Office": 0, "Semi-Remote": 1, "Fully Remote": 2,
        }

    @pytest.mark.asyncio
    async def test_employee_distribution_follows_approvals(self, stats, populated):
        """E1 moved to fully remote on approval; the pending changes have not applied."""
        await populated()

        assert await stats.employee_work_mode_statistics() == {
            "total": 3, "in_office": 0, "semi_remote": 1, "fully_remote": 2,
        }

    @pytest.mark.asyncio
    async def test_no_employee_directory(self, repository):
        stats = RequestStatistics(repository)

        assert await stats.employee_work_mode_statistics() == {
            "total": 0, "in_office": 0, "semi_remote": 0, "fully_remote": 0,
        }

    @pytest.mark.asyncio
    async def test_employee_directory_down(self, repository):
        stats = RequestStatistics(repository, employees=_unavailable_employees())

        with pytest.raises(DirectoryUnavailable):
            await stats.employee_work_mode_statistics()
