"""Read-side projections over the request repository."""

from __future__ import annotations

from ..directory.base import DirectoryError, EmployeeDirectory
from ..work_modes import WorkMode
from .errors import DirectoryUnavailable
from .repository import RequestRepository
from .types import Request, RequestKind, RequestStatus, WorkModePayload


class RequestStatistics:
    """Counts and filtered views for reviewer screens. Recomputed on every call."""

    def __init__(
        self,
        repository: RequestRepository,
        employees: EmployeeDirectory | None = None,
    ) -> None:
        self.repository = repository
        self.employees = employees

    async def counts_by_status(self, kind: RequestKind | None = None) -> dict[str, int]:
        """Counts of requests grouped by status, plus a total."""
        requests = await self.repository.list(kind=kind)
        counts = {status.value: 0 for status in RequestStatus}
        for req in requests:
            counts[req.status.value] += 1
        counts["total"] = len(requests)
        return counts

    async def pending_count(self, kind: RequestKind | None = None) -> int:
        return len(await self.repository.list(status=RequestStatus.PENDING, kind=kind))

    async def counts_by_work_mode(self, status: RequestStatus | None = None) -> dict[str, int]:
        """Work-mode requests counted by requested mode label."""
        requests = await self.repository.list(status=status, kind=RequestKind.WORK_MODE_CHANGE)
        counts = {mode.label: 0 for mode in WorkMode}
        for req in requests:
            payload = req.payload
            if isinstance(payload, WorkModePayload):
                counts[payload.requested_mode.label] += 1
        return counts

    async def pending_signups(self) -> list[Request]:
        return await self.repository.list(
            status=RequestStatus.PENDING, kind=RequestKind.ACCOUNT_SIGNUP,
        )

    async def pending_work_mode_changes(self) -> list[Request]:
        return await self.repository.list(
            status=RequestStatus.PENDING, kind=RequestKind.WORK_MODE_CHANGE,
        )

    async def employee_work_mode_statistics(self) -> dict[str, int]:
        """Current work-mode distribution of the employee roster."""
        counts = {"total": 0, **{mode.value: 0 for mode in WorkMode}}
        if self.employees is None:
            return counts

        try:
            employees = await self.employees.list_employees()
        except DirectoryError as e:
            raise DirectoryUnavailable(f"Could not list employees: {e}") from e

        for employee in employees:
            counts["total"] += 1
            counts[employee.work_mode.value] += 1
        return counts
