"""Request workflow types - domain types for signup and work-mode requests."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..work_modes import WorkMode


class RequestStatus(str, Enum):
    """Status of a request through the approval workflow."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class RequestKind(str, Enum):
    """What the request asks for."""
    ACCOUNT_SIGNUP = "account_signup"
    WORK_MODE_CHANGE = "work_mode_change"


@dataclass(frozen=True, slots=True)
class SignupPayload:
    """Credentials and profile fields of a new-account request.

    ``password`` is only set while the request is pending.
    """
    username: str
    name: str
    email: str
    password: str | None = None
    role: str = "employee"
    department: str = ""
    position: str = ""
    work_mode: WorkMode = WorkMode.IN_OFFICE
    hire_date: str | None = None  # YYYY-MM-DD

    def profile_fields(self, default_hire_date: str = "") -> dict[str, str]:
        """Profile fields handed to the identity directory on approval.

        ``default_hire_date`` stands in when the request carries no hire date.
        """
        return {
            "name": self.name,
            "role": self.role,
            "department": self.department,
            "position": self.position,
            "workMode": self.work_mode.value,
            "hireDate": self.hire_date or default_hire_date,
        }


@dataclass(frozen=True, slots=True)
class WorkModePayload:
    """An employee's ask to move to a different work mode."""
    employee_id: str
    current_mode: WorkMode
    requested_mode: WorkMode
    reason: str | None = None


@dataclass(slots=True)
class Request:
    """
    A pending or resolved ask for account creation or a work-mode change.

    Resolved requests are kept as an audit trail; they are never deleted.
    """
    request_id: str
    subject: str  # username for signups, employee id for work-mode changes
    kind: RequestKind
    payload: SignupPayload | WorkModePayload

    # Workflow state
    status: RequestStatus = RequestStatus.PENDING

    # Timestamps (ISO format, UTC)
    requested_at: str | None = None
    resolved_at: str | None = None

    # Review
    resolved_by: str | None = None
    rejection_reason: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING
