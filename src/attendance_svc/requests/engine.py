"""Workflow engine - validation, uniqueness and state transitions.

Flow for a signup:
1. Candidate fields are validated
2. The local repository is checked for a pending request (cheap)
3. The identity directory is asked whether the username exists (remote)
4. The request is persisted as pending
5. A reviewer approves or rejects; on approval the account is created
   BEFORE the status change is committed, so a failed creation leaves the
   request pending and the reviewer can retry.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from ..directory.base import (
    AccountCreationError,
    AccountErrorKind,
    DirectoryError,
    EmployeeDirectory,
    IdentityDirectory,
)
from ..profiles import EMPTY_PROFILES, ProfileTable
from ..work_modes import WorkMode
from .errors import (
    DirectorySideEffectFailed,
    DirectoryUnavailable,
    DuplicateActiveRequest,
    InvalidInput,
    NotFound,
    UsernameTaken,
    WorkflowError,
)
from .repository import RequestRepository
from .types import (
    Request,
    RequestKind,
    RequestStatus,
    SignupPayload,
    WorkModePayload,
)

logger = logging.getLogger(__name__)

REQUIRED_SIGNUP_FIELDS = ("username", "password", "name", "email")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of a public workflow operation."""
    success: bool
    request_id: str | None = None
    error: WorkflowError | None = None
    request: Request | None = None

    @property
    def reason(self) -> str:
        """Human-readable failure reason (empty on success)."""
        return self.error.message if self.error else ""

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    @classmethod
    def ok(cls, request: Request) -> WorkflowResult:
        return cls(success=True, request_id=request.request_id, request=request)

    @classmethod
    def failed(cls, error: WorkflowError, request_id: str | None = None) -> WorkflowResult:
        return cls(success=False, request_id=request_id, error=error)


def _coerce_outcome(outcome: RequestStatus | str) -> RequestStatus:
    try:
        status = RequestStatus(outcome)
    except ValueError:
        raise InvalidInput(f"Invalid outcome: {outcome}")
    if not status.is_terminal:
        raise InvalidInput("Outcome must be approved or rejected")
    return status


class WorkflowEngine:
    """
    The request state machine.

    Collaborators are injected: the repository owns the records, the
    identity directory owns accounts, the employee directory owns work
    modes, and the profile table supplies defaults for known staff.
    """

    def __init__(
        self,
        repository: RequestRepository,
        identity: IdentityDirectory,
        employees: EmployeeDirectory | None = None,
        profiles: ProfileTable = EMPTY_PROFILES,
        default_role: str = "employee",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.identity = identity
        self.employees = employees
        self.profiles = profiles
        self.default_role = default_role
        self._clock = clock

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def submit_signup(self, candidate: Mapping[str, Any]) -> WorkflowResult:
        """Submit a new-account request. Returns the new request id on success."""
        try:
            request = await self._submit_signup(candidate)
        except WorkflowError as e:
            logger.info(f"Signup rejected for {candidate.get('username')!r}: {e.message}")
            return WorkflowResult.failed(e)
        return WorkflowResult.ok(request)

    async def _submit_signup(self, candidate: Mapping[str, Any]) -> Request:
        fields = {
            name: str(candidate.get(name) or "").strip()
            for name in REQUIRED_SIGNUP_FIELDS
        }
        missing = [name for name, value in fields.items() if not value]
        if missing:
            raise InvalidInput(f"All fields are required (missing: {', '.join(missing)})")

        username = fields["username"]
        if "@" not in fields["email"]:
            raise InvalidInput(f"Invalid email address: {fields['email']}")

        profile = self.profiles.get(username)

        work_mode = WorkMode.IN_OFFICE
        if candidate.get("work_mode"):
            try:
                work_mode = WorkMode.parse(candidate["work_mode"])
            except ValueError as e:
                raise InvalidInput(str(e))
        elif profile and profile.work_mode:
            work_mode = profile.work_mode

        # Cheap local check first, then the remote directory, both before
        # anything is written.
        if await self.repository.find_by_subject(username, RequestKind.ACCOUNT_SIGNUP) is not None:
            raise UsernameTaken("Username already exists or has a pending request")

        try:
            exists = await self.identity.username_exists(username)
        except DirectoryError as e:
            raise DirectoryUnavailable(f"Could not verify username: {e}")
        if exists:
            raise UsernameTaken("Username already exists")

        payload = SignupPayload(
            username=username,
            # Credentials are taken verbatim; only blank ones are refused.
            password=str(candidate["password"]),
            name=fields["name"],
            email=fields["email"],
            role=str(candidate.get("role") or (profile.role if profile else "") or self.default_role),
            department=str(candidate.get("department") or (profile.department if profile else "")),
            position=str(candidate.get("position") or (profile.position if profile else "")),
            work_mode=work_mode,
            hire_date=str(candidate.get("hire_date") or (profile.hire_date if profile else "") or "") or None,
        )
        request = Request(
            request_id="",
            subject=username,
            kind=RequestKind.ACCOUNT_SIGNUP,
            payload=payload,
        )

        try:
            await self.repository.submit(request)
        except DuplicateActiveRequest:
            raise UsernameTaken("Username already exists or has a pending request")
        return request

    async def submit_work_mode_change(
        self,
        employee_id: str,
        requested_mode: WorkMode | str,
        reason: str | None = None,
    ) -> WorkflowResult:
        """Submit an employee's request to change work mode."""
        try:
            request = await self._submit_work_mode_change(employee_id, requested_mode, reason)
        except WorkflowError as e:
            logger.info(f"Work mode request rejected for {employee_id!r}: {e.message}")
            return WorkflowResult.failed(e)
        return WorkflowResult.ok(request)

    async def _submit_work_mode_change(
        self,
        employee_id: str,
        requested_mode: WorkMode | str,
        reason: str | None,
    ) -> Request:
        employee_id = (employee_id or "").strip()
        if not employee_id:
            raise InvalidInput("Employee id is required")

        try:
            mode = WorkMode.parse(requested_mode)
        except ValueError:
            valid = ", ".join(m.value for m in WorkMode)
            raise InvalidInput(f"Unknown work mode: {requested_mode} (expected one of: {valid})")

        if self.employees is None:
            raise DirectoryUnavailable("No employee directory configured")

        try:
            employee = await self.employees.get_employee(employee_id)
        except DirectoryError as e:
            raise DirectoryUnavailable(f"Could not look up employee: {e}")
        if employee is None:
            raise NotFound(f"Unknown employee: {employee_id}")

        if employee.work_mode == mode:
            raise InvalidInput(f"Employee {employee_id} is already {mode.label}")

        if await self.repository.find_by_subject(employee_id, RequestKind.WORK_MODE_CHANGE) is not None:
            raise UsernameTaken(f"Employee {employee_id} already has a pending request")

        request = Request(
            request_id="",
            subject=employee_id,
            kind=RequestKind.WORK_MODE_CHANGE,
            payload=WorkModePayload(
                employee_id=employee_id,
                current_mode=employee.work_mode,
                requested_mode=mode,
                reason=(reason or "").strip() or None,
            ),
        )

        try:
            await self.repository.submit(request)
        except DuplicateActiveRequest:
            raise UsernameTaken(f"Employee {employee_id} already has a pending request")
        return request

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def resolve(
        self,
        request_id: str,
        outcome: RequestStatus | str,
        actor: str,
        reason: str | None = None,
    ) -> WorkflowResult:
        """Approve or reject a pending request."""
        try:
            request = await self._resolve(request_id, outcome, actor, reason)
        except WorkflowError as e:
            logger.warning(f"Resolution of {request_id} failed: {e.message}")
            return WorkflowResult.failed(e, request_id=request_id)
        return WorkflowResult.ok(request)

    async def approve(self, request_id: str, actor: str) -> WorkflowResult:
        return await self.resolve(request_id, RequestStatus.APPROVED, actor)

    async def reject(self, request_id: str, actor: str, reason: str = "") -> WorkflowResult:
        return await self.resolve(request_id, RequestStatus.REJECTED, actor, reason)

    async def _resolve(
        self,
        request_id: str,
        outcome: RequestStatus | str,
        actor: str,
        reason: str | None,
    ) -> Request:
        status = _coerce_outcome(outcome)
        actor = (actor or "").strip()
        if not actor:
            raise InvalidInput("Reviewer is required")

        # Raises NotFound before any lock is taken.
        await self.repository.find(request_id)

        before_commit = None
        if status == RequestStatus.APPROVED:
            before_commit = functools.partial(self._apply_approval, actor=actor)

        return await self.repository.resolve(
            request_id, status, actor, reason=reason, before_commit=before_commit,
        )

    async def _apply_approval(self, request: Request, actor: str) -> None:
        """External side effect of an approval; raising blocks the commit."""
        payload = request.payload
        if request.kind == RequestKind.ACCOUNT_SIGNUP and isinstance(payload, SignupPayload):
            await self._create_account(request.request_id, payload)
        elif request.kind == RequestKind.WORK_MODE_CHANGE and isinstance(payload, WorkModePayload):
            await self._change_work_mode(payload, actor)
        else:
            raise InvalidInput(
                f"Request {request.request_id} has a {type(payload).__name__} payload for {request.kind.value}"
            )

    async def _create_account(self, request_id: str, payload: SignupPayload) -> None:
        if not payload.password:
            raise DirectorySideEffectFailed(
                f"Request {request_id} has no credential; it must be rejected and resubmitted"
            )

        try:
            account_id = await self.identity.create_account(
                payload.username,
                payload.password,
                payload.email,
                payload.profile_fields(default_hire_date=self._clock().date().isoformat()),
            )
        except AccountCreationError as e:
            if e.kind == AccountErrorKind.USERNAME_TAKEN:
                raise UsernameTaken(f"Username already exists: {payload.username}")
            raise DirectorySideEffectFailed(f"Account creation failed ({e.kind.value}): {e}", cause=e)
        except DirectoryError as e:
            raise DirectorySideEffectFailed(f"Account creation failed: {e}", cause=e)

        logger.info(f"Account {account_id} created for {payload.username} ({request_id})")

    async def _change_work_mode(self, payload: WorkModePayload, actor: str) -> None:
        if self.employees is None:
            raise DirectorySideEffectFailed("No employee directory configured")

        try:
            await self.employees.apply_work_mode_change(
                payload.employee_id, payload.requested_mode, actor,
            )
        except DirectoryError as e:
            raise DirectorySideEffectFailed(f"Work mode update failed: {e}", cause=e)
