"""In-memory directories for local runs and tests."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Any

from ..work_modes import WorkMode
from .base import (
    AccountCreationError,
    AccountErrorKind,
    DirectoryUnavailableError,
    Employee,
    EmployeeDirectory,
    EmployeeUpdateError,
    IdentityDirectory,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class InMemoryIdentityDirectory(IdentityDirectory):
    """
    Account directory held in a dict.

    Applies the same checks the hosted identity provider does: unique
    username, unique email, a plausible email address and a minimum
    password length. ``fail_with`` forces the next create_account calls to
    fail with a given kind; ``available`` switches the whole directory off.
    """

    def __init__(self, accounts: dict[str, dict[str, Any]] | None = None):
        self.accounts: dict[str, dict[str, Any]] = {}
        self.available = True
        self.fail_with: AccountErrorKind | None = None
        self.create_calls = 0
        for username, fields in (accounts or {}).items():
            self.accounts[username] = {"account_id": f"uid-{username}", **fields}

    def _check_available(self) -> None:
        if not self.available:
            raise DirectoryUnavailableError("Identity directory unavailable")

    async def username_exists(self, username: str) -> bool:
        self._check_available()
        return username in self.accounts

    async def create_account(
        self,
        username: str,
        password: str,
        email: str,
        profile: dict[str, Any],
    ) -> str:
        self.create_calls += 1
        if not self.available:
            raise AccountCreationError(AccountErrorKind.UNAVAILABLE, "Identity directory unavailable")
        if self.fail_with is not None:
            raise AccountCreationError(self.fail_with)

        if username in self.accounts:
            raise AccountCreationError(AccountErrorKind.USERNAME_TAKEN, f"Username already exists: {username}")
        if "@" not in email:
            raise AccountCreationError(AccountErrorKind.INVALID_EMAIL, f"Invalid email: {email}")
        if any(a.get("email") == email for a in self.accounts.values()):
            raise AccountCreationError(AccountErrorKind.EMAIL_IN_USE, f"Email already in use: {email}")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AccountCreationError(AccountErrorKind.WEAK_PASSWORD, "Password is too weak")

        account_id = f"uid-{uuid.uuid4().hex[:16]}"
        self.accounts[username] = {"account_id": account_id, "email": email, **profile}
        logger.info(f"Account created: {username} ({account_id})")
        return account_id


class InMemoryEmployeeDirectory(EmployeeDirectory):
    """Employee records held in a dict keyed by employee id."""

    def __init__(self, employees: list[Employee] | None = None):
        self.employees: dict[str, Employee] = {e.employee_id: e for e in employees or []}
        self.fail_updates = False
        self.history: list[tuple[str, WorkMode, str]] = []

    async def get_employee(self, employee_id: str) -> Employee | None:
        return self.employees.get(employee_id)

    async def list_employees(self) -> list[Employee]:
        return list(self.employees.values())

    async def apply_work_mode_change(
        self,
        employee_id: str,
        new_mode: WorkMode,
        changed_by: str,
    ) -> None:
        if self.fail_updates:
            raise EmployeeUpdateError(f"Employee directory rejected update for {employee_id}")

        employee = self.employees.get(employee_id)
        if employee is None:
            raise EmployeeUpdateError(f"Unknown employee: {employee_id}")

        self.employees[employee_id] = dataclasses.replace(employee, work_mode=new_mode)
        self.history.append((employee_id, new_mode, changed_by))
        logger.info(f"Employee {employee_id} work mode -> {new_mode.value} by {changed_by}")
