"""Directory ports - the authoritative account and employee records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..work_modes import WorkMode


class AccountErrorKind(str, Enum):
    """Why the identity directory refused to create an account."""
    EMAIL_IN_USE = "email_in_use"
    WEAK_PASSWORD = "weak_password"
    INVALID_EMAIL = "invalid_email"
    USERNAME_TAKEN = "username_taken"
    UNAVAILABLE = "unavailable"


class DirectoryError(Exception):
    """Base class for directory failures."""
    pass


class DirectoryUnavailableError(DirectoryError):
    """The directory could not be reached or answered with a server error."""
    pass


class AccountCreationError(DirectoryError):
    """Raised by create_account with a typed reason."""

    def __init__(self, kind: AccountErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind


class EmployeeUpdateError(DirectoryError):
    """Raised when an employee record cannot be updated."""
    pass


@dataclass(frozen=True, slots=True)
class Employee:
    """An employee record as seen by the workflow."""
    employee_id: str
    name: str = ""
    username: str = ""
    department: str = ""
    position: str = ""
    work_mode: WorkMode = WorkMode.IN_OFFICE


class IdentityDirectory(ABC):
    """Authoritative account directory."""

    @abstractmethod
    async def username_exists(self, username: str) -> bool:
        """Return True if an account with this username already exists."""
        ...

    @abstractmethod
    async def create_account(
        self,
        username: str,
        password: str,
        email: str,
        profile: dict[str, Any],
    ) -> str:
        """Create an account and return its id. Raises AccountCreationError."""
        ...


class EmployeeDirectory(ABC):
    """Authoritative employee records."""

    @abstractmethod
    async def get_employee(self, employee_id: str) -> Employee | None:
        ...

    @abstractmethod
    async def list_employees(self) -> list[Employee]:
        ...

    @abstractmethod
    async def apply_work_mode_change(
        self,
        employee_id: str,
        new_mode: WorkMode,
        changed_by: str,
    ) -> None:
        """Set an employee's work mode. Raises EmployeeUpdateError."""
        ...
