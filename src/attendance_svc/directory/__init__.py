"""Directory ports and adapters for accounts and employee records."""

from .base import (
    AccountCreationError,
    AccountErrorKind,
    DirectoryError,
    DirectoryUnavailableError,
    Employee,
    EmployeeDirectory,
    EmployeeUpdateError,
    IdentityDirectory,
)
from .http import HttpEmployeeDirectory, HttpIdentityDirectory
from .memory import InMemoryEmployeeDirectory, InMemoryIdentityDirectory

__all__ = [
    "AccountCreationError",
    "AccountErrorKind",
    "DirectoryError",
    "DirectoryUnavailableError",
    "Employee",
    "EmployeeDirectory",
    "EmployeeUpdateError",
    "IdentityDirectory",
    "HttpEmployeeDirectory",
    "HttpIdentityDirectory",
    "InMemoryEmployeeDirectory",
    "InMemoryIdentityDirectory",
]
