"""
Request & Approval Workflow

Unprivileged actors submit requests (new-account signups, work-mode
changes). Reviewers approve or reject them; an approval applies the change
to the authoritative directory exactly once.
"""

from .types import (
    RequestStatus,
    RequestKind,
    SignupPayload,
    WorkModePayload,
    Request,
)
from .errors import (
    WorkflowError,
    InvalidInput,
    UsernameTaken,
    NotFound,
    AlreadyResolved,
    DirectorySideEffectFailed,
    DirectoryUnavailable,
    StorageError,
    DuplicateActiveRequest,
    StorageInconsistency,
)
from .repository import RequestRepository
from .engine import WorkflowEngine, WorkflowResult
from .stats import RequestStatistics

__all__ = [
    "RequestStatus",
    "RequestKind",
    "SignupPayload",
    "WorkModePayload",
    "Request",
    "WorkflowError",
    "InvalidInput",
    "UsernameTaken",
    "NotFound",
    "AlreadyResolved",
    "DirectorySideEffectFailed",
    "DirectoryUnavailable",
    "StorageError",
    "DuplicateActiveRequest",
    "StorageInconsistency",
    "RequestRepository",
    "WorkflowEngine",
    "WorkflowResult",
    "RequestStatistics",
]
