"""Workflow error taxonomy."""

from __future__ import annotations

from .types import RequestStatus


class WorkflowError(Exception):
    """Base class for errors reported by the request workflow."""
    code = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(WorkflowError):
    """Missing or malformed fields. Caller error, not retried."""
    code = "invalid_input"


class UsernameTaken(WorkflowError):
    """Subject already has a pending request or an existing account."""
    code = "username_taken"


class NotFound(WorkflowError):
    """Unknown request id (or unknown employee)."""
    code = "not_found"


class AlreadyResolved(WorkflowError):
    """Resolution attempted on a request that is no longer pending."""
    code = "already_resolved"

    def __init__(self, status: RequestStatus, request_id: str = ""):
        label = f"Request {request_id} is" if request_id else "Request is"
        super().__init__(f"{label} already {status.value}")
        self.status = status
        self.request_id = request_id


class DirectorySideEffectFailed(WorkflowError):
    """Account creation or employee update failed during approval.

    The request stays pending and resolution can be retried.
    """
    code = "directory_side_effect_failed"

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DirectoryUnavailable(WorkflowError):
    """A directory lookup failed before anything was persisted."""
    code = "directory_unavailable"


class StorageError(WorkflowError):
    """The primary store could not be read or written."""
    code = "storage_error"


class DuplicateActiveRequest(WorkflowError):
    """Repository-level guard: a pending request exists for the subject."""
    code = "duplicate_active_request"

    def __init__(self, subject: str, existing_id: str):
        super().__init__(f"A pending request already exists for {subject}: {existing_id}")
        self.subject = subject
        self.existing_id = existing_id


class StorageInconsistency(Exception):
    """Mirror write failed after the primary store accepted the write.

    Logged by the repository, never surfaced to callers.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause
