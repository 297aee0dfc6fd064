"""Pydantic models for Request API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# Request Body Models
# =============================================================================

class SignupBody(BaseModel):
    """Body for submitting a new-account request."""
    username: str = ""
    password: str = ""
    name: str = ""
    email: str = ""
    role: str | None = None
    department: str | None = None
    position: str | None = None
    work_mode: str | None = None
    hire_date: str | None = None


class WorkModeChangeBody(BaseModel):
    """Body for submitting a work-mode change."""
    employee_id: str
    requested_mode: str
    reason: str | None = None


class ReviewActionBody(BaseModel):
    """Body for approve/reject actions."""
    actor: str
    reason: str = ""


# =============================================================================
# Response Models
# =============================================================================

class RequestModel(BaseModel):
    """Full representation of a request (credentials are never returned)."""
    request_id: str
    subject: str
    kind: str
    payload: dict[str, Any] = Field(default_factory=dict)
    status: str = "pending"
    requested_at: str | None = None
    resolved_at: str | None = None
    resolved_by: str | None = None
    rejection_reason: str | None = None


class RequestListResponse(BaseModel):
    """Response for listing requests."""
    requests: list[RequestModel]
    total: int
    by_status: dict[str, int] = Field(default_factory=dict)


class SubmitResponse(BaseModel):
    """Response after submitting a request."""
    success: bool = True
    request_id: str
    status: str
    message: str = ""


class StatsResponse(BaseModel):
    """Reviewer dashboard counters."""
    by_status: dict[str, int]
    pending_signups: int
    pending_work_mode_changes: int
    requested_work_modes: dict[str, int]
    employees: dict[str, int]


class WorkModeModel(BaseModel):
    value: str
    label: str
    description: str = ""
