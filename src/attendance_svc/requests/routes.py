"""FastAPI routes for the signup / work-mode approval workflow."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from ..work_modes import all_work_modes
from .engine import WorkflowEngine, WorkflowResult
from .errors import StorageError, WorkflowError
from .models import (
    RequestListResponse,
    RequestModel,
    ReviewActionBody,
    SignupBody,
    StatsResponse,
    SubmitResponse,
    WorkModeChangeBody,
    WorkModeModel,
)
from .serializer import serialize_request
from .stats import RequestStatistics
from .types import Request, RequestKind, RequestStatus

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/requests", tags=["Requests"])

# Configuration - set during app startup
_engine: WorkflowEngine | None = None
_stats: RequestStatistics | None = None

_STATUS_CODES = {
    "invalid_input": 400,
    "not_found": 404,
    "username_taken": 409,
    "duplicate_active_request": 409,
    "already_resolved": 409,
    "directory_side_effect_failed": 502,
    "directory_unavailable": 503,
    "storage_error": 500,
}


def configure(engine: WorkflowEngine, stats: RequestStatistics) -> None:
    """Configure the request routes with the workflow engine."""
    global _engine, _stats
    _engine = engine
    _stats = stats


def _get_engine() -> tuple[WorkflowEngine, RequestStatistics]:
    """Get engine and stats, raising if not configured."""
    if _engine is None or _stats is None:
        raise HTTPException(status_code=503, detail="Request module not initialized")
    return _engine, _stats


def _raise_for(error: WorkflowError) -> None:
    raise HTTPException(status_code=_STATUS_CODES.get(error.code, 500), detail=error.message)


def _check(result: WorkflowResult) -> WorkflowResult:
    if not result.success:
        _raise_for(result.error)
    return result


def _request_to_model(req: Request) -> RequestModel:
    """Convert a Request to its response model, without credentials."""
    data = serialize_request(req)
    data["payload"].pop("password", None)
    return RequestModel(**data)


def _parse_filters(status: str | None, kind: str | None) -> tuple[RequestStatus | None, RequestKind | None]:
    try:
        filter_status = RequestStatus(status) if status else None
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
    try:
        filter_kind = RequestKind(kind) if kind else None
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid kind: {kind}")
    return filter_status, filter_kind


# =============================================================================
# Submit
# =============================================================================

@router.post("/signup", response_model=SubmitResponse)
async def submit_signup(body: SignupBody):
    """Submit a new-account request for review."""
    engine, _ = _get_engine()

    result = _check(await engine.submit_signup(body.model_dump(exclude_none=True)))
    return SubmitResponse(
        request_id=result.request_id,
        status=RequestStatus.PENDING.value,
        message="Signup request submitted for review",
    )


@router.post("/work-mode", response_model=SubmitResponse)
async def submit_work_mode_change(body: WorkModeChangeBody):
    """Submit a work-mode change for review."""
    engine, _ = _get_engine()

    result = _check(await engine.submit_work_mode_change(
        body.employee_id, body.requested_mode, body.reason,
    ))
    return SubmitResponse(
        request_id=result.request_id,
        status=RequestStatus.PENDING.value,
        message="Work mode request submitted for review",
    )


# =============================================================================
# List / Stats / Get
# =============================================================================

@router.get("", response_model=RequestListResponse)
async def list_requests(status: str | None = None, kind: str | None = None):
    """List requests (newest first), optionally filtered by status and kind."""
    engine, stats = _get_engine()
    filter_status, filter_kind = _parse_filters(status, kind)

    try:
        requests = await engine.repository.list(status=filter_status, kind=filter_kind)
        by_status = await stats.counts_by_status()
    except StorageError as e:
        _raise_for(e)

    return RequestListResponse(
        requests=[_request_to_model(r) for r in requests],
        total=len(requests),
        by_status=by_status,
    )


@router.get("/stats", response_model=StatsResponse)
async def request_stats():
    """Counters for the reviewer dashboard."""
    _, stats = _get_engine()

    try:
        return StatsResponse(
            by_status=await stats.counts_by_status(),
            pending_signups=await stats.pending_count(RequestKind.ACCOUNT_SIGNUP),
            pending_work_mode_changes=await stats.pending_count(RequestKind.WORK_MODE_CHANGE),
            requested_work_modes=await stats.counts_by_work_mode(RequestStatus.PENDING),
            employees=await stats.employee_work_mode_statistics(),
        )
    except WorkflowError as e:
        _raise_for(e)


@router.get("/work-modes", response_model=list[WorkModeModel])
async def list_work_modes():
    """The work modes an employee can request."""
    return [WorkModeModel(**m) for m in all_work_modes()]


@router.get("/{request_id}", response_model=RequestModel)
async def get_request(request_id: str):
    """Get a single request by ID."""
    engine, _ = _get_engine()

    try:
        request = await engine.repository.find(request_id)
    except WorkflowError as e:
        _raise_for(e)
    return _request_to_model(request)


# =============================================================================
# Approve / Reject
# =============================================================================

@router.post("/{request_id}/approve", response_model=RequestModel)
async def approve_request(request_id: str, body: ReviewActionBody):
    """
    Approve a request.

    The account is created (or the work mode applied) before the request is
    marked approved; if that fails the request stays pending.
    """
    engine, _ = _get_engine()

    result = _check(await engine.approve(request_id, body.actor))
    return _request_to_model(result.request)


@router.post("/{request_id}/reject", response_model=RequestModel)
async def reject_request(request_id: str, body: ReviewActionBody):
    """Reject a request with an optional reason."""
    engine, _ = _get_engine()

    result = _check(await engine.reject(request_id, body.actor, body.reason))
    return _request_to_model(result.request)


# =============================================================================
# Mirror export / import
# =============================================================================

@router.post("/save")
async def save_requests():
    """Rewrite the mirror file from the primary store."""
    engine, _ = _get_engine()

    try:
        count = await engine.repository.export_snapshot()
    except StorageError as e:
        _raise_for(e)
    return {"success": True, "count": count, "message": f"Saved {count} requests"}


@router.post("/reload")
async def reload_requests():
    """Replace the primary store contents with the mirror file."""
    engine, _ = _get_engine()

    try:
        count = await engine.repository.import_snapshot()
    except StorageError as e:
        _raise_for(e)
    return {"success": True, "count": count, "message": f"Reloaded {count} requests"}
