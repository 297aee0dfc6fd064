"""Record (de)serialization for requests.

The same dictionary shape is written to the primary store (as JSON) and to
the mirror file (as YAML).
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any

from .types import (
    Request,
    RequestKind,
    RequestStatus,
    SignupPayload,
    WorkModePayload,
)
from ..work_modes import WorkMode

logger = logging.getLogger(__name__)


def _timestamp(value: Any) -> str | None:
    # Hand-edited YAML turns unquoted timestamps and dates into objects.
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class RecordFormatError(ValueError):
    """Raised when a stored record cannot be parsed."""
    pass


def serialize_request(req: Request) -> dict[str, Any]:
    """Serialize a request to a dictionary.

    The password never appears in the output once the request has left
    pending, whatever the in-memory payload holds.
    """
    return {
        "request_id": req.request_id,
        "subject": req.subject,
        "kind": req.kind.value,
        "payload": _serialize_payload(req.payload, include_secret=req.is_pending),
        "status": req.status.value,
        "requested_at": req.requested_at,
        "resolved_at": req.resolved_at,
        "resolved_by": req.resolved_by,
        "rejection_reason": req.rejection_reason,
    }


def _serialize_payload(payload: SignupPayload | WorkModePayload, include_secret: bool) -> dict[str, Any]:
    if isinstance(payload, SignupPayload):
        data: dict[str, Any] = {
            "username": payload.username,
            "name": payload.name,
            "email": payload.email,
            "role": payload.role,
            "department": payload.department,
            "position": payload.position,
            "work_mode": payload.work_mode.value,
            "hire_date": payload.hire_date,
        }
        if include_secret and payload.password is not None:
            data["password"] = payload.password
        return data

    data = {
        "employee_id": payload.employee_id,
        "current_mode": payload.current_mode.value,
        "requested_mode": payload.requested_mode.value,
    }
    if payload.reason:
        data["reason"] = payload.reason
    return data


def parse_request(data: dict[str, Any]) -> Request:
    """Parse a single request from a dictionary."""
    if not isinstance(data, dict):
        raise RecordFormatError(f"Expected a mapping, got {type(data).__name__}")

    request_id = data.get("request_id")
    subject = data.get("subject")
    if not request_id or not subject:
        raise RecordFormatError("Record is missing request_id or subject")

    try:
        kind = RequestKind(data.get("kind"))
        status = RequestStatus(data.get("status", RequestStatus.PENDING.value))
    except ValueError as e:
        raise RecordFormatError(f"Record {request_id}: {e}") from e

    payload_data = data.get("payload") or {}
    if not isinstance(payload_data, dict):
        raise RecordFormatError(f"Record {request_id}: payload is not a mapping")

    try:
        if kind == RequestKind.ACCOUNT_SIGNUP:
            payload: SignupPayload | WorkModePayload = SignupPayload(
                username=payload_data.get("username", subject),
                name=payload_data.get("name", ""),
                email=payload_data.get("email", ""),
                # A resolved record must never carry a credential, even if
                # someone hand-edited the mirror.
                password=payload_data.get("password") if status == RequestStatus.PENDING else None,
                role=payload_data.get("role", "employee"),
                department=payload_data.get("department", ""),
                position=payload_data.get("position", ""),
                work_mode=WorkMode(payload_data.get("work_mode", WorkMode.IN_OFFICE.value)),
                hire_date=_timestamp(payload_data.get("hire_date")),
            )
        else:
            payload = WorkModePayload(
                employee_id=payload_data.get("employee_id", subject),
                current_mode=WorkMode(payload_data["current_mode"]),
                requested_mode=WorkMode(payload_data["requested_mode"]),
                reason=payload_data.get("reason"),
            )
    except (KeyError, ValueError) as e:
        raise RecordFormatError(f"Record {request_id}: bad payload ({e})") from e

    return Request(
        request_id=str(request_id),
        subject=str(subject),
        kind=kind,
        payload=payload,
        status=status,
        requested_at=_timestamp(data.get("requested_at")),
        resolved_at=_timestamp(data.get("resolved_at")),
        resolved_by=data.get("resolved_by"),
        rejection_reason=data.get("rejection_reason"),
    )


def parse_records(records: list[Any], source: str = "store") -> list[Request]:
    """Parse a list of raw records, skipping (and logging) invalid ones."""
    parsed = []
    for raw in records:
        try:
            parsed.append(parse_request(raw))
        except RecordFormatError as e:
            logger.warning(f"Skipping invalid record from {source}: {e}")
    return parsed


def encode_records(requests: list[Request]) -> bytes:
    """Encode a request collection for the primary store."""
    return json.dumps([serialize_request(r) for r in requests], ensure_ascii=False).encode("utf-8")


def decode_records(raw: bytes) -> list[Any]:
    """Decode the primary store value into raw record dictionaries."""
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RecordFormatError(f"Stored collection is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise RecordFormatError("Stored collection is not a list")
    return data
