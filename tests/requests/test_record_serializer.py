"""Tests for request record parsing."""

from datetime import date, datetime, timezone

import pytest

from attendance_svc.requests.serializer import (
    RecordFormatError,
    decode_records,
    parse_records,
    parse_request,
    serialize_request,
)
from attendance_svc.requests.types import (
    Request,
    RequestKind,
    RequestStatus,
    SignupPayload,
)
from attendance_svc.work_modes import WorkMode


def _signup_record(**overrides):
    record = {
        "request_id": "REQ-1",
        "subject": "alice",
        "kind": "account_signup",
        "status": "pending",
        "requested_at": "2025-06-01T09:00:00+00:00",
        "payload": {
            "username": "alice",
            "name": "Alice Example",
            "email": "alice@company.com",
            "password": "s3cret-pass",
            "work_mode": "semi_remote",
        },
    }
    record.update(overrides)
    return record


class TestParseRequest:
    """Tests for parsing a single stored record."""

    def test_signup_record(self):
        req = parse_request(_signup_record())

        assert req.kind == RequestKind.ACCOUNT_SIGNUP
        assert req.status == RequestStatus.PENDING
        assert req.payload.password == "s3cret-pass"
        assert req.payload.work_mode == WorkMode.SEMI_REMOTE
        assert req.payload.role == "employee"

    def test_resolved_record_drops_password(self):
        """A hand-edited mirror cannot reintroduce a credential on a resolved request."""
        req = parse_request(_signup_record(status="approved", resolved_by="hrmanager"))

        assert req.payload.password is None

    def test_work_mode_record(self):
        req = parse_request({
            "request_id": "REQ-2",
            "subject": "E1",
            "kind": "work_mode_change",
            "status": "rejected",
            "rejection_reason": "team is on site",
            "payload": {"current_mode": "in_office", "requested_mode": "fully_remote"},
        })

        assert req.payload.employee_id == "E1"
        assert req.payload.requested_mode == WorkMode.FULLY_REMOTE
        assert req.rejection_reason == "team is on site"

    def test_yaml_timestamps_become_strings(self):
        """Unquoted YAML timestamps and dates load as objects; they are stored as ISO text."""
        record = _signup_record(requested_at=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc))
        record["payload"]["hire_date"] = date(2024, 2, 1)

        req = parse_request(record)

        assert req.requested_at == "2025-06-01T09:00:00+00:00"
        assert req.payload.hire_date == "2024-02-01"

    @pytest.mark.parametrize("record", [
        "not a mapping",
        {"subject": "alice", "kind": "account_signup"},
        {"request_id": "REQ-1", "subject": "alice", "kind": "teleport"},
        {"request_id": "REQ-1", "subject": "alice", "kind": "account_signup", "status": "lost"},
        {"request_id": "REQ-1", "subject": "alice", "kind": "account_signup", "payload": ["x"]},
        {"request_id": "REQ-1", "subject": "E1", "kind": "work_mode_change", "payload": {}},
    ])
    def test_invalid_records(self, record):
        with pytest.raises(RecordFormatError):
            parse_request(record)


class TestSerialize:
    """Tests for the stored shape."""

    def test_password_only_kept_while_pending(self):
        req = Request(
            request_id="REQ-1",
            subject="alice",
            kind=RequestKind.ACCOUNT_SIGNUP,
            payload=SignupPayload(username="alice", name="Alice", email="a@company.com", password="pw1234"),
        )
        assert serialize_request(req)["payload"]["password"] == "pw1234"

        req.status = RequestStatus.REJECTED
        assert "password" not in serialize_request(req)["payload"]

    def test_parse_records_skips_bad_entries(self, caplog):
        parsed = parse_records([_signup_record(), {"kind": "nope"}], source="mirror")

        assert [r.request_id for r in parsed] == ["REQ-1"]
        assert "Skipping invalid record from mirror" in caplog.text

    @pytest.mark.parametrize("raw", [b"{broken", b'{"requests": []}', b"\xff\xfe"])
    def test_decode_rejects_non_list(self, raw):
        with pytest.raises(RecordFormatError):
            decode_records(raw)
