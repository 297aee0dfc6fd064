"""Tests for the auth gateway adapters, using httpx.MockTransport."""

import json

import httpx
import pytest

from attendance_svc.config import DirectoryConfig
from attendance_svc.directory.base import (
    AccountCreationError,
    AccountErrorKind,
    DirectoryUnavailableError,
    EmployeeUpdateError,
)
from attendance_svc.directory.http import HttpEmployeeDirectory, HttpIdentityDirectory
from attendance_svc.work_modes import WorkMode

BASE_URL = "http://gateway.test"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


def _identity(handler) -> HttpIdentityDirectory:
    return HttpIdentityDirectory(DirectoryConfig(mode="http", base_url=BASE_URL), client=_client(handler))


def _employees(handler) -> HttpEmployeeDirectory:
    return HttpEmployeeDirectory(DirectoryConfig(mode="http", base_url=BASE_URL), client=_client(handler))


class TestUsernameCheck:
    """Tests for GET /api/auth/check-username."""

    @pytest.mark.asyncio
    async def test_exists(self):
        def handler(request):
            assert request.url.path == "/api/auth/check-username/alice"
            return httpx.Response(200, json={"exists": True})

        assert await _identity(handler).username_exists("alice") is True

    @pytest.mark.asyncio
    async def test_free(self):
        directory = _identity(lambda request: httpx.Response(200, json={"exists": False}))

        assert await directory.username_exists("alice") is False

    @pytest.mark.asyncio
    async def test_server_error(self):
        directory = _identity(lambda request: httpx.Response(500, json={"error": "boom"}))

        with pytest.raises(DirectoryUnavailableError):
            await directory.username_exists("alice")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DirectoryUnavailableError):
            await _identity(handler).username_exists("alice")


class TestCreateAccount:
    """Tests for POST /api/auth/users."""

    @pytest.mark.asyncio
    async def test_success_sends_profile(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"success": True, "uid": "uid-123"})

        account_id = await _identity(handler).create_account(
            "alice", "s3cret-pass", "alice@company.com",
            {"name": "Alice", "department": "Engineering", "workMode": "semi_remote"},
        )

        assert account_id == "uid-123"
        assert seen["method"] == "POST"
        assert seen["body"]["username"] == "alice"
        assert seen["body"]["password"] == "s3cret-pass"
        assert seen["body"]["workMode"] == "semi_remote"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, body, kind", [
        (400, {"code": "auth/email-already-in-use", "error": "in use"}, AccountErrorKind.EMAIL_IN_USE),
        (400, {"code": "auth/weak-password"}, AccountErrorKind.WEAK_PASSWORD),
        (400, {"code": "auth/invalid-email"}, AccountErrorKind.INVALID_EMAIL),
        (400, {"errorKind": "username_taken"}, AccountErrorKind.USERNAME_TAKEN),
        (409, {"error": "Username already exists"}, AccountErrorKind.USERNAME_TAKEN),
        (503, {"error": "down"}, AccountErrorKind.UNAVAILABLE),
    ])
    async def test_error_mapping(self, status, body, kind):
        directory = _identity(lambda request: httpx.Response(status, json=body))

        with pytest.raises(AccountCreationError) as exc_info:
            await directory.create_account("alice", "pw1234", "alice@company.com", {})

        assert exc_info.value.kind == kind

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        directory = _identity(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(AccountCreationError) as exc_info:
            await directory.create_account("alice", "pw1234", "alice@company.com", {})

        assert exc_info.value.kind == AccountErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(AccountCreationError) as exc_info:
            await _identity(handler).create_account("alice", "pw1234", "alice@company.com", {})

        assert exc_info.value.kind == AccountErrorKind.UNAVAILABLE


class TestEmployeeDirectory:
    """Tests for the employee endpoints."""

    @pytest.mark.asyncio
    async def test_get_employee(self):
        def handler(request):
            assert request.url.path == "/api/auth/users/E1"
            return httpx.Response(200, json={
                "id": "E1", "name": "John Doe", "username": "john.doe",
                "department": "Engineering", "workMode": "Semi-Remote",
            })

        employee = await _employees(handler).get_employee("E1")

        assert employee.employee_id == "E1"
        assert employee.username == "john.doe"
        assert employee.work_mode == WorkMode.SEMI_REMOTE

    @pytest.mark.asyncio
    async def test_unknown_employee(self):
        directory = _employees(lambda request: httpx.Response(404, json={"error": "not found"}))

        assert await directory.get_employee("E99") is None

    @pytest.mark.asyncio
    async def test_list_employees_defaults_unknown_mode(self):
        directory = _employees(lambda request: httpx.Response(200, json={"users": [
            {"id": "E1", "workMode": "fully_remote"},
            {"id": "E2", "workMode": "sometimes"},
            {"id": "E3"},
        ]}))

        employees = await directory.list_employees()

        assert [e.work_mode for e in employees] == [
            WorkMode.FULLY_REMOTE, WorkMode.IN_OFFICE, WorkMode.IN_OFFICE,
        ]

    @pytest.mark.asyncio
    async def test_apply_work_mode_change(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        await _employees(handler).apply_work_mode_change("E1", WorkMode.FULLY_REMOTE, "hrmanager")

        assert seen == {
            "method": "PATCH",
            "path": "/api/auth/users/E1",
            "body": {"workMode": "fully_remote", "workModeChangedBy": "hrmanager"},
        }

    @pytest.mark.asyncio
    async def test_apply_work_mode_change_failure(self):
        directory = _employees(lambda request: httpx.Response(500))

        with pytest.raises(EmployeeUpdateError):
            await directory.apply_work_mode_change("E1", WorkMode.FULLY_REMOTE, "hrmanager")

    @pytest.mark.asyncio
    async def test_list_unavailable(self):
        directory = _employees(lambda request: httpx.Response(503))

        with pytest.raises(DirectoryUnavailableError):
            await directory.list_employees()


def _proxy_page(request):
    return httpx.Response(200, text="<html>proxy</html>")


class TestUnreadableResponses:
    """A 2xx answer that is not JSON (a captive proxy page, say)."""

    @pytest.mark.asyncio
    async def test_username_check(self):
        with pytest.raises(DirectoryUnavailableError):
            await _identity(_proxy_page).username_exists("alice")

    @pytest.mark.asyncio
    async def test_username_check_not_an_object(self):
        directory = _identity(lambda request: httpx.Response(200, json=["alice"]))

        with pytest.raises(DirectoryUnavailableError):
            await directory.username_exists("alice")

    @pytest.mark.asyncio
    async def test_create_account(self):
        with pytest.raises(AccountCreationError) as exc_info:
            await _identity(_proxy_page).create_account("alice", "pw1234", "alice@company.com", {})

        assert exc_info.value.kind == AccountErrorKind.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_get_employee(self):
        with pytest.raises(DirectoryUnavailableError):
            await _employees(_proxy_page).get_employee("E1")

    @pytest.mark.asyncio
    async def test_list_employees(self):
        with pytest.raises(DirectoryUnavailableError):
            await _employees(_proxy_page).list_employees()


class TestPathEscaping:
    """Identifiers are sent as a single escaped path segment."""

    @pytest.mark.asyncio
    async def test_username(self):
        seen = []

        def handler(request):
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={"exists": False})

        await _identity(handler).username_exists("a/b?c")

        assert seen == [b"/api/auth/check-username/a%2Fb%3Fc"]

    @pytest.mark.asyncio
    async def test_employee_id(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.raw_path))
            if request.method == "GET":
                return httpx.Response(404)
            return httpx.Response(200, json={"success": True})

        directory = _employees(handler)
        await directory.get_employee("../admin")
        await directory.apply_work_mode_change("E 1#x", WorkMode.FULLY_REMOTE, "hrmanager")

        assert seen == [
            ("GET", b"/api/auth/users/..%2Fadmin"),
            ("PATCH", b"/api/auth/users/E%201%23x"),
        ]
