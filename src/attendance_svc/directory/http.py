"""HTTP directory adapters - talk to the auth gateway.

Endpoints used (all under ``{base_url}/api/auth``):
    GET   /check-username/{username}   -> {"exists": bool}
    POST  /users                       -> {"success": true, "uid": "..."}
    GET   /users                       -> {"users": [...]}
    GET   /users/{id}                  -> {...} | 404
    PATCH /users/{id}                  -> {"success": true}
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..config import DirectoryConfig
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

# Error codes reported by the hosted identity provider
_PROVIDER_CODES = {
    "auth/email-already-in-use": AccountErrorKind.EMAIL_IN_USE,
    "auth/weak-password": AccountErrorKind.WEAK_PASSWORD,
    "auth/invalid-email": AccountErrorKind.INVALID_EMAIL,
}


def _segment(value: str) -> str:
    """Escape a value for use as one URL path segment."""
    return quote(str(value), safe="")


def _body(response: httpx.Response, what: str) -> Any:
    """Decode a successful JSON response. Raises DirectoryUnavailableError."""
    try:
        return response.json()
    except ValueError as e:
        raise DirectoryUnavailableError(f"{what}: response is not JSON") from e


def _error_kind(response: httpx.Response) -> tuple[AccountErrorKind, str]:
    """Map a failed create-user response to an error kind and message."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    message = body.get("error") or body.get("message") or f"HTTP {response.status_code}"
    code = body.get("code") or body.get("errorKind") or ""

    if code in _PROVIDER_CODES:
        return _PROVIDER_CODES[code], message
    try:
        return AccountErrorKind(code), message
    except ValueError:
        pass

    if response.status_code == 409:
        return AccountErrorKind.USERNAME_TAKEN, message
    return AccountErrorKind.UNAVAILABLE, message


class _GatewayClient:
    """Shared httpx plumbing for the gateway adapters."""

    def __init__(self, config: DirectoryConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        headers = {}
        if config.api_token:
            headers["Authorization"] = f"Bearer {config.api_token}"
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=headers,
        )

    async def close(self) -> None:
        await self._client.aclose()


class HttpIdentityDirectory(_GatewayClient, IdentityDirectory):
    """Identity directory backed by the auth gateway."""

    async def username_exists(self, username: str) -> bool:
        try:
            response = await self._client.get(f"/api/auth/check-username/{_segment(username)}")
        except httpx.HTTPError as e:
            raise DirectoryUnavailableError(f"Username check failed: {e}") from e

        if response.status_code >= 400:
            raise DirectoryUnavailableError(
                f"Username check failed: HTTP {response.status_code}"
            )
        data = _body(response, "Username check failed")
        if not isinstance(data, dict):
            raise DirectoryUnavailableError("Username check failed: unexpected response")
        return bool(data.get("exists", False))

    async def create_account(
        self,
        username: str,
        password: str,
        email: str,
        profile: dict[str, Any],
    ) -> str:
        body = {"username": username, "password": password, "email": email, **profile}
        try:
            response = await self._client.post("/api/auth/users", json=body)
        except httpx.HTTPError as e:
            raise AccountCreationError(AccountErrorKind.UNAVAILABLE, str(e)) from e

        if response.status_code >= 400:
            kind, message = _error_kind(response)
            logger.warning(f"Account creation for {username} failed: {kind.value} ({message})")
            raise AccountCreationError(kind, message)

        try:
            data = _body(response, "Account creation")
        except DirectoryUnavailableError as e:
            # The gateway accepted the request; the account may exist already.
            logger.error(f"Account creation for {username} returned an unreadable response")
            raise AccountCreationError(AccountErrorKind.UNAVAILABLE, str(e)) from e
        if not isinstance(data, dict):
            raise AccountCreationError(AccountErrorKind.UNAVAILABLE, "Account creation: unexpected response")
        return str(data.get("uid") or data.get("accountId") or "")


def _employee_from_json(data: dict[str, Any]) -> Employee:
    try:
        mode = WorkMode.parse(data.get("workMode"))
    except ValueError:
        mode = WorkMode.IN_OFFICE
    return Employee(
        employee_id=str(data.get("id") or data.get("uid") or data.get("username")),
        name=data.get("name", ""),
        username=data.get("username", ""),
        department=data.get("department", ""),
        position=data.get("position", ""),
        work_mode=mode,
    )


class HttpEmployeeDirectory(_GatewayClient, EmployeeDirectory):
    """Employee records backed by the auth gateway user documents."""

    async def get_employee(self, employee_id: str) -> Employee | None:
        try:
            response = await self._client.get(f"/api/auth/users/{_segment(employee_id)}")
        except httpx.HTTPError as e:
            raise DirectoryUnavailableError(f"Employee lookup failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise DirectoryUnavailableError(f"Employee lookup failed: HTTP {response.status_code}")
        data = _body(response, "Employee lookup failed")
        if not isinstance(data, dict):
            raise DirectoryUnavailableError("Employee lookup failed: unexpected response")
        return _employee_from_json(data)

    async def list_employees(self) -> list[Employee]:
        try:
            response = await self._client.get("/api/auth/users")
        except httpx.HTTPError as e:
            raise DirectoryUnavailableError(f"Employee listing failed: {e}") from e

        if response.status_code >= 400:
            raise DirectoryUnavailableError(f"Employee listing failed: HTTP {response.status_code}")
        data = _body(response, "Employee listing failed")
        if not isinstance(data, dict):
            raise DirectoryUnavailableError("Employee listing failed: unexpected response")
        return [_employee_from_json(u) for u in data.get("users", []) if isinstance(u, dict)]

    async def apply_work_mode_change(
        self,
        employee_id: str,
        new_mode: WorkMode,
        changed_by: str,
    ) -> None:
        body = {"workMode": new_mode.value, "workModeChangedBy": changed_by}
        try:
            response = await self._client.patch(f"/api/auth/users/{_segment(employee_id)}", json=body)
        except httpx.HTTPError as e:
            raise EmployeeUpdateError(f"Work mode update failed: {e}") from e

        if response.status_code >= 400:
            raise EmployeeUpdateError(
                f"Work mode update failed for {employee_id}: HTTP {response.status_code}"
            )
