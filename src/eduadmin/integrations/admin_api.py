from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from eduadmin.access.models import (
    CurrentUser,
    MenuNode,
    PermissionCatalog,
    Role,
    RoleCreatePayload,
    RoleSavePayload,
)
from eduadmin.config import get_settings
from eduadmin.exceptions.handlers import ApiError, AuthenticationError
from eduadmin.integrations.http import bearer, build_outbound_headers

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class AdminApiClient:
    """Client for the institution admin REST backend."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.API_TOKEN
        self.timeout_s = timeout_s if timeout_s is not None else settings.API_TIMEOUT_SECONDS
        self._transport = transport

    # Roles

    def list_roles(self) -> List[Role]:
        body = self._request("GET", "/roles")
        data = body.get("data") or []
        # Paginated responses nest the rows one level deeper.
        if isinstance(data, dict):
            data = data.get("data") or []
        return [_parse(Role, item, "GET", "/roles") for item in data]

    def update_role(self, role_id: int, payload: RoleSavePayload) -> Optional[Role]:
        """PUT the new selections; returns the stored role when the backend echoes it."""
        path = f"/roles/{role_id}"
        body = self._request("PUT", path, json=payload.model_dump())
        data = body.get("data")
        if isinstance(data, dict) and data.get("id") is not None and data.get("name"):
            return _parse(Role, data, "PUT", path)
        return None

    def create_role(self, payload: RoleCreatePayload) -> Role:
        body = self._request("POST", "/roles", json=payload.model_dump())
        data = body.get("data")
        if not isinstance(data, dict) or data.get("id") is None:
            raise ApiError(502, "Create role response is missing the new role id", method="POST", path="/roles")
        return _parse(Role, data, "POST", "/roles")

    def delete_role(self, role_id: int) -> None:
        self._request("DELETE", f"/roles/{role_id}")

    # Catalogs

    def get_permission_catalog(self) -> PermissionCatalog:
        body = self._request("GET", "/permissions/all")
        return _parse(PermissionCatalog, body.get("data") or {}, "GET", "/permissions/all")

    def get_menu_tree(self) -> List[MenuNode]:
        body = self._request("GET", "/system-menus/tree")
        return [_parse(MenuNode, item, "GET", "/system-menus/tree") for item in body.get("data") or []]

    def list_menus_flat(self) -> List[MenuNode]:
        """Menus as flat records linked by ``parent_id``; children are not filled in."""
        body = self._request("GET", "/admin/system-menus-list")
        data = body.get("data") or []
        if isinstance(data, dict):
            data = data.get("data") or []
        return [_parse(MenuNode, item, "GET", "/admin/system-menus-list") for item in data]

    def get_current_user(self) -> CurrentUser:
        body = self._request("GET", "/user/profile")
        return _parse(CurrentUser, body.get("data") or {}, "GET", "/user/profile")

    # Student account links

    def link_user(self, student_id: int, user_id: int) -> Dict[str, Any]:
        return self._request(
            "POST", f"/admin/students/{student_id}/link-user", json={"user_id": user_id}
        )

    def unlink_user(self, student_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/admin/students/{student_id}/unlink-user")

    def _request(
        self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        headers = build_outbound_headers(authorization=bearer(self.token)).as_dict()
        try:
            with httpx.Client(
                base_url=self.base_url, timeout=self.timeout_s, transport=self._transport
            ) as client:
                resp = client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as exc:
            raise ApiError(0, f"Admin API unreachable: {exc}", method=method, path=path)

        if resp.status_code == 401:
            # Stored credentials are stale; the caller must sign in again.
            self.token = ""
            raise AuthenticationError(method=method, path=path)
        if resp.is_error:
            message = _error_message(resp)
            logger.warning("%s %s failed with %s: %s", method, path, resp.status_code, message)
            raise ApiError(resp.status_code, message, method=method, path=path)

        if not resp.content:
            return {}
        try:
            payload = resp.json()
        except ValueError:
            logger.warning("%s %s returned a non-JSON body", method, path)
            raise ApiError(502, "Admin API returned a non-JSON response", method=method, path=path)
        return payload if isinstance(payload, dict) else {"data": payload}


def _parse(model: Type[M], data: Any, method: str, path: str) -> M:
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("%s %s returned an invalid %s: %s", method, path, model.__name__, exc)
        raise ApiError(
            502,
            f"Admin API returned an invalid {model.__name__}",
            method=method,
            path=path,
            errors=exc.errors(include_url=False),
        )


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"Request failed with status {resp.status_code}"
