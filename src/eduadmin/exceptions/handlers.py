from __future__ import annotations

from typing import Any, Dict, List, Optional


class AdminException(Exception):
    """
    Base exception for the admin client.

    Every error carries:
    - attributes: message/code/status_code/details/user_message
    - method: to_dict() for operator-facing notices
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "ADMIN_ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details: Dict[str, Any] = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(AdminException):
    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"field": field} if field else {}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details=details,
            user_message=f"Validation failed: {message}",
        )


class ConfigurationError(AdminException):
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"config_key": config_key} if config_key else {}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
            details=details,
            user_message="System configuration error",
        )


class MalformedTreeError(AdminException):
    def __init__(self, message: str, node_id: Optional[int] = None, **kwargs: Any):
        details: Dict[str, Any] = {"node_id": node_id}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="MALFORMED_TREE",
            status_code=500,
            details=details,
            user_message="Menu data is malformed",
        )
        self.node_id = node_id


class ExclusivityViolation(AdminException):
    def __init__(self, resource_types: List[str], **kwargs: Any):
        message = "Both data scopes selected for: " + ", ".join(resource_types)
        details: Dict[str, Any] = {"resource_types": list(resource_types)}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="EXCLUSIVITY_VIOLATION",
            status_code=500,
            details=details,
            user_message=message,
        )
        self.resource_types = list(resource_types)


class ReadOnlyViolation(AdminException):
    def __init__(self, role_id: Optional[int] = None, **kwargs: Any):
        details: Dict[str, Any] = {"role_id": role_id}
        details.update(kwargs)
        super().__init__(
            message=f"Role {role_id} is a system role and cannot be modified",
            code="READ_ONLY",
            status_code=403,
            details=details,
            user_message="System roles cannot be modified; create a new role instead",
        )


class ApiError(AdminException):
    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        method: Optional[str] = None,
        path: Optional[str] = None,
        **kwargs: Any,
    ):
        details: Dict[str, Any] = {"method": method, "path": path}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="API_ERROR",
            status_code=status_code,
            details=details,
            user_message=message,
        )


class AuthenticationError(ApiError):
    def __init__(self, message: str = "Authentication required", **kwargs: Any):
        super().__init__(401, message, **kwargs)
        self.code = "AUTHENTICATION_REQUIRED"


class SaveConflict(AdminException):
    def __init__(
        self,
        message: str,
        role_id: Optional[int] = None,
        *,
        status_code: int = 409,
        **kwargs: Any,
    ):
        details: Dict[str, Any] = {"role_id": role_id}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="SAVE_CONFLICT",
            status_code=status_code,
            details=details,
            user_message=message,
        )
