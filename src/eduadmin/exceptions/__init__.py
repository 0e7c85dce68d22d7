from eduadmin.exceptions.handlers import (
    AdminException,
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ExclusivityViolation,
    MalformedTreeError,
    ReadOnlyViolation,
    SaveConflict,
    ValidationError,
)

__all__ = [
    "AdminException",
    "ValidationError",
    "ConfigurationError",
    "MalformedTreeError",
    "ExclusivityViolation",
    "ReadOnlyViolation",
    "ApiError",
    "AuthenticationError",
    "SaveConflict",
]
