"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a referenced account, role, or permission does not exist.

    Example:
        raise NotFoundError("Role not found", resource="role", resource_id=str(role_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Email or phone already in use")
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ImmutableRoleError(AppException):
    """Raised when a mutation or deletion targets an immutable role."""

    message = "Role is immutable"
    error_code = "immutable_role"
    status_code = 409

    def __init__(self, role_id: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if role_id:
            details["role_id"] = role_id
        super().__init__(details=details, **kwargs)


class ValidationError(AppException):
    """Raised when input is missing or malformed.

    Example:
        raise ValidationError(
            "Invalid role name",
            errors=[{"field": "name", "message": "Role name must be 20 characters or less"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid access token")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class AuthorizationDenied(AppException):
    """Raised when an authorization check fails.

    The message is deliberately generic; it never names the missing
    permission or role.
    """

    message = "Access denied"
    error_code = "access_denied"
    status_code = 403
