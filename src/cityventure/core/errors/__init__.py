"""Error handling module with RFC 7807 Problem Details."""

from cityventure.core.errors.exceptions import (
    AppException,
    AuthorizationDenied,
    ConflictError,
    ImmutableRoleError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cityventure.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "AuthorizationDenied",
    "ConflictError",
    # Handlers
    "FieldError",
    "ImmutableRoleError",
    "NotFoundError",
    "ProblemDetail",
    "UnauthorizedError",
    "ValidationError",
    "register_exception_handlers",
]
