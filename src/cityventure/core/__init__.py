"""Core services and cross-cutting concerns."""

from cityventure.core.database import Base, get_db
from cityventure.core.errors import (
    AppException,
    AuthorizationDenied,
    ConflictError,
    ImmutableRoleError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    register_exception_handlers,
)


__all__ = [
    # Errors
    "AppException",
    "AuthorizationDenied",
    # Database
    "Base",
    "ConflictError",
    "ImmutableRoleError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "get_db",
    "register_exception_handlers",
]
