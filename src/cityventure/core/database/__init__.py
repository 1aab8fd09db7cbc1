"""Database layer - session management, base models, and mixins."""

from cityventure.core.database.base import Base, TimestampMixin, UUIDMixin
from cityventure.core.database.session import (
    async_engine,
    async_session_factory,
    build_engine,
    build_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "async_engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "get_db",
]
