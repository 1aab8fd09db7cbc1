"""Logging module with structured logging and request tracking."""

from cityventure.core.logging.config import configure_logging
from cityventure.core.logging.middleware import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
)


__all__ = [
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "configure_logging",
]
