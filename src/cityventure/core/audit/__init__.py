"""Audit trail for changes to authorization records."""

from cityventure.core.audit.models import AuditAction, AuditLog
from cityventure.core.audit.service import list_entries, record_action


__all__ = [
    "AuditAction",
    "AuditLog",
    "list_entries",
    "record_action",
]
