"""Audit log database model.

Stores who changed which authorization record, and how. Entries are
written in the same transaction as the change they describe.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from cityventure.core.constants import MAX_AUDIT_ACTION_LENGTH, MAX_RESOURCE_TYPE_LENGTH
from cityventure.core.database.base import Base, UUIDMixin


JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class AuditAction(str, Enum):
    """Actions recorded against a role."""

    CREATED = "created"
    CLONED = "cloned"
    UPDATED = "updated"
    DELETED = "deleted"
    PERMISSIONS_GRANTED = "permissions_granted"
    PERMISSIONS_REVOKED = "permissions_revoked"


class AuditLog(Base, UUIDMixin):
    """Audit log entry.

    Attributes:
        resource_type: Kind of record changed (e.g., "role")
        resource_id: ID of the changed record; kept after the record is deleted
        action: What happened
        performed_by: Account that made the change, if known
        request_id: Correlation ID of the request that made the change
        old_values: Relevant fields before the change
        new_values: Relevant fields after the change
        created_at: When the change happened
    """

    __tablename__ = "audit_logs"

    resource_type: Mapped[str] = mapped_column(
        String(MAX_RESOURCE_TYPE_LENGTH),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(
        String(MAX_AUDIT_ACTION_LENGTH),
        nullable=False,
    )
    performed_by: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )
    request_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )
    old_values: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
    )
    new_values: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
    )
    # Set in Python so entries made within one second still sort correctly
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, "
            f"resource_type={self.resource_type}, resource_id={self.resource_id})>"
        )
