"""Writing and reading audit entries."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cityventure.core.audit.models import AuditAction, AuditLog
from cityventure.core.constants import DEFAULT_AUDIT_LIMIT


logger = structlog.get_logger()


def record_action(
    session: AsyncSession,
    resource_type: str,
    resource_id: UUID,
    action: AuditAction,
    *,
    performed_by: UUID | None = None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an audit entry to the session's current transaction.

    The entry is committed or rolled back together with the change it
    describes. The request ID bound by the logging middleware is copied
    onto the entry when there is one.
    """
    entry = AuditLog(
        resource_type=resource_type,
        resource_id=resource_id,
        action=action.value,
        performed_by=performed_by,
        request_id=structlog.contextvars.get_contextvars().get("request_id"),
        old_values=old_values,
        new_values=new_values,
    )
    session.add(entry)

    logger.debug(
        "audit_recorded",
        resource_type=resource_type,
        resource_id=str(resource_id),
        action=action.value,
    )
    return entry


async def list_entries(
    session: AsyncSession,
    resource_type: str,
    resource_id: UUID,
    limit: int = DEFAULT_AUDIT_LIMIT,
) -> list[AuditLog]:
    """Entries for one record, newest first.

    Entries still pending in the session are flushed first, so they are
    included.
    """
    await session.flush()
    stmt = (
        select(AuditLog)
        .where(
            AuditLog.resource_type == resource_type,
            AuditLog.resource_id == resource_id,
        )
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
