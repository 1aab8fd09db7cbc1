"""User grant repository."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from cityventure.api.dependencies import DBSession
from cityventure.core.permissions.models import Permission, UserGrant


class UserGrantRepository:
    """Repository for per-account permission grants."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def list_for_account(self, account_id: UUID) -> list[UserGrant]:
        """List the grants held by an account."""
        stmt = select(UserGrant).where(UserGrant.account_id == account_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def permission_names(self, account_id: UUID) -> list[str]:
        """Names of the permissions granted to an account, sorted."""
        stmt = (
            select(Permission.name)
            .join(UserGrant, UserGrant.permission_id == Permission.id)
            .where(UserGrant.account_id == account_id)
            .order_by(Permission.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get(self, account_id: UUID, permission_id: UUID) -> UserGrant | None:
        """Get one grant."""
        return await self.session.get(UserGrant, (account_id, permission_id))

    async def add(self, grant: UserGrant) -> UserGrant:
        """Store a new grant."""
        self.session.add(grant)
        await self.session.flush()
        return grant

    async def delete(self, grant: UserGrant) -> None:
        """Remove a grant."""
        await self.session.delete(grant)
        await self.session.flush()


# Type alias for dependency injection
UserGrantRepo = Annotated[UserGrantRepository, Depends(UserGrantRepository)]
