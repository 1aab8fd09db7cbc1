"""Staff profile repository."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import delete, select

from cityventure.api.dependencies import DBSession
from cityventure.core.permissions.models import UserGrant
from cityventure.modules.staff.models import StaffProfile


class StaffRepository:
    """Repository for StaffProfile database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get_by_id(self, staff_id: UUID) -> StaffProfile | None:
        """Get a staff profile with its account freshly loaded."""
        stmt = (
            select(StaffProfile)
            .where(StaffProfile.id == staff_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_business(self, business_id: UUID) -> list[StaffProfile]:
        """List the staff of a business ordered by name."""
        stmt = (
            select(StaffProfile)
            .where(StaffProfile.business_id == business_id)
            .order_by(StaffProfile.last_name, StaffProfile.first_name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_with_account(self, profile: StaffProfile) -> None:
        """Delete a profile, its account, and the account's grants."""
        account = profile.account
        await self.session.execute(
            delete(UserGrant).where(UserGrant.account_id == account.id)
        )
        await self.session.delete(profile)
        await self.session.flush()
        await self.session.delete(account)
        await self.session.flush()


# Type alias for dependency injection
StaffRepo = Annotated[StaffRepository, Depends(StaffRepository)]
