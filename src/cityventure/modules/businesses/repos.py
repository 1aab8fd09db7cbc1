"""Business ownership repository."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from cityventure.api.dependencies import DBSession
from cityventure.core.permissions.models import Role, RoleKind
from cityventure.modules.accounts.models import Account
from cityventure.modules.businesses.models import BusinessOwner


class BusinessOwnerRepository:
    """Repository for business ownership records."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get(self, business_id: UUID, account_id: UUID) -> BusinessOwner | None:
        """Get one ownership record."""
        return await self.session.get(BusinessOwner, (business_id, account_id))

    async def owned_by(self, account_id: UUID) -> set[UUID]:
        """IDs of the businesses an account owns."""
        stmt = select(BusinessOwner.business_id).where(BusinessOwner.account_id == account_id)
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def list_owners(self, business_id: UUID) -> list[UUID]:
        """Owner account IDs of a business, oldest first."""
        stmt = (
            select(BusinessOwner.account_id)
            .where(BusinessOwner.business_id == business_id)
            .order_by(BusinessOwner.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def employer_of(self, account_id: UUID) -> UUID | None:
        """Business whose role the account holds, if it holds a business role."""
        stmt = (
            select(Role.business_id)
            .join(Account, Account.role_id == Role.id)
            .where(Account.id == account_id, Role.role_kind == RoleKind.BUSINESS)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, owner: BusinessOwner) -> BusinessOwner:
        """Store an ownership record."""
        self.session.add(owner)
        await self.session.flush()
        return owner

    async def delete(self, owner: BusinessOwner) -> None:
        """Remove an ownership record."""
        await self.session.delete(owner)
        await self.session.flush()


# Type alias for dependency injection
BusinessOwnerRepo = Annotated[BusinessOwnerRepository, Depends(BusinessOwnerRepository)]
