"""Account repository for database operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cityventure.api.dependencies import DBSession
from cityventure.modules.accounts.models import Account


class AccountRepository:
    """Repository for Account database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, account: Account) -> Account:
        """Create a new account.

        Args:
            account: Account instance to create

        Returns:
            The created account
        """
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def get_by_id(self, account_id: UUID) -> Account | None:
        """Get an account by ID.

        Args:
            account_id: The account's UUID

        Returns:
            Account if found, None otherwise
        """
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Account | None:
        """Get an account by email address (case-insensitive)."""
        stmt = select(Account).where(func.lower(Account.email) == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_with_contact(self, email: str, phone_number: str) -> bool:
        """Check whether an account already uses the email or phone number."""
        stmt = select(func.count()).select_from(Account).where(
            or_(
                func.lower(Account.email) == email.lower(),
                Account.phone_number == phone_number,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def count_by_role(self, role_id: UUID) -> int:
        """Count accounts holding a role."""
        stmt = select(func.count()).select_from(Account).where(Account.role_id == role_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def update(self, account: Account) -> Account:
        """Flush pending changes to an account."""
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def delete(self, account: Account) -> None:
        """Delete an account."""
        await self.session.delete(account)
        await self.session.flush()


async def account_role_id(session: AsyncSession, account_id: UUID) -> UUID | None:
    """Role held by an account, or None if the account doesn't exist.

    Handed to the permission resolver, which has no model of accounts.
    """
    result = await session.execute(select(Account.role_id).where(Account.id == account_id))
    return result.scalar_one_or_none()


# Type alias for dependency injection
AccountRepo = Annotated[AccountRepository, Depends(AccountRepository)]
