"""Account service: login and the follow-up steps of staff onboarding."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from cityventure.core.auth.backend import verify_password
from cityventure.core.errors import NotFoundError, UnauthorizedError
from cityventure.modules.accounts.models import Account
from cityventure.modules.accounts.repos import AccountRepo


logger = structlog.get_logger()


class AccountService:
    """Service for account lifecycle operations.

    Onboarded staff start with ``must_change_password`` set and
    ``profile_completed`` cleared; the two ``complete_*`` methods move
    them out of that state.
    """

    def __init__(self, repo: AccountRepo) -> None:
        self.repo = repo

    async def get_account(self, account_id: UUID) -> Account:
        """Get an account by ID.

        Raises:
            NotFoundError: If account not found
        """
        account = await self.repo.get_by_id(account_id)
        if not account:
            raise NotFoundError(
                "Account not found",
                resource="account",
                resource_id=str(account_id),
            )
        return account

    async def authenticate(self, email: str, password: str) -> Account:
        """Check email/password credentials.

        Raises:
            UnauthorizedError: If the credentials are wrong or the account is inactive
        """
        account = await self.repo.get_by_email(email)
        if not account or not verify_password(password, account.password_hash):
            raise UnauthorizedError(
                "Invalid email or password",
                error_code="invalid_credentials",
            )
        if not account.is_active:
            raise UnauthorizedError(
                "Account is deactivated",
                error_code="account_inactive",
            )
        return account

    async def complete_password_change(
        self, account_id: UUID, new_password_hash: str
    ) -> Account:
        """Store a new password and clear ``must_change_password``."""
        account = await self.get_account(account_id)
        account.password_hash = new_password_hash
        account.must_change_password = False
        account = await self.repo.update(account)

        logger.info("password_changed", account_id=str(account_id))
        return account

    async def complete_profile(self, account_id: UUID) -> Account:
        """Mark the profile as complete and retire the invitation."""
        account = await self.get_account(account_id)
        account.profile_completed = True
        account.invitation_token = None
        account.invitation_expires_at = None
        account = await self.repo.update(account)

        logger.info("profile_completed", account_id=str(account_id))
        return account

    async def set_active(self, account_id: UUID, active: bool) -> Account:
        """Activate or deactivate an account."""
        account = await self.get_account(account_id)
        account.is_active = active
        account = await self.repo.update(account)

        logger.info(
            "account_activated" if active else "account_deactivated",
            account_id=str(account_id),
        )
        return account


# Type alias for dependency injection
AccountSvc = Annotated[AccountService, Depends(AccountService)]
