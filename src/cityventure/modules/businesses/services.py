"""Business ownership and the per-business access rule.

Holding a permission says what an account may do; it doesn't say where.
Routes that act on one business also ask ``BusinessAccess`` whether the
caller may act on that business at all:

- platform administrators may act on every business
- owners may act on the businesses they own
- staff may act on the business whose role they hold
"""

from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from cityventure.api.dependencies import DBSession
from cityventure.core.constants import PLATFORM_ADMIN_ROLE
from cityventure.core.errors import AuthorizationDenied, ConflictError, NotFoundError
from cityventure.core.permissions.dependencies import Gate
from cityventure.core.permissions.gate import AuthorizationGate
from cityventure.modules.accounts.repos import AccountRepository
from cityventure.modules.businesses.models import BusinessOwner
from cityventure.modules.businesses.repos import BusinessOwnerRepository


logger = structlog.get_logger()

ACCOUNT_ADMIN_PERMISSION = "manage_users"
BUSINESS_ADMIN_PERMISSION = "manage_all_businesses"


class BusinessAccess:
    """Decides which businesses an account may act on."""

    def __init__(self, session: DBSession, gate: Gate) -> None:
        self.gate: AuthorizationGate = gate
        self.owners = BusinessOwnerRepository(session)

    async def is_platform_admin(self, account: Any) -> bool:
        """Admins, or anyone holding manage_all_businesses, reach every business."""
        return await self.gate.authorize(
            account.id,
            roles=[PLATFORM_ADMIN_ROLE],
            permissions=[BUSINESS_ADMIN_PERMISSION],
        )

    async def manages_accounts(self, account: Any) -> bool:
        """Whether the account may manage any account on the platform."""
        return await self.gate.authorize(account.id, permissions=[ACCOUNT_ADMIN_PERMISSION])

    async def employer_of(self, account_id: UUID) -> UUID | None:
        """Business whose role the account holds, if any."""
        return await self.owners.employer_of(account_id)

    async def accessible_businesses(self, account: Any) -> set[UUID] | None:
        """Businesses the account may act on, or None for all of them."""
        if await self.is_platform_admin(account):
            return None

        businesses = await self.owners.owned_by(account.id)
        employer = await self.owners.employer_of(account.id)
        if employer is not None:
            businesses.add(employer)
        return businesses

    async def can_access(self, account: Any, business_id: UUID) -> bool:
        businesses = await self.accessible_businesses(account)
        return businesses is None or business_id in businesses

    async def require(self, account: Any, business_id: UUID) -> None:
        """Raise unless the account may act on ``business_id``.

        Raises:
            AuthorizationDenied: If the business is out of reach
        """
        if not await self.can_access(account, business_id):
            logger.warning(
                "business_access_denied",
                account_id=str(account.id),
                business_id=str(business_id),
            )
            raise AuthorizationDenied()

    async def require_employer(self, actor: Any, account_id: UUID) -> UUID:
        """Business employing ``account_id``, once the actor is allowed to act on it.

        Accounts that aren't staff of any business are out of reach, as
        is the actor's own account.

        Raises:
            AuthorizationDenied: If the account isn't staff the actor can manage
        """
        employer = None
        if account_id != actor.id:
            employer = await self.owners.employer_of(account_id)
        if employer is None:
            logger.warning(
                "account_access_denied",
                account_id=str(actor.id),
                target_account_id=str(account_id),
            )
            raise AuthorizationDenied()

        await self.require(actor, employer)
        return employer

    async def require_account_access(self, actor: Any, account_id: UUID) -> UUID | None:
        """Check the actor may manage another account.

        Account administrators may manage any account; everyone else may
        only manage staff of a business they can access.

        Returns:
            None for account administrators, otherwise the staff member's business
        """
        if await self.manages_accounts(actor):
            return None
        return await self.require_employer(actor, account_id)


class BusinessOwnerService:
    """Records which accounts own which businesses."""

    def __init__(self, session: DBSession) -> None:
        self.session = session
        self.owners = BusinessOwnerRepository(session)
        self.accounts = AccountRepository(session)

    async def list_owners(self, business_id: UUID) -> list[UUID]:
        """Owner account IDs of a business."""
        return await self.owners.list_owners(business_id)

    async def add_owner(self, business_id: UUID, account_id: UUID) -> BusinessOwner:
        """Make an account an owner of a business.

        Raises:
            NotFoundError: If the account doesn't exist
            ConflictError: If the account already owns the business
        """
        if not await self.accounts.get_by_id(account_id):
            raise NotFoundError(
                "Account not found",
                resource="account",
                resource_id=str(account_id),
            )
        if await self.owners.get(business_id, account_id):
            raise ConflictError(
                "Account already owns this business",
                error_code="owner_exists",
                details={"business_id": str(business_id), "account_id": str(account_id)},
            )

        owner = await self.owners.add(
            BusinessOwner(business_id=business_id, account_id=account_id)
        )
        logger.info(
            "business_owner_added",
            business_id=str(business_id),
            account_id=str(account_id),
        )
        return owner

    async def remove_owner(self, business_id: UUID, account_id: UUID) -> None:
        """Remove an ownership record.

        Raises:
            NotFoundError: If the account doesn't own the business
        """
        owner = await self.owners.get(business_id, account_id)
        if not owner:
            raise NotFoundError(
                "Business owner not found",
                resource="business_owner",
                resource_id=str(account_id),
            )
        await self.owners.delete(owner)
        logger.info(
            "business_owner_removed",
            business_id=str(business_id),
            account_id=str(account_id),
        )


# Type aliases for dependency injection
BusinessAccessDep = Annotated[BusinessAccess, Depends(BusinessAccess)]
BusinessOwnerSvc = Annotated[BusinessOwnerService, Depends(BusinessOwnerService)]
