"""Staff onboarding.

A staff member is an Account and a StaffProfile created in one
transaction. Either both rows (and any initial grants) are committed or
nothing is; the caller sees a single error in the failure case.
"""

from collections.abc import Collection, Iterable
from datetime import datetime
from typing import Annotated
from uuid import UUID, uuid4

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from cityventure.api.dependencies import DBSession
from cityventure.config import settings
from cityventure.core.errors import ConflictError, NotFoundError
from cityventure.core.permissions.cache import PermissionCache
from cityventure.core.permissions.dependencies import PermissionCacheDep
from cityventure.core.permissions.models import UserGrant
from cityventure.modules.accounts.models import Account
from cityventure.modules.accounts.repos import AccountRepository
from cityventure.modules.grants.services import ensure_business_scope, ensure_grantable
from cityventure.modules.roles.repos import PermissionRepository
from cityventure.modules.roles.services import RoleRegistry
from cityventure.modules.staff.models import StaffProfile
from cityventure.modules.staff.repos import StaffRepository
from cityventure.modules.staff.schemas import StaffWithAccountView


logger = structlog.get_logger()

CONTACT_CONFLICT_MESSAGE = "Email or phone already in use"


class StaffOnboardingService:
    """Provisions, lists, and removes staff members."""

    def __init__(self, session: DBSession, cache: PermissionCacheDep) -> None:
        self.session = session
        self.cache: PermissionCache = cache
        self.registry = RoleRegistry(session)
        self.accounts = AccountRepository(session)
        self.permissions = PermissionRepository(session)
        self.staff = StaffRepository(session)

    async def onboard_staff(
        self,
        *,
        email: str,
        phone_number: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        business_id: UUID,
        role_id: UUID,
        title: str | None = None,
        middle_name: str | None = None,
        account_id: UUID | None = None,
        staff_id: UUID | None = None,
        invitation_token: str | None = None,
        invitation_expires_at: datetime | None = None,
        initial_permissions: Iterable[str] = (),
        grantable: Collection[str] | None = None,
    ) -> StaffWithAccountView:
        """Create a staff member's account and profile atomically.

        The account starts verified and active, must change its password,
        and has an incomplete profile.

        Raises:
            NotFoundError: If the role or an initial permission doesn't exist
            ValidationError: If the role isn't a business role of ``business_id``,
                or an initial permission is system-scoped
            AuthorizationDenied: If an initial permission is outside ``grantable``
            ConflictError: If the email, phone, or an ID is already in use
        """
        account_id = account_id or uuid4()
        staff_id = staff_id or uuid4()

        try:
            await self.registry.require_business_role(role_id, business_id)

            if await self.accounts.exists_with_contact(email, phone_number):
                raise ConflictError(CONTACT_CONFLICT_MESSAGE, error_code="contact_in_use")

            wanted = set(initial_permissions)
            permissions = await self.permissions.get_many(wanted)
            missing = sorted(wanted - {p.name for p in permissions})
            if missing:
                raise NotFoundError(
                    "Unknown permission",
                    resource="permission",
                    resource_id=", ".join(missing),
                )
            ensure_business_scope(permissions)
            ensure_grantable(permissions, grantable)

            self.session.add(
                Account(
                    id=account_id,
                    email=email,
                    phone_number=phone_number,
                    password_hash=password_hash,
                    role_id=role_id,
                    is_verified=True,
                    is_active=True,
                    must_change_password=True,
                    profile_completed=False,
                    invitation_token=invitation_token,
                    invitation_expires_at=invitation_expires_at,
                )
            )
            await self.session.flush()

            self.session.add(
                StaffProfile(
                    id=staff_id,
                    account_id=account_id,
                    business_id=business_id,
                    title=title or settings.default_staff_title,
                    first_name=first_name,
                    middle_name=middle_name,
                    last_name=last_name,
                )
            )
            await self.session.flush()

            for permission in permissions:
                self.session.add(
                    UserGrant(account_id=account_id, permission_id=permission.id)
                )
            await self.session.flush()

            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "staff_onboarding_conflict",
                business_id=str(business_id),
                error=str(e.orig),
            )
            raise ConflictError(CONTACT_CONFLICT_MESSAGE, error_code="contact_in_use") from e
        except Exception:
            await self.session.rollback()
            raise

        self.cache.invalidate(account_id)

        logger.info(
            "staff_onboarded",
            account_id=str(account_id),
            staff_id=str(staff_id),
            business_id=str(business_id),
            role_id=str(role_id),
            initial_permissions=len(permissions),
        )
        return await self.get_staff(staff_id)

    async def get_staff(self, staff_id: UUID) -> StaffWithAccountView:
        """Get one staff member with account and role.

        Raises:
            NotFoundError: If staff member not found
        """
        profile = await self.staff.get_by_id(staff_id)
        if not profile:
            raise NotFoundError(
                "Staff member not found",
                resource="staff",
                resource_id=str(staff_id),
            )
        return StaffWithAccountView.from_profile(profile)

    async def list_staff(self, business_id: UUID) -> list[StaffWithAccountView]:
        """List the staff of a business."""
        profiles = await self.staff.list_by_business(business_id)
        return [StaffWithAccountView.from_profile(profile) for profile in profiles]

    async def remove_staff(self, staff_id: UUID) -> None:
        """Delete a staff member's profile and account together.

        Raises:
            NotFoundError: If staff member not found
        """
        profile = await self.staff.get_by_id(staff_id)
        if not profile:
            raise NotFoundError(
                "Staff member not found",
                resource="staff",
                resource_id=str(staff_id),
            )
        account_id = profile.account_id

        try:
            await self.staff.delete_with_account(profile)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        self.cache.invalidate(account_id)
        logger.info("staff_removed", staff_id=str(staff_id), account_id=str(account_id))


# Type alias for dependency injection
StaffOnboardingSvc = Annotated[StaffOnboardingService, Depends(StaffOnboardingService)]
