"""Grant service: every change to who holds which permission goes through here.

Each mutation commits its transaction and then invalidates the
permission cache before returning, so the next check sees the change.
Per-account changes drop one cache entry; role-level changes drop all
of them, since any number of accounts may hold the role.

Per-account grants are limited to business-scope permissions. Callers
acting for someone pass ``grantable``, the set the actor holds, so that
nobody hands out more than they have.
"""

from collections.abc import Collection, Iterable
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from cityventure.api.dependencies import DBSession
from cityventure.core.audit import AuditAction, record_action
from cityventure.core.errors import AuthorizationDenied, NotFoundError, ValidationError
from cityventure.core.permissions.cache import PermissionCache
from cityventure.core.permissions.dependencies import PermissionCacheDep
from cityventure.core.permissions.models import (
    Permission,
    PermissionScope,
    Role,
    RoleKind,
    UserGrant,
)
from cityventure.modules.accounts.models import Account
from cityventure.modules.accounts.repos import AccountRepository
from cityventure.modules.grants.repos import UserGrantRepository
from cityventure.modules.roles.repos import PermissionRepository, RoleRepository
from cityventure.modules.roles.services import ROLE_RESOURCE, RoleRegistry


logger = structlog.get_logger()


def ensure_business_scope(permissions: Iterable[Permission]) -> None:
    """Reject platform permissions in a set meant for one account.

    Raises:
        ValidationError: If any permission is system-scoped
    """
    platform = sorted(p.name for p in permissions if p.scope == PermissionScope.SYSTEM)
    if platform:
        raise ValidationError(
            "Platform permissions can't be granted to an account",
            errors=[
                {"field": "permissions", "message": f"System-scope permission: {name}"}
                for name in platform
            ],
        )


def ensure_grantable(
    permissions: Iterable[Permission], grantable: Collection[str] | None
) -> None:
    """Reject permissions the granting actor doesn't hold.

    ``grantable`` of None means no limit.

    Raises:
        AuthorizationDenied: If any permission is outside ``grantable``
    """
    if grantable is None:
        return
    beyond = sorted(p.name for p in permissions if p.name not in grantable)
    if beyond:
        logger.warning("grant_beyond_actor_denied", permissions=beyond)
        raise AuthorizationDenied()


class GrantService:
    """Grants and revokes permissions at account and role level."""

    def __init__(self, session: DBSession, cache: PermissionCacheDep) -> None:
        self.session = session
        self.cache: PermissionCache = cache
        self.grants = UserGrantRepository(session)
        self.permissions = PermissionRepository(session)
        self.roles = RoleRepository(session)
        self.accounts = AccountRepository(session)

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    async def _account(self, account_id: UUID) -> Account:
        account = await self.accounts.get_by_id(account_id)
        if not account:
            raise NotFoundError(
                "Account not found",
                resource="account",
                resource_id=str(account_id),
            )
        return account

    async def _business_account(self, account_id: UUID) -> Account:
        """Get an account whose permissions come from per-account grants."""
        account = await self._account(account_id)
        if account.role.role_kind != RoleKind.BUSINESS:
            raise ValidationError(
                "Per-account grants only apply to business roles",
                errors=[
                    {"field": "account_id", "message": "Account does not hold a business role"}
                ],
            )
        return account

    async def _permission(self, name: str) -> Permission:
        permission = await self.permissions.get_by_name(name)
        if not permission:
            raise NotFoundError(
                "Unknown permission",
                resource="permission",
                resource_id=name,
            )
        return permission

    async def _permissions(self, names: Iterable[str]) -> list[Permission]:
        wanted = set(names)
        found = await self.permissions.get_many(wanted)
        missing = sorted(wanted - {p.name for p in found})
        if missing:
            raise NotFoundError(
                "Unknown permission",
                resource="permission",
                resource_id=", ".join(missing),
            )
        return found

    async def _commit_for_account(self, account_id: UUID) -> None:
        await self.session.commit()
        self.cache.invalidate(account_id)

    async def _commit_for_all(self) -> None:
        await self.session.commit()
        self.cache.invalidate_all()

    # ------------------------------------------------------------
    # Per-account grants
    # ------------------------------------------------------------

    async def list_user_permissions(self, account_id: UUID) -> list[str]:
        """Names of the permissions granted directly to an account."""
        await self._account(account_id)
        return await self.grants.permission_names(account_id)

    async def grant_user_permission(
        self,
        account_id: UUID,
        permission_name: str,
        granted_by: UUID | None = None,
        grantable: Collection[str] | None = None,
    ) -> bool:
        """Grant one permission to a business-role account.

        Returns:
            True if the grant was added, False if the account already had it

        Raises:
            ValidationError: If the permission is system-scoped
            AuthorizationDenied: If the permission is outside ``grantable``
        """
        await self._business_account(account_id)
        permission = await self._permission(permission_name)
        ensure_business_scope([permission])

        if await self.grants.get(account_id, permission.id):
            return False
        ensure_grantable([permission], grantable)

        try:
            await self.grants.add(
                UserGrant(
                    account_id=account_id,
                    permission_id=permission.id,
                    granted_by=granted_by,
                )
            )
            await self._commit_for_account(account_id)
        except IntegrityError:
            # A concurrent request stored the same grant first
            await self.session.rollback()
            logger.info(
                "permission_already_granted",
                account_id=str(account_id),
                permission=permission_name,
            )
            return False

        logger.info(
            "permission_granted",
            account_id=str(account_id),
            permission=permission_name,
            granted_by=str(granted_by) if granted_by else None,
        )
        return True

    async def revoke_user_permission(self, account_id: UUID, permission_name: str) -> bool:
        """Revoke one permission from an account.

        Returns:
            True if a grant was removed, False if there was none
        """
        await self._account(account_id)
        permission = await self._permission(permission_name)

        grant = await self.grants.get(account_id, permission.id)
        if not grant:
            return False

        await self.grants.delete(grant)
        await self._commit_for_account(account_id)

        logger.info(
            "permission_revoked",
            account_id=str(account_id),
            permission=permission_name,
        )
        return True

    async def set_user_permissions(
        self,
        account_id: UUID,
        permission_names: Iterable[str],
        granted_by: UUID | None = None,
        grantable: Collection[str] | None = None,
    ) -> list[str]:
        """Replace an account's grants with exactly ``permission_names``.

        Only newly added permissions are checked against ``grantable``;
        grants the account already holds may be kept or dropped freely.

        Returns:
            The sorted names now granted

        Raises:
            ValidationError: If any permission is system-scoped
            AuthorizationDenied: If a new permission is outside ``grantable``
        """
        await self._business_account(account_id)
        wanted = {p.id: p for p in await self._permissions(permission_names)}
        ensure_business_scope(wanted.values())

        current = await self.grants.list_for_account(account_id)
        held = {grant.permission_id for grant in current}
        ensure_grantable(
            [wanted[permission_id] for permission_id in wanted.keys() - held], grantable
        )

        for grant in current:
            if grant.permission_id not in wanted:
                await self.session.delete(grant)
        for permission_id in wanted.keys() - held:
            self.session.add(
                UserGrant(
                    account_id=account_id,
                    permission_id=permission_id,
                    granted_by=granted_by,
                )
            )
        await self.session.flush()
        await self._commit_for_account(account_id)

        names = sorted(p.name for p in wanted.values())
        logger.info(
            "permissions_replaced",
            account_id=str(account_id),
            count=len(names),
        )
        return names

    async def apply_preset_defaults(
        self,
        account_id: UUID,
        granted_by: UUID | None = None,
        grantable: Collection[str] | None = None,
    ) -> list[str]:
        """Grant an account the permissions of the preset its role was cloned from.

        Existing grants are kept.

        Returns:
            The sorted names now granted

        Raises:
            ValidationError: If the account's role isn't based on a preset
            AuthorizationDenied: If a missing default is outside ``grantable``
        """
        account = await self._business_account(account_id)
        preset = None
        if account.role.based_on_role_id is not None:
            preset = await self.roles.get_by_id(account.role.based_on_role_id)
        if preset is None:
            raise ValidationError(
                "Role is not based on a preset",
                errors=[
                    {"field": "role_id", "message": "Custom roles have no preset defaults"}
                ],
            )

        current = await self.grants.list_for_account(account_id)
        held = {grant.permission_id for grant in current}
        missing = [p for p in preset.permissions if p.id not in held]
        ensure_business_scope(missing)
        ensure_grantable(missing, grantable)

        for permission in missing:
            self.session.add(
                UserGrant(
                    account_id=account_id,
                    permission_id=permission.id,
                    granted_by=granted_by,
                )
            )
        await self.session.flush()
        await self._commit_for_account(account_id)

        logger.info(
            "preset_defaults_applied",
            account_id=str(account_id),
            preset_id=str(preset.id),
        )
        return await self.list_user_permissions(account_id)

    # ------------------------------------------------------------
    # Role-level grants
    # ------------------------------------------------------------

    async def _role_with_grants(self, role_id: UUID) -> Role:
        role = await RoleRegistry(self.session).mutable_role(role_id)
        if role.role_kind == RoleKind.BUSINESS:
            raise ValidationError(
                "Business roles don't carry role-level grants",
                errors=[{"field": "role_id", "message": "Grant to the accounts instead"}],
            )
        return role

    async def grant_role_permissions(
        self,
        role_id: UUID,
        permission_names: Iterable[str],
        performed_by: UUID | None = None,
    ) -> Role:
        """Add role-level grants to a system or preset role.

        Raises:
            ImmutableRoleError: If the role is immutable
            ValidationError: If the role is a business role
        """
        role = await self._role_with_grants(role_id)
        permissions = await self._permissions(permission_names)

        held = {p.id for p in role.permissions}
        added = sorted(p.name for p in permissions if p.id not in held)
        role.permissions.extend(p for p in permissions if p.id not in held)
        if added:
            record_action(
                self.session,
                ROLE_RESOURCE,
                role.id,
                AuditAction.PERMISSIONS_GRANTED,
                performed_by=performed_by,
                new_values={"permissions": added},
            )
        await self.session.flush()
        await self._commit_for_all()

        logger.info(
            "role_permissions_granted",
            role_id=str(role_id),
            permissions=sorted(p.name for p in permissions),
        )
        return role

    async def revoke_role_permissions(
        self,
        role_id: UUID,
        permission_names: Iterable[str],
        performed_by: UUID | None = None,
    ) -> Role:
        """Remove role-level grants from a system or preset role.

        Raises:
            ImmutableRoleError: If the role is immutable
            ValidationError: If the role is a business role
        """
        role = await self._role_with_grants(role_id)
        removed = {p.id for p in await self._permissions(permission_names)}

        dropped = sorted(p.name for p in role.permissions if p.id in removed)
        role.permissions = [p for p in role.permissions if p.id not in removed]
        if dropped:
            record_action(
                self.session,
                ROLE_RESOURCE,
                role.id,
                AuditAction.PERMISSIONS_REVOKED,
                performed_by=performed_by,
                old_values={"permissions": dropped},
            )
        await self.session.flush()
        await self._commit_for_all()

        logger.info(
            "role_permissions_revoked",
            role_id=str(role_id),
            count=len(dropped),
        )
        return role

    # ------------------------------------------------------------
    # Role assignment
    # ------------------------------------------------------------

    async def assign_role(
        self, account_id: UUID, role_id: UUID, business_id: UUID | None = None
    ) -> Account:
        """Give an account a different role.

        With ``business_id`` set, only business roles of that business may
        be assigned; platform roles need an account administrator.

        Raises:
            NotFoundError: If the account or role doesn't exist
            ValidationError: If the role is a preset, or belongs to another business
            AuthorizationDenied: If ``business_id`` is set and the role isn't a business role
        """
        account = await self._account(account_id)
        role = await self.roles.get_by_id(role_id)
        if not role:
            raise NotFoundError(
                "Role not found",
                resource="role",
                resource_id=str(role_id),
            )
        if business_id is not None:
            if role.role_kind != RoleKind.BUSINESS:
                logger.warning(
                    "platform_role_assignment_denied",
                    account_id=str(account_id),
                    role_id=str(role_id),
                )
                raise AuthorizationDenied()
            await RoleRegistry(self.session).require_business_role(role_id, business_id)
        if not role.is_assignable:
            raise ValidationError(
                "Preset roles can't be assigned",
                errors=[
                    {"field": "role_id", "message": "Clone the preset for a business first"}
                ],
            )

        account.role = role
        account = await self.accounts.update(account)
        await self._commit_for_account(account_id)

        logger.info(
            "role_assigned",
            account_id=str(account_id),
            role_id=str(role_id),
        )
        return account


# Type alias for dependency injection
GrantSvc = Annotated[GrantService, Depends(GrantService)]
