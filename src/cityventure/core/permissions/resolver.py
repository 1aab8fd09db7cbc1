"""Permission resolution.

An account's effective permissions come from one of two grant tables,
chosen by the kind of role the account holds:

- system and preset roles: role-level grants shared by every holder
- business roles: per-account grants; the role's own grants are ignored

Accounts live outside this package, so the resolver is handed a
``RoleIdLookup`` that maps an account to the role it holds.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cityventure.core.errors import NotFoundError
from cityventure.core.permissions.models import (
    Permission,
    Role,
    RoleKind,
    UserGrant,
    role_grants,
)


logger = structlog.get_logger()

RoleIdLookup = Callable[[AsyncSession, UUID], Awaitable[UUID | None]]


class GrantSource(Protocol):
    """Reads permission names from one grant table."""

    async def permission_names(
        self, session: AsyncSession, account_id: UUID, role: Role
    ) -> frozenset[str]: ...


class RoleGrantSource:
    """Permissions attached to the role itself."""

    async def permission_names(
        self, session: AsyncSession, account_id: UUID, role: Role
    ) -> frozenset[str]:
        stmt = (
            select(Permission.name)
            .join(role_grants, role_grants.c.permission_id == Permission.id)
            .where(role_grants.c.role_id == role.id)
        )
        result = await session.execute(stmt)
        return frozenset(result.scalars().all())


class UserGrantSource:
    """Permissions granted to the account directly."""

    async def permission_names(
        self, session: AsyncSession, account_id: UUID, role: Role
    ) -> frozenset[str]:
        stmt = (
            select(Permission.name)
            .join(UserGrant, UserGrant.permission_id == Permission.id)
            .where(UserGrant.account_id == account_id)
        )
        result = await session.execute(stmt)
        return frozenset(result.scalars().all())


_role_grants = RoleGrantSource()
_user_grants = UserGrantSource()

GRANT_SOURCES: dict[RoleKind, GrantSource] = {
    RoleKind.SYSTEM: _role_grants,
    RoleKind.PRESET: _role_grants,
    RoleKind.BUSINESS: _user_grants,
}


class PermissionResolver:
    """Computes the effective permission set of an account.

    Holds no state besides the session and the role lookup; caching is
    the job of ``PermissionCache``.

    Args:
        session: Session to read grants with
        role_id_of: Returns the role ID an account holds, or None if the
            account doesn't exist
        sources: Grant source per role kind
    """

    def __init__(
        self,
        session: AsyncSession,
        role_id_of: RoleIdLookup,
        sources: dict[RoleKind, GrantSource] | None = None,
    ) -> None:
        self.session = session
        self.role_id_of = role_id_of
        self.sources = sources or GRANT_SOURCES

    async def load_role(self, account_id: UUID) -> Role:
        """Get the role an account holds.

        Raises:
            NotFoundError: If the account or its role doesn't exist
        """
        role_id = await self.role_id_of(self.session, account_id)
        if role_id is None:
            raise NotFoundError(
                "Account not found",
                resource="account",
                resource_id=str(account_id),
            )

        role = await self.session.get(Role, role_id)
        if role is None:
            raise NotFoundError(
                "Role not found",
                resource="role",
                resource_id=str(role_id),
            )
        return role

    async def resolve(self, account_id: UUID) -> frozenset[str]:
        """Resolve the permission names an account holds.

        An empty set is a valid answer.

        Raises:
            NotFoundError: If the account or its role doesn't exist
        """
        role = await self.load_role(account_id)
        source = self.sources[role.role_kind]
        permissions = await source.permission_names(self.session, account_id, role)

        logger.debug(
            "permissions_resolved",
            account_id=str(account_id),
            role_kind=role.role_kind.value,
            count=len(permissions),
        )
        return permissions


async def resolve_permissions(
    session: AsyncSession, account_id: UUID, role_id_of: RoleIdLookup
) -> frozenset[str]:
    """Convenience wrapper for a one-off resolution without the cache."""
    return await PermissionResolver(session, role_id_of).resolve(account_id)


def session_loader(
    session_factory: async_sessionmaker[AsyncSession],
    role_id_of: RoleIdLookup,
) -> Callable[[UUID], Awaitable[frozenset[str]]]:
    """Build a cache loader that resolves in its own short-lived session."""

    async def load(account_id: UUID) -> frozenset[str]:
        async with session_factory() as session:
            return await PermissionResolver(session, role_id_of).resolve(account_id)

    return load


def role_name_loader(
    session_factory: async_sessionmaker[AsyncSession],
    role_id_of: RoleIdLookup,
) -> Callable[[UUID], Awaitable[str]]:
    """Build the role lookup used by the gate for role-name checks."""

    async def load(account_id: UUID) -> str:
        async with session_factory() as session:
            role = await PermissionResolver(session, role_id_of).load_role(account_id)
            return role.name

    return load
