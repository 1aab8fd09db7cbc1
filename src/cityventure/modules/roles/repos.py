"""Role and permission repositories."""

from collections.abc import Iterable
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select

from cityventure.api.dependencies import DBSession
from cityventure.core.permissions.models import Permission, Role, RoleKind


class RoleRepository:
    """Repository for Role database operations."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def create(self, role: Role) -> Role:
        """Create a new role.

        Args:
            role: Role instance to create

        Returns:
            The created role
        """
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_id(self, role_id: UUID) -> Role | None:
        """Get a role by ID."""
        stmt = select(Role).where(Role.id == role_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str, business_id: UUID | None) -> Role | None:
        """Get a role by name within a business, or among platform roles.

        Names are compared case-insensitively.
        """
        stmt = select(Role).where(func.lower(Role.name) == name.lower())
        if business_id is None:
            stmt = stmt.where(Role.business_id.is_(None))
        else:
            stmt = stmt.where(Role.business_id == business_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_all(self, kind: RoleKind | None = None) -> list[Role]:
        """List roles, optionally of one kind, ordered by name."""
        stmt = select(Role).order_by(Role.name)
        if kind is not None:
            stmt = stmt.where(Role.role_kind == kind)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_business(self, business_id: UUID) -> list[Role]:
        """List the roles owned by a business."""
        stmt = (
            select(Role)
            .where(Role.business_id == business_id, Role.role_kind == RoleKind.BUSINESS)
            .order_by(Role.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, role: Role) -> Role:
        """Flush pending changes to a role."""
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def delete(self, role: Role) -> None:
        """Delete a role."""
        await self.session.delete(role)
        await self.session.flush()


class PermissionRepository:
    """Repository for Permission lookups."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def get_by_name(self, name: str) -> Permission | None:
        """Get a permission by name."""
        stmt = select(Permission).where(Permission.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, names: Iterable[str]) -> list[Permission]:
        """Get the permissions with the given names; unknown names are skipped."""
        wanted = set(names)
        if not wanted:
            return []
        stmt = select(Permission).where(Permission.name.in_(wanted)).order_by(Permission.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> list[Permission]:
        """List all permissions ordered by category and name."""
        stmt = select(Permission).order_by(Permission.category, Permission.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


# Type aliases for dependency injection
RoleRepo = Annotated[RoleRepository, Depends(RoleRepository)]
PermissionRepo = Annotated[PermissionRepository, Depends(PermissionRepository)]
