"""Role registry: lifecycle rules for system, preset, and business roles."""

import re
from collections.abc import Iterable
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends

from cityventure.api.dependencies import DBSession
from cityventure.core.audit import AuditAction, AuditLog, list_entries, record_action
from cityventure.core.constants import (
    DEFAULT_AUDIT_LIMIT,
    MAX_ROLE_NAME_LENGTH,
    MIN_ROLE_NAME_LENGTH,
    ROLE_NAME_PATTERN,
)
from cityventure.core.errors import (
    ConflictError,
    ImmutableRoleError,
    NotFoundError,
    ValidationError,
)
from cityventure.core.permissions.models import Permission, Role, RoleKind
from cityventure.modules.accounts.repos import AccountRepository
from cityventure.modules.roles.repos import PermissionRepository, RoleRepository
from cityventure.modules.roles.schemas import RoleUpdate


logger = structlog.get_logger()

ROLE_RESOURCE = "role"


def validate_role_name(name: str) -> str:
    """Check a role name and return it with surrounding whitespace removed.

    Raises:
        ValidationError: If the name is too short, too long, or has bad characters
    """
    cleaned = name.strip()
    problem = None
    if len(cleaned) < MIN_ROLE_NAME_LENGTH:
        problem = f"Role name must be at least {MIN_ROLE_NAME_LENGTH} characters"
    elif len(cleaned) > MAX_ROLE_NAME_LENGTH:
        problem = f"Role name must be {MAX_ROLE_NAME_LENGTH} characters or less"
    elif not re.match(ROLE_NAME_PATTERN, cleaned):
        problem = (
            "Role name can only contain letters, numbers, spaces, hyphens, "
            "and underscores"
        )

    if problem:
        raise ValidationError(
            "Invalid role name",
            errors=[{"field": "name", "message": problem}],
        )
    return cleaned


class RoleRegistry:
    """Creates, changes, and removes role definitions.

    Immutable roles are rejected before anything is written. Preset
    roles are templates: they can be cloned into a business but never
    held by an account.
    """

    def __init__(self, session: DBSession) -> None:
        self.session = session
        self.roles = RoleRepository(session)
        self.permissions = PermissionRepository(session)
        self.accounts = AccountRepository(session)

    # ------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------

    async def get_role(self, role_id: UUID) -> Role:
        """Get a role by ID.

        Raises:
            NotFoundError: If role not found
        """
        role = await self.roles.get_by_id(role_id)
        if not role:
            raise NotFoundError(
                "Role not found",
                resource="role",
                resource_id=str(role_id),
            )
        return role

    async def list_roles(self, kind: RoleKind | None = None) -> list[Role]:
        """List roles, optionally of one kind."""
        return await self.roles.list_all(kind)

    async def list_business_roles(self, business_id: UUID) -> list[Role]:
        """List the roles a business owns."""
        return await self.roles.list_by_business(business_id)

    async def require_business_role(self, role_id: UUID, business_id: UUID) -> Role:
        """Get a role that staff of ``business_id`` may hold.

        Raises:
            NotFoundError: If role not found
            ValidationError: If the role isn't a business role of that business
        """
        role = await self.get_role(role_id)
        if role.role_kind != RoleKind.BUSINESS or role.business_id != business_id:
            raise ValidationError(
                "Role is not a role of this business",
                errors=[
                    {
                        "field": "role_id",
                        "message": "Must be a business role owned by the business",
                    }
                ],
            )
        return role

    # ------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------

    async def _lookup_permissions(self, names: Iterable[str]) -> list[Permission]:
        wanted = sorted(set(names))
        found = await self.permissions.get_many(wanted)
        missing = sorted(set(wanted) - {p.name for p in found})
        if missing:
            raise NotFoundError(
                "Unknown permission",
                resource="permission",
                resource_id=", ".join(missing),
            )
        return found

    async def _ensure_name_free(self, name: str, business_id: UUID | None) -> None:
        if await self.roles.get_by_name(name, business_id):
            raise ConflictError(
                "A role with this name already exists",
                error_code="role_name_taken",
                details={"name": name},
            )

    def _audit(
        self,
        role: Role,
        action: AuditAction,
        performed_by: UUID | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> None:
        record_action(
            self.session,
            ROLE_RESOURCE,
            role.id,
            action,
            performed_by=performed_by,
            old_values=old_values,
            new_values=new_values,
        )

    async def create_system_role(
        self,
        name: str,
        description: str | None = None,
        permissions: Iterable[str] = (),
        performed_by: UUID | None = None,
    ) -> Role:
        """Create an immutable platform role with role-level grants."""
        name = validate_role_name(name)
        await self._ensure_name_free(name, None)
        role = Role(
            name=name,
            description=description,
            role_kind=RoleKind.SYSTEM,
            is_custom=False,
            is_immutable=True,
            permissions=await self._lookup_permissions(permissions),
        )
        role = await self.roles.create(role)
        self._audit(role, AuditAction.CREATED, performed_by, new_values=_snapshot(role))

        logger.info("role_created", role_id=str(role.id), role_kind=role.role_kind.value)
        return role

    async def create_preset_role(
        self,
        name: str,
        description: str | None = None,
        permissions: Iterable[str] = (),
        performed_by: UUID | None = None,
    ) -> Role:
        """Create a preset template that businesses can clone."""
        name = validate_role_name(name)
        await self._ensure_name_free(name, None)
        role = Role(
            name=name,
            description=description,
            role_kind=RoleKind.PRESET,
            is_custom=False,
            is_immutable=False,
            permissions=await self._lookup_permissions(permissions),
        )
        role = await self.roles.create(role)
        self._audit(role, AuditAction.CREATED, performed_by, new_values=_snapshot(role))

        logger.info("role_created", role_id=str(role.id), role_kind=role.role_kind.value)
        return role

    async def clone_role_for_business(
        self,
        preset_id: UUID,
        business_id: UUID,
        name: str | None = None,
        performed_by: UUID | None = None,
    ) -> Role:
        """Create a business-owned role based on a preset.

        The clone carries no role-level grants; holders get permissions
        from per-account grants.

        Raises:
            NotFoundError: If ``preset_id`` isn't a preset role
            ConflictError: If the business already has a role with that name
        """
        preset = await self.roles.get_by_id(preset_id)
        if preset is None or preset.role_kind != RoleKind.PRESET:
            raise NotFoundError(
                "Preset role not found",
                resource="preset_role",
                resource_id=str(preset_id),
            )

        role_name = validate_role_name(name if name is not None else preset.name)
        await self._ensure_name_free(role_name, business_id)

        role = Role(
            name=role_name,
            description=preset.description,
            role_kind=RoleKind.BUSINESS,
            is_custom=False,
            based_on_role_id=preset.id,
            is_immutable=False,
            business_id=business_id,
        )
        role = await self.roles.create(role)
        self._audit(
            role,
            AuditAction.CLONED,
            performed_by,
            new_values={
                "name": role.name,
                "based_on_role_id": str(preset.id),
                "business_id": str(business_id),
            },
        )

        logger.info(
            "role_cloned",
            role_id=str(role.id),
            preset_id=str(preset.id),
            business_id=str(business_id),
        )
        return role

    async def create_custom_business_role(
        self,
        business_id: UUID,
        name: str,
        description: str | None = None,
        performed_by: UUID | None = None,
    ) -> Role:
        """Create a business role that isn't based on any preset."""
        name = validate_role_name(name)
        await self._ensure_name_free(name, business_id)

        role = Role(
            name=name,
            description=description,
            role_kind=RoleKind.BUSINESS,
            is_custom=True,
            is_immutable=False,
            business_id=business_id,
        )
        role = await self.roles.create(role)
        self._audit(
            role,
            AuditAction.CREATED,
            performed_by,
            new_values={**_snapshot(role), "business_id": str(business_id)},
        )

        logger.info(
            "custom_role_created",
            role_id=str(role.id),
            business_id=str(business_id),
        )
        return role

    # ------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------

    async def mutable_role(self, role_id: UUID) -> Role:
        """Get a role that may be changed.

        Raises:
            NotFoundError: If role not found
            ImmutableRoleError: If the role is immutable
        """
        role = await self.get_role(role_id)
        if role.is_immutable:
            raise ImmutableRoleError(role_id=str(role_id))
        return role

    async def mutate_role(
        self,
        role_id: UUID,
        patch: RoleUpdate,
        performed_by: UUID | None = None,
    ) -> Role:
        """Apply a partial update to a role.

        Raises:
            NotFoundError: If role not found
            ImmutableRoleError: If the role is immutable
            ValidationError: If the new name is invalid
            ConflictError: If the new name is taken
        """
        role = await self.mutable_role(role_id)
        changes = patch.model_dump(exclude_unset=True)
        before = {"name": role.name, "description": role.description}

        if changes.get("name") is not None:
            new_name = validate_role_name(changes["name"])
            if new_name.lower() != role.name.lower():
                await self._ensure_name_free(new_name, role.business_id)
            role.name = new_name

        if "description" in changes:
            role.description = changes["description"]

        role = await self.roles.update(role)
        after = {"name": role.name, "description": role.description}
        if after != before:
            self._audit(
                role,
                AuditAction.UPDATED,
                performed_by,
                old_values=before,
                new_values=after,
            )

        logger.info("role_updated", role_id=str(role_id), fields=sorted(changes))
        return role

    async def delete_role(self, role_id: UUID, performed_by: UUID | None = None) -> None:
        """Delete a role nobody holds.

        Raises:
            NotFoundError: If role not found
            ImmutableRoleError: If the role is immutable
            ConflictError: If accounts still hold the role
        """
        role = await self.mutable_role(role_id)

        holders = await self.accounts.count_by_role(role_id)
        if holders:
            raise ConflictError(
                "Role is still assigned to accounts",
                error_code="role_in_use",
                details={"account_count": holders},
            )

        self._audit(role, AuditAction.DELETED, performed_by, old_values=_snapshot(role))
        await self.roles.delete(role)
        logger.info("role_deleted", role_id=str(role_id))

    # ------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------

    async def audit_log(self, role_id: UUID, limit: int = DEFAULT_AUDIT_LIMIT) -> list[AuditLog]:
        """Recorded changes to a role, newest first.

        Raises:
            NotFoundError: If role not found
        """
        await self.get_role(role_id)
        return await list_entries(self.session, ROLE_RESOURCE, role_id, limit)


def _snapshot(role: Role) -> dict[str, Any]:
    return {
        "name": role.name,
        "description": role.description,
        "permissions": sorted(role.permission_names),
    }


# Type alias for dependency injection
RoleRegistryDep = Annotated[RoleRegistry, Depends(RoleRegistry)]
