"""Role API routes.

Business roles are visible and editable only to callers who can access
the owning business. Preset and system roles are changed by account
administrators alone.
"""

from typing import Any
from uuid import UUID

from fastapi import Query, Response, status

from cityventure.core.auth import CurrentAccount
from cityventure.core.constants import DEFAULT_AUDIT_LIMIT, MAX_AUDIT_LIMIT
from cityventure.core.errors import AuthorizationDenied
from cityventure.core.permissions import (
    Gate,
    Role,
    RoleKind,
    require_any_permission,
    require_permission,
)
from cityventure.modules.businesses.services import BusinessAccess, BusinessAccessDep
from cityventure.modules.roles import router
from cityventure.modules.roles.repos import PermissionRepo
from cityventure.modules.roles.schemas import (
    AuditEntryResponse,
    PermissionResponse,
    RoleCloneRequest,
    RoleCustomCreate,
    RoleResponse,
    RoleUpdate,
)
from cityventure.modules.roles.services import RoleRegistry, RoleRegistryDep


async def _visible_role(
    role_id: UUID, registry: RoleRegistry, access: BusinessAccess, account: Any
) -> Role:
    role = await registry.get_role(role_id)
    if role.role_kind == RoleKind.BUSINESS:
        await access.require(account, role.business_id)
    return role


async def _editable_role(
    role_id: UUID, registry: RoleRegistry, access: BusinessAccess, account: Any
) -> Role:
    role = await _visible_role(role_id, registry, access, account)
    if role.role_kind != RoleKind.BUSINESS and not await access.manages_accounts(account):
        raise AuthorizationDenied()
    return role


# ============================================================
# Catalog and Lookup
# ============================================================


@router.get(
    "/permissions",
    response_model=list[PermissionResponse],
    summary="List permissions",
    description="The permission catalog as stored in the database.",
)
async def list_permissions(
    repo: PermissionRepo,
    current_account: CurrentAccount,  # noqa: ARG001 - required for auth
) -> list[PermissionResponse]:
    """List catalog permissions."""
    return [PermissionResponse.model_validate(p) for p in await repo.list_all()]


@router.get(
    "",
    response_model=list[RoleResponse],
    summary="List roles",
    description=(
        "List roles, optionally filtered by kind. Business roles of "
        "businesses the caller can't access are left out."
    ),
)
@require_any_permission(["manage_users", "manage_staff_roles"])
async def list_roles(
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
    kind: RoleKind | None = Query(None, description="system, preset, or business"),
) -> list[RoleResponse]:
    """List roles."""
    roles = await registry.list_roles(kind)
    businesses = await access.accessible_businesses(current_account)
    if businesses is not None:
        roles = [
            role
            for role in roles
            if role.role_kind != RoleKind.BUSINESS or role.business_id in businesses
        ]
    return [RoleResponse.model_validate(role) for role in roles]


@router.get(
    "/business/{business_id}",
    response_model=list[RoleResponse],
    summary="List business roles",
)
@require_any_permission(["manage_staff_roles", "view_staff"])
async def list_business_roles(
    business_id: UUID,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> list[RoleResponse]:
    """List the roles of one business."""
    await access.require(current_account, business_id)
    roles = await registry.list_business_roles(business_id)
    return [RoleResponse.model_validate(role) for role in roles]


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Get role",
)
@require_any_permission(["manage_users", "manage_staff_roles"])
async def get_role(
    role_id: UUID,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> RoleResponse:
    """Get role by ID."""
    role = await _visible_role(role_id, registry, access, current_account)
    return RoleResponse.model_validate(role)


@router.get(
    "/{role_id}/audit",
    response_model=list[AuditEntryResponse],
    summary="Get role audit trail",
    description="Recorded changes to a role, newest first.",
)
@require_any_permission(["manage_users", "manage_staff_roles"])
async def get_role_audit(
    role_id: UUID,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
    limit: int = Query(DEFAULT_AUDIT_LIMIT, ge=1, le=MAX_AUDIT_LIMIT),
) -> list[AuditEntryResponse]:
    """List a role's audit entries."""
    await _visible_role(role_id, registry, access, current_account)
    entries = await registry.audit_log(role_id, limit)
    return [AuditEntryResponse.model_validate(entry) for entry in entries]


# ============================================================
# Business Roles
# ============================================================


@router.post(
    "/business/{business_id}/clone",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Clone preset role",
    description="Create a business role based on a preset role.",
)
@require_permission("manage_staff_roles")
async def clone_role(
    business_id: UUID,
    data: RoleCloneRequest,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> RoleResponse:
    """Clone a preset role for a business."""
    await access.require(current_account, business_id)
    role = await registry.clone_role_for_business(
        data.preset_id, business_id, data.name, performed_by=current_account.id
    )
    return RoleResponse.model_validate(role)


@router.post(
    "/business/{business_id}/custom",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create custom business role",
)
@require_permission("manage_staff_roles")
async def create_custom_role(
    business_id: UUID,
    data: RoleCustomCreate,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> RoleResponse:
    """Create a business role from scratch."""
    await access.require(current_account, business_id)
    role = await registry.create_custom_business_role(
        business_id, data.name, data.description, performed_by=current_account.id
    )
    return RoleResponse.model_validate(role)


# ============================================================
# Mutation
# ============================================================


@router.patch(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Update role",
    description=(
        "Rename or re-describe a role. Immutable roles are rejected. "
        "Preset and system roles need manage_users."
    ),
)
@require_any_permission(["manage_users", "manage_staff_roles"])
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> RoleResponse:
    """Update a role."""
    await _editable_role(role_id, registry, access, current_account)
    role = await registry.mutate_role(role_id, data, performed_by=current_account.id)
    return RoleResponse.model_validate(role)


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete role",
    description=(
        "Delete a role nobody holds. Immutable roles are rejected. "
        "Preset and system roles need manage_users."
    ),
)
@require_any_permission(["manage_users", "manage_staff_roles"])
async def delete_role(
    role_id: UUID,
    registry: RoleRegistryDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> Response:
    """Delete a role."""
    await _editable_role(role_id, registry, access, current_account)
    await registry.delete_role(role_id, performed_by=current_account.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
