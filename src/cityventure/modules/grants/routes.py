"""Grant API routes: per-account grants, role-level grants, role assignment,
and management of other accounts.

Per-account routes act on staff of a business the caller can access,
never on the caller's own account, and only hand out permissions the
caller holds. Account administrators may act on any account.
"""

from typing import Any
from uuid import UUID

from fastapi import Response, status

from cityventure.core.auth import CurrentAccount
from cityventure.core.permissions import (
    Gate,
    PermissionCache,
    PermissionCacheDep,
    require_any_permission,
    require_permission,
)
from cityventure.modules.accounts.schemas import AccountResponse, ActiveUpdate
from cityventure.modules.accounts.services import AccountSvc
from cityventure.modules.businesses.services import BusinessAccess, BusinessAccessDep
from cityventure.modules.grants import router
from cityventure.modules.grants.schemas import (
    AccountPermissionsResponse,
    PermissionNames,
    RoleAssignment,
)
from cityventure.modules.grants.services import GrantSvc
from cityventure.modules.roles.schemas import RoleResponse


async def _permissions_response(
    account_id: UUID, grants: GrantSvc, cache: PermissionCacheDep
) -> AccountPermissionsResponse:
    granted = await grants.list_user_permissions(account_id)
    effective = await cache.get(account_id)
    return AccountPermissionsResponse(
        account_id=account_id,
        granted=granted,
        effective=sorted(effective),
    )


async def _grantable_to_staff(
    current_account: Any, account_id: UUID, access: BusinessAccess, cache: PermissionCache
) -> frozenset[str]:
    """Permissions the caller may hand to ``account_id``, a staff member they manage."""
    await access.require_employer(current_account, account_id)
    return await cache.get(current_account.id)


# ============================================================
# Per-account Grants
# ============================================================


@router.get(
    "/accounts/{account_id}/permissions",
    response_model=AccountPermissionsResponse,
    summary="Get account permissions",
)
@require_any_permission(["manage_staff_roles", "manage_users"])
async def get_account_permissions(
    account_id: UUID,
    grants: GrantSvc,
    cache: PermissionCacheDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountPermissionsResponse:
    """Get an account's grants and effective permissions."""
    await access.require_account_access(current_account, account_id)
    return await _permissions_response(account_id, grants, cache)


@router.put(
    "/accounts/{account_id}/permissions",
    response_model=AccountPermissionsResponse,
    summary="Replace account permissions",
    description="Replace the per-account grants of a business-role account.",
)
@require_permission("manage_staff_roles")
async def set_account_permissions(
    account_id: UUID,
    data: PermissionNames,
    grants: GrantSvc,
    cache: PermissionCacheDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountPermissionsResponse:
    """Replace an account's grants."""
    grantable = await _grantable_to_staff(current_account, account_id, access, cache)
    await grants.set_user_permissions(
        account_id, data.permissions, granted_by=current_account.id, grantable=grantable
    )
    return await _permissions_response(account_id, grants, cache)


@router.post(
    "/accounts/{account_id}/preset-defaults",
    response_model=AccountPermissionsResponse,
    summary="Apply preset defaults",
    description="Grant the permissions of the preset the account's role was cloned from.",
)
@require_permission("manage_staff_roles")
async def apply_preset_defaults(
    account_id: UUID,
    grants: GrantSvc,
    cache: PermissionCacheDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountPermissionsResponse:
    """Apply the preset's default permissions to an account."""
    grantable = await _grantable_to_staff(current_account, account_id, access, cache)
    await grants.apply_preset_defaults(
        account_id, granted_by=current_account.id, grantable=grantable
    )
    return await _permissions_response(account_id, grants, cache)


@router.post(
    "/accounts/{account_id}/permissions/{permission_name}",
    response_model=AccountPermissionsResponse,
    summary="Grant permission",
)
@require_permission("manage_staff_roles")
async def grant_account_permission(
    account_id: UUID,
    permission_name: str,
    grants: GrantSvc,
    cache: PermissionCacheDep,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountPermissionsResponse:
    """Grant one permission to an account."""
    grantable = await _grantable_to_staff(current_account, account_id, access, cache)
    await grants.grant_user_permission(
        account_id, permission_name, granted_by=current_account.id, grantable=grantable
    )
    return await _permissions_response(account_id, grants, cache)


@router.delete(
    "/accounts/{account_id}/permissions/{permission_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke permission",
)
@require_permission("manage_staff_roles")
async def revoke_account_permission(
    account_id: UUID,
    permission_name: str,
    grants: GrantSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> Response:
    """Revoke one permission from an account."""
    await access.require_employer(current_account, account_id)
    await grants.revoke_user_permission(account_id, permission_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/accounts/{account_id}/role",
    response_model=AccountResponse,
    summary="Assign role",
    description=(
        "Move an account to another role. Preset roles are rejected. Without "
        "manage_users only business roles of the staff member's business may be given."
    ),
)
@require_any_permission(["manage_users", "manage_staff_roles"])
async def assign_role(
    account_id: UUID,
    data: RoleAssignment,
    grants: GrantSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountResponse:
    """Assign a role to an account."""
    business_id = await access.require_account_access(current_account, account_id)
    account = await grants.assign_role(account_id, data.role_id, business_id=business_id)
    return AccountResponse.model_validate(account)


# ============================================================
# Account Management
# ============================================================


@router.get(
    "/accounts/{account_id}",
    response_model=AccountResponse,
    summary="Get account",
    description="Get an account by ID. Requires manage_users or view_staff.",
)
@require_any_permission(["manage_users", "view_staff"])
async def get_account(
    account_id: UUID,
    service: AccountSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountResponse:
    """Get account by ID."""
    await access.require_account_access(current_account, account_id)
    account = await service.get_account(account_id)
    return AccountResponse.model_validate(account)


@router.put(
    "/accounts/{account_id}/active",
    response_model=AccountResponse,
    summary="Activate or deactivate account",
    description="Requires manage_users or update_staff.",
)
@require_any_permission(["manage_users", "update_staff"])
async def set_account_active(
    account_id: UUID,
    data: ActiveUpdate,
    service: AccountSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> AccountResponse:
    """Activate or deactivate an account."""
    await access.require_account_access(current_account, account_id)
    account = await service.set_active(account_id, data.is_active)
    return AccountResponse.model_validate(account)


# ============================================================
# Role-level Grants
# ============================================================


@router.post(
    "/roles/{role_id}/permissions",
    response_model=RoleResponse,
    summary="Add role-level grants",
    description="System and preset roles only.",
)
@require_permission("manage_users")
async def grant_role_permissions(
    role_id: UUID,
    data: PermissionNames,
    grants: GrantSvc,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> RoleResponse:
    """Grant permissions to a role."""
    role = await grants.grant_role_permissions(
        role_id, data.permissions, performed_by=current_account.id
    )
    return RoleResponse.model_validate(role)


@router.delete(
    "/roles/{role_id}/permissions",
    response_model=RoleResponse,
    summary="Remove role-level grants",
    description="System and preset roles only.",
)
@require_permission("manage_users")
async def revoke_role_permissions(
    role_id: UUID,
    data: PermissionNames,
    grants: GrantSvc,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> RoleResponse:
    """Revoke permissions from a role."""
    role = await grants.revoke_role_permissions(
        role_id, data.permissions, performed_by=current_account.id
    )
    return RoleResponse.model_validate(role)
