"""Staff API routes.

Every route acts on one business, and the caller must be able to
access it: platform administrators, its owners, or its own staff.
"""

import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import Response, status

from cityventure.core.auth import CurrentAccount, hash_password
from cityventure.core.constants import INVITATION_EXPIRE_HOURS, INVITATION_TOKEN_BYTES
from cityventure.core.permissions import Gate, PermissionCacheDep, require_permission
from cityventure.modules.businesses.services import BusinessAccessDep
from cityventure.modules.staff import router
from cityventure.modules.staff.schemas import StaffCreate, StaffWithAccountView
from cityventure.modules.staff.services import StaffOnboardingSvc


@router.post(
    "",
    response_model=StaffWithAccountView,
    status_code=status.HTTP_201_CREATED,
    summary="Onboard staff member",
    description=(
        "Create the account and staff profile in one step. Requires create_staff. "
        "Initial permissions must be ones the caller holds."
    ),
)
@require_permission("create_staff")
async def onboard_staff(
    data: StaffCreate,
    service: StaffOnboardingSvc,
    access: BusinessAccessDep,
    cache: PermissionCacheDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> StaffWithAccountView:
    """Onboard a staff member."""
    await access.require(current_account, data.business_id)
    return await service.onboard_staff(
        email=data.email,
        phone_number=data.phone_number,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        middle_name=data.middle_name,
        last_name=data.last_name,
        business_id=data.business_id,
        role_id=data.role_id,
        title=data.title,
        invitation_token=secrets.token_urlsafe(INVITATION_TOKEN_BYTES),
        invitation_expires_at=datetime.now(UTC) + timedelta(hours=INVITATION_EXPIRE_HOURS),
        initial_permissions=data.permissions,
        grantable=await cache.get(current_account.id),
    )


@router.get(
    "/business/{business_id}",
    response_model=list[StaffWithAccountView],
    summary="List business staff",
)
@require_permission("view_staff")
async def list_staff(
    business_id: UUID,
    service: StaffOnboardingSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> list[StaffWithAccountView]:
    """List the staff of a business."""
    await access.require(current_account, business_id)
    return await service.list_staff(business_id)


@router.get(
    "/{staff_id}",
    response_model=StaffWithAccountView,
    summary="Get staff member",
)
@require_permission("view_staff")
async def get_staff(
    staff_id: UUID,
    service: StaffOnboardingSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> StaffWithAccountView:
    """Get a staff member."""
    staff = await service.get_staff(staff_id)
    await access.require(current_account, staff.business_id)
    return staff


@router.delete(
    "/{staff_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove staff member",
    description="Delete the staff profile together with its account.",
)
@require_permission("delete_staff")
async def remove_staff(
    staff_id: UUID,
    service: StaffOnboardingSvc,
    access: BusinessAccessDep,
    current_account: CurrentAccount,
    gate: Gate,  # noqa: ARG001 - required for auth
) -> Response:
    """Remove a staff member."""
    staff = await service.get_staff(staff_id)
    await access.require(current_account, staff.business_id)
    await service.remove_staff(staff_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
