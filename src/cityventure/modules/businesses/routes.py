"""Business ownership routes.

Ownership is granted by the platform, so every route here requires
manage_all_businesses.
"""

from uuid import UUID

from fastapi import Response, status

from cityventure.core.auth import CurrentAccount
from cityventure.core.permissions import Gate, require_permission
from cityventure.modules.businesses import router
from cityventure.modules.businesses.schemas import BusinessOwnersResponse, OwnerCreate
from cityventure.modules.businesses.services import BusinessOwnerSvc


@router.get(
    "/{business_id}/owners",
    response_model=BusinessOwnersResponse,
    summary="List business owners",
)
@require_permission("manage_all_businesses")
async def list_owners(
    business_id: UUID,
    service: BusinessOwnerSvc,
    current_account: CurrentAccount,  # noqa: ARG001 - required for auth
    gate: Gate,  # noqa: ARG001 - required for auth
) -> BusinessOwnersResponse:
    """List the owners of a business."""
    owner_ids = await service.list_owners(business_id)
    return BusinessOwnersResponse(business_id=business_id, owner_ids=owner_ids)


@router.post(
    "/{business_id}/owners",
    response_model=BusinessOwnersResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add business owner",
)
@require_permission("manage_all_businesses")
async def add_owner(
    business_id: UUID,
    data: OwnerCreate,
    service: BusinessOwnerSvc,
    current_account: CurrentAccount,  # noqa: ARG001 - required for auth
    gate: Gate,  # noqa: ARG001 - required for auth
) -> BusinessOwnersResponse:
    """Make an account an owner of a business."""
    await service.add_owner(business_id, data.account_id)
    owner_ids = await service.list_owners(business_id)
    return BusinessOwnersResponse(business_id=business_id, owner_ids=owner_ids)


@router.delete(
    "/{business_id}/owners/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove business owner",
)
@require_permission("manage_all_businesses")
async def remove_owner(
    business_id: UUID,
    account_id: UUID,
    service: BusinessOwnerSvc,
    current_account: CurrentAccount,  # noqa: ARG001 - required for auth
    gate: Gate,  # noqa: ARG001 - required for auth
) -> Response:
    """Remove an owner from a business."""
    await service.remove_owner(business_id, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
