"""Pydantic schemas for business ownership."""

from uuid import UUID

from pydantic import BaseModel


class OwnerCreate(BaseModel):
    """Schema for adding an owner to a business."""

    account_id: UUID


class BusinessOwnersResponse(BaseModel):
    """Owner accounts of one business."""

    business_id: UUID
    owner_ids: list[UUID]
