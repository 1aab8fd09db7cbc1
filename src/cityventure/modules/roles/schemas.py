"""Pydantic schemas for role operations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cityventure.core.constants import MAX_PERMISSIONS_PER_REQUEST
from cityventure.core.permissions.models import PermissionScope, RoleKind


class RoleResponse(BaseModel):
    """Schema for role response data."""

    id: UUID
    name: str
    description: str | None = None
    role_kind: RoleKind
    is_custom: bool
    is_immutable: bool
    based_on_role_id: UUID | None = None
    business_id: UUID | None = None
    permission_names: list[str] = Field(
        default_factory=list,
        description="Role-level grants; always empty for business roles",
    )

    model_config = ConfigDict(from_attributes=True)


class RoleCloneRequest(BaseModel):
    """Schema for cloning a preset role into a business."""

    preset_id: UUID
    name: str | None = Field(None, description="Defaults to the preset's name")


class RoleCustomCreate(BaseModel):
    """Schema for creating a business role from scratch."""

    name: str
    description: str | None = None


class RoleUpdate(BaseModel):
    """Schema for updating a role. Only the provided fields change."""

    name: str | None = None
    description: str | None = None


class RolePermissionsUpdate(BaseModel):
    """Permission names to add to or remove from a role."""

    permissions: list[str] = Field(..., max_length=MAX_PERMISSIONS_PER_REQUEST)


class PermissionResponse(BaseModel):
    """Schema for a catalog permission."""

    name: str
    description: str | None = None
    category: str
    scope: PermissionScope

    model_config = ConfigDict(from_attributes=True)


class AuditEntryResponse(BaseModel):
    """One recorded change to a role."""

    id: UUID
    action: str
    performed_by: UUID | None = None
    request_id: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
