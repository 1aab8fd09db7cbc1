"""Pydantic schemas for grant operations."""

from uuid import UUID

from pydantic import BaseModel, Field

from cityventure.core.constants import MAX_PERMISSIONS_PER_REQUEST


class PermissionNames(BaseModel):
    """A list of permission names."""

    permissions: list[str] = Field(..., max_length=MAX_PERMISSIONS_PER_REQUEST)


class AccountPermissionsResponse(BaseModel):
    """An account's direct grants next to its effective permissions."""

    account_id: UUID
    granted: list[str] = Field(description="Per-account grants")
    effective: list[str] = Field(description="What the account can actually do")


class RoleAssignment(BaseModel):
    """Schema for moving an account to another role."""

    role_id: UUID
