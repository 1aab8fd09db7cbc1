"""Pydantic schemas for staff onboarding."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from cityventure.core.constants import (
    MAX_NAME_LENGTH,
    MAX_PASSWORD_LENGTH,
    MAX_PERMISSIONS_PER_REQUEST,
    MAX_PHONE_LENGTH,
    MAX_STAFF_TITLE_LENGTH,
    MIN_PASSWORD_LENGTH,
)
from cityventure.core.permissions.models import RoleKind
from cityventure.modules.accounts.schemas import validate_password_complexity
from cityventure.modules.staff.models import StaffProfile


class StaffCreate(BaseModel):
    """Schema for onboarding a staff member."""

    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=MAX_PHONE_LENGTH)
    password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )
    first_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    middle_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    last_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    business_id: UUID
    role_id: UUID
    title: str | None = Field(None, max_length=MAX_STAFF_TITLE_LENGTH)
    permissions: list[str] = Field(
        default_factory=list,
        max_length=MAX_PERMISSIONS_PER_REQUEST,
        description="Per-account grants to give the new staff member",
    )

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """Validate password complexity."""
        return validate_password_complexity(v)


class StaffWithAccountView(BaseModel):
    """A staff profile joined with its account and role."""

    staff_id: UUID
    account_id: UUID
    business_id: UUID
    title: str
    first_name: str
    middle_name: str | None = None
    last_name: str
    email: EmailStr
    phone_number: str
    role_id: UUID
    role_name: str
    role_kind: RoleKind
    must_change_password: bool
    profile_completed: bool
    is_verified: bool
    is_active: bool

    @classmethod
    def from_profile(cls, profile: StaffProfile) -> "StaffWithAccountView":
        """Build the view from a profile with its account and role loaded."""
        account = profile.account
        return cls(
            staff_id=profile.id,
            account_id=account.id,
            business_id=profile.business_id,
            title=profile.title,
            first_name=profile.first_name,
            middle_name=profile.middle_name,
            last_name=profile.last_name,
            email=account.email,
            phone_number=account.phone_number,
            role_id=account.role.id,
            role_name=account.role.name,
            role_kind=account.role.role_kind,
            must_change_password=account.must_change_password,
            profile_completed=account.profile_completed,
            is_verified=account.is_verified,
            is_active=account.is_active,
        )
