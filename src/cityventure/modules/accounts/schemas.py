"""Pydantic schemas for account operations."""

import re
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from cityventure.core.constants import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH
from cityventure.core.permissions.models import RoleKind


# ============================================================
# Password Validation
# ============================================================

# Password complexity rules: (regex pattern, human-readable name)
PASSWORD_COMPLEXITY_RULES: list[tuple[str, str]] = [
    (r"[A-Z]", "uppercase letter"),
    (r"[a-z]", "lowercase letter"),
    (r"\d", "digit"),
]


def validate_password_complexity(password: str) -> str:
    """Validate password meets complexity requirements.

    Raises:
        ValueError: If password doesn't meet requirements
    """
    missing = [
        name
        for pattern, name in PASSWORD_COMPLEXITY_RULES
        if not re.search(pattern, password)
    ]

    if missing:
        if len(missing) == 1:
            raise ValueError(f"Password must contain at least one {missing[0]}")
        raise ValueError(f"Password must contain at least one: {', '.join(missing)}")

    return password


# ============================================================
# Account Schemas
# ============================================================


class RoleRef(BaseModel):
    """The role an account holds, as embedded in account responses."""

    id: UUID
    name: str
    role_kind: RoleKind

    model_config = ConfigDict(from_attributes=True)


class AccountResponse(BaseModel):
    """Schema for account response data."""

    id: UUID
    email: EmailStr
    phone_number: str
    role: RoleRef
    must_change_password: bool
    profile_completed: bool
    is_verified: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PasswordChangeRequest(BaseModel):
    """Schema for replacing the initial password."""

    new_password: str = Field(
        ..., min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH
    )

    @field_validator("new_password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """Validate password complexity."""
        return validate_password_complexity(v)


class ActiveUpdate(BaseModel):
    """Schema for activating or deactivating an account."""

    is_active: bool


class PermissionSetResponse(BaseModel):
    """Resolved permissions of an account."""

    account_id: UUID
    permissions: list[str]


# ============================================================
# Authentication Schemas
# ============================================================


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: EmailStr
    password: str
