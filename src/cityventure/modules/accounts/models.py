"""Account database model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cityventure.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_INVITATION_TOKEN_LENGTH,
    MAX_PHONE_LENGTH,
)
from cityventure.core.database.base import Base, TimestampMixin, UUIDMixin
from cityventure.core.permissions.models import Role


class Account(Base, UUIDMixin, TimestampMixin):
    """An authenticatable identity holding exactly one role.

    Attributes:
        email: Unique email address
        phone_number: Unique phone number
        password_hash: Bcrypt-hashed password
        role_id: The single role this account holds (never a preset)
        must_change_password: Set for staff until they pick their own password
        profile_completed: Set once the staff member finishes their profile
        is_verified: Whether the email/phone has been verified
        is_active: Whether the account can log in
        invitation_token: Token sent with a staff invitation, if any
        invitation_expires_at: When the invitation token stops working
    """

    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    phone_number: Mapped[str] = mapped_column(
        String(MAX_PHONE_LENGTH),
        nullable=False,
        unique=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    must_change_password: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    profile_completed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    invitation_token: Mapped[str | None] = mapped_column(
        String(MAX_INVITATION_TOKEN_LENGTH),
        nullable=True,
    )
    invitation_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    role: Mapped[Role] = relationship(
        Role,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email={self.email})>"
