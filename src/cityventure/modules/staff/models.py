"""Staff profile database model."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cityventure.core.constants import (
    DEFAULT_STAFF_TITLE,
    MAX_NAME_LENGTH,
    MAX_STAFF_TITLE_LENGTH,
)
from cityventure.core.database.base import Base, TimestampMixin, UUIDMixin
from cityventure.modules.accounts.models import Account


class StaffProfile(Base, UUIDMixin, TimestampMixin):
    """Employment record of a staff member at one business.

    Always created together with its Account, never on its own.

    Attributes:
        account_id: The staff member's account (one profile per account)
        business_id: The employing business
        title: Job title shown to customers
        first_name: Given name
        middle_name: Middle name, if any
        last_name: Family name
    """

    __tablename__ = "staff_profiles"

    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    business_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(MAX_STAFF_TITLE_LENGTH),
        nullable=False,
        default=DEFAULT_STAFF_TITLE,
    )
    first_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    middle_name: Mapped[str | None] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=True,
    )
    last_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )

    # Relationship
    account: Mapped[Account] = relationship(
        Account,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<StaffProfile(id={self.id}, account_id={self.account_id})>"
