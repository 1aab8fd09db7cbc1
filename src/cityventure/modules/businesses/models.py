"""Business ownership database model."""

from uuid import UUID

from sqlalchemy import ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cityventure.core.database.base import Base, TimestampMixin


class BusinessOwner(Base, TimestampMixin):
    """Links an owner account to a business it owns.

    Businesses themselves live in the listings service; only their IDs
    are stored here. An account may own several businesses and a
    business may have several owners.
    """

    __tablename__ = "business_owners"

    business_id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<BusinessOwner(business_id={self.business_id}, account_id={self.account_id})>"
