"""Authorization database models.

- Permission: a catalog entry, referenced by name everywhere else
- Role: system, preset, or business role definition
- role_grants: permissions shared by every holder of a system/preset role
- UserGrant: permissions granted to one business-role account
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cityventure.core.constants import (
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_PERMISSION_NAME_LENGTH,
    MAX_ROLE_NAME_LENGTH,
)
from cityventure.core.database.base import Base, TimestampMixin, UUIDMixin


class RoleKind(str, Enum):
    """Which grant table is authoritative for holders of a role."""

    SYSTEM = "system"
    PRESET = "preset"
    BUSINESS = "business"


class PermissionScope(str, Enum):
    """Whether a permission concerns the whole platform or one business."""

    SYSTEM = "system"
    BUSINESS = "business"


# Junction table for system/preset Role <-> Permission
role_grants = Table(
    "role_grants",
    Base.metadata,
    Column(
        "role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "permission_id",
        Uuid,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(Base, UUIDMixin, TimestampMixin):
    """A named capability from the permission catalog.

    Attributes:
        name: Unique permission name (e.g., "view_bookings")
        description: Human-readable description
        category: Catalog category the permission is grouped under
        scope: system or business
    """

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_NAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )
    category: Mapped[str] = mapped_column(
        String(MAX_CATEGORY_LENGTH),
        nullable=False,
    )
    scope: Mapped[PermissionScope] = mapped_column(
        SAEnum(
            PermissionScope,
            native_enum=False,
            length=20,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
        default=PermissionScope.BUSINESS,
    )

    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary=role_grants,
        back_populates="permissions",
    )

    def __repr__(self) -> str:
        return f"<Permission({self.name})>"


class Role(Base, UUIDMixin, TimestampMixin):
    """Role definition.

    System roles are fixed platform roles and immutable. Preset roles are
    templates that are cloned into business roles and never assigned to an
    account. Business roles belong to one business; their holders get
    permissions from per-account grants, not from the role.

    Attributes:
        name: Role name, unique within its business (or among platform roles)
        role_kind: system, preset, or business
        is_custom: True for business roles built from scratch
        based_on_role_id: Preset this business role was cloned from
        is_immutable: Immutable roles can't be mutated or deleted
        business_id: Owning business for business roles
    """

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("business_id", "name", name="uq_role_business_name"),
    )

    name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    role_kind: Mapped[RoleKind] = mapped_column(
        SAEnum(
            RoleKind,
            native_enum=False,
            length=20,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
        index=True,
    )
    is_custom: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    based_on_role_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_immutable: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    business_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )

    # Relationships
    permissions: Mapped[list["Permission"]] = relationship(
        "Permission",
        secondary=role_grants,
        back_populates="roles",
        lazy="selectin",
    )
    based_on: Mapped["Role | None"] = relationship(
        "Role",
        remote_side="Role.id",
        lazy="selectin",
        join_depth=1,
    )

    @property
    def is_assignable(self) -> bool:
        """Preset roles are templates and can't be held by an account."""
        return self.role_kind != RoleKind.PRESET

    @property
    def permission_names(self) -> list[str]:
        """Names of the role-level grants, sorted."""
        return sorted(permission.name for permission in self.permissions)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name}, kind={self.role_kind.value})>"


class UserGrant(Base, TimestampMixin):
    """Permission granted to one business-role account.

    Attributes:
        account_id: The account holding the grant
        permission_id: The granted permission
        granted_by: Account that made the grant, if known
    """

    __tablename__ = "user_grants"

    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    permission_id: Mapped[UUID] = mapped_column(
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    granted_by: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
    )

    permission: Mapped["Permission"] = relationship(
        "Permission",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<UserGrant(account_id={self.account_id}, permission_id={self.permission_id})>"
