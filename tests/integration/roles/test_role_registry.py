"""Integration tests for the role registry."""

from uuid import UUID, uuid4

import pytest
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cityventure.core.audit import AuditAction, list_entries
from cityventure.core.errors import (
    ConflictError,
    ImmutableRoleError,
    NotFoundError,
    ValidationError,
)
from cityventure.core.permissions.models import Role, RoleKind
from cityventure.modules.accounts.models import Account
from cityventure.modules.roles.schemas import RoleUpdate
from cityventure.modules.roles.services import RoleRegistry


pytestmark = pytest.mark.integration


@pytest.fixture
def registry(seeded: AsyncSession) -> RoleRegistry:
    return RoleRegistry(seeded)


async def stored_role(session: AsyncSession, role_id: UUID) -> Role:
    """Re-read a role from the database, bypassing the identity map."""
    result = await session.execute(
        select(Role).where(Role.id == role_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestImmutableRoles:
    """System roles can't be changed or removed."""

    async def test_mutate_immutable_role_fails(
        self, seeded: AsyncSession, registry: RoleRegistry, owner_role: Role
    ):
        """Renaming a system role should raise and leave the row unchanged."""
        role_id = owner_role.id

        with pytest.raises(ImmutableRoleError):
            await registry.mutate_role(role_id, RoleUpdate(name="Boss"))

        role = await stored_role(seeded, role_id)
        assert role.name == "Business Owner"
        assert role.is_immutable

    async def test_delete_immutable_role_fails(
        self, seeded: AsyncSession, registry: RoleRegistry, tourist_role: Role
    ):
        """Deleting a system role should raise and keep the row."""
        role_id = tourist_role.id

        with pytest.raises(ImmutableRoleError):
            await registry.delete_role(role_id)

        assert (await stored_role(seeded, role_id)).name == "Tourist"

    async def test_create_system_role_is_immutable(self, registry: RoleRegistry):
        """New system roles should be created immutable with their grants."""
        role = await registry.create_system_role(
            "Auditor", "Reads reports", ["view_platform_analytics"]
        )

        assert role.role_kind == RoleKind.SYSTEM
        assert role.is_immutable
        assert role.permission_names == ["view_platform_analytics"]


class TestCloning:
    """Preset roles are cloned into businesses."""

    async def test_clone_preset(
        self, registry: RoleRegistry, receptionist_preset: Role, business_id: UUID
    ):
        """A clone should be a mutable business role pointing at its preset."""
        role = await registry.clone_role_for_business(receptionist_preset.id, business_id)

        assert role.id != receptionist_preset.id
        assert role.name == "Receptionist"
        assert role.role_kind == RoleKind.BUSINESS
        assert role.based_on_role_id == receptionist_preset.id
        assert role.business_id == business_id
        assert not role.is_immutable
        assert not role.is_custom
        assert role.permissions == []

    async def test_clone_with_new_name(
        self, registry: RoleRegistry, receptionist_preset: Role, business_id: UUID
    ):
        """The clone may be given its own name."""
        role = await registry.clone_role_for_business(
            receptionist_preset.id, business_id, name="Front Desk"
        )
        assert role.name == "Front Desk"

    async def test_same_preset_in_two_businesses(
        self, registry: RoleRegistry, receptionist_preset: Role
    ):
        """Names only have to be unique within one business."""
        first = await registry.clone_role_for_business(receptionist_preset.id, uuid4())
        second = await registry.clone_role_for_business(receptionist_preset.id, uuid4())

        assert first.id != second.id
        assert first.name == second.name == "Receptionist"

    async def test_clone_twice_in_one_business_conflicts(
        self, registry: RoleRegistry, receptionist_preset: Role, business_role: Role
    ):
        """A second clone with the same name in the same business should conflict."""
        with pytest.raises(ConflictError) as exc_info:
            await registry.clone_role_for_business(
                receptionist_preset.id, business_role.business_id
            )
        assert exc_info.value.error_code == "role_name_taken"

    async def test_clone_of_system_role_rejected(
        self, registry: RoleRegistry, owner_role: Role, business_id: UUID
    ):
        """Only presets can be cloned."""
        with pytest.raises(NotFoundError):
            await registry.clone_role_for_business(owner_role.id, business_id)

    async def test_clone_of_business_role_rejected(
        self, registry: RoleRegistry, business_role: Role
    ):
        """A clone can't be cloned again."""
        with pytest.raises(NotFoundError):
            await registry.clone_role_for_business(business_role.id, uuid4())

    async def test_clone_of_unknown_role_rejected(
        self, registry: RoleRegistry, business_id: UUID
    ):
        """An unknown preset ID should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await registry.clone_role_for_business(uuid4(), business_id)


class TestBusinessRoles:
    """Custom roles, renames and deletion."""

    async def test_create_custom_role(self, registry: RoleRegistry, business_id: UUID):
        """A custom role should be a business role with no preset."""
        role = await registry.create_custom_business_role(business_id, "Night Porter")

        assert role.role_kind == RoleKind.BUSINESS
        assert role.is_custom
        assert role.based_on_role_id is None
        assert role.business_id == business_id

    async def test_custom_role_name_is_validated(
        self, registry: RoleRegistry, business_id: UUID
    ):
        """An invalid name should be rejected before anything is written."""
        with pytest.raises(ValidationError):
            await registry.create_custom_business_role(business_id, "Porter!")

    async def test_names_are_case_insensitive_within_business(
        self, registry: RoleRegistry, business_role: Role
    ):
        """'receptionist' should clash with an existing 'Receptionist'."""
        with pytest.raises(ConflictError):
            await registry.create_custom_business_role(
                business_role.business_id, "receptionist"
            )

    async def test_rename_business_role(
        self, seeded: AsyncSession, registry: RoleRegistry, business_role: Role
    ):
        """A business role may be renamed and re-described."""
        role = await registry.mutate_role(
            business_role.id, RoleUpdate(name="Front Desk", description="Lobby")
        )
        await seeded.commit()

        assert role.name == "Front Desk"
        assert role.description == "Lobby"
        assert (await stored_role(seeded, business_role.id)).name == "Front Desk"

    async def test_delete_unused_role(
        self, seeded: AsyncSession, registry: RoleRegistry, business_id: UUID
    ):
        """A role nobody holds can be deleted."""
        role = await registry.create_custom_business_role(business_id, "Temp")
        role_id = role.id

        await registry.delete_role(role_id)
        await seeded.commit()

        with pytest.raises(NotFoundError):
            await registry.get_role(role_id)

    async def test_delete_role_in_use_conflicts(
        self, registry: RoleRegistry, business_role: Role, staff_account: Account
    ):
        """A role that accounts hold can't be deleted."""
        with pytest.raises(ConflictError) as exc_info:
            await registry.delete_role(business_role.id)

        assert exc_info.value.error_code == "role_in_use"
        assert exc_info.value.details == {"account_count": 1}

    async def test_require_business_role_checks_owner(
        self, registry: RoleRegistry, business_role: Role
    ):
        """A business role is only valid for the business that owns it."""
        assert (
            await registry.require_business_role(business_role.id, business_role.business_id)
        ).id == business_role.id

        with pytest.raises(ValidationError):
            await registry.require_business_role(business_role.id, uuid4())

    async def test_require_business_role_rejects_presets(
        self, registry: RoleRegistry, receptionist_preset: Role, business_id: UUID
    ):
        """Presets can never be held by staff."""
        with pytest.raises(ValidationError):
            await registry.require_business_role(receptionist_preset.id, business_id)

    async def test_list_business_roles(
        self, registry: RoleRegistry, business_role: Role, business_id: UUID
    ):
        """Only the business's own roles should be listed."""
        await registry.clone_role_for_business(business_role.based_on_role_id, uuid4())

        roles = await registry.list_business_roles(business_id)

        assert [r.id for r in roles] == [business_role.id]

    async def test_list_roles_by_kind(self, registry: RoleRegistry):
        """Listing by kind should return the seeded roles of that kind."""
        system = await registry.list_roles(RoleKind.SYSTEM)
        presets = await registry.list_roles(RoleKind.PRESET)

        assert {r.name for r in system} == {
            "Admin",
            "Tourism Officer",
            "Business Owner",
            "Tourist",
        }
        assert len(presets) == 10


class TestAuditTrail:
    """Every role change leaves an audit entry in the same transaction."""

    async def test_clone_is_recorded(
        self,
        registry: RoleRegistry,
        receptionist_preset: Role,
        business_id: UUID,
        owner: Account,
    ):
        """Cloning should record who cloned what, into which business."""
        role = await registry.clone_role_for_business(
            receptionist_preset.id, business_id, "Front Desk", performed_by=owner.id
        )

        [entry] = await registry.audit_log(role.id)

        assert entry.action == AuditAction.CLONED
        assert entry.performed_by == owner.id
        assert entry.new_values == {
            "name": "Front Desk",
            "based_on_role_id": str(receptionist_preset.id),
            "business_id": str(business_id),
        }

    async def test_rename_records_old_and_new_values(
        self, seeded: AsyncSession, registry: RoleRegistry, business_role: Role
    ):
        """An update should keep the values from before and after, newest first."""
        await registry.mutate_role(business_role.id, RoleUpdate(name="Lobby"))
        await seeded.commit()

        latest, cloned = await registry.audit_log(business_role.id)

        assert cloned.action == AuditAction.CLONED
        assert latest.action == AuditAction.UPDATED
        assert latest.old_values["name"] == "Receptionist"
        assert latest.new_values["name"] == "Lobby"

    async def test_update_without_changes_is_not_recorded(
        self, registry: RoleRegistry, business_role: Role
    ):
        """Re-sending the current name changes nothing and records nothing."""
        await registry.mutate_role(business_role.id, RoleUpdate(name=business_role.name))

        entries = await registry.audit_log(business_role.id)

        assert [e.action for e in entries] == [AuditAction.CLONED]

    async def test_delete_is_recorded_and_kept(
        self, seeded: AsyncSession, registry: RoleRegistry, business_id: UUID
    ):
        """The entry for a deleted role should outlive the role."""
        role = await registry.create_custom_business_role(business_id, "Temp")
        role_id = role.id

        await registry.delete_role(role_id)
        await seeded.commit()

        entries = await list_entries(seeded, "role", role_id)
        assert [e.action for e in entries] == [AuditAction.DELETED, AuditAction.CREATED]
        assert entries[0].old_values["name"] == "Temp"

    async def test_failed_change_leaves_no_entry(
        self, seeded: AsyncSession, registry: RoleRegistry, owner_role: Role
    ):
        """A rejected change should not be audited."""
        with pytest.raises(ImmutableRoleError):
            await registry.mutate_role(owner_role.id, RoleUpdate(name="Boss"))

        entries = await registry.audit_log(owner_role.id)

        assert [e.action for e in entries] == [AuditAction.CREATED]

    async def test_request_id_is_copied_from_log_context(
        self, registry: RoleRegistry, business_id: UUID
    ):
        """The request ID bound for logging should land on the entry."""
        with structlog.contextvars.bound_contextvars(request_id="req-42"):
            role = await registry.create_custom_business_role(business_id, "Porter")

        [entry] = await registry.audit_log(role.id)
        assert entry.request_id == "req-42"

    async def test_limit_and_unknown_role(
        self, seeded: AsyncSession, registry: RoleRegistry, business_role: Role
    ):
        """The limit caps the entries; an unknown role is a NotFoundError."""
        for name in ("One", "Two", "Three"):
            await registry.mutate_role(business_role.id, RoleUpdate(name=name))
            await seeded.commit()

        entries = await registry.audit_log(business_role.id, limit=2)

        assert [e.new_values["name"] for e in entries] == ["Three", "Two"]
        with pytest.raises(NotFoundError):
            await registry.audit_log(uuid4())
