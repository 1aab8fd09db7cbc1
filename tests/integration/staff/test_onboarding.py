"""Integration tests for staff onboarding."""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cityventure.core.errors import ConflictError, NotFoundError, ValidationError
from cityventure.core.permissions import PermissionCache
from cityventure.core.permissions.models import Role, UserGrant
from cityventure.modules.accounts.models import Account
from cityventure.modules.staff.models import StaffProfile
from cityventure.modules.staff.services import StaffOnboardingService


pytestmark = pytest.mark.integration


@pytest.fixture
async def service(
    session_factory: async_sessionmaker[AsyncSession],
    cache: PermissionCache,
) -> AsyncGenerator[StaffOnboardingService, None]:
    """Onboarding service on its own session.

    Kept apart from the fixtures' session so a rollback inside the
    service doesn't expire the fixture objects.
    """
    async with session_factory() as session:
        yield StaffOnboardingService(session, cache)


def staff_fields(role: Role, **overrides: Any) -> dict[str, Any]:
    suffix = uuid4().hex[:8]
    fields: dict[str, Any] = {
        "email": f"staff-{suffix}@example.com",
        "phone_number": f"+63{uuid4().int % 10**10:010d}",
        "password_hash": "not-a-real-hash",
        "first_name": "Maria",
        "last_name": "Santos",
        "business_id": role.business_id,
        "role_id": role.id,
    }
    fields.update(overrides)
    return fields


async def count_accounts(session: AsyncSession, email: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Account).where(Account.email == email)
    )
    return result.scalar_one()


async def count_profiles(session: AsyncSession, business_id: UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(StaffProfile)
        .where(StaffProfile.business_id == business_id)
    )
    return result.scalar_one()


class TestOnboardStaff:
    """Tests for the happy path."""

    async def test_creates_account_and_profile(
        self, seeded: AsyncSession, service: StaffOnboardingService, business_role: Role
    ):
        """Both rows should exist with the onboarding flags set."""
        fields = staff_fields(business_role, title="Front Desk Lead", middle_name="Cruz")

        staff = await service.onboard_staff(**fields)

        assert staff.email == fields["email"]
        assert staff.title == "Front Desk Lead"
        assert staff.middle_name == "Cruz"
        assert staff.business_id == business_role.business_id
        assert staff.role_id == business_role.id
        assert staff.role_name == "Receptionist"
        assert staff.is_verified is True
        assert staff.is_active is True
        assert staff.must_change_password is True
        assert staff.profile_completed is False

        assert await count_accounts(seeded, fields["email"]) == 1
        assert await count_profiles(seeded, business_role.business_id) == 1

    async def test_title_defaults_to_staff(
        self, service: StaffOnboardingService, business_role: Role
    ):
        """Leaving out the title should give 'Staff'."""
        staff = await service.onboard_staff(**staff_fields(business_role))
        assert staff.title == "Staff"

    async def test_uses_supplied_ids(
        self, service: StaffOnboardingService, business_role: Role
    ):
        """Caller-supplied account and staff IDs should be used as given."""
        account_id, staff_id = uuid4(), uuid4()

        staff = await service.onboard_staff(
            **staff_fields(business_role), account_id=account_id, staff_id=staff_id
        )

        assert staff.account_id == account_id
        assert staff.staff_id == staff_id

    async def test_initial_permissions_are_granted(
        self,
        seeded: AsyncSession,
        service: StaffOnboardingService,
        cache: PermissionCache,
        business_role: Role,
    ):
        """Initial permissions should be user grants visible through the cache."""
        staff = await service.onboard_staff(
            **staff_fields(business_role),
            initial_permissions=["view_bookings", "check_in_guests"],
        )

        assert await cache.get(staff.account_id) == frozenset(
            {"view_bookings", "check_in_guests"}
        )
        result = await seeded.execute(
            select(func.count())
            .select_from(UserGrant)
            .where(UserGrant.account_id == staff.account_id)
        )
        assert result.scalar_one() == 2

    async def test_list_and_get_staff(
        self, service: StaffOnboardingService, business_role: Role
    ):
        """Onboarded staff should be listed under their business."""
        first = await service.onboard_staff(**staff_fields(business_role, last_name="Abad"))
        second = await service.onboard_staff(**staff_fields(business_role, last_name="Reyes"))

        listed = await service.list_staff(business_role.business_id)

        assert [s.staff_id for s in listed] == [first.staff_id, second.staff_id]
        assert (await service.get_staff(second.staff_id)).last_name == "Reyes"
        assert await service.list_staff(uuid4()) == []


class TestOnboardingAtomicity:
    """Either both rows are written or neither is."""

    async def test_failure_after_account_insert_leaves_nothing(
        self,
        seeded: AsyncSession,
        service: StaffOnboardingService,
        business_role: Role,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """A failure building the profile should roll the account back."""

        def broken_profile(**kwargs: Any) -> StaffProfile:
            raise RuntimeError("profile insert failed")

        monkeypatch.setattr(
            "cityventure.modules.staff.services.StaffProfile", broken_profile
        )
        fields = staff_fields(business_role)

        with pytest.raises(RuntimeError, match="profile insert failed"):
            await service.onboard_staff(**fields)

        assert await count_accounts(seeded, fields["email"]) == 0
        assert await count_profiles(seeded, business_role.business_id) == 0

    async def test_profile_conflict_rolls_back_account(
        self,
        seeded: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        service: StaffOnboardingService,
        cache: PermissionCache,
        business_role: Role,
    ):
        """A database rejection of the profile should surface as ConflictError."""
        async with session_factory() as other:
            existing = await StaffOnboardingService(other, cache).onboard_staff(
                **staff_fields(business_role)
            )
        fields = staff_fields(business_role)

        with pytest.raises(ConflictError):
            await service.onboard_staff(**fields, staff_id=existing.staff_id)

        assert await count_accounts(seeded, fields["email"]) == 0
        assert await count_profiles(seeded, business_role.business_id) == 1

    async def test_unknown_initial_permission_writes_nothing(
        self,
        seeded: AsyncSession,
        service: StaffOnboardingService,
        business_role: Role,
    ):
        """An unknown permission should be rejected before any insert."""
        fields = staff_fields(business_role)

        with pytest.raises(NotFoundError):
            await service.onboard_staff(**fields, initial_permissions=["fly_to_moon"])

        assert await count_accounts(seeded, fields["email"]) == 0


class TestOnboardingRejections:
    """Inputs that must not create anything."""

    async def test_duplicate_email(
        self, seeded: AsyncSession, service: StaffOnboardingService, business_role: Role
    ):
        """A second account with the same email should conflict."""
        fields = staff_fields(business_role)
        await service.onboard_staff(**fields)

        with pytest.raises(ConflictError) as exc_info:
            await service.onboard_staff(
                **staff_fields(business_role, email=fields["email"].upper())
            )

        assert exc_info.value.message == "Email or phone already in use"
        assert await count_accounts(seeded, fields["email"]) == 1

    async def test_duplicate_phone(
        self, service: StaffOnboardingService, business_role: Role
    ):
        """A second account with the same phone number should conflict."""
        fields = staff_fields(business_role)
        await service.onboard_staff(**fields)

        with pytest.raises(ConflictError):
            await service.onboard_staff(
                **staff_fields(business_role, phone_number=fields["phone_number"])
            )

    async def test_lost_race_maps_to_conflict(
        self,
        seeded: AsyncSession,
        service: StaffOnboardingService,
        business_role: Role,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """If the pre-check misses a duplicate, the unique index still catches it."""
        fields = staff_fields(business_role)
        await service.onboard_staff(**fields)

        async def no_duplicates(email: str, phone_number: str) -> bool:
            return False

        monkeypatch.setattr(service.accounts, "exists_with_contact", no_duplicates)

        with pytest.raises(ConflictError):
            await service.onboard_staff(**staff_fields(business_role, email=fields["email"]))

        assert await count_accounts(seeded, fields["email"]) == 1
        assert await count_profiles(seeded, business_role.business_id) == 1

    async def test_role_of_other_business(
        self, service: StaffOnboardingService, business_role: Role
    ):
        """A role owned by another business should be rejected."""
        with pytest.raises(ValidationError):
            await service.onboard_staff(
                **staff_fields(business_role, business_id=uuid4())
            )

    async def test_preset_role(
        self, service: StaffOnboardingService, receptionist_preset: Role
    ):
        """Staff can't hold a preset directly."""
        with pytest.raises(ValidationError):
            await service.onboard_staff(
                **staff_fields(receptionist_preset, business_id=uuid4())
            )

    async def test_unknown_role(self, service: StaffOnboardingService, business_role: Role):
        """An unknown role ID should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.onboard_staff(**staff_fields(business_role, role_id=uuid4()))


class TestConcurrentOnboarding:
    """Two onboardings racing for the same email."""

    async def test_exactly_one_wins(
        self,
        seeded: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        cache: PermissionCache,
        business_role: Role,
    ):
        """One call succeeds, the other gets ConflictError, one pair is stored."""
        email = "race@example.com"

        async def attempt() -> Any:
            async with session_factory() as session:
                return await StaffOnboardingService(session, cache).onboard_staff(
                    **staff_fields(business_role, email=email)
                )

        results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

        successes = [r for r in results if not isinstance(r, BaseException)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(successes) == 1
        assert len(conflicts) == 1

        assert await count_accounts(seeded, email) == 1
        assert await count_profiles(seeded, business_role.business_id) == 1


class TestRemoveStaff:
    """Tests for remove_staff."""

    async def test_removes_profile_account_and_grants(
        self,
        seeded: AsyncSession,
        service: StaffOnboardingService,
        cache: PermissionCache,
        business_role: Role,
    ):
        """Removing staff should delete both rows and drop the cache entry."""
        fields = staff_fields(business_role)
        staff = await service.onboard_staff(**fields, initial_permissions=["view_bookings"])
        await cache.get(staff.account_id)

        await service.remove_staff(staff.staff_id)

        assert await count_accounts(seeded, fields["email"]) == 0
        assert await count_profiles(seeded, business_role.business_id) == 0
        result = await seeded.execute(
            select(func.count())
            .select_from(UserGrant)
            .where(UserGrant.account_id == staff.account_id)
        )
        assert result.scalar_one() == 0
        with pytest.raises(NotFoundError):
            await cache.get(staff.account_id)

    async def test_unknown_staff(self, service: StaffOnboardingService):
        """Removing an unknown staff ID should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.remove_staff(uuid4())
