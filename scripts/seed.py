#!/usr/bin/env python
"""
Create tables and seed the permission catalog and default roles.

The "demo" scenario also creates a business owner account and a
Receptionist role cloned for a demo business.
"""

import argparse
import asyncio
import sys
from uuid import UUID


# Add src to path for imports
sys.path.insert(0, "src")

from cityventure.core.auth import hash_password  # noqa: E402
from cityventure.core.database import Base, async_engine, async_session_factory  # noqa: E402
from cityventure.modules.accounts.models import Account  # noqa: E402
from cityventure.modules.accounts.repos import AccountRepository  # noqa: E402
from cityventure.modules.roles.repos import RoleRepository  # noqa: E402
from cityventure.modules.roles.seeding import seed_authorization  # noqa: E402
from cityventure.modules.roles.services import RoleRegistry  # noqa: E402
from cityventure.modules.staff.models import StaffProfile  # noqa: E402, F401


DEMO_BUSINESS_ID = UUID("00000000-0000-4000-8000-000000000001")
DEMO_OWNER_EMAIL = "owner@example.com"
DEMO_OWNER_PASSWORD = "ChangeMe123"


async def create_tables() -> None:
    """Create any missing tables."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables ready")


async def seed_default() -> None:
    """Seed the catalog, system roles, and preset roles."""
    async with async_session_factory() as session:
        result = await seed_authorization(session)
        await session.commit()
        print(
            f"Catalog rows changed: {result.permissions_changed}, "
            f"system roles created: {result.system_roles_created}, "
            f"preset roles created: {result.preset_roles_created}"
        )


async def seed_demo() -> None:
    """Create a demo business owner and a cloned Receptionist role."""
    async with async_session_factory() as session:
        roles = RoleRepository(session)
        accounts = AccountRepository(session)

        owner_role = await roles.get_by_name("Business Owner", None)
        receptionist = await roles.get_by_name("Receptionist", None)
        if owner_role is None or receptionist is None:
            print("Default roles missing; run the default scenario first")
            return

        if await accounts.get_by_email(DEMO_OWNER_EMAIL):
            print(f"Demo owner already exists: {DEMO_OWNER_EMAIL}")
        else:
            await accounts.create(
                Account(
                    email=DEMO_OWNER_EMAIL,
                    phone_number="+630000000001",
                    password_hash=hash_password(DEMO_OWNER_PASSWORD),
                    role_id=owner_role.id,
                    is_verified=True,
                    profile_completed=True,
                )
            )
            print(f"Created demo owner: {DEMO_OWNER_EMAIL}")

        if await roles.get_by_name("Receptionist", DEMO_BUSINESS_ID):
            print("Demo business already has a Receptionist role")
        else:
            role = await RoleRegistry(session).clone_role_for_business(
                receptionist.id, DEMO_BUSINESS_ID
            )
            print(f"Cloned Receptionist for demo business: {role.id}")

        await session.commit()


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    await create_tables()
    await seed_default()
    if scenario == "demo":
        await seed_demo()
    await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the database")
    parser.add_argument(
        "--scenario",
        choices=["default", "demo"],
        default="default",
        help="Seeding scenario to run",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
