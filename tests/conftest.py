"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from cityventure.core.auth import create_access_token, hash_password
from cityventure.core.database import Base, build_engine, build_session_factory, get_db
from cityventure.core.permissions import (
    AuthorizationGate,
    PermissionCache,
    role_name_loader,
    session_loader,
)
from cityventure.core.permissions.models import Permission, Role, UserGrant  # noqa: F401
from cityventure.main import create_app
from cityventure.modules.accounts.models import Account
from cityventure.modules.accounts.repos import account_role_id
from cityventure.modules.businesses.models import BusinessOwner
from cityventure.modules.roles.repos import RoleRepository
from cityventure.modules.roles.seeding import seed_authorization
from cityventure.modules.roles.services import RoleRegistry
from cityventure.modules.staff.models import StaffProfile  # noqa: F401
from tests.factories.account import TEST_PASSWORD, AccountFactory


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash the shared test password once per session."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite database file for one test.

    A file rather than ``:memory:`` so that the cache loaders, which
    open their own sessions, see what the test committed.
    """
    engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return build_session_factory(engine)


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests.

    Services commit their own transactions, so fixtures built on this
    session commit too.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded(db: AsyncSession) -> AsyncSession:
    """Session over a database holding the catalog and default roles."""
    await seed_authorization(db)
    await db.commit()
    return db


@pytest.fixture
def cache(session_factory: async_sessionmaker[AsyncSession]) -> PermissionCache:
    """Permission cache backed by the test database."""
    return PermissionCache(session_loader(session_factory, account_role_id), ttl_seconds=60)


@pytest.fixture
def gate(
    cache: PermissionCache, session_factory: async_sessionmaker[AsyncSession]
) -> AuthorizationGate:
    """Authorization gate backed by the test database."""
    return AuthorizationGate(cache, role_name_loader(session_factory, account_role_id))


@pytest.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession],
    cache: PermissionCache,
    gate: AuthorizationGate,
) -> AsyncGenerator[FastAPI, None]:
    """Create test application instance.

    ASGITransport doesn't run the lifespan, so the cache and gate are
    put on ``app.state`` here.
    """
    application = create_app()
    application.state.permission_cache = cache
    application.state.authorization_gate = gate

    # Override database dependency
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# Role and Account Fixtures
# ============================================================


@pytest.fixture
def business_id() -> UUID:
    """ID of the business the tests act on."""
    return uuid4()


@pytest.fixture
def other_business_id() -> UUID:
    """ID of a business nobody in the tests owns."""
    return uuid4()


async def _platform_role(session: AsyncSession, name: str) -> Role:
    role = await RoleRepository(session).get_by_name(name, None)
    assert role is not None, f"{name} should have been seeded"
    return role


@pytest.fixture
async def admin_role(seeded: AsyncSession) -> Role:
    """The seeded Admin system role."""
    return await _platform_role(seeded, "Admin")


@pytest.fixture
async def owner_role(seeded: AsyncSession) -> Role:
    """The seeded Business Owner system role."""
    return await _platform_role(seeded, "Business Owner")


@pytest.fixture
async def tourist_role(seeded: AsyncSession) -> Role:
    """The seeded Tourist system role."""
    return await _platform_role(seeded, "Tourist")


@pytest.fixture
async def receptionist_preset(seeded: AsyncSession) -> Role:
    """The seeded Receptionist preset."""
    return await _platform_role(seeded, "Receptionist")


@pytest.fixture
async def business_role(
    seeded: AsyncSession, receptionist_preset: Role, business_id: UUID
) -> Role:
    """A Receptionist role cloned for the test business."""
    role = await RoleRegistry(seeded).clone_role_for_business(
        receptionist_preset.id, business_id
    )
    await seeded.commit()
    return role


async def _account(session: AsyncSession, role: Role, password_hash: str) -> Account:
    account = AccountFactory.build(role_id=role.id, password_hash=password_hash)
    session.add(account)
    await session.commit()
    return account


@pytest.fixture
async def owner(
    seeded: AsyncSession, owner_role: Role, password_hash: str, business_id: UUID
) -> Account:
    """An active Business Owner account that owns the test business."""
    account = await _account(seeded, owner_role, password_hash)
    seeded.add(BusinessOwner(business_id=business_id, account_id=account.id))
    await seeded.commit()
    return account


@pytest.fixture
async def admin(seeded: AsyncSession, admin_role: Role, password_hash: str) -> Account:
    """A platform Admin account."""
    return await _account(seeded, admin_role, password_hash)


@pytest.fixture
async def tourist(seeded: AsyncSession, tourist_role: Role, password_hash: str) -> Account:
    """An active Tourist account, which holds no permissions."""
    return await _account(seeded, tourist_role, password_hash)


@pytest.fixture
async def staff_account(
    seeded: AsyncSession, business_role: Role, password_hash: str
) -> Account:
    """An account holding the test business's Receptionist role, no grants yet."""
    return await _account(seeded, business_role, password_hash)


def bearer(account: Account) -> dict[str, str]:
    """Authorization header carrying an access token for ``account``."""
    return {"Authorization": f"Bearer {create_access_token(account.id)}"}


@pytest.fixture
def auth_headers_for():
    """Build authorization headers for any account."""
    return bearer


@pytest.fixture
def owner_headers(owner: Account) -> dict[str, str]:
    """Authorization headers for the business owner."""
    return bearer(owner)


@pytest.fixture
def tourist_headers(tourist: Account) -> dict[str, str]:
    """Authorization headers for the tourist."""
    return bearer(tourist)


@pytest.fixture
def admin_headers(admin: Account) -> dict[str, str]:
    """Authorization headers for the platform Admin."""
    return bearer(admin)
