"""Unit tests for the permission cache.

The loader is a plain coroutine and the clock is a mutable float, so
expiry is tested without sleeping.
"""

import asyncio
from uuid import UUID, uuid4

import pytest

from cityventure.core.errors import NotFoundError
from cityventure.core.permissions.cache import PermissionCache


pytestmark = pytest.mark.unit


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingLoader:
    """Loader returning a configurable set and counting its calls."""

    def __init__(self, permissions: frozenset[str] = frozenset({"view_orders"})) -> None:
        self.permissions: dict[UUID, frozenset[str]] = {}
        self.default = permissions
        self.calls = 0

    async def __call__(self, account_id: UUID) -> frozenset[str]:
        self.calls += 1
        return self.permissions.get(account_id, self.default)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def loader() -> CountingLoader:
    return CountingLoader()


@pytest.fixture
def cache(loader: CountingLoader, clock: FakeClock) -> PermissionCache:
    return PermissionCache(loader, ttl_seconds=300, clock=clock)


class TestPermissionCacheHits:
    """Tests for caching and expiry."""

    async def test_miss_then_hit(self, cache: PermissionCache, loader: CountingLoader):
        """The second read within the TTL should not call the loader."""
        account_id = uuid4()

        first = await cache.get(account_id)
        second = await cache.get(account_id)

        assert first == second == frozenset({"view_orders"})
        assert loader.calls == 1
        assert len(cache) == 1

    async def test_entry_expires_after_ttl(
        self, cache: PermissionCache, loader: CountingLoader, clock: FakeClock
    ):
        """An entry older than the TTL should be reloaded."""
        account_id = uuid4()
        await cache.get(account_id)

        clock.advance(299)
        await cache.get(account_id)
        assert loader.calls == 1

        clock.advance(2)
        await cache.get(account_id)
        assert loader.calls == 2

    async def test_accounts_are_cached_separately(
        self, cache: PermissionCache, loader: CountingLoader
    ):
        """Each account should get its own entry."""
        alice, bob = uuid4(), uuid4()
        loader.permissions[bob] = frozenset({"view_staff"})

        assert await cache.get(alice) == frozenset({"view_orders"})
        assert await cache.get(bob) == frozenset({"view_staff"})
        assert loader.calls == 2

    async def test_empty_set_is_cached(self, clock: FakeClock):
        """An account with no permissions is a valid, cacheable answer."""
        loader = CountingLoader(frozenset())
        cache = PermissionCache(loader, ttl_seconds=300, clock=clock)
        account_id = uuid4()

        assert await cache.get(account_id) == frozenset()
        assert await cache.get(account_id) == frozenset()
        assert loader.calls == 1


class TestPermissionCacheInvalidation:
    """Tests for invalidate and invalidate_all."""

    async def test_invalidate_forces_reload(
        self, cache: PermissionCache, loader: CountingLoader
    ):
        """After invalidate the next read should see the new value."""
        account_id = uuid4()
        await cache.get(account_id)

        loader.permissions[account_id] = frozenset({"view_orders", "view_staff"})
        cache.invalidate(account_id)

        assert await cache.get(account_id) == frozenset({"view_orders", "view_staff"})
        assert loader.calls == 2

    async def test_invalidate_leaves_other_accounts(
        self, cache: PermissionCache, loader: CountingLoader
    ):
        """Invalidating one account should keep the other entries."""
        alice, bob = uuid4(), uuid4()
        await cache.get(alice)
        await cache.get(bob)

        cache.invalidate(alice)

        assert len(cache) == 1
        await cache.get(bob)
        assert loader.calls == 2

    async def test_invalidate_unknown_account_is_noop(self, cache: PermissionCache):
        """Invalidating an account that was never cached should not fail."""
        cache.invalidate(uuid4())
        assert len(cache) == 0

    async def test_invalidate_all(self, cache: PermissionCache, loader: CountingLoader):
        """invalidate_all should drop every entry."""
        accounts = [uuid4() for _ in range(3)]
        for account_id in accounts:
            await cache.get(account_id)

        cache.invalidate_all()

        assert len(cache) == 0
        for account_id in accounts:
            await cache.get(account_id)
        assert loader.calls == 6

    async def test_load_started_before_invalidation_is_not_stored(self, clock: FakeClock):
        """A load that races an invalidation should not put stale data back."""
        account_id = uuid4()
        started = asyncio.Event()
        release = asyncio.Event()
        calls = 0

        async def slow_loader(_: UUID) -> frozenset[str]:
            nonlocal calls
            calls += 1
            started.set()
            await release.wait()
            return frozenset({"stale"})

        cache = PermissionCache(slow_loader, ttl_seconds=300, clock=clock)

        pending = asyncio.create_task(cache.get(account_id))
        await started.wait()
        cache.invalidate(account_id)
        release.set()

        assert await pending == frozenset({"stale"})
        assert len(cache) == 0

    async def test_load_started_before_invalidate_all_is_not_stored(
        self, clock: FakeClock
    ):
        """invalidate_all should also fence off loads already in flight."""
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_loader(_: UUID) -> frozenset[str]:
            started.set()
            await release.wait()
            return frozenset({"stale"})

        cache = PermissionCache(slow_loader, ttl_seconds=300, clock=clock)

        pending = asyncio.create_task(cache.get(uuid4()))
        await started.wait()
        cache.invalidate_all()
        release.set()
        await pending

        assert len(cache) == 0

    async def test_invalidations_leave_no_bookkeeping_behind(
        self, cache: PermissionCache, loader: CountingLoader
    ):
        """Invalidating idle accounts, deleted ones included, shouldn't grow state."""
        for _ in range(50):
            account_id = uuid4()
            await cache.get(account_id)
            cache.invalidate(account_id)

        assert len(cache) == 0
        assert cache._versions == {}
        assert cache._loading == {}

    async def test_version_dropped_once_racing_load_finishes(self, clock: FakeClock):
        """The fence for an in-flight load should go away when the load ends."""
        account_id = uuid4()
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_loader(_: UUID) -> frozenset[str]:
            started.set()
            await release.wait()
            return frozenset({"view_orders"})

        cache = PermissionCache(slow_loader, ttl_seconds=300, clock=clock)

        pending = asyncio.create_task(cache.get(account_id))
        await started.wait()
        cache.invalidate(account_id)
        assert cache._versions == {account_id: 1}

        release.set()
        await pending

        assert cache._versions == {}
        assert cache._loading == {}

    async def test_failed_load_releases_bookkeeping(self, clock: FakeClock):
        """A loader error should not leave the account marked as loading."""

        async def missing(_: UUID) -> frozenset[str]:
            raise NotFoundError("Account not found", resource="account")

        cache = PermissionCache(missing, ttl_seconds=300, clock=clock)

        with pytest.raises(NotFoundError):
            await cache.get(uuid4())

        assert cache._loading == {}


class TestPermissionCacheErrors:
    """Tests for loader failures and configuration."""

    async def test_not_found_is_not_cached(self, clock: FakeClock):
        """A NotFoundError from the loader should propagate and leave no entry."""
        calls = 0

        async def missing(account_id: UUID) -> frozenset[str]:
            nonlocal calls
            calls += 1
            raise NotFoundError("Account not found", resource="account")

        cache = PermissionCache(missing, ttl_seconds=300, clock=clock)
        account_id = uuid4()

        with pytest.raises(NotFoundError):
            await cache.get(account_id)
        with pytest.raises(NotFoundError):
            await cache.get(account_id)

        assert calls == 2
        assert len(cache) == 0

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_non_positive_ttl_rejected(self, loader: CountingLoader, ttl: float):
        """The TTL should be strictly positive."""
        with pytest.raises(ValueError, match="ttl_seconds"):
            PermissionCache(loader, ttl_seconds=ttl)

    def test_ttl_seconds_property(self, cache: PermissionCache):
        """The configured TTL should be readable."""
        assert cache.ttl_seconds == 300

    async def test_close_clears_entries(
        self, cache: PermissionCache, loader: CountingLoader
    ):
        """close should empty the cache and may be called twice."""
        await cache.get(uuid4())

        cache.close()
        cache.close()

        assert len(cache) == 0
