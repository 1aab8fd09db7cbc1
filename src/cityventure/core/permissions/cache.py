"""In-process permission cache.

Resolved permission sets are kept per account for a bounded time. Every
code path that changes grants calls ``invalidate`` or ``invalidate_all``
after its transaction commits, so the TTL only bounds staleness for
changes made outside this process.

The cache is a plain object created once at startup and injected where
it's needed; there is no module-level instance.
"""

import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

import structlog

from cityventure.core.constants import DEFAULT_PERMISSION_CACHE_TTL_SECONDS


logger = structlog.get_logger()

Loader = Callable[[UUID], Awaitable[frozenset[str]]]


@dataclass(frozen=True, slots=True)
class _Entry:
    permissions: frozenset[str]
    expires_at: float


class PermissionCache:
    """TTL cache in front of the permission resolver.

    Concurrent misses for the same account may each call the loader; the
    last one to finish wins. A load that was started before an
    invalidation is not stored.

    Args:
        loader: Async callable resolving an account's permissions
        ttl_seconds: How long an entry stays fresh
        clock: Monotonic time source, replaceable in tests
    """

    def __init__(
        self,
        loader: Loader,
        ttl_seconds: float = DEFAULT_PERMISSION_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[UUID, _Entry] = {}
        # Loads in flight per account; versions only matter while one is running
        self._loading: dict[UUID, int] = {}
        self._versions: dict[UUID, int] = {}
        self._epoch = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _stamp(self, account_id: UUID) -> tuple[int, int]:
        return self._epoch, self._versions.get(account_id, 0)

    def _finish_load(self, account_id: UUID) -> None:
        remaining = self._loading[account_id] - 1
        if remaining:
            self._loading[account_id] = remaining
        else:
            del self._loading[account_id]
            self._versions.pop(account_id, None)

    async def get(self, account_id: UUID) -> frozenset[str]:
        """Return the account's permissions, loading them on a miss.

        Raises:
            NotFoundError: Propagated from the loader; nothing is cached
        """
        with self._lock:
            entry = self._entries.get(account_id)
            if entry is not None and entry.expires_at > self._clock():
                return entry.permissions
            stamp = self._stamp(account_id)
            self._loading[account_id] = self._loading.get(account_id, 0) + 1

        logger.debug("permission_cache_miss", account_id=str(account_id))
        try:
            permissions = await self._loader(account_id)
            with self._lock:
                if self._stamp(account_id) == stamp:
                    self._entries[account_id] = _Entry(
                        permissions=permissions,
                        expires_at=self._clock() + self._ttl,
                    )
        finally:
            with self._lock:
                self._finish_load(account_id)
        return permissions

    def invalidate(self, account_id: UUID) -> None:
        """Drop the entry for one account."""
        with self._lock:
            self._entries.pop(account_id, None)
            if account_id in self._loading:
                self._versions[account_id] = self._versions.get(account_id, 0) + 1
        logger.debug("permission_cache_invalidated", account_id=str(account_id))

    def invalidate_all(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._versions.clear()
            self._epoch += 1
        logger.info("permission_cache_cleared")

    def close(self) -> None:
        """Release all entries. Safe to call more than once."""
        with self._lock:
            self._entries.clear()
            self._versions.clear()
            self._epoch += 1
        logger.debug("permission_cache_closed")
