"""Authorization gate.

Answers one question for request handlers: may this account do this?
Role-name checks look at the account's single role and never hit the
permission cache; permission checks go through the cache.
"""

from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from uuid import UUID

import structlog

from cityventure.core.errors import ValidationError
from cityventure.core.permissions.cache import PermissionCache


logger = structlog.get_logger()

RoleLookup = Callable[[UUID], Awaitable[str]]


class MatchMode(str, Enum):
    """How a list of required permissions is matched."""

    ALL = "all"
    ANY = "any"


class AuthorizationGate:
    """Allow/deny decisions for an account.

    Args:
        cache: Permission cache used for permission checks
        role_lookup: Async callable returning the name of an account's role
    """

    def __init__(self, cache: PermissionCache, role_lookup: RoleLookup) -> None:
        self.cache = cache
        self.role_lookup = role_lookup

    async def authorize(
        self,
        account_id: UUID,
        *,
        roles: Iterable[str] | None = None,
        permissions: Iterable[str] | None = None,
        mode: MatchMode = MatchMode.ALL,
    ) -> bool:
        """Check an account against allowed roles and/or permissions.

        When both are given the role check runs first and the permission
        check is the fallback. Denial is a ``False`` return, not an error.

        Args:
            account_id: The account being checked
            roles: Role names that are allowed, compared case-insensitively
            permissions: Permission names to check
            mode: ALL requires every permission, ANY requires one

        Returns:
            True if the account is allowed

        Raises:
            ValidationError: If neither roles nor permissions are given
        """
        wanted_roles = {role.lower() for role in roles or ()}
        wanted_permissions = list(permissions or ())

        if not wanted_roles and not wanted_permissions:
            raise ValidationError("Authorization requires roles or permissions")

        if wanted_roles:
            role_name = await self.role_lookup(account_id)
            if role_name.lower() in wanted_roles:
                return True
            if not wanted_permissions:
                return False

        held = await self.cache.get(account_id)
        if mode == MatchMode.ANY:
            return any(name in held for name in wanted_permissions)
        return all(name in held for name in wanted_permissions)
