"""Permission decorators for route protection.

The decorated route must declare ``current_account`` and ``gate``
parameters so the decorator can find them in the call's kwargs:

    @router.post("/staff")
    @require_permission("create_staff")
    async def onboard(current_account: CurrentAccount, gate: Gate):
        ...

A failed check raises ``AuthorizationDenied``, which is rendered as a
403 that does not say what was missing.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar, cast

import structlog

from cityventure.core.errors import AuthorizationDenied, UnauthorizedError
from cityventure.core.permissions.gate import MatchMode


if TYPE_CHECKING:
    from fastapi import Request

    from cityventure.core.permissions.gate import AuthorizationGate


logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")

Decorator = Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]


def _get_account_and_gate(
    kwargs: dict[str, Any],
) -> tuple[Any, "AuthorizationGate | None", "Request | None"]:
    """Extract the account, gate, and request from route kwargs."""
    account = kwargs.get("current_account")
    gate = cast("AuthorizationGate | None", kwargs.get("gate"))
    request = cast("Request | None", kwargs.get("request"))
    return account, gate, request


def require_access(
    *,
    roles: list[str] | None = None,
    permissions: list[str] | None = None,
    mode: MatchMode = MatchMode.ALL,
) -> Decorator:
    """Decorator that runs an authorization check before the route.

    Args:
        roles: Role names that are allowed outright
        permissions: Permissions checked when no role matches
        mode: ALL or ANY for the permission list

    Returns:
        Decorator function
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            account, gate, request = _get_account_and_gate(kwargs)

            if account is None:
                raise UnauthorizedError(
                    "Authentication required",
                    error_code="auth_required",
                )

            if gate is None:
                raise AuthorizationDenied()

            allowed = await gate.authorize(
                account.id,
                roles=roles,
                permissions=permissions,
                mode=mode,
            )

            if not allowed:
                logger.info(
                    "authorization_denied",
                    account_id=str(account.id),
                    roles=roles,
                    permissions=permissions,
                    mode=mode.value,
                    endpoint=request.url.path if request else func.__name__,
                )
                raise AuthorizationDenied()

            return await func(*args, **kwargs)

        return wrapper

    return decorator


def require_permission(name: str) -> Decorator:
    """Decorator that requires a single permission.

    Usage:
        @router.delete("/staff/{staff_id}")
        @require_permission("delete_staff")
        async def remove_staff(staff_id: UUID, current_account: CurrentAccount, gate: Gate):
            ...
    """
    return require_access(permissions=[name])


def require_any_permission(names: list[str]) -> Decorator:
    """Decorator that requires at least one of the permissions."""
    return require_access(permissions=names, mode=MatchMode.ANY)


def require_all_permissions(names: list[str]) -> Decorator:
    """Decorator that requires every one of the permissions."""
    return require_access(permissions=names, mode=MatchMode.ALL)


def require_role(*roles: str) -> Decorator:
    """Decorator that requires the account's role to be one of ``roles``.

    Role names are compared case-insensitively.
    """
    return require_access(roles=list(roles))
