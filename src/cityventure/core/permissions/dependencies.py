"""FastAPI dependencies for the permission cache and gate.

Both objects are created in the application lifespan and stored on
``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request

from cityventure.core.permissions.cache import PermissionCache
from cityventure.core.permissions.gate import AuthorizationGate


def get_permission_cache(request: Request) -> PermissionCache:
    """Get the process-wide permission cache."""
    return request.app.state.permission_cache


def get_authorization_gate(request: Request) -> AuthorizationGate:
    """Get the process-wide authorization gate."""
    return request.app.state.authorization_gate


# Type aliases for dependency injection
PermissionCacheDep = Annotated[PermissionCache, Depends(get_permission_cache)]
Gate = Annotated[AuthorizationGate, Depends(get_authorization_gate)]
