"""Permission catalog, resolution, caching, and the authorization gate."""

from cityventure.core.permissions.cache import PermissionCache
from cityventure.core.permissions.decorators import (
    require_access,
    require_all_permissions,
    require_any_permission,
    require_permission,
    require_role,
)
from cityventure.core.permissions.dependencies import Gate, PermissionCacheDep
from cityventure.core.permissions.gate import AuthorizationGate, MatchMode
from cityventure.core.permissions.models import (
    Permission,
    PermissionScope,
    Role,
    RoleKind,
    UserGrant,
    role_grants,
)
from cityventure.core.permissions.resolver import (
    PermissionResolver,
    RoleIdLookup,
    resolve_permissions,
    role_name_loader,
    session_loader,
)


__all__ = [
    "AuthorizationGate",
    "Gate",
    "MatchMode",
    "Permission",
    "PermissionCache",
    "PermissionCacheDep",
    "PermissionResolver",
    "PermissionScope",
    "Role",
    "RoleIdLookup",
    "RoleKind",
    "UserGrant",
    "require_access",
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
    "require_role",
    "resolve_permissions",
    "role_grants",
    "role_name_loader",
    "session_loader",
]
