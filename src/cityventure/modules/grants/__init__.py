"""Grants module: permission grants, role assignment, and account management."""

from fastapi import APIRouter


router = APIRouter(tags=["grants"])

# Import routes to register them (must be after router is defined)
from cityventure.modules.grants import routes  # noqa: F401, E402


# Module metadata
__module__ = {
    "name": "grants",
    "version": "1.0.0",
    "description": "Permission grants and role assignment",
    "dependencies": ["accounts", "businesses", "roles"],
}
