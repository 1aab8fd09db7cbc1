"""Roles module: system, preset, and business role definitions."""

from fastapi import APIRouter


router = APIRouter(prefix="/roles", tags=["roles"])

# Import routes to register them (must be after router is defined)
from cityventure.modules.roles import routes  # noqa: F401, E402


# Module metadata
__module__ = {
    "name": "roles",
    "version": "1.0.0",
    "description": "Role registry",
    "dependencies": ["accounts", "businesses"],
}
