"""Businesses module: ownership records and the per-business access rule."""

from fastapi import APIRouter


router = APIRouter(prefix="/businesses", tags=["businesses"])

# Import routes to register them (must be after router is defined)
from cityventure.modules.businesses import routes  # noqa: F401, E402


# Module metadata
__module__ = {
    "name": "businesses",
    "version": "1.0.0",
    "description": "Business ownership and access",
    "dependencies": ["accounts"],
}
