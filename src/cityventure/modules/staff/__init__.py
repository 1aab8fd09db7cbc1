"""Staff module: onboarding and managing business staff."""

from fastapi import APIRouter


router = APIRouter(prefix="/staff", tags=["staff"])

# Import routes to register them (must be after router is defined)
from cityventure.modules.staff import routes  # noqa: F401, E402


# Module metadata
__module__ = {
    "name": "staff",
    "version": "1.0.0",
    "description": "Staff onboarding",
    "dependencies": ["accounts", "businesses", "roles"],
}
