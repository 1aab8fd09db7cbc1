"""Accounts module: login, self-service onboarding steps, account lookup."""

from fastapi import APIRouter


router = APIRouter(tags=["accounts"])

# Import routes to register them (must be after router is defined)
from cityventure.modules.accounts import routes  # noqa: F401, E402


# Module metadata
__module__ = {
    "name": "accounts",
    "version": "1.0.0",
    "description": "Accounts, login, and onboarding follow-up",
    "dependencies": [],
}
