"""Load the permission catalog and default roles into the database."""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from cityventure.core.permissions.catalog import PRESET_ROLES, SYSTEM_ROLES, sync_catalog
from cityventure.modules.roles.repos import RoleRepository
from cityventure.modules.roles.services import RoleRegistry


logger = structlog.get_logger()


@dataclass
class SeedResult:
    """What a seeding run changed."""

    permissions_changed: int = 0
    system_roles_created: int = 0
    preset_roles_created: int = 0


async def seed_authorization(session: AsyncSession) -> SeedResult:
    """Sync the catalog and create any missing system and preset roles.

    Existing roles are left as they are. The caller owns the transaction.
    """
    result = SeedResult(permissions_changed=await sync_catalog(session))
    registry = RoleRegistry(session)
    roles = RoleRepository(session)

    for template in SYSTEM_ROLES:
        if await roles.get_by_name(template.name, None) is None:
            await registry.create_system_role(
                template.name, template.description, template.permissions
            )
            result.system_roles_created += 1

    for template in PRESET_ROLES:
        if await roles.get_by_name(template.name, None) is None:
            await registry.create_preset_role(
                template.name, template.description, template.permissions
            )
            result.preset_roles_created += 1

    logger.info(
        "authorization_seeded",
        permissions_changed=result.permissions_changed,
        system_roles_created=result.system_roles_created,
        preset_roles_created=result.preset_roles_created,
    )
    return result
