"""Permission catalog.

The catalog is the static, versioned list of every permission the
platform knows about, grouped into categories. It is read-only at
runtime; ``sync_catalog`` writes it to the ``permissions`` table during
setup. Bump ``CATALOG_VERSION`` whenever an entry is added, renamed or
removed.

The module also carries the default role templates that seeding uses:
the fixed system roles and the preset roles businesses clone from.
"""

from dataclasses import dataclass
from enum import Enum

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cityventure.core.constants import PLATFORM_ADMIN_ROLE
from cityventure.core.permissions.models import Permission, PermissionScope


logger = structlog.get_logger()

CATALOG_VERSION = 1


class PermissionCategory(str, Enum):
    """Category a permission is grouped under in management UIs."""

    ORDERS = "orders"
    PRODUCTS = "products"
    SERVICES = "services"
    STAFF = "staff"
    CUSTOMERS = "customers"
    FINANCIAL = "financial"
    REPORTING = "reporting"
    SETTINGS = "settings"
    BOOKINGS = "bookings"
    SYSTEM = "system"


@dataclass(frozen=True)
class PermissionDefinition:
    """A single catalog entry."""

    name: str
    description: str
    category: PermissionCategory
    scope: PermissionScope = PermissionScope.BUSINESS


@dataclass(frozen=True)
class RoleTemplate:
    """Default role definition used when seeding system and preset roles."""

    name: str
    description: str
    permissions: tuple[str, ...]


def _business(name: str, description: str, category: PermissionCategory) -> PermissionDefinition:
    return PermissionDefinition(name, description, category, PermissionScope.BUSINESS)


def _system(name: str, description: str) -> PermissionDefinition:
    return PermissionDefinition(
        name, description, PermissionCategory.SYSTEM, PermissionScope.SYSTEM
    )


_C = PermissionCategory

PERMISSIONS: tuple[PermissionDefinition, ...] = (
    # Orders
    _business("view_orders", "View order list and details", _C.ORDERS),
    _business("create_orders", "Create new orders", _C.ORDERS),
    _business("update_orders", "Update order status and details", _C.ORDERS),
    _business("cancel_orders", "Cancel orders", _C.ORDERS),
    _business("manage_order_payments", "Process order payments", _C.ORDERS),
    # Products
    _business("view_products", "View product catalog", _C.PRODUCTS),
    _business("create_products", "Add new products", _C.PRODUCTS),
    _business("update_products", "Edit product details and pricing", _C.PRODUCTS),
    _business("delete_products", "Remove products from catalog", _C.PRODUCTS),
    _business("manage_inventory", "Update stock levels", _C.PRODUCTS),
    _business("manage_discounts", "Create and manage product discounts", _C.PRODUCTS),
    _business("manage_promotions", "Create and manage promotions", _C.PRODUCTS),
    # Services
    _business("view_services", "View service offerings", _C.SERVICES),
    _business("create_services", "Add new services", _C.SERVICES),
    _business("update_services", "Edit service details and pricing", _C.SERVICES),
    _business("delete_services", "Remove services", _C.SERVICES),
    _business("manage_service_inquiries", "Respond to service inquiries", _C.SERVICES),
    # Staff
    _business("view_staff", "View staff list", _C.STAFF),
    _business("create_staff", "Add new staff members", _C.STAFF),
    _business("update_staff", "Edit staff information", _C.STAFF),
    _business("delete_staff", "Remove staff members", _C.STAFF),
    _business("manage_staff_roles", "Assign roles to staff", _C.STAFF),
    # Customers
    _business("view_customers", "View customer information", _C.CUSTOMERS),
    _business("manage_customer_reviews", "Respond to and manage reviews", _C.CUSTOMERS),
    _business("send_notifications", "Send notifications to customers", _C.CUSTOMERS),
    # Financial
    _business("view_payments", "View payment history", _C.FINANCIAL),
    _business("process_refunds", "Process refund requests", _C.FINANCIAL),
    _business("view_financial_reports", "Access financial reports", _C.FINANCIAL),
    # Reporting
    _business("view_reports", "Access business reports", _C.REPORTING),
    _business("export_reports", "Export report data", _C.REPORTING),
    _business("view_analytics", "Access business analytics", _C.REPORTING),
    # Settings
    _business("manage_business_settings", "Configure business settings", _C.SETTINGS),
    _business("manage_business_hours", "Set operating hours", _C.SETTINGS),
    _business("manage_business_amenities", "Manage business amenities", _C.SETTINGS),
    _business("manage_business_profile", "Edit business profile and details", _C.SETTINGS),
    # Bookings
    _business("view_bookings", "View accommodation bookings", _C.BOOKINGS),
    _business("create_bookings", "Create new bookings", _C.BOOKINGS),
    _business("update_bookings", "Modify booking details", _C.BOOKINGS),
    _business("cancel_bookings", "Cancel bookings", _C.BOOKINGS),
    _business("manage_rooms", "Manage room listings and availability", _C.BOOKINGS),
    _business("manage_room_amenities", "Configure room amenities", _C.BOOKINGS),
    _business("check_in_guests", "Process guest check-ins", _C.BOOKINGS),
    _business("check_out_guests", "Process guest check-outs", _C.BOOKINGS),
    # Platform administration
    _system("manage_users", "Full user management"),
    _system("manage_all_businesses", "Manage all businesses on platform"),
    _system("approve_businesses", "Approve business registrations"),
    _system("manage_tourist_spots", "Manage tourist spot listings"),
    _system("approve_tourist_spots", "Approve tourist spot submissions"),
    _system("manage_platform_settings", "Configure platform-wide settings"),
    _system("view_platform_analytics", "Access platform-wide analytics"),
)

_BY_NAME: dict[str, PermissionDefinition] = {p.name: p for p in PERMISSIONS}


def get(name: str) -> PermissionDefinition | None:
    """Look up a catalog entry by name."""
    return _BY_NAME.get(name)


def is_known(name: str) -> bool:
    """Check whether a permission name is in the catalog."""
    return name in _BY_NAME


def names(scope: PermissionScope | None = None) -> frozenset[str]:
    """All permission names, optionally restricted to one scope."""
    return frozenset(
        p.name for p in PERMISSIONS if scope is None or p.scope == scope
    )


def by_category() -> dict[PermissionCategory, list[PermissionDefinition]]:
    """Catalog entries grouped by category, in catalog order."""
    grouped: dict[PermissionCategory, list[PermissionDefinition]] = {}
    for permission in PERMISSIONS:
        grouped.setdefault(permission.category, []).append(permission)
    return grouped


# ============================================================
# Default role templates
# ============================================================

_PLATFORM_ADMIN = (
    "manage_users",
    "manage_all_businesses",
    "approve_businesses",
    "manage_tourist_spots",
    "approve_tourist_spots",
    "manage_platform_settings",
    "view_platform_analytics",
)

SYSTEM_ROLES: tuple[RoleTemplate, ...] = (
    RoleTemplate(PLATFORM_ADMIN_ROLE, "Platform administrator", _PLATFORM_ADMIN),
    RoleTemplate(
        "Tourism Officer",
        "Tourism office staff reviewing listings",
        (
            "approve_businesses",
            "manage_tourist_spots",
            "approve_tourist_spots",
            "view_platform_analytics",
        ),
    ),
    RoleTemplate(
        "Business Owner",
        "Owner of one or more businesses",
        tuple(sorted(names(PermissionScope.BUSINESS))),
    ),
    RoleTemplate("Tourist", "Visitor account", ()),
)

PRESET_ROLES: tuple[RoleTemplate, ...] = (
    RoleTemplate(
        "Manager",
        "Runs day-to-day business operations",
        tuple(sorted(names(PermissionScope.BUSINESS))),
    ),
    RoleTemplate(
        "Receptionist",
        "Front desk and guest handling",
        (
            "view_orders", "create_orders", "update_orders",
            "view_products",
            "view_services", "manage_service_inquiries",
            "view_customers",
            "view_bookings", "create_bookings", "update_bookings",
            "check_in_guests", "check_out_guests",
        ),
    ),
    RoleTemplate(
        "Room Manager",
        "Rooms and bookings",
        (
            "view_bookings", "create_bookings", "update_bookings", "cancel_bookings",
            "manage_rooms", "manage_room_amenities",
            "view_customers",
            "check_in_guests", "check_out_guests",
        ),
    ),
    RoleTemplate(
        "Sales Associate",
        "Shop floor sales",
        (
            "view_orders", "create_orders", "update_orders",
            "view_products", "update_products", "manage_inventory",
            "view_customers", "manage_customer_reviews",
            "view_payments",
        ),
    ),
    RoleTemplate("Cook", "Kitchen staff", ("view_orders", "update_orders", "view_products")),
    RoleTemplate("Housekeeper", "Room upkeep", ("view_bookings", "manage_rooms")),
    RoleTemplate(
        "Cashier",
        "Payments and refunds",
        (
            "view_orders", "create_orders", "update_orders", "manage_order_payments",
            "view_products",
            "view_payments", "process_refunds",
        ),
    ),
    RoleTemplate(
        "Tour Guide", "Guided tours", ("view_bookings", "view_services", "view_customers")
    ),
    RoleTemplate(
        "Inventory Clerk",
        "Stock keeping",
        ("view_products", "update_products", "manage_inventory", "view_reports"),
    ),
    RoleTemplate(
        "Event Manager",
        "Events and service bookings",
        (
            "view_orders", "create_orders", "update_orders",
            "view_services", "create_services", "update_services",
            "manage_service_inquiries",
            "view_bookings", "create_bookings", "update_bookings",
            "view_customers", "send_notifications",
            "view_reports",
        ),
    ),
)


async def sync_catalog(session: AsyncSession) -> int:
    """Write the catalog to the permissions table.

    Inserts missing permissions and refreshes description, category and
    scope of existing ones. Rows not in the catalog are left alone.

    Returns:
        Number of rows inserted or updated
    """
    result = await session.execute(select(Permission))
    existing = {permission.name: permission for permission in result.scalars()}
    changed = 0

    for definition in PERMISSIONS:
        row = existing.get(definition.name)
        if row is None:
            session.add(
                Permission(
                    name=definition.name,
                    description=definition.description,
                    category=definition.category.value,
                    scope=definition.scope,
                )
            )
            changed += 1
            continue

        if (
            row.description != definition.description
            or row.category != definition.category.value
            or row.scope != definition.scope
        ):
            row.description = definition.description
            row.category = definition.category.value
            row.scope = definition.scope
            changed += 1

    await session.flush()
    logger.info(
        "permission_catalog_synced",
        catalog_version=CATALOG_VERSION,
        changed=changed,
    )
    return changed
