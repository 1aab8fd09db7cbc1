"""Unit tests for the permission catalog and default role templates."""

import pytest

from cityventure.core.permissions import catalog
from cityventure.core.permissions.catalog import (
    PERMISSIONS,
    PRESET_ROLES,
    SYSTEM_ROLES,
    PermissionCategory,
)
from cityventure.core.permissions.models import PermissionScope


pytestmark = pytest.mark.unit


RECEPTIONIST_PERMISSIONS = {
    "view_orders",
    "create_orders",
    "update_orders",
    "view_products",
    "view_services",
    "manage_service_inquiries",
    "view_customers",
    "view_bookings",
    "create_bookings",
    "update_bookings",
    "check_in_guests",
    "check_out_guests",
}


class TestCatalogEntries:
    """Tests for the catalog contents."""

    def test_names_are_unique(self):
        """Every catalog entry should have a distinct name."""
        all_names = [p.name for p in PERMISSIONS]
        assert len(all_names) == len(set(all_names))

    def test_business_and_system_scopes(self):
        """The catalog should hold 43 business and 7 system permissions."""
        assert len(catalog.names(PermissionScope.BUSINESS)) == 43
        assert len(catalog.names(PermissionScope.SYSTEM)) == 7
        assert len(catalog.names()) == 50

    def test_system_permissions_are_in_system_category(self):
        """System-scoped entries should all sit in the system category."""
        for permission in PERMISSIONS:
            if permission.scope == PermissionScope.SYSTEM:
                assert permission.category == PermissionCategory.SYSTEM

    def test_get_and_is_known(self):
        """Lookups should find catalog names and reject others."""
        definition = catalog.get("check_in_guests")
        assert definition is not None
        assert definition.category == PermissionCategory.BOOKINGS
        assert catalog.is_known("check_in_guests")
        assert catalog.get("fly_to_moon") is None
        assert not catalog.is_known("fly_to_moon")

    def test_by_category_keeps_catalog_order(self):
        """Grouping should keep entries in the order they're declared."""
        grouped = catalog.by_category()
        assert [p.name for p in grouped[PermissionCategory.STAFF]] == [
            "view_staff",
            "create_staff",
            "update_staff",
            "delete_staff",
            "manage_staff_roles",
        ]
        assert sum(len(entries) for entries in grouped.values()) == len(PERMISSIONS)


class TestRoleTemplates:
    """Tests for the default system and preset roles."""

    def test_templates_only_reference_catalog_names(self):
        """Every template permission should exist in the catalog."""
        for template in (*SYSTEM_ROLES, *PRESET_ROLES):
            unknown = [name for name in template.permissions if not catalog.is_known(name)]
            assert unknown == [], template.name

    def test_system_role_names(self):
        """The four platform roles should be defined."""
        assert {t.name for t in SYSTEM_ROLES} == {
            "Admin",
            "Tourism Officer",
            "Business Owner",
            "Tourist",
        }

    def test_business_owner_holds_every_business_permission(self):
        """Business Owner should carry the whole business scope."""
        owner = next(t for t in SYSTEM_ROLES if t.name == "Business Owner")
        assert set(owner.permissions) == catalog.names(PermissionScope.BUSINESS)

    def test_tourist_holds_nothing(self):
        """Tourist should have no permissions."""
        tourist = next(t for t in SYSTEM_ROLES if t.name == "Tourist")
        assert tourist.permissions == ()

    def test_receptionist_preset(self):
        """Receptionist should carry exactly the front-desk permissions."""
        receptionist = next(t for t in PRESET_ROLES if t.name == "Receptionist")
        assert set(receptionist.permissions) == RECEPTIONIST_PERMISSIONS

    def test_presets_only_use_business_permissions(self):
        """Presets are for businesses and should never carry system permissions."""
        business = catalog.names(PermissionScope.BUSINESS)
        for template in PRESET_ROLES:
            assert set(template.permissions) <= business, template.name

    def test_template_names_fit_role_name_rules(self):
        """Seeded names should pass the role-name validation."""
        from cityventure.modules.roles.services import validate_role_name

        for template in (*SYSTEM_ROLES, *PRESET_ROLES):
            assert validate_role_name(template.name) == template.name
