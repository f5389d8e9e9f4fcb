# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .categories import ALL_CATEGORIES, PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    CATALOG_PERMISSIONS,
    SUBSCRIPTION_PERMISSIONS,
    DELIVERY_PERMISSIONS,
    WALLET_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    PROCUREMENT_PERMISSIONS,
    PARTNER_PERMISSIONS,
    REPORT_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import (
    ALL_ROLES,
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_ADMIN,
    ROLE_AGENCY,
    ROLE_DEPOT_ADMIN,
    ROLE_MEMBER,
    ROLE_SUPERVISOR,
    ROLE_VENDOR,
    role_has_permission,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    get_role_permissions,
    validate_permission_code,
)

__all__ = [
    "ALL_CATEGORIES",
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "CATALOG_PERMISSIONS",
    "SUBSCRIPTION_PERMISSIONS",
    "DELIVERY_PERMISSIONS",
    "WALLET_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "PROCUREMENT_PERMISSIONS",
    "PARTNER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "ALL_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLE_ADMIN",
    "ROLE_AGENCY",
    "ROLE_DEPOT_ADMIN",
    "ROLE_MEMBER",
    "ROLE_SUPERVISOR",
    "ROLE_VENDOR",
    "role_has_permission",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "get_role_permissions",
    "validate_permission_code",
]
