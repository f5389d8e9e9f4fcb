# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    CATALOG = "CATALOG"
    SUBSCRIPTIONS = "SUBSCRIPTIONS"
    DELIVERIES = "DELIVERIES"
    WALLET = "WALLET"
    INVENTORY = "INVENTORY"
    PROCUREMENT = "PROCUREMENT"
    PARTNERS = "PARTNERS"
    REPORTS = "REPORTS"
    SYSTEM = "SYSTEM"


ALL_CATEGORIES = (
    PermissionCategory.CATALOG,
    PermissionCategory.SUBSCRIPTIONS,
    PermissionCategory.DELIVERIES,
    PermissionCategory.WALLET,
    PermissionCategory.INVENTORY,
    PermissionCategory.PROCUREMENT,
    PermissionCategory.PARTNERS,
    PermissionCategory.REPORTS,
    PermissionCategory.SYSTEM,
)
