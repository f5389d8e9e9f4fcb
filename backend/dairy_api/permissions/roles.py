# Overview: Static role -> permission mapping for the six account roles.

from .definitions import PERMISSION_DEFINITIONS


ROLE_ADMIN = "ADMIN"
ROLE_AGENCY = "AGENCY"
ROLE_MEMBER = "MEMBER"
ROLE_VENDOR = "VENDOR"
ROLE_DEPOT_ADMIN = "DepotAdmin"
ROLE_SUPERVISOR = "SUPERVISOR"

ALL_ROLES = (
    ROLE_ADMIN,
    ROLE_AGENCY,
    ROLE_MEMBER,
    ROLE_VENDOR,
    ROLE_DEPOT_ADMIN,
    ROLE_SUPERVISOR,
)


DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: [perm[0] for perm in PERMISSION_DEFINITIONS],
    ROLE_DEPOT_ADMIN: [
        "VIEW_CATALOG",
        "MANAGE_VARIANTS",
        "VIEW_STOCK",
        "MANAGE_TRANSFERS",
        "MANAGE_PURCHASES",
        "MANAGE_WASTAGE",
    ],
    ROLE_AGENCY: [
        "VIEW_CATALOG",
        "VIEW_AGENCY_DELIVERIES",
        "UPDATE_DELIVERY_STATUS",
        "VIEW_VENDOR_ORDERS",
        "RECEIVE_VENDOR_ORDERS",
        "VIEW_DELIVERY_REQUIREMENTS",
    ],
    ROLE_SUPERVISOR: [
        "VIEW_CATALOG",
        "VIEW_REPORTS",
        "MANAGE_LEADS",
        "VIEW_VENDOR_ORDERS",
        "RECORD_SUPERVISOR_QUANTITY",
    ],
    ROLE_VENDOR: [
        "VIEW_CATALOG",
        "VIEW_STOCK",
        "VIEW_VENDOR_ORDERS",
        "RECORD_VENDOR_DELIVERY",
        "VIEW_DELIVERY_REQUIREMENTS",
    ],
    ROLE_MEMBER: [
        "VIEW_CATALOG",
        "CREATE_SUBSCRIPTION",
        "VIEW_OWN_SUBSCRIPTIONS",
        "MANAGE_OWN_ADDRESSES",
        "SKIP_DELIVERY",
        "VIEW_OWN_WALLET",
        "REQUEST_TOPUP",
        "VIEW_INVOICES",
    ],
}


def role_has_permission(role: str | None, code: str) -> bool:
    return code in DEFAULT_ROLE_PERMISSIONS.get(role or "", ())
