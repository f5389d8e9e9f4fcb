# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "VIEW_CATALOG",
        "View Catalog",
        "View products, depots and depot variants",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create, edit and delete products and categories",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_DEPOTS",
        "Manage Depots",
        "Create, edit and delete depots, cities, locations and areas",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_VARIANTS",
        "Manage Depot Variants",
        "Create and edit depot product variants and their price tiers",
        PermissionCategory.CATALOG,
    ),
]


# -- SUBSCRIPTIONS --

SUBSCRIPTION_PERMISSIONS = [
    (
        "CREATE_SUBSCRIPTION",
        "Create Subscription",
        "Place product orders with one or more subscriptions",
        PermissionCategory.SUBSCRIPTIONS,
    ),
    (
        "VIEW_OWN_SUBSCRIPTIONS",
        "View Own Subscriptions",
        "View subscriptions and orders of the signed-in member",
        PermissionCategory.SUBSCRIPTIONS,
    ),
    (
        "MANAGE_SUBSCRIPTIONS",
        "Manage Subscriptions",
        "View all subscriptions/orders, record payments and edit subscriptions",
        PermissionCategory.SUBSCRIPTIONS,
    ),
    (
        "ASSIGN_AGENCY",
        "Assign Agency",
        "Bulk-assign delivery agencies to subscriptions",
        PermissionCategory.SUBSCRIPTIONS,
    ),
    (
        "MANAGE_OWN_ADDRESSES",
        "Manage Own Addresses",
        "Create and edit delivery addresses of the signed-in member",
        PermissionCategory.SUBSCRIPTIONS,
    ),
]


# -- DELIVERIES --

DELIVERY_PERMISSIONS = [
    (
        "VIEW_AGENCY_DELIVERIES",
        "View Agency Deliveries",
        "View the delivery run for an agency on a date",
        PermissionCategory.DELIVERIES,
    ),
    (
        "UPDATE_DELIVERY_STATUS",
        "Update Delivery Status",
        "Mark agency deliveries delivered, not delivered, etc.",
        PermissionCategory.DELIVERIES,
    ),
    (
        "MANAGE_DELIVERIES",
        "Manage Deliveries",
        "Admin delivery overrides including refunds for customer skips",
        PermissionCategory.DELIVERIES,
    ),
    (
        "SKIP_DELIVERY",
        "Skip Delivery",
        "Member skips a future delivery for a wallet refund",
        PermissionCategory.DELIVERIES,
    ),
]


# -- WALLET --

WALLET_PERMISSIONS = [
    (
        "VIEW_OWN_WALLET",
        "View Own Wallet",
        "View wallet balance and transactions of the signed-in member",
        PermissionCategory.WALLET,
    ),
    (
        "REQUEST_TOPUP",
        "Request Top-up",
        "Submit a wallet top-up request for admin approval",
        PermissionCategory.WALLET,
    ),
    (
        "MANAGE_WALLETS",
        "Manage Wallets",
        "Add or remove funds and approve top-up requests",
        PermissionCategory.WALLET,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_STOCK",
        "View Stock",
        "View stock ledger and closing stock",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_TRANSFERS",
        "Manage Transfers",
        "Create, edit and delete depot-to-depot stock transfers",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_PURCHASES",
        "Manage Purchases",
        "Record stock received from vendors",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_WASTAGE",
        "Manage Wastage",
        "Record stock lost to wastage",
        PermissionCategory.INVENTORY,
    ),
]


# -- PROCUREMENT --

PROCUREMENT_PERMISSIONS = [
    (
        "MANAGE_VENDOR_ORDERS",
        "Manage Vendor Orders",
        "Place, edit, cancel and list purchase orders with vendors",
        PermissionCategory.PROCUREMENT,
    ),
    (
        "VIEW_VENDOR_ORDERS",
        "View Vendor Orders",
        "Open vendor orders the user takes part in",
        PermissionCategory.PROCUREMENT,
    ),
    (
        "RECORD_VENDOR_DELIVERY",
        "Record Vendor Delivery",
        "Vendor records the quantities dispatched against its orders",
        PermissionCategory.PROCUREMENT,
    ),
    (
        "RECEIVE_VENDOR_ORDERS",
        "Receive Vendor Orders",
        "Agency records the quantities that arrived",
        PermissionCategory.PROCUREMENT,
    ),
    (
        "RECORD_SUPERVISOR_QUANTITY",
        "Record Supervisor Quantity",
        "Supervisor records a verified count against received lines",
        PermissionCategory.PROCUREMENT,
    ),
    (
        "VIEW_DELIVERY_REQUIREMENTS",
        "View Delivery Requirements",
        "Per-date quantities needed to serve paid subscriptions",
        PermissionCategory.PROCUREMENT,
    ),
    (
        "MANAGE_PURCHASE_PAYMENTS",
        "Manage Purchase Payments",
        "Record and correct payments made to vendors against purchases",
        PermissionCategory.PROCUREMENT,
    ),
]


# -- PARTNERS --

PARTNER_PERMISSIONS = [
    (
        "MANAGE_PARTNERS",
        "Manage Partners",
        "Create and edit agencies, supervisors and vendors",
        PermissionCategory.PARTNERS,
    ),
    (
        "MANAGE_MEMBERS",
        "Manage Members",
        "View members and their wallets",
        PermissionCategory.PARTNERS,
    ),
    (
        "MANAGE_LEADS",
        "Manage Leads",
        "Review and follow up on enquiry leads",
        PermissionCategory.PARTNERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "Delivery, wallet and subscription reports",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "Admin headline statistics",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_INVOICES",
        "View Invoices",
        "Download invoices for orders the user can see",
        PermissionCategory.REPORTS,
    ),
    (
        "GENERATE_INVOICES",
        "Generate Invoices",
        "Regenerate invoice PDFs for orders",
        PermissionCategory.REPORTS,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Activate/deactivate users and reset roles",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    CATALOG_PERMISSIONS
    + SUBSCRIPTION_PERMISSIONS
    + DELIVERY_PERMISSIONS
    + WALLET_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + PROCUREMENT_PERMISSIONS
    + PARTNER_PERMISSIONS
    + REPORT_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
