"""Initial schema: catalog, partners, members, subscriptions, deliveries, wallet and stock

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated=True):
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
    ]
    if with_updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False)
        )
    return cols


def upgrade():
    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "depots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("contact_number", sa.String(20), nullable=True),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("city_id", sa.Integer(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["city_id"], ["cities.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(20), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="MEMBER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("depot_id", sa.Integer(), nullable=True),
        sa.Column("joining_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("mobile"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_role", ["role"], unique=False)
        batch_op.create_index("ix_users_depot_id", ["depot_id"], unique=False)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_dairy", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(500), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url", sa.String(500), nullable=True),
        sa.Column("attachment_url", sa.String(500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("is_dairy_product", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("maintain_stock", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_name", ["name"], unique=False)
        batch_op.create_index("ix_products_category_id", ["category_id"], unique=False)

    op.create_table(
        "depot_product_variants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("hsn_code", sa.String(50), nullable=True),
        sa.Column("minimum_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("closing_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("not_in_stock", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("mrp", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("purchase_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("buy_once_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("price_3_day", sa.Numeric(12, 2), nullable=True),
        sa.Column("price_7_day", sa.Numeric(12, 2), nullable=True),
        sa.Column("price_15_day", sa.Numeric(12, 2), nullable=True),
        sa.Column("price_1_month", sa.Numeric(12, 2), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("depot_product_variants", schema=None) as batch_op:
        batch_op.create_index("ix_depot_variants_depot_product", ["depot_id", "product_id"], unique=False)
        batch_op.create_index("ix_depot_product_variants_product_id", ["product_id"], unique=False)

    op.create_table(
        "agencies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person_name", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(20), nullable=False),
        sa.Column("address1", sa.String(255), nullable=False),
        sa.Column("address2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("pincode", sa.String(10), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("user_id"),
        sa.UniqueConstraint("depot_id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "supervisors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person_name", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(20), nullable=False),
        sa.Column("address1", sa.String(255), nullable=True),
        sa.Column("address2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("pincode", sa.String(10), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("agency_id", sa.Integer(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("user_id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("supervisors", schema=None) as batch_op:
        batch_op.create_index("ix_supervisors_agency_id", ["agency_id"], unique=False)

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person_name", sa.String(255), nullable=True),
        sa.Column("mobile", sa.String(20), nullable=False),
        sa.Column("address1", sa.String(255), nullable=True),
        sa.Column("address2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("pincode", sa.String(10), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_dairy_supplier", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("user_id", sa.Integer(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("user_id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city_id", sa.Integer(), nullable=False),
        sa.Column("agency_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["city_id"], ["cities.id"]),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("locations", schema=None) as batch_op:
        batch_op.create_index("ix_locations_city_id", ["city_id"], unique=False)
        batch_op.create_index("ix_locations_agency_id", ["agency_id"], unique=False)

    op.create_table(
        "area_masters",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("pincodes", sa.Text(), nullable=False),
        sa.Column("delivery_type", sa.String(20), nullable=False, server_default="HandDelivery"),
        sa.Column("depot_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("area_masters", schema=None) as batch_op:
        batch_op.create_index("ix_area_masters_depot_id", ["depot_id"], unique=False)

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("wallet_balance", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_members_wallet_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "delivery_addresses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("recipient_name", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(20), nullable=False),
        sa.Column("plot_building", sa.String(255), nullable=False),
        sa.Column("street_area", sa.String(255), nullable=False),
        sa.Column("landmark", sa.String(255), nullable=True),
        sa.Column("pincode", sa.String(10), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("label", sa.String(50), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("location_id", sa.Integer(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("delivery_addresses", schema=None) as batch_op:
        batch_op.create_index("ix_delivery_addresses_member", ["member_id"], unique=False)
        batch_op.create_index("ix_delivery_addresses_location_id", ["location_id"], unique=False)

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("reference_number", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("processed_by_admin_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["processed_by_admin_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("wallet_transactions", schema=None) as batch_op:
        batch_op.create_index("ix_wallet_transactions_member_created", ["member_id", "created_at"], unique=False)
        batch_op.create_index("ix_wallet_transactions_status", ["status"], unique=False)

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("plot_building", sa.String(255), nullable=True),
        sa.Column("street_area", sa.String(255), nullable=True),
        sa.Column("landmark", sa.String(255), nullable=True),
        sa.Column("pincode", sa.String(10), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("is_dairy_product", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="NEW"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("leads", schema=None) as batch_op:
        batch_op.create_index("ix_leads_status", ["status"], unique=False)

    op.create_table(
        "product_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_no", sa.String(50), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("agency_id", sa.Integer(), nullable=True),
        sa.Column("total_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("wallet_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payable_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("received_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_mode", sa.String(20), nullable=True),
        sa.Column("payment_reference_no", sa.String(255), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("invoice_no", sa.String(50), nullable=True),
        sa.Column("invoice_path", sa.String(500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_no"),
        sa.UniqueConstraint("invoice_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("product_orders", schema=None) as batch_op:
        batch_op.create_index("ix_product_orders_member", ["member_id"], unique=False)
        batch_op.create_index("ix_product_orders_status", ["payment_status"], unique=False)
        batch_op.create_index("ix_product_orders_agency_id", ["agency_id"], unique=False)

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("product_order_id", sa.Integer(), nullable=True),
        sa.Column("delivery_address_id", sa.Integer(), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("depot_product_variant_id", sa.Integer(), nullable=True),
        sa.Column("agency_id", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("period", sa.Integer(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("delivery_schedule", sa.String(20), nullable=False),
        sa.Column("weekdays", sa.Text(), nullable=True),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("alt_qty", sa.Integer(), nullable=True),
        sa.Column("rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_qty", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("wallet_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payable_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("received_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_mode", sa.String(20), nullable=True),
        sa.Column("payment_reference_no", sa.String(255), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("delivery_instructions", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["product_order_id"], ["product_orders.id"]),
        sa.ForeignKeyConstraint(["delivery_address_id"], ["delivery_addresses.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["depot_product_variant_id"], ["depot_product_variants.id"]),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("subscriptions", schema=None) as batch_op:
        batch_op.create_index("ix_subscriptions_member", ["member_id"], unique=False)
        batch_op.create_index("ix_subscriptions_order", ["product_order_id"], unique=False)
        batch_op.create_index("ix_subscriptions_agency", ["agency_id"], unique=False)
        batch_op.create_index(
            "ix_subscriptions_depot_product_variant_id", ["depot_product_variant_id"], unique=False
        )

    op.create_table(
        "delivery_schedule_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subscription_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("delivery_address_id", sa.Integer(), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=True),
        sa.Column("depot_product_variant_id", sa.Integer(), nullable=True),
        sa.Column("agent_id", sa.Integer(), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="PENDING"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("wallet_transaction_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["subscription_id"], ["subscriptions.id"]),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"]),
        sa.ForeignKeyConstraint(["delivery_address_id"], ["delivery_addresses.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["depot_product_variant_id"], ["depot_product_variants.id"]),
        sa.ForeignKeyConstraint(["agent_id"], ["agencies.id"]),
        sa.ForeignKeyConstraint(["wallet_transaction_id"], ["wallet_transactions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("delivery_schedule_entries", schema=None) as batch_op:
        batch_op.create_index("ix_delivery_entries_date_agent", ["delivery_date", "agent_id"], unique=False)
        batch_op.create_index("ix_delivery_entries_subscription", ["subscription_id"], unique=False)
        batch_op.create_index("ix_delivery_entries_member_date", ["member_id", "delivery_date"], unique=False)
        batch_op.create_index("ix_delivery_schedule_entries_depot_id", ["depot_id"], unique=False)

    op.create_table(
        "stock_ledgers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("variant_id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("received_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("issued_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("module", sa.String(20), nullable=False),
        sa.Column("foreign_key", sa.Integer(), nullable=False),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["variant_id"], ["depot_product_variants.id"]),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("stock_ledgers", schema=None) as batch_op:
        batch_op.create_index("ix_stock_ledgers_key", ["product_id", "variant_id", "depot_id"], unique=False)
        batch_op.create_index("ix_stock_ledgers_source", ["module", "foreign_key"], unique=False)

    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transfer_no", sa.String(50), nullable=False),
        sa.Column("transfer_date", sa.Date(), nullable=False),
        sa.Column("from_depot_id", sa.Integer(), nullable=False),
        sa.Column("to_depot_id", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["from_depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["to_depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transfer_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("transfers", schema=None) as batch_op:
        batch_op.create_index("ix_transfers_from_depot_id", ["from_depot_id"], unique=False)
        batch_op.create_index("ix_transfers_to_depot_id", ["to_depot_id"], unique=False)

    op.create_table(
        "transfer_details",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transfer_id", sa.Integer(), nullable=False),
        sa.Column("from_depot_variant_id", sa.Integer(), nullable=False),
        sa.Column("to_depot_variant_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["transfer_id"], ["transfers.id"]),
        sa.ForeignKeyConstraint(["from_depot_variant_id"], ["depot_product_variants.id"]),
        sa.ForeignKeyConstraint(["to_depot_variant_id"], ["depot_product_variants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("transfer_details", schema=None) as batch_op:
        batch_op.create_index("ix_transfer_details_transfer_id", ["transfer_id"], unique=False)

    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_no", sa.String(50), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("invoice_no", sa.String(100), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=True),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        *_timestamps(with_updated=False),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"]),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("purchase_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.create_index("ix_purchases_vendor_id", ["vendor_id"], unique=False)
        batch_op.create_index("ix_purchases_depot_id", ["depot_id"], unique=False)

    op.create_table(
        "purchase_details",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("variant_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("purchase_rate", sa.Numeric(12, 2), nullable=True),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["variant_id"], ["depot_product_variants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_details", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_details_purchase_id", ["purchase_id"], unique=False)

    op.create_table(
        "wastages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("wastage_no", sa.String(50), nullable=False),
        sa.Column("wastage_date", sa.Date(), nullable=False),
        sa.Column("invoice_no", sa.String(100), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=True),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"]),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("wastage_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("wastages", schema=None) as batch_op:
        batch_op.create_index("ix_wastages_vendor_id", ["vendor_id"], unique=False)
        batch_op.create_index("ix_wastages_depot_id", ["depot_id"], unique=False)

    op.create_table(
        "wastage_details",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("wastage_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("variant_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["wastage_id"], ["wastages.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["variant_id"], ["depot_product_variants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("wastage_details", schema=None) as batch_op:
        batch_op.create_index("ix_wastage_details_wastage_id", ["wastage_id"], unique=False)

    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(32), nullable=False),
        sa.Column("fiscal_year", sa.String(8), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type", "fiscal_year", name="uq_document_sequences_type_year"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("document_sequences")
    op.drop_table("wastage_details")
    op.drop_table("wastages")
    op.drop_table("purchase_details")
    op.drop_table("purchases")
    op.drop_table("transfer_details")
    op.drop_table("transfers")
    op.drop_table("stock_ledgers")
    op.drop_table("delivery_schedule_entries")
    op.drop_table("subscriptions")
    op.drop_table("product_orders")
    op.drop_table("leads")
    op.drop_table("wallet_transactions")
    op.drop_table("delivery_addresses")
    op.drop_table("members")
    op.drop_table("area_masters")
    op.drop_table("locations")
    op.drop_table("vendors")
    op.drop_table("supervisors")
    op.drop_table("agencies")
    op.drop_table("depot_product_variants")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("users")
    op.drop_table("depots")
    op.drop_table("cities")
