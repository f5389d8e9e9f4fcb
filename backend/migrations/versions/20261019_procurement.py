"""Vendor orders and purchase payments; purchases.paid_amount

Revision ID: 20261019_procurement
Revises: 20261019_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_procurement"
down_revision = "20261019_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.add_column(sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default="0"))

    op.create_table(
        "vendor_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("po_number", sa.String(50), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("contact_person_name", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("delivered_by_id", sa.Integer(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("received_by_id", sa.Integer(), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"]),
        sa.ForeignKeyConstraint(["delivered_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["received_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("po_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vendor_orders", schema=None) as batch_op:
        batch_op.create_index("ix_vendor_orders_order_date", ["order_date"], unique=False)
        batch_op.create_index("ix_vendor_orders_vendor_id", ["vendor_id"], unique=False)
        batch_op.create_index("ix_vendor_orders_status", ["status"], unique=False)

    op.create_table(
        "vendor_order_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vendor_order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("agency_id", sa.Integer(), nullable=False),
        sa.Column("depot_id", sa.Integer(), nullable=True),
        sa.Column("depot_variant_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_at_purchase", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("delivered_quantity", sa.Integer(), nullable=True),
        sa.Column("received_quantity", sa.Integer(), nullable=True),
        sa.Column("supervisor_quantity", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["vendor_order_id"], ["vendor_orders.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"]),
        sa.ForeignKeyConstraint(["depot_id"], ["depots.id"]),
        sa.ForeignKeyConstraint(["depot_variant_id"], ["depot_product_variants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("vendor_order_items", schema=None) as batch_op:
        batch_op.create_index("ix_vendor_order_items_vendor_order_id", ["vendor_order_id"], unique=False)
        batch_op.create_index("ix_vendor_order_items_agency_id", ["agency_id"], unique=False)

    op.create_table(
        "purchase_payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("payment_no", sa.String(50), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("vendor_id", sa.Integer(), nullable=False),
        sa.Column("mode", sa.String(30), nullable=False),
        sa.Column("reference_no", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_no"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_payments", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_payments_vendor_id", ["vendor_id"], unique=False)

    op.create_table(
        "purchase_payment_details",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("purchase_payment_id", sa.Integer(), nullable=False),
        sa.Column("purchase_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.ForeignKeyConstraint(["purchase_payment_id"], ["purchase_payments.id"]),
        sa.ForeignKeyConstraint(["purchase_id"], ["purchases.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("purchase_payment_details", schema=None) as batch_op:
        batch_op.create_index("ix_purchase_payment_details_purchase_payment_id", ["purchase_payment_id"], unique=False)
        batch_op.create_index("ix_purchase_payment_details_purchase_id", ["purchase_id"], unique=False)


def downgrade():
    with op.batch_alter_table("purchase_payment_details", schema=None) as batch_op:
        batch_op.drop_index("ix_purchase_payment_details_purchase_id")
        batch_op.drop_index("ix_purchase_payment_details_purchase_payment_id")
    op.drop_table("purchase_payment_details")

    with op.batch_alter_table("purchase_payments", schema=None) as batch_op:
        batch_op.drop_index("ix_purchase_payments_vendor_id")
    op.drop_table("purchase_payments")

    with op.batch_alter_table("vendor_order_items", schema=None) as batch_op:
        batch_op.drop_index("ix_vendor_order_items_agency_id")
        batch_op.drop_index("ix_vendor_order_items_vendor_order_id")
    op.drop_table("vendor_order_items")

    with op.batch_alter_table("vendor_orders", schema=None) as batch_op:
        batch_op.drop_index("ix_vendor_orders_status")
        batch_op.drop_index("ix_vendor_orders_vendor_id")
        batch_op.drop_index("ix_vendor_orders_order_date")
    op.drop_table("vendor_orders")

    with op.batch_alter_table("purchases", schema=None) as batch_op:
        batch_op.drop_column("paid_amount")
