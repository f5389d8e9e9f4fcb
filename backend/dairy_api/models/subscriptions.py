from __future__ import annotations

import json

from ..extensions import db
from ..money import as_float
from ..time_utils import to_iso_date, to_utc_z


class ProductOrder(db.Model):
    """
    Checkout document grouping one or more subscriptions paid together.

    MONEY:
    - total_amount = sum(subscription.amount)
    - wallet_amount = wallet balance applied (<= member balance at checkout)
    - payable_amount = total_amount - wallet_amount
    - received_amount = cash/online collected against payable_amount
    """
    __tablename__ = "product_orders"
    __table_args__ = (
        db.Index("ix_product_orders_member", "member_id"),
        db.Index("ix_product_orders_status", "payment_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_no = db.Column(db.String(50), nullable=False, unique=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False)
    agency_id = db.Column(db.Integer, db.ForeignKey("agencies.id"), nullable=True, index=True)

    total_qty = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    wallet_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payable_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    received_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_mode = db.Column(db.String(20), nullable=True)
    payment_reference_no = db.Column(db.String(255), nullable=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_status = db.Column(db.String(20), nullable=False, default="PENDING")

    invoice_no = db.Column(db.String(50), nullable=True, unique=True)
    invoice_path = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    member = db.relationship("Member", backref=db.backref("orders", lazy=True))
    agency = db.relationship("Agency", backref=db.backref("orders", lazy=True))

    def to_dict(self, include_subscriptions: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_no": self.order_no,
            "member_id": self.member_id,
            "member": self.member.name if self.member else None,
            "agency_id": self.agency_id,
            "total_qty": self.total_qty,
            "total_amount": as_float(self.total_amount),
            "wallet_amount": as_float(self.wallet_amount),
            "payable_amount": as_float(self.payable_amount),
            "received_amount": as_float(self.received_amount),
            "payment_mode": self.payment_mode,
            "payment_reference_no": self.payment_reference_no,
            "payment_date": to_utc_z(self.payment_date),
            "payment_status": self.payment_status,
            "invoice_no": self.invoice_no,
            "invoice_path": self.invoice_path,
            "created_at": to_utc_z(self.created_at),
        }
        if include_subscriptions:
            data["subscriptions"] = [s.to_dict() for s in self.subscriptions]
        return data


class Subscription(db.Model):
    """
    One recurring order line for a depot variant over `period` days.

    delivery_schedule is the stored tag: DAILY | DAY1_DAY2 | WEEKDAYS | ALTERNATE_DAYS.
    weekdays holds a JSON list of day keys (sun..sat) for WEEKDAYS.
    """
    __tablename__ = "subscriptions"
    __table_args__ = (
        db.Index("ix_subscriptions_member", "member_id"),
        db.Index("ix_subscriptions_order", "product_order_id"),
        db.Index("ix_subscriptions_agency", "agency_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False)
    product_order_id = db.Column(db.Integer, db.ForeignKey("product_orders.id"), nullable=True)
    delivery_address_id = db.Column(db.Integer, db.ForeignKey("delivery_addresses.id"), nullable=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    depot_product_variant_id = db.Column(
        db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=True, index=True
    )
    agency_id = db.Column(db.Integer, db.ForeignKey("agencies.id"), nullable=True)

    start_date = db.Column(db.Date, nullable=False)
    period = db.Column(db.Integer, nullable=False)
    expiry_date = db.Column(db.Date, nullable=False)
    delivery_schedule = db.Column(db.String(20), nullable=False)
    weekdays = db.Column(db.Text, nullable=True)
    qty = db.Column(db.Integer, nullable=False)
    alt_qty = db.Column(db.Integer, nullable=True)

    rate = db.Column(db.Numeric(12, 2), nullable=False)
    total_qty = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    wallet_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payable_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    received_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_mode = db.Column(db.String(20), nullable=True)
    payment_reference_no = db.Column(db.String(255), nullable=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_status = db.Column(db.String(20), nullable=False, default="PENDING")
    delivery_instructions = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    member = db.relationship("Member", backref=db.backref("subscriptions", lazy=True))
    product_order = db.relationship(
        "ProductOrder", backref=db.backref("subscriptions", lazy=True, order_by="Subscription.id")
    )
    delivery_address = db.relationship("DeliveryAddress")
    product = db.relationship("Product")
    depot_product_variant = db.relationship("DepotProductVariant")
    agency = db.relationship("Agency", backref=db.backref("subscriptions", lazy=True))

    @property
    def weekday_list(self) -> list[str]:
        if not self.weekdays:
            return []
        try:
            value = json.loads(self.weekdays)
        except ValueError:
            return []
        return [str(day) for day in value] if isinstance(value, list) else []

    def to_dict(self) -> dict:
        variant = self.depot_product_variant
        return {
            "id": self.id,
            "member_id": self.member_id,
            "product_order_id": self.product_order_id,
            "delivery_address_id": self.delivery_address_id,
            "product_id": self.product_id,
            "product": self.product.name if self.product else None,
            "depot_product_variant_id": self.depot_product_variant_id,
            "variant": variant.name if variant else None,
            "depot_id": variant.depot_id if variant else None,
            "agency_id": self.agency_id,
            "start_date": to_iso_date(self.start_date),
            "period": self.period,
            "expiry_date": to_iso_date(self.expiry_date),
            "delivery_schedule": self.delivery_schedule,
            "weekdays": self.weekday_list,
            "qty": self.qty,
            "alt_qty": self.alt_qty,
            "rate": as_float(self.rate),
            "total_qty": self.total_qty,
            "amount": as_float(self.amount),
            "wallet_amount": as_float(self.wallet_amount),
            "payable_amount": as_float(self.payable_amount),
            "received_amount": as_float(self.received_amount),
            "payment_mode": self.payment_mode,
            "payment_reference_no": self.payment_reference_no,
            "payment_date": to_utc_z(self.payment_date),
            "payment_status": self.payment_status,
            "delivery_instructions": self.delivery_instructions,
            "created_at": to_utc_z(self.created_at),
        }


class DeliveryScheduleEntry(db.Model):
    """One dated delivery obligation generated from a subscription."""
    __tablename__ = "delivery_schedule_entries"
    __table_args__ = (
        db.Index("ix_delivery_entries_date_agent", "delivery_date", "agent_id"),
        db.Index("ix_delivery_entries_subscription", "subscription_id"),
        db.Index("ix_delivery_entries_member_date", "member_id", "delivery_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey("subscriptions.id"), nullable=False)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False)
    delivery_address_id = db.Column(db.Integer, db.ForeignKey("delivery_addresses.id"), nullable=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=True, index=True)
    depot_product_variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=True)
    agent_id = db.Column(db.Integer, db.ForeignKey("agencies.id"), nullable=True)

    delivery_date = db.Column(db.Date, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(30), nullable=False, default="PENDING")
    admin_notes = db.Column(db.Text, nullable=True)
    wallet_transaction_id = db.Column(db.Integer, db.ForeignKey("wallet_transactions.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    subscription = db.relationship(
        "Subscription", backref=db.backref("entries", lazy=True, order_by="DeliveryScheduleEntry.delivery_date")
    )
    member = db.relationship("Member")
    delivery_address = db.relationship("DeliveryAddress")
    product = db.relationship("Product")
    depot = db.relationship("Depot")
    depot_product_variant = db.relationship("DepotProductVariant")
    agent = db.relationship("Agency", backref=db.backref("delivery_entries", lazy=True))
    wallet_transaction = db.relationship("WalletTransaction")

    def to_dict(self, include_address: bool = False) -> dict:
        data = {
            "id": self.id,
            "subscription_id": self.subscription_id,
            "member_id": self.member_id,
            "member": self.member.name if self.member else None,
            "delivery_address_id": self.delivery_address_id,
            "product_id": self.product_id,
            "product": self.product.name if self.product else None,
            "depot_id": self.depot_id,
            "depot_product_variant_id": self.depot_product_variant_id,
            "variant": self.depot_product_variant.name if self.depot_product_variant else None,
            "agent_id": self.agent_id,
            "delivery_date": to_iso_date(self.delivery_date),
            "quantity": self.quantity,
            "status": self.status,
            "admin_notes": self.admin_notes,
            "wallet_transaction_id": self.wallet_transaction_id,
        }
        if include_address:
            data["delivery_address"] = self.delivery_address.to_dict() if self.delivery_address else None
        return data
