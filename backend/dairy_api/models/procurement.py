from __future__ import annotations

from ..extensions import db
from ..money import as_float
from ..time_utils import to_iso_date, to_utc_z


class VendorOrder(db.Model):
    """
    Purchase order placed with a vendor on behalf of one or more agencies.

    Lifecycle: PENDING -> ASSIGNED -> DELIVERED (vendor records what it sent)
    -> RECEIVED (agency records what arrived). Supervisors then record their
    own count against each received line.
    """
    __tablename__ = "vendor_orders"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    po_number = db.Column(db.String(50), nullable=False, unique=True)
    order_date = db.Column(db.Date, nullable=False, index=True)
    delivery_date = db.Column(db.Date, nullable=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    contact_person_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="PENDING", index=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    delivered_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    received_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    received_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    vendor = db.relationship("Vendor", backref=db.backref("vendor_orders", lazy=True))
    delivered_by = db.relationship("User", foreign_keys=[delivered_by_id])
    received_by = db.relationship("User", foreign_keys=[received_by_id])
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def to_dict(self) -> dict:
        items = [item.to_dict() for item in self.items]
        return {
            "id": self.id,
            "po_number": self.po_number,
            "order_date": to_iso_date(self.order_date),
            "delivery_date": to_iso_date(self.delivery_date),
            "vendor_id": self.vendor_id,
            "vendor": self.vendor.name if self.vendor else None,
            "contact_person_name": self.contact_person_name,
            "notes": self.notes,
            "status": self.status,
            "total_amount": as_float(self.total_amount),
            "delivered_by": self.delivered_by.name if self.delivered_by else None,
            "delivered_at": to_utc_z(self.delivered_at),
            "received_by": self.received_by.name if self.received_by else None,
            "received_at": to_utc_z(self.received_at),
            "items": items,
            "recorded_by_agencies": sorted(
                {item["agency_id"] for item in items if item["received_quantity"] is not None}
            ),
            "created_at": to_utc_z(self.created_at),
        }


class VendorOrderItem(db.Model):
    """
    One product line of a vendor order, destined for a single agency.

    delivered_quantity <= quantity, received_quantity <= delivered_quantity
    and supervisor_quantity <= received_quantity; each stays NULL until
    recorded.
    """
    __tablename__ = "vendor_order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    vendor_order_id = db.Column(db.Integer, db.ForeignKey("vendor_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    agency_id = db.Column(db.Integer, db.ForeignKey("agencies.id"), nullable=False, index=True)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=True)
    depot_variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_purchase = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    delivered_quantity = db.Column(db.Integer, nullable=True)
    received_quantity = db.Column(db.Integer, nullable=True)
    supervisor_quantity = db.Column(db.Integer, nullable=True)

    vendor_order = db.relationship(
        "VendorOrder",
        backref=db.backref("items", lazy=True, cascade="all, delete-orphan", order_by="VendorOrderItem.id"),
    )
    product = db.relationship("Product")
    agency = db.relationship("Agency")
    depot = db.relationship("Depot")
    depot_variant = db.relationship("DepotProductVariant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.name if self.product else None,
            "unit": self.product.unit if self.product else None,
            "agency_id": self.agency_id,
            "agency": self.agency.name if self.agency else None,
            "depot_id": self.depot_id,
            "depot": self.depot.name if self.depot else None,
            "depot_variant_id": self.depot_variant_id,
            "depot_variant": self.depot_variant.name if self.depot_variant else None,
            "quantity": self.quantity,
            "price_at_purchase": as_float(self.price_at_purchase),
            "delivered_quantity": self.delivered_quantity,
            "received_quantity": self.received_quantity,
            "supervisor_quantity": self.supervisor_quantity,
        }


class PurchasePayment(db.Model):
    """Money paid to a vendor, split across that vendor's purchases."""
    __tablename__ = "purchase_payments"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    payment_no = db.Column(db.String(50), nullable=False, unique=True)
    payment_date = db.Column(db.Date, nullable=False)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    mode = db.Column(db.String(30), nullable=False)
    reference_no = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    vendor = db.relationship("Vendor", backref=db.backref("purchase_payments", lazy=True))
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_no": self.payment_no,
            "payment_date": to_iso_date(self.payment_date),
            "vendor_id": self.vendor_id,
            "vendor": self.vendor.name if self.vendor else None,
            "mode": self.mode,
            "reference_no": self.reference_no,
            "notes": self.notes,
            "total_amount": as_float(self.total_amount),
            "details": [d.to_dict() for d in self.details],
            "created_at": to_utc_z(self.created_at),
        }


class PurchasePaymentDetail(db.Model):
    __tablename__ = "purchase_payment_details"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    purchase_payment_id = db.Column(db.Integer, db.ForeignKey("purchase_payments.id"), nullable=False, index=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    purchase_payment = db.relationship(
        "PurchasePayment",
        backref=db.backref(
            "details", lazy=True, cascade="all, delete-orphan", order_by="PurchasePaymentDetail.id"
        ),
    )
    purchase = db.relationship("Purchase")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "purchase_no": self.purchase.purchase_no if self.purchase else None,
            "amount": as_float(self.amount),
        }
