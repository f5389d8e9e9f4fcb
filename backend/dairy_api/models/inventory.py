from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..money import ZERO, as_float
from ..time_utils import to_iso_date, to_utc_z


class StockLedger(db.Model):
    """
    Append-only stock movement per (product, variant, depot).

    Exactly one of received_qty / issued_qty is non-zero on a row.
    module + foreign_key point back at the source document
    (transfer | purchase | wastage); editing or deleting the document
    deletes its rows and writes fresh ones.

    closing stock = sum(received_qty) - sum(issued_qty)
    """
    __tablename__ = "stock_ledgers"
    __table_args__ = (
        db.Index("ix_stock_ledgers_key", "product_id", "variant_id", "depot_id"),
        db.Index("ix_stock_ledgers_source", "module", "foreign_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=False)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=False)
    transaction_date = db.Column(db.Date, nullable=False)
    received_qty = db.Column(db.Integer, nullable=False, default=0)
    issued_qty = db.Column(db.Integer, nullable=False, default=0)
    module = db.Column(db.String(20), nullable=False)
    foreign_key = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")
    variant = db.relationship("DepotProductVariant")
    depot = db.relationship("Depot")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.name if self.product else None,
            "variant_id": self.variant_id,
            "variant": self.variant.name if self.variant else None,
            "depot_id": self.depot_id,
            "depot": self.depot.name if self.depot else None,
            "transaction_date": to_iso_date(self.transaction_date),
            "received_qty": self.received_qty,
            "issued_qty": self.issued_qty,
            "module": self.module,
            "foreign_key": self.foreign_key,
        }


class Transfer(db.Model):
    """Depot-to-depot stock movement; each detail pairs a source and destination variant."""
    __tablename__ = "transfers"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    transfer_no = db.Column(db.String(50), nullable=False, unique=True)
    transfer_date = db.Column(db.Date, nullable=False)
    from_depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=False, index=True)
    to_depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    from_depot = db.relationship("Depot", foreign_keys=[from_depot_id])
    to_depot = db.relationship("Depot", foreign_keys=[to_depot_id])
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transfer_no": self.transfer_no,
            "transfer_date": to_iso_date(self.transfer_date),
            "from_depot_id": self.from_depot_id,
            "from_depot": self.from_depot.name if self.from_depot else None,
            "to_depot_id": self.to_depot_id,
            "to_depot": self.to_depot.name if self.to_depot else None,
            "notes": self.notes,
            "created_by_id": self.created_by_id,
            "details": [d.to_dict() for d in self.details],
            "created_at": to_utc_z(self.created_at),
        }


class TransferDetail(db.Model):
    __tablename__ = "transfer_details"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("transfers.id"), nullable=False, index=True)
    from_depot_variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=False)
    to_depot_variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    transfer = db.relationship(
        "Transfer",
        backref=db.backref("details", lazy=True, cascade="all, delete-orphan", order_by="TransferDetail.id"),
    )
    from_variant = db.relationship("DepotProductVariant", foreign_keys=[from_depot_variant_id])
    to_variant = db.relationship("DepotProductVariant", foreign_keys=[to_depot_variant_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transfer_id": self.transfer_id,
            "from_depot_variant_id": self.from_depot_variant_id,
            "to_depot_variant_id": self.to_depot_variant_id,
            "product_id": self.from_variant.product_id if self.from_variant else None,
            "variant": self.from_variant.name if self.from_variant else None,
            "quantity": self.quantity,
        }


class Purchase(db.Model):
    """Stock received at a depot from a vendor."""
    __tablename__ = "purchases"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    purchase_no = db.Column(db.String(50), nullable=False, unique=True)
    purchase_date = db.Column(db.Date, nullable=False)
    invoice_no = db.Column(db.String(100), nullable=True)
    invoice_date = db.Column(db.Date, nullable=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=False, index=True)
    # Running total of purchase payment details against this purchase
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    vendor = db.relationship("Vendor", backref=db.backref("purchases", lazy=True))
    depot = db.relationship("Depot")
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    @property
    def total_amount(self) -> Decimal:
        """Sum of quantity * purchase_rate; lines without a rate count as zero."""
        return sum(
            (Decimal(d.quantity) * d.purchase_rate for d in self.details if d.purchase_rate is not None),
            ZERO,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_no": self.purchase_no,
            "purchase_date": to_iso_date(self.purchase_date),
            "invoice_no": self.invoice_no,
            "invoice_date": to_iso_date(self.invoice_date),
            "vendor_id": self.vendor_id,
            "vendor": self.vendor.name if self.vendor else None,
            "depot_id": self.depot_id,
            "depot": self.depot.name if self.depot else None,
            "total_amount": as_float(self.total_amount),
            "paid_amount": as_float(self.paid_amount),
            "details": [d.to_dict() for d in self.details],
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseDetail(db.Model):
    __tablename__ = "purchase_details"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    purchase_rate = db.Column(db.Numeric(12, 2), nullable=True)

    purchase = db.relationship(
        "Purchase",
        backref=db.backref("details", lazy=True, cascade="all, delete-orphan", order_by="PurchaseDetail.id"),
    )
    product = db.relationship("Product")
    variant = db.relationship("DepotProductVariant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "variant": self.variant.name if self.variant else None,
            "quantity": self.quantity,
            "purchase_rate": as_float(self.purchase_rate),
        }


class Wastage(db.Model):
    """Stock written off at a depot (spoilage, leakage, returns to vendor)."""
    __tablename__ = "wastages"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    wastage_no = db.Column(db.String(50), nullable=False, unique=True)
    wastage_date = db.Column(db.Date, nullable=False)
    invoice_no = db.Column(db.String(100), nullable=True)
    invoice_date = db.Column(db.Date, nullable=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=False, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    vendor = db.relationship("Vendor", backref=db.backref("wastages", lazy=True))
    depot = db.relationship("Depot")
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "wastage_no": self.wastage_no,
            "wastage_date": to_iso_date(self.wastage_date),
            "invoice_no": self.invoice_no,
            "invoice_date": to_iso_date(self.invoice_date),
            "vendor_id": self.vendor_id,
            "vendor": self.vendor.name if self.vendor else None,
            "depot_id": self.depot_id,
            "depot": self.depot.name if self.depot else None,
            "details": [d.to_dict() for d in self.details],
            "created_at": to_utc_z(self.created_at),
        }


class WastageDetail(db.Model):
    __tablename__ = "wastage_details"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    wastage_id = db.Column(db.Integer, db.ForeignKey("wastages.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    variant_id = db.Column(db.Integer, db.ForeignKey("depot_product_variants.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    wastage = db.relationship(
        "Wastage",
        backref=db.backref("details", lazy=True, cascade="all, delete-orphan", order_by="WastageDetail.id"),
    )
    product = db.relationship("Product")
    variant = db.relationship("DepotProductVariant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "variant": self.variant.name if self.variant else None,
            "quantity": self.quantity,
        }


class DocumentSequence(db.Model):
    """
    Per-(document_type, financial year) counters for human-facing numbers.

    Allocation increments next_number with a single UPDATE so concurrent
    requests never hand out the same number.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "fiscal_year", name="uq_document_sequences_type_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False)
    fiscal_year = db.Column(db.String(8), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
