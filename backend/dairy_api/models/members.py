from __future__ import annotations

from ..extensions import db
from ..money import as_float
from ..time_utils import to_utc_z


class Member(db.Model):
    """
    End customer. One-to-one with a MEMBER user and owner of the wallet balance.

    INVARIANT: wallet_balance never goes negative; every change to it is paired
    with a WalletTransaction row in the same request transaction.
    """
    __tablename__ = "members"
    __table_args__ = (
        db.CheckConstraint("wallet_balance >= 0", name="ck_members_wallet_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    wallet_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("member", uselist=False, lazy=True))

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "wallet_balance": as_float(self.wallet_balance),
            "created_at": to_utc_z(self.created_at),
        }
        if include_user and self.user is not None:
            data["user"] = self.user.to_dict()
        return data


class DeliveryAddress(db.Model):
    __tablename__ = "delivery_addresses"
    __table_args__ = (
        db.Index("ix_delivery_addresses_member", "member_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False)
    recipient_name = db.Column(db.String(255), nullable=False)
    mobile = db.Column(db.String(20), nullable=False)
    plot_building = db.Column(db.String(255), nullable=False)
    street_area = db.Column(db.String(255), nullable=False)
    landmark = db.Column(db.String(255), nullable=True)
    pincode = db.Column(db.String(10), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(100), nullable=False)
    label = db.Column(db.String(50), nullable=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    # Location decides which agency serves online-depot subscriptions
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    member = db.relationship("Member", backref=db.backref("addresses", lazy=True))
    location = db.relationship("Location", backref=db.backref("addresses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "member_id": self.member_id,
            "recipient_name": self.recipient_name,
            "mobile": self.mobile,
            "plot_building": self.plot_building,
            "street_area": self.street_area,
            "landmark": self.landmark,
            "pincode": self.pincode,
            "city": self.city,
            "state": self.state,
            "label": self.label,
            "is_default": self.is_default,
            "location_id": self.location_id,
            "location": self.location.to_dict() if self.location else None,
        }


class WalletTransaction(db.Model):
    """
    Wallet movement for a member.

    type: CREDIT | DEBIT
    status: PENDING (top-up awaiting approval) | PAID | FAILED
    Only PAID rows have been applied to Member.wallet_balance.
    """
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        db.Index("ix_wallet_transactions_member_created", "member_id", "created_at"),
        db.Index("ix_wallet_transactions_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="PENDING")
    payment_method = db.Column(db.String(50), nullable=True)
    reference_number = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    processed_by_admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    member = db.relationship("Member", backref=db.backref("wallet_transactions", lazy=True))
    processed_by = db.relationship("User", foreign_keys=[processed_by_admin_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "member_id": self.member_id,
            "amount": as_float(self.amount),
            "type": self.type,
            "status": self.status,
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "notes": self.notes,
            "processed_by_admin_id": self.processed_by_admin_id,
            "created_at": to_utc_z(self.created_at),
        }


class Lead(db.Model):
    """Enquiry captured from the public site before a member signs up."""
    __tablename__ = "leads"
    __table_args__ = (
        db.Index("ix_leads_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    mobile = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    plot_building = db.Column(db.String(255), nullable=True)
    street_area = db.Column(db.String(255), nullable=True)
    landmark = db.Column(db.String(255), nullable=True)
    pincode = db.Column(db.String(10), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    is_dairy_product = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="NEW")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "mobile": self.mobile,
            "email": self.email,
            "plot_building": self.plot_building,
            "street_area": self.street_area,
            "landmark": self.landmark,
            "pincode": self.pincode,
            "city": self.city,
            "state": self.state,
            "product_id": self.product_id,
            "is_dairy_product": self.is_dairy_product,
            "notes": self.notes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
