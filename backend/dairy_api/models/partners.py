from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Agency(db.Model):
    """
    Delivery partner.

    An agency may be linked to at most one depot (depot_id unique); offline
    depots route all subscriptions to that agency.
    """
    __tablename__ = "agencies"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person_name = db.Column(db.String(255), nullable=True)
    mobile = db.Column(db.String(20), nullable=False)
    address1 = db.Column(db.String(255), nullable=False)
    address2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=False)
    pincode = db.Column(db.String(10), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=True, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("agency", uselist=False, lazy=True))
    depot = db.relationship("Depot", backref=db.backref("agency", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person_name": self.contact_person_name,
            "mobile": self.mobile,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "pincode": self.pincode,
            "email": self.email,
            "user_id": self.user_id,
            "depot_id": self.depot_id,
            "is_active": self.user.is_active if self.user else None,
            "created_at": to_utc_z(self.created_at),
        }


class Supervisor(db.Model):
    __tablename__ = "supervisors"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person_name = db.Column(db.String(255), nullable=True)
    mobile = db.Column(db.String(20), nullable=False)
    address1 = db.Column(db.String(255), nullable=True)
    address2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    pincode = db.Column(db.String(10), nullable=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    agency_id = db.Column(db.Integer, db.ForeignKey("agencies.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("supervisor", uselist=False, lazy=True))
    agency = db.relationship("Agency", backref=db.backref("supervisors", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person_name": self.contact_person_name,
            "mobile": self.mobile,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "pincode": self.pincode,
            "email": self.email,
            "user_id": self.user_id,
            "agency_id": self.agency_id,
            "is_active": self.user.is_active if self.user else None,
        }


class Vendor(db.Model):
    """Milk/produce supplier. Purchases and wastage documents reference a vendor."""
    __tablename__ = "vendors"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person_name = db.Column(db.String(255), nullable=True)
    mobile = db.Column(db.String(20), nullable=False)
    address1 = db.Column(db.String(255), nullable=True)
    address2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    pincode = db.Column(db.String(10), nullable=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    is_dairy_supplier = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("vendor", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person_name": self.contact_person_name,
            "mobile": self.mobile,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "pincode": self.pincode,
            "email": self.email,
            "is_dairy_supplier": self.is_dairy_supplier,
            "user_id": self.user_id,
        }
