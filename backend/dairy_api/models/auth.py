from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class User(db.Model):
    """
    Login accounts for every role (ADMIN, AGENCY, MEMBER, VENDOR, DepotAdmin, SUPERVISOR).

    Members, agencies, supervisors and vendors each hang a profile row off
    exactly one user. Login accepts either email or mobile, so both are
    globally unique when present.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True)
    mobile = db.Column(db.String(20), nullable=True, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default="MEMBER")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # DepotAdmin users are scoped to one depot
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=True, index=True)
    joining_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    depot = db.relationship("Depot", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role!r} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "mobile": self.mobile,
            "role": self.role,
            "is_active": self.is_active,
            "depot_id": self.depot_id,
            "joining_date": to_iso_date(self.joining_date),
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }
