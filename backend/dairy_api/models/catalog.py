from __future__ import annotations

from ..extensions import db
from ..money import as_float
from ..time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    is_dairy = db.Column(db.Boolean, nullable=False, default=False)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_dairy": self.is_dairy,
            "image_url": self.image_url,
        }


class Product(db.Model):
    """
    Catalog product. Prices live on DepotProductVariant, never here:
    the same product sells at different tiers per depot.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    url = db.Column(db.String(500), nullable=True)
    attachment_url = db.Column(db.String(500), nullable=True)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(50), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    is_dairy_product = db.Column(db.Boolean, nullable=False, default=False)
    maintain_stock = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "attachment_url": self.attachment_url,
            "description": self.description,
            "unit": self.unit,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
            "is_dairy_product": self.is_dairy_product,
            "maintain_stock": self.maintain_stock,
            "created_at": to_utc_z(self.created_at),
        }


class City(db.Model):
    __tablename__ = "cities"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Depot(db.Model):
    """
    Stocking/fulfillment location.

    ROUTING:
    - is_online depots deliver by address: the delivery address's Location
      names the agency.
    - offline depots deliver through the single Agency linked to the depot.
    """
    __tablename__ = "depots"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    address = db.Column(db.Text, nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    contact_number = db.Column(db.String(20), nullable=True)
    is_online = db.Column(db.Boolean, nullable=False, default=False)
    city_id = db.Column(db.Integer, db.ForeignKey("cities.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    city = db.relationship("City", backref=db.backref("depots", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "contact_person": self.contact_person,
            "contact_number": self.contact_number,
            "is_online": self.is_online,
            "city_id": self.city_id,
            "city": self.city.name if self.city else None,
        }


class DepotProductVariant(db.Model):
    """
    A product as sold from one depot: pack name, stock and period price tiers.

    PRICING: price_3_day / price_7_day / price_15_day / price_1_month are unit
    prices for subscriptions of at least that many days; buy_once_price (or mrp)
    applies below 3 days.

    STOCK: closing_qty is derived from the stock ledger
    (sum received - sum issued) and rewritten by stock_service.
    """
    __tablename__ = "depot_product_variants"
    __table_args__ = (
        db.Index("ix_depot_variants_depot_product", "depot_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    hsn_code = db.Column(db.String(50), nullable=True)
    minimum_qty = db.Column(db.Integer, nullable=False, default=0)
    closing_qty = db.Column(db.Integer, nullable=False, default=0)
    not_in_stock = db.Column(db.Boolean, nullable=False, default=False)
    is_hidden = db.Column(db.Boolean, nullable=False, default=False)

    mrp = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    purchase_price = db.Column(db.Numeric(12, 2), nullable=True)
    buy_once_price = db.Column(db.Numeric(12, 2), nullable=True)
    price_3_day = db.Column(db.Numeric(12, 2), nullable=True)
    price_7_day = db.Column(db.Numeric(12, 2), nullable=True)
    price_15_day = db.Column(db.Numeric(12, 2), nullable=True)
    price_1_month = db.Column(db.Numeric(12, 2), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    depot = db.relationship("Depot", backref=db.backref("variants", lazy=True))
    product = db.relationship("Product", backref=db.backref("depot_variants", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<DepotProductVariant id={self.id} depot_id={self.depot_id} product_id={self.product_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "depot_id": self.depot_id,
            "depot": self.depot.name if self.depot else None,
            "product_id": self.product_id,
            "product": self.product.name if self.product else None,
            "name": self.name,
            "hsn_code": self.hsn_code,
            "minimum_qty": self.minimum_qty,
            "closing_qty": self.closing_qty,
            "not_in_stock": self.not_in_stock,
            "is_hidden": self.is_hidden,
            "mrp": as_float(self.mrp),
            "purchase_price": as_float(self.purchase_price),
            "buy_once_price": as_float(self.buy_once_price),
            "price_3_day": as_float(self.price_3_day),
            "price_7_day": as_float(self.price_7_day),
            "price_15_day": as_float(self.price_15_day),
            "price_1_month": as_float(self.price_1_month),
        }


class Location(db.Model):
    """Delivery locality inside a city, served by one agency."""
    __tablename__ = "locations"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    city_id = db.Column(db.Integer, db.ForeignKey("cities.id"), nullable=False, index=True)
    agency_id = db.Column(db.Integer, db.ForeignKey("agencies.id"), nullable=True, index=True)

    city = db.relationship("City", backref=db.backref("locations", lazy=True))
    agency = db.relationship("Agency", backref=db.backref("locations", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "city_id": self.city_id,
            "agency_id": self.agency_id,
        }


class AreaMaster(db.Model):
    """Serviceable pincodes for a depot (comma separated)."""
    __tablename__ = "area_masters"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    pincodes = db.Column(db.Text, nullable=False)
    delivery_type = db.Column(db.String(20), nullable=False, default="HandDelivery")
    depot_id = db.Column(db.Integer, db.ForeignKey("depots.id"), nullable=True, index=True)

    depot = db.relationship("Depot", backref=db.backref("areas", lazy=True))

    def pincode_list(self) -> list[str]:
        return [p.strip() for p in (self.pincodes or "").split(",") if p.strip()]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "pincodes": self.pincode_list(),
            "delivery_type": self.delivery_type,
            "depot_id": self.depot_id,
        }
