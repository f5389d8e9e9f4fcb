# Overview: Service-layer operations for the catalog; products, categories, depots, variants and service areas.

"""
Catalog service.

Routes validate payloads into patch dicts (validate_payload) and hand them
here; services apply them, enforce cross-row rules and flush. Commits happen
in the route.

DEPOT SCOPE: a DepotAdmin user only sees and edits variants of their own
depot (User.depot_id).

STOCK: variant closing_qty is never written directly. Creating a variant
books an opening ledger row; editing closing_qty books an adjustment row for
the difference so the ledger stays the source of truth.
"""
from __future__ import annotations

import logging
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..extensions import db
from ..models import (
    Agency,
    AreaMaster,
    Category,
    City,
    DeliveryScheduleEntry,
    Depot,
    DepotProductVariant,
    Location,
    Product,
    PurchaseDetail,
    StockLedger,
    Subscription,
    TransferDetail,
    WastageDetail,
)
from ..permissions import ROLE_DEPOT_ADMIN
from ..validation import to_positive_int
from . import stock_service
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)


def _apply_patch(obj, patch: dict) -> None:
    for key, value in patch.items():
        setattr(obj, key, value)


def _get_or_404(model, obj_id: int, label: str):
    obj = db.session.get(model, obj_id)
    if not obj:
        raise NotFoundError(f"{label} not found")
    return obj


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def save_image(file_storage) -> str:
    """
    Store an uploaded image under UPLOAD_FOLDER and return its public URL
    (/uploads/<name>).

    Raises:
        BadRequestError: empty upload or extension not in ALLOWED_IMAGE_EXTENSIONS
    """
    if file_storage is None or not file_storage.filename:
        raise BadRequestError("No image file provided")

    filename = secure_filename(file_storage.filename)
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in current_app.config["ALLOWED_IMAGE_EXTENSIONS"]:
        raise BadRequestError(f"Unsupported image type: .{ext or '?'}")

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    stored = f"{uuid.uuid4().hex}_{filename}"
    file_storage.save(os.path.join(folder, stored))
    return f"/uploads/{stored}"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def create_category(patch: dict) -> Category:
    category = Category(**patch)
    db.session.add(category)
    db.session.flush()
    return category


def update_category(category_id: int, patch: dict) -> Category:
    category = _get_or_404(Category, category_id, "Category")
    _apply_patch(category, patch)
    db.session.flush()
    return category


def delete_category(category_id: int) -> None:
    category = _get_or_404(Category, category_id, "Category")
    if db.session.query(Product.id).filter_by(category_id=category.id).first():
        raise BadRequestError("Category has products and cannot be deleted")
    db.session.delete(category)
    db.session.flush()


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products(*, search: str | None = None, category_id=None, is_dairy=None):
    query = db.session.query(Product)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(Product.name.ilike(like))
    if category_id:
        query = query.filter(Product.category_id == int(category_id))
    if is_dairy is not None:
        query = query.filter(Product.is_dairy_product.is_(is_dairy))
    return query.order_by(Product.name.asc(), Product.id.asc())


def public_products(*, depot_id=None) -> list[dict]:
    """Storefront listing: products with their visible variants."""
    query = db.session.query(DepotProductVariant).filter(DepotProductVariant.is_hidden.is_(False))
    if depot_id:
        query = query.filter(DepotProductVariant.depot_id == to_positive_int(depot_id, "depot_id"))
    variants = query.order_by(DepotProductVariant.product_id, DepotProductVariant.id).all()

    by_product: dict[int, dict] = {}
    for variant in variants:
        entry = by_product.get(variant.product_id)
        if entry is None:
            entry = {**variant.product.to_dict(), "variants": []}
            by_product[variant.product_id] = entry
        entry["variants"].append(variant.to_dict())
    return list(by_product.values())


def get_product(product_id: int) -> Product:
    return _get_or_404(Product, product_id, "Product")


def create_product(patch: dict, *, image=None) -> Product:
    if patch.get("category_id"):
        _get_or_404(Category, patch["category_id"], "Category")
    product = Product(**patch)
    if image is not None:
        product.attachment_url = save_image(image)
    db.session.add(product)
    db.session.flush()
    logger.info("Product %s created", product.id)
    return product


def update_product(product_id: int, patch: dict, *, image=None) -> Product:
    product = get_product(product_id)
    if patch.get("category_id"):
        _get_or_404(Category, patch["category_id"], "Category")
    _apply_patch(product, patch)
    if image is not None:
        product.attachment_url = save_image(image)
    db.session.flush()
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)
    if db.session.query(DepotProductVariant.id).filter_by(product_id=product.id).first():
        raise BadRequestError("Product has depot variants and cannot be deleted")
    if db.session.query(Subscription.id).filter_by(product_id=product.id).first():
        raise BadRequestError("Product has subscriptions and cannot be deleted")
    db.session.delete(product)
    db.session.flush()


# ---------------------------------------------------------------------------
# Depots
# ---------------------------------------------------------------------------

def list_depots(*, search: str | None = None, is_online=None):
    query = db.session.query(Depot)
    if search:
        query = query.filter(Depot.name.ilike(f"%{search.strip()}%"))
    if is_online is not None:
        query = query.filter(Depot.is_online.is_(is_online))
    return query.order_by(Depot.name.asc())


def get_depot(depot_id: int) -> Depot:
    return _get_or_404(Depot, depot_id, "Depot")


def create_depot(patch: dict) -> Depot:
    if patch.get("city_id"):
        _get_or_404(City, patch["city_id"], "City")
    depot = Depot(**patch)
    db.session.add(depot)
    db.session.flush()
    logger.info("Depot %s created", depot.id)
    return depot


def update_depot(depot_id: int, patch: dict) -> Depot:
    depot = get_depot(depot_id)
    if patch.get("city_id"):
        _get_or_404(City, patch["city_id"], "City")
    _apply_patch(depot, patch)
    db.session.flush()
    return depot


def delete_depot(depot_id: int) -> None:
    depot = get_depot(depot_id)
    if db.session.query(DepotProductVariant.id).filter_by(depot_id=depot.id).first():
        raise BadRequestError("Depot has product variants and cannot be deleted")
    if depot.agency is not None:
        raise BadRequestError("Depot is linked to an agency and cannot be deleted")
    db.session.delete(depot)
    db.session.flush()


# ---------------------------------------------------------------------------
# Depot product variants
# ---------------------------------------------------------------------------

def _scoped_depot_id(user) -> int | None:
    """DepotAdmin users are confined to their own depot; everyone else is unscoped."""
    if user is None or user.role != ROLE_DEPOT_ADMIN:
        return None
    if not user.depot_id:
        raise ForbiddenError("Depot admin is not assigned to a depot")
    return user.depot_id


def _check_depot_access(variant_depot_id: int, user) -> None:
    scoped = _scoped_depot_id(user)
    if scoped is not None and scoped != variant_depot_id:
        raise ForbiddenError("Not authorized for this depot")


def list_variants(*, user=None, depot_id=None, product_id=None, include_hidden: bool = True, search=None):
    query = db.session.query(DepotProductVariant)
    scoped = _scoped_depot_id(user)
    if scoped is not None:
        query = query.filter(DepotProductVariant.depot_id == scoped)
    elif depot_id:
        query = query.filter(DepotProductVariant.depot_id == to_positive_int(depot_id, "depot_id"))
    if product_id:
        query = query.filter(DepotProductVariant.product_id == to_positive_int(product_id, "product_id"))
    if not include_hidden:
        query = query.filter(DepotProductVariant.is_hidden.is_(False))
    if search:
        query = query.filter(DepotProductVariant.name.ilike(f"%{search.strip()}%"))
    return query.order_by(DepotProductVariant.depot_id, DepotProductVariant.product_id, DepotProductVariant.id)


def get_variant(variant_id: int, *, user=None) -> DepotProductVariant:
    variant = _get_or_404(DepotProductVariant, variant_id, "Depot product variant")
    _check_depot_access(variant.depot_id, user)
    return variant


def create_variant(patch: dict, *, user=None) -> DepotProductVariant:
    """
    Create a variant; an initial closing_qty is booked as opening stock.

    Raises:
        NotFoundError: unknown depot or product
        ForbiddenError: DepotAdmin creating for another depot
    """
    patch = dict(patch)
    scoped = _scoped_depot_id(user)
    if scoped is not None:
        patch.setdefault("depot_id", scoped)
    if not patch.get("depot_id") or not patch.get("product_id"):
        raise BadRequestError("depot_id and product_id are required")
    _check_depot_access(patch["depot_id"], user)
    _get_or_404(Depot, patch["depot_id"], "Depot")
    _get_or_404(Product, patch["product_id"], "Product")

    opening = patch.pop("closing_qty", 0) or 0
    variant = DepotProductVariant(**patch, closing_qty=0)
    db.session.add(variant)
    db.session.flush()
    stock_service.record_opening_stock(variant, opening)
    db.session.flush()
    logger.info("Variant %s created for depot %s", variant.id, variant.depot_id)
    return variant


def update_variant(variant_id: int, patch: dict, *, user=None) -> DepotProductVariant:
    variant = lock_for_update(
        db.session.query(DepotProductVariant).filter_by(id=variant_id)
    ).first()
    if not variant:
        raise NotFoundError("Depot product variant not found")
    _check_depot_access(variant.depot_id, user)

    patch = dict(patch)
    if "depot_id" in patch and patch["depot_id"] != variant.depot_id:
        raise BadRequestError("A variant cannot be moved to another depot")
    if "product_id" in patch and patch["product_id"] != variant.product_id:
        raise BadRequestError("A variant cannot be moved to another product")
    patch.pop("depot_id", None)
    patch.pop("product_id", None)

    target = patch.pop("closing_qty", None)
    _apply_patch(variant, patch)
    if target is not None:
        stock_service.adjust_to(variant, target)
    db.session.flush()
    return variant


def delete_variant(variant_id: int, *, user=None) -> None:
    """Refused (400) while any subscription, delivery or stock document references the variant."""
    variant = get_variant(variant_id, user=user)

    referenced = (
        db.session.query(Subscription.id).filter_by(depot_product_variant_id=variant.id).first()
        or db.session.query(DeliveryScheduleEntry.id).filter_by(depot_product_variant_id=variant.id).first()
        or db.session.query(TransferDetail.id).filter(
            (TransferDetail.from_depot_variant_id == variant.id)
            | (TransferDetail.to_depot_variant_id == variant.id)
        ).first()
        or db.session.query(PurchaseDetail.id).filter_by(variant_id=variant.id).first()
        or db.session.query(WastageDetail.id).filter_by(variant_id=variant.id).first()
    )
    if referenced:
        raise BadRequestError("Variant is referenced by other records and cannot be deleted")

    # Opening/adjustment rows belong to the variant itself
    db.session.query(StockLedger).filter_by(variant_id=variant.id).delete(synchronize_session=False)
    db.session.delete(variant)
    db.session.flush()


# ---------------------------------------------------------------------------
# Cities, locations, service areas
# ---------------------------------------------------------------------------

def list_cities() -> list[City]:
    return db.session.query(City).order_by(City.name.asc()).all()


def create_city(patch: dict) -> City:
    city = City(**patch)
    db.session.add(city)
    db.session.flush()
    return city


def delete_city(city_id: int) -> None:
    city = _get_or_404(City, city_id, "City")
    if db.session.query(Location.id).filter_by(city_id=city.id).first():
        raise BadRequestError("City has locations and cannot be deleted")
    db.session.delete(city)
    db.session.flush()


def list_locations(*, city_id=None, agency_id=None) -> list[Location]:
    query = db.session.query(Location)
    if city_id:
        query = query.filter(Location.city_id == int(city_id))
    if agency_id:
        query = query.filter(Location.agency_id == to_positive_int(agency_id, "agency_id"))
    return query.order_by(Location.name.asc()).all()


def _check_location_refs(patch: dict) -> None:
    if patch.get("city_id"):
        _get_or_404(City, patch["city_id"], "City")
    if patch.get("agency_id"):
        _get_or_404(Agency, patch["agency_id"], "Agency")


def create_location(patch: dict) -> Location:
    _check_location_refs(patch)
    location = Location(**patch)
    db.session.add(location)
    db.session.flush()
    return location


def update_location(location_id: int, patch: dict) -> Location:
    location = _get_or_404(Location, location_id, "Location")
    _check_location_refs(patch)
    _apply_patch(location, patch)
    db.session.flush()
    return location


def delete_location(location_id: int) -> None:
    location = _get_or_404(Location, location_id, "Location")
    if location.addresses:
        raise BadRequestError("Location is used by delivery addresses and cannot be deleted")
    db.session.delete(location)
    db.session.flush()


def _normalize_pincodes(raw) -> str:
    if isinstance(raw, (list, tuple)):
        values = [str(v).strip() for v in raw]
    else:
        values = [v.strip() for v in str(raw or "").split(",")]
    values = [v for v in values if v]
    if not values:
        raise BadRequestError("At least one pincode is required")
    return ",".join(dict.fromkeys(values))


def list_areas(*, depot_id=None) -> list[AreaMaster]:
    query = db.session.query(AreaMaster)
    if depot_id:
        query = query.filter(AreaMaster.depot_id == to_positive_int(depot_id, "depot_id"))
    return query.order_by(AreaMaster.name.asc()).all()


def create_area(payload: dict) -> AreaMaster:
    name = str(payload.get("name") or "").strip()
    if not name:
        raise BadRequestError("name is required")
    depot_id = payload.get("depot_id")
    if depot_id:
        _get_or_404(Depot, to_positive_int(depot_id, "depot_id"), "Depot")
    area = AreaMaster(
        name=name,
        pincodes=_normalize_pincodes(payload.get("pincodes")),
        delivery_type=payload.get("delivery_type") or "HandDelivery",
        depot_id=to_positive_int(depot_id, "depot_id") if depot_id else None,
    )
    db.session.add(area)
    db.session.flush()
    return area


def update_area(area_id: int, payload: dict) -> AreaMaster:
    area = _get_or_404(AreaMaster, area_id, "Area")
    if payload.get("name"):
        area.name = str(payload["name"]).strip()
    if "pincodes" in payload:
        area.pincodes = _normalize_pincodes(payload["pincodes"])
    if payload.get("delivery_type"):
        area.delivery_type = payload["delivery_type"]
    if "depot_id" in payload:
        depot_id = payload.get("depot_id")
        if depot_id:
            _get_or_404(Depot, to_positive_int(depot_id, "depot_id"), "Depot")
        area.depot_id = to_positive_int(depot_id, "depot_id") if depot_id else None
    db.session.flush()
    return area


def delete_area(area_id: int) -> None:
    area = _get_or_404(AreaMaster, area_id, "Area")
    db.session.delete(area)
    db.session.flush()


def check_serviceable(pincode: str) -> list[AreaMaster]:
    """Areas whose pincode list contains the given pincode."""
    pincode = str(pincode or "").strip()
    if not pincode:
        return []
    candidates = db.session.query(AreaMaster).filter(AreaMaster.pincodes.contains(pincode)).all()
    return [area for area in candidates if pincode in area.pincode_list()]
