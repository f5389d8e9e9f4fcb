# Overview: Flask API routes for depots, depot product variants and service areas.

# backend/dairy_api/routes/depots.py
"""
Depot and depot-product-variant routes.

SECURITY:
- Reads require VIEW_CATALOG; depot, city, location and area writes require MANAGE_DEPOTS
- Variant writes require MANAGE_VARIANTS; DepotAdmin users are confined to
  their own depot by catalog_service
- GET /api/depots/serviceable is public (pincode check before signup)
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import City, Depot, DepotProductVariant, Location
from ..pagination import page_args, paginate
from ..services import catalog_service
from ..services.concurrency import commit_or_conflict
from ..validation import ModelValidationPolicy, enforce_rules_variant, validate_payload

DEPOT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "address", "contact_person", "contact_number", "is_online", "city_id"},
    required_on_create={"name", "address"},
    aliases={"contactPerson": "contact_person", "contactNumber": "contact_number", "isOnline": "is_online"},
)

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields={
        "depot_id",
        "product_id",
        "name",
        "hsn_code",
        "minimum_qty",
        "closing_qty",
        "not_in_stock",
        "is_hidden",
        "mrp",
        "purchase_price",
        "buy_once_price",
        "price_3_day",
        "price_7_day",
        "price_15_day",
        "price_1_month",
    },
    required_on_create={"product_id", "name", "mrp"},
    aliases={
        "depotId": "depot_id",
        "productId": "product_id",
        "hsnCode": "hsn_code",
        "minimumQty": "minimum_qty",
        "closingQty": "closing_qty",
        "notInStock": "not_in_stock",
        "isHidden": "is_hidden",
        "purchasePrice": "purchase_price",
        "buyOncePrice": "buy_once_price",
        "price3Day": "price_3_day",
        "price7Day": "price_7_day",
        "price15Day": "price_15_day",
        "price1Month": "price_1_month",
    },
)

CITY_POLICY = ModelValidationPolicy(writable_fields={"name"}, required_on_create={"name"})

LOCATION_POLICY = ModelValidationPolicy(
    writable_fields={"name", "city_id", "agency_id"},
    required_on_create={"name", "city_id"},
)

depots_bp = Blueprint("depots", __name__, url_prefix="/api/depots")
variants_bp = Blueprint("depot_product_variants", __name__, url_prefix="/api/depot-product-variants")


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


# ---------------------------------------------------------------------------
# Depots
# ---------------------------------------------------------------------------

@depots_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_depots_route():
    page, limit = page_args()
    query = catalog_service.list_depots(search=request.args.get("search"), is_online=_bool_arg("is_online"))
    return jsonify(paginate(query, page=page, limit=limit)), 200


@depots_bp.get("/<int:depot_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_depot_route(depot_id: int):
    depot = catalog_service.get_depot(depot_id)
    data = depot.to_dict()
    data["agency"] = depot.agency.to_dict() if depot.agency else None
    return jsonify(data), 200


@depots_bp.post("")
@require_auth
@require_permission("MANAGE_DEPOTS")
def create_depot_route():
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Depot, payload=payload, policy=DEPOT_POLICY, partial=False)
    depot = catalog_service.create_depot(patch)
    commit_or_conflict()
    return jsonify(depot.to_dict()), 201


@depots_bp.put("/<int:depot_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def update_depot_route(depot_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Depot, payload=payload, policy=DEPOT_POLICY, partial=True)
    depot = catalog_service.update_depot(depot_id, patch)
    commit_or_conflict()
    return jsonify(depot.to_dict()), 200


@depots_bp.delete("/<int:depot_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def delete_depot_route(depot_id: int):
    catalog_service.delete_depot(depot_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


# ---------------------------------------------------------------------------
# Cities, locations, service areas
# ---------------------------------------------------------------------------

@depots_bp.get("/cities")
@require_auth
def list_cities_route():
    return jsonify({"data": [c.to_dict() for c in catalog_service.list_cities()]}), 200


@depots_bp.post("/cities")
@require_auth
@require_permission("MANAGE_DEPOTS")
def create_city_route():
    patch = validate_payload(model=City, payload=request.get_json(silent=True), policy=CITY_POLICY, partial=False)
    city = catalog_service.create_city(patch)
    commit_or_conflict()
    return jsonify(city.to_dict()), 201


@depots_bp.delete("/cities/<int:city_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def delete_city_route(city_id: int):
    catalog_service.delete_city(city_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


@depots_bp.get("/locations")
@require_auth
def list_locations_route():
    locations = catalog_service.list_locations(
        city_id=request.args.get("city_id", type=int),
        agency_id=request.args.get("agency_id", type=int),
    )
    return jsonify({"data": [loc.to_dict() for loc in locations]}), 200


@depots_bp.post("/locations")
@require_auth
@require_permission("MANAGE_DEPOTS")
def create_location_route():
    patch = validate_payload(
        model=Location, payload=request.get_json(silent=True), policy=LOCATION_POLICY, partial=False
    )
    location = catalog_service.create_location(patch)
    commit_or_conflict()
    return jsonify(location.to_dict()), 201


@depots_bp.put("/locations/<int:location_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def update_location_route(location_id: int):
    patch = validate_payload(
        model=Location, payload=request.get_json(silent=True), policy=LOCATION_POLICY, partial=True
    )
    location = catalog_service.update_location(location_id, patch)
    commit_or_conflict()
    return jsonify(location.to_dict()), 200


@depots_bp.delete("/locations/<int:location_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def delete_location_route(location_id: int):
    catalog_service.delete_location(location_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


@depots_bp.get("/areas")
@require_auth
@require_permission("VIEW_CATALOG")
def list_areas_route():
    areas = catalog_service.list_areas(depot_id=request.args.get("depot_id", type=int))
    return jsonify({"data": [a.to_dict() for a in areas]}), 200


@depots_bp.post("/areas")
@require_auth
@require_permission("MANAGE_DEPOTS")
def create_area_route():
    """
    Request body:
        { "name": str, "pincodes": [str] | "411001,411002", "delivery_type"?: str, "depot_id"?: int }
    """
    area = catalog_service.create_area(request.get_json(silent=True) or {})
    commit_or_conflict()
    return jsonify(area.to_dict()), 201


@depots_bp.put("/areas/<int:area_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def update_area_route(area_id: int):
    area = catalog_service.update_area(area_id, request.get_json(silent=True) or {})
    commit_or_conflict()
    return jsonify(area.to_dict()), 200


@depots_bp.delete("/areas/<int:area_id>")
@require_auth
@require_permission("MANAGE_DEPOTS")
def delete_area_route(area_id: int):
    catalog_service.delete_area(area_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


@depots_bp.get("/serviceable")
def serviceable_route():
    """?pincode=411001 -> whether any service area covers it, and which depots."""
    areas = catalog_service.check_serviceable(request.args.get("pincode", ""))
    return jsonify({
        "serviceable": bool(areas),
        "areas": [a.to_dict() for a in areas],
    }), 200


# ---------------------------------------------------------------------------
# Depot product variants
# ---------------------------------------------------------------------------

@variants_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_variants_route():
    """
    Query params:
    - depot_id, product_id: int
    - search: variant name contains
    - include_hidden: bool (default true)
    - page, limit
    """
    page, limit = page_args()
    include_hidden = _bool_arg("include_hidden")
    query = catalog_service.list_variants(
        user=g.current_user,
        depot_id=request.args.get("depot_id", type=int),
        product_id=request.args.get("product_id", type=int),
        include_hidden=True if include_hidden is None else include_hidden,
        search=request.args.get("search"),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@variants_bp.get("/<int:variant_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_variant_route(variant_id: int):
    return jsonify(catalog_service.get_variant(variant_id, user=g.current_user).to_dict()), 200


@variants_bp.post("")
@require_auth
@require_permission("MANAGE_VARIANTS")
def create_variant_route():
    """
    Returns:
        201: variant (closing_qty booked as opening stock)
        400: validation error
        403: DepotAdmin creating for another depot
        404: depot or product not found
    """
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=DepotProductVariant, payload=payload, policy=VARIANT_POLICY, partial=False)
    enforce_rules_variant(patch)
    variant = catalog_service.create_variant(patch, user=g.current_user)
    commit_or_conflict()
    return jsonify(variant.to_dict()), 201


@variants_bp.put("/<int:variant_id>")
@require_auth
@require_permission("MANAGE_VARIANTS")
def update_variant_route(variant_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=DepotProductVariant, payload=payload, policy=VARIANT_POLICY, partial=True)
    enforce_rules_variant(patch)
    variant = catalog_service.update_variant(variant_id, patch, user=g.current_user)
    commit_or_conflict()
    return jsonify(variant.to_dict()), 200


@variants_bp.delete("/<int:variant_id>")
@require_auth
@require_permission("MANAGE_VARIANTS")
def delete_variant_route(variant_id: int):
    catalog_service.delete_variant(variant_id, user=g.current_user)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
