# Overview: Flask API routes for products and categories; parses input and returns JSON responses.

# backend/dairy_api/routes/products.py
"""
Product catalog routes.

Create/update accept either JSON or multipart form data; a multipart "image"
file is stored under UPLOAD_FOLDER and its /uploads URL saved as the
product's attachment_url.

SECURITY:
- Listing requires VIEW_CATALOG; /public needs no token
- Writes require MANAGE_PRODUCTS
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import Category, Product
from ..pagination import page_args, paginate
from ..services import catalog_service
from ..services.concurrency import commit_or_conflict
from ..validation import ModelValidationPolicy, validate_payload

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "url",
        "description",
        "unit",
        "category_id",
        "is_dairy_product",
        "maintain_stock",
        "attachment_url",
    },
    required_on_create={"name"},
    aliases={"isDairyProduct": "is_dairy_product", "maintainStock": "maintain_stock", "categoryId": "category_id"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "is_dairy", "image_url"},
    required_on_create={"name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _payload_and_image():
    """JSON body, or form fields plus the optional "image" upload."""
    if request.mimetype and request.mimetype.startswith("multipart/"):
        return request.form.to_dict(), request.files.get("image")
    return request.get_json(silent=True) or {}, None


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


@products_bp.get("/public")
def public_products_route():
    """Storefront catalog: products with visible variants, optionally for one depot."""
    return jsonify({"data": catalog_service.public_products(depot_id=request.args.get("depot_id", type=int))}), 200


@products_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_products_route():
    """
    Query params:
    - search: name contains
    - category_id: int
    - is_dairy: bool
    - page, limit
    """
    page, limit = page_args()
    query = catalog_service.list_products(
        search=request.args.get("search"),
        category_id=request.args.get("category_id", type=int),
        is_dairy=_bool_arg("is_dairy"),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_product_route(product_id: int):
    product = catalog_service.get_product(product_id)
    data = product.to_dict()
    data["variants"] = [v.to_dict() for v in product.depot_variants]
    return jsonify(data), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """
    Returns:
        201: product
        400: validation error or unsupported image type
    """
    payload, image = _payload_and_image()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    product = catalog_service.create_product(patch, image=image)
    commit_or_conflict()
    return jsonify(product.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload, image = _payload_and_image()
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    product = catalog_service.update_product(product_id, patch, image=image)
    commit_or_conflict()
    return jsonify(product.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    catalog_service.delete_product(product_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


@products_bp.get("/categories")
@require_auth
@require_permission("VIEW_CATALOG")
def list_categories_route():
    return jsonify({"data": [c.to_dict() for c in catalog_service.list_categories()]}), 200


@products_bp.post("/categories")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    category = catalog_service.create_category(patch)
    commit_or_conflict()
    return jsonify(category.to_dict()), 201


@products_bp.put("/categories/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    category = catalog_service.update_category(category_id, patch)
    commit_or_conflict()
    return jsonify(category.to_dict()), 200


@products_bp.delete("/categories/<int:category_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_category_route(category_id: int):
    catalog_service.delete_category(category_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
