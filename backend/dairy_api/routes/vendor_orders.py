# Overview: Flask API routes for vendor purchase orders; placement, dispatch, receipt, supervisor counts.

# backend/dairy_api/routes/vendor_orders.py
"""
Vendor order routes.

ADMIN places orders; the vendor, the receiving agency and that agency's
supervisor each record their quantities against the order's lines.
Role scoping (own vendor, own agency) is enforced in the service.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..pagination import page_args, paginate
from ..services import vendor_order_service
from ..services.concurrency import commit_or_conflict
from ..time_utils import today
from ..validation import parse_date_args

vendor_orders_bp = Blueprint("vendor_orders", __name__, url_prefix="/api/vendor-orders")


def _filters() -> dict:
    return parse_date_args(request.args.to_dict(), keys=("date",))


@vendor_orders_bp.post("")
@require_auth
@require_permission("MANAGE_VENDOR_ORDERS")
def create_vendor_order_route():
    """
    Request body:
    {
        "po_number": str (optional, allocated when blank),
        "order_date": "YYYY-MM-DD",
        "delivery_date": "YYYY-MM-DD" (optional),
        "vendor_id": int,
        "contact_person_name": str (optional), "notes": str (optional),
        "order_items": [{
            "product_id": int, "quantity": int, "agency_id": int,
            "depot_id": int (optional), "depot_variant_id": int (optional),
            "rate": number (optional)
        }]
    }

    Returns:
        201: Order placed (PENDING)
        400: Invalid request
        404: Vendor, product, agency, depot or variant not found
        409: po_number already used
    """
    data = request.get_json(silent=True) or {}
    order = vendor_order_service.create_vendor_order(data, user_id=g.current_user.id)
    commit_or_conflict()
    return jsonify(order.to_dict()), 201


@vendor_orders_bp.get("")
@require_auth
@require_permission("MANAGE_VENDOR_ORDERS")
def list_vendor_orders_route():
    """Query params: status, exclude_status=PENDING, vendor_id, agency_id, date, search, page, limit."""
    page, limit = page_args()
    query = vendor_order_service.list_vendor_orders(filters=_filters())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@vendor_orders_bp.get("/my")
@require_auth
@require_permission("RECORD_VENDOR_DELIVERY")
def my_vendor_orders_route():
    """Orders placed with the logged-in vendor."""
    page, limit = page_args()
    query = vendor_order_service.my_vendor_orders(user=g.current_user, filters=_filters())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@vendor_orders_bp.get("/my-agency-orders")
@require_auth
@require_permission("RECEIVE_VENDOR_ORDERS")
def my_agency_orders_route():
    """Orders with at least one line for the logged-in agency."""
    page, limit = page_args()
    query = vendor_order_service.my_agency_orders(user=g.current_user, filters=_filters())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@vendor_orders_bp.get("/my-supervisor-orders")
@require_auth
@require_permission("RECORD_SUPERVISOR_QUANTITY")
def my_supervisor_orders_route():
    page, limit = page_args()
    query = vendor_order_service.my_supervisor_orders(user=g.current_user, filters=_filters())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@vendor_orders_bp.get("/details")
@require_auth
@require_permission("VIEW_DELIVERY_REQUIREMENTS")
def delivery_requirements_route():
    """
    Quantities needed on a date for PAID subscriptions, by depot, variant and agency.

    Query params:
    - date: YYYY-MM-DD (default today)
    - depot_id, agency_id: optional; agency users always see their own
    """
    args = parse_date_args(request.args.to_dict(), keys=("date",))
    report = vendor_order_service.delivery_requirements(
        args.get("date") or today(),
        user=g.current_user,
        depot_id=args.get("depot_id"),
        agency_id=args.get("agency_id"),
    )
    return jsonify(report), 200


@vendor_orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("VIEW_VENDOR_ORDERS")
def get_vendor_order_route(order_id: int):
    order = vendor_order_service.get_vendor_order(order_id, user=g.current_user)
    return jsonify(order.to_dict()), 200


@vendor_orders_bp.put("/<int:order_id>")
@require_auth
@require_permission("MANAGE_VENDOR_ORDERS")
def update_vendor_order_route(order_id: int):
    """
    Same body as create, every field optional; order_items replaces all lines.

    Returns:
        200: Order
        400: Order already dispatched, or invalid request
    """
    data = request.get_json(silent=True) or {}
    order = vendor_order_service.update_vendor_order(order_id, data)
    commit_or_conflict()
    return jsonify(order.to_dict()), 200


@vendor_orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_VENDOR_ORDERS")
def delete_vendor_order_route(order_id: int):
    vendor_order_service.delete_vendor_order(order_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


@vendor_orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_permission("RECORD_VENDOR_DELIVERY")
def update_status_route(order_id: int):
    """
    Request body: { "status": "PENDING" | "ASSIGNED" | "DELIVERED" | "RECEIVED" }

    Vendors may only accept (ASSIGNED) their own pending orders.
    """
    data = request.get_json(silent=True) or {}
    order = vendor_order_service.update_status(order_id, data.get("status"), user=g.current_user)
    commit_or_conflict()
    return jsonify(order.to_dict()), 200


@vendor_orders_bp.put("/<int:order_id>/record-delivery")
@require_auth
@require_permission("RECORD_VENDOR_DELIVERY")
def record_delivery_route(order_id: int):
    """
    Request body: { "items": [{"order_item_id": int, "delivered_quantity": int}] }

    Returns:
        200: Order (DELIVERED once anything was dispatched)
        400: Quantity above the ordered quantity, or already delivered
        403: Order belongs to another vendor
    """
    data = request.get_json(silent=True) or {}
    order = vendor_order_service.record_delivery(order_id, data.get("items"), user=g.current_user)
    commit_or_conflict()
    return jsonify(order.to_dict()), 200


@vendor_orders_bp.put("/<int:order_id>/record-receipt")
@require_auth
@require_permission("RECEIVE_VENDOR_ORDERS")
def record_receipt_route(order_id: int):
    """
    Request body: { "items": [{"order_item_id": int, "received_quantity": int}] }

    Returns:
        200: Order (RECEIVED)
        400: Not yet delivered, or quantity above the delivered quantity
        403: Line is for another agency
    """
    data = request.get_json(silent=True) or {}
    order = vendor_order_service.record_receipt(order_id, data.get("items"), user=g.current_user)
    commit_or_conflict()
    return jsonify(order.to_dict()), 200


@vendor_orders_bp.put("/<int:order_id>/record-supervisor-quantity")
@require_auth
@require_permission("RECORD_SUPERVISOR_QUANTITY")
def record_supervisor_quantity_route(order_id: int):
    """Request body: { "items": [{"order_item_id": int, "supervisor_quantity": int}] }"""
    data = request.get_json(silent=True) or {}
    order = vendor_order_service.record_supervisor_quantity(order_id, data.get("items"), user=g.current_user)
    commit_or_conflict()
    return jsonify(order.to_dict()), 200
