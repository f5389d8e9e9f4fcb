# Overview: Flask API routes for product orders; checkout, listing and payment recording.

# backend/dairy_api/routes/product_orders.py
"""
Product order routes.

Checkout is the single path that creates subscriptions: POST /api/subscriptions
is a one-line order through the same service.

INVOICES: the invoice PDF is generated after the order commits. A PDF
failure is logged and the order is still returned; the invoice can be
regenerated from /api/invoices.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_admin, require_auth, require_permission
from ..extensions import db
from ..pagination import page_args, paginate
from ..services import invoice_service, order_service
from ..services.concurrency import commit_or_conflict, run_with_retry

orders_bp = Blueprint("product_orders", __name__, url_prefix="/api/product-orders")


def checkout_with_retry(func):
    """Stage a checkout with func and commit it; a lock or version failure re-runs the whole checkout."""
    def _unit():
        result = func()
        db.session.commit()
        return result
    return run_with_retry(_unit)


def generate_invoice_after_commit(order) -> None:
    try:
        invoice_service.generate_invoice_for_order(order)
        commit_or_conflict()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Invoice generation failed for order %s", order.order_no)


@orders_bp.post("")
@require_auth
@require_permission("CREATE_SUBSCRIPTION")
def create_order_route():
    """
    Checkout one or more subscriptions.

    Request body:
        {
          "member_id"?: int (admin only),
          "delivery_address_id"?: int,
          "wallet_amount"?: number,
          "payment_mode"?: "ONLINE" | "CASH" | "UPI" | "BANK",
          "payment_reference_no"?: str,
          "payment_date"?: ISO datetime,
          "subscriptions": [{
              "depot_product_variant_id": int,
              "period": int,
              "delivery_schedule": "DAILY" | "ALTERNATE_DAYS" | "SELECT-DAYS" | "VARYING",
              "qty": int, "alt_qty"?: int, "weekdays"?: [str],
              "start_date": ISO date/datetime,
              "delivery_address_id"?: int, "delivery_instructions"?: str
          }]
        }

    Returns:
        201: order with subscriptions
        400: validation error, empty schedule, insufficient wallet balance
        404: variant/address/member not found
    """
    payload = request.get_json(silent=True) or {}
    order = checkout_with_retry(
        lambda: order_service.create_order_with_subscriptions(user=g.current_user, payload=payload)
    )

    generate_invoice_after_commit(order)
    return jsonify(order.to_dict()), 201


@orders_bp.get("")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def list_orders_route():
    """
    Query params:
    - payment_status, search, expiry_status (ACTIVE|EXPIRED)
    - agency_id, unassigned=true, member_id (admin)
    - page, limit
    """
    page, limit = page_args()
    query = order_service.list_orders(user=g.current_user, filters=request.args.to_dict())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def get_order_route(order_id: int):
    return jsonify(order_service.get_order(order_id, g.current_user).to_dict()), 200


@orders_bp.post("/<int:order_id>/payment")
@require_auth
@require_admin
def record_payment_route(order_id: int):
    """
    Request body:
        { "payment_status": "PAID" | "FAILED", "received_amount"?: number,
          "payment_mode"?: str, "payment_reference_no"?: str, "payment_date"?: ISO datetime }

    Returns:
        200: order
        400: received amount does not match payable
    """
    payload = request.get_json(silent=True) or {}
    order = order_service.record_payment(order_id, payload)
    commit_or_conflict()
    return jsonify(order.to_dict()), 200
