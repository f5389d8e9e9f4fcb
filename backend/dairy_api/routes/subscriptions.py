# Overview: Flask API routes for subscriptions; create, edit, cancel, renew, skip and agency assignment.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import BadRequestError
from ..pagination import page_args, paginate
from ..services import delivery_service, subscription_service
from ..services.concurrency import commit_or_conflict
from ..time_utils import parse_date, today
from .product_orders import checkout_with_retry, generate_invoice_after_commit

subscriptions_bp = Blueprint("subscriptions", __name__, url_prefix="/api/subscriptions")


def _date_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return today()
    try:
        return parse_date(raw)
    except ValueError:
        raise BadRequestError(f"{name} must be YYYY-MM-DD")


@subscriptions_bp.post("")
@require_auth
@require_permission("CREATE_SUBSCRIPTION")
def create_subscription_route():
    """
    Single subscription checkout (a one-line product order).

    Returns:
        201: { "order": {...}, "subscription": {...} }
    """
    payload = request.get_json(silent=True) or {}
    order, subscription = checkout_with_retry(
        lambda: subscription_service.create_subscription(user=g.current_user, payload=payload)
    )

    generate_invoice_after_commit(order)
    return jsonify({
        "order": order.to_dict(include_subscriptions=False),
        "subscription": subscription.to_dict(),
    }), 201


@subscriptions_bp.get("")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def list_subscriptions_route():
    page, limit = page_args()
    query = subscription_service.list_subscriptions(user=g.current_user, filters=request.args.to_dict())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@subscriptions_bp.get("/delivery-summary")
@require_auth
@require_permission("MANAGE_SUBSCRIPTIONS")
def delivery_summary_route():
    """?date=YYYY-MM-DD (default today): quantities due per agency and product."""
    on = _date_arg("date")
    return jsonify({"date": on.isoformat(), "data": subscription_service.delivery_summary_by_date(on)}), 200


@subscriptions_bp.get("/<int:subscription_id>")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def get_subscription_route(subscription_id: int):
    subscription = subscription_service.get_subscription(subscription_id, g.current_user)
    data = subscription.to_dict()
    data["deliveries"] = [e.to_dict() for e in subscription.entries]
    return jsonify(data), 200


@subscriptions_bp.put("/<int:subscription_id>")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def update_subscription_route(subscription_id: int):
    """
    Members may change delivery_instructions only. Admins may also change
    payment fields, received_amount, agency_id, qty/alt_qty and delivery_address_id.
    """
    payload = request.get_json(silent=True) or {}
    subscription = subscription_service.update_subscription(subscription_id, payload, user=g.current_user)
    commit_or_conflict()
    return jsonify(subscription.to_dict()), 200


@subscriptions_bp.post("/<int:subscription_id>/cancel")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def cancel_subscription_route(subscription_id: int):
    subscription = subscription_service.cancel_subscription(subscription_id, user=g.current_user)
    commit_or_conflict()
    return jsonify(subscription.to_dict()), 200


@subscriptions_bp.post("/<int:subscription_id>/renew")
@require_auth
@require_permission("CREATE_SUBSCRIPTION")
def renew_subscription_route(subscription_id: int):
    """
    Repeat a subscription as a new order starting the day after it expires.

    Request body (all optional):
        { "period", "qty", "alt_qty", "start_date", "delivery_address_id", "wallet_amount", "payment_mode" }
    """
    payload = request.get_json(silent=True) or {}
    order, subscription = checkout_with_retry(
        lambda: subscription_service.renew_subscription(subscription_id, user=g.current_user, payload=payload)
    )

    generate_invoice_after_commit(order)
    return jsonify({
        "order": order.to_dict(include_subscriptions=False),
        "subscription": subscription.to_dict(),
    }), 201


@subscriptions_bp.post("/deliveries/<int:entry_id>/skip")
@require_auth
@require_permission("SKIP_DELIVERY")
def skip_delivery_route(entry_id: int):
    """
    Skip one future delivery; rate x quantity is refunded to the wallet.

    Returns:
        200: { "delivery": {...}, "wallet_transaction": {...} | null }
        400: not PENDING or not in the future
        403: not the member's delivery
    """
    entry, txn = delivery_service.skip_delivery(entry_id, user=g.current_user)
    commit_or_conflict()
    return jsonify({
        "delivery": entry.to_dict(),
        "wallet_transaction": txn.to_dict() if txn is not None else None,
    }), 200


@subscriptions_bp.get("/deliveries")
@require_auth
@require_permission("VIEW_OWN_SUBSCRIPTIONS")
def my_deliveries_route():
    """The caller's own delivery calendar (?from_date, to_date, status, subscription_id)."""
    page, limit = page_args(default_limit=50)
    query = delivery_service.member_deliveries(user=g.current_user, filters=request.args.to_dict())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@subscriptions_bp.post("/bulk-assign-agency")
@require_auth
@require_permission("ASSIGN_AGENCY")
def bulk_assign_agency_route():
    """
    Request body:
        { "subscription_ids": [int], "agency_id": int }
    """
    payload = request.get_json(silent=True) or {}
    result = subscription_service.bulk_assign_agency(payload.get("subscription_ids"), payload.get("agency_id"))
    commit_or_conflict()
    return jsonify(result), 200
