# backend/dairy_api/routes/purchase_payments.py
"""
Vendor payment routes: money paid against purchases, tracked on each purchase's paid_amount.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..pagination import page_args, paginate
from ..services import purchase_payment_service
from ..services.concurrency import commit_or_conflict
from ..validation import parse_date_args

purchase_payments_bp = Blueprint("purchase_payments", __name__, url_prefix="/api/purchase-payments")


@purchase_payments_bp.route("", methods=["POST"])
@require_auth
@require_permission("MANAGE_PURCHASE_PAYMENTS")
def create_payment():
    """
    Request body:
    {
        "payment_date": "YYYY-MM-DD",
        "vendor_id": int,
        "mode": str (CASH, UPI, BANK_TRANSFER, CHEQUE, ...),
        "reference_no": str (optional), "notes": str (optional),
        "total_amount": number,
        "details": [{"purchase_id": int, "amount": number}]
    }

    Returns:
        201: Payment recorded, purchases' paid_amount increased
        400: Details do not add up to total_amount, purchase of another vendor, or overpayment
        404: Vendor or purchase not found
    """
    data = request.get_json(silent=True) or {}
    payment = purchase_payment_service.create_payment(data, user_id=g.current_user.id)
    commit_or_conflict()
    return jsonify(payment.to_dict()), 201


@purchase_payments_bp.route("", methods=["GET"])
@require_auth
@require_permission("MANAGE_PURCHASE_PAYMENTS")
def list_payments():
    """Query params: vendor_id, mode, search, page, limit."""
    page, limit = page_args()
    query = purchase_payment_service.list_payments(filters=request.args.to_dict())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@purchase_payments_bp.route("/vendors/<int:vendor_id>/purchases", methods=["GET"])
@require_auth
@require_permission("MANAGE_PURCHASE_PAYMENTS")
def vendor_purchases(vendor_id: int):
    """Query params: from_date, to_date (YYYY-MM-DD, optional)."""
    args = parse_date_args(request.args.to_dict(), keys=("from_date", "to_date"))
    purchases = purchase_payment_service.vendor_purchases(
        vendor_id, from_date=args.get("from_date"), to_date=args.get("to_date")
    )
    return jsonify({"data": [p.to_dict() for p in purchases]}), 200


@purchase_payments_bp.route("/<int:payment_id>", methods=["GET"])
@require_auth
@require_permission("MANAGE_PURCHASE_PAYMENTS")
def get_payment(payment_id: int):
    return jsonify(purchase_payment_service.get_payment(payment_id).to_dict()), 200


@purchase_payments_bp.route("/<int:payment_id>", methods=["PUT"])
@require_auth
@require_permission("MANAGE_PURCHASE_PAYMENTS")
def update_payment(payment_id: int):
    """Same body as create, every field optional; details replaces every allocation."""
    data = request.get_json(silent=True) or {}
    payment = purchase_payment_service.update_payment(payment_id, data)
    commit_or_conflict()
    return jsonify(payment.to_dict()), 200


@purchase_payments_bp.route("/<int:payment_id>", methods=["DELETE"])
@require_auth
@require_permission("MANAGE_PURCHASE_PAYMENTS")
def delete_payment(payment_id: int):
    """Removes the payment and takes its amounts back off each purchase's paid_amount."""
    purchase_payment_service.delete_payment(payment_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
