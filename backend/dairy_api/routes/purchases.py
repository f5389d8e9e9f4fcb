# backend/dairy_api/routes/purchases.py
"""
Vendor purchase routes: stock received into a depot, booked as ledger receipts.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..pagination import page_args, paginate
from ..services import purchase_service
from ..services.concurrency import commit_or_conflict

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.route("", methods=["POST"])
@require_auth
@require_permission("MANAGE_PURCHASES")
def create_purchase():
    """
    Request body:
    {
        "purchase_date": "YYYY-MM-DD" (optional),
        "invoice_no": str (optional), "invoice_date": "YYYY-MM-DD" (optional),
        "vendor_id": int,
        "depot_id": int,
        "details": [{"variant_id": int, "quantity": int, "purchase_rate": number (optional)}]
    }

    Returns:
        201: Purchase created, stock received
        400: Invalid request
        404: Vendor, depot or variant not found
    """
    data = request.get_json(silent=True) or {}
    purchase = purchase_service.create_purchase(data, user_id=g.current_user.id)
    commit_or_conflict()
    return jsonify(purchase.to_dict()), 201


@purchases_bp.route("", methods=["GET"])
@require_auth
@require_permission("VIEW_STOCK")
def list_purchases():
    page, limit = page_args()
    query = purchase_service.list_purchases(filters=request.args.to_dict())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@purchases_bp.route("/<int:purchase_id>", methods=["GET"])
@require_auth
@require_permission("VIEW_STOCK")
def get_purchase(purchase_id: int):
    return jsonify(purchase_service.get_purchase(purchase_id).to_dict()), 200


@purchases_bp.route("/<int:purchase_id>", methods=["DELETE"])
@require_auth
@require_permission("MANAGE_PURCHASES")
def delete_purchase(purchase_id: int):
    """400 when removing the receipts would leave a variant with negative stock."""
    purchase_service.delete_purchase(purchase_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
