# backend/dairy_api/routes/transfers.py
"""
Depot-to-depot stock transfer routes.

Each transfer issues stock from the source depot's variants and receives it
into the destination depot's variants through the stock ledger. Editing a
transfer rolls its ledger rows back and re-applies the new details.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..pagination import page_args, paginate
from ..services import transfer_service
from ..services.concurrency import commit_or_conflict
from ..validation import parse_date_args

transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.route("", methods=["POST"])
@require_auth
@require_permission("MANAGE_TRANSFERS")
def create_transfer():
    """
    Create a transfer document.

    Request body:
    {
        "transfer_date": "YYYY-MM-DD" (optional, default today),
        "from_depot_id": int,
        "to_depot_id": int,
        "notes": str (optional),
        "details": [{"from_depot_variant_id": int, "to_depot_variant_id": int, "quantity": int}]
    }

    Returns:
        201: Transfer created
        400: Invalid request or insufficient stock at the source depot
        404: Depot or variant not found
    """
    data = request.get_json(silent=True) or {}
    transfer = transfer_service.create_transfer(data, user_id=g.current_user.id)
    commit_or_conflict()
    return jsonify(transfer.to_dict()), 201


@transfers_bp.route("", methods=["GET"])
@require_auth
@require_permission("VIEW_STOCK")
def list_transfers():
    """Query params: depot_id, from_date, to_date, search, page, limit."""
    page, limit = page_args()
    query = transfer_service.list_transfers(filters=parse_date_args(request.args.to_dict()))
    return jsonify(paginate(query, page=page, limit=limit)), 200


@transfers_bp.route("/<int:transfer_id>", methods=["GET"])
@require_auth
@require_permission("VIEW_STOCK")
def get_transfer(transfer_id: int):
    return jsonify(transfer_service.get_transfer(transfer_id).to_dict()), 200


@transfers_bp.route("/<int:transfer_id>", methods=["PUT"])
@require_auth
@require_permission("MANAGE_TRANSFERS")
def update_transfer(transfer_id: int):
    """Replace header and details; previous ledger rows are rolled back first."""
    data = request.get_json(silent=True) or {}
    transfer = transfer_service.update_transfer(transfer_id, data)
    commit_or_conflict()
    return jsonify(transfer.to_dict()), 200


@transfers_bp.route("/<int:transfer_id>", methods=["DELETE"])
@require_auth
@require_permission("MANAGE_TRANSFERS")
def delete_transfer(transfer_id: int):
    transfer_service.delete_transfer(transfer_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
