# backend/dairy_api/routes/wastage.py
"""
Wastage routes: spoiled or returned stock written off from a depot.
"""
from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..pagination import page_args, paginate
from ..services import wastage_service
from ..services.concurrency import commit_or_conflict

wastage_bp = Blueprint("wastage", __name__, url_prefix="/api/wastage")


@wastage_bp.route("", methods=["POST"])
@require_auth
@require_permission("MANAGE_WASTAGE")
def create_wastage():
    """
    Request body:
    {
        "wastage_date": "YYYY-MM-DD",
        "invoice_no": str (optional), "invoice_date": "YYYY-MM-DD" (optional),
        "vendor_id": int,
        "depot_id": int,
        "details": [{"variant_id": int, "quantity": int}]
    }

    Returns:
        201: Wastage created, stock issued
        400: Invalid request or insufficient stock
    """
    data = request.get_json(silent=True) or {}
    wastage = wastage_service.create_wastage(data, user_id=g.current_user.id)
    commit_or_conflict()
    return jsonify(wastage.to_dict()), 201


@wastage_bp.route("", methods=["GET"])
@require_auth
@require_permission("VIEW_STOCK")
def list_wastages():
    page, limit = page_args()
    query = wastage_service.list_wastages(filters=request.args.to_dict())
    return jsonify(paginate(query, page=page, limit=limit)), 200


@wastage_bp.route("/<int:wastage_id>", methods=["GET"])
@require_auth
@require_permission("VIEW_STOCK")
def get_wastage(wastage_id: int):
    return jsonify(wastage_service.get_wastage(wastage_id).to_dict()), 200


@wastage_bp.route("/<int:wastage_id>", methods=["PUT"])
@require_auth
@require_permission("MANAGE_WASTAGE")
def update_wastage(wastage_id: int):
    data = request.get_json(silent=True) or {}
    wastage = wastage_service.update_wastage(wastage_id, data)
    commit_or_conflict()
    return jsonify(wastage.to_dict()), 200


@wastage_bp.route("/<int:wastage_id>", methods=["DELETE"])
@require_auth
@require_permission("MANAGE_WASTAGE")
def delete_wastage(wastage_id: int):
    wastage_service.delete_wastage(wastage_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
