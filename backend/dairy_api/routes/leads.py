# Overview: Flask API routes for leads; public capture plus admin follow-up.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import Lead
from ..pagination import page_args, paginate
from ..services import lead_service
from ..services.concurrency import commit_or_conflict
from ..validation import ModelValidationPolicy, validate_payload

LEAD_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "mobile",
        "email",
        "plot_building",
        "street_area",
        "landmark",
        "pincode",
        "city",
        "state",
        "product_id",
        "is_dairy_product",
        "notes",
    },
    required_on_create={"name", "mobile"},
    aliases={"productId": "product_id", "isDairyProduct": "is_dairy_product"},
)

leads_bp = Blueprint("leads", __name__, url_prefix="/api/leads")


@leads_bp.post("")
def create_lead_route():
    """
    Public: record interest from a visitor whose pincode is not serviceable yet.

    Returns:
        201: Lead captured
        400: Missing name/mobile or invalid mobile
    """
    patch = validate_payload(model=Lead, payload=request.get_json(silent=True), policy=LEAD_POLICY, partial=False)
    lead = lead_service.create_lead(patch)
    commit_or_conflict()
    return jsonify(lead.to_dict()), 201


@leads_bp.get("")
@require_auth
@require_permission("MANAGE_LEADS")
def list_leads_route():
    page, limit = page_args()
    query = lead_service.list_leads(
        status=request.args.get("status"),
        search=request.args.get("search"),
        pincode=request.args.get("pincode"),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@leads_bp.get("/<int:lead_id>")
@require_auth
@require_permission("MANAGE_LEADS")
def get_lead_route(lead_id: int):
    return jsonify(lead_service.get_lead(lead_id).to_dict()), 200


@leads_bp.patch("/<int:lead_id>/status")
@require_auth
@require_permission("MANAGE_LEADS")
def update_lead_status_route(lead_id: int):
    """Body: {"status": "NEW|CONTACTED|CONVERTED|CLOSED", "notes": str (optional)}"""
    data = request.get_json(silent=True) or {}
    lead = lead_service.update_lead_status(lead_id, data.get("status"), data.get("notes"))
    commit_or_conflict()
    return jsonify(lead.to_dict()), 200


@leads_bp.delete("/<int:lead_id>")
@require_auth
@require_permission("MANAGE_LEADS")
def delete_lead_route(lead_id: int):
    lead_service.delete_lead(lead_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
