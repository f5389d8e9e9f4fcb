# Overview: Flask API routes for agencies, supervisors and vendors; each profile carries a login account.

# backend/dairy_api/routes/partners.py
"""
Partner directory routes.

Profile columns are validated with validate_payload; "password" and
"is_active" belong to the linked login account and are passed separately.

SECURITY: all endpoints require MANAGE_PARTNERS (ADMIN).
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import Agency, Supervisor, Vendor
from ..pagination import page_args, paginate
from ..services import partner_service
from ..services.concurrency import commit_or_conflict
from ..validation import ModelValidationPolicy, enforce_rules_mobile, require_fields, validate_payload

_CONTACT_FIELDS = {
    "name",
    "contact_person_name",
    "mobile",
    "address1",
    "address2",
    "city",
    "pincode",
    "email",
}
_CONTACT_ALIASES = {"contactPersonName": "contact_person_name"}

AGENCY_POLICY = ModelValidationPolicy(
    writable_fields=_CONTACT_FIELDS | {"depot_id"},
    required_on_create={"name", "mobile", "address1", "city", "pincode"},
    aliases={**_CONTACT_ALIASES, "depotId": "depot_id"},
)

SUPERVISOR_POLICY = ModelValidationPolicy(
    writable_fields=_CONTACT_FIELDS | {"agency_id"},
    required_on_create={"name", "mobile"},
    aliases={**_CONTACT_ALIASES, "agencyId": "agency_id"},
)

VENDOR_POLICY = ModelValidationPolicy(
    writable_fields=_CONTACT_FIELDS | {"is_dairy_supplier"},
    required_on_create={"name", "mobile"},
    aliases={**_CONTACT_ALIASES, "isDairySupplier": "is_dairy_supplier"},
)

agencies_bp = Blueprint("agencies", __name__, url_prefix="/api/agencies")
supervisors_bp = Blueprint("supervisors", __name__, url_prefix="/api/supervisors")
vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


def _account_fields(payload: dict) -> dict:
    is_active = payload.get("is_active", payload.get("active"))
    return {
        "password": payload.get("password") or None,
        "is_active": bool(is_active) if is_active is not None else None,
    }


def _clean(model, payload: dict, policy, *, partial: bool) -> dict:
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=partial)
    if patch.get("email") == "":
        patch["email"] = None
    if "mobile" in patch:
        enforce_rules_mobile(patch["mobile"])
    return patch


# =============================================================================
# AGENCIES
# =============================================================================

@agencies_bp.get("")
@require_auth
@require_permission("MANAGE_PARTNERS")
def list_agencies_route():
    page, limit = page_args()
    query = partner_service.list_agencies(search=request.args.get("search"))
    return jsonify(paginate(query, page=page, limit=limit)), 200


@agencies_bp.get("/<int:agency_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def get_agency_route(agency_id: int):
    return jsonify(partner_service.get_agency(agency_id).to_dict()), 200


@agencies_bp.post("")
@require_auth
@require_permission("MANAGE_PARTNERS")
def create_agency_route():
    """
    Request body: agency profile fields plus "password" for the AGENCY login.

    Returns:
        201: agency
        400: validation error
        409: email/mobile already registered or depot already linked
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("password",))
    patch = _clean(Agency, payload, AGENCY_POLICY, partial=False)
    account = _account_fields(payload)
    agency = partner_service.create_agency(
        patch,
        password=account["password"],
        is_active=account["is_active"] if account["is_active"] is not None else True,
    )
    commit_or_conflict()
    return jsonify(agency.to_dict()), 201


@agencies_bp.put("/<int:agency_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def update_agency_route(agency_id: int):
    payload = request.get_json(silent=True) or {}
    patch = _clean(Agency, payload, AGENCY_POLICY, partial=True)
    agency = partner_service.update_agency(agency_id, patch, **_account_fields(payload))
    commit_or_conflict()
    return jsonify(agency.to_dict()), 200


@agencies_bp.delete("/<int:agency_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def delete_agency_route(agency_id: int):
    partner_service.delete_agency(agency_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


# =============================================================================
# SUPERVISORS
# =============================================================================

@supervisors_bp.get("")
@require_auth
@require_permission("MANAGE_PARTNERS")
def list_supervisors_route():
    page, limit = page_args()
    query = partner_service.list_supervisors(
        search=request.args.get("search"),
        agency_id=request.args.get("agency_id", type=int),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@supervisors_bp.get("/<int:supervisor_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def get_supervisor_route(supervisor_id: int):
    return jsonify(partner_service.get_supervisor(supervisor_id).to_dict()), 200


@supervisors_bp.post("")
@require_auth
@require_permission("MANAGE_PARTNERS")
def create_supervisor_route():
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("password",))
    patch = _clean(Supervisor, payload, SUPERVISOR_POLICY, partial=False)
    account = _account_fields(payload)
    supervisor = partner_service.create_supervisor(
        patch,
        password=account["password"],
        is_active=account["is_active"] if account["is_active"] is not None else True,
    )
    commit_or_conflict()
    return jsonify(supervisor.to_dict()), 201


@supervisors_bp.put("/<int:supervisor_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def update_supervisor_route(supervisor_id: int):
    payload = request.get_json(silent=True) or {}
    patch = _clean(Supervisor, payload, SUPERVISOR_POLICY, partial=True)
    supervisor = partner_service.update_supervisor(supervisor_id, patch, **_account_fields(payload))
    commit_or_conflict()
    return jsonify(supervisor.to_dict()), 200


@supervisors_bp.delete("/<int:supervisor_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def delete_supervisor_route(supervisor_id: int):
    partner_service.delete_supervisor(supervisor_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200


# =============================================================================
# VENDORS
# =============================================================================

@vendors_bp.get("")
@require_auth
@require_permission("MANAGE_PARTNERS")
def list_vendors_route():
    page, limit = page_args()
    raw = request.args.get("is_dairy_supplier")
    query = partner_service.list_vendors(
        search=request.args.get("search"),
        is_dairy_supplier=None if raw in (None, "") else raw.lower() in {"1", "true", "yes"},
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@vendors_bp.get("/<int:vendor_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def get_vendor_route(vendor_id: int):
    return jsonify(partner_service.get_vendor(vendor_id).to_dict()), 200


@vendors_bp.post("")
@require_auth
@require_permission("MANAGE_PARTNERS")
def create_vendor_route():
    """A VENDOR login is created only when "password" is supplied."""
    payload = request.get_json(silent=True) or {}
    patch = _clean(Vendor, payload, VENDOR_POLICY, partial=False)
    account = _account_fields(payload)
    vendor = partner_service.create_vendor(
        patch,
        password=account["password"],
        is_active=account["is_active"] if account["is_active"] is not None else True,
    )
    commit_or_conflict()
    return jsonify(vendor.to_dict()), 201


@vendors_bp.put("/<int:vendor_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def update_vendor_route(vendor_id: int):
    payload = request.get_json(silent=True) or {}
    patch = _clean(Vendor, payload, VENDOR_POLICY, partial=True)
    vendor = partner_service.update_vendor(vendor_id, patch, **_account_fields(payload))
    commit_or_conflict()
    return jsonify(vendor.to_dict()), 200


@vendors_bp.delete("/<int:vendor_id>")
@require_auth
@require_permission("MANAGE_PARTNERS")
def delete_vendor_route(vendor_id: int):
    partner_service.delete_vendor(vendor_id)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
