# Overview: Flask API routes for member delivery addresses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import DeliveryAddress
from ..services import member_service
from ..services.concurrency import commit_or_conflict
from ..validation import ModelValidationPolicy, validate_payload

ADDRESS_POLICY = ModelValidationPolicy(
    writable_fields={
        "recipient_name",
        "mobile",
        "plot_building",
        "street_area",
        "landmark",
        "pincode",
        "city",
        "state",
        "label",
        "is_default",
        "location_id",
    },
    required_on_create={"recipient_name", "mobile", "plot_building", "street_area", "pincode", "city", "state"},
    aliases={
        "recipientName": "recipient_name",
        "plotBuilding": "plot_building",
        "streetArea": "street_area",
        "isDefault": "is_default",
        "locationId": "location_id",
    },
)

addresses_bp = Blueprint("delivery_addresses", __name__, url_prefix="/api/delivery-addresses")


@addresses_bp.get("")
@require_auth
@require_permission("MANAGE_OWN_ADDRESSES")
def list_addresses_route():
    """Own addresses; ADMIN may pass ?member_id=."""
    addresses = member_service.list_addresses(
        user=g.current_user, member_id=request.args.get("member_id", type=int)
    )
    return jsonify({"data": [a.to_dict() for a in addresses]}), 200


@addresses_bp.get("/<int:address_id>")
@require_auth
@require_permission("MANAGE_OWN_ADDRESSES")
def get_address_route(address_id: int):
    return jsonify(member_service.get_address(address_id, user=g.current_user).to_dict()), 200


@addresses_bp.post("")
@require_auth
@require_permission("MANAGE_OWN_ADDRESSES")
def create_address_route():
    """
    Returns:
        201: address (first address becomes the default)
        400: validation error
    """
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=DeliveryAddress, payload=payload, policy=ADDRESS_POLICY, partial=False)
    address = member_service.create_address(patch, user=g.current_user, member_id=payload.get("member_id"))
    commit_or_conflict()
    return jsonify(address.to_dict()), 201


@addresses_bp.put("/<int:address_id>")
@require_auth
@require_permission("MANAGE_OWN_ADDRESSES")
def update_address_route(address_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=DeliveryAddress, payload=payload, policy=ADDRESS_POLICY, partial=True)
    address = member_service.update_address(address_id, patch, user=g.current_user)
    commit_or_conflict()
    return jsonify(address.to_dict()), 200


@addresses_bp.patch("/<int:address_id>/default")
@require_auth
@require_permission("MANAGE_OWN_ADDRESSES")
def set_default_route(address_id: int):
    address = member_service.set_default_address(address_id, user=g.current_user)
    commit_or_conflict()
    return jsonify(address.to_dict()), 200


@addresses_bp.delete("/<int:address_id>")
@require_auth
@require_permission("MANAGE_OWN_ADDRESSES")
def delete_address_route(address_id: int):
    member_service.delete_address(address_id, user=g.current_user)
    commit_or_conflict()
    return jsonify({"ok": True}), 200
