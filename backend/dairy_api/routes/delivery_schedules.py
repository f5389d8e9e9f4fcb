# Overview: Flask API routes for agency delivery runs; daily list and field status updates.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import BadRequestError
from ..services import delivery_service
from ..services.concurrency import commit_or_conflict
from ..time_utils import parse_date, today

delivery_schedules_bp = Blueprint("delivery_schedules", __name__, url_prefix="/api/delivery-schedules")


@delivery_schedules_bp.get("/agency")
@require_auth
@require_permission("VIEW_AGENCY_DELIVERIES")
def agency_deliveries_route():
    """
    Deliveries for one agency on one date, with addresses.

    Query params:
    - date: YYYY-MM-DD (default today)
    - agency_id: required for ADMIN, ignored for AGENCY users
    """
    raw = request.args.get("date")
    try:
        on = parse_date(raw) if raw else today()
    except ValueError:
        raise BadRequestError("date must be YYYY-MM-DD")

    entries = delivery_service.agency_deliveries_by_date(
        user=g.current_user,
        on_date=on,
        agency_id=request.args.get("agency_id"),
    )
    return jsonify({
        "date": on.isoformat(),
        "data": [e.to_dict(include_address=True) for e in entries],
    }), 200


@delivery_schedules_bp.put("/<int:entry_id>/status")
@require_auth
@require_permission("UPDATE_DELIVERY_STATUS")
def agency_update_status_route(entry_id: int):
    """
    Request body:
        { "status": "PENDING" | "DELIVERED" | "NOT_DELIVERED" | "INDRAAI_DELIVERY" | "TRANSFER_TO_AGENT" }

    Returns:
        200: delivery
        400: invalid status or delivery already cancelled/skipped
        403: not an agency user, or delivery assigned to another agency
    """
    payload = request.get_json(silent=True) or {}
    entry = delivery_service.agency_update_status(entry_id, payload.get("status"), user=g.current_user)
    commit_or_conflict()
    return jsonify(entry.to_dict()), 200
