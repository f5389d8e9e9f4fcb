# Overview: Flask API routes for admin reports; parses query params and returns JSON.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/deliveries")
@require_auth
@require_permission("VIEW_REPORTS")
def delivery_report_route():
    """Query params: from_date, to_date, agency_id, group_by (date|agency|product)."""
    data = reporting_service.delivery_report(
        start=request.args.get("from_date"),
        end=request.args.get("to_date"),
        agency_id=request.args.get("agency_id", type=int),
        group_by=request.args.get("group_by", "date"),
    )
    return jsonify({"data": data}), 200


@reports_bp.get("/wallets")
@require_auth
@require_permission("VIEW_REPORTS")
def wallet_report_route():
    report = reporting_service.wallet_report(
        start=request.args.get("from_date"),
        end=request.args.get("to_date"),
        member_id=request.args.get("member_id", type=int),
    )
    return jsonify(report), 200


@reports_bp.get("/subscriptions")
@require_auth
@require_permission("VIEW_REPORTS")
def subscription_report_route():
    data = reporting_service.subscription_report(
        start=request.args.get("from_date"),
        end=request.args.get("to_date"),
        agency_id=request.args.get("agency_id", type=int),
        product_id=request.args.get("product_id", type=int),
        depot_id=request.args.get("depot_id", type=int),
    )
    return jsonify({"data": data}), 200
