# Overview: Flask API routes for admin operations; members, wallets, deliveries, users and the dashboard.

# backend/dairy_api/routes/admin.py
"""
Admin routes.

Provides endpoints for:
- Member directory with wallet balances
- Wallet administration (add/remove funds, approve/reject top-ups)
- Delivery oversight (listing, status override with refund on customer skip)
- User accounts for back-office roles (ADMIN, DepotAdmin)
- Dashboard headline stats

All endpoints require authentication and appropriate permissions.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import User
from ..pagination import page_args, paginate
from ..permissions import ALL_ROLES
from ..services import auth_service, delivery_service, member_service, reporting_service, wallet_service
from ..services.concurrency import commit_or_conflict
from ..validation import parse_date_args, require_fields

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


# =============================================================================
# MEMBERS
# =============================================================================

@admin_bp.get("/members")
@require_auth
@require_permission("MANAGE_MEMBERS")
def list_members_route():
    """
    Query params:
    - search: name, email or mobile contains
    - is_active: bool
    - page, limit
    """
    page, limit = page_args()
    query = member_service.list_members(search=request.args.get("search"), is_active=_bool_arg("is_active"))
    return jsonify(paginate(query, page=page, limit=limit, serialize=lambda m: m.to_dict(include_user=True))), 200


@admin_bp.get("/members/<int:member_id>")
@require_auth
@require_permission("MANAGE_MEMBERS")
def get_member_route(member_id: int):
    member = wallet_service.get_member(member_id)
    data = member.to_dict(include_user=True)
    data["addresses"] = [a.to_dict() for a in member.addresses]
    return jsonify(data), 200


@admin_bp.patch("/members/<int:member_id>/status")
@require_auth
@require_permission("MANAGE_MEMBERS")
def set_member_status_route(member_id: int):
    """Request body: { "is_active": bool }"""
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("is_active",))
    member = member_service.set_member_active(member_id, bool(payload["is_active"]))
    commit_or_conflict()
    return jsonify(member.to_dict(include_user=True)), 200


# =============================================================================
# WALLETS
# =============================================================================

@admin_bp.get("/wallets")
@require_auth
@require_permission("MANAGE_WALLETS")
def list_wallets_route():
    page, limit = page_args()
    query = member_service.list_members(search=request.args.get("search"))
    return jsonify(paginate(query, page=page, limit=limit, serialize=wallet_service.wallet_summary)), 200


@admin_bp.get("/wallets/<int:member_id>")
@require_auth
@require_permission("MANAGE_WALLETS")
def get_wallet_route(member_id: int):
    member = wallet_service.get_member(member_id)
    page, limit = page_args()
    query = wallet_service.list_transactions(member_id=member.id)
    return jsonify({
        **wallet_service.wallet_summary(member),
        "transactions": paginate(query, page=page, limit=limit),
    }), 200


@admin_bp.post("/wallets/<int:member_id>/add-funds")
@require_auth
@require_permission("MANAGE_WALLETS")
def add_funds_route(member_id: int):
    """
    Request body:
        { "amount": number, "payment_method"?: str, "reference_number"?: str, "notes"?: str }
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("amount",))
    txn = wallet_service.admin_add_funds(
        member_id,
        payload["amount"],
        admin_id=g.current_user.id,
        payment_method=payload.get("payment_method"),
        reference_number=payload.get("reference_number"),
        notes=payload.get("notes"),
    )
    commit_or_conflict()
    current_app.logger.info("Admin %s added %s to member %s", g.current_user.id, txn.amount, member_id)
    return jsonify(txn.to_dict()), 201


@admin_bp.post("/wallets/<int:member_id>/remove-funds")
@require_auth
@require_permission("MANAGE_WALLETS")
def remove_funds_route(member_id: int):
    """
    Returns:
        201: DEBIT transaction
        400: insufficient balance
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("amount",))
    txn = wallet_service.admin_remove_funds(
        member_id,
        payload["amount"],
        admin_id=g.current_user.id,
        payment_method=payload.get("payment_method"),
        reference_number=payload.get("reference_number"),
        notes=payload.get("notes"),
    )
    commit_or_conflict()
    current_app.logger.info("Admin %s removed %s from member %s", g.current_user.id, txn.amount, member_id)
    return jsonify(txn.to_dict()), 201


@admin_bp.get("/wallets/transactions")
@require_auth
@require_permission("MANAGE_WALLETS")
def list_wallet_transactions_route():
    """Query params: member_id, status, type, page, limit."""
    page, limit = page_args()
    query = wallet_service.list_transactions(
        member_id=request.args.get("member_id", type=int),
        status=request.args.get("status"),
        txn_type=request.args.get("type"),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@admin_bp.post("/wallets/transactions/<int:transaction_id>/approve")
@require_auth
@require_permission("MANAGE_WALLETS")
def approve_topup_route(transaction_id: int):
    payload = request.get_json(silent=True) or {}
    txn = wallet_service.approve_topup(transaction_id, admin_id=g.current_user.id, notes=payload.get("notes"))
    commit_or_conflict()
    return jsonify(txn.to_dict()), 200


@admin_bp.post("/wallets/transactions/<int:transaction_id>/reject")
@require_auth
@require_permission("MANAGE_WALLETS")
def reject_topup_route(transaction_id: int):
    payload = request.get_json(silent=True) or {}
    txn = wallet_service.reject_topup(transaction_id, admin_id=g.current_user.id, notes=payload.get("notes"))
    commit_or_conflict()
    return jsonify(txn.to_dict()), 200


# =============================================================================
# DELIVERIES
# =============================================================================

@admin_bp.get("/deliveries")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def list_deliveries_route():
    """
    Query params:
    - date | from_date, to_date: YYYY-MM-DD
    - agency_id, member_id, subscription_id, status
    - page, limit
    """
    page, limit = page_args(default_limit=50)
    query = delivery_service.list_deliveries(filters=parse_date_args(request.args.to_dict()))
    return jsonify(paginate(query, page=page, limit=limit, serialize=lambda e: e.to_dict(include_address=True))), 200


@admin_bp.put("/deliveries/<int:entry_id>/status")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def admin_update_delivery_route(entry_id: int):
    """
    Request body:
        { "status": str, "admin_notes"?: str, "agent_id"?: int }

    SKIP_BY_CUSTOMER credits rate x quantity to the member wallet once.
    """
    payload = request.get_json(silent=True) or {}
    entry = delivery_service.admin_update_status(entry_id, payload, admin=g.current_user)
    commit_or_conflict()
    return jsonify(entry.to_dict()), 200


# =============================================================================
# USERS
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    page, limit = page_args()
    query = auth_service.list_users(role=request.args.get("role"))
    return jsonify(paginate(query, page=page, limit=limit)), 200


@admin_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """
    Request body:
        { "name": str, "password": str, "role": str, "email"?: str, "mobile"?: str,
          "depot_id"?: int (DepotAdmin), "joining_date"?: YYYY-MM-DD }
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("name", "password", "role"))
    if payload["role"] not in ALL_ROLES:
        raise BadRequestError(f"Invalid role: {payload['role']}")
    user = auth_service.create_user(
        name=payload["name"],
        password=payload["password"],
        role=payload["role"],
        email=payload.get("email"),
        mobile=payload.get("mobile"),
        depot_id=payload.get("depot_id"),
        joining_date=payload.get("joining_date"),
    )
    commit_or_conflict()
    return jsonify(user.to_dict()), 201


@admin_bp.put("/users/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(user_id: int):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    payload = request.get_json(silent=True) or {}
    auth_service.update_user(
        user,
        name=payload.get("name"),
        email=payload.get("email"),
        mobile=payload.get("mobile"),
        password=payload.get("password"),
        is_active=payload.get("is_active"),
        depot_id=payload.get("depot_id"),
    )
    commit_or_conflict()
    return jsonify(user.to_dict()), 200


# =============================================================================
# DASHBOARD
# =============================================================================

@admin_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard_route():
    return jsonify(reporting_service.dashboard_stats()), 200
