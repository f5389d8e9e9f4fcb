# Overview: Flask API routes for the member's own wallet; balance, history and top-up requests.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..pagination import page_args, paginate
from ..services import wallet_service
from ..services.concurrency import commit_or_conflict
from ..validation import require_fields

wallet_bp = Blueprint("wallet", __name__, url_prefix="/api/wallet")


@wallet_bp.get("")
@require_auth
@require_permission("VIEW_OWN_WALLET")
def my_wallet_route():
    """Balance summary plus the first page of transactions."""
    member = wallet_service.member_for_user(g.current_user)
    page, limit = page_args()
    query = wallet_service.list_transactions(member_id=member.id)
    return jsonify({
        **wallet_service.wallet_summary(member),
        "transactions": paginate(query, page=page, limit=limit),
    }), 200


@wallet_bp.get("/balance")
@require_auth
@require_permission("VIEW_OWN_WALLET")
def my_balance_route():
    member = wallet_service.member_for_user(g.current_user)
    return jsonify(wallet_service.wallet_summary(member)), 200


@wallet_bp.get("/transactions")
@require_auth
@require_permission("VIEW_OWN_WALLET")
def my_transactions_route():
    member = wallet_service.member_for_user(g.current_user)
    page, limit = page_args()
    query = wallet_service.list_transactions(
        member_id=member.id,
        status=request.args.get("status"),
        txn_type=request.args.get("type"),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@wallet_bp.post("/topup")
@require_auth
@require_permission("REQUEST_TOPUP")
def request_topup_route():
    """
    Request body:
        { "amount": number, "payment_method"?: str, "reference_number"?: str, "notes"?: str }

    Returns:
        201: PENDING credit transaction awaiting admin approval
    """
    payload = request.get_json(silent=True) or {}
    require_fields(payload, ("amount",))
    member = wallet_service.member_for_user(g.current_user)
    txn = wallet_service.request_topup(
        member,
        payload["amount"],
        payment_method=payload.get("payment_method"),
        reference_number=payload.get("reference_number"),
        notes=payload.get("notes"),
    )
    commit_or_conflict()
    return jsonify(txn.to_dict()), 201
