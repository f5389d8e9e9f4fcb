# Overview: Flask API routes for the stock ledger and ledger-derived closing stock.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import NotFoundError
from ..extensions import db
from ..models import StockLedger
from ..pagination import page_args, paginate
from ..services import stock_service
from ..validation import parse_date_args

stock_ledgers_bp = Blueprint("stock_ledgers", __name__, url_prefix="/api/stock-ledgers")


@stock_ledgers_bp.get("")
@require_auth
@require_permission("VIEW_STOCK")
def list_ledger_route():
    """
    Query params:
    - depot_id, variant_id, product_id: int
    - module: transfer | purchase | wastage | opening | adjustment
    - from_date, to_date: YYYY-MM-DD
    - page, limit
    """
    args = parse_date_args(request.args.to_dict(), keys=("from_date", "to_date"))
    page, limit = page_args(default_limit=50)
    query = stock_service.list_ledger(
        depot_id=request.args.get("depot_id", type=int),
        variant_id=request.args.get("variant_id", type=int),
        product_id=request.args.get("product_id", type=int),
        module=args.get("module"),
        from_date=args.get("from_date"),
        to_date=args.get("to_date"),
    )
    return jsonify(paginate(query, page=page, limit=limit)), 200


@stock_ledgers_bp.get("/<int:ledger_id>")
@require_auth
@require_permission("VIEW_STOCK")
def get_ledger_route(ledger_id: int):
    row = db.session.get(StockLedger, ledger_id)
    if not row:
        raise NotFoundError("Stock ledger entry not found")
    return jsonify(row.to_dict()), 200


@stock_ledgers_bp.get("/closing-stock/<int:variant_id>")
@require_auth
@require_permission("VIEW_STOCK")
def closing_stock_route(variant_id: int):
    """Ledger balance next to the stored closing_qty for one variant."""
    variant = stock_service.get_variant(variant_id)
    balance = stock_service.ledger_balance(variant.product_id, variant.id, variant.depot_id)
    return jsonify({
        "variant_id": variant.id,
        "depot_id": variant.depot_id,
        "product_id": variant.product_id,
        "closing_qty": variant.closing_qty,
        "ledger_balance": balance,
    }), 200
