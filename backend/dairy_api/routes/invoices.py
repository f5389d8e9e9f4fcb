# backend/dairy_api/routes/invoices.py
"""
Invoice routes.

Invoices are PDFs rendered per product order and stored under INVOICE_FOLDER.
Generating again re-renders the file but keeps the invoice number.

SECURITY:
- Generation requires GENERATE_INVOICES (admin)
- Download/exists require VIEW_INVOICES; members only see their own orders
"""
from flask import Blueprint, g, jsonify, send_file

from ..decorators import require_auth, require_permission
from ..errors import NotFoundError
from ..services import invoice_service, order_service
from ..services.concurrency import commit_or_conflict

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.post("/orders/<int:order_id>")
@require_auth
@require_permission("GENERATE_INVOICES")
def generate_invoice_route(order_id: int):
    order = invoice_service.get_order_for_invoice(order_id)
    invoice_service.generate_invoice_for_order(order)
    commit_or_conflict()
    return jsonify({"order_id": order.id, "invoice_no": order.invoice_no, "invoice_path": order.invoice_path}), 201


@invoices_bp.get("/orders/<int:order_id>/exists")
@require_auth
@require_permission("VIEW_INVOICES")
def invoice_exists_route(order_id: int):
    order = order_service.get_order(order_id, g.current_user)
    return jsonify({
        "order_id": order.id,
        "invoice_no": order.invoice_no,
        "exists": invoice_service.invoice_exists(order),
    }), 200


@invoices_bp.get("/orders/<int:order_id>/download")
@require_auth
@require_permission("VIEW_INVOICES")
def download_invoice_route(order_id: int):
    order = order_service.get_order(order_id, g.current_user)
    if not invoice_service.invoice_exists(order):
        raise NotFoundError("Invoice has not been generated for this order")
    return send_file(
        invoice_service.invoice_file_path(order),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"invoice-{order.invoice_no}.pdf",
    )
