# Overview: PDF tax invoices for product orders, numbered per financial year.

"""
Invoice service.

An order gets an invoice number (YYNN-NNNNN, financial year April-March) the
first time its invoice is generated; regenerating rewrites the PDF under the
same number. PDFs are written to INVOICE_FOLDER as <invoice_no>.pdf and the
order's invoice_path stores the file name relative to that folder.
"""
from __future__ import annotations

import logging
import os
from flask import current_app
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..errors import NotFoundError
from ..extensions import db
from ..models import ProductOrder
from ..money import round2
from .document_service import next_document_number

logger = logging.getLogger(__name__)

_ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
    "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
    "Eighteen", "Nineteen",
)
_TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")


def _two_digits(n: int) -> str:
    if n < 20:
        return _ONES[n]
    return (_TENS[n // 10] + (" " + _ONES[n % 10] if n % 10 else "")).strip()


def _three_digits(n: int) -> str:
    hundreds, rest = divmod(n, 100)
    parts = []
    if hundreds:
        parts.append(f"{_ONES[hundreds]} Hundred")
    if rest:
        parts.append(_two_digits(rest))
    return " ".join(parts)


def _indian_words(n: int) -> str:
    parts = []
    crore, n = divmod(n, 10_000_000)
    lakh, n = divmod(n, 100_000)
    thousand, n = divmod(n, 1000)
    if crore:
        parts.append(f"{_indian_words(crore)} Crore")
    if lakh:
        parts.append(f"{_two_digits(lakh)} Lakh")
    if thousand:
        parts.append(f"{_two_digits(thousand)} Thousand")
    if n:
        parts.append(_three_digits(n))
    return " ".join(parts)


def amount_in_words(amount) -> str:
    """Rupees in the Indian numbering system, e.g. 'One Lakh Twenty Rupees and Fifty Paise Only'."""
    value = round2(amount)
    rupees = int(value)
    paise = int((value - rupees) * 100)

    text = f"{_indian_words(rupees) or 'Zero'} Rupees"
    if paise:
        text += f" and {_two_digits(paise)} Paise"
    return text + " Only"


def invoice_folder() -> str:
    folder = current_app.config["INVOICE_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def invoice_file_path(order: ProductOrder) -> str | None:
    if not order.invoice_path:
        return None
    return os.path.join(invoice_folder(), order.invoice_path)


def invoice_exists(order: ProductOrder) -> bool:
    path = invoice_file_path(order)
    return bool(path and os.path.exists(path))


def _money(value) -> str:
    return f"{round2(value):,.2f}"


def render_invoice_pdf(order: ProductOrder, path: str) -> None:
    c = canvas.Canvas(path, pagesize=A4)
    w, h = A4

    x = 40
    y = h - 48
    lh = 14

    def _new_page_if_needed(current_y: float) -> float:
        if current_y < 90:
            c.showPage()
            c.setFont("Helvetica", 10)
            return h - 48
        return current_y

    config = current_app.config
    c.setFont("Helvetica-Bold", 16)
    c.drawString(x, y, config.get("COMPANY_NAME", ""))
    y -= 18
    c.setFont("Helvetica", 9)
    if config.get("COMPANY_ADDRESS"):
        c.drawString(x, y, config["COMPANY_ADDRESS"][:110])
        y -= 12
    if config.get("COMPANY_GSTIN"):
        c.drawString(x, y, f"GSTIN: {config['COMPANY_GSTIN']}")
        y -= 12

    y -= 8
    c.setFont("Helvetica-Bold", 13)
    c.drawString(x, y, "TAX INVOICE")
    y -= 20

    c.setFont("Helvetica", 10)
    c.drawString(x, y, f"Invoice No: {order.invoice_no}")
    c.drawString(w / 2, y, f"Order No: {order.order_no}")
    y -= lh
    created = order.created_at.strftime("%d-%m-%Y") if order.created_at else ""
    c.drawString(x, y, f"Invoice Date: {created}")
    c.drawString(w / 2, y, f"Payment Status: {order.payment_status}")
    y -= lh

    member = order.member
    c.drawString(x, y, f"Bill To: {member.name if member else ''}")
    y -= lh
    if member is not None and member.user is not None:
        contact = " / ".join(v for v in (member.user.mobile, member.user.email) if v)
        if contact:
            c.drawString(x, y, contact[:110])
            y -= lh

    first_address = next((s.delivery_address for s in order.subscriptions if s.delivery_address), None)
    if first_address is not None:
        c.setFont("Helvetica", 9)
        line = ", ".join(
            v for v in (
                first_address.plot_building,
                first_address.street_area,
                first_address.landmark,
                first_address.city,
                first_address.state,
                first_address.pincode,
            ) if v
        )
        c.drawString(x, y, line[:120])
        y -= 12
        c.setFont("Helvetica", 10)

    y -= 8
    c.setFont("Helvetica-Bold", 10)
    c.drawString(x, y, "Item")
    c.drawString(x + 210, y, "Period")
    c.drawString(x + 270, y, "Schedule")
    c.drawString(x + 360, y, "Qty")
    c.drawString(x + 400, y, "Rate")
    c.drawString(x + 460, y, "Amount")
    y -= 4
    c.line(x, y, w - x, y)
    y -= lh

    c.setFont("Helvetica", 10)
    for s in order.subscriptions:
        name = s.product.name if s.product else ""
        if s.depot_product_variant is not None:
            name = f"{name} ({s.depot_product_variant.name})"
        c.drawString(x, y, name[:40])
        c.drawString(x + 210, y, f"{s.period} days")
        c.drawString(x + 270, y, s.delivery_schedule)
        c.drawString(x + 360, y, str(s.total_qty))
        c.drawString(x + 400, y, _money(s.rate))
        c.drawString(x + 460, y, _money(s.amount))
        y -= lh
        c.setFont("Helvetica", 8)
        c.drawString(x + 10, y, f"{s.start_date.strftime('%d-%m-%Y')} to {s.expiry_date.strftime('%d-%m-%Y')}")
        c.setFont("Helvetica", 10)
        y -= lh
        y = _new_page_if_needed(y)

    c.line(x, y + 6, w - x, y + 6)
    y -= 6
    totals = (
        ("Total", order.total_amount),
        ("Wallet Applied", order.wallet_amount),
        ("Payable", order.payable_amount),
        ("Received", order.received_amount),
    )
    for label, value in totals:
        c.drawString(x + 360, y, label)
        c.drawString(x + 460, y, _money(value))
        y -= lh

    y -= 6
    c.setFont("Helvetica-Oblique", 9)
    c.drawString(x, y, f"Amount in words: {amount_in_words(order.total_amount)}"[:130])

    c.setFont("Helvetica", 9)
    c.drawString(x, 48, "This is a computer generated invoice.")
    c.showPage()
    c.save()


def generate_invoice_for_order(order: ProductOrder) -> ProductOrder:
    """Number (first time only) and render the order's invoice PDF."""
    if not order.invoice_no:
        on = order.created_at.date() if order.created_at else None
        order.invoice_no = next_document_number("INVOICE", on)

    filename = f"{order.invoice_no}.pdf"
    render_invoice_pdf(order, os.path.join(invoice_folder(), filename))
    order.invoice_path = filename
    db.session.flush()
    logger.info("Invoice %s generated for order %s", order.invoice_no, order.order_no)
    return order


def get_order_for_invoice(order_id: int) -> ProductOrder:
    order = db.session.get(ProductOrder, order_id)
    if not order:
        raise NotFoundError("Product order not found")
    return order

