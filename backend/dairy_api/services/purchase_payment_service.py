# Overview: Payments to vendors allocated across their purchases; keeps Purchase.paid_amount in step.

from __future__ import annotations

import logging

from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import Purchase, PurchasePayment, PurchasePaymentDetail, Vendor
from ..money import ZERO, round2
from ..time_utils import parse_date
from ..validation import ValidationError, require_fields, to_money, to_positive_int
from .concurrency import lock_for_update
from .document_service import next_document_number

logger = logging.getLogger(__name__)


def _payment_or_404(payment_id: int, *, lock: bool = False) -> PurchasePayment:
    query = db.session.query(PurchasePayment).filter_by(id=payment_id)
    if lock:
        query = lock_for_update(query)
    payment = query.first()
    if not payment:
        raise NotFoundError("Purchase payment not found")
    return payment


def _vendor_id(raw) -> int:
    vendor_id = to_positive_int(raw, "vendor_id")
    if not db.session.get(Vendor, vendor_id):
        raise NotFoundError("Vendor not found")
    return vendor_id


def _payment_date(raw):
    try:
        parsed = parse_date(raw)
    except ValueError:
        raise ValidationError("Invalid date", {"payment_date": "invalid date"})
    if parsed is None:
        raise ValidationError("payment_date is required", {"payment_date": "is required"})
    return parsed


def _positive_amount(raw, field: str):
    amount = to_money(raw, field)
    if amount <= ZERO:
        raise ValidationError(f"{field} must be greater than 0", {field: "must be greater than 0"})
    return amount


def _allocations(raw_details, vendor_id: int, total) -> list[tuple[Purchase, object]]:
    """
    Validate [{purchase_id, amount}] against the vendor's purchases.

    Allocations must add up to the payment total; a purchase may appear
    once. Returns the locked purchases paired with their amounts.
    """
    if not isinstance(raw_details, list) or not raw_details:
        raise ValidationError("At least one payment detail is required", {"details": "is required"})

    allocations = []
    seen = set()
    for raw in raw_details:
        if not isinstance(raw, dict):
            raise ValidationError("Each payment detail must be an object", {"details": "invalid"})
        purchase_id = to_positive_int(raw.get("purchase_id"), "purchase_id")
        if purchase_id in seen:
            raise BadRequestError(f"Purchase {purchase_id} appears more than once")
        seen.add(purchase_id)
        purchase = lock_for_update(db.session.query(Purchase).filter_by(id=purchase_id)).first()
        if not purchase:
            raise NotFoundError(f"Purchase {purchase_id} not found")
        if purchase.vendor_id != vendor_id:
            raise BadRequestError(f"Purchase {purchase.purchase_no} belongs to another vendor")
        allocations.append((purchase, _positive_amount(raw.get("amount"), "amount")))

    allocated = sum((amount for _, amount in allocations), ZERO)
    if allocated != total:
        raise ValidationError(
            f"Payment details add up to {allocated}, not the payment total {total}",
            {"details": "must add up to total_amount"},
        )
    return allocations


def _apply(payment: PurchasePayment, allocations) -> None:
    for purchase, amount in allocations:
        outstanding = round2(purchase.total_amount) - round2(purchase.paid_amount)
        if amount > outstanding:
            raise BadRequestError(
                f"Payment of {amount} exceeds the {outstanding} outstanding on purchase {purchase.purchase_no}"
            )
        payment.details.append(PurchasePaymentDetail(purchase_id=purchase.id, amount=amount))
        purchase.paid_amount = round2(purchase.paid_amount) + amount


def _reverse(payment: PurchasePayment) -> None:
    for detail in list(payment.details):
        purchase = lock_for_update(db.session.query(Purchase).filter_by(id=detail.purchase_id)).first()
        purchase.paid_amount = max(round2(purchase.paid_amount) - round2(detail.amount), ZERO)
        payment.details.remove(detail)
    db.session.flush()


def create_payment(payload: dict, *, user_id: int | None) -> PurchasePayment:
    """
    Body: payment_date, vendor_id, mode, total_amount, details
    [{purchase_id, amount}], plus optional reference_no and notes.

    Each allocation is added to its purchase's paid_amount and may not
    exceed what is still outstanding on that purchase.
    """
    payload = payload or {}
    require_fields(payload, ("payment_date", "vendor_id", "mode", "total_amount"))
    payment_date = _payment_date(payload["payment_date"])
    vendor_id = _vendor_id(payload["vendor_id"])
    total = _positive_amount(payload["total_amount"], "total_amount")
    allocations = _allocations(payload.get("details"), vendor_id, total)

    payment = PurchasePayment(
        payment_no=next_document_number("PURCHASE_PAYMENT", payment_date),
        payment_date=payment_date,
        vendor_id=vendor_id,
        mode=str(payload["mode"]).strip().upper(),
        reference_no=payload.get("reference_no"),
        notes=payload.get("notes"),
        total_amount=total,
        created_by_id=user_id,
    )
    db.session.add(payment)
    _apply(payment, allocations)
    db.session.flush()
    logger.info("Payment %s of %s recorded for vendor %s", payment.payment_no, total, vendor_id)
    return payment


def update_payment(payment_id: int, payload: dict) -> PurchasePayment:
    """Header edits; a details list replaces every allocation and re-derives paid amounts."""
    payload = payload or {}
    payment = _payment_or_404(payment_id, lock=True)

    if payload.get("payment_date"):
        payment.payment_date = _payment_date(payload["payment_date"])
    if payload.get("mode"):
        payment.mode = str(payload["mode"]).strip().upper()
    for field in ("reference_no", "notes"):
        if field in payload:
            setattr(payment, field, payload[field])

    vendor_id = _vendor_id(payload["vendor_id"]) if payload.get("vendor_id") else payment.vendor_id
    total = (
        _positive_amount(payload["total_amount"], "total_amount")
        if payload.get("total_amount") is not None
        else round2(payment.total_amount)
    )
    details = payload.get("details")
    if details is None and (vendor_id != payment.vendor_id or total != round2(payment.total_amount)):
        raise ValidationError(
            "Changing the vendor or total requires new payment details",
            {"details": "is required"},
        )

    if details is not None:
        _reverse(payment)
        allocations = _allocations(details, vendor_id, total)
        payment.vendor_id = vendor_id
        payment.total_amount = total
        _apply(payment, allocations)

    db.session.flush()
    return payment


def delete_payment(payment_id: int) -> None:
    payment = _payment_or_404(payment_id, lock=True)
    _reverse(payment)
    db.session.delete(payment)
    db.session.flush()
    logger.info("Payment %s deleted", payment.payment_no)


def get_payment(payment_id: int) -> PurchasePayment:
    return _payment_or_404(payment_id)


def list_payments(*, filters: dict):
    """Filters: vendor_id, mode, search (payment or reference number)."""
    query = db.session.query(PurchasePayment)
    if filters.get("vendor_id"):
        query = query.filter(PurchasePayment.vendor_id == to_positive_int(filters["vendor_id"], "vendor_id"))
    if filters.get("mode"):
        query = query.filter(PurchasePayment.mode == str(filters["mode"]).strip().upper())
    if filters.get("search"):
        term = f"%{filters['search']}%"
        query = query.filter(
            PurchasePayment.payment_no.ilike(term) | PurchasePayment.reference_no.ilike(term)
        )
    return query.order_by(PurchasePayment.payment_date.desc(), PurchasePayment.id.desc())


def vendor_purchases(vendor_id: int, *, from_date=None, to_date=None) -> list[Purchase]:
    """A vendor's purchases in a date range, oldest first; what a payment can be allocated to."""
    vendor_id = _vendor_id(vendor_id)
    query = db.session.query(Purchase).filter(Purchase.vendor_id == vendor_id)
    if from_date:
        query = query.filter(Purchase.purchase_date >= from_date)
    if to_date:
        query = query.filter(Purchase.purchase_date <= to_date)
    return query.order_by(Purchase.purchase_date.asc(), Purchase.id.asc()).all()
