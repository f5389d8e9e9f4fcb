# Overview: Stock received from vendors; ledger receipt rows and stock recomputation.

from __future__ import annotations

import logging

from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import Depot, Purchase, PurchaseDetail, PurchasePaymentDetail, Vendor
from ..time_utils import parse_date, today
from ..validation import ValidationError, require_fields, to_money, to_positive_int
from . import stock_service
from .concurrency import lock_for_update
from .document_service import next_document_number

logger = logging.getLogger(__name__)


def create_purchase(payload: dict, *, user_id: int | None) -> Purchase:
    payload = payload or {}
    require_fields(payload, ("vendor_id", "depot_id"))
    details = payload.get("details")
    if not isinstance(details, list) or not details:
        raise ValidationError("At least one purchase detail is required", {"details": "is required"})

    vendor_id = to_positive_int(payload["vendor_id"], "vendor_id")
    depot_id = to_positive_int(payload["depot_id"], "depot_id")
    if not db.session.get(Vendor, vendor_id):
        raise NotFoundError("Vendor not found")
    if not db.session.get(Depot, depot_id):
        raise NotFoundError("Depot not found")

    try:
        purchase_date = parse_date(payload.get("purchase_date")) or today()
        invoice_date = parse_date(payload.get("invoice_date"))
    except ValueError:
        raise ValidationError("Invalid date", {"purchase_date": "invalid date"})

    purchase = Purchase(
        purchase_no=next_document_number("PURCHASE", purchase_date),
        purchase_date=purchase_date,
        invoice_no=payload.get("invoice_no"),
        invoice_date=invoice_date,
        vendor_id=vendor_id,
        depot_id=depot_id,
        created_by_id=user_id,
    )
    db.session.add(purchase)
    db.session.flush()

    keys = set()
    for item in details:
        quantity = to_positive_int(item.get("quantity"), "quantity")
        variant = stock_service.get_variant(to_positive_int(item.get("variant_id"), "variant_id"), lock=True)
        if variant.depot_id != depot_id:
            raise BadRequestError(f"Variant {variant.id} does not belong to depot {depot_id}")
        rate = item.get("purchase_rate")
        db.session.add(PurchaseDetail(
            purchase_id=purchase.id,
            product_id=variant.product_id,
            variant_id=variant.id,
            quantity=quantity,
            purchase_rate=to_money(rate, "purchase_rate") if rate not in (None, "") else None,
        ))
        stock_service.post_ledger(
            variant=variant,
            transaction_date=purchase_date,
            module=stock_service.MODULE_PURCHASE,
            foreign_key=purchase.id,
            received_qty=quantity,
        )
        keys.add((variant.product_id, variant.id, variant.depot_id))

    stock_service.update_stock_for_keys(keys)
    db.session.flush()
    logger.info("Purchase %s received at depot %s", purchase.purchase_no, depot_id)
    return purchase


def delete_purchase(purchase_id: int) -> None:
    """Remove a purchase and its receipts; refused if that would leave negative stock."""
    purchase = lock_for_update(db.session.query(Purchase).filter_by(id=purchase_id)).first()
    if not purchase:
        raise NotFoundError("Purchase not found")
    if db.session.query(PurchasePaymentDetail.id).filter_by(purchase_id=purchase.id).first():
        raise BadRequestError("Purchase has payments recorded against it and cannot be deleted")

    keys = stock_service.delete_ledger_for(stock_service.MODULE_PURCHASE, purchase.id)
    for product_id, variant_id, depot_id in keys:
        if stock_service.update_variant_stock(product_id, variant_id, depot_id) < 0:
            raise BadRequestError("Stock from this purchase has already been issued")
    db.session.delete(purchase)
    db.session.flush()


def list_purchases(*, filters: dict):
    query = db.session.query(Purchase)
    if filters.get("depot_id"):
        query = query.filter(Purchase.depot_id == to_positive_int(filters["depot_id"], "depot_id"))
    if filters.get("vendor_id"):
        query = query.filter(Purchase.vendor_id == to_positive_int(filters["vendor_id"], "vendor_id"))
    if filters.get("search"):
        query = query.filter(Purchase.purchase_no.ilike(f"%{filters['search']}%"))
    return query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc())


def get_purchase(purchase_id: int) -> Purchase:
    purchase = db.session.get(Purchase, purchase_id)
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase
