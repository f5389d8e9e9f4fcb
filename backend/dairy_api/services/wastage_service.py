# Overview: Stock written off at a depot; ledger issue rows and stock recomputation.

from __future__ import annotations

import logging

from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import Depot, Vendor, Wastage, WastageDetail
from ..time_utils import parse_date
from ..validation import ValidationError, require_fields, to_int, to_positive_int
from . import stock_service
from .concurrency import lock_for_update
from .document_service import next_document_number

logger = logging.getLogger(__name__)


def _wastage_or_404(wastage_id: int) -> Wastage:
    wastage = lock_for_update(db.session.query(Wastage).filter_by(id=wastage_id)).first()
    if not wastage:
        raise NotFoundError("Wastage not found")
    return wastage


def _validate(payload: dict) -> dict:
    require_fields(payload, ("wastage_date", "vendor_id", "depot_id"))
    details = payload.get("details")
    if not isinstance(details, list) or not details:
        raise ValidationError("At least one wastage detail is required", {"details": "is required"})

    try:
        wastage_date = parse_date(payload["wastage_date"])
        invoice_date = parse_date(payload.get("invoice_date"))
    except ValueError:
        raise ValidationError("Invalid date", {"wastage_date": "invalid date"})

    vendor_id = to_positive_int(payload["vendor_id"], "vendor_id")
    depot_id = to_positive_int(payload["depot_id"], "depot_id")
    if not db.session.get(Vendor, vendor_id):
        raise NotFoundError("Vendor not found")
    if not db.session.get(Depot, depot_id):
        raise NotFoundError("Depot not found")

    return {
        "wastage_date": wastage_date,
        "invoice_no": payload.get("invoice_no"),
        "invoice_date": invoice_date,
        "vendor_id": vendor_id,
        "depot_id": depot_id,
    }


def _apply_details(wastage: Wastage, details: list) -> None:
    keys = set()
    for item in details:
        quantity = to_positive_int(item.get("quantity"), "quantity")
        variant = stock_service.get_variant(to_positive_int(item.get("variant_id"), "variant_id"), lock=True)
        if variant.depot_id != wastage.depot_id:
            raise BadRequestError(f"Variant {variant.id} does not belong to depot {wastage.depot_id}")
        if item.get("product_id") is not None and to_int(item["product_id"], "product_id") != variant.product_id:
            raise BadRequestError(f"product_id does not match variant {variant.id}")

        db.session.add(WastageDetail(
            wastage_id=wastage.id,
            product_id=variant.product_id,
            variant_id=variant.id,
            quantity=quantity,
        ))
        stock_service.post_ledger(
            variant=variant,
            transaction_date=wastage.wastage_date,
            module=stock_service.MODULE_WASTAGE,
            foreign_key=wastage.id,
            issued_qty=quantity,
        )
        keys.add((variant.product_id, variant.id, variant.depot_id))
    stock_service.update_stock_for_keys(keys)


def create_wastage(payload: dict, *, user_id: int | None) -> Wastage:
    payload = payload or {}
    header = _validate(payload)
    wastage = Wastage(
        wastage_no=next_document_number("WASTAGE", header["wastage_date"]),
        created_by_id=user_id,
        **header,
    )
    db.session.add(wastage)
    db.session.flush()
    _apply_details(wastage, payload["details"])
    db.session.flush()
    logger.info("Wastage %s recorded at depot %s", wastage.wastage_no, wastage.depot_id)
    return wastage


def _roll_back_stock(wastage: Wastage) -> None:
    keys = stock_service.delete_ledger_for(stock_service.MODULE_WASTAGE, wastage.id)
    stock_service.update_stock_for_keys(keys)
    for detail in list(wastage.details):
        db.session.delete(detail)
    db.session.flush()
    db.session.expire(wastage, ["details"])


def update_wastage(wastage_id: int, payload: dict) -> Wastage:
    payload = payload or {}
    wastage = _wastage_or_404(wastage_id)
    header = _validate(payload)
    _roll_back_stock(wastage)
    db.session.refresh(wastage)
    for key, value in header.items():
        setattr(wastage, key, value)
    db.session.flush()
    _apply_details(wastage, payload["details"])
    db.session.flush()
    db.session.refresh(wastage)
    return wastage


def delete_wastage(wastage_id: int) -> None:
    wastage = _wastage_or_404(wastage_id)
    _roll_back_stock(wastage)
    db.session.delete(wastage)
    db.session.flush()


def list_wastages(*, filters: dict):
    query = db.session.query(Wastage)
    if filters.get("depot_id"):
        query = query.filter(Wastage.depot_id == to_positive_int(filters["depot_id"], "depot_id"))
    if filters.get("vendor_id"):
        query = query.filter(Wastage.vendor_id == to_positive_int(filters["vendor_id"], "vendor_id"))
    if filters.get("search"):
        query = query.filter(Wastage.wastage_no.ilike(f"%{filters['search']}%"))
    return query.order_by(Wastage.wastage_date.desc(), Wastage.id.desc())


def get_wastage(wastage_id: int) -> Wastage:
    wastage = db.session.get(Wastage, wastage_id)
    if not wastage:
        raise NotFoundError("Wastage not found")
    return wastage
