# Overview: Stock ledger bookkeeping and ledger-derived closing stock for depot variants.

"""
Stock ledger service.

The ledger is the source of truth for stock. Every document that moves stock
(transfer, purchase, wastage, opening balance, manual adjustment) writes
ledger rows keyed by module + foreign_key, then calls update_variant_stock()
for each touched (product, variant, depot) key so that
DepotProductVariant.closing_qty always equals sum(received) - sum(issued).
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from sqlalchemy import func

from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import DepotProductVariant, StockLedger
from ..time_utils import today
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)

MODULE_TRANSFER = "transfer"
MODULE_PURCHASE = "purchase"
MODULE_WASTAGE = "wastage"
MODULE_OPENING = "opening"
MODULE_ADJUSTMENT = "adjustment"

LEDGER_MODULES = {MODULE_TRANSFER, MODULE_PURCHASE, MODULE_WASTAGE, MODULE_OPENING, MODULE_ADJUSTMENT}

StockKey = tuple[int, int, int]  # (product_id, variant_id, depot_id)


def get_variant(variant_id: int, *, lock: bool = False) -> DepotProductVariant:
    query = db.session.query(DepotProductVariant).filter_by(id=variant_id)
    if lock:
        query = lock_for_update(query)
    variant = query.first()
    if not variant:
        raise NotFoundError(f"Depot product variant {variant_id} not found")
    return variant


def post_ledger(
    *,
    variant: DepotProductVariant,
    transaction_date: date | None,
    module: str,
    foreign_key: int,
    received_qty: int = 0,
    issued_qty: int = 0,
) -> StockLedger:
    if module not in LEDGER_MODULES:
        raise BadRequestError(f"Unknown ledger module: {module}")
    row = StockLedger(
        product_id=variant.product_id,
        variant_id=variant.id,
        depot_id=variant.depot_id,
        transaction_date=transaction_date or today(),
        received_qty=received_qty,
        issued_qty=issued_qty,
        module=module,
        foreign_key=foreign_key,
    )
    db.session.add(row)
    return row


def delete_ledger_for(module: str, foreign_key: int) -> set[StockKey]:
    """Remove a document's ledger rows and return the stock keys they touched."""
    rows = db.session.query(StockLedger).filter_by(module=module, foreign_key=foreign_key).all()
    keys = {(r.product_id, r.variant_id, r.depot_id) for r in rows}
    for row in rows:
        db.session.delete(row)
    db.session.flush()
    return keys


def ledger_balance(product_id: int, variant_id: int, depot_id: int) -> int:
    received, issued = (
        db.session.query(
            func.coalesce(func.sum(StockLedger.received_qty), 0),
            func.coalesce(func.sum(StockLedger.issued_qty), 0),
        )
        .filter(
            StockLedger.product_id == product_id,
            StockLedger.variant_id == variant_id,
            StockLedger.depot_id == depot_id,
        )
        .one()
    )
    return int(received) - int(issued)


def update_variant_stock(product_id: int, variant_id: int, depot_id: int) -> int:
    """Recompute closing_qty for one key from the ledger and store it on the variant."""
    db.session.flush()
    closing = ledger_balance(product_id, variant_id, depot_id)
    variant = db.session.get(DepotProductVariant, variant_id)
    if variant is not None and variant.depot_id == depot_id:
        variant.closing_qty = closing
    return closing


def update_stock_for_keys(keys: Iterable[StockKey]) -> None:
    for product_id, variant_id, depot_id in sorted(set(keys)):
        update_variant_stock(product_id, variant_id, depot_id)


def require_available(variant: DepotProductVariant, quantity: int) -> None:
    if (variant.closing_qty or 0) < quantity:
        raise BadRequestError(
            f"Insufficient stock for variant {variant.id} ({variant.name}): "
            f"available {variant.closing_qty}, requested {quantity}"
        )


def record_opening_stock(variant: DepotProductVariant, quantity: int) -> None:
    """Opening balance for a newly created variant."""
    if quantity <= 0:
        return
    db.session.flush()
    post_ledger(
        variant=variant,
        transaction_date=today(),
        module=MODULE_OPENING,
        foreign_key=variant.id,
        received_qty=quantity,
    )
    update_variant_stock(variant.product_id, variant.id, variant.depot_id)


def adjust_to(variant: DepotProductVariant, target_qty: int) -> None:
    """Book the difference between the ledger balance and target_qty as an adjustment row."""
    current = ledger_balance(variant.product_id, variant.id, variant.depot_id)
    delta = target_qty - current
    if delta == 0:
        return
    post_ledger(
        variant=variant,
        transaction_date=today(),
        module=MODULE_ADJUSTMENT,
        foreign_key=variant.id,
        received_qty=delta if delta > 0 else 0,
        issued_qty=-delta if delta < 0 else 0,
    )
    update_variant_stock(variant.product_id, variant.id, variant.depot_id)
    logger.info("Stock adjusted for variant %s by %s", variant.id, delta)


def recompute_all() -> int:
    """Rebuild closing_qty for every variant from the ledger; returns the number of variants."""
    count = 0
    for variant in db.session.query(DepotProductVariant).all():
        update_variant_stock(variant.product_id, variant.id, variant.depot_id)
        count += 1
    return count


def list_ledger(*, depot_id=None, variant_id=None, product_id=None, module=None, from_date=None, to_date=None):
    query = db.session.query(StockLedger)
    if depot_id:
        query = query.filter(StockLedger.depot_id == depot_id)
    if variant_id:
        query = query.filter(StockLedger.variant_id == variant_id)
    if product_id:
        query = query.filter(StockLedger.product_id == product_id)
    if module:
        query = query.filter(StockLedger.module == module)
    if from_date:
        query = query.filter(StockLedger.transaction_date >= from_date)
    if to_date:
        query = query.filter(StockLedger.transaction_date <= to_date)
    return query.order_by(StockLedger.transaction_date.desc(), StockLedger.id.desc())
