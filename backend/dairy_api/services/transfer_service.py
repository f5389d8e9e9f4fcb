# Overview: Depot-to-depot stock transfers with paired ledger rows.

"""
Inter-depot transfer service.

Each transfer detail moves `quantity` of a product from a variant at the
source depot to a variant of the same product at the destination depot:
- an issue row at the source and a receive row at the destination are
  written to the stock ledger (module "transfer", foreign_key = transfer id)
- both variants' closing_qty are recomputed from the ledger

EDIT/DELETE: the transfer's ledger rows are removed and stock recomputed
(giving the stock back) before new details are applied.
"""
from __future__ import annotations

import logging

from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import Depot, Transfer, TransferDetail
from ..time_utils import parse_date, today
from ..validation import ValidationError, to_positive_int
from . import stock_service
from .concurrency import lock_for_update
from .document_service import next_document_number

logger = logging.getLogger(__name__)


def _transfer_or_404(transfer_id: int) -> Transfer:
    transfer = lock_for_update(db.session.query(Transfer).filter_by(id=transfer_id)).first()
    if not transfer:
        raise NotFoundError("Transfer not found")
    return transfer


def _validate_header(payload: dict) -> tuple[int, int]:
    from_depot_id = to_positive_int(payload.get("from_depot_id"), "from_depot_id")
    to_depot_id = to_positive_int(payload.get("to_depot_id"), "to_depot_id")
    if from_depot_id == to_depot_id:
        raise BadRequestError("Source and destination depots must be different")
    for depot_id in (from_depot_id, to_depot_id):
        if not db.session.get(Depot, depot_id):
            raise NotFoundError(f"Depot {depot_id} not found")
    details = payload.get("details")
    if not isinstance(details, list) or not details:
        raise ValidationError("At least one transfer detail is required", {"details": "is required"})
    return from_depot_id, to_depot_id


def _apply_details(transfer: Transfer, details: list) -> None:
    for item in details:
        quantity = to_positive_int(item.get("quantity"), "quantity")
        source = stock_service.get_variant(
            to_positive_int(item.get("from_depot_variant_id"), "from_depot_variant_id"), lock=True
        )
        target = stock_service.get_variant(
            to_positive_int(item.get("to_depot_variant_id"), "to_depot_variant_id"), lock=True
        )
        if source.depot_id != transfer.from_depot_id:
            raise BadRequestError(f"Variant {source.id} does not belong to the source depot")
        if target.depot_id != transfer.to_depot_id:
            raise BadRequestError(f"Variant {target.id} does not belong to the destination depot")
        if source.product_id != target.product_id:
            raise BadRequestError("Source and destination variants must be of the same product")

        stock_service.require_available(source, quantity)

        db.session.add(TransferDetail(
            transfer_id=transfer.id,
            from_depot_variant_id=source.id,
            to_depot_variant_id=target.id,
            quantity=quantity,
        ))
        stock_service.post_ledger(
            variant=source,
            transaction_date=transfer.transfer_date,
            module=stock_service.MODULE_TRANSFER,
            foreign_key=transfer.id,
            issued_qty=quantity,
        )
        stock_service.post_ledger(
            variant=target,
            transaction_date=transfer.transfer_date,
            module=stock_service.MODULE_TRANSFER,
            foreign_key=transfer.id,
            received_qty=quantity,
        )
        stock_service.update_variant_stock(source.product_id, source.id, source.depot_id)
        stock_service.update_variant_stock(target.product_id, target.id, target.depot_id)


def _transfer_date(payload: dict):
    try:
        return parse_date(payload.get("transfer_date"))
    except ValueError:
        raise ValidationError("Invalid date", {"transfer_date": "invalid date"})


def create_transfer(payload: dict, *, user_id: int | None) -> Transfer:
    payload = payload or {}
    from_depot_id, to_depot_id = _validate_header(payload)
    transfer_date = _transfer_date(payload) or today()

    transfer = Transfer(
        transfer_no=next_document_number("TRANSFER", transfer_date),
        transfer_date=transfer_date,
        from_depot_id=from_depot_id,
        to_depot_id=to_depot_id,
        notes=payload.get("notes"),
        created_by_id=user_id,
    )
    db.session.add(transfer)
    db.session.flush()

    _apply_details(transfer, payload["details"])
    db.session.flush()
    logger.info("Transfer %s posted (%d lines)", transfer.transfer_no, len(payload["details"]))
    return transfer


def _roll_back_stock(transfer: Transfer) -> None:
    """Undo a transfer's ledger rows; refused once the receiving depot has issued that stock."""
    received = {}
    for detail in transfer.details:
        received[detail.to_depot_variant_id] = received.get(detail.to_depot_variant_id, 0) + detail.quantity
    for variant_id, quantity in received.items():
        target = stock_service.get_variant(variant_id, lock=True)
        if stock_service.ledger_balance(target.product_id, target.id, target.depot_id) < quantity:
            raise BadRequestError(
                f"Stock received by variant {target.id} from this transfer has already been issued"
            )

    keys = stock_service.delete_ledger_for(stock_service.MODULE_TRANSFER, transfer.id)
    stock_service.update_stock_for_keys(keys)
    for detail in list(transfer.details):
        db.session.delete(detail)
    db.session.flush()
    db.session.expire(transfer, ["details"])


def update_transfer(transfer_id: int, payload: dict) -> Transfer:
    payload = payload or {}
    transfer = _transfer_or_404(transfer_id)
    from_depot_id, to_depot_id = _validate_header(payload)

    _roll_back_stock(transfer)
    db.session.refresh(transfer)

    transfer.from_depot_id = from_depot_id
    transfer.to_depot_id = to_depot_id
    transfer.transfer_date = _transfer_date(payload) or transfer.transfer_date
    transfer.notes = payload.get("notes", transfer.notes)
    db.session.flush()

    _apply_details(transfer, payload["details"])
    db.session.flush()
    db.session.refresh(transfer)
    return transfer


def delete_transfer(transfer_id: int) -> None:
    transfer = _transfer_or_404(transfer_id)
    _roll_back_stock(transfer)
    db.session.delete(transfer)
    db.session.flush()
    logger.info("Transfer %s deleted", transfer.transfer_no)


def list_transfers(*, filters: dict):
    query = db.session.query(Transfer)
    if filters.get("depot_id"):
        depot_id = to_positive_int(filters["depot_id"], "depot_id")
        query = query.filter(db.or_(Transfer.from_depot_id == depot_id, Transfer.to_depot_id == depot_id))
    if filters.get("from_date"):
        query = query.filter(Transfer.transfer_date >= filters["from_date"])
    if filters.get("to_date"):
        query = query.filter(Transfer.transfer_date <= filters["to_date"])
    if filters.get("search"):
        query = query.filter(Transfer.transfer_no.ilike(f"%{filters['search']}%"))
    return query.order_by(Transfer.transfer_date.desc(), Transfer.id.desc())


def get_transfer(transfer_id: int) -> Transfer:
    transfer = db.session.get(Transfer, transfer_id)
    if not transfer:
        raise NotFoundError("Transfer not found")
    return transfer
