# Overview: Member wallet credits, debits, top-up approval and refund amounts.

"""
Wallet service.

INVARIANTS:
- Member.wallet_balance changes only together with a PAID WalletTransaction
  written in the same transaction.
- A debit never exceeds the current balance.
- PENDING credits (member top-up requests) do not touch the balance until
  an admin approves them.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from ..errors import BadRequestError, NotFoundError
from ..extensions import db
from ..models import Member, WalletTransaction
from ..money import ZERO, round2, to_decimal
from ..validation import to_money
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)

TYPE_CREDIT = "CREDIT"
TYPE_DEBIT = "DEBIT"

STATUS_PENDING = "PENDING"
STATUS_PAID = "PAID"
STATUS_FAILED = "FAILED"

METHOD_SYSTEM_CREDIT = "SYSTEM_CREDIT"
METHOD_WALLET = "WALLET"
METHOD_ADMIN = "ADMIN"


def calculate_refund_amount(rate, quantity) -> Decimal:
    """Refund for a skipped delivery: rate x quantity, or 0 when either is missing/non-positive."""
    rate = to_decimal(rate)
    if rate <= 0 or not quantity or quantity <= 0:
        return ZERO
    return round2(rate * quantity)


def get_member(member_id: int, *, lock: bool = False) -> Member:
    query = db.session.query(Member).filter_by(id=member_id)
    if lock:
        query = lock_for_update(query)
    member = query.first()
    if not member:
        raise NotFoundError(f"Member {member_id} not found")
    return member


def member_for_user(user) -> Member:
    member = db.session.query(Member).filter_by(user_id=user.id).first()
    if not member:
        raise NotFoundError("Member profile not found for this user")
    return member


def _positive_amount(amount) -> Decimal:
    value = to_money(amount, "amount")
    if value <= 0:
        raise BadRequestError("Amount must be greater than 0")
    return value


def credit_wallet(
    member: Member,
    amount,
    *,
    payment_method: str = METHOD_SYSTEM_CREDIT,
    reference_number: str | None = None,
    notes: str | None = None,
    processed_by_admin_id: int | None = None,
) -> WalletTransaction:
    """Apply a PAID credit and increase the balance."""
    value = _positive_amount(amount)
    txn = WalletTransaction(
        member_id=member.id,
        amount=value,
        type=TYPE_CREDIT,
        status=STATUS_PAID,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
        processed_by_admin_id=processed_by_admin_id,
    )
    member.wallet_balance = round2(to_decimal(member.wallet_balance) + value)
    db.session.add(txn)
    db.session.flush()
    logger.info("Wallet credit %s for member %s (%s)", value, member.id, reference_number)
    return txn


def debit_wallet(
    member: Member,
    amount,
    *,
    payment_method: str = METHOD_WALLET,
    reference_number: str | None = None,
    notes: str | None = None,
    processed_by_admin_id: int | None = None,
) -> WalletTransaction:
    """Apply a PAID debit. Raises BadRequestError if the balance is insufficient."""
    value = _positive_amount(amount)
    balance = to_decimal(member.wallet_balance)
    if value > balance:
        raise BadRequestError(f"Insufficient wallet balance: available {balance}, requested {value}")
    txn = WalletTransaction(
        member_id=member.id,
        amount=value,
        type=TYPE_DEBIT,
        status=STATUS_PAID,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
        processed_by_admin_id=processed_by_admin_id,
    )
    member.wallet_balance = round2(balance - value)
    db.session.add(txn)
    db.session.flush()
    logger.info("Wallet debit %s for member %s (%s)", value, member.id, reference_number)
    return txn


def request_topup(
    member: Member,
    amount,
    *,
    payment_method: str | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
) -> WalletTransaction:
    """Member asks for funds to be added; stays PENDING until approved."""
    txn = WalletTransaction(
        member_id=member.id,
        amount=_positive_amount(amount),
        type=TYPE_CREDIT,
        status=STATUS_PENDING,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
    )
    db.session.add(txn)
    db.session.flush()
    return txn


def _pending_topup(transaction_id: int) -> WalletTransaction:
    txn = lock_for_update(db.session.query(WalletTransaction).filter_by(id=transaction_id)).first()
    if not txn:
        raise NotFoundError(f"Wallet transaction {transaction_id} not found")
    if txn.status != STATUS_PENDING:
        raise BadRequestError(f"Transaction is already {txn.status}")
    if txn.type != TYPE_CREDIT:
        raise BadRequestError("Only credit top-up requests can be approved")
    return txn


def approve_topup(transaction_id: int, *, admin_id: int, notes: str | None = None) -> WalletTransaction:
    txn = _pending_topup(transaction_id)
    member = get_member(txn.member_id, lock=True)
    txn.status = STATUS_PAID
    txn.processed_by_admin_id = admin_id
    if notes:
        txn.notes = notes
    member.wallet_balance = round2(to_decimal(member.wallet_balance) + to_decimal(txn.amount))
    db.session.flush()
    logger.info("Top-up %s approved for member %s", txn.id, member.id)
    return txn


def reject_topup(transaction_id: int, *, admin_id: int, notes: str | None = None) -> WalletTransaction:
    txn = _pending_topup(transaction_id)
    txn.status = STATUS_FAILED
    txn.processed_by_admin_id = admin_id
    if notes:
        txn.notes = notes
    db.session.flush()
    return txn


def admin_add_funds(member_id: int, amount, *, admin_id: int, payment_method=None, reference_number=None, notes=None):
    member = get_member(member_id, lock=True)
    return credit_wallet(
        member,
        amount,
        payment_method=payment_method or METHOD_ADMIN,
        reference_number=reference_number,
        notes=notes,
        processed_by_admin_id=admin_id,
    )


def admin_remove_funds(member_id: int, amount, *, admin_id: int, payment_method=None, reference_number=None, notes=None):
    member = get_member(member_id, lock=True)
    return debit_wallet(
        member,
        amount,
        payment_method=payment_method or METHOD_ADMIN,
        reference_number=reference_number,
        notes=notes,
        processed_by_admin_id=admin_id,
    )


def list_transactions(*, member_id=None, status=None, txn_type=None):
    query = db.session.query(WalletTransaction)
    if member_id:
        query = query.filter(WalletTransaction.member_id == member_id)
    if status:
        query = query.filter(WalletTransaction.status == status)
    if txn_type:
        query = query.filter(WalletTransaction.type == txn_type)
    return query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())


def wallet_summary(member: Member) -> dict:
    pending = (
        db.session.query(db.func.coalesce(db.func.sum(WalletTransaction.amount), 0))
        .filter(
            WalletTransaction.member_id == member.id,
            WalletTransaction.status == STATUS_PENDING,
            WalletTransaction.type == TYPE_CREDIT,
        )
        .scalar()
    )
    return {
        "member_id": member.id,
        "member": member.name,
        "balance": float(round2(member.wallet_balance)),
        "pending_topups": float(round2(pending)),
    }
