# Overview: Service-layer operations for delivery schedule entries; skips, refunds and agency runs.

"""
Delivery schedule entries.

STATUSES:
- PENDING: scheduled, not yet handled
- DELIVERED / NOT_DELIVERED: outcome reported by the agency
- CANCELLED: subscription cancelled
- SKIPPED: skipped without refund
- SKIP_BY_CUSTOMER: skipped at the member's request, refunded to the wallet
- INDRAAI_DELIVERY / TRANSFER_TO_AGENT: handed over outside the normal run

REFUNDS: a customer skip credits rate x quantity to the member wallet as a
PAID CREDIT with payment method SYSTEM_CREDIT.
"""
from __future__ import annotations

import logging

from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..extensions import db
from ..models import Agency, DeliveryScheduleEntry, Member
from ..permissions import ROLE_ADMIN, ROLE_AGENCY
from ..time_utils import today
from ..validation import ValidationError, to_positive_int
from . import wallet_service
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)

STATUS_PENDING = "PENDING"
STATUS_DELIVERED = "DELIVERED"
STATUS_NOT_DELIVERED = "NOT_DELIVERED"
STATUS_CANCELLED = "CANCELLED"
STATUS_SKIPPED = "SKIPPED"
STATUS_SKIP_BY_CUSTOMER = "SKIP_BY_CUSTOMER"
STATUS_INDRAAI_DELIVERY = "INDRAAI_DELIVERY"
STATUS_TRANSFER_TO_AGENT = "TRANSFER_TO_AGENT"

DELIVERY_STATUSES = {
    STATUS_PENDING,
    STATUS_DELIVERED,
    STATUS_NOT_DELIVERED,
    STATUS_CANCELLED,
    STATUS_SKIPPED,
    STATUS_SKIP_BY_CUSTOMER,
    STATUS_INDRAAI_DELIVERY,
    STATUS_TRANSFER_TO_AGENT,
}

# Statuses an agency may report from the field
AGENCY_STATUSES = {
    STATUS_PENDING,
    STATUS_DELIVERED,
    STATUS_NOT_DELIVERED,
    STATUS_INDRAAI_DELIVERY,
    STATUS_TRANSFER_TO_AGENT,
}


def _entry_or_404(entry_id: int) -> DeliveryScheduleEntry:
    entry = lock_for_update(db.session.query(DeliveryScheduleEntry).filter_by(id=entry_id)).first()
    if not entry:
        raise NotFoundError("Delivery entry not found")
    return entry


def _parse_status(raw, allowed=DELIVERY_STATUSES) -> str:
    status = str(raw or "").strip().upper()
    if status not in allowed:
        raise ValidationError(f"Invalid delivery status: {raw}", {"status": "invalid"})
    return status


def _refund_entry(entry: DeliveryScheduleEntry, reference: str, *, admin_id: int | None = None):
    subscription = entry.subscription
    amount = wallet_service.calculate_refund_amount(subscription.rate if subscription else 0, entry.quantity)
    if amount <= 0:
        return None
    member = wallet_service.get_member(entry.member_id, lock=True)
    txn = wallet_service.credit_wallet(
        member,
        amount,
        payment_method=wallet_service.METHOD_SYSTEM_CREDIT,
        reference_number=reference,
        notes=f"Refund for skipped delivery on {entry.delivery_date.isoformat()}",
        processed_by_admin_id=admin_id,
    )
    entry.wallet_transaction_id = txn.id
    return txn


def skip_delivery(entry_id: int, *, user) -> tuple[DeliveryScheduleEntry, object]:
    """
    Member skips one future PENDING delivery and is refunded to the wallet.

    Raises:
        ForbiddenError: entry belongs to another member
        BadRequestError: entry is not PENDING or not strictly after today
    """
    entry = _entry_or_404(entry_id)
    member = db.session.query(Member).filter_by(user_id=user.id).first()
    if not member or entry.member_id != member.id:
        raise ForbiddenError("Not authorized to skip this delivery")
    if entry.delivery_date <= today():
        raise BadRequestError("Only future deliveries can be skipped")
    if entry.status != STATUS_PENDING:
        raise BadRequestError(f"Delivery is already {entry.status}")

    entry.status = STATUS_SKIP_BY_CUSTOMER
    txn = _refund_entry(entry, f"SKIP_DELIVERY_{entry.id}")
    db.session.flush()
    logger.info("Delivery %s skipped by member %s", entry.id, member.id)
    return entry, txn


def admin_update_status(entry_id: int, payload: dict, *, admin) -> DeliveryScheduleEntry:
    """
    Admin override of a delivery: status, admin_notes and optional agent_id.
    Moving to SKIP_BY_CUSTOMER refunds the wallet once.
    """
    payload = payload or {}
    entry = _entry_or_404(entry_id)
    status = _parse_status(payload.get("status"))

    if payload.get("agent_id") not in (None, ""):
        agent_id = to_positive_int(payload["agent_id"], "agent_id")
        if not db.session.get(Agency, agent_id):
            raise NotFoundError("Agency not found")
        entry.agent_id = agent_id
    if "admin_notes" in payload:
        entry.admin_notes = payload.get("admin_notes")

    previous = entry.status
    entry.status = status
    if (
        status == STATUS_SKIP_BY_CUSTOMER
        and previous != STATUS_SKIP_BY_CUSTOMER
        and entry.wallet_transaction_id is None
    ):
        _refund_entry(entry, f"ADMIN_DELIVERY_{entry.id}", admin_id=admin.id)

    db.session.flush()
    return entry


def _agency_for_user(user) -> Agency:
    agency = db.session.query(Agency).filter_by(user_id=user.id).first()
    if not agency:
        raise NotFoundError("Agency profile not found for this user")
    return agency


def agency_deliveries_by_date(*, user, on_date, agency_id=None) -> list[DeliveryScheduleEntry]:
    """
    ADMIN must name the agency (no agency -> empty run); AGENCY users get
    their own run; every other role is refused.
    """
    if user.role == ROLE_ADMIN:
        if not agency_id:
            return []
        agency_id = to_positive_int(agency_id, "agency_id")
    elif user.role == ROLE_AGENCY:
        agency_id = _agency_for_user(user).id
    else:
        raise ForbiddenError("Only agencies and admins can view delivery runs")

    return (
        db.session.query(DeliveryScheduleEntry)
        .filter(
            DeliveryScheduleEntry.agent_id == agency_id,
            DeliveryScheduleEntry.delivery_date == on_date,
        )
        .order_by(DeliveryScheduleEntry.delivery_address_id, DeliveryScheduleEntry.id)
        .all()
    )


def agency_update_status(entry_id: int, status, *, user) -> DeliveryScheduleEntry:
    """Agency reports the outcome of one of its own deliveries. Admins use the admin endpoint."""
    if user.role != ROLE_AGENCY:
        raise ForbiddenError("Only agencies can update delivery status here")
    agency = _agency_for_user(user)
    entry = _entry_or_404(entry_id)
    if entry.agent_id != agency.id:
        raise ForbiddenError("This delivery is not assigned to your agency")
    if entry.status in {STATUS_CANCELLED, STATUS_SKIP_BY_CUSTOMER}:
        raise BadRequestError(f"Delivery is {entry.status} and cannot be updated")

    entry.status = _parse_status(status, AGENCY_STATUSES)
    db.session.flush()
    return entry


def list_deliveries(*, filters: dict):
    query = db.session.query(DeliveryScheduleEntry)
    if filters.get("date"):
        query = query.filter(DeliveryScheduleEntry.delivery_date == filters["date"])
    if filters.get("from_date"):
        query = query.filter(DeliveryScheduleEntry.delivery_date >= filters["from_date"])
    if filters.get("to_date"):
        query = query.filter(DeliveryScheduleEntry.delivery_date <= filters["to_date"])
    if filters.get("agency_id"):
        query = query.filter(DeliveryScheduleEntry.agent_id == to_positive_int(filters["agency_id"], "agency_id"))
    if filters.get("member_id"):
        query = query.filter(DeliveryScheduleEntry.member_id == to_positive_int(filters["member_id"], "member_id"))
    if filters.get("subscription_id"):
        subscription_id = to_positive_int(filters["subscription_id"], "subscription_id")
        query = query.filter(DeliveryScheduleEntry.subscription_id == subscription_id)
    if filters.get("status"):
        query = query.filter(DeliveryScheduleEntry.status == str(filters["status"]).upper())
    return query.order_by(DeliveryScheduleEntry.delivery_date.asc(), DeliveryScheduleEntry.id.asc())


def member_deliveries(*, user, filters: dict):
    member = db.session.query(Member).filter_by(user_id=user.id).first()
    if not member:
        raise NotFoundError("Member profile not found")
    return list_deliveries(filters={**filters, "member_id": member.id})
