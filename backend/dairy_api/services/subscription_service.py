# Overview: Service-layer operations for subscriptions; listing, edits, cancellation, renewal and agency assignment.

from __future__ import annotations

import logging
from collections import OrderedDict

from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..extensions import db
from ..models import Agency, DeliveryAddress, DeliveryScheduleEntry, Member, Subscription
from ..money import ZERO
from ..permissions import ROLE_ADMIN
from ..time_utils import parse_iso_datetime, today
from ..validation import ValidationError, to_int, to_money, to_positive_int
from . import order_service
from .concurrency import lock_for_update

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = {None, "PENDING", "FAILED", "CANCELLED"}
REASSIGNABLE_ENTRY_STATUSES = ("PENDING", "NOT_DELIVERED")


def _subscription_or_404(subscription_id: int, *, lock: bool = False) -> Subscription:
    query = db.session.query(Subscription).filter_by(id=subscription_id)
    if lock:
        query = lock_for_update(query)
    subscription = query.first()
    if not subscription:
        raise NotFoundError("Subscription not found")
    return subscription


def _ensure_owner(subscription: Subscription, user) -> None:
    if user.role == ROLE_ADMIN:
        return
    if subscription.member is None or subscription.member.user_id != user.id:
        raise ForbiddenError("Not authorized to access this subscription")


def get_subscription(subscription_id: int, user) -> Subscription:
    subscription = _subscription_or_404(subscription_id)
    _ensure_owner(subscription, user)
    return subscription


def list_subscriptions(*, user, filters: dict):
    query = db.session.query(Subscription).join(Member, Subscription.member_id == Member.id)
    if user.role != ROLE_ADMIN:
        query = query.filter(Member.user_id == user.id)
    elif filters.get("member_id"):
        query = query.filter(Subscription.member_id == to_positive_int(filters["member_id"], "member_id"))

    if filters.get("agency_id"):
        query = query.filter(Subscription.agency_id == to_positive_int(filters["agency_id"], "agency_id"))
    if filters.get("product_id"):
        query = query.filter(Subscription.product_id == to_positive_int(filters["product_id"], "product_id"))
    if filters.get("payment_status"):
        query = query.filter(Subscription.payment_status == str(filters["payment_status"]).upper())

    expiry_status = str(filters.get("expiry_status") or "").upper()
    if expiry_status == "ACTIVE":
        query = query.filter(Subscription.expiry_date >= today())
    elif expiry_status == "EXPIRED":
        query = query.filter(Subscription.expiry_date < today())

    return query.order_by(Subscription.created_at.desc(), Subscription.id.desc())


def create_subscription(*, user, payload: dict):
    """A single subscription is a one-line order; returns (order, subscription)."""
    payload = dict(payload or {})
    order_payload = {
        key: payload.pop(key)
        for key in (
            "member_id",
            "wallet_amount",
            "payment_mode",
            "payment_reference_no",
            "payment_date",
        )
        if key in payload
    }
    order_payload["subscriptions"] = [payload]
    order = order_service.create_order_with_subscriptions(user=user, payload=order_payload)
    return order, order.subscriptions[0]


def renew_subscription(subscription_id: int, *, user, payload: dict | None = None):
    subscription = get_subscription(subscription_id, user)
    line = order_service.renewal_payload(subscription)
    payload = dict(payload or {})
    for key in ("period", "qty", "alt_qty", "start_date", "delivery_address_id"):
        if payload.get(key) is not None:
            line[key] = payload.pop(key)
    payload.update(line)
    if user.role == ROLE_ADMIN:
        payload.setdefault("member_id", subscription.member_id)
    return create_subscription(user=user, payload=payload)


def _reassign_entries(subscription_ids, agency_id) -> int:
    return (
        db.session.query(DeliveryScheduleEntry)
        .filter(
            DeliveryScheduleEntry.subscription_id.in_(list(subscription_ids)),
            DeliveryScheduleEntry.status.in_(REASSIGNABLE_ENTRY_STATUSES),
        )
        .update({DeliveryScheduleEntry.agent_id: agency_id}, synchronize_session="fetch")
    )


def update_subscription(subscription_id: int, payload: dict, *, user) -> Subscription:
    """
    Admin edits: delivery_instructions, payment fields, received_amount,
    agency_id, qty/alt_qty, delivery_address_id.

    Changing the agency or address also updates the subscription's
    not-yet-delivered entries.
    """
    payload = payload or {}
    subscription = _subscription_or_404(subscription_id, lock=True)
    _ensure_owner(subscription, user)

    if user.role != ROLE_ADMIN:
        allowed = {"delivery_instructions"}
        extra = set(payload) - allowed
        if extra:
            raise ForbiddenError(f"Members may only update: {', '.join(sorted(allowed))}")

    if "delivery_instructions" in payload:
        subscription.delivery_instructions = payload.get("delivery_instructions")

    if payload.get("payment_mode"):
        mode = str(payload["payment_mode"]).upper()
        if mode not in order_service.PAYMENT_MODES:
            raise ValidationError(f"Invalid payment mode: {mode}", {"payment_mode": "invalid"})
        subscription.payment_mode = mode
    if "payment_reference_no" in payload:
        subscription.payment_reference_no = payload.get("payment_reference_no")
    if payload.get("payment_date"):
        try:
            subscription.payment_date = parse_iso_datetime(payload["payment_date"])
        except ValueError:
            raise ValidationError("payment_date must be an ISO datetime", {"payment_date": "invalid"})
    if payload.get("payment_status"):
        status = str(payload["payment_status"]).upper()
        if status not in order_service.PAYMENT_STATUSES:
            raise ValidationError(f"Invalid payment status: {status}", {"payment_status": "invalid"})
        subscription.payment_status = status
    if payload.get("received_amount") not in (None, ""):
        received = to_money(payload["received_amount"], "received_amount")
        if received < ZERO:
            raise ValidationError("received_amount must be >= 0", {"received_amount": "must be >= 0"})
        subscription.received_amount = received

    if "agency_id" in payload:
        agency_id = payload.get("agency_id")
        if agency_id not in (None, ""):
            agency_id = to_positive_int(agency_id, "agency_id")
            if not db.session.get(Agency, agency_id):
                raise NotFoundError("Agency not found")
        else:
            agency_id = None
        subscription.agency_id = agency_id
        _reassign_entries([subscription.id], agency_id)

    if payload.get("qty") is not None:
        subscription.qty = to_positive_int(payload["qty"], "qty")
    if "alt_qty" in payload:
        alt_qty = payload.get("alt_qty")
        subscription.alt_qty = to_int(alt_qty, "alt_qty") if alt_qty not in (None, "") else None

    if payload.get("delivery_address_id"):
        address = db.session.get(DeliveryAddress, to_positive_int(payload["delivery_address_id"], "delivery_address_id"))
        if not address or address.member_id != subscription.member_id:
            raise NotFoundError("Delivery address not found")
        subscription.delivery_address_id = address.id
        (
            db.session.query(DeliveryScheduleEntry)
            .filter(
                DeliveryScheduleEntry.subscription_id == subscription.id,
                DeliveryScheduleEntry.status == "PENDING",
            )
            .update({DeliveryScheduleEntry.delivery_address_id: address.id}, synchronize_session="fetch")
        )

    db.session.flush()
    return subscription


def cancel_subscription(subscription_id: int, *, user) -> Subscription:
    """Cancel an unpaid subscription and its remaining PENDING deliveries."""
    subscription = _subscription_or_404(subscription_id, lock=True)
    _ensure_owner(subscription, user)

    if subscription.payment_status not in CANCELLABLE_STATUSES:
        raise BadRequestError(
            f"Subscription with payment status {subscription.payment_status} cannot be cancelled"
        )

    subscription.payment_status = order_service.PAYMENT_CANCELLED
    cancelled = (
        db.session.query(DeliveryScheduleEntry)
        .filter(
            DeliveryScheduleEntry.subscription_id == subscription.id,
            DeliveryScheduleEntry.status == "PENDING",
            DeliveryScheduleEntry.delivery_date >= today(),
        )
        .update({DeliveryScheduleEntry.status: "CANCELLED"}, synchronize_session="fetch")
    )
    db.session.flush()
    logger.info("Subscription %s cancelled (%d deliveries)", subscription.id, cancelled)
    return subscription


def bulk_assign_agency(subscription_ids, agency_id) -> dict:
    if not isinstance(subscription_ids, list) or not subscription_ids:
        raise ValidationError("subscription_ids must be a non-empty list", {"subscription_ids": "is required"})
    ids = [to_positive_int(value, "subscription_ids") for value in subscription_ids]
    agency_id = to_positive_int(agency_id, "agency_id")
    if not db.session.get(Agency, agency_id):
        raise NotFoundError("Agency not found")

    updated = (
        db.session.query(Subscription)
        .filter(Subscription.id.in_(ids))
        .update({Subscription.agency_id: agency_id}, synchronize_session="fetch")
    )
    entries = _reassign_entries(ids, agency_id)
    db.session.flush()
    logger.info("Assigned agency %s to %d subscription(s)", agency_id, updated)
    return {"updated_subscriptions": updated, "updated_deliveries": entries, "agency_id": agency_id}


def delivery_summary_by_date(on_date) -> list[dict]:
    """
    Per-agency totals of the quantity due on a date, by product.
    Entries without an agency are grouped under "unassigned".
    """
    entries = (
        db.session.query(DeliveryScheduleEntry)
        .filter(DeliveryScheduleEntry.delivery_date == on_date)
        .order_by(DeliveryScheduleEntry.agent_id, DeliveryScheduleEntry.product_id)
        .all()
    )
    groups: "OrderedDict[str, dict]" = OrderedDict()
    for entry in entries:
        key = str(entry.agent_id) if entry.agent_id else "unassigned"
        group = groups.setdefault(key, {
            "agency_id": entry.agent_id,
            "agency": entry.agent.name if entry.agent else "Unassigned",
            "products": OrderedDict(),
            "total_quantity": 0,
            "deliveries": 0,
        })
        product = group["products"].setdefault(entry.product_id, {
            "product_id": entry.product_id,
            "product": entry.product.name if entry.product else None,
            "quantity": 0,
        })
        product["quantity"] += entry.quantity
        group["total_quantity"] += entry.quantity
        group["deliveries"] += 1

    return [
        {**group, "products": list(group["products"].values())}
        for group in groups.values()
    ]
