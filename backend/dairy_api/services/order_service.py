# Overview: Service-layer operations for product orders; checkout of one or more subscriptions.

"""
Product order service.

CHECKOUT (create_order_with_subscriptions), all inside the request transaction:
1. Resolve every line: depot variant, schedule, start/expiry dates, period price.
2. Generate the delivery dates; a line with no deliveries is rejected.
3. Split the requested wallet amount across lines (pricing_service.allocate_wallet).
4. Create the order, its subscriptions and their DeliveryScheduleEntry rows.
5. Debit the wallet once for the amount applied.

AGENCY ROUTING:
- online depot: the delivery address's location agency
- offline depot: the agency linked to the depot
The order carries an agency only when every line resolves to the same one.

The invoice is generated by the route after the order commits, so an invoice
failure never loses an order.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..extensions import db
from ..models import (
    Agency,
    DeliveryAddress,
    DeliveryScheduleEntry,
    DepotProductVariant,
    Member,
    ProductOrder,
    Subscription,
)
from ..money import ZERO, round2, to_decimal
from ..permissions import ROLE_ADMIN
from ..time_utils import parse_iso_datetime, parse_start_date, today, utcnow
from ..validation import ValidationError, to_int, to_money, to_positive_int
from . import pricing_service, schedule_service, wallet_service
from .concurrency import lock_for_update
from .document_service import next_document_number

logger = logging.getLogger(__name__)

PAYMENT_PENDING = "PENDING"
PAYMENT_PAID = "PAID"
PAYMENT_FAILED = "FAILED"
PAYMENT_CANCELLED = "CANCELLED"
PAYMENT_STATUSES = {PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_FAILED, PAYMENT_CANCELLED}

PAYMENT_MODES = {"ONLINE", "CASH", "UPI", "BANK"}

ENTRY_PENDING = "PENDING"


@dataclass
class _Line:
    variant: DepotProductVariant
    address: DeliveryAddress | None
    agency_id: int | None
    start_date: date
    expiry_date: date
    period: int
    stored_schedule: str
    weekdays: list[str]
    qty: int
    alt_qty: int | None
    rate: object
    deliveries: list = field(default_factory=list)
    delivery_instructions: str | None = None

    @property
    def total_qty(self) -> int:
        return sum(d.quantity for d in self.deliveries)

    @property
    def amount(self):
        return round2(to_decimal(self.rate) * self.total_qty)


def resolve_member(user, member_id=None) -> Member:
    """The caller's own member profile, or any member when an admin orders on their behalf."""
    if user.role == ROLE_ADMIN and member_id:
        return wallet_service.get_member(to_positive_int(member_id, "member_id"), lock=True)
    member = db.session.query(Member).filter_by(user_id=user.id)
    member = lock_for_update(member).first()
    if not member:
        raise BadRequestError("Member profile not found")
    return member


def resolve_agency_id(variant: DepotProductVariant, address: DeliveryAddress | None) -> int | None:
    depot = variant.depot
    if depot is None:
        return None
    if depot.is_online:
        if address is not None and address.location is not None:
            return address.location.agency_id
        return None
    agency = db.session.query(Agency).filter_by(depot_id=depot.id).first()
    return agency.id if agency else None


def _load_address(member: Member, address_id) -> DeliveryAddress:
    address = db.session.get(DeliveryAddress, to_positive_int(address_id, "delivery_address_id"))
    if not address or address.member_id != member.id:
        raise NotFoundError("Delivery address not found")
    return address


def _build_line(member: Member, item: dict, default_address_id) -> _Line:
    if not isinstance(item, dict):
        raise ValidationError("Each subscription must be an object")

    variant_id = item.get("depot_product_variant_id")
    if variant_id is None:
        raise ValidationError(
            "depot_product_variant_id is required", {"depot_product_variant_id": "is required"}
        )
    variant = db.session.get(DepotProductVariant, to_positive_int(variant_id, "depot_product_variant_id"))
    if not variant:
        raise NotFoundError(f"Depot product variant {variant_id} not found")
    if item.get("product_id") is not None and to_int(item["product_id"], "product_id") != variant.product_id:
        raise BadRequestError("product_id does not match the depot product variant")
    if variant.is_hidden or variant.not_in_stock:
        raise BadRequestError(f"{variant.name} is not available")

    period = to_positive_int(item.get("period"), "period")
    qty = to_positive_int(item.get("qty"), "qty")
    alt_qty = item.get("alt_qty")
    alt_qty = to_int(alt_qty, "alt_qty") if alt_qty not in (None, "") else None

    schedule_type, stored = schedule_service.map_delivery_schedule(item.get("delivery_schedule"))
    weekdays = schedule_service.normalize_weekdays(item.get("weekdays"))
    if schedule_type == schedule_service.SELECT_DAYS and not weekdays:
        raise ValidationError("Weekdays are required for SELECT-DAYS schedules", {"weekdays": "is required"})

    try:
        start_date = parse_start_date(item.get("start_date"))
    except ValueError:
        raise ValidationError("start_date must be an ISO date", {"start_date": "invalid date"})
    if start_date is None:
        raise ValidationError("start_date is required", {"start_date": "is required"})

    address = None
    address_id = item.get("delivery_address_id") or default_address_id
    if variant.depot is not None and variant.depot.is_online and not address_id:
        raise ValidationError(
            "delivery_address_id is required for online depots", {"delivery_address_id": "is required"}
        )
    if address_id:
        address = _load_address(member, address_id)

    deliveries = schedule_service.generate_delivery_dates(
        start_date, period, schedule_type, qty, alt_qty=alt_qty, weekdays=weekdays
    )
    if not deliveries:
        raise BadRequestError("No delivery dates could be generated for the selected schedule")

    return _Line(
        variant=variant,
        address=address,
        agency_id=resolve_agency_id(variant, address),
        start_date=start_date,
        expiry_date=schedule_service.expiry_date_for(start_date, period),
        period=period,
        stored_schedule=stored,
        weekdays=weekdays if schedule_type == schedule_service.SELECT_DAYS else [],
        qty=qty,
        alt_qty=alt_qty,
        rate=pricing_service.price_for_period(variant, period),
        deliveries=deliveries,
        delivery_instructions=item.get("delivery_instructions"),
    )


def _payment_fields(payload: dict) -> dict:
    mode = payload.get("payment_mode")
    if mode:
        mode = str(mode).upper()
        if mode not in PAYMENT_MODES:
            raise ValidationError(f"Invalid payment mode: {mode}", {"payment_mode": "invalid"})
    payment_date = payload.get("payment_date")
    try:
        payment_date = parse_iso_datetime(payment_date) if payment_date else None
    except ValueError:
        raise ValidationError("payment_date must be an ISO datetime", {"payment_date": "invalid"})
    return {
        "payment_mode": mode or None,
        "payment_reference_no": payload.get("payment_reference_no"),
        "payment_date": payment_date,
    }


def create_order_with_subscriptions(*, user, payload: dict) -> ProductOrder:
    """
    Checkout.

    Request payload:
        member_id (admin only), delivery_address_id, wallet_amount,
        payment_mode, payment_reference_no, payment_date,
        subscriptions: [{depot_product_variant_id, product_id?, period,
                         delivery_schedule, qty, alt_qty?, weekdays?,
                         start_date, delivery_address_id?, delivery_instructions?}]
    """
    payload = payload or {}
    items = payload.get("subscriptions")
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one subscription is required", {"subscriptions": "is required"})

    member = resolve_member(user, payload.get("member_id"))
    lines = [_build_line(member, item, payload.get("delivery_address_id")) for item in items]

    amounts = [line.amount for line in lines]
    total_amount = round2(sum(amounts, ZERO))
    requested_wallet = payload.get("wallet_amount") or 0
    allocation = pricing_service.allocate_wallet(
        total_amount,
        to_money(requested_wallet, "wallet_amount"),
        member.wallet_balance,
        amounts,
    )

    agency_ids = {line.agency_id for line in lines}
    payment = _payment_fields(payload)

    order = ProductOrder(
        order_no=next_document_number("ORDER"),
        member_id=member.id,
        agency_id=agency_ids.pop() if len(agency_ids) == 1 else None,
        total_qty=sum(line.total_qty for line in lines),
        total_amount=total_amount,
        wallet_amount=allocation.wallet_used,
        payable_amount=allocation.total_payable,
        received_amount=ZERO,
        payment_status=allocation.order_status,
        **payment,
    )
    db.session.add(order)
    db.session.flush()

    for index, line in enumerate(lines):
        payable = allocation.payable_for(index, line.amount)
        subscription = Subscription(
            member_id=member.id,
            product_order_id=order.id,
            delivery_address_id=line.address.id if line.address else None,
            product_id=line.variant.product_id,
            depot_product_variant_id=line.variant.id,
            agency_id=line.agency_id,
            start_date=line.start_date,
            period=line.period,
            expiry_date=line.expiry_date,
            delivery_schedule=line.stored_schedule,
            weekdays=json.dumps(line.weekdays) if line.weekdays else None,
            qty=line.qty,
            alt_qty=line.alt_qty,
            rate=line.rate,
            total_qty=line.total_qty,
            amount=line.amount,
            wallet_amount=allocation.shares[index],
            payable_amount=max(payable, ZERO),
            received_amount=ZERO,
            payment_status=allocation.status_for(index, line.amount),
            delivery_instructions=line.delivery_instructions,
            **payment,
        )
        db.session.add(subscription)
        db.session.flush()

        db.session.add_all([
            DeliveryScheduleEntry(
                subscription_id=subscription.id,
                member_id=member.id,
                delivery_address_id=subscription.delivery_address_id,
                product_id=line.variant.product_id,
                depot_id=line.variant.depot_id,
                depot_product_variant_id=line.variant.id,
                agent_id=line.agency_id,
                delivery_date=delivery.date,
                quantity=delivery.quantity,
                status=ENTRY_PENDING,
            )
            for delivery in line.deliveries
        ])

    if allocation.wallet_used > 0:
        wallet_service.debit_wallet(
            member,
            allocation.wallet_used,
            payment_method=wallet_service.METHOD_WALLET,
            reference_number=order.order_no,
            notes=f"Wallet applied to order {order.order_no}",
        )

    db.session.flush()
    logger.info(
        "Order %s created for member %s: %d subscription(s), total %s, wallet %s",
        order.order_no, member.id, len(lines), total_amount, allocation.wallet_used,
    )
    return order


def get_order(order_id: int, user=None) -> ProductOrder:
    order = db.session.get(ProductOrder, order_id)
    if not order:
        raise NotFoundError("Product order not found")
    if user is not None and user.role != ROLE_ADMIN:
        if order.member is None or order.member.user_id != user.id:
            raise ForbiddenError("Not authorized to view this order")
    return order


def record_payment(order_id: int, payload: dict) -> ProductOrder:
    """
    Record the outcome of the non-wallet payment for an order.

    PAID requires received_amount == payable_amount (or == total_amount when
    nothing was payable). Wallet shares are re-split across the order's
    subscriptions and each subscription takes the order status.
    """
    payload = payload or {}
    order = lock_for_update(db.session.query(ProductOrder).filter_by(id=order_id)).first()
    if not order:
        raise NotFoundError("Product order not found")

    status = str(payload.get("payment_status") or "").upper()
    if status not in {PAYMENT_PAID, PAYMENT_FAILED}:
        raise ValidationError("payment_status must be PAID or FAILED", {"payment_status": "invalid"})

    payable = round2(order.payable_amount)
    expected = payable if payable > 0 else round2(order.total_amount)
    received = payload.get("received_amount")
    received = to_money(received, "received_amount") if received not in (None, "") else None

    if status == PAYMENT_PAID:
        if received is None:
            received = expected
        if received != expected:
            raise BadRequestError(f"Received amount must equal the payable amount ({expected})")
    else:
        received = ZERO

    payment = _payment_fields(payload)
    order.payment_status = status
    order.received_amount = received
    order.payment_mode = payment["payment_mode"] or order.payment_mode
    order.payment_reference_no = payment["payment_reference_no"] or order.payment_reference_no
    order.payment_date = payment["payment_date"] or (utcnow() if status == PAYMENT_PAID else order.payment_date)

    subscriptions = list(order.subscriptions)
    allocation = pricing_service.allocate_wallet(
        order.total_amount,
        order.wallet_amount,
        order.wallet_amount,
        [s.amount for s in subscriptions],
    )
    for index, subscription in enumerate(subscriptions):
        sub_payable = max(allocation.payable_for(index, subscription.amount), ZERO)
        subscription.wallet_amount = allocation.shares[index]
        subscription.payable_amount = sub_payable
        subscription.payment_status = status
        subscription.received_amount = sub_payable if status == PAYMENT_PAID else ZERO
        subscription.payment_mode = order.payment_mode
        subscription.payment_reference_no = order.payment_reference_no
        subscription.payment_date = order.payment_date

    db.session.flush()
    logger.info("Payment %s recorded for order %s", status, order.order_no)
    return order


def list_orders(*, user, filters: dict):
    """
    Orders visible to the caller with optional filters:
    payment_status, search (order no / member name), expiry_status
    (ACTIVE | EXPIRED), agency_id, unassigned, member_id.
    """
    query = db.session.query(ProductOrder).join(Member, ProductOrder.member_id == Member.id)

    if user.role != ROLE_ADMIN:
        query = query.filter(Member.user_id == user.id)
    elif filters.get("member_id"):
        query = query.filter(ProductOrder.member_id == to_positive_int(filters["member_id"], "member_id"))

    if filters.get("payment_status"):
        query = query.filter(ProductOrder.payment_status == str(filters["payment_status"]).upper())

    if filters.get("search"):
        term = f"%{filters['search'].strip()}%"
        query = query.filter(db.or_(ProductOrder.order_no.ilike(term), Member.name.ilike(term)))

    if filters.get("agency_id"):
        query = query.filter(ProductOrder.agency_id == to_positive_int(filters["agency_id"], "agency_id"))
    elif str(filters.get("unassigned", "")).lower() in {"1", "true", "yes"}:
        query = query.filter(ProductOrder.agency_id.is_(None))

    expiry_status = str(filters.get("expiry_status") or "").upper()
    if expiry_status in {"ACTIVE", "EXPIRED"}:
        active_ids = (
            db.session.query(Subscription.product_order_id)
            .filter(Subscription.expiry_date >= today(), Subscription.product_order_id.isnot(None))
        )
        if expiry_status == "ACTIVE":
            query = query.filter(ProductOrder.id.in_(active_ids))
        else:
            query = query.filter(ProductOrder.id.notin_(active_ids))

    return query.order_by(ProductOrder.created_at.desc(), ProductOrder.id.desc())


def renewal_payload(subscription: Subscription) -> dict:
    """Checkout payload repeating a subscription, starting the day after it expires (or tomorrow)."""
    start = max(subscription.expiry_date + timedelta(days=1), today() + timedelta(days=1))
    schedule = {
        schedule_service.STORED_DAY1_DAY2: "VARYING",
        schedule_service.STORED_WEEKDAYS: "SELECT-DAYS",
    }.get(subscription.delivery_schedule, subscription.delivery_schedule)
    return {
        "depot_product_variant_id": subscription.depot_product_variant_id,
        "period": subscription.period,
        "delivery_schedule": schedule,
        "weekdays": subscription.weekday_list,
        "qty": subscription.qty,
        "alt_qty": subscription.alt_qty,
        "start_date": start.isoformat(),
        "delivery_address_id": subscription.delivery_address_id,
        "delivery_instructions": subscription.delivery_instructions,
    }
