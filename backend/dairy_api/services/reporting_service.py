# Overview: Service-layer operations for reporting; delivery, wallet and subscription reports plus dashboard stats.

from __future__ import annotations

from datetime import date

from sqlalchemy import case, func

from ..errors import BadRequestError
from ..extensions import db
from ..models import (
    Agency,
    DeliveryScheduleEntry,
    Depot,
    DepotProductVariant,
    Member,
    Product,
    ProductOrder,
    Subscription,
    WalletTransaction,
)
from ..money import as_float
from ..time_utils import parse_date, today
from ..validation import to_positive_int


class ReportError(BadRequestError):
    """Raised when report parameters are invalid."""


def _parse_range(start, end) -> tuple[date | None, date | None]:
    try:
        start_d = parse_date(start) if start else None
        end_d = parse_date(end) if end else None
    except ValueError:
        raise ReportError("from_date/to_date must be YYYY-MM-DD")
    if start_d and end_d and start_d > end_d:
        raise ReportError("from_date must be on or before to_date")
    return start_d, end_d


def delivery_report(*, start=None, end=None, agency_id=None, group_by: str = "date") -> list[dict]:
    """
    Delivery counts and quantities by status.

    group_by: date | agency | product
    """
    start_d, end_d = _parse_range(start, end)

    if group_by == "date":
        key_expr = DeliveryScheduleEntry.delivery_date
    elif group_by == "agency":
        key_expr = DeliveryScheduleEntry.agent_id
    elif group_by == "product":
        key_expr = DeliveryScheduleEntry.product_id
    else:
        raise ReportError("group_by must be date, agency, or product")

    query = db.session.query(
        key_expr.label("key"),
        DeliveryScheduleEntry.status.label("status"),
        func.count(DeliveryScheduleEntry.id).label("deliveries"),
        func.coalesce(func.sum(DeliveryScheduleEntry.quantity), 0).label("quantity"),
    )
    if start_d:
        query = query.filter(DeliveryScheduleEntry.delivery_date >= start_d)
    if end_d:
        query = query.filter(DeliveryScheduleEntry.delivery_date <= end_d)
    if agency_id:
        query = query.filter(DeliveryScheduleEntry.agent_id == to_positive_int(agency_id, "agency_id"))

    rows = query.group_by(key_expr, DeliveryScheduleEntry.status).order_by(key_expr).all()

    labels: dict = {}
    if group_by == "agency":
        labels = dict(db.session.query(Agency.id, Agency.name).all())
    elif group_by == "product":
        labels = dict(db.session.query(Product.id, Product.name).all())

    results: dict = {}
    for row in rows:
        key = row.key.isoformat() if isinstance(row.key, date) else row.key
        bucket = results.setdefault(key, {
            group_by: key,
            "label": labels.get(row.key, "Unassigned") if group_by != "date" else key,
            "total_deliveries": 0,
            "total_quantity": 0,
            "by_status": {},
        })
        bucket["by_status"][row.status] = {"deliveries": int(row.deliveries), "quantity": int(row.quantity)}
        bucket["total_deliveries"] += int(row.deliveries)
        bucket["total_quantity"] += int(row.quantity)
    return list(results.values())


def wallet_report(*, start=None, end=None, member_id=None) -> dict:
    """Credits, debits and pending top-ups over a date range, plus total outstanding balance."""
    start_d, end_d = _parse_range(start, end)
    created = func.date(WalletTransaction.created_at)

    query = db.session.query(
        WalletTransaction.type.label("type"),
        WalletTransaction.status.label("status"),
        func.count(WalletTransaction.id).label("count"),
        func.coalesce(func.sum(WalletTransaction.amount), 0).label("amount"),
    )
    if start_d:
        query = query.filter(created >= start_d.isoformat())
    if end_d:
        query = query.filter(created <= end_d.isoformat())
    if member_id:
        query = query.filter(WalletTransaction.member_id == to_positive_int(member_id, "member_id"))

    breakdown = [
        {"type": r.type, "status": r.status, "count": int(r.count), "amount": as_float(r.amount)}
        for r in query.group_by(WalletTransaction.type, WalletTransaction.status).all()
    ]

    balance_query = db.session.query(func.coalesce(func.sum(Member.wallet_balance), 0))
    if member_id:
        balance_query = balance_query.filter(Member.id == to_positive_int(member_id, "member_id"))

    def _total(txn_type: str) -> float:
        return round(sum(b["amount"] for b in breakdown if b["type"] == txn_type and b["status"] == "PAID"), 2)

    return {
        "from_date": start_d.isoformat() if start_d else None,
        "to_date": end_d.isoformat() if end_d else None,
        "total_credits": _total("CREDIT"),
        "total_debits": _total("DEBIT"),
        "pending_topups": sum(b["count"] for b in breakdown if b["type"] == "CREDIT" and b["status"] == "PENDING"),
        "outstanding_balance": as_float(balance_query.scalar()),
        "breakdown": breakdown,
    }


def subscription_report(*, start=None, end=None, agency_id=None, product_id=None, depot_id=None) -> list[dict]:
    """Subscriptions started in the range, grouped by product: count, quantity, amount, paid amount."""
    start_d, end_d = _parse_range(start, end)
    paid = case((Subscription.payment_status == "PAID", Subscription.amount), else_=0)

    query = (
        db.session.query(
            Product.id.label("product_id"),
            Product.name.label("product"),
            func.count(Subscription.id).label("subscriptions"),
            func.coalesce(func.sum(Subscription.total_qty), 0).label("quantity"),
            func.coalesce(func.sum(Subscription.amount), 0).label("amount"),
            func.coalesce(func.sum(paid), 0).label("paid_amount"),
            func.coalesce(func.sum(Subscription.wallet_amount), 0).label("wallet_amount"),
        )
        .join(Product, Product.id == Subscription.product_id)
    )
    if start_d:
        query = query.filter(Subscription.start_date >= start_d)
    if end_d:
        query = query.filter(Subscription.start_date <= end_d)
    if agency_id:
        query = query.filter(Subscription.agency_id == to_positive_int(agency_id, "agency_id"))
    if product_id:
        query = query.filter(Subscription.product_id == to_positive_int(product_id, "product_id"))
    if depot_id:
        query = query.join(
            DepotProductVariant, DepotProductVariant.id == Subscription.depot_product_variant_id
        ).filter(DepotProductVariant.depot_id == to_positive_int(depot_id, "depot_id"))

    rows = query.group_by(Product.id, Product.name).order_by(Product.name).all()
    return [
        {
            "product_id": r.product_id,
            "product": r.product,
            "subscriptions": int(r.subscriptions),
            "quantity": int(r.quantity),
            "amount": as_float(r.amount),
            "paid_amount": as_float(r.paid_amount),
            "wallet_amount": as_float(r.wallet_amount),
        }
        for r in rows
    ]


def dashboard_stats() -> dict:
    on = today()

    def _count(query) -> int:
        return int(query.scalar() or 0)

    deliveries_today = dict(
        db.session.query(DeliveryScheduleEntry.status, func.count(DeliveryScheduleEntry.id))
        .filter(DeliveryScheduleEntry.delivery_date == on)
        .group_by(DeliveryScheduleEntry.status)
        .all()
    )

    return {
        "date": on.isoformat(),
        "members": _count(db.session.query(func.count(Member.id))),
        "agencies": _count(db.session.query(func.count(Agency.id))),
        "depots": _count(db.session.query(func.count(Depot.id))),
        "products": _count(db.session.query(func.count(Product.id))),
        "active_subscriptions": _count(
            db.session.query(func.count(Subscription.id)).filter(
                Subscription.expiry_date >= on,
                Subscription.payment_status != "CANCELLED",
            )
        ),
        "pending_payments": _count(
            db.session.query(func.count(ProductOrder.id)).filter(ProductOrder.payment_status == "PENDING")
        ),
        "pending_topups": _count(
            db.session.query(func.count(WalletTransaction.id)).filter(
                WalletTransaction.type == "CREDIT",
                WalletTransaction.status == "PENDING",
            )
        ),
        "unassigned_subscriptions": _count(
            db.session.query(func.count(Subscription.id)).filter(
                Subscription.agency_id.is_(None),
                Subscription.expiry_date >= on,
            )
        ),
        "deliveries_today": {status: int(n) for status, n in deliveries_today.items()},
        "total_wallet_balance": as_float(
            db.session.query(func.coalesce(func.sum(Member.wallet_balance), 0)).scalar()
        ),
        "revenue_received": as_float(
            db.session.query(func.coalesce(func.sum(ProductOrder.received_amount), 0)).scalar()
        ),
    }
