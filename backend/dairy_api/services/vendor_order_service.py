# Overview: Vendor purchase orders; placement, vendor dispatch, agency receipt, supervisor counts and daily requirements.

"""
Vendor order workflow.

An ADMIN places a purchase order with a vendor; each line names the agency
the goods are for. The vendor records what it dispatched, the receiving
agency records what arrived, and the agency's supervisor records a
verified count:

    quantity >= delivered_quantity >= received_quantity >= supervisor_quantity

STATUSES:
- PENDING: placed, nothing dispatched
- ASSIGNED: accepted by the vendor
- DELIVERED: the vendor recorded a dispatch
- RECEIVED: an agency recorded a receipt

Orders can be edited or deleted only before anything is dispatched.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from sqlalchemy import or_

from ..errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ..extensions import db
from ..models import (
    Agency,
    DeliveryScheduleEntry,
    Depot,
    DepotProductVariant,
    Product,
    Subscription,
    Supervisor,
    Vendor,
    VendorOrder,
    VendorOrderItem,
)
from ..money import ZERO, as_float, round2, to_decimal
from ..permissions import ROLE_ADMIN, ROLE_AGENCY, ROLE_SUPERVISOR, ROLE_VENDOR
from ..time_utils import parse_date, utcnow
from ..validation import ValidationError, require_fields, to_int, to_money, to_positive_int
from .concurrency import lock_for_update
from .document_service import next_document_number

logger = logging.getLogger(__name__)

STATUS_PENDING = "PENDING"
STATUS_ASSIGNED = "ASSIGNED"
STATUS_DELIVERED = "DELIVERED"
STATUS_RECEIVED = "RECEIVED"
VENDOR_ORDER_STATUSES = (STATUS_PENDING, STATUS_ASSIGNED, STATUS_DELIVERED, STATUS_RECEIVED)

OPEN_STATUSES = {STATUS_PENDING, STATUS_ASSIGNED}
DISPATCHED_STATUSES = {STATUS_DELIVERED, STATUS_RECEIVED}


def _order_or_404(order_id: int, *, lock: bool = False) -> VendorOrder:
    query = db.session.query(VendorOrder).filter_by(id=order_id)
    if lock:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFoundError("Vendor order not found")
    return order


def _vendor_for_user(user) -> Vendor:
    vendor = db.session.query(Vendor).filter_by(user_id=user.id).first()
    if not vendor:
        raise ForbiddenError("User is not associated with a vendor")
    return vendor


def _agency_for_user(user) -> Agency:
    agency = db.session.query(Agency).filter_by(user_id=user.id).first()
    if not agency:
        raise NotFoundError("Agency profile not found for this user")
    return agency


def _supervisor_agency_id(user) -> int:
    supervisor = db.session.query(Supervisor).filter_by(user_id=user.id).first()
    if not supervisor:
        raise NotFoundError("Supervisor profile not found for this user")
    if not supervisor.agency_id:
        raise NotFoundError("No agency assigned to this supervisor")
    return supervisor.agency_id


def _parse_date(value, field: str, *, required: bool = False):
    try:
        parsed = parse_date(value)
    except ValueError:
        raise ValidationError("Invalid date", {field: "invalid date"})
    if required and parsed is None:
        raise ValidationError(f"{field} is required", {field: "is required"})
    return parsed


def _parse_status(raw) -> str:
    status = str(raw or "").strip().upper()
    if status not in VENDOR_ORDER_STATUSES:
        raise ValidationError(
            f"Invalid status. Valid statuses are: {', '.join(VENDOR_ORDER_STATUSES)}",
            {"status": "invalid"},
        )
    return status


def _non_negative(value, field: str) -> int:
    number = to_int(value, field)
    if number < 0:
        raise ValidationError(f"{field} must be a non-negative integer", {field: "must be >= 0"})
    return number


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

def _build_item(item: dict) -> VendorOrderItem | None:
    """One validated order line; None for a zero-quantity line."""
    if not isinstance(item, dict):
        raise ValidationError("Each order item must be an object", {"order_items": "invalid"})
    require_fields(item, ("product_id", "quantity", "agency_id"))
    quantity = _non_negative(item["quantity"], "quantity")
    if quantity == 0:
        return None

    product_id = to_positive_int(item["product_id"], "product_id")
    if not db.session.get(Product, product_id):
        raise NotFoundError(f"Product {product_id} not found")
    agency_id = to_positive_int(item["agency_id"], "agency_id")
    if not db.session.get(Agency, agency_id):
        raise NotFoundError(f"Agency {agency_id} not found")

    depot_id = None
    if item.get("depot_id") not in (None, ""):
        depot_id = to_positive_int(item["depot_id"], "depot_id")
        if not db.session.get(Depot, depot_id):
            raise NotFoundError(f"Depot {depot_id} not found")

    variant = None
    if item.get("depot_variant_id") not in (None, ""):
        variant_id = to_positive_int(item["depot_variant_id"], "depot_variant_id")
        variant = db.session.get(DepotProductVariant, variant_id)
        if not variant:
            raise NotFoundError(f"Depot variant {variant_id} not found")
        if variant.product_id != product_id:
            raise BadRequestError(f"Depot variant {variant.id} is not a variant of product {product_id}")
        if depot_id is not None and variant.depot_id != depot_id:
            raise BadRequestError(f"Depot variant {variant.id} does not belong to depot {depot_id}")
        depot_id = variant.depot_id

    if item.get("rate") not in (None, ""):
        price = to_money(item["rate"], "rate")
    elif variant is not None and variant.purchase_price is not None:
        price = round2(variant.purchase_price)
    else:
        price = ZERO

    return VendorOrderItem(
        product_id=product_id,
        agency_id=agency_id,
        depot_id=depot_id,
        depot_variant_id=variant.id if variant else None,
        quantity=quantity,
        price_at_purchase=price,
    )


def _replace_items(order: VendorOrder, raw_items: list) -> None:
    for existing in list(order.items):
        order.items.remove(existing)
    total = ZERO
    for raw in raw_items:
        line = _build_item(raw)
        if line is None:
            continue
        order.items.append(line)
        total += to_decimal(line.price_at_purchase) * line.quantity
    if not order.items:
        raise ValidationError("At least one order item with a positive quantity is required", {"order_items": "is required"})
    order.total_amount = round2(total)


def _check_po_free(po_number: str, *, order_id: int | None = None) -> None:
    clash = db.session.query(VendorOrder.id).filter(VendorOrder.po_number == po_number)
    if order_id is not None:
        clash = clash.filter(VendorOrder.id != order_id)
    if clash.first():
        raise ConflictError(f"Purchase order number '{po_number}' already exists")


def create_vendor_order(payload: dict, *, user_id: int | None) -> VendorOrder:
    """
    Body: order_date, vendor_id, order_items [{product_id, quantity, agency_id,
    depot_id?, depot_variant_id?, rate?}], plus optional po_number,
    delivery_date, contact_person_name and notes.

    A blank po_number is allocated from the VENDOR_ORDER sequence of the
    order date's financial year. A line's rate falls back to the depot
    variant's purchase price, then zero.
    """
    payload = payload or {}
    require_fields(payload, ("order_date", "vendor_id"))
    items = payload.get("order_items")
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one order item is required", {"order_items": "is required"})

    order_date = _parse_date(payload["order_date"], "order_date", required=True)
    delivery_date = _parse_date(payload.get("delivery_date"), "delivery_date")
    vendor_id = to_positive_int(payload["vendor_id"], "vendor_id")
    if not db.session.get(Vendor, vendor_id):
        raise NotFoundError("Vendor not found")

    po_number = str(payload.get("po_number") or "").strip()
    if po_number:
        _check_po_free(po_number)
    else:
        po_number = next_document_number("VENDOR_ORDER", order_date)

    order = VendorOrder(
        po_number=po_number,
        order_date=order_date,
        delivery_date=delivery_date,
        vendor_id=vendor_id,
        contact_person_name=payload.get("contact_person_name"),
        notes=payload.get("notes"),
        status=STATUS_PENDING,
        created_by_id=user_id,
    )
    db.session.add(order)
    _replace_items(order, items)
    db.session.flush()
    logger.info("Vendor order %s placed with vendor %s (%d lines)", order.po_number, vendor_id, len(order.items))
    return order


def update_vendor_order(order_id: int, payload: dict) -> VendorOrder:
    """Edit header fields; an order_items list replaces every line. Only before dispatch."""
    payload = payload or {}
    order = _order_or_404(order_id, lock=True)
    if order.status not in OPEN_STATUSES:
        raise BadRequestError(f"Order is {order.status} and can no longer be edited")

    if payload.get("po_number") not in (None, ""):
        po_number = str(payload["po_number"]).strip()
        _check_po_free(po_number, order_id=order.id)
        order.po_number = po_number
    if payload.get("order_date"):
        order.order_date = _parse_date(payload["order_date"], "order_date", required=True)
    if "delivery_date" in payload:
        order.delivery_date = _parse_date(payload["delivery_date"], "delivery_date")
    if payload.get("vendor_id"):
        vendor_id = to_positive_int(payload["vendor_id"], "vendor_id")
        if not db.session.get(Vendor, vendor_id):
            raise NotFoundError("Vendor not found")
        order.vendor_id = vendor_id
    for field in ("contact_person_name", "notes"):
        if field in payload:
            setattr(order, field, payload[field])

    if payload.get("order_items") is not None:
        if not isinstance(payload["order_items"], list):
            raise ValidationError("order_items must be a list", {"order_items": "must be a list"})
        _replace_items(order, payload["order_items"])

    db.session.flush()
    return order


def delete_vendor_order(order_id: int) -> None:
    order = _order_or_404(order_id, lock=True)
    if order.status in DISPATCHED_STATUSES:
        raise BadRequestError(f"Order is {order.status} and cannot be deleted")
    db.session.delete(order)
    db.session.flush()
    logger.info("Vendor order %s deleted", order.po_number)


def update_status(order_id: int, raw_status, *, user) -> VendorOrder:
    """
    ADMIN may set any status. A vendor may only accept (ASSIGNED) its own
    PENDING orders; dispatch goes through record_delivery.
    """
    status = _parse_status(raw_status)
    order = _order_or_404(order_id, lock=True)

    if user.role == ROLE_VENDOR:
        if order.vendor_id != _vendor_for_user(user).id:
            raise ForbiddenError("This order belongs to another vendor")
        if status != STATUS_ASSIGNED or order.status != STATUS_PENDING:
            raise BadRequestError("Vendors can only accept pending orders")
    elif user.role != ROLE_ADMIN:
        raise ForbiddenError("Only admins and the order's vendor can change its status")

    order.status = status
    db.session.flush()
    return order


# ---------------------------------------------------------------------------
# Dispatch, receipt and supervisor counts
# ---------------------------------------------------------------------------

def _quantities(raw_items, key: str) -> list[tuple[int, int]]:
    """[(order_item_id, quantity)] from [{order_item_id, <key>}]."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items is required and cannot be empty", {"items": "is required"})
    parsed = []
    for raw in raw_items:
        if not isinstance(raw, dict) or raw.get("order_item_id") is None or raw.get(key) is None:
            raise ValidationError(f"Each item must have order_item_id and {key}", {"items": "invalid"})
        parsed.append((to_positive_int(raw["order_item_id"], "order_item_id"), _non_negative(raw[key], key)))
    return parsed


def _line(order: VendorOrder, item_id: int) -> VendorOrderItem:
    for line in order.items:
        if line.id == item_id:
            return line
    raise NotFoundError(f"Order item {item_id} not found in this order")


def record_delivery(order_id: int, raw_items, *, user) -> VendorOrder:
    """
    Vendor (own orders) or ADMIN records dispatched quantities.

    Any positive dispatched total moves the order to DELIVERED.
    """
    quantities = _quantities(raw_items, "delivered_quantity")
    order = _order_or_404(order_id, lock=True)
    if user.role == ROLE_VENDOR and order.vendor_id != _vendor_for_user(user).id:
        raise ForbiddenError("This order belongs to another vendor")
    if order.status in DISPATCHED_STATUSES:
        raise BadRequestError(f"Order is already {order.status}; delivery cannot be recorded again")

    for item_id, delivered in quantities:
        line = _line(order, item_id)
        if delivered > line.quantity:
            raise BadRequestError(
                f"Delivered quantity ({delivered}) for item {line.id} cannot exceed ordered quantity ({line.quantity})"
            )
        line.delivered_quantity = delivered

    if sum(line.delivered_quantity or 0 for line in order.items) > 0:
        order.status = STATUS_DELIVERED
        order.delivered_at = utcnow()
        order.delivered_by_id = user.id
    db.session.flush()
    logger.info("Vendor order %s dispatch recorded by user %s", order.po_number, user.id)
    return order


def record_receipt(order_id: int, raw_items, *, user) -> VendorOrder:
    """
    Agency (its own lines) or ADMIN records what arrived; the order becomes RECEIVED.
    Received may not exceed delivered.
    """
    quantities = _quantities(raw_items, "received_quantity")
    order = _order_or_404(order_id, lock=True)
    agency_id = _agency_for_user(user).id if user.role == ROLE_AGENCY else None
    if order.status not in DISPATCHED_STATUSES:
        raise BadRequestError(f"Order is {order.status}; receipt can only be recorded after delivery")

    for item_id, received in quantities:
        line = _line(order, item_id)
        if agency_id is not None and line.agency_id != agency_id:
            raise ForbiddenError(f"Order item {line.id} is for another agency")
        if line.delivered_quantity is None:
            raise BadRequestError(f"Order item {line.id} has no delivered quantity recorded")
        if received > line.delivered_quantity:
            raise BadRequestError(
                f"Received quantity ({received}) for item {line.id} cannot exceed "
                f"delivered quantity ({line.delivered_quantity})"
            )
        line.received_quantity = received

    order.status = STATUS_RECEIVED
    order.received_at = utcnow()
    order.received_by_id = user.id
    db.session.flush()
    return order


def record_supervisor_quantity(order_id: int, raw_items, *, user) -> VendorOrder:
    """Supervisor (lines for its agency) or ADMIN records a verified count, at most the received quantity."""
    quantities = _quantities(raw_items, "supervisor_quantity")
    order = _order_or_404(order_id, lock=True)
    agency_id = _supervisor_agency_id(user) if user.role == ROLE_SUPERVISOR else None
    if order.status not in DISPATCHED_STATUSES:
        raise BadRequestError(
            f"Order is {order.status}; supervisor quantity can only be recorded for DELIVERED or RECEIVED orders"
        )

    for item_id, counted in quantities:
        line = _line(order, item_id)
        if agency_id is not None and line.agency_id != agency_id:
            raise ForbiddenError(f"Order item {line.id} is for another agency")
        if line.received_quantity is None:
            raise BadRequestError(f"Order item {line.id} has no received quantity recorded")
        if counted > line.received_quantity:
            raise BadRequestError(
                f"Supervisor quantity ({counted}) for item {line.id} cannot exceed "
                f"received quantity ({line.received_quantity})"
            )
        line.supervisor_quantity = counted

    db.session.flush()
    return order


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _has_agency_line(agency_id: int):
    return VendorOrder.items.any(VendorOrderItem.agency_id == agency_id)


def get_vendor_order(order_id: int, *, user) -> VendorOrder:
    """ADMIN sees every order; vendors their own; agencies and supervisors orders with a line for their agency."""
    order = _order_or_404(order_id)
    if user.role == ROLE_ADMIN:
        return order
    if user.role == ROLE_VENDOR:
        allowed = order.vendor_id == _vendor_for_user(user).id
    elif user.role == ROLE_AGENCY:
        agency_id = _agency_for_user(user).id
        allowed = any(line.agency_id == agency_id for line in order.items)
    elif user.role == ROLE_SUPERVISOR:
        agency_id = _supervisor_agency_id(user)
        allowed = any(line.agency_id == agency_id for line in order.items)
    else:
        allowed = False
    if not allowed:
        raise ForbiddenError("You do not have access to this vendor order")
    return order


def _filtered(query, filters: dict):
    if filters.get("status"):
        query = query.filter(VendorOrder.status == _parse_status(filters["status"]))
    elif str(filters.get("exclude_status") or "").upper() == STATUS_PENDING:
        query = query.filter(VendorOrder.status != STATUS_PENDING)
    if filters.get("vendor_id"):
        query = query.filter(VendorOrder.vendor_id == to_positive_int(filters["vendor_id"], "vendor_id"))
    if filters.get("agency_id"):
        query = query.filter(_has_agency_line(to_positive_int(filters["agency_id"], "agency_id")))
    if filters.get("date"):
        query = query.filter(VendorOrder.order_date == filters["date"])
    if filters.get("search"):
        term = f"%{str(filters['search']).strip()}%"
        query = query.filter(or_(
            VendorOrder.po_number.ilike(term),
            VendorOrder.vendor.has(Vendor.name.ilike(term)),
            VendorOrder.items.any(VendorOrderItem.product.has(Product.name.ilike(term))),
            VendorOrder.items.any(VendorOrderItem.agency.has(Agency.name.ilike(term))),
        ))
    return query.order_by(VendorOrder.order_date.desc(), VendorOrder.id.desc())


def list_vendor_orders(*, filters: dict):
    """Filters: status, exclude_status=PENDING, vendor_id, agency_id, date, search."""
    return _filtered(db.session.query(VendorOrder), filters)


def my_vendor_orders(*, user, filters: dict):
    vendor = _vendor_for_user(user)
    return _filtered(db.session.query(VendorOrder).filter(VendorOrder.vendor_id == vendor.id), filters)


def my_agency_orders(*, user, filters: dict):
    agency = _agency_for_user(user)
    filters = {k: v for k, v in filters.items() if k != "agency_id"}
    return _filtered(db.session.query(VendorOrder).filter(_has_agency_line(agency.id)), filters)


def my_supervisor_orders(*, user, filters: dict):
    """Dispatched orders for the supervisor's agency, the ones a count can be recorded against."""
    agency_id = _supervisor_agency_id(user)
    filters = {k: v for k, v in filters.items() if k != "agency_id"}
    status = str(filters.pop("status", "") or "").upper()
    statuses = [status] if status in DISPATCHED_STATUSES else sorted(DISPATCHED_STATUSES)
    query = db.session.query(VendorOrder).filter(_has_agency_line(agency_id), VendorOrder.status.in_(statuses))
    return _filtered(query, filters)


# ---------------------------------------------------------------------------
# Daily requirements
# ---------------------------------------------------------------------------

def delivery_requirements(on_date, *, user, depot_id=None, agency_id=None) -> dict:
    """
    What has to be on hand on a date: PENDING deliveries of PAID
    subscriptions, grouped by depot, variant and agency, with the member
    drop list for each group. Agencies only see their own deliveries.
    """
    if on_date is None:
        raise ValidationError("date is required", {"date": "is required"})
    if user.role == ROLE_AGENCY:
        agency_id = _agency_for_user(user).id
    elif agency_id:
        agency_id = to_positive_int(agency_id, "agency_id")

    query = (
        db.session.query(DeliveryScheduleEntry)
        .join(Subscription, Subscription.id == DeliveryScheduleEntry.subscription_id)
        .filter(
            Subscription.payment_status == "PAID",
            DeliveryScheduleEntry.delivery_date == on_date,
            DeliveryScheduleEntry.status == "PENDING",
        )
    )
    if depot_id:
        query = query.filter(DeliveryScheduleEntry.depot_id == to_positive_int(depot_id, "depot_id"))
    if agency_id:
        query = query.filter(DeliveryScheduleEntry.agent_id == agency_id)

    groups: OrderedDict = OrderedDict()
    entries = query.order_by(
        DeliveryScheduleEntry.depot_id, DeliveryScheduleEntry.depot_product_variant_id, DeliveryScheduleEntry.id
    ).all()
    for entry in entries:
        key = (entry.depot_id, entry.depot_product_variant_id, entry.agent_id)
        group = groups.get(key)
        if group is None:
            variant = entry.depot_product_variant
            group = groups[key] = {
                "depot_id": entry.depot_id,
                "depot": entry.depot.name if entry.depot else None,
                "variant_id": entry.depot_product_variant_id,
                "variant": variant.name if variant else None,
                "mrp": as_float(variant.mrp) if variant else None,
                "product_id": entry.product_id,
                "product": entry.product.name if entry.product else None,
                "unit": entry.product.unit if entry.product else None,
                "agency_id": entry.agent_id,
                "total_quantity": 0,
                "delivery_count": 0,
                "members": [],
            }
        group["total_quantity"] += entry.quantity
        group["delivery_count"] += 1
        address = entry.delivery_address
        group["members"].append({
            "member_id": entry.member_id,
            "member": entry.member.name if entry.member else None,
            "recipient_name": address.recipient_name if address else None,
            "mobile": address.mobile if address else None,
            "address": ", ".join(
                part for part in (
                    address.plot_building, address.street_area, address.landmark, address.city, address.pincode,
                ) if part
            ) if address else None,
            "quantity": entry.quantity,
        })

    agency_names = dict(
        db.session.query(Agency.id, Agency.name)
        .filter(Agency.id.in_({key[2] for key in groups if key[2] is not None}))
        .all()
    ) if groups else {}
    data = list(groups.values())
    for group in data:
        group["agency"] = agency_names.get(group["agency_id"])
        group["member_count"] = len({m["member_id"] for m in group["members"]})

    return {
        "date": on_date.isoformat(),
        "data": data,
        "summary": {
            "total_depots": len({g["depot_id"] for g in data}),
            "total_variants": len({g["variant_id"] for g in data}),
            "total_agencies": len({g["agency_id"] for g in data if g["agency_id"] is not None}),
            "total_members": len({e.member_id for e in entries}),
            "total_quantity": sum(g["total_quantity"] for g in data),
            "total_deliveries": len(entries),
        },
    }
