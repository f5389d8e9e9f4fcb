# Overview: Pure delivery-date/quantity generation for subscriptions.

"""
Delivery schedule generation.

No database access here: callers turn the returned Delivery tuples into
DeliveryScheduleEntry rows.

SCHEDULE TYPES (client tag -> stored tag):
- DAILY                           -> DAILY
- SELECT-DAYS / WEEKDAYS          -> WEEKDAYS        (needs a weekday list)
- ALTERNATE-DAYS / ALTERNATE_DAYS -> ALTERNATE_DAYS
- VARYING / DAY1-DAY2             -> DAY1_DAY2

DATES: the loop walks day offsets 0..period-1 from start_date. Weekday keys
are the lower-case three-letter names sun..sat.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, NamedTuple

from ..errors import BadRequestError

DAILY = "DAILY"
ALTERNATE_DAYS = "ALTERNATE_DAYS"
SELECT_DAYS = "SELECT_DAYS"
VARYING = "VARYING"

STORED_DAILY = "DAILY"
STORED_WEEKDAYS = "WEEKDAYS"
STORED_ALTERNATE_DAYS = "ALTERNATE_DAYS"
STORED_DAY1_DAY2 = "DAY1_DAY2"

# Python weekday(): Monday == 0
WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_SCHEDULE_TAGS = {
    "DAILY": (DAILY, STORED_DAILY),
    "SELECT-DAYS": (SELECT_DAYS, STORED_WEEKDAYS),
    "SELECT_DAYS": (SELECT_DAYS, STORED_WEEKDAYS),
    "WEEKDAYS": (SELECT_DAYS, STORED_WEEKDAYS),
    "ALTERNATE-DAYS": (ALTERNATE_DAYS, STORED_ALTERNATE_DAYS),
    "ALTERNATE_DAYS": (ALTERNATE_DAYS, STORED_ALTERNATE_DAYS),
    "VARYING": (VARYING, STORED_DAY1_DAY2),
    "DAY1-DAY2": (VARYING, STORED_DAY1_DAY2),
    "DAY1_DAY2": (VARYING, STORED_DAY1_DAY2),
}


class Delivery(NamedTuple):
    date: date
    quantity: int


def map_delivery_schedule(raw: str | None) -> tuple[str, str]:
    """
    Map a client schedule tag to (generator type, stored tag).

    Raises:
        BadRequestError: unknown tag
    """
    key = (raw or "").strip().upper()
    if key not in _SCHEDULE_TAGS:
        raise BadRequestError(f"Invalid delivery schedule type: {raw}")
    return _SCHEDULE_TAGS[key]


def weekday_key(d: date) -> str:
    return WEEKDAY_KEYS[d.weekday()]


def normalize_weekdays(weekdays: Iterable[str] | None) -> list[str]:
    """Lower-case, 3-letter keys in the order given; unknown names are rejected."""
    result: list[str] = []
    for day in weekdays or []:
        key = str(day).strip().lower()[:3]
        if key not in WEEKDAY_KEYS:
            raise BadRequestError(f"Invalid weekday: {day}")
        if key not in result:
            result.append(key)
    return result


def _valid_alt_qty(alt_qty) -> bool:
    return isinstance(alt_qty, int) and not isinstance(alt_qty, bool) and alt_qty > 0


def generate_delivery_dates(
    start_date: date,
    period_days: int,
    schedule_type: str,
    qty: int,
    alt_qty: int | None = None,
    weekdays: Iterable[str] | None = None,
) -> list[Delivery]:
    """
    Produce the ordered (date, quantity) deliveries for one subscription.

    - DAILY: every day, qty.
    - ALTERNATE_DAYS: offsets 0, 2, 4, ...; with a valid alt_qty the
      quantity flips qty/alt_qty on each successive delivery.
    - VARYING: every day, qty on even offsets and alt_qty on odd ones;
      without a valid alt_qty behaves as DAILY.
    - SELECT_DAYS: only days whose weekday key is in weekdays, qty.
    """
    deliveries: list[Delivery] = []
    if period_days <= 0:
        return deliveries

    has_alt = _valid_alt_qty(alt_qty)
    selected = set(normalize_weekdays(weekdays)) if schedule_type == SELECT_DAYS else set()

    for offset in range(period_days):
        day = start_date + timedelta(days=offset)

        if schedule_type == DAILY:
            deliveries.append(Delivery(day, qty))

        elif schedule_type == ALTERNATE_DAYS:
            if offset % 2 != 0:
                continue
            if has_alt and len(deliveries) % 2 == 1:
                deliveries.append(Delivery(day, alt_qty))
            else:
                deliveries.append(Delivery(day, qty))

        elif schedule_type == VARYING:
            if has_alt and offset % 2 == 1:
                deliveries.append(Delivery(day, alt_qty))
            else:
                deliveries.append(Delivery(day, qty))

        elif schedule_type == SELECT_DAYS:
            if weekday_key(day) in selected:
                deliveries.append(Delivery(day, qty))

        else:
            raise BadRequestError(f"Invalid delivery schedule type: {schedule_type}")

    return deliveries


def expiry_date_for(start_date: date, period_days: int) -> date:
    """Last day covered by the subscription; a buy-once order expires on its start date."""
    if period_days <= 1:
        return start_date
    return start_date + timedelta(days=period_days - 1)
