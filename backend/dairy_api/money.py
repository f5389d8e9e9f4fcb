# Overview: Decimal helpers for rupee amounts stored as NUMERIC(12, 2).

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0.00")
TWO_PLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value) -> Decimal:
    """Round half-up to paise."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def as_float(value) -> float | None:
    """JSON-friendly rendering of a stored amount."""
    if value is None:
        return None
    return float(round2(value))
