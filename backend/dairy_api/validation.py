from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import BadRequestError
from .time_utils import parse_date, parse_iso_datetime


# Upper bound for any single rupee amount accepted from clients
MAX_AMOUNT = Decimal("99999999.99")
TWO_PLACES = Decimal("0.01")


class ValidationError(BadRequestError):
    """400-level input problem, optionally with per-field messages."""

    def __init__(self, message: str, fields: dict[str, str] | None = None):
        super().__init__(message)
        self.fields = fields or {}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - aliases: camelCase client keys mapped onto column keys
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    aliases: dict[str, str] | None = None


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Coerce a client number/string into a 2-place Decimal."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", {field: "must be a number"})
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", {field: "must be a number"})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", {field: "must be a number"})
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", {field: "must be an integer"})
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{field} must be an integer", {field: "must be an integer"})


def to_positive_int(value: Any, field: str) -> int:
    number = to_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than 0", {field: "must be greater than 0"})
    return number


def require_fields(payload: dict, fields: Iterable[str]) -> None:
    """Raise a field-level 400 for every required key that is absent or blank."""
    missing = {
        f: "is required"
        for f in fields
        if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload.get(f).strip())
    }
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Booleans (also arrive as "true"/"false" in multipart forms)
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    if isinstance(coltype, Integer):
        return to_int(value, col.key)

    if isinstance(coltype, Numeric):
        amount = to_money(value, col.key)
        if amount < 0:
            raise ValidationError(f"{col.key} must be >= 0", {col.key: "must be >= 0"})
        if amount > MAX_AMOUNT:
            raise ValidationError(f"{col.key} cannot exceed {MAX_AMOUNT}", {col.key: "too large"})
        return amount

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        try:
            dt = parse_iso_datetime(str(value))
        except ValueError:
            dt = None
        if dt is None:
            raise ValidationError(f"{col.key} must be an ISO-8601 datetime", {col.key: "invalid datetime"})
        return dt

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value if not isinstance(value, datetime) else value.date()
        try:
            d = parse_date(value)
        except ValueError:
            d = None
        if d is None:
            raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)", {col.key: "invalid date"})
        return d

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields); unknown keys are ignored
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    aliases = policy.aliases or {}
    normalized = {}
    for key, raw in payload.items():
        normalized[aliases.get(key, key)] = raw

    if not partial:
        require_fields(normalized, sorted(policy.required_on_create or set()))

    cols = _columns_by_key(model)
    patch: dict = {}
    errors: dict[str, str] = {}

    for k, raw in normalized.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        if raw is None or (isinstance(raw, str) and raw == "" and not isinstance(col.type, (String, Text))):
            if not col.nullable:
                errors[k] = "cannot be null"
                continue
            patch[k] = None
            continue

        try:
            val = _coerce_value(col, raw)
        except ValidationError as e:
            errors.update(e.fields or {k: e.message})
            continue

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            errors[k] = "cannot be blank"
            continue

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                errors[k] = f"exceeds max length {col.type.length}"
                continue

        patch[k] = val

    if errors:
        first = next(iter(errors))
        raise ValidationError(f"{first} {errors[first]}", errors)

    return patch


def enforce_rules_variant(patch: dict) -> None:
    """Price tiers and stock thresholds that column metadata alone cannot express."""
    if "mrp" in patch and patch["mrp"] is not None and patch["mrp"] <= 0:
        raise ValidationError("mrp must be greater than 0", {"mrp": "must be greater than 0"})
    for key in ("minimum_qty", "closing_qty"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0", {key: "must be >= 0"})


def enforce_rules_mobile(value: str | None, field: str = "mobile") -> None:
    if value is None:
        return
    if not (len(value) == 10 and value.isdigit()):
        raise ValidationError(f"{field} must be a 10-digit number", {field: "must be a 10-digit number"})


def parse_date_args(args: dict, keys: Iterable[str] = ("date", "from_date", "to_date")) -> dict:
    """Copy of query args with the named keys parsed to dates (400 on a bad value)."""
    parsed = dict(args)
    for key in keys:
        if parsed.get(key):
            try:
                parsed[key] = parse_date(parsed[key])
            except ValueError:
                raise ValidationError(f"{key} must be YYYY-MM-DD", {key: "invalid date"})
    return parsed
