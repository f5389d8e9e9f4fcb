from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Current UTC calendar date."""
    return utcnow().date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value) -> Optional[date]:
    """
    Parse a calendar date from "YYYY-MM-DD", a full ISO timestamp, or a date/datetime.
    Timestamps are reduced to their UTC calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    if len(s) == 10:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def parse_start_date(value) -> Optional[date]:
    """
    Subscription start dates arrive as the client's local midnight converted to UTC.
    Shifting by 12 hours before truncating lands on the intended calendar day for
    any offset within +/-12h. A bare "YYYY-MM-DD" is taken as-is.
    """
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str) and len(value.strip()) == 10:
        return date.fromisoformat(value.strip())
    dt = value if isinstance(value, datetime) else parse_iso_datetime(str(value))
    if dt is None:
        return None
    return (dt + timedelta(hours=12)).date()


def financial_year_code(on: date | datetime | None = None) -> str:
    """
    Indian financial year (April-March) as 'YYNN', e.g. 2526 for Apr 2025 - Mar 2026.
    """
    on = on or today()
    start_year = on.year if on.month >= 4 else on.year - 1
    return f"{start_year % 100:02d}{(start_year + 1) % 100:02d}"


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def to_iso_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()
