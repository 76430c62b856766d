from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from ..core.exceptions import InvalidRangeError, ValidationError

_TIMESTAMP_LAYOUTS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_date_param(value: Optional[str], field_name: str) -> Optional[date]:
    if value is None or not value.strip():
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def utc_now() -> datetime:
    """Current UTC time, truncated to whole seconds.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return as_utc(datetime.now(timezone.utc))


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC.

    Sub-second precision is dropped: DATETIME columns hold whole seconds, and a
    value read back must compare equal to the one written.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def parse_timestamp(value: str) -> datetime:
    """Parse RFC 3339 (``Z`` suffix allowed) or ``YYYY-MM-DD HH:MM`` into UTC."""
    raw = value.strip()
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(raw))
    except ValueError:
        pass
    for layout in _TIMESTAMP_LAYOUTS:
        try:
            return as_utc(datetime.strptime(raw, layout))
        except ValueError:
            continue
    raise ValidationError("timestamp must be RFC3339 or YYYY-MM-DD HH:MM")


def day_start(value: date) -> datetime:
    """Midnight UTC of a calendar date."""
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def day_end_exclusive(value: date) -> datetime:
    return day_start(value + timedelta(days=1))


def resolve_range(
    start: Optional[date],
    end: Optional[date],
    *,
    today: date,
    default_days: int,
) -> tuple[date, date]:
    """Fill missing range bounds and validate the order.

    No bounds: the last ``default_days`` days up to today. A missing start is
    the first day of the current month, a missing end is today.
    """

    if start is None and end is None:
        start = today - timedelta(days=default_days)
        end = today
    elif start is None:
        start = today.replace(day=1)
    elif end is None:
        end = today

    if end < start:
        raise InvalidRangeError("end_date must be >= start_date")
    return start, end
