# Overview: UTC storage and station-local calendar days.

"""
Every timestamp is stored as a naive datetime in UTC and leaves the API
as ISO-8601 with a trailing Z. Station-local days are converted to UTC
ranges with zoneinfo so DST days are 23 or 25 hours long.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UTC = timezone.utc


def _as_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-01-15T10:00", "...Z" and "...+02:00" all become UTC-naive.
    Offset-less input is taken as UTC. Blank input gives None.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    return _as_utc_naive(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    stamp = _as_utc_naive(dt).replace(microsecond=0)
    return stamp.isoformat() + "Z"


def get_zone(name: Optional[str]) -> ZoneInfo:
    """Resolve an IANA zone name, falling back to UTC for unknown names."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def local_to_utc_naive(local_dt: datetime, zone: ZoneInfo) -> datetime:
    """Attach ``zone`` to a wall-clock datetime and return it as UTC-naive."""
    return local_dt.replace(tzinfo=zone).astimezone(UTC).replace(tzinfo=None)


def utc_naive_to_local(dt: datetime, zone: ZoneInfo) -> datetime:
    return dt.replace(tzinfo=UTC).astimezone(zone)


def local_day_start(day: date, zone: ZoneInfo) -> datetime:
    """UTC-naive instant at which ``day`` begins in ``zone``."""
    return local_to_utc_naive(datetime.combine(day, time.min), zone)


def local_day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC-naive range covering one local calendar day."""
    return local_day_start(day, zone), local_day_start(day + timedelta(days=1), zone)


def parse_business_datetime(value, zone: ZoneInfo, *, default_now: bool = True) -> Optional[datetime]:
    """
    Normalize a business date/time input to UTC-naive.

    Accepts:
    - None / "" -> utcnow() (or None when default_now=False)
    - datetime: aware -> UTC; naive -> treated as UTC-naive
    - date or "YYYY-MM-DD" -> local midnight of that day in ``zone``
    - any other ISO-8601 string -> parse_iso_datetime
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return utcnow() if default_now else None

    if isinstance(value, datetime):
        return _as_utc_naive(value)

    if isinstance(value, date):
        return local_day_start(value, zone)

    if isinstance(value, str):
        s = value.strip()
        if len(s) == 10:
            return local_day_start(date.fromisoformat(s), zone)
        return parse_iso_datetime(s)

    raise ValueError("invalid date")
