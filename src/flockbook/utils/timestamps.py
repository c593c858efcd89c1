"""Timestamp helpers shared by the lot and stock logic."""

from datetime import UTC, date, datetime, time
from typing import Callable, Optional, Union

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive values are taken to already be UTC (SQLite drops tzinfo).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def record_timestamp(created_at: Optional[datetime], business_date: Union[date, datetime]) -> datetime:
    """Ordering timestamp of a purchase or sale.

    Prefers ``created_at`` and falls back to midnight UTC of the business date.
    """
    if created_at is not None:
        return as_utc(created_at)
    if isinstance(business_date, datetime):
        return as_utc(business_date)
    return datetime.combine(business_date, time.min, tzinfo=UTC)


def in_window(timestamp: datetime, start: datetime, end: Optional[datetime] = None) -> bool:
    """True when ``start < timestamp <= end`` (``end`` of None is open)."""
    timestamp = as_utc(timestamp)
    if timestamp <= as_utc(start):
        return False
    return end is None or timestamp <= as_utc(end)
