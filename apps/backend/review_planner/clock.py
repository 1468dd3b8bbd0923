"""Local-time helpers.

復習スケジュールの比較はすべて「ローカル時刻の暦日」で行う。保存値と
比較値はタイムゾーン情報を持たない naive な datetime に揃える。
"""

from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from zoneinfo import ZoneInfo

from .config import settings


def local_zone() -> tzinfo | None:
    """Return the configured zone, or None for the host's local zone."""

    if settings.timezone:
        return ZoneInfo(settings.timezone)
    return None


def local_now() -> datetime:
    """Current local wall-clock time as a naive datetime."""

    zone = local_zone()
    if zone is None:
        return datetime.now()
    return datetime.now(zone).replace(tzinfo=None)


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to local wall-clock time; naive values pass through."""

    if value.tzinfo is None:
        return value
    return value.astimezone(local_zone()).replace(tzinfo=None)


def as_datetime(value: date | datetime) -> datetime:
    """Promote a calendar day to its local midnight."""

    if isinstance(value, datetime):
        return to_local_naive(value)
    return datetime.combine(value, time.min)


def day_of(value: date | datetime) -> date:
    """Calendar day of a date or datetime in local time."""

    if isinstance(value, datetime):
        return to_local_naive(value).date()
    return value


def day_key(value: date | datetime) -> str:
    """`YYYY-MM-DD` key used by daily overrides."""

    return day_of(value).isoformat()
