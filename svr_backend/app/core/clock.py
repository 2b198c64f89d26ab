"""
Calendar helpers for the configured business timezone.

Trip-code prefixes, the "today" view and exports all use the same local
calendar day. Naive datetimes (as returned by SQLite) are treated as UTC.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from svr_backend.app.core.config import settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(local_zone())


def local_today() -> date:
    return datetime.now(local_zone()).date()
