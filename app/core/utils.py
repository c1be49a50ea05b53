from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_now(now: Optional[datetime] = None) -> datetime:
    """Current time in the configured application timezone."""
    return as_utc(now or utcnow()).astimezone(ZoneInfo(settings.TIMEZONE))


def start_of_local_day(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the current day, as UTC."""
    local = local_now(now)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def start_of_local_month(now: Optional[datetime] = None) -> datetime:
    """Local midnight of the 1st of the current month, as UTC."""
    local = local_now(now)
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return first.astimezone(timezone.utc)
