"""Time helpers shared by services."""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from app.config import settings


def utcnow() -> datetime:
    """Current timezone-aware UTC time."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without zone support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def clinic_today() -> date:
    """Today's date in the clinic's timezone."""
    return datetime.now(ZoneInfo(settings.clinic_timezone)).date()
