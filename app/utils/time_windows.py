# backend/app/utils/time_windows.py

from datetime import datetime, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings
from app.core.errors import FormValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    zone_name = name or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise FormValidationError(f"Unknown time zone: {zone_name}")


def day_window(moment: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """Calendar day containing ``moment`` in ``tz``: [00:00:00.000, 23:59:59.999]."""
    local = moment.astimezone(tz)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end = local.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


def day_key(moment: datetime, tz: tzinfo) -> str:
    return moment.astimezone(tz).date().isoformat()


def to_iso(moment: datetime) -> str:
    """UTC, millisecond precision. Stored timestamps all use this shape so
    they compare correctly as strings."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
