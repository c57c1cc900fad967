"""Local time in the configured coaching timezone."""
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from morning_coach.core.config import settings


def local_timezone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def to_local(value: datetime) -> datetime:
    """Convert to the coaching timezone. Naive values are taken as local already."""
    tz = local_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def local_now(now: Optional[datetime] = None) -> datetime:
    return to_local(now) if now is not None else datetime.now(local_timezone())
