# clup/core/clock.py
# "Now" helpers. Timeslots are local wall-clock times, tokens use UTC.
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from clup.core.config import settings


def local_now() -> datetime:
    """Naive datetime in the stores' timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
