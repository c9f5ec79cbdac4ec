"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def today_in(tz_name: str) -> date:
    """Current calendar day in the given IANA timezone"""
    return datetime.now(ZoneInfo(tz_name)).date()


def utc_now() -> datetime:
    """Timezone-aware current UTC timestamp"""
    return datetime.now(timezone.utc)
