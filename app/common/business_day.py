"""
Business day helpers

Sales are attributed to the calendar date in the restaurant's timezone
(BUSINESS_TIMEZONE), not to the UTC date they were stored with.
"""
from datetime import date, datetime
from typing import Optional

import pytz

from app.core.config import settings


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive values read back from stores that drop tzinfo (SQLite)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt


def get_business_date(dt: datetime, business_timezone: Optional[str] = None) -> date:
    """
    Business date a timestamp belongs to.

    Args:
        dt: Timestamp, aware or naive UTC
        business_timezone: IANA name, defaults to settings.BUSINESS_TIMEZONE
    """
    tz = pytz.timezone(business_timezone or settings.BUSINESS_TIMEZONE)
    return as_utc(dt).astimezone(tz).date()


def current_business_date(business_timezone: Optional[str] = None) -> date:
    return get_business_date(datetime.now(pytz.UTC), business_timezone)
