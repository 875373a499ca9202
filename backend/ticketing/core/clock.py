"""
Business-calendar clock.

Every "now" in the ticketing core is read in one fixed civil timezone
(BUSINESS_TIMEZONE), never UTC and never the caller's zone.
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from ticketing.core.config import get_settings


@lru_cache()
def business_timezone() -> ZoneInfo:
    return ZoneInfo(get_settings().BUSINESS_TIMEZONE)


def business_now() -> datetime:
    """Current wall-clock time in the business timezone."""
    return datetime.now(business_timezone())


def to_business_time(now: Optional[datetime] = None) -> datetime:
    """
    Normalize a timestamp to the business timezone.
    Naive values are taken to already be business-local.
    """
    if now is None:
        return business_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=business_timezone())
    return now.astimezone(business_timezone())


def business_today(now: Optional[datetime] = None) -> date:
    return to_business_time(now).date()


def weekday_number(day: date) -> int:
    """Weekday as stored on regular tickets: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def month_key(moment: date) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"
