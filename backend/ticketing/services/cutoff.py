"""
Same-day purchase cutoff.

Tickets for a future date are always purchasable, tickets for today only
until the cutoff (20:30 business time by default), past dates never.
"""

from datetime import date, datetime, time
from typing import Optional

from ticketing.core.clock import to_business_time
from ticketing.core.config import get_settings


def cutoff_time() -> time:
    settings = get_settings()
    return time(settings.PURCHASE_CUTOFF_HOUR, settings.PURCHASE_CUTOFF_MINUTE)


def can_purchase(ticket_date: date, now: Optional[datetime] = None) -> bool:
    local_now = to_business_time(now)
    today = local_now.date()

    if ticket_date > today:
        return True
    if ticket_date < today:
        return False
    return local_now.time() < cutoff_time()
