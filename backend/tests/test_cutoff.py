"""
Tests for the same-day purchase cutoff and business clock helpers.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from ticketing.core.clock import business_today, month_key, weekday_number
from ticketing.services.cutoff import can_purchase

BANGKOK = ZoneInfo("Asia/Bangkok")
TODAY = date(2030, 1, 4)


@pytest.mark.parametrize(
    "hour, minute, second, expected",
    [
        (0, 0, 0, True),
        (20, 29, 0, True),
        (20, 29, 59, True),
        (20, 30, 0, False),
        (23, 59, 59, False),
    ],
)
def test_same_day_cutoff(hour, minute, second, expected):
    now = datetime(2030, 1, 4, hour, minute, second, tzinfo=BANGKOK)
    assert can_purchase(TODAY, now) is expected


def test_future_date_always_purchasable():
    late = datetime(2030, 1, 3, 23, 59, tzinfo=BANGKOK)
    assert can_purchase(TODAY, late) is True


def test_past_date_never_purchasable():
    morning = datetime(2030, 1, 5, 8, 0, tzinfo=BANGKOK)
    assert can_purchase(TODAY, morning) is False


def test_cutoff_uses_business_timezone():
    """13:29 UTC is 20:29 in Bangkok; 13:30 UTC is already past the cutoff."""
    assert can_purchase(TODAY, datetime(2030, 1, 4, 13, 29, tzinfo=timezone.utc)) is True
    assert can_purchase(TODAY, datetime(2030, 1, 4, 13, 30, tzinfo=timezone.utc)) is False


def test_utc_evening_is_next_business_day():
    # 18:00 UTC on the 3rd is 01:00 on the 4th in Bangkok
    now = datetime(2030, 1, 3, 18, 0, tzinfo=timezone.utc)
    assert business_today(now) == TODAY
    assert can_purchase(date(2030, 1, 3), now) is False


def test_naive_now_is_business_local():
    assert can_purchase(TODAY, datetime(2030, 1, 4, 20, 0)) is True
    assert can_purchase(TODAY, datetime(2030, 1, 4, 21, 0)) is False


def test_weekday_numbering_starts_on_sunday():
    assert weekday_number(date(2030, 1, 6)) == 0  # Sunday
    assert weekday_number(TODAY) == 5  # Friday
    assert weekday_number(date(2030, 1, 5)) == 6  # Saturday


def test_month_key():
    assert month_key(date(2030, 3, 9)) == "2030-03"
