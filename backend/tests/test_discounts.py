"""
Tests for calendar discount rules.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from ticketing.core.errors import InvalidInputError, TicketNotFoundError
from ticketing.models.ticket import TicketKind
from ticketing.schemas.ticket import DiscountRuleCreate, DiscountRuleUpdate
from ticketing.services.discount_service import (
    create_discount_rule,
    delete_discount_rule,
    find_discount,
    list_discount_rules,
    update_discount_rule,
)

STADIUM = "lumpinee"


def _rule(ticket_id: int, day: int = 4, month: int = 1, price: str = "1500") -> DiscountRuleCreate:
    return DiscountRuleCreate(
        base_ticket_id=ticket_id,
        base_ticket_kind=TicketKind.REGULAR,
        day_of_month=day,
        month=month,
        discount_price=Decimal(price),
    )


def test_feb_29_is_a_valid_rule_day():
    rule = _rule(1, day=29, month=2)
    assert rule.day_of_month == 29


def test_feb_30_is_rejected():
    with pytest.raises(ValidationError):
        _rule(1, day=30, month=2)


def test_april_31_is_rejected():
    with pytest.raises(ValidationError):
        _rule(1, day=31, month=4)


@pytest.mark.asyncio
async def test_discount_matches_every_year(db_session, friday_ticket):
    await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id))

    for year in (2030, 2031, 2045):
        rule = await find_discount(db_session, STADIUM, friday_ticket.id, TicketKind.REGULAR, date(year, 1, 4))
        assert rule is not None
        assert rule.discount_price == Decimal("1500")

    assert await find_discount(db_session, STADIUM, friday_ticket.id, TicketKind.REGULAR, date(2030, 1, 5)) is None


@pytest.mark.asyncio
async def test_discount_does_not_cross_kinds(db_session, friday_ticket):
    await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id))
    assert await find_discount(db_session, STADIUM, friday_ticket.id, TicketKind.SPECIAL, date(2030, 1, 4)) is None


@pytest.mark.asyncio
async def test_lowest_rule_id_wins(db_session, friday_ticket):
    first = await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id, price="1500"))
    await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id, price="1000"))

    rule = await find_discount(db_session, STADIUM, friday_ticket.id, TicketKind.REGULAR, date(2030, 1, 4))
    assert rule.id == first.id


@pytest.mark.asyncio
async def test_rule_requires_existing_ticket(db_session):
    with pytest.raises(TicketNotFoundError):
        await create_discount_rule(db_session, STADIUM, _rule(999))


@pytest.mark.asyncio
async def test_update_and_delete_rule(db_session, friday_ticket):
    rule = await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id))

    rule = await update_discount_rule(db_session, STADIUM, rule.id, DiscountRuleUpdate(
        day_of_month=14, month=2, discount_price=Decimal("999"),
    ))
    assert (rule.day_of_month, rule.month) == (14, 2)
    assert rule.discount_price == Decimal("999")

    await delete_discount_rule(db_session, STADIUM, rule.id)
    assert await list_discount_rules(db_session, STADIUM) == []


@pytest.mark.asyncio
async def test_update_to_impossible_day_rejected(db_session, friday_ticket):
    rule = await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id, day=31, month=1))
    with pytest.raises(InvalidInputError):
        await update_discount_rule(db_session, STADIUM, rule.id, DiscountRuleUpdate(month=2))


@pytest.mark.asyncio
async def test_list_rules_in_calendar_order(db_session, friday_ticket):
    await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id, day=1, month=12))
    await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id, day=20, month=3))
    await create_discount_rule(db_session, STADIUM, _rule(friday_ticket.id, day=5, month=3))

    rules = await list_discount_rules(db_session, STADIUM)
    assert [(r.month, r.day_of_month) for r in rules] == [(3, 5), (3, 20), (12, 1)]
