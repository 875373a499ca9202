"""
Calendar discount rules.

A rule is keyed by (stadium, base ticket, day of month, month) and fires on
that calendar day every year. If an operator configures two rules for the
same ticket and day, the one with the lowest id wins.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.errors import InvalidInputError
from ticketing.core.logging import get_logger
from ticketing.models.discount import DiscountRule
from ticketing.models.ticket import TicketKind
from ticketing.schemas.ticket import DiscountRuleCreate, DiscountRuleUpdate, check_calendar_day
from ticketing.services.catalog_service import get_ticket
from ticketing.services.validators import parse_stadium_id

logger = get_logger(__name__)


async def find_discount(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: TicketKind,
    ticket_date: date,
) -> Optional[DiscountRule]:
    """Discount rule matching the date's day and month, ignoring the year."""
    result = await db.execute(
        select(DiscountRule)
        .where(
            DiscountRule.stadium_id == stadium_id,
            DiscountRule.base_ticket_id == ticket_id,
            DiscountRule.base_ticket_kind == kind.value,
            DiscountRule.day_of_month == ticket_date.day,
            DiscountRule.month == ticket_date.month,
        )
        .order_by(DiscountRule.id.asc())
        .limit(1)
    )
    return result.scalars().first()


async def list_discount_rules(db: AsyncSession, stadium_id: str) -> list[DiscountRule]:
    result = await db.execute(
        select(DiscountRule)
        .where(DiscountRule.stadium_id == parse_stadium_id(stadium_id))
        .order_by(DiscountRule.month.asc(), DiscountRule.day_of_month.asc(), DiscountRule.id.asc())
    )
    return list(result.scalars().all())


async def get_discount_rule(db: AsyncSession, stadium_id: str, rule_id: int) -> DiscountRule:
    result = await db.execute(
        select(DiscountRule).where(DiscountRule.id == rule_id, DiscountRule.stadium_id == stadium_id)
    )
    rule = result.scalar_one_or_none()
    if not rule:
        raise InvalidInputError(f"Discount rule {rule_id} not found for stadium {stadium_id}")
    return rule


async def create_discount_rule(db: AsyncSession, stadium_id: str, rule_data: DiscountRuleCreate) -> DiscountRule:
    """Create a rule for an existing base ticket. Raises TicketNotFoundError otherwise."""
    stadium_id = parse_stadium_id(stadium_id)
    await get_ticket(db, stadium_id, rule_data.base_ticket_id, rule_data.base_ticket_kind)

    rule = DiscountRule(
        stadium_id=stadium_id,
        base_ticket_id=rule_data.base_ticket_id,
        base_ticket_kind=rule_data.base_ticket_kind.value,
        day_of_month=rule_data.day_of_month,
        month=rule_data.month,
        discount_price=rule_data.discount_price,
    )
    db.add(rule)
    await db.flush()
    await db.refresh(rule)

    logger.info(
        "discount_rule_created",
        stadium_id=stadium_id,
        rule_id=rule.id,
        ticket_id=rule.base_ticket_id,
        day_of_month=rule.day_of_month,
        month=rule.month,
    )
    return rule


async def update_discount_rule(
    db: AsyncSession,
    stadium_id: str,
    rule_id: int,
    rule_data: DiscountRuleUpdate,
) -> DiscountRule:
    stadium_id = parse_stadium_id(stadium_id)
    rule = await get_discount_rule(db, stadium_id, rule_id)
    changes = rule_data.model_dump(exclude_unset=True, exclude_none=True)

    ticket_id = changes.get("base_ticket_id", rule.base_ticket_id)
    kind = TicketKind(changes.get("base_ticket_kind", rule.base_ticket_kind))
    if "base_ticket_id" in changes or "base_ticket_kind" in changes:
        await get_ticket(db, stadium_id, ticket_id, kind)

    try:
        check_calendar_day(changes.get("day_of_month", rule.day_of_month), changes.get("month", rule.month))
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc

    for field, value in changes.items():
        if field == "base_ticket_kind":
            value = value.value
        setattr(rule, field, value)

    await db.flush()
    await db.refresh(rule)

    logger.info("discount_rule_updated", stadium_id=stadium_id, rule_id=rule_id, fields=sorted(changes))
    return rule


async def delete_discount_rule(db: AsyncSession, stadium_id: str, rule_id: int) -> None:
    rule = await get_discount_rule(db, parse_stadium_id(stadium_id), rule_id)
    await db.delete(rule)
    await db.flush()
    logger.info("discount_rule_deleted", stadium_id=stadium_id, rule_id=rule_id)
