"""
Monthly replenishment of special tickets for the auto-generated stadium.

Each date of the coming month is filled from a fixed template roster,
richest first, until the date holds MAX_TICKETS_PER_DATE special tickets.
Names already present on a date are never created twice, and every ticket
created here starts disabled so an operator can review it before it sells.

Run state is one row per stadium (`replenishment_state`) holding the
business month in which the last run happened. The row is locked for the
whole pass, so a restart or a second instance in the same month is a no-op.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.clock import business_today, month_key, to_business_time
from ticketing.core.config import get_settings
from ticketing.core.errors import InvalidInputError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_replenishment
from ticketing.db.session import dialect_insert
from ticketing.models.replenishment import GenerationState
from ticketing.models.ticket import TicketDefinition, TicketKind
from ticketing.schemas.replenishment import (
    DateGenerationDetail,
    GenerationResult,
    GenerationStatus,
    TicketTemplateResponse,
)
from ticketing.schemas.ticket import TicketCreate
from ticketing.services.catalog_service import create_ticket
from ticketing.services.override_service import get_or_create
from ticketing.services.validators import parse_stadium_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class TicketTemplate:
    name: str
    price: Decimal
    quantity: int


# Richest to cheapest; a partially filled date takes the top of the list first
TICKET_TEMPLATES = (
    TicketTemplate("FAMILY SUITE", Decimal("22500"), 1),
    TicketTemplate("VIP LOUNGE - PANORAMIC BALCONY", Decimal("10000"), 1),
    TicketTemplate("VIP LOUNGE - COUPLE SUITE", Decimal("9000"), 1),
    TicketTemplate("PRESIDENTIAL BOX SEAT", Decimal("3500"), 1),
    TicketTemplate("RINGSIDE", Decimal("2500"), 2),
    TicketTemplate("CLUB CLASS", Decimal("1800"), 20),
    TicketTemplate("LEO SECTION", Decimal("1500"), 20),
    TicketTemplate("3RD CLASS", Decimal("1000"), 50),
)


def get_ticket_templates() -> list[TicketTemplateResponse]:
    return [
        TicketTemplateResponse(name=t.name, price=t.price, quantity=t.quantity)
        for t in TICKET_TEMPLATES
    ]


def month_dates(year: int, month: int) -> list[date]:
    days_in_month = calendar.monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, days_in_month + 1)]


def next_month(today: date) -> tuple[int, int]:
    if today.month == 12:
        return today.year + 1, 1
    return today.year, today.month + 1


def next_month_dates(today: date) -> list[date]:
    """Every date of the calendar month after `today`."""
    return month_dates(*next_month(today))


async def existing_special_names(db: AsyncSession, stadium_id: str, ticket_date: date) -> tuple[set[str], int]:
    """Trimmed names of the special tickets on a date, and how many distinct tickets there are."""
    result = await db.execute(
        select(TicketDefinition.id, TicketDefinition.name).where(
            TicketDefinition.stadium_id == stadium_id,
            TicketDefinition.kind == TicketKind.SPECIAL.value,
            TicketDefinition.date == ticket_date,
        )
    )
    rows = result.all()
    names = {name.strip() for _, name in rows if name}
    return names, len({ticket_id for ticket_id, _ in rows})


def _check_designated(stadium_id: str) -> str:
    stadium_id = parse_stadium_id(stadium_id)
    if stadium_id != get_settings().AUTO_GENERATION_STADIUM_ID:
        raise InvalidInputError(f"Automatic ticket generation is not enabled for stadium {stadium_id}")
    return stadium_id


async def _fill_date(db: AsyncSession, stadium_id: str, ticket_date: date, cap: int) -> DateGenerationDetail:
    detail = DateGenerationDetail(date=ticket_date)
    names, count = await existing_special_names(db, stadium_id, ticket_date)

    if count >= cap:
        detail.reason = f"Already has {count} tickets (max: {cap})"
        return detail

    needed = cap - count
    for order, template in enumerate(TICKET_TEMPLATES):
        if detail.tickets_created >= needed:
            break

        name = template.name.strip()
        if name in names:
            detail.tickets_skipped += 1
            detail.skipped_ticket_names.append(name)
            continue

        ticket = await create_ticket(db, stadium_id, TicketCreate(
            kind=TicketKind.SPECIAL,
            name=name,
            base_price=template.price,
            base_quantity=template.quantity,
            display_order=order,
            date=ticket_date,
        ))
        # Hidden from sale until an operator enables it for the date
        await get_or_create(db, stadium_id, ticket.id, TicketKind.SPECIAL, ticket_date, enabled=False)

        names.add(name)
        detail.tickets_created += 1
        detail.created_ticket_names.append(name)

    return detail


async def generate_month(db: AsyncSession, stadium_id: str, year: int, month: int) -> GenerationResult:
    """
    Fill every date of `year`-`month` up to the per-date cap.
    Raises InvalidInputError for a stadium without automatic generation.
    """
    stadium_id = _check_designated(stadium_id)
    if not 1 <= month <= 12:
        raise InvalidInputError(f"Invalid month: {month}")

    cap = get_settings().MAX_TICKETS_PER_DATE
    result = GenerationResult(stadium_id=stadium_id, month_key=f"{year:04d}-{month:02d}")

    for ticket_date in month_dates(year, month):
        detail = await _fill_date(db, stadium_id, ticket_date, cap)
        if detail.reason:
            result.dates_skipped += 1
        else:
            result.dates_processed += 1
        result.tickets_created += detail.tickets_created
        result.tickets_skipped += detail.tickets_skipped
        result.date_details.append(detail)

    logger.info(
        "replenishment_completed",
        stadium_id=stadium_id,
        month=result.month_key,
        tickets_created=result.tickets_created,
        tickets_skipped=result.tickets_skipped,
        dates_processed=result.dates_processed,
        dates_skipped=result.dates_skipped,
    )
    return result


async def _lock_state(db: AsyncSession, stadium_id: str) -> GenerationState:
    await db.execute(
        dialect_insert(db, GenerationState)
        .values(stadium_id=stadium_id, month_key=None)
        .on_conflict_do_nothing(index_elements=["stadium_id"])
    )
    result = await db.execute(
        select(GenerationState)
        .where(GenerationState.stadium_id == stadium_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def run_monthly_generation(
    db: AsyncSession,
    stadium_id: str,
    now: Optional[datetime] = None,
) -> Optional[GenerationResult]:
    """
    Generate next month's tickets once per business month.
    Returns None when this month already ran or the stadium is not auto-generated.
    """
    stadium_id = parse_stadium_id(stadium_id)
    if stadium_id != get_settings().AUTO_GENERATION_STADIUM_ID:
        return None

    state = await _lock_state(db, stadium_id)
    today = business_today(now)
    current_key = month_key(today)

    if state.month_key == current_key:
        record_replenishment("skipped")
        logger.debug("replenishment_already_done", stadium_id=stadium_id, month=current_key)
        return None

    result = await generate_month(db, stadium_id, *next_month(today))

    state.month_key = current_key
    state.generated_at = to_business_time(now)
    await db.flush()

    record_replenishment("generated", result.tickets_created)
    return result


async def get_generation_status(db: AsyncSession, stadium_id: str) -> GenerationStatus:
    stadium_id = parse_stadium_id(stadium_id)
    state = await db.get(GenerationState, stadium_id)
    templates = get_ticket_templates()

    return GenerationStatus(
        stadium_id=stadium_id,
        last_month_key=state.month_key if state else None,
        last_generated_at=state.generated_at if state else None,
        templates=templates,
        template_count=len(templates),
    )
