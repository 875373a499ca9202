"""
Ticket catalog: create, read, update and delete ticket definitions.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.clock import weekday_number
from ticketing.core.errors import InvalidInputError, TicketNotFoundError
from ticketing.core.logging import get_logger
from ticketing.models.discount import DiscountRule
from ticketing.models.override import DateOverride
from ticketing.models.ticket import TicketDefinition, TicketKind
from ticketing.schemas.ticket import TicketCreate, TicketUpdate
from ticketing.services.validators import parse_stadium_id, parse_ticket_id

logger = get_logger(__name__)


async def create_ticket(db: AsyncSession, stadium_id: str, ticket_data: TicketCreate) -> TicketDefinition:
    """Create a regular or special ticket definition."""
    stadium_id = parse_stadium_id(stadium_id)

    ticket = TicketDefinition(
        stadium_id=stadium_id,
        kind=ticket_data.kind.value,
        name=ticket_data.name.strip(),
        base_price=ticket_data.base_price,
        base_quantity=ticket_data.base_quantity,
        display_order=ticket_data.display_order,
        weekdays=ticket_data.weekdays,
        date=ticket_data.date,
    )
    db.add(ticket)
    await db.flush()
    await db.refresh(ticket)

    logger.info(
        "ticket_created",
        stadium_id=stadium_id,
        ticket_id=ticket.id,
        kind=ticket.kind,
        name=ticket.name,
        quantity=ticket.base_quantity,
    )
    return ticket


async def get_ticket(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: Optional[TicketKind] = None,
) -> TicketDefinition:
    """Get a ticket of this stadium (and kind, if given). Raises TicketNotFoundError."""
    query = select(TicketDefinition).where(
        TicketDefinition.id == ticket_id,
        TicketDefinition.stadium_id == stadium_id,
    )
    if kind is not None:
        query = query.where(TicketDefinition.kind == kind.value)

    result = await db.execute(query)
    ticket = result.scalar_one_or_none()
    if not ticket:
        raise TicketNotFoundError(stadium_id, ticket_id)
    return ticket


async def list_tickets(
    db: AsyncSession,
    stadium_id: str,
    kind: Optional[TicketKind] = None,
) -> list[TicketDefinition]:
    query = select(TicketDefinition).where(TicketDefinition.stadium_id == parse_stadium_id(stadium_id))
    if kind is not None:
        query = query.where(TicketDefinition.kind == kind.value)

    result = await db.execute(
        query.order_by(TicketDefinition.display_order.asc(), TicketDefinition.id.asc())
    )
    return list(result.scalars().all())


async def tickets_for_date(db: AsyncSession, stadium_id: str, ticket_date: date) -> list[TicketDefinition]:
    """
    Ticket definitions that apply to a date: regular tickets recurring on its
    weekday, then special tickets bound to exactly that date.
    """
    weekday = weekday_number(ticket_date)

    # Weekday membership lives in a JSON array, filtered here rather than in SQL
    regular = await list_tickets(db, stadium_id, TicketKind.REGULAR)
    regular = [t for t in regular if weekday in (t.weekdays or [])]

    result = await db.execute(
        select(TicketDefinition)
        .where(
            TicketDefinition.stadium_id == stadium_id,
            TicketDefinition.kind == TicketKind.SPECIAL.value,
            TicketDefinition.date == ticket_date,
        )
        .order_by(TicketDefinition.display_order.asc(), TicketDefinition.id.asc())
    )
    special = list(result.scalars().all())

    return regular + special


async def update_ticket(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    ticket_data: TicketUpdate,
) -> TicketDefinition:
    """
    Apply a partial update. Changing base_quantity only affects dates whose
    override row has not been materialized yet.
    """
    ticket = await get_ticket(db, parse_stadium_id(stadium_id), parse_ticket_id(ticket_id))
    changes = ticket_data.model_dump(exclude_unset=True)

    if ticket.is_regular and changes.get("date") is not None:
        raise InvalidInputError("regular tickets cannot have a date")
    if not ticket.is_regular and changes.get("weekdays") is not None:
        raise InvalidInputError("special tickets cannot recur on weekdays")
    if ticket.is_regular and "weekdays" in changes and changes["weekdays"] is None:
        raise InvalidInputError("regular tickets need at least one weekday")
    if not ticket.is_regular and "date" in changes and changes["date"] is None:
        raise InvalidInputError("special tickets need a date")

    for field, value in changes.items():
        if field == "name":
            value = value.strip()
        setattr(ticket, field, value)

    await db.flush()
    await db.refresh(ticket)

    logger.info("ticket_updated", stadium_id=stadium_id, ticket_id=ticket_id, fields=sorted(changes))
    return ticket


async def delete_ticket(db: AsyncSession, stadium_id: str, ticket_id: int) -> None:
    """Delete a ticket together with its per-date rows and discount rules."""
    ticket = await get_ticket(db, parse_stadium_id(stadium_id), parse_ticket_id(ticket_id))

    overrides = await db.execute(delete(DateOverride).where(DateOverride.ticket_id == ticket.id))
    discounts = await db.execute(delete(DiscountRule).where(DiscountRule.base_ticket_id == ticket.id))
    await db.delete(ticket)
    await db.flush()

    logger.info(
        "ticket_deleted",
        stadium_id=stadium_id,
        ticket_id=ticket_id,
        overrides_deleted=overrides.rowcount,
        discounts_deleted=discounts.rowcount,
    )
