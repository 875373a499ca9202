"""
Availability resolution: what can be bought for a stadium on a date, and at
what price.

Resolving offers materializes the per-date row of every applicable ticket,
so the first read of a date opens its inventory. From then on the row, not
the ticket definition, is the source of truth for quantity, visibility and
price/name overrides.

Price precedence: per-date price override, then calendar discount, then the
ticket's base price.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.clock import business_today
from ticketing.core.config import get_settings
from ticketing.core.errors import DomainError, ImpossibleDateError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_offers_resolved
from ticketing.models.discount import DiscountRule
from ticketing.models.override import DateOverride
from ticketing.models.ticket import TicketDefinition, TicketKind
from ticketing.schemas.offer import (
    DateAvailability,
    DateTicketView,
    DiscountInfo,
    Offer,
    PriceQuote,
    PurchaseOutcome,
)
from ticketing.services.catalog_service import tickets_for_date
from ticketing.services.cutoff import can_purchase
from ticketing.services.discount_service import find_discount
from ticketing.services.override_service import find_override, get_or_create
from ticketing.services.validators import (
    parse_kind,
    parse_quantity,
    parse_stadium_id,
    parse_ticket_date,
    parse_ticket_id,
)

logger = get_logger(__name__)


def _price_for(
    ticket: TicketDefinition,
    override: Optional[DateOverride],
    discount: Optional[DiscountRule],
) -> tuple[Decimal, Optional[DiscountInfo]]:
    if override is not None and override.price_override is not None:
        return Decimal(override.price_override), None

    base_price = Decimal(ticket.base_price)
    if discount is not None:
        discount_price = Decimal(discount.discount_price)
        return discount_price, DiscountInfo(
            original_price=base_price,
            discount_price=discount_price,
            discount_amount=base_price - discount_price,
        )

    return base_price, None


def _name_for(ticket: TicketDefinition, override: Optional[DateOverride]) -> str:
    if override is not None and override.name_override:
        return override.name_override
    return ticket.name


async def resolve_offers(
    db: AsyncSession,
    stadium_id: str,
    ticket_date,
    now: Optional[datetime] = None,
) -> list[Offer]:
    """
    Sellable offers for a stadium on a date: regular tickets first, then
    special ones. Returns [] once the date is past its purchase cutoff, and
    for a well-formed date that names no real day such as 2030-02-30.
    Raises InvalidInputError for a malformed stadium id or date string.
    """
    stadium_id = parse_stadium_id(stadium_id)
    try:
        ticket_date = parse_ticket_date(ticket_date)
    except ImpossibleDateError:
        record_offers_resolved("invalid_date")
        return []

    if not can_purchase(ticket_date, now):
        record_offers_resolved("cutoff")
        logger.debug("offers_cutoff_passed", stadium_id=stadium_id, date=ticket_date.isoformat())
        return []

    offers = []
    for ticket in await tickets_for_date(db, stadium_id, ticket_date):
        kind = TicketKind(ticket.kind)
        override = await get_or_create(db, stadium_id, ticket.id, kind, ticket_date)
        if not override.enabled or override.quantity <= 0:
            continue

        discount = await find_discount(db, stadium_id, ticket.id, kind, ticket_date)
        price, discount_info = _price_for(ticket, override, discount)

        offers.append(Offer(
            ticket_id=ticket.id,
            kind=kind,
            date=ticket_date,
            effective_name=_name_for(ticket, override),
            effective_price=price,
            available_quantity=override.quantity,
            display_order=ticket.display_order,
            discount_info=discount_info,
        ))

    record_offers_resolved("available" if offers else "sold_out")
    return offers


async def has_sellable_offers(
    db: AsyncSession,
    stadium_id: str,
    ticket_date,
    now: Optional[datetime] = None,
) -> bool:
    return bool(await resolve_offers(db, stadium_id, ticket_date, now))


async def upcoming_availability(
    db: AsyncSession,
    stadium_id: str,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[DateAvailability]:
    """Booking calendar: the next `days` dates from business today with a sellable flag."""
    days = days if days is not None else get_settings().UPCOMING_DAYS
    if days <= 0:
        return []

    today = business_today(now)
    calendar = []
    for offset in range(days):
        day = today + timedelta(days=offset)
        calendar.append(DateAvailability(
            date=day,
            available=await has_sellable_offers(db, stadium_id, day, now),
        ))
    return calendar


async def quote_price(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind,
    ticket_date,
    quantity: int,
    now: Optional[datetime] = None,
) -> PriceQuote:
    """
    Price a prospective purchase on the server side. Every rejection is
    returned as a typed outcome rather than raised.
    """
    try:
        stadium_id = parse_stadium_id(stadium_id)
        ticket_id = parse_ticket_id(ticket_id)
        kind = parse_kind(kind)
        ticket_date = parse_ticket_date(ticket_date)
        quantity = parse_quantity(quantity)
    except DomainError as exc:
        return PriceQuote(outcome=PurchaseOutcome.INVALID_INPUT, detail=exc.message)

    if not can_purchase(ticket_date, now):
        return PriceQuote(
            outcome=PurchaseOutcome.CUTOFF_EXCEEDED,
            quantity=quantity,
            detail=f"Tickets for {ticket_date.isoformat()} are no longer on sale",
        )

    applicable = await tickets_for_date(db, stadium_id, ticket_date)
    if not any(t.id == ticket_id and t.kind == kind.value for t in applicable):
        return PriceQuote(
            outcome=PurchaseOutcome.TICKET_NOT_FOUND,
            quantity=quantity,
            detail=f"Ticket {ticket_id} is not sold on {ticket_date.isoformat()}",
        )

    offers = await resolve_offers(db, stadium_id, ticket_date, now)
    offer = next((o for o in offers if o.ticket_id == ticket_id and o.kind == kind), None)
    if offer is None or offer.available_quantity < quantity:
        available = offer.available_quantity if offer else 0
        return PriceQuote(
            outcome=PurchaseOutcome.INSUFFICIENT_INVENTORY,
            quantity=quantity,
            offer=offer,
            detail=f"Requested {quantity}, available {available}",
        )

    return PriceQuote(
        outcome=PurchaseOutcome.QUOTED,
        quantity=quantity,
        unit_price=offer.effective_price,
        total_price=offer.effective_price * quantity,
        offer=offer,
    )


async def list_date_tickets(db: AsyncSession, stadium_id: str, ticket_date) -> list[DateTicketView]:
    """
    Admin view of every ticket applicable to a date, including disabled and
    sold-out ones. Dates without a row show the ticket's defaults; nothing
    is materialized.
    """
    stadium_id = parse_stadium_id(stadium_id)
    ticket_date = parse_ticket_date(ticket_date)

    views = []
    for ticket in await tickets_for_date(db, stadium_id, ticket_date):
        kind = TicketKind(ticket.kind)
        override = await find_override(db, stadium_id, ticket.id, kind, ticket_date)
        discount = await find_discount(db, stadium_id, ticket.id, kind, ticket_date)
        price, discount_info = _price_for(ticket, override, discount)

        views.append(DateTicketView(
            ticket_id=ticket.id,
            kind=kind,
            date=ticket_date,
            name=_name_for(ticket, override),
            original_name=ticket.name,
            price=price,
            original_price=Decimal(ticket.base_price),
            quantity=override.quantity if override else ticket.base_quantity,
            initial_quantity=override.initial_quantity if override else ticket.base_quantity,
            enabled=override.enabled if override else True,
            has_override=override is not None,
            discount_info=discount_info,
        ))
    return views
