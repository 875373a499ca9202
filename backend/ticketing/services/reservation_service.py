"""
Inventory reservation with an atomic conditional decrement.

CONCURRENCY STRATEGY: Guarded UPDATE
====================================

Problem:
  Two buyers take the last units of a date simultaneously.
  Both read quantity=1, both write quantity=0, both succeed.
  Result: Overselling.

Solution:
  The check and the decrement are one statement:

  UPDATE ticket_date_overrides SET quantity = quantity - N
  WHERE <key> AND quantity >= N AND enabled

  Exactly one affected row means the units were taken. Zero rows means the
  stock was short or the date was disabled when the statement ran; nothing
  is read first, so there is no window between check and act to lose.
  The CHECK (quantity >= 0) constraint on the table is the final safety net.

  No version column and no retry loop are needed: the guard itself is the
  condition, and a losing writer simply sees zero rows.
"""

import time
from datetime import date, datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.clock import business_today
from ticketing.core.errors import DomainError, TicketNotFoundError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_reservation, reservation_latency
from ticketing.models.override import DateOverride
from ticketing.models.ticket import TicketKind
from ticketing.schemas.offer import PurchaseOutcome, ReservationResult
from ticketing.services.catalog_service import tickets_for_date
from ticketing.services.override_service import get_or_create
from ticketing.services.validators import (
    parse_kind,
    parse_quantity,
    parse_stadium_id,
    parse_ticket_date,
    parse_ticket_id,
)

logger = get_logger(__name__)


def _rejected(
    outcome: PurchaseOutcome,
    detail: str,
    started: float,
    **context,
) -> ReservationResult:
    reservation_latency.observe(time.perf_counter() - started)
    record_reservation(outcome.value)
    logger.warning("reservation_rejected", outcome=outcome.value, detail=detail, **context)
    return ReservationResult(outcome=outcome, detail=detail)


async def _offered_on(
    db: AsyncSession, stadium_id: str, ticket_id: int, kind: TicketKind, ticket_date: date
) -> bool:
    return any(
        t.id == ticket_id and t.kind == kind.value
        for t in await tickets_for_date(db, stadium_id, ticket_date)
    )


async def reserve(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: TicketKind,
    ticket_date: date,
    quantity: int,
    now: Optional[datetime] = None,
) -> ReservationResult:
    """
    Take `quantity` units of a ticket on a date, or nothing at all.

    Past dates are never sold, and the ticket must be offered on the date:
    a regular ticket on one of its weekdays, a special ticket on its own day.

    The caller's session owns the transaction: a reservation is durable once
    the surrounding unit of work commits, together with whatever the booking
    flow records alongside it.
    """
    start = time.perf_counter()
    try:
        stadium_id = parse_stadium_id(stadium_id)
        ticket_id = parse_ticket_id(ticket_id)
        kind = parse_kind(kind)
        ticket_date = parse_ticket_date(ticket_date)
        quantity = parse_quantity(quantity)
    except DomainError as exc:
        return _rejected(PurchaseOutcome.INVALID_INPUT, exc.message, start)

    context = {
        "stadium_id": stadium_id,
        "ticket_id": ticket_id,
        "kind": kind.value,
        "date": ticket_date.isoformat(),
        "quantity": quantity,
    }

    # A purged past row must not come back at base quantity
    if ticket_date < business_today(now):
        return _rejected(
            PurchaseOutcome.CUTOFF_EXCEEDED,
            f"Tickets for {ticket_date.isoformat()} are no longer on sale",
            start,
            **context,
        )

    if not await _offered_on(db, stadium_id, ticket_id, kind, ticket_date):
        return _rejected(
            PurchaseOutcome.TICKET_NOT_FOUND,
            f"Ticket {ticket_id} is not sold on {ticket_date.isoformat()}",
            start,
            **context,
        )

    try:
        override = await get_or_create(db, stadium_id, ticket_id, kind, ticket_date)
    except TicketNotFoundError as exc:
        return _rejected(PurchaseOutcome.TICKET_NOT_FOUND, exc.message, start, **context)

    result = await db.execute(
        update(DateOverride)
        .where(
            DateOverride.id == override.id,
            DateOverride.quantity >= quantity,
            DateOverride.enabled.is_(True),
        )
        .values(quantity=DateOverride.quantity - quantity)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        return _rejected(
            PurchaseOutcome.INSUFFICIENT_INVENTORY,
            f"Not enough tickets. Requested: {quantity}",
            start,
            **context,
        )

    await db.refresh(override)
    reservation_latency.observe(time.perf_counter() - start)
    record_reservation(PurchaseOutcome.RESERVED.value)

    logger.info("reservation_confirmed", remaining=override.quantity, **context)
    return ReservationResult(outcome=PurchaseOutcome.RESERVED, remaining_quantity=override.quantity)
