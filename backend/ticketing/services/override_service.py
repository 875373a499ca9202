"""
Per-date override store.

MATERIALIZATION STRATEGY: Insert-Ignore, then Re-Read
=====================================================

Problem:
  The first buyer of a date, the admin editing that date and the monthly job
  can all touch a (stadium, ticket, kind, date) key that has no row yet.
  "SELECT, and INSERT if missing" lets two of them insert, and the second one
  either fails on the unique constraint or, without one, creates a twin row
  whose quantity is sold a second time.

Solution:
  1. SELECT the row; if it exists, it is the source of truth
  2. INSERT ... ON CONFLICT DO NOTHING with quantity = initial_quantity =
     the ticket's base quantity
  3. SELECT again - whoever won the insert, there is exactly one row

  A lost race (rowcount == 0 on the insert) is only logged. Once a row
  exists it is never re-derived from the ticket definition, so editing a
  ticket's base quantity does not touch dates that were already opened.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.errors import InvalidInputError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import overrides_purged, record_materialization
from ticketing.db.session import dialect_insert
from ticketing.models.override import DateOverride
from ticketing.models.ticket import TicketKind
from ticketing.schemas.ticket import OverrideUpdate
from ticketing.services.catalog_service import get_ticket
from ticketing.services.validators import parse_stadium_id, parse_ticket_date, parse_kind, parse_ticket_id

logger = get_logger(__name__)

_KEY_COLUMNS = ["stadium_id", "ticket_id", "kind", "date"]


def _key_filter(stadium_id: str, ticket_id: int, kind: TicketKind, ticket_date: date):
    return (
        DateOverride.stadium_id == stadium_id,
        DateOverride.ticket_id == ticket_id,
        DateOverride.kind == kind.value,
        DateOverride.date == ticket_date,
    )


async def find_override(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: TicketKind,
    ticket_date: date,
) -> Optional[DateOverride]:
    """Read the row as currently stored, without creating it."""
    result = await db.execute(
        select(DateOverride)
        .where(*_key_filter(stadium_id, ticket_id, kind, ticket_date))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def insert_override_if_absent(db: AsyncSession, values: dict) -> bool:
    """
    INSERT ... ON CONFLICT DO NOTHING on the override key.
    Returns True if this call created the row.
    """
    statement = (
        dialect_insert(db, DateOverride)
        .values(**values)
        .on_conflict_do_nothing(index_elements=_KEY_COLUMNS)
    )
    result = await db.execute(statement)
    return result.rowcount == 1


async def get_or_create(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: TicketKind,
    ticket_date: date,
    enabled: bool = True,
) -> DateOverride:
    """
    Return the override row for the key, materializing it from the ticket
    definition if absent. `enabled` only applies to a row created here.
    Raises TicketNotFoundError if the ticket does not exist.
    """
    existing = await find_override(db, stadium_id, ticket_id, kind, ticket_date)
    if existing:
        return existing

    ticket = await get_ticket(db, stadium_id, ticket_id, kind)
    created = await insert_override_if_absent(db, {
        "stadium_id": stadium_id,
        "ticket_id": ticket_id,
        "kind": kind.value,
        "date": ticket_date,
        "quantity": ticket.base_quantity,
        "initial_quantity": ticket.base_quantity,
        "enabled": enabled,
    })
    record_materialization(created)

    if created:
        logger.info(
            "override_materialized",
            stadium_id=stadium_id,
            ticket_id=ticket_id,
            kind=kind.value,
            date=ticket_date.isoformat(),
            quantity=ticket.base_quantity,
            enabled=enabled,
        )
    else:
        logger.debug(
            "override_create_race",
            stadium_id=stadium_id,
            ticket_id=ticket_id,
            date=ticket_date.isoformat(),
        )

    return await find_override(db, stadium_id, ticket_id, kind, ticket_date)


async def set_overrides(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: TicketKind,
    ticket_date: date,
    changes: OverrideUpdate,
) -> DateOverride:
    """
    Administrative per-date edit. Setting `quantity` here is a correction by
    an operator and may raise or lower the remaining stock; reservations go
    through reserve() instead.
    """
    stadium_id = parse_stadium_id(stadium_id)
    ticket_id = parse_ticket_id(ticket_id)
    kind = parse_kind(kind)
    ticket_date = parse_ticket_date(ticket_date)

    override = await get_or_create(db, stadium_id, ticket_id, kind, ticket_date)
    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        return override

    if "enabled" in fields and fields["enabled"] is None:
        raise InvalidInputError("enabled cannot be null")
    if "quantity" in fields and fields["quantity"] is None:
        raise InvalidInputError("quantity cannot be null")
    if "name_override" in fields:
        # Blank names fall back to the ticket name
        fields["name_override"] = (fields["name_override"] or "").strip() or None

    await db.execute(
        update(DateOverride)
        .where(*_key_filter(stadium_id, ticket_id, kind, ticket_date))
        .values(**fields)
        .execution_options(synchronize_session=False)
    )
    override = await find_override(db, stadium_id, ticket_id, kind, ticket_date)

    logger.info(
        "override_updated",
        stadium_id=stadium_id,
        ticket_id=ticket_id,
        kind=kind.value,
        date=ticket_date.isoformat(),
        fields=sorted(fields),
    )
    return override


async def reset_quantity(
    db: AsyncSession,
    stadium_id: str,
    ticket_id: int,
    kind: TicketKind,
    ticket_date: date,
) -> DateOverride:
    """Restore a date's remaining quantity to the snapshot taken when it was opened."""
    stadium_id = parse_stadium_id(stadium_id)
    ticket_id = parse_ticket_id(ticket_id)
    kind = parse_kind(kind)
    ticket_date = parse_ticket_date(ticket_date)

    await get_or_create(db, stadium_id, ticket_id, kind, ticket_date)
    await db.execute(
        update(DateOverride)
        .where(*_key_filter(stadium_id, ticket_id, kind, ticket_date))
        .values(quantity=DateOverride.initial_quantity)
        .execution_options(synchronize_session=False)
    )
    override = await find_override(db, stadium_id, ticket_id, kind, ticket_date)

    logger.info(
        "override_quantity_reset",
        stadium_id=stadium_id,
        ticket_id=ticket_id,
        date=ticket_date.isoformat(),
        quantity=override.quantity,
    )
    return override


async def purge_before(db: AsyncSession, before: date) -> int:
    """Delete per-date rows for dates strictly before `before`. Safe to repeat."""
    result = await db.execute(
        delete(DateOverride)
        .where(DateOverride.date < before)
        .execution_options(synchronize_session=False)
    )
    deleted = result.rowcount or 0
    if deleted:
        overrides_purged.inc(deleted)
    logger.info("overrides_purged", before=before.isoformat(), deleted=deleted)
    return deleted
