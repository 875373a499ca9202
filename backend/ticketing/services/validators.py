"""
Input validators shared by the read and write paths.
Each parser returns the normalized value or raises InvalidInputError.
"""

import re
from datetime import date, datetime
from typing import Union

from ticketing.core.errors import ImpossibleDateError, InvalidInputError
from ticketing.models.ticket import TicketKind

STADIUM_ID_PATTERN = re.compile(r"^[a-z0-9_-]{1,50}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_stadium_id(stadium_id: str) -> str:
    if not isinstance(stadium_id, str) or not STADIUM_ID_PATTERN.match(stadium_id):
        raise InvalidInputError(f"Invalid stadium id: {stadium_id!r}")
    return stadium_id


def parse_ticket_date(value: Union[str, date]) -> date:
    """Accept a calendar date or a YYYY-MM-DD string naming a real day."""
    if isinstance(value, datetime):
        raise InvalidInputError("Expected a calendar date, got a timestamp")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise InvalidInputError(f"Invalid date format: {value!r} (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ImpossibleDateError(value) from None


def parse_kind(kind: Union[str, TicketKind]) -> TicketKind:
    try:
        return TicketKind(kind)
    except ValueError:
        raise InvalidInputError(f"Invalid ticket kind: {kind!r}") from None


def parse_ticket_id(ticket_id: int) -> int:
    # bool is an int subclass
    if isinstance(ticket_id, bool) or not isinstance(ticket_id, int) or ticket_id <= 0:
        raise InvalidInputError(f"Invalid ticket id: {ticket_id!r}")
    return ticket_id


def parse_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInputError(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity
