"""
Read-path and purchase-path results handed to the booking flow.
"""

import datetime as dt
import enum
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from ticketing.models.ticket import TicketKind


class PurchaseOutcome(str, enum.Enum):
    RESERVED = "reserved"
    QUOTED = "quoted"
    INVALID_INPUT = "invalid_input"
    TICKET_NOT_FOUND = "ticket_not_found"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    CUTOFF_EXCEEDED = "cutoff_exceeded"


class DiscountInfo(BaseModel):
    original_price: Decimal
    discount_price: Decimal
    discount_amount: Decimal


class Offer(BaseModel):
    ticket_id: int
    kind: TicketKind
    date: dt.date
    effective_name: str
    effective_price: Decimal
    available_quantity: int
    display_order: int = 0
    discount_info: Optional[DiscountInfo] = None


class DateAvailability(BaseModel):
    date: dt.date
    available: bool


class DateTicketView(BaseModel):
    """One row of the per-date adjustment screen, sellable or not."""

    ticket_id: int
    kind: TicketKind
    date: dt.date
    name: str
    original_name: str
    price: Decimal
    original_price: Decimal
    quantity: int
    initial_quantity: int
    enabled: bool
    has_override: bool
    discount_info: Optional[DiscountInfo] = None


class ReservationResult(BaseModel):
    outcome: PurchaseOutcome
    remaining_quantity: Optional[int] = None
    detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == PurchaseOutcome.RESERVED

    def __bool__(self) -> bool:
        return self.success


class PriceQuote(BaseModel):
    outcome: PurchaseOutcome
    quantity: int = 0
    unit_price: Optional[Decimal] = None
    total_price: Optional[Decimal] = None
    offer: Optional[Offer] = None
    detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == PurchaseOutcome.QUOTED
