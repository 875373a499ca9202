"""
Pydantic schemas for catalog, discount and per-date override administration.
"""

import calendar
import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ticketing.models.ticket import TicketKind

# A leap year, so 29 February is a valid discount day
_LEAP_YEAR = 2000


def _check_weekdays(weekdays: list[int]) -> list[int]:
    if not weekdays:
        raise ValueError("regular tickets need at least one weekday")
    if any(day < 0 or day > 6 for day in weekdays):
        raise ValueError("weekdays must be between 0 (Sunday) and 6 (Saturday)")
    return sorted(set(weekdays))


def check_calendar_day(day_of_month: int, month: int) -> None:
    if day_of_month > calendar.monthrange(_LEAP_YEAR, month)[1]:
        raise ValueError(f"day {day_of_month} does not exist in month {month}")


class TicketCreate(BaseModel):
    kind: TicketKind
    name: str = Field(..., min_length=1, max_length=255)
    base_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    base_quantity: int = Field(..., ge=0)
    display_order: int = 0
    weekdays: Optional[list[int]] = None
    date: Optional[dt.date] = None

    @model_validator(mode="after")
    def check_kind_fields(self) -> "TicketCreate":
        if self.kind == TicketKind.REGULAR:
            if self.date is not None:
                raise ValueError("regular tickets recur on weekdays and cannot have a date")
            self.weekdays = _check_weekdays(self.weekdays or [])
        else:
            if self.date is None:
                raise ValueError("special tickets need a date")
            if self.weekdays:
                raise ValueError("special tickets cannot recur on weekdays")
            self.weekdays = None
        return self


class TicketUpdate(BaseModel):
    """Partial update; only the fields that are set are applied. Kind is fixed."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    base_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    base_quantity: Optional[int] = Field(None, ge=0)
    display_order: Optional[int] = None
    weekdays: Optional[list[int]] = None
    date: Optional[dt.date] = None

    @field_validator("weekdays")
    @classmethod
    def check_weekdays(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        return None if value is None else _check_weekdays(value)


class TicketResponse(BaseModel):
    id: int
    stadium_id: str
    kind: TicketKind
    name: str
    base_price: Decimal
    base_quantity: int
    display_order: int
    weekdays: Optional[list[int]]
    date: Optional[dt.date]

    model_config = {"from_attributes": True}


class DiscountRuleCreate(BaseModel):
    base_ticket_id: int = Field(..., gt=0)
    base_ticket_kind: TicketKind
    day_of_month: int = Field(..., ge=1, le=31)
    month: int = Field(..., ge=1, le=12)
    discount_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

    @model_validator(mode="after")
    def check_day(self) -> "DiscountRuleCreate":
        check_calendar_day(self.day_of_month, self.month)
        return self


class DiscountRuleUpdate(BaseModel):
    base_ticket_id: Optional[int] = Field(None, gt=0)
    base_ticket_kind: Optional[TicketKind] = None
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    month: Optional[int] = Field(None, ge=1, le=12)
    discount_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class OverrideUpdate(BaseModel):
    """
    Per-date administrative changes. Fields left unset are untouched;
    an explicit None clears a name or price override.
    """

    enabled: Optional[bool] = None
    name_override: Optional[str] = Field(None, max_length=255)
    price_override: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0)
