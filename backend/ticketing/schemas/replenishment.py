"""
Pydantic schemas describing replenishment runs.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TicketTemplateResponse(BaseModel):
    name: str
    price: Decimal
    quantity: int


class DateGenerationDetail(BaseModel):
    date: dt.date
    tickets_created: int = 0
    tickets_skipped: int = 0
    created_ticket_names: list[str] = Field(default_factory=list)
    skipped_ticket_names: list[str] = Field(default_factory=list)
    reason: str = ""


class GenerationResult(BaseModel):
    stadium_id: str
    month_key: str  # the month that was filled
    tickets_created: int = 0
    tickets_skipped: int = 0
    dates_processed: int = 0
    dates_skipped: int = 0
    date_details: list[DateGenerationDetail] = Field(default_factory=list)


class GenerationStatus(BaseModel):
    stadium_id: str
    last_month_key: Optional[str] = None
    last_generated_at: Optional[dt.datetime] = None
    templates: list[TicketTemplateResponse]
    template_count: int
