"""
Ticket definitions: the catalog of what a stadium sells.

Key design decisions:
- One table for both kinds; `kind` decides which of `weekdays` / `date` applies
- `weekdays` is a JSON array of 0-6 (0 = Sunday), matching the booking calendar
- `base_quantity` only seeds per-date rows; it is never decremented itself
"""

import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, JSON, Index, CheckConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class TicketKind(str, enum.Enum):
    REGULAR = "regular"
    SPECIAL = "special"


class TicketDefinition(Base, TimestampMixin):
    __tablename__ = "ticket_definitions"

    id = Column(Integer, primary_key=True, index=True)
    stadium_id = Column(String(50), nullable=False)
    kind = Column(String(10), nullable=False)
    name = Column(String(255), nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    base_quantity = Column(Integer, nullable=False, default=0)
    display_order = Column(Integer, nullable=False, default=0)

    # Regular tickets only
    weekdays = Column(JSON, nullable=True)
    # Special tickets only
    date = Column(Date, nullable=True)

    overrides = relationship(
        "DateOverride",
        back_populates="ticket",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("kind IN ('regular', 'special')", name="check_ticket_kind"),
        CheckConstraint("base_quantity >= 0", name="check_base_quantity_non_negative"),
        CheckConstraint(
            "(kind = 'regular' AND date IS NULL) OR (kind = 'special' AND date IS NOT NULL)",
            name="check_ticket_kind_date",
        ),
        Index("ix_ticket_definitions_stadium_kind", "stadium_id", "kind"),
        # Special tickets are always looked up by exact date
        Index("ix_ticket_definitions_stadium_date", "stadium_id", "date"),
    )

    @property
    def is_regular(self) -> bool:
        return self.kind == TicketKind.REGULAR.value

    def __repr__(self) -> str:
        return f"<TicketDefinition(id={self.id}, stadium={self.stadium_id}, kind={self.kind}, name={self.name})>"
