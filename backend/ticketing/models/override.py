"""
Per-date override rows: the ledger of what is left to sell on a given day.

Key design decisions:
- Unique constraint on (stadium_id, ticket_id, kind, date) makes lazy creation
  safe: concurrent creators insert-ignore and re-read the single row
- `initial_quantity` is a snapshot of the base quantity at creation and never changes
- CHECK quantity >= 0 is the last line of defence against overselling
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class DateOverride(Base, TimestampMixin):
    __tablename__ = "ticket_date_overrides"

    id = Column(Integer, primary_key=True, index=True)
    stadium_id = Column(String(50), nullable=False)
    ticket_id = Column(Integer, ForeignKey("ticket_definitions.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(10), nullable=False)
    date = Column(Date, nullable=False)

    quantity = Column(Integer, nullable=False)
    initial_quantity = Column(Integer, nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    name_override = Column(String(255), nullable=True)
    price_override = Column(Numeric(10, 2), nullable=True)

    ticket = relationship("TicketDefinition", back_populates="overrides")

    __table_args__ = (
        UniqueConstraint("stadium_id", "ticket_id", "kind", "date", name="uq_override_stadium_ticket_kind_date"),
        CheckConstraint("quantity >= 0", name="check_override_quantity_non_negative"),
        CheckConstraint("initial_quantity >= 0", name="check_override_initial_quantity_non_negative"),
        # Purge deletes by date range
        Index("ix_ticket_date_overrides_date", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<DateOverride(ticket={self.ticket_id}, date={self.date}, "
            f"quantity={self.quantity}/{self.initial_quantity}, enabled={self.enabled})>"
        )
