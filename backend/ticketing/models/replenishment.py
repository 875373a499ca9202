"""
Persisted replenishment state, one row per auto-replenished stadium.

A null `month_key` means the stadium was never generated. The row is locked
for the whole generation pass so restarts and extra instances cannot run the
same month twice.
"""

from sqlalchemy import Column, String, DateTime

from ticketing.db.base import Base, TimestampMixin


class GenerationState(Base, TimestampMixin):
    __tablename__ = "replenishment_state"

    stadium_id = Column(String(50), primary_key=True)
    month_key = Column(String(7), nullable=True)  # YYYY-MM of the run
    generated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<GenerationState(stadium={self.stadium_id}, month={self.month_key})>"
