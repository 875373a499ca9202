"""
Calendar discount rules. A rule fires every year on the same day and month.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Index, CheckConstraint

from ticketing.db.base import Base, TimestampMixin


class DiscountRule(Base, TimestampMixin):
    __tablename__ = "discount_rules"

    id = Column(Integer, primary_key=True, index=True)
    stadium_id = Column(String(50), nullable=False)
    base_ticket_id = Column(Integer, ForeignKey("ticket_definitions.id", ondelete="CASCADE"), nullable=False)
    base_ticket_kind = Column(String(10), nullable=False)
    day_of_month = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    discount_price = Column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("base_ticket_kind IN ('regular', 'special')", name="check_discount_ticket_kind"),
        CheckConstraint("day_of_month >= 1 AND day_of_month <= 31", name="check_discount_day_of_month"),
        CheckConstraint("month >= 1 AND month <= 12", name="check_discount_month"),
        CheckConstraint("discount_price >= 0", name="check_discount_price_non_negative"),
        Index("ix_discount_rules_lookup", "stadium_id", "base_ticket_id", "month", "day_of_month"),
    )

    def __repr__(self) -> str:
        return f"<DiscountRule(id={self.id}, ticket={self.base_ticket_id}, day={self.day_of_month}/{self.month})>"
