"""
Payment Plan database model.

Per-library named fee schedules.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from seatledger.app.db.session import Base
from seatledger.app.models.billing_enums import PlanFrequency


class PaymentPlan(Base):
    """Payment plan model. Names are only unique within a library."""
    __tablename__ = "payment_plans"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    library_id = Column(Integer, ForeignKey('libraries.id'), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(Enum(PlanFrequency), default=PlanFrequency.MONTHLY, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PaymentPlan(id={self.id}, name='{self.name}', amount={self.amount}, frequency='{self.frequency.value}')>"
