"""
Payment journal database model.

Append-only record of money received and signed corrections.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, Date, DateTime, Enum, String
from sqlalchemy.sql import func
from seatledger.app.db.session import Base
from seatledger.app.models.billing_enums import PaymentEntryType


class Payment(Base):
    """
    Payment model.

    Immutable: rows are never updated. They are only removed by the student
    or library deletion cascade.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    library_id = Column(Integer, ForeignKey('libraries.id'), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey('students.id'), nullable=False, index=True)

    entry_type = Column(Enum(PaymentEntryType), default=PaymentEntryType.PAYMENT, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    notes = Column(String(500), nullable=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Payment(id={self.id}, student_id={self.student_id}, type='{self.entry_type.value}', amount={self.amount})>"
