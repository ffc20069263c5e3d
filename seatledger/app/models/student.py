"""
Student database model.

Carries the signed running balance (fees_due) and the optional links to one
seat and one payment plan.
"""

from decimal import Decimal

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.sql import func
from seatledger.app.db.session import Base
from seatledger.app.models.student_enums import StudentStatus


def derive_status(is_deactivated: bool, fees_due) -> StudentStatus:
    """inactive overrides the balance; otherwise a positive balance means owing."""
    if is_deactivated:
        return StudentStatus.INACTIVE
    if fees_due is not None and Decimal(fees_due) > 0:
        return StudentStatus.OWING
    return StudentStatus.ENROLLED


class Student(Base):
    """
    Student model.

    fees_due > 0 is owed, fees_due < 0 is credit, 0 is settled.
    """
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    library_id = Column(Integer, ForeignKey('libraries.id'), nullable=False, index=True)

    full_name = Column(String(200), nullable=False)
    mobile_number = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    father_name = Column(String(200), nullable=True)
    aadhaar_number = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    # Ledger
    fees_due = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    is_deactivated = Column(Boolean, default=False, nullable=False)
    last_payment_date = Column(Date, nullable=True)
    enrollment_date = Column(Date, nullable=False)

    # Links
    seat_id = Column(Integer, ForeignKey('seats.id'), unique=True, nullable=True)
    payment_plan_id = Column(Integer, ForeignKey('payment_plans.id'), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def status(self) -> StudentStatus:
        return derive_status(self.is_deactivated, self.fees_due)

    def __repr__(self):
        return f"<Student(id={self.id}, full_name='{self.full_name}', fees_due={self.fees_due}, seat_id={self.seat_id})>"
