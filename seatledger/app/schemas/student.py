"""
Student Pydantic schemas.
"""

from pydantic import BaseModel, Field, computed_field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from seatledger.app.domain.ledger.balance import format_balance
from seatledger.app.models.student_enums import StudentStatus


class StudentCreate(BaseModel):
    """Schema for enrolling a student, optionally with a seat and a plan."""
    full_name: str = Field(..., min_length=1, max_length=200)
    mobile_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    father_name: Optional[str] = Field(None, max_length=200)
    aadhaar_number: Optional[str] = Field(None, pattern=r"^\d{12}$")
    notes: Optional[str] = None
    fees_due: Decimal = Field(Decimal("0"), decimal_places=2)
    is_deactivated: bool = False
    enrollment_date: Optional[date] = None
    seat_id: Optional[int] = None
    payment_plan_id: Optional[int] = None


class StudentUpdate(BaseModel):
    """
    Schema for patching a student.

    Only fields present in the request are applied. seat_id: null vacates
    the student's seat.
    """
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    mobile_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    father_name: Optional[str] = Field(None, max_length=200)
    aadhaar_number: Optional[str] = Field(None, pattern=r"^\d{12}$")
    notes: Optional[str] = None
    fees_due: Optional[Decimal] = Field(None, decimal_places=2)
    is_deactivated: Optional[bool] = None
    enrollment_date: Optional[date] = None
    seat_id: Optional[int] = None
    payment_plan_id: Optional[int] = None


class StudentResponse(BaseModel):
    """Schema for student response."""
    id: int
    library_id: int
    library_name: Optional[str] = None
    full_name: str
    mobile_number: Optional[str] = None
    address: Optional[str] = None
    father_name: Optional[str] = None
    aadhaar_number: Optional[str] = None
    notes: Optional[str] = None
    status: StudentStatus
    fees_due: Decimal
    is_deactivated: bool
    seat_id: Optional[int] = None
    payment_plan_id: Optional[int] = None
    last_payment_date: Optional[date] = None
    enrollment_date: date
    created_at: datetime

    class Config:
        from_attributes = True

    @computed_field
    @property
    def balance_display(self) -> str:
        return format_balance(self.fees_due)


class StudentListResponse(BaseModel):
    """Schema for student list."""
    students: List[StudentResponse]
    total: int
