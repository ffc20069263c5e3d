"""
Billing Schemas: payment plans and the payment journal.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from seatledger.app.models.billing_enums import PlanFrequency, PaymentEntryType


class PaymentPlanCreate(BaseModel):
    """Schema for creating a payment plan."""
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    frequency: PlanFrequency = PlanFrequency.MONTHLY


class PaymentPlanUpdate(BaseModel):
    """Schema for updating a payment plan."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    frequency: Optional[PlanFrequency] = None


class PaymentPlanResponse(BaseModel):
    """Schema for displaying a payment plan."""
    id: int
    library_id: int
    library_name: Optional[str] = None
    name: str
    amount: Decimal
    frequency: PlanFrequency
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    """Schema for recording a payment."""
    student_id: int
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date
    notes: Optional[str] = Field(None, max_length=500)


class AdjustmentCreate(BaseModel):
    """
    Schema for a signed journal adjustment.

    Positive amounts reduce the balance, negative amounts raise it.
    """
    student_id: int
    amount: Decimal = Field(..., decimal_places=2)
    adjustment_date: date
    notes: Optional[str] = Field(None, max_length=500)


class PaymentResponse(BaseModel):
    """Schema for displaying a journal entry."""
    id: int
    library_id: int
    library_name: Optional[str] = None
    student_id: int
    student_name: Optional[str] = None
    entry_type: PaymentEntryType
    amount: Decimal
    payment_date: date
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentListResponse(BaseModel):
    """Schema for payment journal listing."""
    payments: List[PaymentResponse]
    total: int
