"""
Billing enumerations for payment plans and the payment journal.
"""

import enum


class PlanFrequency(str, enum.Enum):
    """Recurrence cadence of a payment plan."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


class PaymentEntryType(str, enum.Enum):
    """Payment journal entry type enumeration."""
    PAYMENT = "PAYMENT"  # Money received, amount > 0
    ADJUSTMENT = "ADJUSTMENT"  # Signed correction, never counted as income
