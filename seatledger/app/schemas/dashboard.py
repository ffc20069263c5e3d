"""
Dashboard Schemas.
"""

from pydantic import BaseModel
from decimal import Decimal
from typing import Optional


class DashboardSummary(BaseModel):
    """Derived counters over current state; never persisted."""
    total_students: int
    total_seats: int
    available_seats: int
    monthly_income: Decimal
    students_owing: int
    library_name: Optional[str] = None
