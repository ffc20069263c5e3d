"""
Dashboard Service.

Derived counters for the dashboard summary.
Focused on READ-ONLY operations: nothing is persisted and no keys are taken,
so a summary may be momentarily stale under concurrent writes.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from seatledger.app.core.scope import Scope, scope_library_id
from seatledger.app.domain.ledger.balance import quantize_money
from seatledger.app.models.billing_enums import PaymentEntryType
from seatledger.app.models.library import Library
from seatledger.app.models.payment import Payment
from seatledger.app.models.seat import Seat
from seatledger.app.models.student import Student
from seatledger.app.schemas.dashboard import DashboardSummary


def _month_bounds(today: date):
    start = today.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class DashboardService:

    @staticmethod
    async def summary(db: AsyncSession, scope: Scope, today: Optional[date] = None) -> DashboardSummary:
        """
        Compute the summary for a scope.

        - total_students: students not deactivated
        - available_seats: seats without an occupant
        - monthly_income: PAYMENT entries dated in today's calendar month
          (adjustments are corrections, not income)
        - students_owing: active students with fees_due > 0

        Args:
            db: Database session
            scope: SingleLibrary or AllLibraries
            today: Reference date for the income month (defaults to today)
        """
        today = today or date.today()
        library_id = scope_library_id(scope)

        def scoped(stmt, model):
            if library_id is not None:
                return stmt.where(model.library_id == library_id)
            return stmt

        # 1. Students
        total_students = (await db.execute(
            scoped(select(func.count(Student.id)).where(Student.is_deactivated == False), Student)  # noqa: E712
        )).scalar() or 0

        students_owing = (await db.execute(
            scoped(
                select(func.count(Student.id)).where(
                    Student.is_deactivated == False,  # noqa: E712
                    Student.fees_due > 0,
                ),
                Student,
            )
        )).scalar() or 0

        # 2. Seats
        total_seats = (await db.execute(scoped(select(func.count(Seat.id)), Seat))).scalar() or 0
        available_seats = (await db.execute(
            scoped(select(func.count(Seat.id)).where(Seat.occupant_student_id.is_(None)), Seat)
        )).scalar() or 0

        # 3. Income this month
        month_start, next_month = _month_bounds(today)
        income = (await db.execute(
            scoped(
                select(func.sum(Payment.amount)).where(
                    Payment.entry_type == PaymentEntryType.PAYMENT,
                    Payment.payment_date >= month_start,
                    Payment.payment_date < next_month,
                ),
                Payment,
            )
        )).scalar()

        library_name = None
        if library_id is not None:
            library_name = (await db.execute(
                select(Library.name).where(Library.id == library_id)
            )).scalar_one_or_none()

        return DashboardSummary(
            total_students=total_students,
            total_seats=total_seats,
            available_seats=available_seats,
            monthly_income=quantize_money(Decimal(income or 0)),
            students_owing=students_owing,
            library_name=library_name,
        )
