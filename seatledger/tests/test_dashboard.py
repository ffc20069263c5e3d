"""
Tests for the dashboard summary.
"""

from datetime import date
from decimal import Decimal

import pytest

from seatledger.app.core.scope import ALL_LIBRARIES, SingleLibrary
from seatledger.app.domain.ledger.ledger_service import LedgerService
from seatledger.app.services.dashboard import DashboardService


@pytest.mark.asyncio
async def test_summary_for_one_library(db_session, library_a, library_b, make_seat, make_student):
    s1 = await make_seat(library_a.id, "A1")
    await make_seat(library_a.id, "A2")
    await make_seat(library_a.id, "A3")
    asha = await make_student(library_a.id, "Asha", fees_due="500", seat_id=s1.id)
    await make_student(library_a.id, "Bela", fees_due="0")
    await make_student(library_a.id, "Chitra", fees_due="300", is_deactivated=True)
    await make_student(library_b.id, "Dev", fees_due="100")

    ledger = LedgerService(db_session)
    await ledger.add_payment(library_a.id, asha.id, Decimal("200"), date(2024, 3, 5))
    await ledger.add_payment(library_a.id, asha.id, Decimal("50"), date(2024, 3, 31))
    # Previous month and adjustments are not this month's income
    await ledger.add_payment(library_a.id, asha.id, Decimal("70"), date(2024, 2, 29))
    await ledger.add_adjustment(library_a.id, asha.id, Decimal("40"), date(2024, 3, 10))

    summary = await DashboardService.summary(db_session, SingleLibrary(library_a.id), today=date(2024, 3, 15))

    assert summary.total_students == 2
    assert summary.total_seats == 3
    assert summary.available_seats == 2
    assert summary.monthly_income == Decimal("250.00")
    # Asha: 500 - 200 - 50 - 70 - 40 = 140, still owing; Chitra is inactive
    assert summary.students_owing == 1
    assert summary.library_name == "Central Library"


@pytest.mark.asyncio
async def test_summary_across_libraries(db_session, library_a, library_b, make_seat, make_student):
    await make_seat(library_a.id, "A1")
    await make_seat(library_b.id, "B1")
    await make_student(library_a.id, "Asha", fees_due="10")
    await make_student(library_b.id, "Bela", fees_due="20")

    summary = await DashboardService.summary(db_session, ALL_LIBRARIES, today=date(2024, 12, 31))

    assert summary.total_students == 2
    assert summary.total_seats == 2
    assert summary.available_seats == 2
    assert summary.students_owing == 2
    assert summary.monthly_income == Decimal("0.00")
    assert summary.library_name is None
