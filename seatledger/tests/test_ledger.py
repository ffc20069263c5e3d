"""
Tests for the fee ledger: payments, adjustments and the clear-dues override.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from seatledger.app.core.exceptions import NotFoundError, ValidationError
from seatledger.app.core.scope import ALL_LIBRARIES, SingleLibrary
from seatledger.app.domain.ledger.ledger_service import LedgerService
from seatledger.app.models.billing_enums import PaymentEntryType
from seatledger.app.models.payment import Payment
from seatledger.app.models.student import Student
from seatledger.app.models.student_enums import StudentStatus
from seatledger.app.schemas.student import StudentResponse


async def _student_row(session_factory, student_id):
    async with session_factory() as db:
        return (await db.execute(select(Student).where(Student.id == student_id))).scalar_one()


async def _journal_count(session_factory, student_id):
    async with session_factory() as db:
        return (await db.execute(
            select(func.count(Payment.id)).where(Payment.student_id == student_id)
        )).scalar()


@pytest.mark.asyncio
async def test_payment_reduces_balance(db_session, session_factory, library_a, make_student):
    student = await make_student(library_a.id, "Asha", fees_due="500")

    payment = await LedgerService(db_session).add_payment(
        library_a.id, student.id, Decimal("200"), date(2024, 3, 5), notes="March"
    )

    assert payment.entry_type == PaymentEntryType.PAYMENT
    assert payment.amount == Decimal("200.00")
    assert payment.student_name == "Asha"
    assert payment.library_name == "Central Library"
    row = await _student_row(session_factory, student.id)
    assert row.fees_due == Decimal("300.00")
    assert row.last_payment_date == date(2024, 3, 5)
    assert row.status == StudentStatus.OWING


@pytest.mark.asyncio
async def test_overpayment_becomes_credit(db_session, session_factory, library_a, make_student):
    """fees_due 100, pay 150: balance -50, shown as credit, status not owing."""
    student = await make_student(library_a.id, "Asha", fees_due="100")

    await LedgerService(db_session).add_payment(library_a.id, student.id, Decimal("150"), date(2024, 3, 5))

    row = await _student_row(session_factory, student.id)
    assert row.fees_due == Decimal("-50.00")
    assert row.status == StudentStatus.ENROLLED
    assert StudentResponse.model_validate(row).balance_display == "Credit 50.00"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10"), "abc"])
async def test_payment_amount_must_be_positive(db_session, session_factory, library_a, make_student, amount):
    student = await make_student(library_a.id, "Asha", fees_due="100")

    with pytest.raises(ValidationError) as exc_info:
        await LedgerService(db_session).add_payment(library_a.id, student.id, amount, date(2024, 3, 5))

    assert exc_info.value.field == "amount"
    assert await _journal_count(session_factory, student.id) == 0
    assert (await _student_row(session_factory, student.id)).fees_due == Decimal("100.00")


@pytest.mark.asyncio
async def test_payment_for_missing_or_foreign_student(db_session, library_a, library_b, make_student):
    foreign = await make_student(library_b.id, "Bela")
    service = LedgerService(db_session)

    with pytest.raises(NotFoundError):
        await service.add_payment(library_a.id, 12345, Decimal("10"), date(2024, 3, 5))
    with pytest.raises(NotFoundError):
        await service.add_payment(library_a.id, foreign.id, Decimal("10"), date(2024, 3, 5))


@pytest.mark.asyncio
async def test_negative_adjustment_raises_balance(db_session, session_factory, library_a, make_student):
    student = await make_student(library_a.id, "Asha", fees_due="0")
    service = LedgerService(db_session)

    entry = await service.add_adjustment(
        library_a.id, student.id, Decimal("-75"), date(2024, 3, 9), notes="Bounced cheque"
    )

    assert entry.entry_type == PaymentEntryType.ADJUSTMENT
    row = await _student_row(session_factory, student.id)
    assert row.fees_due == Decimal("75.00")
    # Adjustments are not payments
    assert row.last_payment_date is None

    with pytest.raises(ValidationError):
        await service.add_adjustment(library_a.id, student.id, Decimal("0"), date(2024, 3, 9))


@pytest.mark.asyncio
async def test_clear_dues_writes_no_journal_row(db_session, session_factory, library_a, make_student):
    student = await make_student(library_a.id, "Asha", fees_due="100")
    service = LedgerService(db_session)
    await service.add_payment(library_a.id, student.id, Decimal("40"), date(2024, 3, 1))

    cleared = await service.clear_dues(library_a.id, student.id, today=date(2024, 3, 20))

    assert cleared.fees_due == Decimal("0.00")
    assert cleared.last_payment_date == date(2024, 3, 20)
    assert await _journal_count(session_factory, student.id) == 1
    # The journal no longer explains the balance: 100 - 40 != 0
    row = await _student_row(session_factory, student.id)
    assert row.fees_due == Decimal("0.00")


@pytest.mark.asyncio
async def test_clear_dues_keeps_deactivation(db_session, library_a, make_student):
    student = await make_student(library_a.id, "Asha", fees_due="100", is_deactivated=True)

    cleared = await LedgerService(db_session).clear_dues(library_a.id, student.id, today=date(2024, 3, 20))

    assert cleared.is_deactivated is True
    assert cleared.status == StudentStatus.INACTIVE


@pytest.mark.asyncio
async def test_list_payments_scoped_and_annotated(db_session, library_a, library_b, make_student):
    asha = await make_student(library_a.id, "Asha", fees_due="100")
    bela = await make_student(library_b.id, "Bela", fees_due="100")
    service = LedgerService(db_session)
    await service.add_payment(library_a.id, asha.id, Decimal("10"), date(2024, 3, 1))
    await service.add_payment(library_a.id, asha.id, Decimal("20"), date(2024, 3, 2))
    await service.add_payment(library_b.id, bela.id, Decimal("30"), date(2024, 3, 3))

    mine = await service.list_payments(SingleLibrary(library_a.id))
    assert [p.amount for p in mine] == [Decimal("20.00"), Decimal("10.00")]
    assert {p.student_name for p in mine} == {"Asha"}

    everything = await service.list_payments(ALL_LIBRARIES)
    assert len(everything) == 3
    assert {p.library_name for p in everything} == {"Central Library", "Eastside Library"}

    # Filtering by a student from another library yields nothing
    assert await service.list_payments(SingleLibrary(library_a.id), student_id=bela.id) == []
