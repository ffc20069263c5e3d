"""
Tests for student records: enrollment, partial updates and deletion cascade.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from seatledger.app.core.exceptions import NotFoundError, SeatConflictError, ValidationError
from seatledger.app.core.scope import ALL_LIBRARIES, SingleLibrary
from seatledger.app.domain.catalog.payment_plan_service import PaymentPlanService
from seatledger.app.domain.ledger.ledger_service import LedgerService
from seatledger.app.domain.students.student_service import StudentService
from seatledger.app.models.payment import Payment
from seatledger.app.models.seat import Seat
from seatledger.app.models.student import Student
from seatledger.app.models.student_enums import StudentStatus
from seatledger.app.schemas.billing import PaymentPlanCreate
from seatledger.app.schemas.student import StudentCreate, StudentUpdate


@pytest.mark.asyncio
async def test_create_student_with_seat_and_plan(db_session, library_a, make_seat):
    seat = await make_seat(library_a.id, "A1")
    plan = await PaymentPlanService(db_session).create_plan(
        library_a.id, PaymentPlanCreate(name="Monthly", amount=Decimal("800"))
    )

    student = await StudentService(db_session).create_student(library_a.id, StudentCreate(
        full_name="  Asha Rao ",
        father_name="Ravi Rao",
        aadhaar_number="123412341234",
        fees_due=Decimal("800"),
        seat_id=seat.id,
        payment_plan_id=plan.id,
    ))

    assert student.full_name == "Asha Rao"
    assert student.seat_id == seat.id
    assert student.payment_plan_id == plan.id
    assert student.status == StudentStatus.OWING
    assert student.enrollment_date == date.today()
    assert student.library_name == "Central Library"
    await db_session.refresh(seat)
    assert seat.occupant_student_id == student.id


@pytest.mark.asyncio
async def test_create_student_on_occupied_seat_conflicts(db_session, library_a, make_seat, make_student):
    seat = await make_seat(library_a.id, "A1")
    await make_student(library_a.id, "Asha", seat_id=seat.id)

    with pytest.raises(SeatConflictError):
        await make_student(library_a.id, "Bela", seat_id=seat.id)

    count = (await db_session.execute(select(func.count(Student.id)))).scalar()
    assert count == 1


@pytest.mark.asyncio
async def test_create_student_rejects_foreign_plan(db_session, library_a, library_b, make_student):
    plan = await PaymentPlanService(db_session).create_plan(
        library_b.id, PaymentPlanCreate(name="Monthly", amount=Decimal("500"))
    )

    with pytest.raises(NotFoundError):
        await make_student(library_a.id, "Asha", payment_plan_id=plan.id)


@pytest.mark.asyncio
async def test_list_students_by_scope(db_session, library_a, library_b, make_student):
    await make_student(library_a.id, "Chitra")
    await make_student(library_a.id, "Asha")
    await make_student(library_b.id, "Bela")
    service = StudentService(db_session)

    mine = await service.list_students(SingleLibrary(library_a.id))
    assert [s.full_name for s in mine] == ["Asha", "Chitra"]

    everything = await service.list_students(ALL_LIBRARIES)
    assert {(s.full_name, s.library_name) for s in everything} == {
        ("Asha", "Central Library"), ("Chitra", "Central Library"), ("Bela", "Eastside Library"),
    }


@pytest.mark.asyncio
async def test_update_student_details_and_balance(db_session, library_a, make_student):
    student = await make_student(library_a.id, "Asha", fees_due="100")

    updated = await StudentService(db_session).update_student(
        library_a.id, student.id, StudentUpdate(mobile_number="9876543210", fees_due=Decimal("250"))
    )

    assert updated.mobile_number == "9876543210"
    assert updated.fees_due == Decimal("250.00")
    assert updated.full_name == "Asha"


@pytest.mark.asyncio
async def test_update_student_rejects_null_required_fields(db_session, library_a, make_student):
    student = await make_student(library_a.id, "Asha")
    service = StudentService(db_session)

    with pytest.raises(ValidationError):
        await service.update_student(library_a.id, student.id, StudentUpdate(full_name=None))
    with pytest.raises(ValidationError):
        await service.update_student(library_a.id, student.id, StudentUpdate(is_deactivated=None))


@pytest.mark.asyncio
async def test_update_student_moves_and_vacates_seat(db_session, library_a, make_seat, make_student):
    s1 = await make_seat(library_a.id, "A1")
    s2 = await make_seat(library_a.id, "A2")
    student = await make_student(library_a.id, "Asha", seat_id=s1.id)
    service = StudentService(db_session)

    moved = await service.update_student(library_a.id, student.id, StudentUpdate(seat_id=s2.id))
    assert moved.seat_id == s2.id
    seats = {s.id: s.occupant_student_id for s in (await db_session.execute(
        select(Seat).execution_options(populate_existing=True)
    )).scalars()}
    assert seats == {s1.id: None, s2.id: student.id}

    unseated = await service.update_student(library_a.id, student.id, StudentUpdate(seat_id=None))
    assert unseated.seat_id is None
    await db_session.refresh(s2)
    assert s2.occupant_student_id is None


@pytest.mark.asyncio
async def test_update_student_seat_and_fields_commit_together(
    db_session, session_factory, library_a, make_seat, make_student, mocker
):
    s1 = await make_seat(library_a.id, "A1")
    s2 = await make_seat(library_a.id, "A2")
    student = await make_student(library_a.id, "Asha", seat_id=s1.id)
    # Capture ids up front: the rollback below expires these ORM instances
    sid, s1id, s2id = student.id, s1.id, s2.id
    service = StudentService(db_session)
    mocker.patch.object(
        service, "_apply_changes",
        side_effect=OperationalError("UPDATE students", {}, Exception("disk I/O error")),
    )

    with pytest.raises(OperationalError):
        await service.update_student(
            library_a.id, sid, StudentUpdate(seat_id=s2id, full_name="Asha Rao")
        )

    # The seat move was rolled back with the failed field write
    async with session_factory() as db:
        row = (await db.execute(select(Student).where(Student.id == sid))).scalar_one()
        seats = {s.id: s.occupant_student_id for s in (await db.execute(select(Seat))).scalars()}
    assert row.seat_id == s1id
    assert row.full_name == "Asha"
    assert seats == {s1id: sid, s2id: None}


@pytest.mark.asyncio
async def test_update_student_unseat_with_fields(db_session, library_a, make_seat, make_student):
    seat = await make_seat(library_a.id, "A1")
    student = await make_student(library_a.id, "Asha", fees_due="100", seat_id=seat.id)

    updated = await StudentService(db_session).update_student(
        library_a.id, student.id, StudentUpdate(seat_id=None, fees_due=Decimal("40"), notes="Moved out")
    )

    assert updated.seat_id is None
    assert updated.fees_due == Decimal("40.00")
    assert updated.notes == "Moved out"
    await db_session.refresh(seat)
    assert seat.occupant_student_id is None


@pytest.mark.asyncio
async def test_deactivation_overrides_owing(db_session, library_a, make_student):
    student = await make_student(library_a.id, "Asha", fees_due="100")

    updated = await StudentService(db_session).update_student(
        library_a.id, student.id, StudentUpdate(is_deactivated=True)
    )

    assert updated.status == StudentStatus.INACTIVE


@pytest.mark.asyncio
async def test_delete_student_frees_seat_and_removes_payments(
    db_session, session_factory, library_a, make_seat, make_student
):
    seat = await make_seat(library_a.id, "A1")
    student = await make_student(library_a.id, "Asha", fees_due="100", seat_id=seat.id)
    await LedgerService(db_session).add_payment(library_a.id, student.id, Decimal("50"), date(2024, 3, 1))

    await StudentService(db_session).delete_student(library_a.id, student.id)

    async with session_factory() as db:
        assert (await db.execute(select(Student).where(Student.id == student.id))).scalar_one_or_none() is None
        assert (await db.execute(select(func.count(Payment.id)))).scalar() == 0
        remaining = (await db.execute(select(Seat).where(Seat.id == seat.id))).scalar_one()
        assert remaining.occupant_student_id is None


@pytest.mark.asyncio
async def test_delete_missing_student(db_session, library_a):
    with pytest.raises(NotFoundError):
        await StudentService(db_session).delete_student(library_a.id, 404)
