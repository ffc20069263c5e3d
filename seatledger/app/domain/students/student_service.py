"""
Student Service (Domain Logic).

Per-library student records. Seat changes are delegated to the seat state
machine so occupancy stays 1:1; balance edits take the student's key so they
serialize with payments.
"""

import logging
from datetime import date
from typing import List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from seatledger.app.core.config import settings
from seatledger.app.core.exceptions import SeatConflictError, ValidationError
from seatledger.app.core.scope import Scope
from seatledger.app.db.session import atomic
from seatledger.app.domain.base import ScopedService
from seatledger.app.domain.ledger.balance import parse_amount
from seatledger.app.domain.seating.seat_service import SeatService
from seatledger.app.models.payment import Payment
from seatledger.app.models.payment_plan import PaymentPlan
from seatledger.app.models.seat import Seat
from seatledger.app.models.student import Student
from seatledger.app.schemas.student import StudentCreate, StudentUpdate
from seatledger.app.services.locking import engine_locks, seat_key, student_key

logger = logging.getLogger("seatledger.students")

_DETAIL_FIELDS = (
    "full_name", "mobile_number", "address", "father_name",
    "aadhaar_number", "notes", "enrollment_date", "is_deactivated",
)


class StudentService(ScopedService):

    async def list_students(self, scope: Scope) -> List[Student]:
        return await self._list_scoped(Student, scope, order_by=(Student.full_name, Student.id))

    async def get_student(self, library_id: int, student_id: int) -> Student:
        student = await self._get_owned(Student, library_id, student_id, "Student")
        return await self._annotate(student)

    async def create_student(self, library_id: int, data: StudentCreate) -> Student:
        """
        Enroll a student, optionally seating them and linking a plan.

        Raises:
            NotFoundError: Library, seat or plan missing in this library
            SeatConflictError: Requested seat is already occupied
            ValidationError: Malformed balance
        """
        await self._ensure_library(library_id)
        if data.payment_plan_id is not None:
            await self._get_owned(PaymentPlan, library_id, data.payment_plan_id, "Payment plan")

        student = Student(
            library_id=library_id,
            full_name=data.full_name.strip(),
            mobile_number=data.mobile_number,
            address=data.address,
            father_name=data.father_name,
            aadhaar_number=data.aadhaar_number,
            notes=data.notes,
            fees_due=parse_amount(data.fees_due, "fees_due"),
            is_deactivated=data.is_deactivated,
            enrollment_date=data.enrollment_date or date.today(),
            payment_plan_id=data.payment_plan_id,
        )
        if not student.full_name:
            raise ValidationError("full_name", "Full name is required")

        if data.seat_id is None:
            async with atomic(self.db):
                self.db.add(student)
                await self.db.flush()
        else:
            async with engine_locks.hold(seat_key(library_id, data.seat_id)):
                await self._get_owned(Seat, library_id, data.seat_id, "Seat")
                try:
                    async with atomic(self.db):
                        seat = await self._lock_row(Seat, data.seat_id, "Seat")
                        if seat.occupant_student_id is not None:
                            raise SeatConflictError(seat.id, f"Seat {seat.seat_number} is already occupied")
                        self.db.add(student)
                        await self.db.flush()
                        seat.occupant_student_id = student.id
                        student.seat_id = seat.id
                        await self.db.flush()
                except IntegrityError:
                    # Unique occupancy constraint: a writer outside this process won
                    logger.warning("Seat %s taken by a concurrent writer", data.seat_id)
                    raise SeatConflictError(data.seat_id)

        logger.info("Student %s enrolled in library %s (seat %s)", student.id, library_id, student.seat_id)
        return await self._annotate(student)

    async def update_student(self, library_id: int, student_id: int, patch: StudentUpdate) -> Student:
        """
        Apply a partial update.

        A seat change goes through the seat state machine and the remaining
        fields are written in the same transaction, so a failure leaves both
        the seat and the record untouched.
        """
        changes = patch.model_dump(exclude_unset=True)
        student = await self._get_owned(Student, library_id, student_id, "Student")

        if "payment_plan_id" in changes and changes["payment_plan_id"] is not None:
            await self._get_owned(PaymentPlan, library_id, changes["payment_plan_id"], "Payment plan")
        if "full_name" in changes:
            if changes["full_name"] is None or not changes["full_name"].strip():
                raise ValidationError("full_name", "Full name is required")
            changes["full_name"] = changes["full_name"].strip()
        if "fees_due" in changes:
            changes["fees_due"] = parse_amount(changes["fees_due"], "fees_due")
        for required in ("is_deactivated", "enrollment_date"):
            if required in changes and changes[required] is None:
                raise ValidationError(required, f"{required} cannot be null")

        previous_balance = []

        async def write_fields(target: Student) -> None:
            previous_balance.append(target.fees_due)
            await self._apply_changes(target, changes)

        also = write_fields if changes.keys() - {"seat_id"} else None
        if "seat_id" in changes:
            seats = SeatService(self.db, reveal_foreign=self.reveal_foreign)
            new_seat_id = changes.pop("seat_id")
            if new_seat_id is None:
                await seats.unseat_student(library_id, student_id, also=also)
            else:
                await seats.seat_student(library_id, student_id, new_seat_id, also=also)
        elif also is not None:
            async with engine_locks.hold(student_key(library_id, student_id)):
                async with atomic(self.db):
                    await write_fields(await self._lock_row(Student, student_id, "Student"))

        if "fees_due" in changes:
            logger.warning(
                "Manual balance edit for student %s: %s -> %s",
                student_id, previous_balance[0], changes["fees_due"]
            )

        student = await self._get_owned(Student, library_id, student_id, "Student")
        return await self._annotate(student)

    async def _apply_changes(self, student: Student, changes: dict) -> None:
        for field in _DETAIL_FIELDS + ("payment_plan_id", "fees_due"):
            if field in changes:
                setattr(student, field, changes[field])
        await self.db.flush()

    async def delete_student(self, library_id: int, student_id: int) -> None:
        """
        Delete a student: free the seat, then drop payments, then the record.
        """
        for _ in range(settings.assignment_max_attempts):
            student = await self._get_owned(Student, library_id, student_id, "Student")
            seat_id = student.seat_id
            keys = [student_key(library_id, student_id)]
            if seat_id is not None:
                keys.append(seat_key(library_id, seat_id))

            async with engine_locks.hold(*keys):
                student = await self._get_owned(Student, library_id, student_id, "Student")
                if student.seat_id != seat_id:
                    continue

                async with atomic(self.db):
                    if seat_id is not None:
                        seat = await self.db.get(Seat, seat_id, populate_existing=True)
                        if seat is not None and seat.occupant_student_id == student.id:
                            seat.occupant_student_id = None
                        student.seat_id = None
                        await self.db.flush()

                    await self.db.execute(
                        delete(Payment).where(Payment.student_id == student_id)
                    )
                    await self.db.delete(student)
                    await self.db.flush()

                logger.info("Student %s deleted from library %s (freed seat %s)", student_id, library_id, seat_id)
                return

        raise SeatConflictError(seat_id, "Student's seat changed while deleting, try again")
