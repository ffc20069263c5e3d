"""
Seat Service (Domain Logic).

Seat registry and the seat assignment state machine.

States per seat: Vacant, Occupied(student_id).
- assign:   Vacant -> Occupied(s), or Occupied(s') -> Occupied(s) (reassignment)
- unassign: Occupied -> Vacant; a no-op success on a vacant seat

Every transition updates the seat and all affected students in one
transaction while holding the keys of every row it touches.
"""

import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from seatledger.app.core.config import settings
from seatledger.app.core.exceptions import SeatConflictError, ValidationError
from seatledger.app.core.scope import Scope
from seatledger.app.db.session import atomic
from seatledger.app.domain.base import ScopedService
from seatledger.app.domain.seating.ordering import seat_sort_key
from seatledger.app.models.seat import Seat
from seatledger.app.models.student import Student
from seatledger.app.services.locking import engine_locks, seat_key, student_key

logger = logging.getLogger("seatledger.seating")

# Extra writes applied to a student in the same transaction as a seat change
StudentWrite = Callable[[Student], Awaitable[None]]


class SeatService(ScopedService):

    # Registry

    async def list_seats(self, scope: Scope) -> List[Seat]:
        """List seats in scope, ordered by floor and natural seat number."""
        seats = await self._list_scoped(Seat, scope)
        await self._attach_occupant_names(seats)
        return sorted(seats, key=seat_sort_key)

    async def get_seat(self, library_id: int, seat_id: int) -> Seat:
        seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
        return await self._annotate(seat)

    async def _annotate(self, seat: Seat) -> Seat:
        seat = await super()._annotate(seat)
        await self._attach_occupant_names([seat])
        return seat

    async def create_seat(self, library_id: int, seat_number: str, floor: str) -> Seat:
        """
        Create a vacant seat.

        Raises:
            NotFoundError: Library missing
            ValidationError: Blank fields or seat number already used in this library
        """
        seat_number = (seat_number or "").strip()
        floor = (floor or "").strip()
        if not seat_number:
            raise ValidationError("seat_number", "Seat number is required")
        if not floor:
            raise ValidationError("floor", "Floor is required")

        await self._ensure_library(library_id)
        await self._check_seat_number_free(library_id, seat_number)

        seat = Seat(library_id=library_id, seat_number=seat_number, floor=floor)
        try:
            async with atomic(self.db):
                self.db.add(seat)
                await self.db.flush()
        except IntegrityError:
            raise ValidationError("seat_number", f"Seat {seat_number} already exists in this library")

        logger.info("Seat %s created in library %s", seat.id, library_id)
        return await self._annotate(seat)

    async def update_seat(
        self,
        library_id: int,
        seat_id: int,
        seat_number: Optional[str] = None,
        floor: Optional[str] = None,
    ) -> Seat:
        """Change a seat's number and/or floor; occupancy is untouched."""
        seat = await self._get_owned(Seat, library_id, seat_id, "Seat")

        if seat_number is not None:
            seat_number = seat_number.strip()
            if not seat_number:
                raise ValidationError("seat_number", "Seat number is required")
            if seat_number != seat.seat_number:
                await self._check_seat_number_free(library_id, seat_number)
        if floor is not None:
            floor = floor.strip()
            if not floor:
                raise ValidationError("floor", "Floor is required")

        try:
            async with atomic(self.db):
                if seat_number is not None:
                    seat.seat_number = seat_number
                if floor is not None:
                    seat.floor = floor
                await self.db.flush()
        except IntegrityError:
            raise ValidationError("seat_number", f"Seat {seat_number} already exists in this library")

        return await self._annotate(seat)

    async def delete_seat(self, library_id: int, seat_id: int) -> None:
        """Delete a seat, first clearing its occupant's seat pointer."""
        for _ in range(settings.assignment_max_attempts):
            seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
            occupant_id = seat.occupant_student_id
            keys = [seat_key(library_id, seat_id)]
            if occupant_id is not None:
                keys.append(student_key(library_id, occupant_id))

            async with engine_locks.hold(*keys):
                seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
                if seat.occupant_student_id != occupant_id:
                    continue
                async with atomic(self.db):
                    await self._vacate(seat)
                    await self.db.delete(seat)
                    await self.db.flush()
                logger.info("Seat %s deleted from library %s", seat_id, library_id)
                return
        raise SeatConflictError(seat_id, "Seat changed while deleting, try again")

    # State machine

    async def assign_seat(self, library_id: int, student_id: int, seat_id: int) -> Seat:
        """
        Seat a student.

        The occupancy observed before taking the seat key must still hold once
        the key is held; otherwise another writer got there first and the call
        fails with SeatConflictError instead of overwriting it.

        Raises:
            NotFoundError: Seat or student missing in this library
            SeatConflictError: Occupancy changed under a concurrent writer
        """
        seat, _ = await self.seat_student(library_id, student_id, seat_id)
        return await self._annotate(seat)

    async def seat_student(
        self,
        library_id: int,
        student_id: int,
        seat_id: int,
        also: Optional[StudentWrite] = None,
    ) -> Tuple[Seat, Student]:
        """
        Assignment with optional extra writes to the student.

        also(student) runs in the same transaction as the seat move: both are
        committed or neither is.
        """
        for _ in range(settings.assignment_max_attempts):
            # Plan from an unlocked read
            seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
            student = await self._get_owned(Student, library_id, student_id, "Student")
            observed_occupant = seat.occupant_student_id
            observed_student_seat = student.seat_id

            keys = {seat_key(library_id, seat_id), student_key(library_id, student_id)}
            if observed_occupant is not None:
                keys.add(student_key(library_id, observed_occupant))
            if observed_student_seat is not None:
                keys.add(seat_key(library_id, observed_student_seat))

            async with engine_locks.hold(*keys):
                seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
                student = await self._get_owned(Student, library_id, student_id, "Student")

                if seat.occupant_student_id != observed_occupant:
                    logger.warning(
                        "Seat %s conflict: expected occupant %s, found %s",
                        seat_id, observed_occupant, seat.occupant_student_id
                    )
                    raise SeatConflictError(seat_id)
                if student.seat_id != observed_student_seat:
                    # The student moved meanwhile; plan again
                    continue

                seated = seat.occupant_student_id == student.id and student.seat_id == seat.id
                if seated and also is None:
                    return seat, student

                try:
                    async with atomic(self.db):
                        if not seated:
                            await self._move(student, seat, observed_occupant)
                        if also is not None:
                            await also(student)
                            await self.db.flush()
                except IntegrityError:
                    # Unique occupancy constraint: a writer outside this process won
                    logger.warning("Seat %s taken by a concurrent writer", seat_id)
                    raise SeatConflictError(seat_id)

                if not seated:
                    logger.info(
                        "Student %s assigned to seat %s in library %s (previous occupant %s)",
                        student_id, seat_id, library_id, observed_occupant
                    )
                return seat, student

        raise SeatConflictError(seat_id, "Seat assignment kept changing, try again")

    async def unassign_seat(self, library_id: int, seat_id: int) -> Seat:
        """
        Vacate a seat, clearing both sides.

        Unassigning a vacant seat succeeds without mutating anything.
        """
        for _ in range(settings.assignment_max_attempts):
            seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
            occupant_id = seat.occupant_student_id
            if occupant_id is None:
                logger.debug("Seat %s already vacant", seat_id)
                return await self._annotate(seat)

            async with engine_locks.hold(seat_key(library_id, seat_id), student_key(library_id, occupant_id)):
                seat = await self._get_owned(Seat, library_id, seat_id, "Seat")
                if seat.occupant_student_id != occupant_id:
                    continue
                async with atomic(self.db):
                    await self._vacate(await self._lock_row(Seat, seat_id, "Seat"))

                logger.info("Seat %s vacated by student %s", seat_id, occupant_id)
                return await self._annotate(seat)

        raise SeatConflictError(seat_id, "Seat changed while unassigning, try again")

    async def unseat_student(
        self,
        library_id: int,
        student_id: int,
        also: Optional[StudentWrite] = None,
    ) -> Student:
        """
        Take a student out of whatever seat they hold.

        also(student) runs in the same transaction, as for seat_student. A
        student without a seat is left as is.
        """
        for _ in range(settings.assignment_max_attempts):
            student = await self._get_owned(Student, library_id, student_id, "Student")
            observed_seat = student.seat_id
            keys = [student_key(library_id, student_id)]
            if observed_seat is not None:
                keys.append(seat_key(library_id, observed_seat))

            async with engine_locks.hold(*keys):
                student = await self._get_owned(Student, library_id, student_id, "Student")
                if student.seat_id != observed_seat:
                    continue
                if observed_seat is None and also is None:
                    return student

                async with atomic(self.db):
                    if observed_seat is not None:
                        await self._vacate(await self._lock_row(Seat, observed_seat, "Seat"))
                        student.seat_id = None
                    if also is not None:
                        await also(student)
                    await self.db.flush()

                if observed_seat is not None:
                    logger.info("Seat %s vacated by student %s", observed_seat, student_id)
                return student

        raise SeatConflictError(observed_seat, "Student's seat changed while unassigning, try again")

    # Internals (caller holds the keys and the transaction)

    async def _vacate(self, seat: Seat) -> None:
        occupant_id = seat.occupant_student_id
        if occupant_id is None:
            return
        occupant = await self.db.get(Student, occupant_id, populate_existing=True)
        if occupant is not None and occupant.seat_id == seat.id:
            occupant.seat_id = None
        seat.occupant_student_id = None
        await self.db.flush()

    async def _move(self, student: Student, seat: Seat, expected_occupant: Optional[int]) -> None:
        # Row-locked re-read: another process may have committed since the keyed re-read
        seat = await self._lock_row(Seat, seat.id, "Seat")
        if seat.occupant_student_id != expected_occupant:
            logger.warning(
                "Seat %s conflict: expected occupant %s, found %s",
                seat.id, expected_occupant, seat.occupant_student_id
            )
            raise SeatConflictError(seat.id)
        student = await self._lock_row(Student, student.id, "Student")

        # A student holds at most one seat: leave the current one first
        if student.seat_id is not None and student.seat_id != seat.id:
            current = await self.db.get(Seat, student.seat_id, populate_existing=True)
            if current is not None and current.occupant_student_id == student.id:
                current.occupant_student_id = None
            student.seat_id = None
            await self.db.flush()

        # Clear the previous occupant before the new one is set
        if seat.occupant_student_id is not None and seat.occupant_student_id != student.id:
            await self._vacate(seat)

        seat.occupant_student_id = student.id
        student.seat_id = seat.id
        await self.db.flush()

    async def _attach_occupant_names(self, seats: List[Seat]) -> None:
        occupant_ids = [s.occupant_student_id for s in seats if s.occupant_student_id is not None]
        names = {}
        if occupant_ids:
            result = await self.db.execute(
                select(Student.id, Student.full_name).where(Student.id.in_(occupant_ids))
            )
            names = dict(result.all())
        for seat in seats:
            seat.occupant_name = names.get(seat.occupant_student_id)

    async def _check_seat_number_free(self, library_id: int, seat_number: str) -> None:
        result = await self.db.execute(
            select(Seat.id).where(Seat.library_id == library_id, Seat.seat_number == seat_number)
        )
        if result.scalar_one_or_none() is not None:
            raise ValidationError("seat_number", f"Seat {seat_number} already exists in this library")
