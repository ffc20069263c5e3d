"""
Student API Endpoints.

Superadmins read across all libraries (or one, with ?library_id=) and must
name the library for writes. Managers are pinned to their bound library.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from seatledger.app.db.session import get_db
from seatledger.app.core.guards import LibraryContext, read_context, write_context
from seatledger.app.domain.ledger.ledger_service import LedgerService
from seatledger.app.domain.students.student_service import StudentService
from seatledger.app.schemas.student import StudentCreate, StudentUpdate, StudentResponse, StudentListResponse

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=StudentListResponse)
async def list_students(
    ctx: LibraryContext = Depends(read_context),
    db: AsyncSession = Depends(get_db)
):
    """List students in scope, each annotated with its library's name."""
    students = await StudentService(db, reveal_foreign=ctx.reveal_foreign).list_students(ctx.scope)
    return StudentListResponse(
        students=[StudentResponse.model_validate(s) for s in students],
        total=len(students)
    )


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Enroll a student.

    If seat_id is given the seat must be vacant; enrollment never evicts
    another student.
    """
    student = await StudentService(db, reveal_foreign=ctx.reveal_foreign).create_student(ctx.library_id, data)
    return StudentResponse.model_validate(student)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: int,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    student = await StudentService(db, reveal_foreign=ctx.reveal_foreign).get_student(ctx.library_id, student_id)
    return StudentResponse.model_validate(student)


@router.patch("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: int,
    patch: StudentUpdate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update a student.

    Changing seat_id reassigns through the seat state machine; seat_id: null
    vacates the current seat.
    """
    student = await StudentService(db, reveal_foreign=ctx.reveal_foreign).update_student(
        ctx.library_id, student_id, patch
    )
    return StudentResponse.model_validate(student)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(
    student_id: int,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """Delete a student, freeing their seat and removing their payments."""
    await StudentService(db, reveal_foreign=ctx.reveal_foreign).delete_student(ctx.library_id, student_id)


@router.post("/{student_id}/clear-dues", response_model=StudentResponse)
async def clear_dues(
    student_id: int,
    today: Optional[date] = Query(None, description="Date recorded as last payment (defaults to today)"),
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Zero a student's balance without recording a payment.
    """
    student = await LedgerService(db, reveal_foreign=ctx.reveal_foreign).clear_dues(
        ctx.library_id, student_id, today
    )
    return StudentResponse.model_validate(student)
