"""
Seat API Endpoints.

Seat registry plus the assign/unassign transitions.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from seatledger.app.db.session import get_db
from seatledger.app.core.guards import LibraryContext, read_context, write_context
from seatledger.app.domain.seating.seat_service import SeatService
from seatledger.app.schemas.seat import SeatCreate, SeatUpdate, SeatAssignment, SeatResponse, SeatListResponse

router = APIRouter(prefix="/seats", tags=["Seats"])


@router.get("", response_model=SeatListResponse)
async def list_seats(
    ctx: LibraryContext = Depends(read_context),
    db: AsyncSession = Depends(get_db)
):
    """List seats ordered by floor and seat number."""
    seats = await SeatService(db, reveal_foreign=ctx.reveal_foreign).list_seats(ctx.scope)
    return SeatListResponse(
        seats=[SeatResponse.model_validate(s) for s in seats],
        total=len(seats),
        available=sum(1 for s in seats if not s.is_occupied)
    )


@router.post("", response_model=SeatResponse, status_code=status.HTTP_201_CREATED)
async def create_seat(
    data: SeatCreate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    seat = await SeatService(db, reveal_foreign=ctx.reveal_foreign).create_seat(
        ctx.library_id, data.seat_number, data.floor
    )
    return SeatResponse.model_validate(seat)


@router.get("/{seat_id}", response_model=SeatResponse)
async def get_seat(
    seat_id: int,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    seat = await SeatService(db, reveal_foreign=ctx.reveal_foreign).get_seat(ctx.library_id, seat_id)
    return SeatResponse.model_validate(seat)


@router.patch("/{seat_id}", response_model=SeatResponse)
async def update_seat(
    seat_id: int,
    data: SeatUpdate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    seat = await SeatService(db, reveal_foreign=ctx.reveal_foreign).update_seat(
        ctx.library_id, seat_id, data.seat_number, data.floor
    )
    return SeatResponse.model_validate(seat)


@router.delete("/{seat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_seat(
    seat_id: int,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """Delete a seat; its occupant, if any, is left unseated."""
    await SeatService(db, reveal_foreign=ctx.reveal_foreign).delete_seat(ctx.library_id, seat_id)


@router.post("/{seat_id}/assign", response_model=SeatResponse)
async def assign_seat(
    seat_id: int,
    data: SeatAssignment,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Seat a student, reassigning the seat if it is occupied.

    Returns 409 ERR_SEAT_CONFLICT if another assignment changed the seat
    while this one was waiting.
    """
    seat = await SeatService(db, reveal_foreign=ctx.reveal_foreign).assign_seat(
        ctx.library_id, data.student_id, seat_id
    )
    return SeatResponse.model_validate(seat)


@router.post("/{seat_id}/unassign", response_model=SeatResponse)
async def unassign_seat(
    seat_id: int,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """Vacate a seat. Vacating an empty seat succeeds and changes nothing."""
    seat = await SeatService(db, reveal_foreign=ctx.reveal_foreign).unassign_seat(ctx.library_id, seat_id)
    return SeatResponse.model_validate(seat)
