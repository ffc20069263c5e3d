"""
Seat database model.

Occupancy is a relation, not ownership: a seat points at its occupant and the
occupant points back at the seat.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from seatledger.app.db.session import Base


class Seat(Base):
    """
    Seat model.

    occupant_student_id is set iff exactly one student has seat_id == id.
    The unique index rejects a second occupant at the database level.
    """
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    library_id = Column(Integer, ForeignKey('libraries.id'), nullable=False, index=True)

    seat_number = Column(String(50), nullable=False)
    floor = Column(String(50), nullable=False)

    # Back pointer to the occupying student (no FK: students already reference seats)
    occupant_student_id = Column(Integer, unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('library_id', 'seat_number', name='uq_seats_library_seat_number'),
    )

    @property
    def is_occupied(self) -> bool:
        return self.occupant_student_id is not None

    def __repr__(self):
        return f"<Seat(id={self.id}, seat_number='{self.seat_number}', floor='{self.floor}', occupant={self.occupant_student_id})>"
