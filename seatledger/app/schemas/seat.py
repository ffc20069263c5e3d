"""
Seat Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List


class SeatCreate(BaseModel):
    """Schema for creating a seat."""
    seat_number: str = Field(..., min_length=1, max_length=50)
    floor: str = Field(..., min_length=1, max_length=50)


class SeatUpdate(BaseModel):
    """Schema for renumbering or moving a seat."""
    seat_number: Optional[str] = Field(None, min_length=1, max_length=50)
    floor: Optional[str] = Field(None, min_length=1, max_length=50)


class SeatAssignment(BaseModel):
    """Schema for assigning a student to a seat."""
    student_id: int


class SeatResponse(BaseModel):
    """Schema for seat response."""
    id: int
    library_id: int
    library_name: Optional[str] = None
    seat_number: str
    floor: str
    occupant_student_id: Optional[int] = None
    occupant_name: Optional[str] = None
    is_occupied: bool

    class Config:
        from_attributes = True


class SeatListResponse(BaseModel):
    """Schema for seat list."""
    seats: List[SeatResponse]
    total: int
    available: int
