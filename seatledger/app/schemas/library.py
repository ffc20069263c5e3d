"""
Library Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List


class LibraryCreate(BaseModel):
    """Schema for creating a library."""
    name: str = Field(..., min_length=1, max_length=200, description="Library name")


class LibraryResponse(BaseModel):
    """Schema for library response."""
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class LibraryListResponse(BaseModel):
    """Schema for library list."""
    libraries: List[LibraryResponse]
    total: int
