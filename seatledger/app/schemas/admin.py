"""
Admin API Schema Definitions.

Pydantic schemas for superadmin manager administration.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from seatledger.app.schemas.auth import UserResponse


class ManagerCreate(BaseModel):
    """Schema for creating a library manager."""
    email: EmailStr = Field(..., description="Manager email address")
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    mobile_number: Optional[str] = Field(None, pattern=r"^\d{10}$", description="10 digit mobile number")
    library_id: Optional[int] = Field(None, description="Library to bind the manager to")


class ManagerAssignment(BaseModel):
    """Bind a manager to a library, or unbind with null."""
    library_id: Optional[int] = None


class ManagerListResponse(BaseModel):
    """Schema for list managers response."""
    managers: List[UserResponse]
    total: int
