"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from seatledger.app.models.enums import UserRole


class UserLogin(BaseModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    Supports login with either username or email.
    """
    username: str = Field(..., description="Username or email")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    role: UserRole = Field(..., description="User role")
    library_id: Optional[int] = Field(default=None, description="Bound library (managers)")


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me and the manager administration endpoints.
    """
    id: int
    email: str
    username: str
    display_name: Optional[str] = None
    mobile_number: Optional[str] = None
    role: UserRole
    library_id: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
