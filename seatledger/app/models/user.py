"""
User database model.

This module defines the User SQLAlchemy model for authentication.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from seatledger.app.db.session import Base
from seatledger.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and library binding.

    A MANAGER operates only inside the library referenced by library_id.
    Deleting that library clears the pointer and leaves the manager unable
    to operate until reassigned.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=True)
    mobile_number = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.MANAGER, nullable=False)

    # Bound library for managers
    library_id = Column(Integer, ForeignKey('libraries.id'), index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}', library_id={self.library_id})>"
