"""
Library (tenant) database model.

Every other business row carries a library_id pointing here.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from seatledger.app.db.session import Base


class Library(Base):
    """
    Library model.

    A library is an independently managed study space and the unit of data
    isolation. Deleting it cascades to all of its students, seats, plans and
    payments.
    """
    __tablename__ = "libraries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Library(id={self.id}, name='{self.name}')>"
