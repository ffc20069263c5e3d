"""
Library Service (Domain Logic).

Tenant directory and manager administration. Superadmin only; callers are
checked at the API layer with require_superadmin.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seatledger.app.core.exceptions import CascadeDeletionError, NotFoundError, ValidationError
from seatledger.app.core.security import get_password_hash
from seatledger.app.db.session import atomic
from seatledger.app.models.enums import UserRole
from seatledger.app.models.library import Library
from seatledger.app.models.payment import Payment
from seatledger.app.models.payment_plan import PaymentPlan
from seatledger.app.models.seat import Seat
from seatledger.app.models.student import Student
from seatledger.app.models.user import User
from seatledger.app.schemas.admin import ManagerCreate

logger = logging.getLogger("seatledger.tenancy")


class LibraryService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_libraries(self) -> List[Library]:
        result = await self.db.execute(select(Library).order_by(Library.name))
        return list(result.scalars().all())

    async def get_library(self, library_id: int) -> Library:
        result = await self.db.execute(select(Library).where(Library.id == library_id))
        library = result.scalar_one_or_none()
        if library is None:
            raise NotFoundError("Library", library_id)
        return library

    async def create_library(self, name: str) -> Library:
        """
        Create a tenant.

        Raises:
            ValidationError: Blank or already used name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "Library name is required")

        existing = await self.db.execute(select(Library.id).where(Library.name == name))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError("name", f"Library '{name}' already exists")

        library = Library(name=name)
        try:
            async with atomic(self.db):
                self.db.add(library)
                await self.db.flush()
        except IntegrityError:
            raise ValidationError("name", f"Library '{name}' already exists")

        await self.db.refresh(library)
        logger.info("Library %s (%s) created", library.id, library.name)
        return library

    async def delete_library(self, library_id: int) -> None:
        """
        Delete a tenant and everything it owns.

        Order: payments, students, seats, payment plans, then unbind managers
        and drop the library row. Runs as one transaction, so a failure
        leaves every row in place.

        Raises:
            NotFoundError: Library missing
            CascadeDeletionError: The database rejected part of the cascade
        """
        library = await self.get_library(library_id)

        try:
            async with atomic(self.db):
                payments = await self.db.execute(delete(Payment).where(Payment.library_id == library_id))
                students = await self.db.execute(delete(Student).where(Student.library_id == library_id))
                seats = await self.db.execute(delete(Seat).where(Seat.library_id == library_id))
                await self.db.execute(delete(PaymentPlan).where(PaymentPlan.library_id == library_id))
                managers = await self.db.execute(
                    update(User).where(User.library_id == library_id).values(library_id=None)
                )
                await self.db.delete(library)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("Cascade delete of library %s failed: %s", library_id, e)
            raise CascadeDeletionError("Library", library_id, str(e))

        logger.info(
            "Library %s deleted: %s payments, %s students, %s seats removed, %s managers unbound",
            library_id, payments.rowcount, students.rowcount, seats.rowcount, managers.rowcount
        )

    # Managers

    async def list_managers(self, library_id: Optional[int] = None) -> List[User]:
        stmt = select(User).where(User.role == UserRole.MANAGER)
        if library_id is not None:
            stmt = stmt.where(User.library_id == library_id)
        result = await self.db.execute(stmt.order_by(User.username))
        return list(result.scalars().all())

    async def create_manager(self, data: ManagerCreate) -> User:
        """
        Create a manager account, optionally bound to a library.

        Raises:
            ValidationError: Username or email already registered
            NotFoundError: Library missing
        """
        result = await self.db.execute(
            select(User).where(or_(User.username == data.username, User.email == data.email))
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            if existing.username == data.username:
                raise ValidationError("username", "Username already registered")
            raise ValidationError("email", "Email already registered")

        if data.library_id is not None:
            await self.get_library(data.library_id)

        manager = User(
            email=data.email,
            username=data.username,
            hashed_password=get_password_hash(data.password),
            display_name=data.display_name,
            mobile_number=data.mobile_number,
            role=UserRole.MANAGER,
            library_id=data.library_id,
            is_active=True,
        )
        async with atomic(self.db):
            self.db.add(manager)
            await self.db.flush()

        await self.db.refresh(manager)
        logger.info("Manager %s created (library %s)", manager.username, manager.library_id)
        return manager

    async def assign_manager_library(self, user_id: int, library_id: Optional[int]) -> User:
        """Bind a manager to a library, or unbind with None."""
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.role == UserRole.MANAGER)
        )
        manager = result.scalar_one_or_none()
        if manager is None:
            raise NotFoundError("Manager", user_id)
        if library_id is not None:
            await self.get_library(library_id)

        async with atomic(self.db):
            manager.library_id = library_id
            await self.db.flush()

        await self.db.refresh(manager)
        logger.info("Manager %s bound to library %s", manager.username, library_id)
        return manager
