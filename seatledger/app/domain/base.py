"""
Shared plumbing for library-scoped domain services.

Every engine service loads rows through _get_owned, which enforces that the
row belongs to the library the write targets, and lists rows through
_list_scoped, which annotates each row with its library's name so results
read across all libraries stay distinguishable.
"""

from typing import Any, List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seatledger.app.core.exceptions import AuthorizationError, NotFoundError
from seatledger.app.core.scope import Scope, scope_library_id
from seatledger.app.models.library import Library


class ScopedService:
    """
    Base class for services operating on rows that carry a library_id.

    Args:
        db: Database session
        reveal_foreign: When True (superadmin callers) a row that exists in a
            different library raises AuthorizationError. When False (managers)
            it raises NotFoundError, exactly like a missing id.
    """

    def __init__(self, db: AsyncSession, *, reveal_foreign: bool = False):
        self.db = db
        self.reveal_foreign = reveal_foreign

    async def _ensure_library(self, library_id: int) -> Library:
        result = await self.db.execute(select(Library).where(Library.id == library_id))
        library = result.scalar_one_or_none()
        if library is None:
            raise NotFoundError("Library", library_id)
        return library

    async def _get_owned(self, model, library_id: int, entity_id: int, resource: str):
        """
        Load a row by id, refreshed from the database, and check its library.

        Raises:
            NotFoundError: Row missing (or foreign, for managers)
            AuthorizationError: Row belongs to another library (superadmins)
        """
        result = await self.db.execute(
            select(model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        obj = result.scalar_one_or_none()
        if obj is None:
            raise NotFoundError(resource, entity_id)
        if obj.library_id != library_id:
            if self.reveal_foreign:
                raise AuthorizationError()
            raise NotFoundError(resource, entity_id)
        return obj

    async def _lock_row(self, model, entity_id: int, resource: str):
        """
        Re-read a row inside the open transaction, locking it until commit.

        The keyed locks only serialize writers in this process; the row lock
        makes the database row the key across processes.
        """
        result = await self.db.execute(
            select(model)
            .where(model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        obj = result.scalar_one_or_none()
        if obj is None:
            raise NotFoundError(resource, entity_id)
        return obj

    async def _annotate(self, obj):
        """Reload a single row (server defaults included) and attach library_name."""
        await self.db.refresh(obj)
        result = await self.db.execute(select(Library.name).where(Library.id == obj.library_id))
        obj.library_name = result.scalar_one_or_none()
        return obj

    async def _list_scoped(
        self,
        model,
        scope: Scope,
        *criteria: Any,
        order_by: Sequence[Any] = (),
    ) -> List[Any]:
        """
        Select rows of model within scope, annotated with library_name.
        """
        stmt = select(model, Library.name).join(Library, Library.id == model.library_id)
        library_id = scope_library_id(scope)
        if library_id is not None:
            stmt = stmt.where(model.library_id == library_id)
        for criterion in criteria:
            stmt = stmt.where(criterion)
        if order_by:
            stmt = stmt.order_by(*order_by)

        result = await self.db.execute(stmt)
        items = []
        for obj, library_name in result.all():
            obj.library_name = library_name
            items.append(obj)
        return items
