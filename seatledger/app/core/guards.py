"""
Security guards for role-based access control and library scoping.

Provides dependencies that turn the authenticated Principal into a read
Scope or a concrete write library.
"""

from typing import List, Optional
from fastapi import Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from seatledger.app.core.dependencies import get_current_user
from seatledger.app.core.exceptions import AuthorizationError, NotFoundError
from seatledger.app.core.scope import Principal, Scope, resolve_read_scope, resolve_write_library, scope_library_id
from seatledger.app.db.session import get_db
from seatledger.app.models.library import Library
from seatledger.app.models.enums import UserRole


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/libraries")
        async def create_library(principal: Principal = Depends(require_role([UserRole.SUPERADMIN]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        AuthorizationError if user role is not in allowed_roles
    """
    async def role_checker(principal: Principal = Depends(get_current_user)) -> Principal:
        if principal.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        return principal

    return role_checker


require_superadmin = require_role([UserRole.SUPERADMIN])


class LibraryContext:
    """
    Resolved library context for one request.

    Usage:
        @router.get("/students")
        async def list_students(ctx: LibraryContext = Depends(read_context)):
            students = await StudentService(db, reveal_foreign=ctx.reveal_foreign).list_students(ctx.scope)
    """

    def __init__(self, principal: Principal, scope: Optional[Scope] = None, library_id: Optional[int] = None):
        self.principal = principal
        self.scope = scope
        self.library_id = library_id

    @property
    def reveal_foreign(self) -> bool:
        """Only superadmins may learn that an id belongs to another library."""
        return self.principal.is_superadmin


async def _require_library(db: AsyncSession, library_id: int) -> None:
    result = await db.execute(select(Library.id).where(Library.id == library_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Library", library_id)


async def read_context(
    library_id: Optional[int] = Query(None, description="Library to read; omit for all libraries (superadmin only)"),
    principal: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LibraryContext:
    """Resolve a read scope for the caller."""
    scope = resolve_read_scope(principal, library_id)
    library = scope_library_id(scope)
    if library is not None:
        await _require_library(db, library)
    return LibraryContext(principal, scope=scope)


async def write_context(
    library_id: Optional[int] = Query(None, description="Target library (required for superadmin)"),
    principal: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LibraryContext:
    """Resolve the concrete library a write applies to."""
    target = resolve_write_library(principal, library_id)
    await _require_library(db, target)
    return LibraryContext(principal, library_id=target)
