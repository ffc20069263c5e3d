"""
Scoped access gateway.

Resolves the library context a request is evaluated against. A scope is an
explicit tagged variant, SingleLibrary or AllLibraries, so every consumer has
to handle both cases instead of testing a nullable id.
"""

from dataclasses import dataclass
from typing import Optional, Union

from seatledger.app.core.exceptions import AuthorizationError
from seatledger.app.models.enums import UserRole


@dataclass(frozen=True)
class SingleLibrary:
    library_id: int


@dataclass(frozen=True)
class AllLibraries:
    pass


Scope = Union[SingleLibrary, AllLibraries]

ALL_LIBRARIES = AllLibraries()


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller.

    role and library_id are loaded from the users table on every request;
    nothing here comes from client input.
    """
    user_id: int
    username: str
    role: UserRole
    library_id: Optional[int] = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRole.SUPERADMIN


def _bound_library(principal: Principal, requested_library_id: Optional[int]) -> int:
    if principal.library_id is None:
        raise AuthorizationError("Manager is not assigned to a library")
    if requested_library_id is not None and requested_library_id != principal.library_id:
        raise AuthorizationError()
    return principal.library_id


def resolve_read_scope(principal: Principal, requested_library_id: Optional[int] = None) -> Scope:
    """
    Resolve the scope for a read.

    Superadmins without a selected library read across all libraries.
    Managers are always pinned to their bound library.
    """
    if principal.is_superadmin:
        if requested_library_id is None:
            return ALL_LIBRARIES
        return SingleLibrary(requested_library_id)
    return SingleLibrary(_bound_library(principal, requested_library_id))


def resolve_write_library(principal: Principal, requested_library_id: Optional[int] = None) -> int:
    """
    Resolve the concrete library a write applies to.

    Writes are never evaluated against all libraries.
    """
    if principal.is_superadmin:
        if requested_library_id is None:
            raise AuthorizationError("Writes require a concrete library")
        return requested_library_id
    return _bound_library(principal, requested_library_id)


def scope_library_id(scope: Scope) -> Optional[int]:
    """Library id of a single-library scope, None for all libraries."""
    if isinstance(scope, SingleLibrary):
        return scope.library_id
    if isinstance(scope, AllLibraries):
        return None
    raise TypeError(f"Unknown scope: {scope!r}")
