"""
Library (tenant) API Endpoints.

Superadmin-only tenant directory and manager administration.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from seatledger.app.db.session import get_db
from seatledger.app.core.guards import require_superadmin
from seatledger.app.core.scope import Principal
from seatledger.app.domain.tenancy.library_service import LibraryService
from seatledger.app.schemas.library import LibraryCreate, LibraryResponse, LibraryListResponse
from seatledger.app.schemas.admin import ManagerCreate, ManagerAssignment, ManagerListResponse
from seatledger.app.schemas.auth import UserResponse

router = APIRouter(prefix="/libraries", tags=["Libraries"])
managers_router = APIRouter(prefix="/managers", tags=["Managers"])


@router.get("", response_model=LibraryListResponse)
async def list_libraries(
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """List every library."""
    libraries = await LibraryService(db).list_libraries()
    return LibraryListResponse(
        libraries=[LibraryResponse.model_validate(lib) for lib in libraries],
        total=len(libraries)
    )


@router.post("", response_model=LibraryResponse, status_code=status.HTTP_201_CREATED)
async def create_library(
    data: LibraryCreate,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Create a library. Names are unique."""
    library = await LibraryService(db).create_library(data.name)
    return LibraryResponse.model_validate(library)


@router.get("/{library_id}", response_model=LibraryResponse)
async def get_library(
    library_id: int,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    library = await LibraryService(db).get_library(library_id)
    return LibraryResponse.model_validate(library)


@router.delete("/{library_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_library(
    library_id: int,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a library with its payments, students, seats and plans.

    Managers bound to it are kept but unbound.
    """
    await LibraryService(db).delete_library(library_id)


# Managers

@managers_router.get("", response_model=ManagerListResponse)
async def list_managers(
    library_id: Optional[int] = Query(None, description="Only managers bound to this library"),
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    managers = await LibraryService(db).list_managers(library_id)
    return ManagerListResponse(
        managers=[UserResponse.model_validate(m) for m in managers],
        total=len(managers)
    )


@managers_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_manager(
    data: ManagerCreate,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Create a manager account, optionally bound to a library."""
    manager = await LibraryService(db).create_manager(data)
    return UserResponse.model_validate(manager)


@managers_router.put("/{user_id}/library", response_model=UserResponse)
async def assign_manager_library(
    user_id: int,
    data: ManagerAssignment,
    principal: Principal = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db)
):
    """Bind a manager to a library, or unbind with library_id: null."""
    manager = await LibraryService(db).assign_manager_library(user_id, data.library_id)
    return UserResponse.model_validate(manager)
