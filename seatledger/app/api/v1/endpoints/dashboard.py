"""
Dashboard API Endpoints.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from seatledger.app.db.session import get_db
from seatledger.app.core.guards import LibraryContext, read_context
from seatledger.app.schemas.dashboard import DashboardSummary
from seatledger.app.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    today: Optional[date] = Query(None, description="Reference date for monthly income"),
    ctx: LibraryContext = Depends(read_context),
    db: AsyncSession = Depends(get_db)
):
    """Counters for one library, or across all libraries for a superadmin."""
    return await DashboardService.summary(db, ctx.scope, today)
