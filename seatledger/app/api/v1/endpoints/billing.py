"""
Billing API Endpoints.

Payment plans and the payment journal.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from seatledger.app.db.session import get_db
from seatledger.app.core.guards import LibraryContext, read_context, write_context
from seatledger.app.domain.catalog.payment_plan_service import PaymentPlanService
from seatledger.app.domain.ledger.ledger_service import LedgerService
from seatledger.app.schemas.billing import (
    PaymentPlanCreate, PaymentPlanUpdate, PaymentPlanResponse,
    PaymentCreate, AdjustmentCreate, PaymentResponse, PaymentListResponse
)

plans_router = APIRouter(prefix="/payment-plans", tags=["Payment Plans"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])


# --- Payment plans ---

@plans_router.get("", response_model=List[PaymentPlanResponse])
async def list_plans(
    ctx: LibraryContext = Depends(read_context),
    db: AsyncSession = Depends(get_db)
):
    plans = await PaymentPlanService(db, reveal_foreign=ctx.reveal_foreign).list_plans(ctx.scope)
    return [PaymentPlanResponse.model_validate(p) for p in plans]


@plans_router.post("", response_model=PaymentPlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    data: PaymentPlanCreate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    plan = await PaymentPlanService(db, reveal_foreign=ctx.reveal_foreign).create_plan(ctx.library_id, data)
    return PaymentPlanResponse.model_validate(plan)


@plans_router.get("/{plan_id}", response_model=PaymentPlanResponse)
async def get_plan(
    plan_id: int,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    plan = await PaymentPlanService(db, reveal_foreign=ctx.reveal_foreign).get_plan(ctx.library_id, plan_id)
    return PaymentPlanResponse.model_validate(plan)


@plans_router.patch("/{plan_id}", response_model=PaymentPlanResponse)
async def update_plan(
    plan_id: int,
    patch: PaymentPlanUpdate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    plan = await PaymentPlanService(db, reveal_foreign=ctx.reveal_foreign).update_plan(
        ctx.library_id, plan_id, patch
    )
    return PaymentPlanResponse.model_validate(plan)


# --- Payment journal ---

@payments_router.get("", response_model=PaymentListResponse)
async def list_payments(
    student_id: Optional[int] = Query(None, description="Only entries for this student"),
    ctx: LibraryContext = Depends(read_context),
    db: AsyncSession = Depends(get_db)
):
    """List journal entries in scope, newest first."""
    payments = await LedgerService(db, reveal_foreign=ctx.reveal_foreign).list_payments(ctx.scope, student_id)
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        total=len(payments)
    )


@payments_router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def add_payment(
    data: PaymentCreate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a payment and decrease the student's balance by the same amount.

    Overpayment leaves the balance negative (credit).
    """
    payment = await LedgerService(db, reveal_foreign=ctx.reveal_foreign).add_payment(
        ctx.library_id, data.student_id, data.amount, data.payment_date, data.notes
    )
    return PaymentResponse.model_validate(payment)


@payments_router.post("/adjustments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def add_adjustment(
    data: AdjustmentCreate,
    ctx: LibraryContext = Depends(write_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a signed correction (negative amounts raise the balance).
    """
    entry = await LedgerService(db, reveal_foreign=ctx.reveal_foreign).add_adjustment(
        ctx.library_id, data.student_id, data.amount, data.adjustment_date, data.notes
    )
    return PaymentResponse.model_validate(entry)
