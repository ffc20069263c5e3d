"""
Payment Plan Service (Domain Logic).

Per-library catalog of fee schedules.
"""

import logging
from typing import List

from seatledger.app.core.exceptions import ValidationError
from seatledger.app.core.scope import Scope
from seatledger.app.db.session import atomic
from seatledger.app.domain.base import ScopedService
from seatledger.app.domain.ledger.balance import parse_amount
from seatledger.app.models.billing_enums import PlanFrequency
from seatledger.app.models.payment_plan import PaymentPlan
from seatledger.app.schemas.billing import PaymentPlanCreate, PaymentPlanUpdate

logger = logging.getLogger("seatledger.catalog")


def _checked_amount(value):
    amount = parse_amount(value)
    if amount < 0:
        raise ValidationError("amount", "Plan amount cannot be negative")
    return amount


def _checked_name(value):
    name = (value or "").strip()
    if not name:
        raise ValidationError("name", "Plan name is required")
    return name


class PaymentPlanService(ScopedService):

    async def list_plans(self, scope: Scope) -> List[PaymentPlan]:
        return await self._list_scoped(PaymentPlan, scope, order_by=(PaymentPlan.name, PaymentPlan.id))

    async def get_plan(self, library_id: int, plan_id: int) -> PaymentPlan:
        plan = await self._get_owned(PaymentPlan, library_id, plan_id, "Payment plan")
        return await self._annotate(plan)

    async def create_plan(self, library_id: int, data: PaymentPlanCreate) -> PaymentPlan:
        await self._ensure_library(library_id)
        plan = PaymentPlan(
            library_id=library_id,
            name=_checked_name(data.name),
            amount=_checked_amount(data.amount),
            frequency=PlanFrequency(data.frequency),
        )
        async with atomic(self.db):
            self.db.add(plan)
            await self.db.flush()

        logger.info("Payment plan %s (%s) created in library %s", plan.id, plan.name, library_id)
        return await self._annotate(plan)

    async def update_plan(self, library_id: int, plan_id: int, patch: PaymentPlanUpdate) -> PaymentPlan:
        """
        Update a plan in place.

        Existing balances are not recomputed; plans only describe charges.
        """
        changes = patch.model_dump(exclude_unset=True)
        plan = await self._get_owned(PaymentPlan, library_id, plan_id, "Payment plan")

        if "name" in changes:
            changes["name"] = _checked_name(changes["name"])
        if "amount" in changes:
            changes["amount"] = _checked_amount(changes["amount"])
        if "frequency" in changes:
            if changes["frequency"] is None:
                raise ValidationError("frequency", "Frequency is required")
            changes["frequency"] = PlanFrequency(changes["frequency"])

        async with atomic(self.db):
            for field, value in changes.items():
                setattr(plan, field, value)
            await self.db.flush()

        return await self._annotate(plan)
