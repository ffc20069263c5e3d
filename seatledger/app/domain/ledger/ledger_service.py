"""
Ledger Service (Domain Logic).

Payment journal and the balance operations that depend on it.

- add_payment: journal row + balance decrease, one transaction
- add_adjustment: signed correction row + balance change, one transaction
- clear_dues: administrative override, no journal row

The journal is append-only: nothing here edits or removes a past entry.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from seatledger.app.core.exceptions import NotFoundError, ValidationError
from seatledger.app.core.scope import Scope, scope_library_id
from seatledger.app.db.session import atomic
from seatledger.app.domain.base import ScopedService
from seatledger.app.domain.ledger.balance import parse_amount, quantize_money
from seatledger.app.models.billing_enums import PaymentEntryType
from seatledger.app.models.library import Library
from seatledger.app.models.payment import Payment
from seatledger.app.models.student import Student
from seatledger.app.services.locking import engine_locks, student_key

logger = logging.getLogger("seatledger.ledger")


class LedgerService(ScopedService):

    async def list_payments(self, scope: Scope, student_id: Optional[int] = None) -> List[Payment]:
        """
        List journal entries in scope, newest first.

        Each entry is annotated with library_name and student_name. A
        student id from another library simply yields no rows.
        """
        stmt = (
            select(Payment, Library.name, Student.full_name)
            .join(Library, Library.id == Payment.library_id)
            .join(Student, Student.id == Payment.student_id)
        )
        library_id = scope_library_id(scope)
        if library_id is not None:
            stmt = stmt.where(Payment.library_id == library_id)
        if student_id is not None:
            stmt = stmt.where(Payment.student_id == student_id)
        stmt = stmt.order_by(Payment.payment_date.desc(), Payment.id.desc())

        result = await self.db.execute(stmt)
        payments = []
        for payment, library_name, student_name in result.all():
            payment.library_name = library_name
            payment.student_name = student_name
            payments.append(payment)
        return payments

    async def add_payment(
        self,
        library_id: int,
        student_id: int,
        amount,
        payment_date: date,
        notes: Optional[str] = None,
    ) -> Payment:
        """
        Record a payment and apply it to the student's balance exactly once.

        The balance may go negative: overpayment becomes credit.

        Raises:
            ValidationError: amount <= 0 or payment_date missing
            NotFoundError: Student not in this library
        """
        amount = parse_amount(amount)
        if amount <= 0:
            raise ValidationError("amount", "Payment amount must be greater than zero")
        if payment_date is None:
            raise ValidationError("payment_date", "Payment date is required")

        payment = await self._append(
            library_id, student_id, PaymentEntryType.PAYMENT, amount, payment_date, notes,
            touch_last_payment=True,
        )
        logger.info(
            "Payment %s of %s applied to student %s in library %s",
            payment.id, amount, student_id, library_id
        )
        return payment

    async def add_adjustment(
        self,
        library_id: int,
        student_id: int,
        amount,
        adjustment_date: date,
        notes: Optional[str] = None,
    ) -> Payment:
        """
        Record a signed correction.

        A positive amount lowers the balance like a payment; a negative
        amount raises it, e.g. to reverse a bounced payment. Adjustments never
        count as income and do not move last_payment_date.
        """
        amount = parse_amount(amount)
        if amount == 0:
            raise ValidationError("amount", "Adjustment amount must be non-zero")
        if adjustment_date is None:
            raise ValidationError("adjustment_date", "Adjustment date is required")

        entry = await self._append(
            library_id, student_id, PaymentEntryType.ADJUSTMENT, amount, adjustment_date, notes,
            touch_last_payment=False,
        )
        logger.info(
            "Adjustment %s of %s applied to student %s in library %s",
            entry.id, amount, student_id, library_id
        )
        return entry

    async def clear_dues(self, library_id: int, student_id: int, today: Optional[date] = None) -> Student:
        """
        Force the balance to zero without writing a journal row.

        This is a manual override: afterwards the balance no longer
        reconciles with the journal.
        """
        today = today or date.today()
        await self._get_owned(Student, library_id, student_id, "Student")

        async with engine_locks.hold(student_key(library_id, student_id)):
            await self._get_owned(Student, library_id, student_id, "Student")
            async with atomic(self.db):
                student = await self._lock_row(Student, student_id, "Student")
                previous = student.fees_due
                student.fees_due = Decimal("0.00")
                student.last_payment_date = today
                await self.db.flush()

        logger.warning(
            "Dues cleared manually for student %s in library %s (was %s)",
            student_id, library_id, previous
        )
        return await self._annotate(student)

    async def _append(
        self,
        library_id: int,
        student_id: int,
        entry_type: PaymentEntryType,
        amount: Decimal,
        entry_date: date,
        notes: Optional[str],
        touch_last_payment: bool,
    ) -> Payment:
        # Fail fast on a missing student before queueing on its key
        await self._get_owned(Student, library_id, student_id, "Student")

        async with engine_locks.hold(student_key(library_id, student_id)):
            await self._get_owned(Student, library_id, student_id, "Student")
            payment = Payment(
                library_id=library_id,
                student_id=student_id,
                entry_type=entry_type,
                amount=amount,
                payment_date=entry_date,
                notes=notes,
            )
            try:
                async with atomic(self.db):
                    # Row lock: the balance read below is the one the write is based on
                    student = await self._lock_row(Student, student_id, "Student")
                    self.db.add(payment)
                    await self.db.flush()
                    student.fees_due = quantize_money(Decimal(student.fees_due) - amount)
                    if touch_last_payment:
                        student.last_payment_date = entry_date
                    await self.db.flush()
            except IntegrityError:
                # The library or student was deleted under this write
                logger.warning("Journal entry for student %s rejected: row removed concurrently", student_id)
                raise NotFoundError("Student", student_id)

        payment.student_name = student.full_name
        return await self._annotate(payment)
