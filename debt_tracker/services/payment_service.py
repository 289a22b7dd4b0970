"""
PaymentService - applies, reverses and edits payments.

Every mutation here moves a debt balance and a payment record together:
1. Validate against the balance read from the debt
2. Compare-and-set the new balance on the debt (fails if it moved meanwhile)
3. Write the payment change in the same unit of work

With MONGODB_TRANSACTIONS enabled both writes share one transaction. Without
it, a failed payment write puts the previous balance back before the error
propagates.
"""

from datetime import datetime
from typing import Awaitable, Callable, List, Optional, TypeVar

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo.errors import PyMongoError

from debt_tracker.core.exceptions import ConflictError, LedgerError, NotFoundError, ValidationError
from debt_tracker.db.session import transaction
from debt_tracker.models.base import utcnow
from debt_tracker.models.debt import Debt, DebtStatus
from debt_tracker.models.payment import Payment, PaymentMethod
from debt_tracker.models.user import Caller
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.schemas.bulk import BulkOperationResult
from debt_tracker.schemas.payment import PaymentStatistics
from debt_tracker.services.access import LedgerAccess
from debt_tracker.services.notification_service import NotificationService
from debt_tracker.utils import debt_balance
from debt_tracker.utils.money import Amount, from_cents, to_cents

T = TypeVar("T")


def _method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError("Invalid payment method", details={"payment_method": value})


def _notes(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class PaymentService:
    def __init__(
        self,
        payment_repo: PaymentRepository,
        debt_repo: DebtRepository,
        client_repo: ClientRepository,
        notifications: Optional[NotificationService] = None
    ):
        self.payment_repo = payment_repo
        self.debt_repo = debt_repo
        self.client_repo = client_repo
        self.notifications = notifications
        self.access = LedgerAccess(client_repo)

    async def _commit(
        self,
        debt: Debt,
        remaining_cents: int,
        status: DebtStatus,
        write: Callable[[Optional[AsyncIOMotorClientSession]], Awaitable[T]]
    ) -> T:
        """Move the debt to (remaining, status) and run `write` as one unit."""
        async with transaction(self.debt_repo.db) as session:
            moved = await self.debt_repo.set_balance(
                debt.id,
                remaining_cents,
                status,
                expected_remaining_cents=debt.remaining_amount_cents,
                session=session
            )
            if not moved:
                raise ConflictError(
                    "Debt balance changed while processing, please retry",
                    details={"debt_id": debt.id}
                )
            try:
                return await write(session)
            except Exception:
                if session is None:
                    await self.debt_repo.set_balance(
                        debt.id,
                        debt.remaining_amount_cents,
                        DebtStatus(debt.status),
                        expected_remaining_cents=remaining_cents
                    )
                raise

    async def add_payment(
        self,
        caller: Caller,
        debt_id: str,
        amount: Amount,
        payment_method: PaymentMethod,
        notes: Optional[str] = None,
        payment_date: Optional[datetime] = None
    ) -> Payment:
        """
        Apply a payment to a debt the caller can see.

        Raises ValidationError when the debt is missing or not visible, already
        settled, or when the amount is not positive or exceeds what remains.
        """
        amount_cents = to_cents(amount, "Payment amount")
        method = _method(payment_method)

        debt = await self.debt_repo.get_debt(debt_id) if debt_id else None
        if debt is None or not await self.access.can_access_client(caller, debt.client_id):
            raise ValidationError("Debt not found or access denied", details={"debt_id": debt_id})

        debt_balance.check_payment(debt.remaining_amount_cents, debt.status, amount_cents)
        remaining, status = debt_balance.apply_payment(
            debt.total_amount_cents, debt.remaining_amount_cents, amount_cents
        )

        payment = Payment(
            debt_id=debt.id,
            client_id=debt.client_id,
            amount_cents=amount_cents,
            payment_method=method,
            notes=_notes(notes),
            payment_date=payment_date or utcnow()
        )

        async def write(session):
            return await self.payment_repo.create_payment(payment, session=session)

        payment = await self._commit(debt, remaining, status, write)
        logger.info(
            f"Payment {payment.id} applied to debt {debt.id}: "
            f"amount_cents={amount_cents} remaining_cents={remaining} status={status.value}"
        )

        debt.remaining_amount_cents = remaining
        debt.status = status
        await self._notify_payment(debt, payment)
        return payment

    async def _notify_payment(self, debt: Debt, payment: Payment) -> None:
        if self.notifications is None:
            return
        client = await self.client_repo.get_client(debt.client_id)
        if client is None:
            logger.warning(f"No client {debt.client_id} to notify about payment {payment.id}")
            return
        await self.notifications.payment_received(client, payment)
        await self.notifications.high_payment(client, payment)
        if debt.is_settled():
            await self.notifications.debt_settled(client, debt)

    async def _remove(self, payment: Payment) -> None:
        """Give the payment's amount back to its debt, then drop the record."""
        debt = await self.debt_repo.get_debt(payment.debt_id)
        if debt is None:
            logger.warning(f"Payment {payment.id} references missing debt {payment.debt_id}")
            await self.payment_repo.delete_payment(payment.id)
            return

        remaining, status = debt_balance.reverse_payment(
            debt.total_amount_cents, debt.remaining_amount_cents, payment.amount_cents
        )

        async def write(session):
            if not await self.payment_repo.delete_payment(payment.id, session=session):
                raise NotFoundError(f"Payment not found: {payment.id}", details={"payment_id": payment.id})

        await self._commit(debt, remaining, status, write)
        logger.info(
            f"Payment {payment.id} reversed on debt {debt.id}: "
            f"remaining_cents={remaining} status={status.value}"
        )

    async def _get_for_admin(self, caller: Caller, payment_id: str) -> Payment:
        self.access.require_admin(caller)
        return await self._reload(payment_id)

    async def _reload(self, payment_id: str) -> Payment:
        payment = await self.payment_repo.get_payment(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment not found: {payment_id}", details={"payment_id": payment_id})
        return payment

    async def delete_payment(self, caller: Caller, payment_id: str) -> None:
        payment = await self._get_for_admin(caller, payment_id)
        await self._remove(payment)

    async def reverse_payment(self, caller: Caller, payment_id: str, reason: str) -> Payment:
        """
        Undo a payment for a correction.

        Returns the removed payment with the reversal recorded in its notes.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reverse a payment")
        payment = await self._get_for_admin(caller, payment_id)
        await self._remove(payment)

        stamp = f"REVERSED: {reason} - {utcnow().isoformat(timespec='seconds')}"
        payment.notes = f"{payment.notes} | {stamp}" if payment.notes else stamp
        return payment

    async def update_payment(
        self,
        caller: Caller,
        payment_id: str,
        amount: Optional[Amount] = None,
        payment_method: Optional[PaymentMethod] = None,
        notes: Optional[str] = None
    ) -> Payment:
        """
        Edit a payment.

        A new amount is swapped in on the debt (old amount reversed, new one
        applied) together with the payment change. Method and notes alone leave
        the debt untouched.
        """
        payment = await self._get_for_admin(caller, payment_id)

        update_data = {}
        if payment_method is not None:
            update_data["payment_method"] = _method(payment_method).value
        if notes is not None:
            update_data["notes"] = _notes(notes)

        new_cents = to_cents(amount, "Payment amount") if amount is not None else payment.amount_cents
        if new_cents == payment.amount_cents:
            if update_data and not await self.payment_repo.update_payment(payment.id, update_data):
                raise NotFoundError(f"Payment not found: {payment.id}", details={"payment_id": payment.id})
            return await self._reload(payment.id)

        debt = await self.debt_repo.get_debt(payment.debt_id)
        if debt is None:
            raise NotFoundError("Debt not found for payment", details={"payment_id": payment.id})

        remaining, status = debt_balance.replace_payment(
            debt.total_amount_cents, debt.remaining_amount_cents, payment.amount_cents, new_cents
        )
        update_data["amount_cents"] = new_cents

        async def write(session):
            if not await self.payment_repo.update_payment(payment.id, update_data, session=session):
                raise NotFoundError(f"Payment not found: {payment.id}", details={"payment_id": payment.id})

        await self._commit(debt, remaining, status, write)
        logger.info(
            f"Payment {payment.id} amount {payment.amount_cents} -> {new_cents} cents, "
            f"debt {debt.id} remaining_cents={remaining} status={status.value}"
        )
        return await self._reload(payment.id)

    async def bulk_delete_payments(self, caller: Caller, payment_ids: List[str]) -> BulkOperationResult:
        """Reverse and delete each payment on its own; failures are collected in order."""
        self.access.require_admin(caller)
        result = BulkOperationResult()
        for payment_id in payment_ids:
            try:
                payment = await self.payment_repo.get_payment(payment_id)
                if payment is None:
                    raise NotFoundError(f"Payment not found: {payment_id}")
                await self._remove(payment)
                result.record_success()
            except (LedgerError, PyMongoError) as e:
                result.record_failure(payment_id, getattr(e, "message", str(e)))

        logger.info(f"Bulk delete payments: {result.success_count} ok, {result.failure_count} failed")
        return result

    # Queries

    async def get_payment(self, caller: Caller, payment_id: str) -> Payment:
        payment = await self.payment_repo.get_payment(payment_id)
        if payment is None or not await self.access.can_access_client(caller, payment.client_id):
            raise NotFoundError("Payment not found", details={"payment_id": payment_id})
        return payment

    async def list_payments(self, caller: Caller) -> List[Payment]:
        scope = await self.access.client_scope(caller)
        return await self.payment_repo.list_payments(client_id=scope)

    async def payments_by_debt(self, caller: Caller, debt_id: str) -> List[Payment]:
        debt = await self.debt_repo.get_debt(debt_id)
        if debt is None or not await self.access.can_access_client(caller, debt.client_id):
            raise NotFoundError("Debt not found", details={"debt_id": debt_id})
        return await self.payment_repo.list_by_debt(debt.id)

    async def search_payments(self, caller: Caller, term: str) -> List[Payment]:
        scope = await self.access.client_scope(caller)
        return await self.payment_repo.search_notes(term or "", client_id=scope)

    async def payments_by_method(self, caller: Caller, method: PaymentMethod) -> List[Payment]:
        method = _method(method)
        scope = await self.access.client_scope(caller)
        return await self.payment_repo.list_by_method(method, client_id=scope)

    async def payments_by_amount_range(self, caller: Caller, min_amount: Amount, max_amount: Amount) -> List[Payment]:
        low = to_cents(min_amount, "min_amount")
        high = to_cents(max_amount, "max_amount")
        if low > high:
            raise ValidationError("min_amount cannot be greater than max_amount")
        scope = await self.access.client_scope(caller)
        return await self.payment_repo.list_by_amount_range(low, high, client_id=scope)

    async def payment_statistics(self, caller: Caller) -> PaymentStatistics:
        scope = await self.access.client_scope(caller)
        totals = await self.payment_repo.totals(client_id=scope)
        count = totals["count"]
        return PaymentStatistics(
            total_amount=from_cents(totals["total"]),
            payment_count=count,
            average_amount=from_cents(totals["total"] // count) if count else from_cents(0)
        )

    async def recent_payments(self, caller: Caller, limit: int = 10) -> List[Payment]:
        if limit <= 0:
            raise ValidationError("limit must be greater than 0")
        scope = await self.access.client_scope(caller)
        return await self.payment_repo.recent(limit=limit, client_id=scope)
