from datetime import datetime
from typing import List, Optional

from loguru import logger
from pymongo.errors import PyMongoError

from debt_tracker.core.config import settings
from debt_tracker.core.exceptions import ConflictError, LedgerError, NotFoundError, ValidationError
from debt_tracker.models.debt import Debt, DebtStatus
from debt_tracker.models.user import Caller
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.schemas.bulk import BulkOperationResult
from debt_tracker.schemas.debt import DebtStatistics
from debt_tracker.services.access import LedgerAccess
from debt_tracker.utils.debt_balance import status_for
from debt_tracker.utils.money import from_cents, positive_cents, to_cents, Amount


def _description(value: Optional[str]) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError("Description is required")
    return value


def _cents_range(min_amount: Amount, max_amount: Amount) -> tuple:
    low = to_cents(min_amount, "min_amount")
    high = to_cents(max_amount, "max_amount")
    if low > high:
        raise ValidationError("min_amount cannot be greater than max_amount")
    return low, high


class DebtService:
    """Debt lifecycle, queries and the bulk overrides."""

    def __init__(
        self,
        debt_repo: DebtRepository,
        payment_repo: PaymentRepository,
        client_repo: ClientRepository
    ):
        self.debt_repo = debt_repo
        self.payment_repo = payment_repo
        self.client_repo = client_repo
        self.access = LedgerAccess(client_repo)

    async def create_debt(
        self,
        caller: Caller,
        client_id: str,
        total_amount: Amount,
        description: str,
        due_date: Optional[datetime] = None
    ) -> Debt:
        """New ACTIVE debt with remaining == total."""
        self.access.require_admin(caller)
        total_cents = positive_cents(total_amount, "Amount")
        description = _description(description)

        client = await self.client_repo.get_client(client_id) if client_id else None
        if client is None:
            raise ValidationError("Client not found", details={"client_id": client_id})
        if client.archived:
            raise ValidationError("Cannot create a debt for an archived client", details={"client_id": client_id})

        debt = await self.debt_repo.create_debt(Debt(
            client_id=client.id,
            total_amount_cents=total_cents,
            remaining_amount_cents=total_cents,
            status=DebtStatus.ACTIVE,
            description=description,
            due_date=due_date
        ))
        logger.info(f"Debt created: {debt.id} client={client.id} total_cents={total_cents}")
        return debt

    async def get_debt(self, caller: Caller, debt_id: str) -> Debt:
        """A debt the caller can see, or NotFoundError."""
        debt = await self.debt_repo.get_debt(debt_id)
        if debt is None or not await self.access.can_access_client(caller, debt.client_id):
            raise NotFoundError("Debt not found", details={"debt_id": debt_id})
        return debt

    async def list_debts(self, caller: Caller) -> List[Debt]:
        scope = await self.access.client_scope(caller)
        return await self.debt_repo.list_debts(client_id=scope, archived=False)

    async def list_archived_debts(self, caller: Caller) -> List[Debt]:
        self.access.require_admin(caller)
        return await self.debt_repo.list_debts(archived=True)

    async def update_debt(
        self,
        caller: Caller,
        debt_id: str,
        client_id: Optional[str] = None,
        total_amount: Optional[Amount] = None,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None
    ) -> Debt:
        """
        Edit a debt.

        A new total keeps the amount already paid: remaining becomes
        new_total - paid, so a total below what was paid is rejected.
        """
        self.access.require_admin(caller)
        debt = await self.debt_repo.get_debt(debt_id)
        if debt is None:
            raise NotFoundError("Debt not found", details={"debt_id": debt_id})

        update_data = {}
        if client_id is not None and client_id != debt.client_id:
            client = await self.client_repo.get_client(client_id)
            if client is None:
                raise NotFoundError("Client not found", details={"client_id": client_id})
            if await self.payment_repo.count_by_debt(debt.id):
                raise ConflictError("Cannot move a debt with payments to another client")
            update_data["client_id"] = client.id
        if description is not None:
            update_data["description"] = _description(description)
        if due_date is not None:
            update_data["due_date"] = due_date
        if total_amount is not None:
            total_cents = positive_cents(total_amount, "Amount")
            paid_cents = debt.paid_amount_cents
            if total_cents < paid_cents:
                raise ValidationError(
                    "Total amount cannot be less than the amount already paid",
                    details={"paid_cents": paid_cents, "total_cents": total_cents}
                )
            remaining_cents = total_cents - paid_cents
            update_data["total_amount_cents"] = total_cents
            update_data["remaining_amount_cents"] = remaining_cents
            update_data["status"] = status_for(remaining_cents).value

        if not update_data:
            return debt

        expected = debt.remaining_amount_cents if total_amount is not None else None
        updated = await self.debt_repo.update_debt(debt.id, update_data, expected_remaining_cents=expected)
        if updated is None:
            if expected is None:
                raise NotFoundError("Debt not found", details={"debt_id": debt_id})
            raise ConflictError(
                "Debt balance changed while processing, please retry",
                details={"debt_id": debt.id}
            )
        logger.info(f"Debt updated: {debt.id} fields={sorted(update_data)}")
        return updated

    async def archive_debt(self, caller: Caller, debt_id: str) -> Debt:
        return await self._set_archived(caller, debt_id, True)

    async def unarchive_debt(self, caller: Caller, debt_id: str) -> Debt:
        return await self._set_archived(caller, debt_id, False)

    async def _set_archived(self, caller: Caller, debt_id: str, archived: bool) -> Debt:
        self.access.require_admin(caller)
        if not await self.debt_repo.set_archived(debt_id, archived):
            raise NotFoundError("Debt not found", details={"debt_id": debt_id})
        logger.info(f"Debt {debt_id} archived={archived}")
        return await self.debt_repo.get_debt(debt_id)

    async def delete_debt(self, caller: Caller, debt_id: str) -> None:
        self.access.require_admin(caller)
        await self._delete(debt_id)

    async def _delete(self, debt_id: str) -> None:
        if not await self.debt_repo.exists(debt_id):
            raise NotFoundError(f"Debt not found: {debt_id}", details={"debt_id": debt_id})
        if await self.payment_repo.count_by_debt(debt_id):
            raise ConflictError(
                "Cannot delete debt with existing payments. Delete all payments first.",
                details={"debt_id": debt_id}
            )
        await self.debt_repo.delete_debt(debt_id)
        logger.info(f"Debt deleted: {debt_id}")

    # Queries

    async def search_debts(self, caller: Caller, term: str) -> List[Debt]:
        scope = await self.access.client_scope(caller)
        return await self.debt_repo.search_debts(term or "", client_id=scope)

    async def debts_by_status(self, caller: Caller, status: DebtStatus) -> List[Debt]:
        scope = await self.access.client_scope(caller)
        return await self.debt_repo.list_debts(client_id=scope, archived=None, status=status)

    async def debts_by_amount_range(self, caller: Caller, min_amount: Amount, max_amount: Amount) -> List[Debt]:
        """Debts whose total lies within [min_amount, max_amount]."""
        low, high = _cents_range(min_amount, max_amount)
        scope = await self.access.client_scope(caller)
        return await self.debt_repo.list_by_total_range(low, high, client_id=scope)

    async def debt_statistics(self, caller: Caller) -> DebtStatistics:
        scope = await self.access.client_scope(caller)
        debts = await self.debt_repo.list_debts(client_id=scope, archived=None)

        active = [debt for debt in debts if debt.status == DebtStatus.ACTIVE]
        active_total = sum(debt.total_amount_cents for debt in active)
        return DebtStatistics(
            total_active_amount=from_cents(active_total),
            total_remaining_amount=from_cents(sum(debt.remaining_amount_cents for debt in active)),
            active_count=len(active),
            settled_count=len(debts) - len(active),
            average_amount=from_cents(active_total // len(active)) if active else from_cents(0)
        )

    async def high_priority_debts(self, caller: Caller) -> List[Debt]:
        """
        ADMIN: every ACTIVE debt with remaining >= ADMIN_HIGH_PRIORITY_THRESHOLD.
        CLIENT: own ACTIVE debts with total >= CLIENT_HIGH_PRIORITY_THRESHOLD.
        Largest first.
        """
        if caller.is_admin:
            threshold = to_cents(settings.ADMIN_HIGH_PRIORITY_THRESHOLD)
            return await self.debt_repo.list_outstanding(min_remaining_cents=threshold)

        client = await self.access.caller_client(caller)
        threshold = to_cents(settings.CLIENT_HIGH_PRIORITY_THRESHOLD)
        debts = await self.debt_repo.list_debts(client_id=client.id, archived=None, status=DebtStatus.ACTIVE)
        return sorted(
            (debt for debt in debts if debt.total_amount_cents >= threshold),
            key=lambda debt: debt.total_amount_cents,
            reverse=True
        )

    # Bulk overrides

    async def bulk_settle(self, caller: Caller, debt_ids: List[str]) -> BulkOperationResult:
        """
        Force each debt to remaining 0 / SETTLED.

        Administrative override: payment history is not reconciled.
        """
        self.access.require_admin(caller)
        result = BulkOperationResult()
        for debt_id in debt_ids:
            try:
                if not await self.debt_repo.set_balance(debt_id, 0, DebtStatus.SETTLED):
                    raise NotFoundError(f"Debt not found: {debt_id}")
                result.record_success()
            except (LedgerError, PyMongoError) as e:
                result.record_failure(debt_id, getattr(e, "message", str(e)))

        logger.info(f"Bulk settle: {result.success_count} ok, {result.failure_count} failed")
        return result

    async def bulk_delete_debts(self, caller: Caller, debt_ids: List[str]) -> BulkOperationResult:
        """Delete each debt independently. Debts with payments are refused."""
        self.access.require_admin(caller)
        result = BulkOperationResult()
        for debt_id in debt_ids:
            try:
                await self._delete(debt_id)
                result.record_success()
            except (LedgerError, PyMongoError) as e:
                result.record_failure(debt_id, getattr(e, "message", str(e)))

        logger.info(f"Bulk delete debts: {result.success_count} ok, {result.failure_count} failed")
        return result
