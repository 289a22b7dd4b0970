"""
ReportService - admin reports over the ledger.

Reports are read-only. Collection and growth figures are computed on cents;
rates are plain floats (0.25 == 25%).
"""

from collections import defaultdict
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from debt_tracker.core.exceptions import NotFoundError, ValidationError
from debt_tracker.models.base import utcnow
from debt_tracker.models.debt import DebtStatus
from debt_tracker.models.payment import Payment
from debt_tracker.models.user import Caller
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.schemas.client import ClientResponse
from debt_tracker.schemas.debt import DebtResponse
from debt_tracker.schemas.payment import PaymentResponse
from debt_tracker.schemas.report import (
    BusinessProjection,
    ClientOverdueSummary,
    ClientRanking,
    ClientReport,
    CollectionPerformanceReport,
    DateRangeReport,
    MonthlyCollection,
    MonthlyReport,
    OverdueDebtsReport,
    PaymentMethodAnalysis,
)
from debt_tracker.services.access import LedgerAccess
from debt_tracker.utils.money import CENT, from_cents
from debt_tracker.utils.periods import month_key, month_window, month_window_of, start_of_day


def _cents_by_method(payments: Iterable[Payment]) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for payment in payments:
        totals[payment.payment_method] += payment.amount_cents
    return dict(totals)


def _as_amounts(cents: Dict[str, int]) -> Dict[str, Decimal]:
    return {key: from_cents(value) for key, value in cents.items()}


def average_growth(amounts: List[int]) -> float:
    """Mean period-over-period growth, skipping periods that follow a zero."""
    rates = [
        (current - previous) / previous
        for previous, current in zip(amounts, amounts[1:])
        if previous > 0
    ]
    return sum(rates) / len(rates) if rates else 0.0


class ReportService:
    def __init__(
        self,
        client_repo: ClientRepository,
        debt_repo: DebtRepository,
        payment_repo: PaymentRepository
    ):
        self.client_repo = client_repo
        self.debt_repo = debt_repo
        self.payment_repo = payment_repo
        self.access = LedgerAccess(client_repo)

    async def monthly_report(self, caller: Caller, year: int, month: int) -> MonthlyReport:
        self.access.require_admin(caller)
        start, end = month_window(year, month)

        payments = await self.payment_repo.list_between(start, end)
        new_debts = await self.debt_repo.list_created_between(start, end)
        remaining = await self.debt_repo.remaining_by_client()
        owing = [cents for cents in remaining.values() if cents > 0]

        # debts that received a payment this month and are now settled
        paid_debts = await self.debt_repo.get_debts_by_ids(list({p.debt_id for p in payments}))
        settled_count = sum(1 for debt in paid_debts.values() if debt.status == DebtStatus.SETTLED)

        return MonthlyReport(
            month=month_key(start),
            total_payments=from_cents(sum(p.amount_cents for p in payments)),
            payments_by_method=_as_amounts(_cents_by_method(payments)),
            total_outstanding_debt=from_cents(sum(owing)),
            clients_with_active_debts=len(owing),
            total_new_debt=from_cents(sum(debt.total_amount_cents for debt in new_debts)),
            new_debts_count=len(new_debts),
            settled_debts_count=settled_count,
            total_payments_count=len(payments)
        )

    async def client_report(self, caller: Caller, client_id: str) -> ClientReport:
        """Full history of one client. A CLIENT caller may only ask for their own."""
        client = await self.client_repo.get_client(client_id)
        if client is None or not await self.access.can_access_client(caller, client.id):
            raise NotFoundError("Client not found", details={"client_id": client_id})

        debts = await self.debt_repo.list_debts(client_id=client.id, archived=None)
        payments = await self.payment_repo.list_payments(client_id=client.id)
        active = [debt for debt in debts if debt.status == DebtStatus.ACTIVE]
        settled = [debt for debt in debts if debt.status != DebtStatus.ACTIVE]

        return ClientReport(
            client=ClientResponse.model_validate(client),
            total_debt_ever=from_cents(sum(debt.total_amount_cents for debt in debts)),
            total_paid=from_cents(sum(p.amount_cents for p in payments)),
            current_outstanding=from_cents(sum(debt.remaining_amount_cents for debt in active)),
            active_debts=[DebtResponse.model_validate(debt) for debt in active],
            settled_debts=[DebtResponse.model_validate(debt) for debt in settled],
            payment_history=[PaymentResponse.model_validate(p) for p in payments]
        )

    async def date_range_report(self, caller: Caller, start: datetime, end: datetime) -> DateRangeReport:
        """
        Payments and new debts within [start, end).

        collection_rate = collected / total of debts created in the range.
        """
        self.access.require_admin(caller)
        if start >= end:
            raise ValidationError("start_date must be before end_date")

        payments = await self.payment_repo.list_between(start, end)
        debts = await self.debt_repo.list_created_between(start, end)
        collected = sum(p.amount_cents for p in payments)
        billed = sum(debt.total_amount_cents for debt in debts)

        return DateRangeReport(
            start_date=start,
            end_date=end,
            total_payments=from_cents(collected),
            total_new_debt=from_cents(billed),
            payments_by_method=_as_amounts(_cents_by_method(payments)),
            payments_count=len(payments),
            new_debts_count=len(debts),
            collection_rate=collected / billed if billed else 0.0
        )

    async def top_clients(self, caller: Caller, limit: int = 10) -> List[ClientRanking]:
        """Clients ranked by outstanding debt, largest first."""
        self.access.require_admin(caller)
        if limit <= 0:
            raise ValidationError("limit must be greater than 0")

        remaining = await self.debt_repo.remaining_by_client()
        owing = {client_id: cents for client_id, cents in remaining.items() if cents > 0}
        top_ids = sorted(owing, key=owing.get, reverse=True)[:limit]
        clients = await self.client_repo.get_clients_by_ids(top_ids)

        rankings = []
        for client_id in top_ids:
            paid = await self.payment_repo.totals(client_id=client_id)
            client = clients.get(client_id)
            rankings.append(ClientRanking(
                client_id=client_id,
                client_name=client.name if client else "",
                outstanding_debt=from_cents(owing[client_id]),
                total_paid=from_cents(paid["total"]),
                payments_count=paid["count"]
            ))
        return rankings

    async def collection_performance(
        self,
        caller: Caller,
        months: int = 6,
        now: Optional[datetime] = None
    ) -> CollectionPerformanceReport:
        """Collections per calendar month over the last `months` months, oldest first."""
        self.access.require_admin(caller)
        if months <= 0:
            raise ValidationError("months must be greater than 0")
        now = now or utcnow()

        start, _ = month_window_of(now, -(months - 1))
        _, end = month_window_of(now)
        payments = await self.payment_repo.list_between(start, end)

        by_month: Dict[str, int] = defaultdict(int)
        for payment in payments:
            by_month[month_key(payment.payment_date)] += payment.amount_cents
        ordered = sorted(by_month.items())

        return CollectionPerformanceReport(
            total_collections=from_cents(sum(p.amount_cents for p in payments)),
            monthly_collections=[
                MonthlyCollection(month=month, amount=from_cents(cents)) for month, cents in ordered
            ],
            average_growth_rate=average_growth([cents for _, cents in ordered]),
            total_payments=len(payments)
        )

    async def payment_method_analysis(self, caller: Caller, start: datetime, end: datetime) -> PaymentMethodAnalysis:
        self.access.require_admin(caller)
        if start >= end:
            raise ValidationError("start_date must be before end_date")

        payments = await self.payment_repo.list_between(start, end)
        counts: Dict[str, int] = defaultdict(int)
        for payment in payments:
            counts[payment.payment_method] += 1
        amounts = _cents_by_method(payments)

        return PaymentMethodAnalysis(
            method_usage_count=dict(counts),
            method_usage_amount=_as_amounts(amounts),
            most_popular_method=max(counts, key=counts.get) if counts else None,
            highest_volume_method=max(amounts, key=amounts.get) if amounts else None,
            total_amount=from_cents(sum(amounts.values())),
            total_payments=len(payments)
        )

    async def overdue_debts_report(self, caller: Caller, today: Optional[datetime] = None) -> OverdueDebtsReport:
        """ACTIVE debts with money left whose due date is before today, grouped by client."""
        self.access.require_admin(caller)
        debts = await self.debt_repo.list_overdue(start_of_day(today or utcnow()))

        per_client: Dict[str, List[int]] = defaultdict(list)
        for debt in debts:
            per_client[debt.client_id].append(debt.remaining_amount_cents)
        clients = await self.client_repo.get_clients_by_ids(list(per_client))

        summaries = sorted(
            (
                ClientOverdueSummary(
                    client_id=client_id,
                    client_name=clients[client_id].name if client_id in clients else "",
                    total_overdue=from_cents(sum(amounts)),
                    debts_count=len(amounts)
                )
                for client_id, amounts in per_client.items()
            ),
            key=lambda summary: summary.total_overdue,
            reverse=True
        )

        return OverdueDebtsReport(
            total_overdue_amount=from_cents(sum(debt.remaining_amount_cents for debt in debts)),
            total_overdue_debts=len(debts),
            clients_with_overdue=len(summaries),
            client_summaries=summaries
        )

    async def business_projection(
        self,
        caller: Caller,
        months: int = 3,
        now: Optional[datetime] = None
    ) -> BusinessProjection:
        """
        Linear projection of collections.

        Average monthly collection over the last six months, grown once by
        the average growth rate, times `months`. Projected outstanding never
        drops below zero.
        """
        self.access.require_admin(caller)
        if months <= 0:
            raise ValidationError("months must be greater than 0")

        performance = await self.collection_performance(caller, months=6, now=now)
        collections = performance.monthly_collections
        average = (
            (sum(item.amount for item in collections) / len(collections)).quantize(CENT, rounding=ROUND_HALF_UP)
            if collections else from_cents(0)
        )
        growth = performance.average_growth_rate
        monthly = (average * Decimal(str(1 + growth))).quantize(CENT, rounding=ROUND_HALF_UP)
        projected = monthly * months

        outstanding = from_cents(await self.debt_repo.total_remaining())
        return BusinessProjection(
            projected_collections=projected,
            projected_outstanding=max(outstanding - projected, from_cents(0)),
            average_monthly_collection=monthly,
            expected_growth_rate=growth,
            projection_months=months
        )
