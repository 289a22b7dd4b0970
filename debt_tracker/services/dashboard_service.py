"""
DashboardService - read-only summaries of the ledger.

Money is aggregated in cents and converted to Decimal at the edge.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from debt_tracker.core.exceptions import PermissionDeniedError
from debt_tracker.models.base import utcnow
from debt_tracker.models.debt import DebtStatus
from debt_tracker.models.payment import Payment
from debt_tracker.models.user import Caller
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.schemas.client import ClientResponse
from debt_tracker.schemas.report import (
    ClientDashboard,
    ClientDashboardSummary,
    ClientDebtSummary,
    DashboardData,
    DashboardKPIs,
    DashboardSummary,
    MonthlyData,
    RecentPayment,
)
from debt_tracker.services.access import LedgerAccess
from debt_tracker.utils.money import from_cents
from debt_tracker.utils.periods import day_window, month_key, month_window_of


def percentage(part: int, whole: int) -> float:
    """part / whole * 100 rounded to two places; 0 when whole is 0."""
    return round(part * 100 / whole, 2) if whole else 0.0


class DashboardService:
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

    async def _recent(self, payments: List[Payment]) -> List[RecentPayment]:
        """Recent payments with the client name and debt description filled in."""
        debts = await self.debt_repo.get_debts_by_ids([p.debt_id for p in payments])
        clients = await self.client_repo.get_clients_by_ids([p.client_id for p in payments])
        rows = []
        for payment in payments:
            debt = debts.get(payment.debt_id)
            client = clients.get(payment.client_id)
            rows.append(RecentPayment(
                id=payment.id,
                amount=payment.amount,
                payment_method=payment.payment_method,
                payment_date=payment.payment_date,
                client_name=client.name if client else None,
                debt_description=debt.description if debt else None
            ))
        return rows

    async def _trend(self, now: datetime, months: int, client_id: Optional[str] = None) -> List[MonthlyData]:
        """Oldest first, ending with the current month."""
        trend = []
        for delta in range(-(months - 1), 1):
            start, end = month_window_of(now, delta)
            totals = await self.payment_repo.totals(client_id=client_id, start=start, end=end)
            trend.append(MonthlyData(
                month=month_key(start),
                revenue=from_cents(totals["total"]),
                payment_count=totals["count"]
            ))
        return trend

    async def _method_distribution(self, start: datetime, end: datetime, client_id: Optional[str] = None) -> Dict[str, int]:
        payments = await self.payment_repo.list_between(start, end, client_id=client_id)
        return dict(Counter(payment.payment_method for payment in payments))

    async def dashboard(self, caller: Caller, now: Optional[datetime] = None) -> DashboardData:
        self.access.require_admin(caller)
        now = now or utcnow()
        day_start, day_end = day_window(now)
        month_start, month_end = month_window_of(now)

        today = await self.payment_repo.totals(start=day_start, end=day_end)
        month = await self.payment_repo.totals(start=month_start, end=month_end)

        remaining = await self.debt_repo.remaining_by_client()
        owing = {client_id: cents for client_id, cents in remaining.items() if cents > 0}
        top_ids = sorted(owing, key=owing.get, reverse=True)[:5]
        names = await self.client_repo.get_clients_by_ids(top_ids)
        top_debtors = [
            ClientDebtSummary(
                client_id=client_id,
                client_name=names[client_id].name if client_id in names else "",
                outstanding_debt=from_cents(owing[client_id])
            )
            for client_id in top_ids
        ]

        return DashboardData(
            summary=DashboardSummary(
                today_revenue=from_cents(today["total"]),
                month_revenue=from_cents(month["total"]),
                total_outstanding_debt=from_cents(sum(owing.values())),
                active_clients=len(owing),
                total_clients=await self.client_repo.count_clients(archived=None)
            ),
            recent_payments=await self._recent(await self.payment_repo.recent(limit=10)),
            top_debtors=top_debtors,
            payment_method_distribution=await self._method_distribution(month_start, month_end),
            monthly_trend=await self._trend(now, 6)
        )

    async def kpis(self, caller: Caller, now: Optional[datetime] = None) -> DashboardKPIs:
        """Month-over-month revenue, collection and client figures."""
        self.access.require_admin(caller)
        now = now or utcnow()
        month_start, month_end = month_window_of(now)
        last_start, last_end = month_window_of(now, -1)

        current = await self.payment_repo.totals(start=month_start, end=month_end)
        previous = await self.payment_repo.totals(start=last_start, end=last_end)

        remaining = await self.debt_repo.remaining_by_client()
        outstanding = sum(cents for cents in remaining.values() if cents > 0)
        active_clients = sum(1 for cents in remaining.values() if cents > 0)
        total_clients = await self.client_repo.count_clients(archived=None)

        all_clients = await self.client_repo.list_clients(archived=None)
        new_clients = sum(1 for client in all_clients if month_start <= client.created_at < month_end)

        debts = await self.debt_repo.list_debts(archived=None)
        billed = sum(debt.total_amount_cents for debt in debts)
        collected = sum(debt.paid_amount_cents for debt in debts)

        revenue_growth = (
            percentage(current["total"] - previous["total"], previous["total"])
            if previous["total"] else 0.0
        )

        return DashboardKPIs(
            current_month_revenue=from_cents(current["total"]),
            last_month_revenue=from_cents(previous["total"]),
            revenue_growth=revenue_growth,
            total_outstanding_debt=from_cents(outstanding),
            average_payment_per_client=from_cents(current["total"] // active_clients) if active_clients else from_cents(0),
            debt_to_revenue_ratio=percentage(outstanding, current["total"]),
            collection_rate=percentage(collected, billed),
            payments_this_month=current["count"],
            total_clients=total_clients,
            active_clients=active_clients,
            new_clients_this_month=new_clients,
            client_retention_rate=percentage(active_clients, total_clients)
        )

    async def client_dashboard(self, caller: Caller, now: Optional[datetime] = None) -> ClientDashboard:
        """The calling client's own figures. CLIENT callers only."""
        if caller.is_admin:
            raise PermissionDeniedError("This dashboard is only available to clients")
        client = await self.access.caller_client(caller)
        now = now or utcnow()

        debts = await self.debt_repo.list_debts(client_id=client.id, archived=None)
        active = [debt for debt in debts if debt.status == DebtStatus.ACTIVE]
        paid = await self.payment_repo.totals(client_id=client.id)
        month_start, month_end = month_window_of(now)

        return ClientDashboard(
            client=ClientResponse.model_validate(client),
            summary=ClientDashboardSummary(
                total_debt_ever=from_cents(sum(debt.total_amount_cents for debt in debts)),
                total_paid=from_cents(paid["total"]),
                current_outstanding=from_cents(sum(debt.remaining_amount_cents for debt in active)),
                active_debts_count=len(active),
                settled_debts_count=len(debts) - len(active),
                total_payments_count=paid["count"]
            ),
            recent_payments=await self._recent(await self.payment_repo.recent(limit=5, client_id=client.id)),
            payment_method_distribution=await self._method_distribution(month_start, month_end, client.id),
            monthly_trend=await self._trend(now, 6, client.id)
        )
