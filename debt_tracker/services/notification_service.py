"""
NotificationService - best-effort emails about ledger events.

Nothing here may fail a ledger operation: every send goes through `_send`,
which logs and swallows transport errors. The periodic jobs
(`send_weekly_reminders`, `send_daily_revenue`, `send_overdue_alerts`,
`send_monthly_summary`) only read the ledger.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from loguru import logger

from debt_tracker.core.config import settings
from debt_tracker.models.base import utcnow
from debt_tracker.models.client import Client
from debt_tracker.models.debt import Debt
from debt_tracker.models.payment import Payment
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.services.email import EmailSender
from debt_tracker.utils.money import from_cents
from debt_tracker.utils.periods import day_window, month_window_of, start_of_day

SIGNATURE = "\n\nDebt Tracker"


def _average(total_cents: int, count: int) -> Decimal:
    return from_cents(total_cents // count) if count else from_cents(0)


class NotificationService:
    def __init__(
        self,
        email_sender: EmailSender,
        client_repo: ClientRepository,
        debt_repo: DebtRepository,
        payment_repo: PaymentRepository,
        admin_email: Optional[str] = None
    ):
        self.email_sender = email_sender
        self.client_repo = client_repo
        self.debt_repo = debt_repo
        self.payment_repo = payment_repo
        self.admin_email = admin_email or settings.ADMIN_EMAIL

    async def _send(self, to: Optional[str], subject: str, body: str) -> bool:
        """Send one email. Returns False (and logs) instead of raising."""
        if not to:
            logger.debug(f"Skipping email {subject!r}: no recipient")
            return False
        try:
            await self.email_sender.send(to, subject, body + SIGNATURE)
            return True
        except Exception as e:
            logger.error(f"Failed to send email {subject!r} to {to}: {e}")
            return False

    # Event notifications

    async def payment_received(self, client: Client, payment: Payment) -> bool:
        body = (
            f"Dear {client.name},\n\n"
            f"We received your payment of ${payment.amount} "
            f"({payment.payment_method}) on {payment.payment_date:%Y-%m-%d}."
        )
        if payment.notes:
            body += f"\nNotes: {payment.notes}"
        return await self._send(client.email, "Payment received", body)

    async def high_payment(self, client: Client, payment: Payment) -> bool:
        """Admin alert for payments above HIGH_PAYMENT_THRESHOLD."""
        if payment.amount <= settings.HIGH_PAYMENT_THRESHOLD:
            return False
        body = (
            f"A large payment was recorded.\n\n"
            f"Client: {client.name} ({client.phone})\n"
            f"Amount: ${payment.amount}\n"
            f"Method: {payment.payment_method}"
        )
        return await self._send(self.admin_email, "High payment recorded", body)

    async def debt_settled(self, client: Client, debt: Debt) -> bool:
        body = (
            f"Dear {client.name},\n\n"
            f"Your debt \"{debt.description}\" of ${debt.total_amount} is now fully paid. "
            f"Thank you!"
        )
        return await self._send(client.email, "Debt settled", body)

    async def new_client(self, client: Client) -> bool:
        body = (
            f"A new client was registered.\n\n"
            f"Name: {client.name}\n"
            f"Phone: {client.phone}\n"
            f"Email: {client.email or '-'}\n"
            f"Address: {client.address or '-'}"
        )
        return await self._send(self.admin_email, "New client registered", body)

    async def debt_overdue(self, client: Client, debt: Debt) -> bool:
        due = f"{debt.due_date:%Y-%m-%d}" if debt.due_date else "-"
        body = (
            f"Dear {client.name},\n\n"
            f"Your debt \"{debt.description}\" was due on {due}. "
            f"Remaining amount: ${debt.remaining_amount}."
        )
        return await self._send(client.email, "Debt overdue", body)

    # Periodic jobs

    async def send_weekly_reminders(self, now: Optional[datetime] = None) -> int:
        """Remind clients with active debts who paid nothing in the last 7 days."""
        now = now or utcnow()
        week_ago = now - timedelta(days=7)
        sent = 0

        for client in await self.client_repo.list_clients(archived=False):
            debts = await self.debt_repo.list_outstanding(client_id=client.id)
            if not debts:
                continue
            recent = await self.payment_repo.totals(client_id=client.id, start=week_ago, end=now)
            if recent["count"]:
                continue

            lines = [f"- {debt.description}: ${debt.remaining_amount} remaining" for debt in debts]
            total = from_cents(sum(debt.remaining_amount_cents for debt in debts))
            body = (
                f"Dear {client.name},\n\n"
                "This is a reminder of your outstanding debts:\n\n"
                + "\n".join(lines)
                + f"\n\nTotal outstanding: ${total}"
            )
            if await self._send(client.email, "Weekly payment reminder", body):
                sent += 1

        logger.info(f"Weekly reminders sent: {sent}")
        return sent

    async def send_daily_revenue(self, now: Optional[datetime] = None) -> bool:
        """Yesterday's revenue to the admin."""
        yesterday, today = day_window((now or utcnow()) - timedelta(days=1))
        totals = await self.payment_repo.totals(start=yesterday, end=today)
        body = (
            f"Date: {yesterday:%Y-%m-%d}\n"
            f"Payments: {totals['count']}\n"
            f"Revenue: ${from_cents(totals['total'])}\n"
            f"Average payment: ${_average(totals['total'], totals['count'])}"
        )
        return await self._send(self.admin_email, f"Revenue for {yesterday:%Y-%m-%d}", body)

    async def send_overdue_alerts(self, now: Optional[datetime] = None) -> int:
        today = start_of_day(now or utcnow())
        debts = await self.debt_repo.list_overdue(today)
        clients = await self.client_repo.get_clients_by_ids([debt.client_id for debt in debts])

        sent = 0
        for debt in debts:
            client = clients.get(debt.client_id)
            if client is None:
                logger.warning(f"Overdue debt {debt.id} has no client {debt.client_id}")
                continue
            if await self.debt_overdue(client, debt):
                sent += 1

        if sent:
            logger.info(f"Overdue notifications sent: {sent}")
        return sent

    async def send_monthly_summary(self, now: Optional[datetime] = None) -> bool:
        """Previous calendar month's payments, broken down by method."""
        last_month, this_month = month_window_of(now or utcnow(), -1)

        payments = await self.payment_repo.list_between(last_month, this_month)
        total = sum(payment.amount_cents for payment in payments)

        by_method: Dict[str, List[int]] = {}
        for payment in payments:
            by_method.setdefault(payment.payment_method, []).append(payment.amount_cents)

        lines = [
            f"Period: {last_month:%Y-%m-%d} - {(this_month - timedelta(days=1)):%Y-%m-%d}",
            f"Payments: {len(payments)}",
            f"Revenue: ${from_cents(total)}",
            f"Average payment: ${_average(total, len(payments))}",
            "",
            "By method:"
        ]
        for method, amounts in sorted(by_method.items()):
            lines.append(f"- {method}: {len(amounts)} payments, ${from_cents(sum(amounts))}")

        return await self._send(self.admin_email, f"Monthly summary {last_month:%B %Y}", "\n".join(lines))
