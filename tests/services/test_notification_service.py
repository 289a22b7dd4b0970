from datetime import datetime
from decimal import Decimal

import pytest

from debt_tracker.models.client import Client
from debt_tracker.models.payment import Payment, PaymentMethod


def _payment(amount_cents, **kwargs):
    return Payment(
        debt_id="d1",
        client_id="c1",
        amount_cents=amount_cents,
        payment_method=PaymentMethod.CASH,
        payment_date=datetime(2026, 3, 2, 15),
        **kwargs
    )


@pytest.mark.asyncio
async def test_payment_received_email(notifications, email_sender):
    client = Client(name="Alice", phone="+15550001111", email="alice@example.com")

    assert await notifications.payment_received(client, _payment(4000, notes="Thanks")) is True

    to, subject, body = email_sender.send.call_args.args
    assert to == "alice@example.com"
    assert subject == "Payment received"
    assert "$40.00" in body
    assert "2026-03-02" in body
    assert "Notes: Thanks" in body


@pytest.mark.asyncio
async def test_no_email_address_skips_send(notifications, email_sender):
    client = Client(name="Bob", phone="+15550002222")

    assert await notifications.payment_received(client, _payment(4000)) is False
    email_sender.send.assert_not_called()


@pytest.mark.asyncio
async def test_send_failure_is_swallowed(notifications, email_sender):
    email_sender.send.side_effect = ConnectionError("smtp unreachable")
    client = Client(name="Alice", phone="+15550001111", email="alice@example.com")

    assert await notifications.payment_received(client, _payment(4000)) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("amount_cents,expected", [(100000, False), (100001, True)])
async def test_high_payment_threshold(notifications, email_sender, amount_cents, expected):
    client = Client(name="Alice", phone="+15550001111")

    assert await notifications.high_payment(client, _payment(amount_cents)) is expected
    assert email_sender.send.called is expected


@pytest.mark.asyncio
async def test_weekly_reminders_skip_recent_payers(
    notifications, email_sender, debt_service, payment_service, client_service, admin_caller, alice
):
    carol = await client_service.create_client(admin_caller, name="Carol", phone="+15550003333", email="carol@example.com")
    alice_debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Alice invoice")
    carol_debt = await debt_service.create_debt(admin_caller, carol.id, Decimal("100"), "Carol invoice")
    now = datetime(2026, 3, 15, 9)
    await payment_service.add_payment(admin_caller, alice_debt.id, Decimal("10"), PaymentMethod.CASH, payment_date=datetime(2026, 3, 1))
    await payment_service.add_payment(admin_caller, carol_debt.id, Decimal("10"), PaymentMethod.CASH, payment_date=datetime(2026, 3, 12))
    email_sender.send.reset_mock()

    assert await notifications.send_weekly_reminders(now) == 1

    to, subject, body = email_sender.send.call_args.args
    assert (to, subject) == ("alice@example.com", "Weekly payment reminder")
    assert "Alice invoice: $90.00 remaining" in body


@pytest.mark.asyncio
async def test_daily_revenue_covers_yesterday(notifications, email_sender, debt_service, payment_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("500"), "Invoice")
    await payment_service.add_payment(admin_caller, debt.id, Decimal("30"), PaymentMethod.CASH, payment_date=datetime(2026, 3, 14, 10))
    await payment_service.add_payment(admin_caller, debt.id, Decimal("20"), PaymentMethod.CARD, payment_date=datetime(2026, 3, 14, 18))
    await payment_service.add_payment(admin_caller, debt.id, Decimal("99"), PaymentMethod.CARD, payment_date=datetime(2026, 3, 15, 7))
    email_sender.send.reset_mock()

    assert await notifications.send_daily_revenue(datetime(2026, 3, 15, 8)) is True

    to, subject, body = email_sender.send.call_args.args
    assert to == "owner@example.com"
    assert subject == "Revenue for 2026-03-14"
    assert "Payments: 2" in body
    assert "Revenue: $50.00" in body
    assert "Average payment: $25.00" in body


@pytest.mark.asyncio
async def test_overdue_alerts(notifications, email_sender, debt_service, admin_caller, alice, bob):
    await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Late", due_date=datetime(2026, 3, 1))
    await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Not yet", due_date=datetime(2026, 4, 1))
    # bob has no email: counted as not sent
    await debt_service.create_debt(admin_caller, bob.id, Decimal("100"), "Bob late", due_date=datetime(2026, 2, 1))
    email_sender.send.reset_mock()

    assert await notifications.send_overdue_alerts(datetime(2026, 3, 15, 9, 30)) == 1
    to, subject, body = email_sender.send.call_args.args
    assert (to, subject) == ("alice@example.com", "Debt overdue")
    assert "2026-03-01" in body


@pytest.mark.asyncio
async def test_monthly_summary_previous_month(notifications, email_sender, debt_service, payment_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("500"), "Invoice")
    await payment_service.add_payment(admin_caller, debt.id, Decimal("30"), PaymentMethod.CASH, payment_date=datetime(2026, 2, 3))
    await payment_service.add_payment(admin_caller, debt.id, Decimal("70"), PaymentMethod.CARD, payment_date=datetime(2026, 2, 27))
    await payment_service.add_payment(admin_caller, debt.id, Decimal("5"), PaymentMethod.CARD, payment_date=datetime(2026, 3, 1))
    email_sender.send.reset_mock()

    assert await notifications.send_monthly_summary(datetime(2026, 3, 1, 10)) is True

    _, subject, body = email_sender.send.call_args.args
    assert subject == "Monthly summary February 2026"
    assert "Period: 2026-02-01 - 2026-02-28" in body
    assert "Revenue: $100.00" in body
    assert "- CARD: 1 payments, $70.00" in body
    assert "- CASH: 1 payments, $30.00" in body
