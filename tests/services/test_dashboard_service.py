from datetime import datetime
from decimal import Decimal

import pytest

from debt_tracker.core.exceptions import NotFoundError, PermissionDeniedError
from debt_tracker.models.payment import PaymentMethod
from debt_tracker.services.dashboard_service import percentage

NOW = datetime(2026, 6, 15, 12)


def test_percentage():
    assert percentage(1, 3) == 33.33
    assert percentage(5, 0) == 0.0


@pytest.mark.asyncio
async def test_dashboard(dashboard_service, debt_service, payment_service, client_service, admin_caller, alice, bob):
    carol = await client_service.create_client(admin_caller, name="Carol", phone="+15550003333")
    alice_debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("300"), "Alice invoice")
    bob_debt = await debt_service.create_debt(admin_caller, bob.id, Decimal("100"), "Bob invoice")
    await payment_service.add_payment(admin_caller, alice_debt.id, Decimal("50"), PaymentMethod.CASH, payment_date=datetime(2026, 6, 15, 9))
    await payment_service.add_payment(admin_caller, bob_debt.id, Decimal("20"), PaymentMethod.CARD, payment_date=datetime(2026, 6, 2))
    await payment_service.add_payment(admin_caller, bob_debt.id, Decimal("10"), PaymentMethod.CARD, payment_date=datetime(2026, 5, 20))

    data = await dashboard_service.dashboard(admin_caller, now=NOW)

    assert data.summary.today_revenue == Decimal("50.00")
    assert data.summary.month_revenue == Decimal("70.00")
    assert data.summary.total_outstanding_debt == Decimal("320.00")
    assert data.summary.active_clients == 2
    assert data.summary.total_clients == 3
    assert [d.client_id for d in data.top_debtors] == [alice.id, bob.id]
    assert carol.id not in {d.client_id for d in data.top_debtors}
    assert data.payment_method_distribution == {"CASH": 1, "CARD": 1}
    assert data.recent_payments[0].client_name == "Alice Martin"
    assert data.recent_payments[0].debt_description == "Alice invoice"
    assert [m.month for m in data.monthly_trend] == ["2026-01", "2026-02", "2026-03", "2026-04", "2026-05", "2026-06"]
    assert data.monthly_trend[-2].revenue == Decimal("10.00")


@pytest.mark.asyncio
async def test_kpis(dashboard_service, debt_service, payment_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("400"), "Invoice")
    await payment_service.add_payment(admin_caller, debt.id, Decimal("50"), PaymentMethod.CASH, payment_date=datetime(2026, 5, 10))
    await payment_service.add_payment(admin_caller, debt.id, Decimal("150"), PaymentMethod.CASH, payment_date=datetime(2026, 6, 10))

    kpis = await dashboard_service.kpis(admin_caller, now=NOW)

    assert kpis.current_month_revenue == Decimal("150.00")
    assert kpis.last_month_revenue == Decimal("50.00")
    assert kpis.revenue_growth == 200.0
    assert kpis.total_outstanding_debt == Decimal("200.00")
    assert kpis.collection_rate == 50.0
    assert kpis.payments_this_month == 1
    assert kpis.active_clients == 1
    assert kpis.total_clients == 1


@pytest.mark.asyncio
async def test_admin_dashboards_require_admin(dashboard_service, alice_caller):
    with pytest.raises(PermissionDeniedError):
        await dashboard_service.dashboard(alice_caller)
    with pytest.raises(PermissionDeniedError):
        await dashboard_service.kpis(alice_caller)


@pytest.mark.asyncio
async def test_client_dashboard(dashboard_service, debt_service, payment_service, admin_caller, alice, alice_caller, bob):
    open_debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Open")
    closed = await debt_service.create_debt(admin_caller, alice.id, Decimal("30"), "Closed")
    await debt_service.create_debt(admin_caller, bob.id, Decimal("999"), "Not Alice's")
    await payment_service.add_payment(admin_caller, open_debt.id, Decimal("40"), PaymentMethod.CARD, payment_date=datetime(2026, 6, 1))
    await payment_service.add_payment(admin_caller, closed.id, Decimal("30"), PaymentMethod.CASH, payment_date=datetime(2026, 6, 3))

    data = await dashboard_service.client_dashboard(alice_caller, now=NOW)

    assert data.client.id == alice.id
    assert data.summary.total_debt_ever == Decimal("130.00")
    assert data.summary.total_paid == Decimal("70.00")
    assert data.summary.current_outstanding == Decimal("60.00")
    assert data.summary.active_debts_count == 1
    assert data.summary.settled_debts_count == 1
    assert data.summary.total_payments_count == 2
    assert [p.debt_description for p in data.recent_payments] == ["Closed", "Open"]
    assert data.monthly_trend[-1].revenue == Decimal("70.00")


@pytest.mark.asyncio
async def test_client_dashboard_rejects_admin(dashboard_service, admin_caller):
    with pytest.raises(PermissionDeniedError):
        await dashboard_service.client_dashboard(admin_caller)


@pytest.mark.asyncio
async def test_client_dashboard_unlinked_caller(dashboard_service, client_repo, alice, alice_caller):
    await client_repo.update_client(alice.id, {"phone": "+15559990000"})

    with pytest.raises(NotFoundError):
        await dashboard_service.client_dashboard(alice_caller)
