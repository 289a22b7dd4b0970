from decimal import Decimal
from unittest.mock import patch

import pytest
from bson import ObjectId

from debt_tracker.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from debt_tracker.models.debt import DebtStatus
from debt_tracker.models.payment import PaymentMethod


@pytest.mark.asyncio
async def test_create_debt_starts_active_and_unpaid(debt_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("120.50"), "  Plumbing  ")

    assert debt.total_amount == Decimal("120.50")
    assert debt.remaining_amount == Decimal("120.50")
    assert debt.status == DebtStatus.ACTIVE
    assert debt.description == "Plumbing"
    assert debt.archived is False


@pytest.mark.asyncio
@pytest.mark.parametrize("amount,description", [
    (Decimal("0"), "Invoice"),
    (Decimal("-5"), "Invoice"),
    (Decimal("10"), "   "),
    ("1e400", "Invoice"),
])
async def test_create_debt_rejects_bad_input(debt_service, admin_caller, alice, amount, description):
    with pytest.raises(ValidationError):
        await debt_service.create_debt(admin_caller, alice.id, amount, description)


@pytest.mark.asyncio
async def test_create_debt_unknown_client(debt_service, admin_caller):
    with pytest.raises(ValidationError):
        await debt_service.create_debt(admin_caller, str(ObjectId()), Decimal("10"), "Invoice")


@pytest.mark.asyncio
async def test_create_debt_requires_admin(debt_service, alice_caller, alice):
    with pytest.raises(PermissionDeniedError):
        await debt_service.create_debt(alice_caller, alice.id, Decimal("10"), "Invoice")


@pytest.mark.asyncio
async def test_delete_debt_without_payments(debt_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("10"), "Invoice")

    await debt_service.delete_debt(admin_caller, debt.id)

    with pytest.raises(NotFoundError):
        await debt_service.get_debt(admin_caller, debt.id)


@pytest.mark.asyncio
async def test_delete_debt_with_payments_conflicts(debt_service, payment_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Invoice")
    await payment_service.add_payment(admin_caller, debt.id, Decimal("10"), PaymentMethod.CASH)

    with pytest.raises(ConflictError, match="Delete all payments first"):
        await debt_service.delete_debt(admin_caller, debt.id)


@pytest.mark.asyncio
async def test_update_debt_total_keeps_paid_amount(debt_service, payment_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Invoice")
    await payment_service.add_payment(admin_caller, debt.id, Decimal("40"), PaymentMethod.CASH)

    updated = await debt_service.update_debt(admin_caller, debt.id, total_amount=Decimal("150"))
    assert updated.remaining_amount == Decimal("110.00")
    assert updated.status == DebtStatus.ACTIVE

    settled = await debt_service.update_debt(admin_caller, debt.id, total_amount=Decimal("40"))
    assert settled.remaining_amount == Decimal("0.00")
    assert settled.status == DebtStatus.SETTLED

    with pytest.raises(ValidationError):
        await debt_service.update_debt(admin_caller, debt.id, total_amount=Decimal("39.99"))


@pytest.mark.asyncio
async def test_update_debt_total_conflicts_with_concurrent_payment(
    debt_service, payment_service, debt_repo, admin_caller, alice
):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Invoice")
    read_debt = debt_repo.get_debt
    paid = []

    async def read_then_pay(debt_id, session=None):
        seen = await read_debt(debt_id, session=session)
        if not paid:
            # a payment lands between the edit's read and its write
            paid.append(True)
            await payment_service.add_payment(admin_caller, debt.id, Decimal("40"), PaymentMethod.CASH)
        return seen

    with patch.object(debt_repo, "get_debt", side_effect=read_then_pay):
        with pytest.raises(ConflictError):
            await debt_service.update_debt(admin_caller, debt.id, total_amount=Decimal("150"))

    stored = await debt_repo.get_debt(debt.id)
    assert stored.total_amount_cents == 10000
    assert stored.remaining_amount_cents == 6000


@pytest.mark.asyncio
async def test_update_debt_cannot_move_paid_debt(debt_service, payment_service, admin_caller, alice, bob):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Invoice")
    await payment_service.add_payment(admin_caller, debt.id, Decimal("1"), PaymentMethod.CASH)

    with pytest.raises(ConflictError):
        await debt_service.update_debt(admin_caller, debt.id, client_id=bob.id)


@pytest.mark.asyncio
async def test_update_debt_moves_unpaid_debt(debt_service, admin_caller, alice, bob):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Invoice")

    moved = await debt_service.update_debt(admin_caller, debt.id, client_id=bob.id, description="Moved")

    assert moved.client_id == bob.id
    assert moved.description == "Moved"


@pytest.mark.asyncio
async def test_archived_debts_leave_default_listing(debt_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Invoice")

    archived = await debt_service.archive_debt(admin_caller, debt.id)

    assert archived.archived is True
    assert await debt_service.list_debts(admin_caller) == []
    assert [d.id for d in await debt_service.list_archived_debts(admin_caller)] == [debt.id]

    await debt_service.unarchive_debt(admin_caller, debt.id)
    assert [d.id for d in await debt_service.list_debts(admin_caller)] == [debt.id]


@pytest.mark.asyncio
async def test_debt_statistics(debt_service, payment_service, admin_caller, alice, bob):
    first = await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "A")
    await debt_service.create_debt(admin_caller, bob.id, Decimal("50"), "B")
    paid = await debt_service.create_debt(admin_caller, bob.id, Decimal("30"), "C")
    await payment_service.add_payment(admin_caller, first.id, Decimal("25"), PaymentMethod.CASH)
    await payment_service.add_payment(admin_caller, paid.id, Decimal("30"), PaymentMethod.CARD)

    stats = await debt_service.debt_statistics(admin_caller)

    assert stats.total_active_amount == Decimal("150.00")
    assert stats.total_remaining_amount == Decimal("125.00")
    assert stats.active_count == 2
    assert stats.settled_count == 1
    assert stats.average_amount == Decimal("75.00")


@pytest.mark.asyncio
async def test_high_priority_debts(debt_service, payment_service, admin_caller, alice, alice_caller, bob):
    big = await debt_service.create_debt(admin_caller, alice.id, Decimal("2000"), "Big")
    mostly_paid = await debt_service.create_debt(admin_caller, alice.id, Decimal("1500"), "Mostly paid")
    await payment_service.add_payment(admin_caller, mostly_paid.id, Decimal("1000"), PaymentMethod.CARD)
    medium = await debt_service.create_debt(admin_caller, alice.id, Decimal("600"), "Medium")
    await debt_service.create_debt(admin_caller, alice.id, Decimal("100"), "Small")
    other = await debt_service.create_debt(admin_caller, bob.id, Decimal("1200"), "Bob's")

    # admin: remaining >= 1000
    assert [d.id for d in await debt_service.high_priority_debts(admin_caller)] == [big.id, other.id]
    # client: own debts with total >= 500
    assert [d.id for d in await debt_service.high_priority_debts(alice_caller)] == [big.id, mostly_paid.id, medium.id]


@pytest.mark.asyncio
async def test_search_and_range_queries(debt_service, admin_caller, alice):
    roof = await debt_service.create_debt(admin_caller, alice.id, Decimal("300"), "Roof repair")
    await debt_service.create_debt(admin_caller, alice.id, Decimal("50"), "Paint")

    assert [d.id for d in await debt_service.search_debts(admin_caller, "ROOF")] == [roof.id]
    assert [d.id for d in await debt_service.debts_by_amount_range(admin_caller, Decimal("100"), Decimal("300"))] == [roof.id]
    with pytest.raises(ValidationError):
        await debt_service.debts_by_amount_range(admin_caller, Decimal("300"), Decimal("100"))


@pytest.mark.asyncio
async def test_bulk_settle_reports_each_item(debt_service, admin_caller, alice):
    debt = await debt_service.create_debt(admin_caller, alice.id, Decimal("80"), "Invoice")
    missing = str(ObjectId())

    result = await debt_service.bulk_settle(admin_caller, [debt.id, missing])

    assert result.success_count == 1
    assert result.failure_count == 1
    assert [e.item_id for e in result.errors] == [missing]
    settled = await debt_service.get_debt(admin_caller, debt.id)
    assert settled.remaining_amount_cents == 0
    assert settled.status == DebtStatus.SETTLED


@pytest.mark.asyncio
async def test_bulk_delete_debts_keeps_input_order(debt_service, payment_service, admin_caller, alice):
    free = await debt_service.create_debt(admin_caller, alice.id, Decimal("10"), "Free")
    paid = await debt_service.create_debt(admin_caller, alice.id, Decimal("10"), "Paid")
    await payment_service.add_payment(admin_caller, paid.id, Decimal("5"), PaymentMethod.CASH)

    result = await debt_service.bulk_delete_debts(admin_caller, [paid.id, "bogus", free.id])

    assert result.success_count == 1
    assert result.failure_count == 2
    assert [e.item_id for e in result.errors] == [paid.id, "bogus"]
    assert "payments" in result.errors[0].message
