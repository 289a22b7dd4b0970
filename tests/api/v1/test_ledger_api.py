import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def client_id(api_client, admin_headers):
    response = await api_client.post(
        "/api/v1/clients",
        json={"name": "Dana Cruz", "phone": "+1 555 000 4444", "email": "dana@example.com"},
        headers=admin_headers
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest_asyncio.fixture
async def client_headers(api_client, client_id):
    login = await api_client.post("/api/v1/auth/login", json={"phone": "+15550004444"})
    return {"Authorization": f"Bearer {login.json()['access_token']}"}


async def _create_debt(api_client, headers, client_id, amount, description="Invoice"):
    response = await api_client.post(
        "/api/v1/debts",
        json={"client_id": client_id, "total_amount": amount, "description": description},
        headers=headers
    )
    assert response.status_code == 201
    return response.json()


async def _pay(api_client, headers, debt_id, amount, method="CASH"):
    return await api_client.post(
        "/api/v1/payments",
        json={"debt_id": debt_id, "amount": amount, "payment_method": method},
        headers=headers
    )


@pytest.mark.asyncio
async def test_create_client_response(api_client, client_id, admin_headers):
    response = await api_client.get(f"/api/v1/clients/{client_id}", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["phone"] == "+15550004444"
    assert data["archived"] is False
    assert "_id" not in data


@pytest.mark.asyncio
async def test_payment_flow(api_client, admin_headers, client_id):
    debt = await _create_debt(api_client, admin_headers, client_id, "100.00")
    assert debt["remaining_amount"] == "100.00"
    assert debt["status"] == "ACTIVE"

    assert (await _pay(api_client, admin_headers, debt["id"], "40")).status_code == 201
    second = await _pay(api_client, admin_headers, debt["id"], "60", "CARD")
    assert second.status_code == 201
    assert second.json()["amount"] == "60.00"

    settled = (await api_client.get(f"/api/v1/debts/{debt['id']}", headers=admin_headers)).json()
    assert settled["remaining_amount"] == "0.00"
    assert settled["paid_amount"] == "100.00"
    assert settled["status"] == "SETTLED"

    reverse = await api_client.post(
        f"/api/v1/payments/{second.json()['id']}/reverse",
        json={"reason": "Chargeback"},
        headers=admin_headers
    )
    assert reverse.status_code == 200
    assert "REVERSED: Chargeback" in reverse.json()["notes"]

    reopened = (await api_client.get(f"/api/v1/debts/{debt['id']}", headers=admin_headers)).json()
    assert reopened["remaining_amount"] == "60.00"
    assert reopened["status"] == "ACTIVE"


@pytest.mark.asyncio
async def test_overpayment_returns_400(api_client, admin_headers, client_id):
    debt = await _create_debt(api_client, admin_headers, client_id, "50")

    response = await _pay(api_client, admin_headers, debt["id"], "60")

    assert response.status_code == 400
    assert response.json()["detail"] == "Payment amount cannot exceed remaining debt amount"


@pytest.mark.asyncio
async def test_huge_amount_returns_400(api_client, admin_headers, client_id):
    response = await api_client.post(
        "/api/v1/debts",
        json={"client_id": client_id, "total_amount": "1e400", "description": "Invoice"},
        headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_debt_with_payments_returns_409(api_client, admin_headers, client_id):
    debt = await _create_debt(api_client, admin_headers, client_id, "50")
    await _pay(api_client, admin_headers, debt["id"], "10")

    response = await api_client.delete(f"/api/v1/debts/{debt['id']}", headers=admin_headers)
    assert response.status_code == 409

    unpaid = await _create_debt(api_client, admin_headers, client_id, "50")
    assert (await api_client.delete(f"/api/v1/debts/{unpaid['id']}", headers=admin_headers)).status_code == 204


@pytest.mark.asyncio
async def test_archive_client_with_debt_returns_409(api_client, admin_headers, client_id):
    await _create_debt(api_client, admin_headers, client_id, "50")

    response = await api_client.post(f"/api/v1/clients/{client_id}/archive", headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_client_sees_only_own_debts(api_client, admin_headers, client_id, client_headers, bob):
    own = await _create_debt(api_client, admin_headers, client_id, "50", "Dana's")
    other = await _create_debt(api_client, admin_headers, bob.id, "70", "Bob's")

    mine = await api_client.get("/api/v1/debts", headers=client_headers)
    assert [d["id"] for d in mine.json()] == [own["id"]]

    everything = await api_client.get("/api/v1/debts", headers=admin_headers)
    assert {d["id"] for d in everything.json()} == {own["id"], other["id"]}

    assert (await api_client.get(f"/api/v1/debts/{other['id']}", headers=client_headers)).status_code == 404
    assert (await api_client.post("/api/v1/debts", json={
        "client_id": client_id, "total_amount": "5", "description": "Self-billed"
    }, headers=client_headers)).status_code == 403


@pytest.mark.asyncio
async def test_bulk_delete_payments(api_client, admin_headers, client_id):
    debt = await _create_debt(api_client, admin_headers, client_id, "100")
    payment = (await _pay(api_client, admin_headers, debt["id"], "30")).json()
    missing = "507f1f77bcf86cd799439011"

    response = await api_client.post(
        "/api/v1/payments/bulk/delete",
        json={"ids": [payment["id"], missing]},
        headers=admin_headers
    )

    assert response.status_code == 200
    result = response.json()
    assert result["success_count"] == 1
    assert result["failure_count"] == 1
    assert result["errors"][0]["item_id"] == missing


@pytest.mark.asyncio
async def test_bulk_request_needs_ids(api_client, admin_headers):
    response = await api_client.post("/api/v1/debts/bulk/settle", json={"ids": []}, headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_debt_queries(api_client, admin_headers, client_id):
    await _create_debt(api_client, admin_headers, client_id, "1500", "Kitchen remodel")
    await _create_debt(api_client, admin_headers, client_id, "20", "Paint")

    search = await api_client.get("/api/v1/debts/search", params={"q": "kitchen"}, headers=admin_headers)
    assert [d["description"] for d in search.json()] == ["Kitchen remodel"]

    ranged = await api_client.get(
        "/api/v1/debts/amount-range",
        params={"min_amount": "10", "max_amount": "100"},
        headers=admin_headers
    )
    assert [d["description"] for d in ranged.json()] == ["Paint"]

    priority = await api_client.get("/api/v1/debts/high-priority", headers=admin_headers)
    assert [d["description"] for d in priority.json()] == ["Kitchen remodel"]

    stats = (await api_client.get("/api/v1/debts/statistics", headers=admin_headers)).json()
    assert stats["active_count"] == 2
    assert stats["total_active_amount"] == "1520.00"

    by_status = await api_client.get("/api/v1/debts/status/SETTLED", headers=admin_headers)
    assert by_status.json() == []


@pytest.mark.asyncio
async def test_update_payment_amount(api_client, admin_headers, client_id):
    debt = await _create_debt(api_client, admin_headers, client_id, "100")
    payment = (await _pay(api_client, admin_headers, debt["id"], "30")).json()

    response = await api_client.put(
        f"/api/v1/payments/{payment['id']}",
        json={"amount": "45.50"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["amount"] == "45.50"
    updated = (await api_client.get(f"/api/v1/debts/{debt['id']}", headers=admin_headers)).json()
    assert updated["remaining_amount"] == "54.50"
