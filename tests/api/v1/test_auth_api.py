import pytest


@pytest.mark.asyncio
async def test_root_and_health(api_client):
    assert (await api_client.get("/")).status_code == 200
    response = await api_client.get("/health")
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_admin_login_and_me(api_client, admin_headers):
    response = await api_client.post(
        "/api/v1/auth/login",
        json={"phone": "+15550000000", "password": "SecurePassword123"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "ADMIN"

    me = await api_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["phone"] == "+15550000000"


@pytest.mark.asyncio
async def test_admin_login_wrong_password(api_client, admin_headers):
    response = await api_client.post(
        "/api/v1/auth/login",
        json={"phone": "+15550000000", "password": "nope"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid phone or password"


@pytest.mark.asyncio
async def test_client_login_by_phone(api_client, alice):
    response = await api_client.post("/api/v1/auth/login", json={"phone": alice.phone})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "CLIENT"


@pytest.mark.asyncio
async def test_missing_or_bad_token(api_client):
    assert (await api_client.get("/api/v1/debts")).status_code == 401
    response = await api_client.get("/api/v1/debts", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_create_admin_requires_admin(api_client, admin_headers, alice):
    login = await api_client.post("/api/v1/auth/login", json={"phone": alice.phone})
    client_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    payload = {"name": "Second", "phone": "+15550008888", "password": "AnotherPass123"}

    assert (await api_client.post("/api/v1/auth/admins", json=payload, headers=client_headers)).status_code == 403

    response = await api_client.post("/api/v1/auth/admins", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["role"] == "ADMIN"
