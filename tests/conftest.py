from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from debt_tracker.api.deps import get_email_sender
from debt_tracker.db.mongo import create_indexes, get_db
from debt_tracker.main import app
from debt_tracker.models.user import Caller, UserRole
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.repositories.user_repo import UserRepository
from debt_tracker.services.auth_service import AuthService, create_access_token
from debt_tracker.services.client_service import ClientService
from debt_tracker.services.dashboard_service import DashboardService
from debt_tracker.services.debt_service import DebtService
from debt_tracker.services.notification_service import NotificationService
from debt_tracker.services.payment_service import PaymentService
from debt_tracker.services.report_service import ReportService

TEST_DATABASE = "debt_tracker_test"
ADMIN_EMAIL = "owner@example.com"


@pytest_asyncio.fixture
async def test_db():
    """In-memory Motor-compatible database, fresh for every test."""
    client = AsyncMongoMockClient()
    db = client[f"{TEST_DATABASE}_{ObjectId()}"]
    await create_indexes(db)
    yield db


@pytest.fixture
def user_repo(test_db):
    return UserRepository(test_db)


@pytest.fixture
def client_repo(test_db):
    return ClientRepository(test_db)


@pytest.fixture
def debt_repo(test_db):
    return DebtRepository(test_db)


@pytest.fixture
def payment_repo(test_db):
    return PaymentRepository(test_db)


@pytest.fixture
def email_sender():
    sender = AsyncMock()
    sender.send = AsyncMock(return_value=None)
    return sender


@pytest.fixture
def notifications(email_sender, client_repo, debt_repo, payment_repo):
    return NotificationService(email_sender, client_repo, debt_repo, payment_repo, admin_email=ADMIN_EMAIL)


@pytest.fixture
def client_service(client_repo, user_repo, debt_repo, notifications):
    return ClientService(client_repo, user_repo, debt_repo, notifications)


@pytest.fixture
def debt_service(debt_repo, payment_repo, client_repo):
    return DebtService(debt_repo, payment_repo, client_repo)


@pytest.fixture
def payment_service(payment_repo, debt_repo, client_repo, notifications):
    return PaymentService(payment_repo, debt_repo, client_repo, notifications)


@pytest.fixture
def dashboard_service(client_repo, debt_repo, payment_repo):
    return DashboardService(client_repo, debt_repo, payment_repo)


@pytest.fixture
def report_service(client_repo, debt_repo, payment_repo):
    return ReportService(client_repo, debt_repo, payment_repo)


@pytest.fixture
def admin_caller():
    return Caller(user_id=str(ObjectId()), phone="+15550000000", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def alice(client_service, admin_caller):
    """Client with an email address."""
    return await client_service.create_client(
        admin_caller,
        name="Alice Martin",
        phone="+15550001111",
        address="1 Main St",
        email="alice@example.com"
    )


@pytest_asyncio.fixture
async def bob(client_service, admin_caller):
    """Client without an email address."""
    return await client_service.create_client(admin_caller, name="Bob Stone", phone="+15550002222")


@pytest.fixture
def alice_caller(alice):
    return Caller(user_id=alice.user_id, phone=alice.phone, role=UserRole.CLIENT)


@pytest.fixture
def bob_caller(bob):
    return Caller(user_id=bob.user_id, phone=bob.phone, role=UserRole.CLIENT)


@pytest_asyncio.fixture
async def api_client(test_db, email_sender):
    """HTTP client against the app with the database and mail sender swapped out."""
    app.dependency_overrides[get_db] = lambda: test_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_headers(user_repo):
    admin = await AuthService(user_repo).create_admin("Owner", "+15550000000", "SecurePassword123")
    return {"Authorization": f"Bearer {create_access_token(admin)}"}
