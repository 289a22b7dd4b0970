from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from debt_tracker.core.exceptions import AuthenticationError
from debt_tracker.db.mongo import get_db
from debt_tracker.models.user import Caller
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.repositories.user_repo import UserRepository
from debt_tracker.services.auth_service import AuthService
from debt_tracker.services.client_service import ClientService
from debt_tracker.services.dashboard_service import DashboardService
from debt_tracker.services.debt_service import DebtService
from debt_tracker.services.email import EmailSender, LoggingEmailSender
from debt_tracker.services.notification_service import NotificationService
from debt_tracker.services.payment_service import PaymentService
from debt_tracker.services.report_service import ReportService

security = HTTPBearer(auto_error=False)

_email_sender = LoggingEmailSender()


def get_email_sender() -> EmailSender:
    return _email_sender


def get_auth_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Caller:
    """Get the caller identity from the bearer token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return await auth_service.caller_for_token(credentials.credentials)


def get_notification_service(
    db: AsyncIOMotorDatabase = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender)
) -> NotificationService:
    return NotificationService(
        email_sender,
        ClientRepository(db),
        DebtRepository(db),
        PaymentRepository(db)
    )


def get_client_service(
    db: AsyncIOMotorDatabase = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service)
) -> ClientService:
    return ClientService(ClientRepository(db), UserRepository(db), DebtRepository(db), notifications)


def get_debt_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> DebtService:
    return DebtService(DebtRepository(db), PaymentRepository(db), ClientRepository(db))


def get_payment_service(
    db: AsyncIOMotorDatabase = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service)
) -> PaymentService:
    return PaymentService(PaymentRepository(db), DebtRepository(db), ClientRepository(db), notifications)


def get_dashboard_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> DashboardService:
    return DashboardService(ClientRepository(db), DebtRepository(db), PaymentRepository(db))


def get_report_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> ReportService:
    return ReportService(ClientRepository(db), DebtRepository(db), PaymentRepository(db))
