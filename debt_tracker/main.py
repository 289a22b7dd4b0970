import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from debt_tracker.api.v1.api import api_router
from debt_tracker.core.config import settings
from debt_tracker.core.exceptions import register_exception_handlers
from debt_tracker.core.logging import setup_logging
from debt_tracker.db.mongo import close_mongo_connection, connect_to_mongo, mongodb
from debt_tracker.repositories.client_repo import ClientRepository
from debt_tracker.repositories.debt_repo import DebtRepository
from debt_tracker.repositories.payment_repo import PaymentRepository
from debt_tracker.repositories.user_repo import UserRepository
from debt_tracker.services.auth_service import AuthService
from debt_tracker.services.email import LoggingEmailSender
from debt_tracker.services.notification_service import NotificationService
from debt_tracker.services.scheduler import LedgerScheduler, default_jobs


async def bootstrap_admin():
    if not (settings.INITIAL_ADMIN_PHONE and settings.INITIAL_ADMIN_PASSWORD):
        return
    auth_service = AuthService(UserRepository(mongodb.db))
    admin = await auth_service.ensure_admin(
        settings.INITIAL_ADMIN_NAME,
        settings.INITIAL_ADMIN_PHONE,
        settings.INITIAL_ADMIN_PASSWORD
    )
    if admin is not None:
        logger.info(f"Created initial administrator {admin.phone}")


def build_scheduler() -> LedgerScheduler:
    notifications = NotificationService(
        LoggingEmailSender(settings.MAIL_FROM),
        ClientRepository(mongodb.db),
        DebtRepository(mongodb.db),
        PaymentRepository(mongodb.db)
    )
    return LedgerScheduler(default_jobs(notifications))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await connect_to_mongo()
    await bootstrap_admin()

    scheduler = None
    scheduler_task = None
    if settings.SCHEDULER_ENABLED:
        scheduler = build_scheduler()
        scheduler_task = asyncio.create_task(scheduler.start())

    yield

    if scheduler is not None:
        scheduler.stop()
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
async def root():
    return {"message": "Welcome to Debt Tracker API"}


@app.get("/health")
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}


app.include_router(api_router, prefix=settings.API_V1_STR)
