from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "Debt Tracker API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Client debt and payment ledger API"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "debt_tracker"
    # Multi-document transactions need a replica set
    MONGODB_TRANSACTIONS: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    JWT_SECRET: str = "change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60 * 24

    # First administrator, created at startup when the phone is not registered yet
    INITIAL_ADMIN_NAME: str = "Administrator"
    INITIAL_ADMIN_PHONE: Optional[str] = None
    INITIAL_ADMIN_PASSWORD: Optional[str] = None

    # Notifications
    ADMIN_EMAIL: str = "admin@example.com"
    MAIL_FROM: str = "noreply@example.com"
    HIGH_PAYMENT_THRESHOLD: Decimal = Decimal("1000")

    # Debt priority
    ADMIN_HIGH_PRIORITY_THRESHOLD: Decimal = Decimal("1000")
    CLIENT_HIGH_PRIORITY_THRESHOLD: Decimal = Decimal("500")

    # Scheduler
    SCHEDULER_ENABLED: bool = False
    SCHEDULER_TICK_SECONDS: int = 60

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
