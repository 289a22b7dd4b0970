from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from loguru import logger

from debt_tracker.core.config import settings

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes(mongodb.db)
    logger.info(f"Connected to MongoDB: {settings.DATABASE_NAME}")

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Login identity
    await db["users"].create_index("phone", unique=True)

    # Client indexes
    await db["clients"].create_index("phone", unique=True)
    await db["clients"].create_index("user_id")
    await db["clients"].create_index("archived")

    # Debt indexes
    await db["debts"].create_index([("client_id", 1), ("status", 1)])
    await db["debts"].create_index([("status", 1), ("archived", 1)])
    await db["debts"].create_index("due_date")

    # Payment indexes
    await db["payments"].create_index("debt_id")
    await db["payments"].create_index([("client_id", 1), ("payment_date", -1)])
    await db["payments"].create_index("payment_date")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
