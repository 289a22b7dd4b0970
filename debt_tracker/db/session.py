from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase

from debt_tracker.core.config import settings


@asynccontextmanager
async def transaction(
    db: AsyncIOMotorDatabase,
    enabled: Optional[bool] = None
) -> AsyncIterator[Optional[AsyncIOMotorClientSession]]:
    """
    Unit of work for a multi-document ledger mutation.

    Yields a session inside a started transaction when transactions are
    enabled (replica set deployments), otherwise yields None and the writes
    run one by one. Repository methods accept the yielded value as `session`.
    """
    if enabled is None:
        enabled = settings.MONGODB_TRANSACTIONS

    if not enabled:
        yield None
        return

    async with await db.client.start_session() as session:
        async with session.start_transaction():
            yield session
