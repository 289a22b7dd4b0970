"""
Outbound email contract.

Delivery itself is outside the ledger. Services depend on `EmailSender`; the
app wires `LoggingEmailSender` by default and tests pass an AsyncMock.
"""

from typing import Optional, Protocol, runtime_checkable

from loguru import logger

from debt_tracker.core.config import settings


@runtime_checkable
class EmailSender(Protocol):
    """Anything that can deliver a plain-text email."""

    async def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message. May raise on transport failure."""
        ...


class LoggingEmailSender:
    """Writes messages to the log instead of a mail server."""

    def __init__(self, sender: Optional[str] = None):
        self.sender = sender or settings.MAIL_FROM

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info(f"Email from={self.sender} to={to} subject={subject!r}")
        logger.debug(body)
