from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import Field

from debt_tracker.models.base import DocumentModel, utcnow
from debt_tracker.utils.money import from_cents


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"


class Payment(DocumentModel):
    """
    Money applied against one debt.

    client_id is copied from the debt at creation so client-scoped queries
    never need a join.
    """
    debt_id: str
    client_id: str
    amount_cents: int
    payment_method: PaymentMethod
    notes: Optional[str] = None
    payment_date: datetime = Field(default_factory=utcnow)

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)
