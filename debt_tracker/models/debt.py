"""
Debt model - what a client owes.

Design principles:
- total_amount_cents is fixed at creation
- remaining_amount_cents only moves through the balance rule in
  utils/debt_balance.py (or the bulk-settle override)
- status is derived: SETTLED iff remaining_amount_cents == 0
- All amounts in integer cents
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from debt_tracker.models.base import DocumentModel
from debt_tracker.utils.money import from_cents


class DebtStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"


class Debt(DocumentModel):
    """
    Obligation of one client.

    Invariants:
    - 0 <= remaining_amount_cents <= total_amount_cents
    - status == SETTLED iff remaining_amount_cents == 0
    """
    client_id: str
    total_amount_cents: int
    remaining_amount_cents: int
    status: DebtStatus = DebtStatus.ACTIVE
    description: str
    due_date: Optional[datetime] = None
    archived: bool = False

    @property
    def total_amount(self) -> Decimal:
        return from_cents(self.total_amount_cents)

    @property
    def remaining_amount(self) -> Decimal:
        return from_cents(self.remaining_amount_cents)

    @property
    def paid_amount_cents(self) -> int:
        """How much of the total has been applied."""
        return self.total_amount_cents - self.remaining_amount_cents

    @property
    def paid_amount(self) -> Decimal:
        return from_cents(self.paid_amount_cents)

    def is_settled(self) -> bool:
        return self.status == DebtStatus.SETTLED

    def is_outstanding(self) -> bool:
        """Active with something left to pay."""
        return self.status == DebtStatus.ACTIVE and self.remaining_amount_cents > 0
