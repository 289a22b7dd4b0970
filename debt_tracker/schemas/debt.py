from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict

from debt_tracker.models.debt import DebtStatus


class DebtCreate(BaseModel):
    """Amounts are decimal currency units, e.g. "120.50"."""
    client_id: str
    total_amount: Decimal
    description: str
    due_date: Optional[datetime] = None


class DebtUpdate(BaseModel):
    """All fields optional; only the ones sent are changed."""
    client_id: Optional[str] = None
    total_amount: Optional[Decimal] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None


class DebtResponse(BaseModel):
    id: str
    client_id: str
    total_amount: Decimal
    remaining_amount: Decimal
    paid_amount: Decimal
    status: DebtStatus
    description: str
    due_date: Optional[datetime] = None
    archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DebtStatistics(BaseModel):
    total_active_amount: Decimal
    total_remaining_amount: Decimal
    active_count: int
    settled_count: int
    average_amount: Decimal
