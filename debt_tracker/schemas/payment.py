from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from debt_tracker.models.payment import PaymentMethod


class PaymentCreate(BaseModel):
    debt_id: str
    amount: Decimal
    payment_method: PaymentMethod
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    """An amount change is re-applied against the debt balance."""
    amount: Optional[Decimal] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None


class PaymentReverse(BaseModel):
    reason: str = Field(..., min_length=1)


class PaymentResponse(BaseModel):
    id: str
    debt_id: str
    client_id: str
    amount: Decimal
    payment_method: PaymentMethod
    notes: Optional[str] = None
    payment_date: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentStatistics(BaseModel):
    total_amount: Decimal
    payment_count: int
    average_amount: Decimal
