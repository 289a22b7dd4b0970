"""
Money helpers.

Amounts travel through the API as Decimal with two places and are stored as
integer cents, so sums and comparisons never hit float rounding.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from debt_tracker.core.exceptions import ValidationError

CENT = Decimal("0.01")

# cents are stored as BSON int64
MAX_CENTS = 2 ** 63 - 1

Amount = Union[Decimal, int, float, str]


def to_cents(amount: Amount, field: str = "amount") -> int:
    """Convert a decimal amount to integer cents (half-up). Raises ValidationError on junk input."""
    if amount is None or isinstance(amount, bool):
        raise ValidationError(f"{field} is required")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a decimal number")
    if not value.is_finite():
        raise ValidationError(f"{field} must be a decimal number")
    try:
        cents = int((value.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a decimal number")
    if abs(cents) > MAX_CENTS:
        raise ValidationError(f"{field} is out of range")
    return cents


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def positive_cents(amount: Amount, field: str = "amount") -> int:
    cents = to_cents(amount, field)
    if cents <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return cents
