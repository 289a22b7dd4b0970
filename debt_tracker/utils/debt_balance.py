"""
Debt balance rule.

remaining = clamp(total - sum(applied payments), 0, total)
status    = SETTLED iff remaining == 0

Every function here is pure: it takes cents, returns the new
(remaining_cents, status) pair, and leaves persistence to the caller.
Reversal is the exact inverse of application for any amount that was
accepted by `check_payment`.
"""

from typing import Tuple

from debt_tracker.core.exceptions import ValidationError
from debt_tracker.models.debt import DebtStatus

Balance = Tuple[int, DebtStatus]


def status_for(remaining_cents: int) -> DebtStatus:
    return DebtStatus.SETTLED if remaining_cents == 0 else DebtStatus.ACTIVE


def _clamp(remaining_cents: int, total_cents: int) -> int:
    return max(0, min(remaining_cents, total_cents))


def check_payment(remaining_cents: int, status: DebtStatus, amount_cents: int) -> None:
    """
    Validate a new payment against the current balance.

    Rules:
    - amount must be positive
    - debt must not be settled
    - amount must not exceed what remains
    """
    if amount_cents <= 0:
        raise ValidationError("Payment amount must be greater than 0")
    if status == DebtStatus.SETTLED or remaining_cents == 0:
        raise ValidationError("Cannot add payment to a settled debt")
    if amount_cents > remaining_cents:
        raise ValidationError(
            "Payment amount cannot exceed remaining debt amount",
            details={"remaining_cents": remaining_cents, "amount_cents": amount_cents}
        )


def apply_payment(total_cents: int, remaining_cents: int, amount_cents: int) -> Balance:
    """Decrement by amount; flips to SETTLED when nothing is left."""
    if amount_cents <= 0:
        raise ValidationError("Payment amount must be positive")
    remaining = _clamp(remaining_cents - amount_cents, total_cents)
    return remaining, status_for(remaining)


def reverse_payment(total_cents: int, remaining_cents: int, amount_cents: int) -> Balance:
    """Add the amount back; a SETTLED debt becomes ACTIVE again."""
    if amount_cents <= 0:
        raise ValidationError("Payment amount must be positive")
    remaining = _clamp(remaining_cents + amount_cents, total_cents)
    return remaining, status_for(remaining)


def replace_payment(
    total_cents: int,
    remaining_cents: int,
    old_amount_cents: int,
    new_amount_cents: int
) -> Balance:
    """
    Swap an applied amount for a new one: reverse the old, then apply the new.

    The new amount is checked against the balance as it stands after the old
    amount has been restored.
    """
    restored, restored_status = reverse_payment(total_cents, remaining_cents, old_amount_cents)
    check_payment(restored, restored_status, new_amount_cents)
    return apply_payment(total_cents, restored, new_amount_cents)
