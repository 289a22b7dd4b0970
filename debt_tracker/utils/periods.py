"""
Calendar windows for reports and scheduled jobs.

All windows are half-open [start, end) in naive UTC.
"""

from datetime import datetime, timedelta
from typing import Tuple

from debt_tracker.core.exceptions import ValidationError

Window = Tuple[datetime, datetime]


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def day_window(moment: datetime) -> Window:
    start = start_of_day(moment)
    return start, start + timedelta(days=1)


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_window(year: int, month: int) -> Window:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", details={"month": month})
    next_year, next_month = add_months(year, month, 1)
    return datetime(year, month, 1), datetime(next_year, next_month, 1)


def month_window_of(moment: datetime, delta: int = 0) -> Window:
    """Window of the month containing `moment`, shifted by `delta` months."""
    year, month = add_months(moment.year, moment.month, delta)
    return month_window(year, month)


def month_key(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"
