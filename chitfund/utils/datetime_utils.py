"""
Datetime utilities.

Provides timezone-aware datetime functions and period arithmetic.
"""

import calendar
from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes.

    Some drivers (SQLite) hand back naive values for timezone-aware
    columns; they are stored in UTC.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def add_months(start: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the target month length.

    Args:
        start: Start date
        months: Months to add (>= 0)

    Returns:
        Shifted date, e.g. Jan 31 + 1 month -> Feb 28/29
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def period_start(start: date, months_per_period: int, period_index: int) -> date:
    """First day of a 1-based period."""
    return add_months(start, months_per_period * (period_index - 1))


def period_for_date(
    start: date,
    months_per_period: int,
    duration: int,
    on_date: date,
) -> int:
    """
    Period index covering ``on_date``, clamped to 1..duration.

    Dates before the scheme start map to period 1, dates after the last
    period map to the last period.
    """
    if on_date <= start:
        return 1

    months = (on_date.year - start.year) * 12 + (on_date.month - start.month)
    period = months // months_per_period + 1
    # The month boundary is not reached until the start day comes round
    if period > 1 and on_date < period_start(start, months_per_period, period):
        period -= 1
    return max(1, min(period, duration))
