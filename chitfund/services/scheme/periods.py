"""
Scheme period arithmetic.

A period is one billing cycle; period 1 starts on the scheme start date.
"""

from datetime import date

from chitfund.config.business_constants import CYCLE_MONTHS
from chitfund.models.enums import SubscriptionCycle
from chitfund.models.scheme import Scheme
from chitfund.utils.datetime_utils import (
    add_months,
    period_for_date,
    period_start,
    utc_now,
)


def months_per_period(scheme: Scheme) -> int:
    """Length of one period of ``scheme`` in calendar months."""
    return CYCLE_MONTHS[SubscriptionCycle(scheme.subscription_cycle)]


def current_period(scheme: Scheme, on_date: date | None = None) -> int:
    """
    Period index covering ``on_date`` (today by default).

    Clamped to 1..duration, so dates before the start map to period 1 and
    dates after the last period map to the last one.

    Args:
        scheme: Scheme
        on_date: Reference date

    Returns:
        1-based period index
    """
    if on_date is None:
        on_date = utc_now().date()
    return period_for_date(
        scheme.start_date,
        months_per_period(scheme),
        scheme.duration,
        on_date,
    )


def period_bounds(scheme: Scheme, period_index: int) -> tuple[date, date]:
    """First day of the period and first day of the next one."""
    months = months_per_period(scheme)
    start = period_start(scheme.start_date, months, period_index)
    return start, add_months(scheme.start_date, months * period_index)


def scheme_end_date(scheme: Scheme) -> date:
    """Planned end date: explicit end date or the end of the last period."""
    if scheme.end_date is not None:
        return scheme.end_date
    return period_bounds(scheme, scheme.duration)[1]
