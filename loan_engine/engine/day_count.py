"""Day-count conventions and calendar month arithmetic.

Pure functions. No I/O.
"""

import calendar
from datetime import date
from decimal import Decimal

from loan_engine.models.loan import DayCountConvention

DAYS_360 = Decimal("360")
DAYS_365 = Decimal("365")


def day_count_factor(
    period_start: date, period_end: date, convention: DayCountConvention
) -> Decimal:
    """Fraction of a year between two dates under the given convention.

    30E/360: day 31 is treated as day 30 on both ends.
    ACT/360, ACT/365: actual calendar days over a fixed year length
    (ACT/365 is not leap-adjusted, so a 366-day year yields > 1).

    The factor is never negative, whatever the order of the dates.
    """
    if convention is DayCountConvention.THIRTY_E_360:
        return _thirty_e_360(period_start, period_end)
    if convention is DayCountConvention.ACT_360:
        return Decimal(_actual_days(period_start, period_end)) / DAYS_360
    return Decimal(_actual_days(period_start, period_end)) / DAYS_365


def _thirty_e_360(start: date, end: date) -> Decimal:
    d1 = min(start.day, 30)
    d2 = min(end.day, 30)
    days = 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)
    return Decimal(abs(days)) / DAYS_360


def _actual_days(start: date, end: date) -> int:
    return abs((end - start).days)


def add_months(dt: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length.

    Jan 31 + 1 month -> Feb 29 in a leap year, Feb 28 otherwise.
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def days_in_month(dt: date) -> int:
    return calendar.monthrange(dt.year, dt.month)[1]
