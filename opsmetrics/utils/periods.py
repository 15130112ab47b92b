"""Calendar period helpers for daily, weekly and monthly reporting."""

import calendar
from datetime import date, timedelta

from opsmetrics.utils.types import DateRange, Period


def period_start(day: date, period: Period) -> date:
    """Return the first day of the period containing ``day``.

    Weeks start on Monday.
    """
    match period:
        case Period.DAILY:
            return day
        case Period.WEEKLY:
            return day - timedelta(days=day.weekday())
        case Period.MONTHLY:
            return day.replace(day=1)
        case other:
            raise ValueError(f"Unsupported period: {other}")


def resolve_period_range(period: Period | str, base_date: date) -> DateRange:
    period = Period(period)
    start = period_start(base_date, period)
    match period:
        case Period.DAILY:
            end = start
        case Period.WEEKLY:
            end = start + timedelta(days=6)
        case Period.MONTHLY:
            last_day = calendar.monthrange(start.year, start.month)[1]
            end = start.replace(day=last_day)
    return DateRange(start=start, end=end)
