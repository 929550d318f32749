"""Calendar-month arithmetic on datetimes.

All functions keep the ``tzinfo`` of their input. Mixing naive and aware
datetimes in `months_between` raises ``TypeError`` like any other
comparison between them.
"""

import calendar
from datetime import datetime


def first_day_of_month(dt: datetime) -> datetime:
    """Midnight of the first day of ``dt``'s month."""
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def last_day_of_month(dt: datetime) -> datetime:
    """Midnight of the last day of ``dt``'s month."""
    _, days = calendar.monthrange(dt.year, dt.month)
    return dt.replace(day=days, hour=0, minute=0, second=0, microsecond=0)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift ``dt`` by ``months`` calendar months.

    The day is clamped to the length of the target month, so
    ``add_months(Jan 31, 1)`` is Feb 28 (or 29). Time of day is kept.
    """
    index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def months_between(start: datetime, end: datetime) -> int:
    """Whole calendar months from ``start`` to ``end``.

    Negative when ``end`` is before ``start``. A month counts only once it
    is complete: Jan 15 to Feb 14 is 0, Jan 15 to Feb 15 is 1.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and add_months(start, months) > end:
        months -= 1
    elif months < 0 and add_months(start, months) < end:
        months += 1
    return months
