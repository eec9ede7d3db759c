"""Period selector helpers.

A period selector is either a month ("YYYY-MM") or the "all" sentinel.
"""

import datetime as dt

from ..config import ALL_PERIODS


def period_of(day: dt.date) -> str:
    """Return the month selector containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def current_period(today: dt.date | None = None) -> str:
    return period_of(today or dt.date.today())


def is_all(period: str | None) -> bool:
    return not period or period == ALL_PERIODS


def parse_period(period: str) -> tuple[int, int]:
    """Parse "YYYY-MM" into (year, month).

    Raises:
        ValueError: If the selector is not a valid month
    """
    try:
        year_text, month_text = period.split("-")
        year, month = int(year_text), int(month_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid period selector: {period!r}") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid period selector: {period!r}")
    return year, month


def period_bounds(period: str) -> tuple[dt.date, dt.date]:
    """First and last day (inclusive) of a month selector."""
    year, month = parse_period(period)
    start = dt.date(year, month, 1)
    if month == 12:
        end = dt.date(year, 12, 31)
    else:
        end = dt.date(year, month + 1, 1) - dt.timedelta(days=1)
    return start, end


def previous_period(period: str) -> str:
    year, month = parse_period(period)
    if month == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{month - 1:02d}"


def named_period_bounds(name: str, today: dt.date | None = None) -> tuple[dt.date, dt.date]:
    """Resolve a relative period name used by the model into date bounds.

    Supported names: this_month, last_month, this_year, last_30_days.
    A "YYYY-MM" selector is accepted as well.
    """
    today = today or dt.date.today()
    if name == "this_month":
        return period_bounds(period_of(today))
    if name == "last_month":
        return period_bounds(previous_period(period_of(today)))
    if name == "this_year":
        return dt.date(today.year, 1, 1), dt.date(today.year, 12, 31)
    if name == "last_30_days":
        return today - dt.timedelta(days=30), today
    return period_bounds(name)


def previous_bounds(start: dt.date, end: dt.date) -> tuple[dt.date, dt.date]:
    """Window of the same length immediately before [start, end]."""
    length = end - start
    prev_end = start - dt.timedelta(days=1)
    return prev_end - length, prev_end
