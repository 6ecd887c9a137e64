"""Calendar helpers for rent periods.

All month keys and due dates are computed on the UTC calendar: "now" is a
timezone-aware UTC datetime and its .date() is the billing day.
"""

import re
from datetime import date, datetime, timezone
from typing import Iterator

MONTH_KEY_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def billing_date(now: datetime | None = None) -> date:
    """Calendar date of `now` on the UTC calendar.

    Naive datetimes are taken to already be UTC.
    """
    now = now or utc_now()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def month_key(day: date) -> str:
    """Format the month of `day` as "YYYY-MM"."""
    return f"{day.year:04d}-{day.month:02d}"


def parse_month_key(key: str) -> date:
    """Parse "YYYY-MM" into the first day of that month.

    Raises:
        ValueError: If the key is not a zero-padded year-month
    """
    match = MONTH_KEY_RE.match(key or "")
    if not match:
        raise ValueError(f"Invalid month key {key!r}, expected YYYY-MM")
    return date(int(match.group(1)), int(match.group(2)), 1)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from start's month through end's month."""
    current = date(start.year, start.month, 1)
    last = date(end.year, end.month, 1)
    while current <= last:
        yield current
        if current.month == 12:
            current = date(current.year + 1, 1, 1)
        else:
            current = date(current.year, current.month + 1, 1)


def due_date_for(month_start: date, due_day: int) -> date:
    """Rent due date inside the month beginning at month_start."""
    return month_start.replace(day=due_day)


def is_past_due(due_date: date, now: datetime | None = None) -> bool:
    """A payment is overdue once its due date lies before today's billing date.

    Comparison is by whole UTC day: a payment is still pending on its due
    day and becomes overdue from 00:00 UTC of the following day.
    """
    return due_date < billing_date(now)


__all__ = [
    "utc_now",
    "billing_date",
    "month_key",
    "parse_month_key",
    "iter_months",
    "due_date_for",
    "is_past_due",
]
