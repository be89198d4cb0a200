"""
Calendar arithmetic for item date triangles.

Every function here is total: unparseable input degrades to a documented
fallback (the ``N/A`` display string, today's date, or a one-day span) instead
of raising. Dates travel as ISO ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from .project_models import DateWindow, WorkItem

NOT_AVAILABLE = "N/A"

RANGE_PAD_BEFORE_DAYS = 30
RANGE_PAD_AFTER_DAYS = 60
EMPTY_RANGE_BEFORE_DAYS = 30
EMPTY_RANGE_AFTER_DAYS = 90

# Locale-independent month abbreviations for DD-MMM-YY.
_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


def today() -> dt.date:
    return dt.date.today()


def parse_date(value: object) -> dt.date | None:
    """Parse an ISO date (or datetime) string; return None when it is not a valid calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return dt.datetime.fromisoformat(text).date()
    except ValueError:
        return None


def to_iso(value: dt.date) -> str:
    return value.isoformat()


def format_date(value: object) -> str:
    """Human display form, e.g. ``25-OCT-25``; ``N/A`` when unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        return NOT_AVAILABLE
    return f"{parsed.day:02d}-{_MONTHS[parsed.month - 1]}-{parsed.year % 100:02d}"


def add_days(value: str, days: int) -> str:
    """Shift an ISO date by ``days``; today's date when unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        return to_iso(today())
    try:
        return to_iso(parsed + dt.timedelta(days=days))
    except OverflowError:
        return to_iso(today())


def end_from_start(start: str, work_days: int) -> str:
    """Inclusive end date: the start day counts as day one."""
    return add_days(start, max(0, work_days - 1))


def start_from_end(end: str, work_days: int) -> str:
    """Inverse of :func:`end_from_start`."""
    return add_days(end, -max(0, work_days - 1))


def work_days_between(start: str, end: str) -> int:
    """Inclusive calendar-day count between two ISO dates, never below 1."""
    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date is None or end_date is None:
        return 1
    return max(1, (end_date - start_date).days + 1)


def date_range(items: Iterable[WorkItem]) -> DateWindow:
    """
    Timeline window for a sequence.

    The observed min/max across every start and end is padded by 30 days before
    and 60 days after. With no valid dates, the window is centred on today
    (30 days before, 90 after).
    """

    valid: list[dt.date] = []
    for item in items:
        for raw in (item.start, item.end):
            parsed = parse_date(raw)
            if parsed is not None:
                valid.append(parsed)

    if not valid:
        current = today()
        return DateWindow(
            start=_shift(current, -EMPTY_RANGE_BEFORE_DAYS),
            end=_shift(current, EMPTY_RANGE_AFTER_DAYS),
        )

    return DateWindow(
        start=_shift(min(valid), -RANGE_PAD_BEFORE_DAYS),
        end=_shift(max(valid), RANGE_PAD_AFTER_DAYS),
    )


def _shift(value: dt.date, days: int) -> dt.date:
    """Shift a date, stopping at the calendar limits."""
    try:
        return value + dt.timedelta(days=days)
    except OverflowError:
        return dt.date.max if days > 0 else dt.date.min
