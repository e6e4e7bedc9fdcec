"""
Calendar arithmetic for recurrence cadences.

All functions are pure and work on calendar dates only.

Rules:
    weekly:  +7 days
    monthly: anchor day in the following month, clamped to its last day
    yearly:  same month next year, anchor day clamped (Feb 29 -> Feb 28)

Example:
    >>> next_occurrence(date(2026, 1, 31), "monthly", 31)
    datetime.date(2026, 2, 28)
    >>> next_occurrence(date(2026, 2, 28), "monthly", 31)
    datetime.date(2026, 3, 31)
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from finance.state_machines import RecurrenceFrequency


def clamp_day(year: int, month: int, day: int) -> date:
    """Return ``year-month-day``, moving ``day`` back to the month's last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(current: date, months: int, anchor_day: int) -> date:
    """Move ``months`` calendar months forward, landing on the anchor day."""
    month_index = current.month - 1 + months
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    return clamp_day(year, month, anchor_day)


def next_occurrence(current: date, frequency: str, anchor_day: int) -> date:
    """
    Compute the occurrence following ``current``.

    The anchor day, not ``current.day``, decides the landing day, so a
    31st anchor returns to the 31st after passing through a short month.

    Args:
        current: Occurrence date just materialized
        frequency: RecurrenceFrequency value
        anchor_day: Day of month (1-31) for monthly and yearly cadences

    Returns:
        The next occurrence date

    Raises:
        ValueError: For an unknown frequency or an anchor outside 1-31
    """
    if frequency == RecurrenceFrequency.WEEKLY:
        return current + timedelta(days=7)

    if not 1 <= anchor_day <= 31:
        raise ValueError(f"day_of_month must be between 1 and 31, got {anchor_day}")

    if frequency == RecurrenceFrequency.MONTHLY:
        return add_months(current, 1, anchor_day)
    if frequency == RecurrenceFrequency.YEARLY:
        return add_months(current, 12, anchor_day)

    raise ValueError(f"Unknown recurrence frequency: {frequency!r}")


def materialization_horizon(as_of: date, frequency: str) -> date:
    """
    Last due date that advance(as_of) materializes.

    Weekly and yearly occurrences are materialized once their due date is
    reached. A monthly catch-up runs to the end of ``as_of``'s month, so the
    occurrence closing that month is created together with the overdue
    ones. The caller applies this only once the cursor is on or before
    ``as_of``.

    Example:
        >>> materialization_horizon(date(2026, 4, 15), "monthly")
        datetime.date(2026, 4, 30)
        >>> materialization_horizon(date(2026, 4, 15), "yearly")
        datetime.date(2026, 4, 15)
    """
    if frequency == RecurrenceFrequency.MONTHLY:
        return clamp_day(as_of.year, as_of.month, 31)
    return as_of
