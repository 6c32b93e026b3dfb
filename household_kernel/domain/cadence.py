"""
Pure date cadence functions for standing orders.

Contract:
    Every function here is PURE -- no I/O, no clock access.  "Today" is
    always a parameter.

Monthly rules:
    - ``monthly_last_day``: last calendar day of the target month.
    - ``monthly_day``: ``min(monthly_day, days_in_target_month)``.
    - neither: the 1st of the target month.
    - February is capped at 28 in both modes, leap years included.  This is
      long-standing behaviour that existing schedules depend on; see
      DESIGN.md before changing it.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from enum import Enum

from household_kernel.exceptions import InvalidScheduleError


class StandingOrderFrequency(str, Enum):
    """Recurrence cadence of a standing order."""

    WEEKLY = "weekly"
    BI_WEEKLY = "bi_weekly"
    MONTHLY = "monthly"


FEBRUARY = 2
FEBRUARY_CAP = 28


# =============================================================================
# Month arithmetic
# =============================================================================


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(anchor: date, months: int) -> date:
    """First day of the month ``months`` after ``anchor``'s month."""
    index = anchor.year * 12 + (anchor.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def effective_last_day(year: int, month: int) -> int:
    """Last schedulable day of a month (February capped at 28)."""
    if month == FEBRUARY:
        return FEBRUARY_CAP
    return days_in_month(year, month)


def effective_day(year: int, month: int, preferred_day: int) -> int:
    """Clamp a preferred day of month to what the month can hold."""
    if month == FEBRUARY and preferred_day > FEBRUARY_CAP:
        return FEBRUARY_CAP
    return min(preferred_day, days_in_month(year, month))


def resolve_monthly_date(
    target_month: date,
    monthly_day: int | None = None,
    monthly_last_day: bool = False,
) -> date:
    """Concrete execution date inside ``target_month``'s month."""
    year, month = target_month.year, target_month.month
    if monthly_last_day:
        return date(year, month, effective_last_day(year, month))
    if monthly_day is not None and 1 <= monthly_day <= 31:
        return date(year, month, effective_day(year, month, monthly_day))
    return date(year, month, 1)


# =============================================================================
# Next occurrence
# =============================================================================


def next_weekly(from_date: date) -> date:
    return from_date + timedelta(days=7)


def next_bi_weekly(from_date: date) -> date:
    return from_date + timedelta(days=14)


def next_monthly(
    from_date: date,
    monthly_day: int | None = None,
    monthly_last_day: bool = False,
) -> date:
    """Execution date in the month following ``from_date``."""
    return resolve_monthly_date(add_months(from_date, 1), monthly_day, monthly_last_day)


def next_occurrence(
    from_date: date,
    frequency: StandingOrderFrequency,
    monthly_day: int | None = None,
    monthly_last_day: bool = False,
) -> date:
    """Advance ``from_date`` by one period of ``frequency``."""
    if frequency == StandingOrderFrequency.WEEKLY:
        return next_weekly(from_date)
    if frequency == StandingOrderFrequency.BI_WEEKLY:
        return next_bi_weekly(from_date)
    if frequency == StandingOrderFrequency.MONTHLY:
        return next_monthly(from_date, monthly_day, monthly_last_day)
    raise InvalidScheduleError(f"unknown frequency {frequency!r}")


def initial_next_execution(
    today: date,
    frequency: StandingOrderFrequency,
    monthly_day: int | None = None,
    monthly_last_day: bool = False,
    explicit_start_date: date | None = None,
) -> date:
    """
    First execution date of a new standing order.

    WEEKLY / BI_WEEKLY use the creator's start date verbatim.  MONTHLY takes
    the candidate in the current month and rolls one month forward unless
    the candidate is strictly after ``today``.

    Raises:
        InvalidScheduleError: weekly cadence without a start date.
    """
    if frequency != StandingOrderFrequency.MONTHLY:
        if explicit_start_date is None:
            raise InvalidScheduleError(
                f"{frequency.value} orders need an explicit start date"
            )
        return explicit_start_date

    candidate = resolve_monthly_date(today, monthly_day, monthly_last_day)
    if candidate > today:
        return candidate
    return next_monthly(today, monthly_day, monthly_last_day)


def rescheduled_from_today(
    today: date,
    frequency: StandingOrderFrequency,
    monthly_day: int | None = None,
    monthly_last_day: bool = False,
) -> date:
    """
    Replacement date for an edited order whose stored date is not in the
    future: one full period counted from ``today``.
    """
    return next_occurrence(today, frequency, monthly_day, monthly_last_day)


def validate_monthly_parameters(
    frequency: StandingOrderFrequency,
    monthly_day: int | None,
    monthly_last_day: bool,
) -> None:
    """
    Raises:
        InvalidScheduleError: monthly_day out of 1..31, both modes set, or
            monthly parameters on a weekly cadence.
    """
    if monthly_day is not None and not 1 <= monthly_day <= 31:
        raise InvalidScheduleError(f"monthly_day must be 1..31, got {monthly_day}")
    if monthly_day is not None and monthly_last_day:
        raise InvalidScheduleError("monthly_day and monthly_last_day are exclusive")
    if frequency != StandingOrderFrequency.MONTHLY and (
        monthly_day is not None or monthly_last_day
    ):
        raise InvalidScheduleError(
            f"monthly parameters are only valid for monthly orders, not {frequency.value}"
        )
