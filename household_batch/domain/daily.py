"""
Pure daily-trigger timing.

Contract:
    ``next_daily_run(now, run_at)`` is PURE -- the scheduler passes the
    clock reading in.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta


def next_daily_run(now: datetime, run_at: time) -> datetime:
    """First moment strictly after ``now`` whose wall time is ``run_at``.

    The result carries ``now``'s tzinfo.
    """
    candidate = now.replace(
        hour=run_at.hour,
        minute=run_at.minute,
        second=run_at.second,
        microsecond=0,
    )
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def seconds_until(now: datetime, target: datetime) -> float:
    return max(0.0, (target - now).total_seconds())
