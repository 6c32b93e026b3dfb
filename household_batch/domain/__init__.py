"""Pure types and timing functions for the due pass (ZERO I/O)."""

from household_batch.domain.daily import next_daily_run
from household_batch.domain.types import (
    DueOrderState,
    DuePassResult,
    OrderRunResult,
    OrderRunStatus,
    PassTrigger,
    order_state,
)

__all__ = [
    "next_daily_run",
    "DueOrderState",
    "DuePassResult",
    "OrderRunResult",
    "OrderRunStatus",
    "PassTrigger",
    "order_state",
]
