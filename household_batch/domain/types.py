"""
household_batch.domain.types -- Pure frozen result types for the due pass.

ZERO I/O.  A due pass never raises because of one order; every outcome is
reported through these values instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class PassTrigger(str, Enum):
    """Entry point that started a due pass."""

    DAILY = "daily"  # Scheduled daily tick
    STARTUP = "startup"  # One-shot catch-up when the host starts
    MANUAL = "manual"  # Operator / script invocation


class DueOrderState(str, Enum):
    """Scheduling state of a standing order relative to a given day."""

    PENDING = "pending"  # next_execution_date in the future
    DUE = "due"  # next_execution_date <= today
    EXECUTING = "executing"  # claimed by a pass, not yet committed
    INACTIVE = "inactive"  # deactivated; absorbing


class OrderRunStatus(str, Enum):
    """Outcome of one order within a pass."""

    EXECUTED = "executed"  # At least one transaction created, schedule advanced
    SKIPPED = "skipped"  # Claimed by a concurrent pass or no longer due
    FAILED = "failed"  # Execution raised; schedule left unchanged


def order_state(is_active: bool, next_execution_date: date, today: date) -> DueOrderState:
    """Classify an order at rest (EXECUTING only exists inside a pass)."""
    if not is_active:
        return DueOrderState.INACTIVE
    if next_execution_date <= today:
        return DueOrderState.DUE
    return DueOrderState.PENDING


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass(frozen=True)
class OrderRunResult:
    """Result of processing a single standing order in a pass.

    ``executions`` counts generated transactions; catch-up of several missed
    dates yields more than one.  ``next_execution_date`` is the stored date
    after the pass (unchanged on FAILED).  It is None on SKIPPED: another
    worker owns that occurrence and the date it stored is not read back.
    """

    order_id: UUID
    status: OrderRunStatus
    executions: int = 0
    transaction_ids: tuple[UUID, ...] = ()
    next_execution_date: date | None = None
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class DuePassResult:
    """Aggregate outcome of one ``run_due_pass`` call."""

    trigger: PassTrigger
    as_of: date
    started_at: datetime
    completed_at: datetime
    results: tuple[OrderRunResult, ...] = field(default_factory=tuple)

    @property
    def executed(self) -> int:
        return sum(1 for r in self.results if r.status == OrderRunStatus.EXECUTED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == OrderRunStatus.FAILED)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == OrderRunStatus.SKIPPED)

    @property
    def transactions_created(self) -> int:
        return sum(r.executions for r in self.results)

    def to_summary(self) -> dict:
        """JSON-friendly summary for logs and the host script."""
        return {
            "trigger": self.trigger.value,
            "as_of": self.as_of.isoformat(),
            "candidates": len(self.results),
            "executed": self.executed,
            "failed": self.failed,
            "skipped": self.skipped,
            "transactions_created": self.transactions_created,
            "failures": [
                {
                    "order_id": str(r.order_id),
                    "error_code": r.error_code,
                    "error_message": r.error_message,
                }
                for r in self.results
                if r.status == OrderRunStatus.FAILED
            ],
        }
