"""
DueOrderProcessor -- executes standing orders whose date has arrived.

Contract:
    ``run_due_pass(trigger)`` finds active orders with
    ``next_execution_date <= today``, and for each due occurrence runs
    claim -> execute -> commit as one database transaction.  It returns a
    DuePassResult and never raises because of a single order.

Architecture: household_batch/services.  Uses the kernel's
    StandingOrderService for the claim and the ledger write; owns the
    per-occurrence session and commit boundary.

Exactly-once:
    The claim is a compare-and-swap on ``next_execution_date``
    (StandingOrderService.claim_next_occurrence).  Two passes racing on the
    same occurrence both try the UPDATE; the database serializes them, the
    first commits, the second matches zero rows and skips.  Because the
    claim and the ledger insert share one transaction, a crash between them
    rolls both back: the order is neither double-fired nor silently skipped.
    On PostgreSQL the row is additionally locked with
    ``FOR UPDATE SKIP LOCKED`` so the loser does not even wait.

Catch-up:
    An order that missed several dates (host down) is executed once per
    missed date, oldest first, until its next date is after today.

Failure isolation:
    Any exception while processing one occurrence rolls back that
    occurrence only, is logged as ``standing_order_execution_failed`` and
    reported as a FAILED OrderRunResult.  The schedule is not advanced, so
    the next pass retries.
"""

from __future__ import annotations

from datetime import date
from typing import Callable
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from household_kernel.domain.clock import Clock, SystemClock
from household_kernel.domain.directory import MemberDirectory
from household_kernel.exceptions import ExecutionFailure
from household_kernel.logging_config import LogContext, get_logger
from household_kernel.models.standing_order import StandingOrder
from household_kernel.services.standing_order_service import StandingOrderService

from household_batch.domain.types import (
    DuePassResult,
    OrderRunResult,
    OrderRunStatus,
    PassTrigger,
)

logger = get_logger("batch.due_orders")


class DueOrderProcessor:
    """Runs due standing orders with a per-occurrence claim.

    Contract:
        - Opens its own sessions from ``session_factory``; one per
          occurrence, committed or rolled back before the next.
        - Safe to call concurrently from several threads or processes.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        directory: MemberDirectory,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._directory = directory
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run_due_pass(self, trigger: PassTrigger = PassTrigger.MANUAL) -> DuePassResult:
        """Execute every due occurrence of every active order.

        Returns:
            DuePassResult with one OrderRunResult per candidate order.
        """
        today = self._clock.today()
        started_at = self._clock.now_utc()

        with LogContext.bind(correlation_id=uuid4(), trigger=trigger.value):
            candidates = self._due_candidates(today)
            logger.info(
                "due_pass_started",
                extra={"as_of": today, "candidates": len(candidates)},
            )

            results = tuple(
                self._process_order(order_id, seen_date, today)
                for order_id, seen_date in candidates
            )

            result = DuePassResult(
                trigger=trigger,
                as_of=today,
                started_at=started_at,
                completed_at=self._clock.now_utc(),
                results=results,
            )
            logger.info("due_pass_completed", extra=result.to_summary())
        return result

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _due_candidates(self, today: date) -> list[tuple[UUID, date]]:
        """Snapshot of (order id, next date) for active orders due by today."""
        session = self._session_factory()
        try:
            rows = session.execute(
                select(StandingOrder.id, StandingOrder.next_execution_date)
                .where(
                    StandingOrder.is_active == True,  # noqa: E712
                    StandingOrder.next_execution_date <= today,
                )
                .order_by(StandingOrder.next_execution_date, StandingOrder.id)
            ).all()
            return [(row[0], row[1]) for row in rows]
        finally:
            session.close()

    def _process_order(self, order_id: UUID, seen_date: date, today: date) -> OrderRunResult:
        """Run all due occurrences of one order, oldest first."""
        transaction_ids: list[UUID] = []
        expected = seen_date

        with LogContext.bind(order_id=order_id):
            while expected <= today:
                try:
                    outcome = self._run_occurrence(order_id, expected)
                except ExecutionFailure as failure:
                    logger.exception(
                        "standing_order_execution_failed",
                        extra={
                            "due_date": expected,
                            "executions_before_failure": len(transaction_ids),
                        },
                    )
                    return OrderRunResult(
                        order_id=order_id,
                        status=OrderRunStatus.FAILED,
                        executions=len(transaction_ids),
                        transaction_ids=tuple(transaction_ids),
                        next_execution_date=expected,
                        error_code=failure.cause_code,
                        error_message=failure.reason,
                    )

                if outcome is None:
                    break
                transaction_id, expected = outcome
                transaction_ids.append(transaction_id)

        if not transaction_ids:
            return OrderRunResult(
                order_id=order_id,
                status=OrderRunStatus.SKIPPED,
                next_execution_date=None,
            )
        return OrderRunResult(
            order_id=order_id,
            status=OrderRunStatus.EXECUTED,
            executions=len(transaction_ids),
            transaction_ids=tuple(transaction_ids),
            next_execution_date=expected,
        )

    def _run_occurrence(self, order_id: UUID, expected: date) -> tuple[UUID, date] | None:
        """Claim, execute and commit one occurrence.

        Returns:
            (transaction id, new next date), or None when the occurrence was
            already taken, the order was deactivated, or its date moved.

        Raises:
            ExecutionFailure: Anything failed; the unit of work is rolled back.
        """
        session = self._session_factory()
        try:
            order = session.execute(
                select(StandingOrder)
                .where(
                    StandingOrder.id == order_id,
                    StandingOrder.is_active == True,  # noqa: E712
                    StandingOrder.next_execution_date == expected,
                )
                .with_for_update(skip_locked=True)
            ).scalar_one_or_none()
            if order is None:
                session.rollback()
                return None

            registry = StandingOrderService(session, self._directory, self._clock)
            new_date = registry.claim_next_occurrence(order, expected)
            if new_date is None:
                session.rollback()
                return None

            info = registry.execute(order)
            session.commit()
        except Exception as exc:
            session.rollback()
            raise ExecutionFailure(
                str(order_id),
                getattr(exc, "code", type(exc).__name__),
                str(exc),
            ) from exc
        finally:
            session.close()

        logger.info(
            "standing_order_occurrence_committed",
            extra={
                "due_date": expected,
                "transaction_id": str(info.id),
                "next_execution_date": new_date,
            },
        )
        return info.id, new_date
