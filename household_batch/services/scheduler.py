"""
StandingOrderScheduler -- In-process daily trigger for the due pass.

Contract:
    Two independent triggers, both mapping to
    ``DueOrderProcessor.run_due_pass()``:
      - ``run_startup_catch_up()``: once when the host starts, for orders
        that fell due while it was down.
      - ``tick()``: the daily run, fired at the configured wall time.
    The scheduler owns no state about orders; exactly-once execution is the
    processor's claim, so a tick racing the startup pass is harmless.

Architecture: household_batch/services.  Timing math is pure
    (household_batch.domain.daily); the clock is injected.

Invariants enforced:
    - Startup catch-up failures are logged and never block startup.
    - Graceful shutdown: ``stop()`` wakes the sleeping thread and joins it.
"""

from __future__ import annotations

import threading
from datetime import datetime, time

from household_config.loader import parse_time
from household_kernel.domain.clock import Clock, SystemClock
from household_kernel.logging_config import get_logger

from household_batch.domain.daily import next_daily_run, seconds_until
from household_batch.domain.types import DuePassResult, PassTrigger
from household_batch.services.due_order_processor import DueOrderProcessor

logger = get_logger("batch.scheduler")


class StandingOrderScheduler:
    """Daily scheduler with startup catch-up for standing orders.

    Contract:
        - ``tick()`` runs one daily pass (public for testing).
        - ``start()`` / ``stop()`` for background thread operation.

    Non-goals:
        - NOT a distributed scheduler; concurrent hosts are safe only
          because of the processor's per-occurrence claim.
    """

    def __init__(
        self,
        processor: DueOrderProcessor,
        clock: Clock | None = None,
        daily_run_at: time | str = time(12, 0),
        run_startup_catch_up: bool = True,
        max_sleep_seconds: float = 3600.0,
    ):
        self._processor = processor
        self._clock = clock or SystemClock()
        self._run_at = parse_time(daily_run_at)
        self._startup_enabled = run_startup_catch_up
        self._max_sleep = max_sleep_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._next_run: datetime | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> DuePassResult | None:
        """Run the daily pass.  Returns None if the pass itself crashed."""
        try:
            return self._processor.run_due_pass(PassTrigger.DAILY)
        except Exception:
            logger.exception("scheduler_tick_failed")
            return None

    def run_startup_catch_up(self) -> DuePassResult | None:
        """Run the one-shot startup pass; failures are logged, not raised."""
        try:
            return self._processor.run_due_pass(PassTrigger.STARTUP)
        except Exception:
            logger.exception("startup_catch_up_failed")
            return None

    def start(self) -> None:
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="standing-order-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "scheduler_started",
            extra={
                "daily_run_at": self._run_at.isoformat(),
                "startup_catch_up": self._startup_enabled,
            },
        )

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the scheduler thread to finish.

        Args:
            timeout: Max seconds to wait for the thread to finish.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def next_run(self) -> datetime | None:
        """Wall time of the next daily pass, once the loop has computed it."""
        return self._next_run

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        """Background loop.  Exits when stop_event is set."""
        if self._startup_enabled and not self._stop_event.is_set():
            self.run_startup_catch_up()

        self._next_run = next_daily_run(self._clock.now(), self._run_at)
        while not self._stop_event.is_set():
            now = self._clock.now()
            if now >= self._next_run:
                self.tick()
                self._next_run = next_daily_run(self._clock.now(), self._run_at)
                logger.info("scheduler_next_run", extra={"next_run": self._next_run})
                continue
            # Sleep in bounded slices so clock jumps (DST, suspend) are noticed
            wait = min(seconds_until(now, self._next_run), self._max_sleep)
            self._stop_event.wait(timeout=wait)
