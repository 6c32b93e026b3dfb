"""
Tests for household_batch.services.scheduler and the daily timing helpers.

Validates StandingOrderScheduler: tick(), startup catch-up, start/stop
lifecycle and the daily wake-up, using a recording fake processor.
"""

import threading
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from time import sleep

import pytest

from household_batch.domain.daily import next_daily_run, seconds_until
from household_batch.domain.types import DuePassResult, PassTrigger
from household_batch.services.due_order_processor import DueOrderProcessor
from household_batch.services.scheduler import StandingOrderScheduler
from household_kernel.domain.cadence import StandingOrderFrequency
from household_kernel.domain.values import equal_shares
from household_kernel.services.standing_order_service import StandingOrderService


# =============================================================================
# Test doubles
# =============================================================================


class RecordingProcessor:
    """Stands in for DueOrderProcessor; records each trigger it receives."""

    def __init__(self, clock, fail_on: set[PassTrigger] | None = None):
        self.clock = clock
        self.fail_on = fail_on or set()
        self.triggers: list[PassTrigger] = []
        self.called = threading.Event()
        self.daily_called = threading.Event()

    def run_due_pass(self, trigger=PassTrigger.MANUAL):
        self.triggers.append(trigger)
        self.called.set()
        if trigger == PassTrigger.DAILY:
            self.daily_called.set()
        if trigger in self.fail_on:
            raise RuntimeError(f"{trigger.value} pass exploded")
        now = self.clock.now_utc()
        return DuePassResult(trigger=trigger, as_of=now.date(), started_at=now, completed_at=now)


def _wait_for_next_run(scheduler, timeout: float = 5.0):
    """Block until the loop has computed its first daily slot."""
    for _ in range(int(timeout / 0.01)):
        if scheduler.next_run is not None:
            return scheduler.next_run
        sleep(0.01)
    raise AssertionError("scheduler never computed its next run")


@pytest.fixture
def fake_processor(clock):
    return RecordingProcessor(clock)


@pytest.fixture
def scheduler(fake_processor, clock):
    sched = StandingOrderScheduler(
        processor=fake_processor,
        clock=clock,
        daily_run_at="12:00",
        max_sleep_seconds=0.01,
    )
    yield sched
    sched.stop(timeout=2.0)


# =============================================================================
# tick() / run_startup_catch_up()
# =============================================================================


class TestTriggers:

    def test_tick_runs_daily_pass(self, scheduler, fake_processor):
        result = scheduler.tick()
        assert result.trigger == PassTrigger.DAILY
        assert fake_processor.triggers == [PassTrigger.DAILY]

    def test_startup_catch_up_runs_startup_pass(self, scheduler, fake_processor):
        result = scheduler.run_startup_catch_up()
        assert result.trigger == PassTrigger.STARTUP

    def test_startup_failure_is_logged_not_raised(self, clock, captured_logs):
        processor = RecordingProcessor(clock, fail_on={PassTrigger.STARTUP})
        sched = StandingOrderScheduler(processor, clock)

        assert sched.run_startup_catch_up() is None

        [record] = [r for r in captured_logs() if r["message"] == "startup_catch_up_failed"]
        assert record["level"] == "ERROR"
        assert record["exc_type"] == "RuntimeError"

    def test_tick_failure_is_logged_not_raised(self, clock, captured_logs):
        processor = RecordingProcessor(clock, fail_on={PassTrigger.DAILY})
        sched = StandingOrderScheduler(processor, clock)

        assert sched.tick() is None
        assert any(r["message"] == "scheduler_tick_failed" for r in captured_logs())

    def test_tick_with_real_processor(
        self, session_factory, directory, clock, household
    ):
        with session_factory() as session:
            StandingOrderService(session, directory, clock).create_standing_order(
                creator=household.bob.id,
                creditor=household.bob.id,
                household=household.id,
                total_amount=Decimal("20"),
                description="Netflix",
                frequency=StandingOrderFrequency.WEEKLY,
                start_date=date(2024, 3, 16),
                debtor_shares=equal_shares([household.alice.id]),
            )
            session.commit()
        clock.advance_days(1)
        sched = StandingOrderScheduler(DueOrderProcessor(session_factory, directory, clock), clock)

        result = sched.tick()

        assert result.executed == 1
        assert result.transactions_created == 1


# =============================================================================
# start() / stop() lifecycle
# =============================================================================


class TestLifecycle:

    def test_start_runs_startup_catch_up(self, scheduler, fake_processor):
        scheduler.start()
        assert fake_processor.called.wait(timeout=5.0)
        assert fake_processor.triggers[0] == PassTrigger.STARTUP

    def test_startup_catch_up_can_be_disabled(self, fake_processor, clock):
        sched = StandingOrderScheduler(
            fake_processor, clock, run_startup_catch_up=False, max_sleep_seconds=0.01
        )
        sched.start()
        try:
            assert not fake_processor.called.wait(timeout=0.2)
        finally:
            sched.stop(timeout=2.0)
        assert fake_processor.triggers == []

    def test_startup_failure_does_not_stop_loop(self, clock):
        processor = RecordingProcessor(clock, fail_on={PassTrigger.STARTUP})
        sched = StandingOrderScheduler(processor, clock, max_sleep_seconds=0.01)
        sched.start()
        try:
            assert processor.called.wait(timeout=5.0)
            assert sched.is_running
        finally:
            sched.stop(timeout=2.0)

    def test_daily_pass_fires_when_run_time_arrives(self, scheduler, fake_processor, clock):
        scheduler.start()
        _wait_for_next_run(scheduler)

        clock.advance_days(1)

        assert fake_processor.daily_called.wait(timeout=5.0)
        assert fake_processor.triggers[:2] == [PassTrigger.STARTUP, PassTrigger.DAILY]

    def test_next_run_is_tomorrow_at_noon(self, scheduler, fake_processor, clock):
        # the clock sits at exactly 12:00, so today's slot is already taken
        scheduler.start()
        assert _wait_for_next_run(scheduler) == clock.now() + timedelta(days=1)

    def test_stop_terminates_thread(self, scheduler):
        scheduler.start()
        assert scheduler.is_running is True
        scheduler.stop(timeout=2.0)
        assert scheduler.is_running is False

    def test_double_start_is_noop(self, scheduler):
        scheduler.start()
        thread1 = scheduler._thread
        scheduler.start()
        assert scheduler._thread is thread1

    def test_stop_without_start_is_safe(self, scheduler):
        scheduler.stop(timeout=1.0)
        assert scheduler.is_running is False


# =============================================================================
# Daily timing helpers
# =============================================================================


class TestDailyTiming:

    def test_next_run_later_today(self):
        now = datetime(2024, 3, 15, 8, 0, tzinfo=timezone.utc)
        assert next_daily_run(now, time(12, 0)) == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

    def test_next_run_tomorrow_when_passed(self):
        now = datetime(2024, 3, 15, 13, 0, tzinfo=timezone.utc)
        assert next_daily_run(now, time(12, 0)) == datetime(2024, 3, 16, 12, 0, tzinfo=timezone.utc)

    def test_next_run_strictly_after_now(self):
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        assert next_daily_run(now, time(12, 0)) == datetime(2024, 3, 16, 12, 0, tzinfo=timezone.utc)

    def test_seconds_until_never_negative(self):
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        assert seconds_until(now, now - timedelta(hours=1)) == 0.0
        assert seconds_until(now, now + timedelta(minutes=1)) == 60.0
