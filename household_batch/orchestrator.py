"""
BatchOrchestrator -- DI container for the standing-order batch side.

Contract:
    Composes config, engine, member directory, clock, DueOrderProcessor
    and StandingOrderScheduler.  Single place where the host's batch
    dependencies are wired.

Architecture: household_batch (top-level).  Nothing in household_kernel
    imports from household_batch.
"""

from __future__ import annotations

from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session, sessionmaker

from household_config import HouseholdLedgerConfig
from household_kernel.db.engine import build_engine, create_tables
from household_kernel.domain.clock import Clock, SystemClock
from household_kernel.domain.directory import MemberDirectory
from household_kernel.logging_config import get_logger

from household_batch.services.due_order_processor import DueOrderProcessor
from household_batch.services.scheduler import StandingOrderScheduler

logger = get_logger("batch.orchestrator")


class BatchOrchestrator:
    """DI container for the due-order processor and scheduler.

    Contract:
        - ``from_config()`` builds the engine and session factory.
        - ``create_processor()`` / ``create_scheduler()`` share one clock
          and one directory.

    Non-goals:
        - Does NOT start the scheduler automatically -- caller decides.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        directory: MemberDirectory,
        clock: Clock | None = None,
        config: HouseholdLedgerConfig | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._directory = directory
        self._clock = clock or SystemClock()
        self._config = config or HouseholdLedgerConfig()

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: HouseholdLedgerConfig,
        directory: MemberDirectory,
        clock: Clock | None = None,
        create_schema: bool = False,
    ) -> BatchOrchestrator:
        """Create a fully wired orchestrator from configuration.

        Args:
            config: Effective configuration (see household_config).
            directory: Member directory adapter supplied by the host.
            clock: Optional clock; defaults to SystemClock in the configured
                scheduler timezone.
            create_schema: Create missing tables before returning.
        """
        engine = build_engine(config.database.url, **config.database.engine_options())
        if create_schema:
            create_tables(engine)

        if clock is None:
            tz = ZoneInfo(config.scheduler.timezone) if config.scheduler.timezone else None
            clock = SystemClock(tz)

        logger.info(
            "orchestrator_configured",
            extra={
                "dialect": engine.dialect.name,
                "daily_run_at": config.scheduler.daily_run_at.isoformat(),
            },
        )
        return cls(
            session_factory=sessionmaker(bind=engine, expire_on_commit=False),
            directory=directory,
            clock=clock,
            config=config,
        )

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    def create_processor(self) -> DueOrderProcessor:
        return DueOrderProcessor(
            session_factory=self._session_factory,
            directory=self._directory,
            clock=self._clock,
        )

    def create_scheduler(self) -> StandingOrderScheduler:
        scheduler_config = self._config.scheduler
        return StandingOrderScheduler(
            processor=self.create_processor(),
            clock=self._clock,
            daily_run_at=scheduler_config.daily_run_at,
            run_startup_catch_up=scheduler_config.startup_catch_up,
            max_sleep_seconds=scheduler_config.max_sleep_seconds,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def session_factory(self) -> Callable[[], Session]:
        return self._session_factory

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def config(self) -> HouseholdLedgerConfig:
        return self._config
