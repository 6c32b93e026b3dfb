"""
HouseholdLedgerConfig schema.

Frozen dataclasses describing everything the host process needs to run the
ledger and the standing-order scheduler.  YAML files and environment
variables are parsed into these types by ``household_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time

DEFAULT_DATABASE_URL = "sqlite:///household_ledger.db"
DEFAULT_DAILY_RUN_AT = time(12, 0)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Engine options passed through to ``init_engine_from_url``."""

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    busy_timeout: float = 15.0

    def engine_options(self) -> dict:
        return {
            "echo": self.echo,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
            "busy_timeout": self.busy_timeout,
        }


@dataclass(frozen=True)
class SchedulerConfig:
    """When the daily due pass runs, and whether to catch up on startup."""

    daily_run_at: time = DEFAULT_DAILY_RUN_AT
    startup_catch_up: bool = True
    max_sleep_seconds: float = 3600.0
    # IANA zone defining "today"; None means the host's local zone
    timezone: str | None = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class HouseholdLedgerConfig:
    """Root configuration object."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: str | None = None  # file the values came from, if any
