"""
household_config -- runtime configuration for the household ledger host.

The ONLY public entry point is ``get_active_config()``.  No other component
reads configuration files or environment variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from household_config.loader import apply_env_overrides, load_yaml_file, parse_config
from household_config.schema import (
    DatabaseConfig,
    HouseholdLedgerConfig,
    LoggingConfig,
    SchedulerConfig,
)

__all__ = [
    "get_active_config",
    "HouseholdLedgerConfig",
    "DatabaseConfig",
    "SchedulerConfig",
    "LoggingConfig",
]

_logger = logging.getLogger("household_kernel.config")


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> HouseholdLedgerConfig:
    """Load the effective configuration.

    Args:
        path: YAML file.  None means defaults plus environment only.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        FileNotFoundError: ``path`` given but missing.
        ValueError: invalid values.
    """
    env = os.environ if environ is None else environ
    if path is not None:
        config = parse_config(load_yaml_file(Path(path)), source=str(path))
    else:
        config = HouseholdLedgerConfig()
    config = apply_env_overrides(config, env)

    _logger.info(
        "config_loaded",
        extra={
            "source": config.source,
            "dialect": config.database.url.split(":", 1)[0],
            "daily_run_at": config.scheduler.daily_run_at.isoformat(),
            "log_level": config.logging.level,
        },
    )
    return config
