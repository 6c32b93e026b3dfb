"""
Configuration Loader (``household_config.loader``).

Responsibility
--------------
Reads a YAML file (optional) and environment overrides, and parses them
into the frozen ``household_config.schema`` dataclasses.  The runtime entry
point is ``household_config.get_active_config()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages.
* Unknown top-level sections are rejected so typos do not pass silently.
* Environment variables win over the file; the file wins over defaults.

Failure modes
-------------
* Missing YAML file (explicit path)  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad values (run time, log level, booleans)  -> ``ValueError``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import time
from pathlib import Path
from typing import Any, Mapping
from uuid import UUID

import yaml

from household_config.schema import (
    DatabaseConfig,
    HouseholdLedgerConfig,
    LoggingConfig,
    SchedulerConfig,
)
from household_kernel.domain.directory import InMemoryMemberDirectory

ENV_DATABASE_URL = "HOUSEHOLD_LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "HOUSEHOLD_LEDGER_LOG_LEVEL"
ENV_DAILY_RUN_AT = "HOUSEHOLD_LEDGER_DAILY_RUN_AT"

_SECTIONS = frozenset({"database", "scheduler", "logging"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_time(value: Any) -> time:
    """
    Parse a wall-clock time ("HH:MM" string, or minutes as YAML sexagesimal int).

    YAML 1.1 reads an unquoted ``12:30`` as the integer 750; that form is
    accepted too.
    """
    if isinstance(value, time):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, 60)
        return time(hours, minutes)
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) in (2, 3):
            try:
                return time(*(int(p) for p in parts))
            except ValueError as exc:
                raise ValueError(f"Invalid time {value!r}: {exc}") from exc
    raise ValueError(f"Cannot parse time from {value!r}, expected HH:MM")


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Cannot parse boolean from {value!r}")


def parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level {value!r}")
    return level


def parse_database(data: Mapping[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=str(data.get("url", defaults.url)),
        echo=parse_bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
        pool_timeout=int(data.get("pool_timeout", defaults.pool_timeout)),
        pool_recycle=int(data.get("pool_recycle", defaults.pool_recycle)),
        busy_timeout=float(data.get("busy_timeout", defaults.busy_timeout)),
    )


def parse_scheduler(data: Mapping[str, Any]) -> SchedulerConfig:
    defaults = SchedulerConfig()
    return SchedulerConfig(
        daily_run_at=parse_time(data.get("daily_run_at", defaults.daily_run_at)),
        startup_catch_up=parse_bool(data.get("startup_catch_up", defaults.startup_catch_up)),
        max_sleep_seconds=float(data.get("max_sleep_seconds", defaults.max_sleep_seconds)),
        timezone=data.get("timezone", defaults.timezone),
    )


def parse_logging(data: Mapping[str, Any]) -> LoggingConfig:
    return LoggingConfig(level=parse_log_level(data.get("level", LoggingConfig().level)))


def parse_config(data: Mapping[str, Any], source: str | None = None) -> HouseholdLedgerConfig:
    """
    Build the root config from a parsed YAML mapping.

    Raises:
        ValueError: unknown section or bad value.
    """
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration section(s): {sorted(unknown)}")
    return HouseholdLedgerConfig(
        database=parse_database(data.get("database") or {}),
        scheduler=parse_scheduler(data.get("scheduler") or {}),
        logging=parse_logging(data.get("logging") or {}),
        source=source,
    )


def apply_env_overrides(
    config: HouseholdLedgerConfig,
    environ: Mapping[str, str],
) -> HouseholdLedgerConfig:
    """Return a copy of ``config`` with environment overrides applied."""
    if environ.get(ENV_DATABASE_URL):
        config = replace(
            config, database=replace(config.database, url=environ[ENV_DATABASE_URL])
        )
    if environ.get(ENV_LOG_LEVEL):
        config = replace(
            config, logging=LoggingConfig(level=parse_log_level(environ[ENV_LOG_LEVEL]))
        )
    if environ.get(ENV_DAILY_RUN_AT):
        config = replace(
            config,
            scheduler=replace(
                config.scheduler, daily_run_at=parse_time(environ[ENV_DAILY_RUN_AT])
            ),
        )
    return config


def parse_member_directory(data: Mapping[str, Any]) -> InMemoryMemberDirectory:
    """
    Build a directory from a roster mapping::

        households:
          - id: 6f0c...
            members:
              - id: 1b2e...
                name: Alice

    Raises:
        KeyError: missing ``id`` / ``members`` / ``name``.
        ValueError: malformed UUID.
    """
    directory = InMemoryMemberDirectory()
    for household in data.get("households") or []:
        household_id = directory.add_household(UUID(str(household["id"])))
        for member in household["members"]:
            directory.add_member(
                display_name=str(member["name"]),
                household_id=household_id,
                member_id=UUID(str(member["id"])),
            )
    return directory


def load_member_directory(path: Path) -> InMemoryMemberDirectory:
    """Load a roster YAML file (see ``parse_member_directory``)."""
    return parse_member_directory(load_yaml_file(path))
