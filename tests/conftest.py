"""
Pytest fixtures for the household ledger test suite.

Provides:
- In-memory SQLite sessions for service and selector tests
- A file-backed SQLite session factory for real cross-thread concurrency
- A deterministic clock and an in-memory member directory with a small
  household (alice, bob, carol) plus an outsider in another household
- Structured log capture

Environment Variables:
- HOUSEHOLD_LEDGER_TEST_DATABASE_URL: PostgreSQL URL for tests marked
  ``postgres``.  They are skipped when it is not set.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from household_kernel.db.base import Base
from household_kernel.db.engine import build_engine
from household_kernel.domain.clock import DeterministicClock
from household_kernel.domain.directory import InMemoryMemberDirectory, MemberInfo
from household_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from household_kernel.selectors.balance_selector import BalanceSelector
from household_kernel.selectors.transaction_selector import TransactionSelector
from household_kernel.services.ledger_service import LedgerService
from household_kernel.services.standing_order_service import StandingOrderService

import household_kernel.models  # noqa: F401  (registers tables)

POSTGRES_URL_ENV = "HOUSEHOLD_LEDGER_TEST_DATABASE_URL"

# Default "today" for service tests
TODAY = date(2024, 3, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture household_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.create_transaction(...)
            logs = captured_logs()
            assert any(r["message"] == "transaction_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("household_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


# =============================================================================
# Members
# =============================================================================


@dataclass(frozen=True)
class Household:
    id: object
    alice: MemberInfo
    bob: MemberInfo
    carol: MemberInfo
    outsider: MemberInfo


@pytest.fixture
def directory() -> InMemoryMemberDirectory:
    return InMemoryMemberDirectory()


@pytest.fixture
def household(directory) -> Household:
    household_id = directory.add_household()
    other_household = directory.add_household()
    return Household(
        id=household_id,
        alice=directory.add_member("Alice", household_id),
        bob=directory.add_member("Bob", household_id),
        carol=directory.add_member("Carol", household_id),
        outsider=directory.add_member("Olga", other_household),
    )


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(
        fixed_time=datetime(TODAY.year, TODAY.month, TODAY.day, 12, 0, 0, tzinfo=timezone.utc),
    )


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    s = session_factory()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite so several threads get separate connections."""
    eng = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}", busy_timeout=30.0)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def file_session_factory(file_engine):
    return sessionmaker(bind=file_engine, expire_on_commit=False)


@pytest.fixture
def postgres_session_factory():
    url = os.environ.get(POSTGRES_URL_ENV)
    if not url:
        pytest.skip(f"{POSTGRES_URL_ENV} not set")
    eng = build_engine(url)
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    yield sessionmaker(bind=eng, expire_on_commit=False)
    Base.metadata.drop_all(eng)
    eng.dispose()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def ledger(session, directory, clock) -> LedgerService:
    return LedgerService(session, directory, clock)


@pytest.fixture
def registry(session, directory, clock) -> StandingOrderService:
    return StandingOrderService(session, directory, clock)


@pytest.fixture
def balances(session, directory) -> BalanceSelector:
    return BalanceSelector(session, directory)


@pytest.fixture
def transactions(session) -> TransactionSelector:
    return TransactionSelector(session)
