"""
Tests for household_kernel.db.engine -- module-level engine and unit of work.
"""

import pytest
from sqlalchemy import inspect

from household_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    session_scope,
)
from household_kernel.domain.values import equal_shares
from household_kernel.exceptions import NonPositiveAmountError
from household_kernel.models.transaction import Transaction
from household_kernel.services.ledger_service import LedgerService


@pytest.fixture(autouse=True)
def _fresh_engine():
    reset_engine()
    yield
    reset_engine()


class TestModuleEngine:

    def test_accessors_require_initialization(self):
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_init_and_create_tables(self):
        engine = init_engine_from_url("sqlite://")
        create_tables()

        assert get_engine() is engine
        assert {"transactions", "transaction_splits", "standing_orders"} <= set(
            inspect(engine).get_table_names()
        )
        assert not is_postgres()

    def test_drop_tables(self):
        engine = build_engine("sqlite://")
        create_tables(engine)
        drop_tables(engine)
        assert inspect(engine).get_table_names() == []

    def test_reinit_replaces_engine(self):
        first = init_engine_from_url("sqlite://")
        second = init_engine_from_url("sqlite://")
        assert get_engine() is second
        assert first is not second


class TestSessionScope:

    @pytest.fixture
    def ready(self):
        init_engine_from_url("sqlite://")
        create_tables()

    def test_commits_on_success(self, ready, directory, clock, household):
        with session_scope() as session:
            LedgerService(session, directory, clock).create_transaction(
                household.alice.id, household.alice.id, equal_shares([household.bob.id]), 10
            )

        with session_scope() as session:
            assert session.query(Transaction).count() == 1

    def test_rolls_back_and_reraises(self, ready, directory, clock, household):
        with pytest.raises(NonPositiveAmountError):
            with session_scope() as session:
                ledger = LedgerService(session, directory, clock)
                ledger.create_transaction(
                    household.alice.id, household.alice.id, equal_shares([household.bob.id]), 10
                )
                ledger.create_transaction(
                    household.alice.id, household.alice.id, equal_shares([household.bob.id]), 0
                )

        with session_scope() as session:
            assert session.query(Transaction).count() == 0
