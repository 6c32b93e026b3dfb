"""
Tests for household_kernel.services.ledger_service.

Covers create/edit/delete with split invariants, recorder-only edit rights,
household scoping, settle and transfer_credit, and balance antisymmetry
after arbitrary sequences of writes.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from household_kernel.domain.values import DebtorShare, equal_shares, shares_from_percentages
from household_kernel.exceptions import (
    AuthorizationError,
    EmptyDebtorListError,
    HouseholdMismatchError,
    MalformedNumberError,
    MemberNotFoundError,
    NonPositiveAmountError,
    PercentageCountMismatchError,
    PercentageRangeError,
    PercentageSumError,
    TransactionEditNotAllowedError,
    TransactionNotFoundError,
    ValidationError,
)
from household_kernel.models.transaction import Transaction, TransactionSplit

TOLERANCE = Decimal("0.01")


def _close(a: Decimal, b: Decimal | int | str, tolerance: Decimal = Decimal("1e-6")) -> bool:
    return abs(Decimal(a) - Decimal(b)) < tolerance


# =============================================================================
# Create
# =============================================================================


class TestCreateTransaction:

    def test_sixty_forty_split(self, ledger, balances, household):
        alice, bob, carol = household.alice, household.bob, household.carol

        info = ledger.create_transaction(
            recorded_by=alice.id,
            payer=alice.id,
            debtor_shares=shares_from_percentages([bob.id, carol.id], [60, 40]),
            total_amount=100,
            description="Groceries",
        )

        assert [(s.debtor_id, s.percentage) for s in info.splits] == [
            (bob.id, Decimal("60")),
            (carol.id, Decimal("40")),
        ]
        assert _close(balances.balance_between(alice.id, bob.id), 60)
        assert _close(balances.balance_between(alice.id, carol.id), 40)

    def test_scoped_to_recorder_household(self, ledger, household):
        info = ledger.create_transaction(
            household.bob.id, household.alice.id,
            equal_shares([household.carol.id]), "12.50", "Pizza",
        )
        assert info.household_id == household.id
        assert info.recorded_by_id == household.bob.id
        assert info.payer_id == household.alice.id

    def test_equal_split_three_ways(self, ledger, session, household):
        info = ledger.create_transaction(
            household.alice.id, household.alice.id,
            equal_shares([household.alice.id, household.bob.id, household.carol.id]),
            100, "Internet",
        )
        session.expire_all()
        stored = session.get(Transaction, info.id)
        for split in stored.splits:
            assert _close(split.percentage, Decimal(100) / 3)
        assert abs(sum(s.amount for s in stored.splits) - Decimal(100)) <= TOLERANCE

    def test_splits_persist_in_order(self, ledger, session, household):
        order = [household.carol.id, household.alice.id, household.bob.id]
        info = ledger.create_transaction(
            household.alice.id, household.alice.id,
            shares_from_percentages(order, [10, 20, 70]), 50,
        )
        session.expire_all()
        assert [s.debtor_id for s in session.get(Transaction, info.id).splits] == order

    @pytest.mark.parametrize(
        "shares_factory,amount,error",
        [
            (lambda h: [], 10, EmptyDebtorListError),
            (lambda h: equal_shares([h.bob.id]), 0, NonPositiveAmountError),
            (lambda h: equal_shares([h.bob.id]), -3, NonPositiveAmountError),
            (
                lambda h: shares_from_percentages([h.bob.id, h.carol.id], [60, 30]),
                10,
                PercentageSumError,
            ),
            (
                lambda h: [DebtorShare(h.bob.id, Decimal(100)), DebtorShare(h.carol.id)],
                10,
                PercentageCountMismatchError,
            ),
            (
                lambda h: shares_from_percentages([h.bob.id, h.carol.id], [150, -50]),
                100,
                PercentageRangeError,
            ),
            (lambda h: equal_shares([h.bob.id]), "abc", MalformedNumberError),
            (lambda h: equal_shares([h.bob.id]), "Infinity", MalformedNumberError),
            (lambda h: equal_shares([h.bob.id]), float("nan"), MalformedNumberError),
        ],
    )
    def test_validation_errors_have_no_effect(
        self, ledger, session, household, shares_factory, amount, error
    ):
        with pytest.raises(error) as exc_info:
            ledger.create_transaction(
                household.alice.id, household.alice.id, shares_factory(household), amount
            )
        assert isinstance(exc_info.value, ValidationError)
        assert session.query(Transaction).count() == 0
        assert session.query(TransactionSplit).count() == 0

    def test_debtor_from_other_household_rejected(self, ledger, session, household):
        with pytest.raises(HouseholdMismatchError):
            ledger.create_transaction(
                household.alice.id, household.alice.id,
                equal_shares([household.bob.id, household.outsider.id]), 10,
            )
        assert session.query(Transaction).count() == 0

    def test_unknown_member_rejected(self, ledger, household):
        with pytest.raises(MemberNotFoundError):
            ledger.create_transaction(
                household.alice.id, household.alice.id, equal_shares([uuid4()]), 10
            )

    def test_logs_creation(self, ledger, household, captured_logs):
        info = ledger.create_transaction(
            household.alice.id, household.alice.id, equal_shares([household.bob.id]), 10
        )
        records = [r for r in captured_logs() if r["message"] == "transaction_created"]
        assert records
        assert records[-1]["transaction_id"] == str(info.id)
        assert records[-1]["debtor_count"] == 1


# =============================================================================
# Edit / delete
# =============================================================================


class TestEditAndDelete:

    @pytest.fixture
    def entry(self, ledger, household):
        return ledger.create_transaction(
            household.alice.id, household.alice.id,
            shares_from_percentages([household.bob.id, household.carol.id], [50, 50]),
            80, "Dinner",
        )

    def test_recorder_edit_replaces_all_splits(self, ledger, session, household, entry):
        edited = ledger.edit_transaction(
            entry.id, household.alice.id,
            new_payer=household.bob.id,
            new_shares=shares_from_percentages([household.alice.id], [100]),
            new_amount=30,
            new_description="Dinner (corrected)",
        )
        session.expire_all()
        stored = session.get(Transaction, entry.id)

        assert edited.payer_id == household.bob.id
        assert stored.description == "Dinner (corrected)"
        assert _close(stored.total_amount, 30)
        assert [(s.debtor_id, s.amount) for s in stored.splits] == [(household.alice.id, Decimal(30))]
        assert session.query(TransactionSplit).count() == 1

    def test_edit_recomputes_amounts_for_new_total(self, ledger, session, household, entry):
        ledger.edit_transaction(
            entry.id, household.alice.id, household.alice.id,
            shares_from_percentages([household.bob.id, household.carol.id], [50, 50]),
            200, "Dinner",
        )
        session.expire_all()
        assert [s.amount for s in session.get(Transaction, entry.id).splits] == [
            Decimal(100), Decimal(100),
        ]

    def test_non_recorder_edit_fails_and_leaves_entry_unchanged(
        self, ledger, session, household, entry
    ):
        with pytest.raises(TransactionEditNotAllowedError) as exc_info:
            ledger.edit_transaction(
                entry.id, household.bob.id, household.bob.id,
                equal_shares([household.alice.id]), 1000, "Hijacked",
            )
        assert isinstance(exc_info.value, AuthorizationError)
        assert exc_info.value.recorded_by == str(household.alice.id)

        session.expire_all()
        stored = session.get(Transaction, entry.id)
        assert stored.description == "Dinner"
        assert stored.payer_id == household.alice.id
        assert _close(stored.total_amount, 80)
        assert [s.debtor_id for s in stored.splits] == [household.bob.id, household.carol.id]

    def test_invalid_edit_leaves_entry_unchanged(self, ledger, session, household, entry):
        with pytest.raises(PercentageSumError):
            ledger.edit_transaction(
                entry.id, household.alice.id, household.alice.id,
                shares_from_percentages([household.bob.id], [90]), 80, "Dinner",
            )
        session.expire_all()
        assert len(session.get(Transaction, entry.id).splits) == 2

    def test_recorder_delete_cascades_splits(self, ledger, session, household, entry):
        ledger.delete_transaction(entry.id, household.alice.id)
        assert session.get(Transaction, entry.id) is None
        assert session.query(TransactionSplit).count() == 0

    def test_non_recorder_delete_fails(self, ledger, session, household, entry):
        with pytest.raises(TransactionEditNotAllowedError):
            ledger.delete_transaction(entry.id, household.carol.id)
        assert session.get(Transaction, entry.id) is not None

    def test_payer_who_is_not_recorder_cannot_edit(self, ledger, household):
        info = ledger.create_transaction(
            household.carol.id, household.bob.id, equal_shares([household.alice.id]), 10
        )
        with pytest.raises(TransactionEditNotAllowedError):
            ledger.delete_transaction(info.id, household.bob.id)

    def test_unknown_transaction(self, ledger, household):
        with pytest.raises(TransactionNotFoundError):
            ledger.delete_transaction(uuid4(), household.alice.id)


# =============================================================================
# Settlement helpers
# =============================================================================


class TestSettlement:

    def test_settle_offsets_debt(self, ledger, balances, household):
        alice, bob = household.alice, household.bob
        ledger.create_transaction(alice.id, alice.id, equal_shares([bob.id]), 25)
        assert _close(balances.balance_between(bob.id, alice.id), -25)

        info = ledger.settle(bob.id, alice.id, 25, payment_method="PayPal")

        assert info.description == "Settlement via PayPal"
        assert info.payer_id == bob.id
        assert info.debtor_ids == (alice.id,)
        assert info.recorded_by_id == bob.id
        assert _close(balances.balance_between(bob.id, alice.id), 0)

    def test_settle_without_method(self, ledger, household):
        info = ledger.settle(household.bob.id, household.alice.id, "5.00")
        assert info.description == "Settlement"

    def test_settle_recorded_by_someone_else(self, ledger, household):
        info = ledger.settle(
            household.bob.id, household.alice.id, 5, recorded_by=household.alice.id
        )
        assert info.recorded_by_id == household.alice.id

    def test_settle_rejects_non_positive(self, ledger, household):
        with pytest.raises(NonPositiveAmountError):
            ledger.settle(household.bob.id, household.alice.id, 0)

    def test_settle_across_households_rejected(self, ledger, household):
        with pytest.raises(HouseholdMismatchError):
            ledger.settle(household.bob.id, household.outsider.id, 5)

    def test_transfer_credit(self, ledger, balances, household):
        alice, bob, carol = household.alice, household.bob, household.carol
        # bob owes alice 30; alice owes carol 30
        ledger.create_transaction(alice.id, alice.id, equal_shares([bob.id]), 30)
        ledger.create_transaction(carol.id, carol.id, equal_shares([alice.id]), 30)

        settled, used = ledger.transfer_credit(
            current=alice.id, credit_source=bob.id, debt_target=carol.id, amount=30
        )

        assert settled.payer_id == alice.id and settled.debtor_ids == (carol.id,)
        assert used.payer_id == bob.id and used.debtor_ids == (alice.id,)
        assert settled.recorded_by_id == used.recorded_by_id == alice.id
        assert settled.description == "Settlement via Credit Transfer (settled debt)"
        assert used.description == "Settlement via Credit Transfer (used credit)"
        assert _close(balances.balance_between(alice.id, bob.id), 0)
        assert _close(balances.balance_between(alice.id, carol.id), 0)

    def test_transfer_credit_rejects_outsider(self, ledger, session, household):
        with pytest.raises(HouseholdMismatchError):
            ledger.transfer_credit(household.alice.id, household.outsider.id, household.bob.id, 5)
        assert session.query(Transaction).count() == 0


# =============================================================================
# Antisymmetry
# =============================================================================


class TestAntisymmetry:

    def _assert_antisymmetric(self, balances, members):
        for a in members:
            for b in members:
                assert balances.balance_between(a.id, b.id) == -balances.balance_between(b.id, a.id)

    def test_after_create_edit_delete_sequence(self, ledger, balances, household):
        alice, bob, carol = household.alice, household.bob, household.carol
        members = [alice, bob, carol]

        t1 = ledger.create_transaction(alice.id, alice.id, equal_shares([alice.id, bob.id, carol.id]), 90)
        self._assert_antisymmetric(balances, members)

        t2 = ledger.create_transaction(
            bob.id, bob.id, shares_from_percentages([alice.id, carol.id], ["33.3", "66.7"]), "47.11"
        )
        self._assert_antisymmetric(balances, members)

        ledger.edit_transaction(
            t1.id, alice.id, carol.id, shares_from_percentages([alice.id, bob.id], [25, 75]), 12
        )
        self._assert_antisymmetric(balances, members)

        ledger.delete_transaction(t2.id, bob.id)
        self._assert_antisymmetric(balances, members)

        ledger.settle(bob.id, carol.id, 9)
        ledger.transfer_credit(carol.id, bob.id, alice.id, 1)
        self._assert_antisymmetric(balances, members)
