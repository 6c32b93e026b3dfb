"""
Module: household_kernel.selectors.balance_selector
Responsibility: Pairwise and aggregate member balances, computed from the
    transaction log on every call.
Architecture position: Kernel > Selectors.

Algorithm:
    balance_between(a, b) =
        sum(split.amount  where tx.payer == a and split.debtor == b)
      - sum(split.amount  where tx.payer == b and split.debtor == a)
    over the transactions of the household both members belong to.
    Positive means "b owes a".

Invariants enforced:
    - Antisymmetry: balance_between(a, b) == -balance_between(b, a).
    - No cached or running balance exists anywhere.  Edits and deletes are
      reflected by the next query without any bookkeeping.

Cost:
    O(transactions involving the pair) per pairwise query; all_balances
    reads the member's entries once and aggregates per counterpart.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from household_kernel.domain.directory import MemberDirectory
from household_kernel.domain.dtos import BalanceInfo
from household_kernel.exceptions import HouseholdMismatchError
from household_kernel.logging_config import get_logger
from household_kernel.models.transaction import Transaction, TransactionSplit
from household_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.balance")

ZERO = Decimal("0")


class BalanceSelector(BaseSelector[Transaction]):
    """Balance queries for household members."""

    def __init__(self, session: Session, directory: MemberDirectory):
        super().__init__(session)
        self.directory = directory

    def _shared_household(self, member_a: UUID, member_b: UUID) -> UUID:
        a = self.directory.get_member(member_a)
        b = self.directory.get_member(member_b)
        if a.household_id != b.household_id:
            raise HouseholdMismatchError(str(member_b), str(a.household_id))
        return a.household_id

    def _owed_sum(self, household_id: UUID, payer_id: UUID, debtor_id: UUID) -> Decimal:
        stmt = (
            select(TransactionSplit.amount)
            .join(Transaction, TransactionSplit.transaction_id == Transaction.id)
            .where(
                Transaction.household_id == household_id,
                Transaction.payer_id == payer_id,
                TransactionSplit.debtor_id == debtor_id,
            )
        )
        return sum(self.session.execute(stmt).scalars().all(), ZERO)

    def balance_between(self, member_a: UUID, member_b: UUID) -> Decimal:
        """
        Signed balance of ``member_a`` against ``member_b``.

        Raises:
            MemberNotFoundError: Either member unknown.
            HouseholdMismatchError: Members of different households.
        """
        household_id = self._shared_household(member_a, member_b)
        if member_a == member_b:
            return ZERO
        return self._owed_sum(household_id, member_a, member_b) - self._owed_sum(
            household_id, member_b, member_a
        )

    def all_balances(self, member_id: UUID) -> dict[UUID, Decimal]:
        """
        Balance of ``member_id`` against every other member of its household.

        Members with no shared entries appear with a zero balance.  Entries
        with members who have left the household stay in the ledger but are
        not keyed here.
        """
        member = self.directory.get_member(member_id)
        household_id = member.household_id

        balances: dict[UUID, Decimal] = {
            other.id: ZERO
            for other in self.directory.list_members(household_id)
            if other.id != member_id
        }

        stmt = (
            select(Transaction.payer_id, TransactionSplit.debtor_id, TransactionSplit.amount)
            .join(Transaction, TransactionSplit.transaction_id == Transaction.id)
            .where(
                Transaction.household_id == household_id,
                or_(
                    and_(
                        Transaction.payer_id == member_id,
                        TransactionSplit.debtor_id != member_id,
                    ),
                    and_(
                        Transaction.payer_id != member_id,
                        TransactionSplit.debtor_id == member_id,
                    ),
                ),
            )
        )
        for payer_id, debtor_id, amount in self.session.execute(stmt).all():
            if payer_id == member_id and debtor_id in balances:
                balances[debtor_id] += amount
            elif payer_id in balances:
                balances[payer_id] -= amount

        return balances

    def total_balance(self, member_id: UUID) -> Decimal:
        """Net position: positive when the household owes the member overall."""
        return sum(self.all_balances(member_id).values(), ZERO)

    def balance_views(self, member_id: UUID) -> list[BalanceInfo]:
        """Per-counterpart balances with display names, ordered by name."""
        balances = self.all_balances(member_id)
        views = []
        for other_id, amount in balances.items():
            other = self.directory.get_member(other_id)
            views.append(
                BalanceInfo(member_id=other_id, display_name=other.display_name, amount=amount)
            )
        views.sort(key=lambda v: v.display_name)
        logger.debug(
            "balance_views_computed",
            extra={"member_id": str(member_id), "counterparts": len(views)},
        )
        return views
