"""
TransactionSelector -- read access to ledger entries.

All queries return TransactionInfo DTOs, newest first where a list is
returned.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select

from household_kernel.domain.dtos import TransactionInfo
from household_kernel.exceptions import TransactionNotFoundError
from household_kernel.models.transaction import Transaction, TransactionSplit
from household_kernel.selectors.base import BaseSelector


class TransactionSelector(BaseSelector[Transaction]):
    """Lookups by id, by household, and by participating member."""

    def get_transaction(self, transaction_id: UUID) -> TransactionInfo:
        """
        Raises:
            TransactionNotFoundError: Unknown id.
        """
        transaction = self.session.get(Transaction, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(str(transaction_id))
        return transaction.to_dto()

    def find_transaction(self, transaction_id: UUID) -> TransactionInfo | None:
        transaction = self.session.get(Transaction, transaction_id)
        return transaction.to_dto() if transaction else None

    def list_household_transactions(self, household_id: UUID) -> list[TransactionInfo]:
        stmt = (
            select(Transaction)
            .where(Transaction.household_id == household_id)
            .order_by(Transaction.timestamp.desc(), Transaction.created_at.desc())
        )
        return [t.to_dto() for t in self.session.execute(stmt).scalars().all()]

    def list_member_transactions(self, member_id: UUID) -> list[TransactionInfo]:
        """
        Entries the member paid for or owes a share of, newest first.
        """
        owes = select(TransactionSplit.transaction_id).where(
            TransactionSplit.debtor_id == member_id
        )
        stmt = (
            select(Transaction)
            .where(
                or_(
                    Transaction.payer_id == member_id,
                    Transaction.id.in_(owes),
                )
            )
            .order_by(Transaction.timestamp.desc(), Transaction.created_at.desc())
        )
        return [t.to_dto() for t in self.session.execute(stmt).scalars().all()]
