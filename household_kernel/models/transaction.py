"""
Module: household_kernel.models.transaction
Responsibility: ORM persistence for ledger entries (Transaction) and the
    debtor splits they own (TransactionSplit).
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain DTOs only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - A Transaction exclusively owns its splits: cascade="all, delete-orphan"
      on the ORM side, ON DELETE CASCADE on the foreign key.  Splits are
      never created, queried or deleted on their own.
    - Split order is stable (``position``), so an entry reads back exactly as
      it was recorded.
    - split.amount is always derived from percentage and total_amount by the
      ledger service; this model never computes it.

Failure modes:
    - IntegrityError if a split references a missing transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_kernel.db.base import TrackedBase, UUIDString
from household_kernel.domain.dtos import SplitInfo, TransactionInfo


class Transaction(TrackedBase):
    """
    One economic event: ``payer`` fronted ``total_amount`` for the debtors.

    Contract:
        Only ``recorded_by_id`` may edit or delete the entry.  An edit
        replaces payer, amount, description and the complete split list.
    """

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transaction_household", "household_id"),
        Index("idx_transaction_payer", "payer_id"),
        Index("idx_transaction_timestamp", "timestamp"),
    )

    household_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # Member who fronted the money
    payer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # Member who entered the transaction; sole holder of edit rights
    recorded_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    splits: Mapped[list["TransactionSplit"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionSplit.position",
        lazy="selectin",
    )

    def to_dto(self) -> TransactionInfo:
        return TransactionInfo(
            id=self.id,
            household_id=self.household_id,
            payer_id=self.payer_id,
            recorded_by_id=self.recorded_by_id,
            total_amount=self.total_amount,
            description=self.description,
            timestamp=self.timestamp,
            splits=tuple(split.to_dto() for split in self.splits),
        )

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id} payer={self.payer_id} "
            f"amount={self.total_amount} splits={len(self.splits)}>"
        )


class TransactionSplit(TrackedBase):
    """One debtor's share of a Transaction."""

    __tablename__ = "transaction_splits"

    __table_args__ = (
        Index("idx_split_transaction", "transaction_id"),
        Index("idx_split_debtor", "debtor_id"),
    )

    transaction_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
    )

    debtor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # 0..100
    percentage: Mapped[Decimal] = mapped_column(nullable=False)

    # percentage / 100 * transaction.total_amount
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    transaction: Mapped[Transaction] = relationship(back_populates="splits")

    def to_dto(self) -> SplitInfo:
        return SplitInfo(
            debtor_id=self.debtor_id,
            percentage=self.percentage,
            amount=self.amount,
        )
