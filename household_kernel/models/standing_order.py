"""
Module: household_kernel.models.standing_order
Responsibility: ORM persistence for recurring obligations (StandingOrder).
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain layer only.

Invariants enforced:
    - Debtor shares are stored as one encoded column and only ever read or
      written together with the order.  ``DebtorSharesType`` converts at the
      column boundary, so the ORM attribute is always a tuple of DebtorShare.
    - ``next_execution_date`` is the claim column for the due pass: it is
      only changed through a compare-and-swap UPDATE by the processor, or by
      the registry inside the creator's own unit of work.
    - Orders are deactivated, never deleted.

Failure modes:
    - DebtorShareDecodeError when a stored payload is corrupt.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from household_kernel.db.base import TrackedBase, UUIDString
from household_kernel.domain.cadence import StandingOrderFrequency
from household_kernel.domain.dtos import StandingOrderInfo
from household_kernel.domain.values import (
    DebtorShare,
    decode_debtor_shares,
    encode_debtor_shares,
)


class DebtorSharesType(TypeDecorator):
    """Tuple of DebtorShare stored as a JSON text column."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return encode_debtor_shares(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return ()
        return decode_debtor_shares(value)


class StandingOrder(TrackedBase):
    """
    Template that materializes a ledger entry on every due date.

    Contract:
        ``creditor_id`` is the payer of every generated transaction and
        ``created_by_id`` its recorder; only the creator may edit.
        ``monthly_day`` / ``monthly_last_day`` apply to MONTHLY orders only
        and are mutually exclusive.
    """

    __tablename__ = "standing_orders"

    __table_args__ = (
        Index("idx_standing_order_household", "household_id"),
        Index("idx_standing_order_due", "is_active", "next_execution_date"),
    )

    household_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    creditor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    frequency: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    next_execution_date: Mapped[date] = mapped_column(nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # MONTHLY only: preferred day 1..31
    monthly_day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # MONTHLY only: execute on the last day of the month
    monthly_last_day: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    debtor_shares: Mapped[tuple[DebtorShare, ...]] = mapped_column(
        DebtorSharesType(),
        nullable=False,
        default=(),
    )

    @property
    def cadence(self) -> StandingOrderFrequency:
        return StandingOrderFrequency(self.frequency)

    def to_dto(self) -> StandingOrderInfo:
        return StandingOrderInfo(
            id=self.id,
            household_id=self.household_id,
            creditor_id=self.creditor_id,
            created_by_id=self.created_by_id,
            total_amount=self.total_amount,
            description=self.description,
            frequency=self.cadence,
            next_execution_date=self.next_execution_date,
            is_active=self.is_active,
            monthly_day=self.monthly_day,
            monthly_last_day=self.monthly_last_day,
            debtor_shares=tuple(self.debtor_shares),
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<StandingOrder {self.id} {self.frequency} "
            f"next={self.next_execution_date} active={self.is_active}>"
        )
