"""
Immutable DTOs returned by kernel services and selectors.

Callers never receive ORM rows; every public read or write returns one of
these frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from household_kernel.db.types import AMOUNT_TOLERANCE
from household_kernel.domain.cadence import StandingOrderFrequency
from household_kernel.domain.values import DebtorShare


@dataclass(frozen=True)
class SplitInfo:
    debtor_id: UUID
    percentage: Decimal
    amount: Decimal


@dataclass(frozen=True)
class TransactionInfo:
    """A ledger entry with its splits in creation order."""

    id: UUID
    household_id: UUID
    payer_id: UUID
    recorded_by_id: UUID
    total_amount: Decimal
    description: str
    timestamp: datetime
    splits: tuple[SplitInfo, ...]

    @property
    def debtor_ids(self) -> tuple[UUID, ...]:
        return tuple(s.debtor_id for s in self.splits)

    def split_for(self, debtor_id: UUID) -> SplitInfo | None:
        for split in self.splits:
            if split.debtor_id == debtor_id:
                return split
        return None


@dataclass(frozen=True)
class StandingOrderInfo:
    """A recurring obligation template."""

    id: UUID
    household_id: UUID
    creditor_id: UUID
    created_by_id: UUID
    total_amount: Decimal
    description: str
    frequency: StandingOrderFrequency
    next_execution_date: date
    is_active: bool
    monthly_day: int | None
    monthly_last_day: bool
    debtor_shares: tuple[DebtorShare, ...]
    created_at: datetime | None = None


@dataclass(frozen=True)
class BalanceInfo:
    """
    Balance of the viewing member against one other member.

    Positive: the other member owes the viewer.  Negative: the viewer owes.
    """

    member_id: UUID
    display_name: str
    amount: Decimal

    @property
    def is_settled(self) -> bool:
        return abs(self.amount) < AMOUNT_TOLERANCE
