"""
Split computation for ledger entries.

Pure functions: given debtor shares and a total amount, validate the shares
and derive one split line per debtor.

Rules:
    - At least one debtor, and a strictly positive total.
    - Either every share carries a percentage or none does.
    - Each explicit percentage lies in 0..100, and together they sum to 100
      within PERCENTAGE_TOLERANCE.
    - No percentages: each debtor gets ``100 / N`` exactly as Decimal division
      yields it.  The residual is not redistributed.
    - ``amount = percentage / 100 * total`` for every line, always derived.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from household_kernel.db.types import HUNDRED, PERCENTAGE_TOLERANCE, to_decimal
from household_kernel.domain.values import DebtorShare
from household_kernel.exceptions import (
    EmptyDebtorListError,
    NonPositiveAmountError,
    PercentageCountMismatchError,
    PercentageRangeError,
    PercentageSumError,
)


@dataclass(frozen=True)
class SplitLine:
    """One derived split: who owes, which percentage, which amount."""

    debtor_id: UUID
    percentage: Decimal
    amount: Decimal


def validate_amount(total_amount: Decimal | int | float | str) -> Decimal:
    """
    Coerce and check a ledger amount.

    Raises:
        MalformedNumberError: Not a finite number.
        NonPositiveAmountError: Zero or negative.
    """
    amount = to_decimal(total_amount)
    if amount <= 0:
        raise NonPositiveAmountError(str(amount))
    return amount


def resolve_percentages(shares: Sequence[DebtorShare]) -> list[Decimal]:
    """
    Percentage per share, in share order.

    Raises:
        EmptyDebtorListError: No shares.
        PercentageCountMismatchError: Some shares have a percentage, some don't.
        PercentageRangeError: An explicit percentage below 0 or above 100.
        PercentageSumError: Explicit percentages off 100 by more than tolerance.
    """
    if not shares:
        raise EmptyDebtorListError()

    explicit = [s.percentage for s in shares if s.percentage is not None]
    if not explicit:
        equal = HUNDRED / Decimal(len(shares))
        return [equal] * len(shares)

    if len(explicit) != len(shares):
        raise PercentageCountMismatchError(len(shares), len(explicit))

    for pct in explicit:
        if pct < 0 or pct > HUNDRED:
            raise PercentageRangeError(str(pct))

    total = sum(explicit, Decimal(0))
    if abs(total - HUNDRED) > PERCENTAGE_TOLERANCE:
        raise PercentageSumError(str(total), str(PERCENTAGE_TOLERANCE))
    return explicit


def build_split_lines(
    shares: Sequence[DebtorShare],
    total_amount: Decimal | int | float | str,
) -> tuple[Decimal, tuple[SplitLine, ...]]:
    """
    Validate inputs and derive split lines.

    Returns:
        (validated total, split lines in share order)
    """
    if not shares:
        raise EmptyDebtorListError()
    amount = validate_amount(total_amount)
    percentages = resolve_percentages(shares)
    lines = tuple(
        SplitLine(
            debtor_id=share.member_id,
            percentage=pct,
            amount=pct / HUNDRED * amount,
        )
        for share, pct in zip(shares, percentages)
    )
    return amount, lines
