"""
Value objects for ledger entries and standing orders.

DebtorShare is the in-memory form of "who owes which part".  Standing orders
persist a list of them as one JSON value; ``encode_debtor_shares`` and
``decode_debtor_shares`` are the only functions that see that encoding, and
they are called from the ORM column type only.

Wire shape (internal, not a contract):
    [{"memberId": "<uuid>", "percentage": "60"}, ...]
    ``percentage`` is a decimal string, or null for an equal split.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Sequence
from uuid import UUID

from household_kernel.db.types import to_decimal
from household_kernel.exceptions import (
    DebtorShareDecodeError,
    MalformedNumberError,
    PercentageCountMismatchError,
)


@dataclass(frozen=True)
class DebtorShare:
    """
    One debtor's part of an expense.

    ``percentage`` of None means "split equally with the other debtors".
    """

    member_id: UUID
    percentage: Decimal | None = None

    def __post_init__(self) -> None:
        if self.percentage is not None:
            object.__setattr__(self, "percentage", to_decimal(self.percentage))


def equal_shares(member_ids: Iterable[UUID]) -> tuple[DebtorShare, ...]:
    """Shares with no explicit percentage (equal split)."""
    return tuple(DebtorShare(member_id=m) for m in member_ids)


def shares_from_percentages(
    member_ids: Sequence[UUID],
    percentages: Sequence[Decimal | int | float | str] | None = None,
) -> tuple[DebtorShare, ...]:
    """
    Pair parallel debtor-id and percentage lists into shares.

    An empty or missing ``percentages`` means an equal split.

    Raises:
        PercentageCountMismatchError: Both lists given with different lengths.
    """
    if not percentages:
        return equal_shares(member_ids)
    if len(percentages) != len(member_ids):
        raise PercentageCountMismatchError(len(member_ids), len(percentages))
    return tuple(
        DebtorShare(member_id=member_id, percentage=pct)
        for member_id, pct in zip(member_ids, percentages)
    )


# =============================================================================
# Persistence encoding
# =============================================================================


def encode_debtor_shares(shares: Iterable[DebtorShare]) -> str:
    """Serialize shares to the compact JSON form stored on the order row."""
    payload = [
        {
            "memberId": str(share.member_id),
            "percentage": None if share.percentage is None else str(share.percentage),
        }
        for share in shares
    ]
    return json.dumps(payload, separators=(",", ":"))


def decode_debtor_shares(raw: str | None) -> tuple[DebtorShare, ...]:
    """
    Parse the stored JSON form back into DebtorShare values.

    Raises:
        DebtorShareDecodeError: malformed JSON, wrong shape, bad ids or
            non-numeric percentages.
    """
    if raw is None or raw == "":
        return ()
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DebtorShareDecodeError(f"invalid JSON: {exc.msg}") from exc

    if not isinstance(payload, list):
        raise DebtorShareDecodeError("expected a list of shares")

    shares = []
    for entry in payload:
        if not isinstance(entry, dict) or "memberId" not in entry:
            raise DebtorShareDecodeError(f"malformed share entry {entry!r}")
        try:
            member_id = UUID(str(entry["memberId"]))
            pct = entry.get("percentage")
            percentage = None if pct is None else Decimal(str(pct))
            shares.append(DebtorShare(member_id=member_id, percentage=percentage))
        except (ValueError, InvalidOperation, MalformedNumberError) as exc:
            raise DebtorShareDecodeError(f"malformed share entry {entry!r}") from exc
    return tuple(shares)
