"""
LedgerService -- writes to the shared-expense transaction log.

Responsibility:
    Create, edit and delete ledger entries, and the two settlement helpers
    (direct settle and credit transfer) that are expressed as ordinary
    entries rather than special records.

Architecture position:
    Kernel > Services.  Uses the pure split computation in
    ``household_kernel.domain.splits`` and the member directory for
    household scoping.  Balance reads live in BalanceSelector.

Invariants enforced:
    - Split percentages sum to 100 +/- 0.01; every split amount is derived
      from percentage and total on every write.
    - Only the recorder of an entry may edit or delete it.
    - Edits replace the complete split list; no partial update path exists.
    - All validation and authorization happens before anything is flushed,
      so a rejected call leaves the session untouched.

Failure modes:
    - ValidationError subclasses for malformed input.
    - TransactionEditNotAllowedError for a non-recorder edit/delete.
    - MemberNotFoundError / TransactionNotFoundError for unknown ids.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence
from uuid import UUID

from household_kernel.domain.directory import require_same_household
from household_kernel.domain.dtos import TransactionInfo
from household_kernel.domain.splits import SplitLine, build_split_lines, validate_amount
from household_kernel.domain.values import DebtorShare
from household_kernel.exceptions import (
    TransactionEditNotAllowedError,
    TransactionNotFoundError,
)
from household_kernel.logging_config import get_logger
from household_kernel.models.transaction import Transaction, TransactionSplit
from household_kernel.services.base import BaseService

logger = get_logger("services.ledger")

SETTLEMENT_DESCRIPTION = "Settlement"
CREDIT_TRANSFER_METHOD = "Credit Transfer"


def settlement_description(payment_method: str | None = None) -> str:
    if payment_method:
        return f"{SETTLEMENT_DESCRIPTION} via {payment_method}"
    return SETTLEMENT_DESCRIPTION


class LedgerService(BaseService[Transaction]):
    """
    Write side of the ledger.

    All public methods return TransactionInfo DTOs.
    """

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _get_by_id(self, transaction_id: UUID) -> Transaction:
        transaction = self.session.get(Transaction, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(str(transaction_id))
        return transaction

    def _require_recorder(self, transaction: Transaction, actor_id: UUID) -> None:
        if transaction.recorded_by_id != actor_id:
            logger.warning(
                "transaction_edit_denied",
                extra={
                    "transaction_id": str(transaction.id),
                    "actor_id": str(actor_id),
                    "recorded_by": str(transaction.recorded_by_id),
                },
            )
            raise TransactionEditNotAllowedError(
                str(transaction.id), str(actor_id), str(transaction.recorded_by_id)
            )

    def _prepare(
        self,
        household_id: UUID,
        payer_id: UUID,
        debtor_shares: Sequence[DebtorShare],
        total_amount: Decimal | int | float | str,
    ) -> tuple[Decimal, tuple[SplitLine, ...]]:
        """Validate amount and shares, then household membership."""
        amount, lines = build_split_lines(debtor_shares, total_amount)
        require_same_household(
            self.directory,
            household_id,
            [payer_id] + [line.debtor_id for line in lines],
        )
        return amount, lines

    @staticmethod
    def _split_rows(lines: Sequence[SplitLine]) -> list[TransactionSplit]:
        return [
            TransactionSplit(
                debtor_id=line.debtor_id,
                percentage=line.percentage,
                amount=line.amount,
                position=position,
            )
            for position, line in enumerate(lines)
        ]

    # =========================================================================
    # Create / edit / delete
    # =========================================================================

    def create_transaction(
        self,
        recorded_by: UUID,
        payer: UUID,
        debtor_shares: Sequence[DebtorShare],
        total_amount: Decimal | int | float | str,
        description: str = "",
    ) -> TransactionInfo:
        """
        Record a new expense.

        The entry is scoped to the recorder's household; the payer and every
        debtor must belong to it.

        Args:
            recorded_by: Member entering the transaction (gets edit rights).
            payer: Member who fronted the money.
            debtor_shares: Who owes; all with percentages or none.
            total_amount: Strictly positive amount.
            description: Free text.

        Returns:
            The created TransactionInfo.

        Raises:
            EmptyDebtorListError, MalformedNumberError, NonPositiveAmountError,
            PercentageCountMismatchError, PercentageRangeError, PercentageSumError,
            HouseholdMismatchError, MemberNotFoundError.
        """
        recorder = self.directory.get_member(recorded_by)
        amount, lines = self._prepare(recorder.household_id, payer, debtor_shares, total_amount)

        transaction = Transaction(
            household_id=recorder.household_id,
            payer_id=payer,
            recorded_by_id=recorded_by,
            total_amount=amount,
            description=description or "",
            timestamp=self.clock.now_utc(),
        )
        transaction.splits = self._split_rows(lines)
        self.session.add(transaction)
        self.session.flush()

        logger.info(
            "transaction_created",
            extra={
                "transaction_id": str(transaction.id),
                "household_id": str(transaction.household_id),
                "payer_id": str(payer),
                "recorded_by": str(recorded_by),
                "total_amount": str(amount),
                "debtor_count": len(lines),
            },
        )
        return transaction.to_dto()

    def edit_transaction(
        self,
        transaction_id: UUID,
        editor_id: UUID,
        new_payer: UUID,
        new_shares: Sequence[DebtorShare],
        new_amount: Decimal | int | float | str,
        new_description: str = "",
    ) -> TransactionInfo:
        """
        Replace payer, amount, description and all splits of an entry.

        Old splits are discarded and new ones built in the same flush.

        Raises:
            TransactionNotFoundError: Unknown id.
            TransactionEditNotAllowedError: ``editor_id`` is not the recorder.
            ValidationError subclasses as for create_transaction.
        """
        transaction = self._get_by_id(transaction_id)
        self._require_recorder(transaction, editor_id)
        amount, lines = self._prepare(
            transaction.household_id, new_payer, new_shares, new_amount
        )

        transaction.splits.clear()
        self.session.flush()

        transaction.payer_id = new_payer
        transaction.total_amount = amount
        transaction.description = new_description or ""
        transaction.splits.extend(self._split_rows(lines))
        self.session.flush()

        logger.info(
            "transaction_edited",
            extra={
                "transaction_id": str(transaction.id),
                "editor_id": str(editor_id),
                "total_amount": str(amount),
                "debtor_count": len(lines),
            },
        )
        return transaction.to_dto()

    def delete_transaction(self, transaction_id: UUID, requester_id: UUID) -> None:
        """
        Delete an entry and its splits.

        Raises:
            TransactionNotFoundError: Unknown id.
            TransactionEditNotAllowedError: ``requester_id`` is not the recorder.
        """
        transaction = self._get_by_id(transaction_id)
        self._require_recorder(transaction, requester_id)

        self.session.delete(transaction)
        self.session.flush()

        logger.info(
            "transaction_deleted",
            extra={
                "transaction_id": str(transaction_id),
                "requester_id": str(requester_id),
            },
        )

    # =========================================================================
    # Settlement helpers
    # =========================================================================

    def settle(
        self,
        payer_id: UUID,
        receiver_id: UUID,
        amount: Decimal | int | float | str,
        recorded_by: UUID | None = None,
        payment_method: str | None = None,
    ) -> TransactionInfo:
        """
        Record a direct payment from ``payer_id`` to ``receiver_id``.

        Modelled as an entry paid by ``payer_id`` with ``receiver_id`` as sole
        debtor, so it offsets what the payer owed the receiver.

        Args:
            recorded_by: Recorder of the entry; defaults to the payer.
            payment_method: Appended to the description ("Settlement via X").
        """
        validate_amount(amount)
        info = self.create_transaction(
            recorded_by=recorded_by or payer_id,
            payer=payer_id,
            debtor_shares=[DebtorShare(member_id=receiver_id, percentage=Decimal(100))],
            total_amount=amount,
            description=settlement_description(payment_method),
        )
        logger.info(
            "settlement_recorded",
            extra={
                "transaction_id": str(info.id),
                "payer_id": str(payer_id),
                "receiver_id": str(receiver_id),
                "amount": str(info.total_amount),
                "payment_method": payment_method,
            },
        )
        return info

    def transfer_credit(
        self,
        current: UUID,
        credit_source: UUID,
        debt_target: UUID,
        amount: Decimal | int | float | str,
    ) -> tuple[TransactionInfo, TransactionInfo]:
        """
        Use credit held against ``credit_source`` to pay a debt to
        ``debt_target``, without moving real money.

        Two linked entries, both recorded by ``current``:
            1. current pays debt_target        (clears current's debt)
            2. credit_source pays current      (consumes current's credit)

        Net effect: debt_target's claim on current and current's claim on
        credit_source both shrink by ``amount``.

        Raises:
            NonPositiveAmountError, HouseholdMismatchError, MemberNotFoundError.
        """
        validate_amount(amount)
        household_id = self.directory.get_member(current).household_id
        require_same_household(self.directory, household_id, [credit_source, debt_target])

        settled = self.create_transaction(
            recorded_by=current,
            payer=current,
            debtor_shares=[DebtorShare(member_id=debt_target, percentage=Decimal(100))],
            total_amount=amount,
            description=f"{settlement_description(CREDIT_TRANSFER_METHOD)} (settled debt)",
        )
        used = self.create_transaction(
            recorded_by=current,
            payer=credit_source,
            debtor_shares=[DebtorShare(member_id=current, percentage=Decimal(100))],
            total_amount=amount,
            description=f"{settlement_description(CREDIT_TRANSFER_METHOD)} (used credit)",
        )

        logger.info(
            "credit_transferred",
            extra={
                "current": str(current),
                "credit_source": str(credit_source),
                "debt_target": str(debt_target),
                "amount": str(settled.total_amount),
                "settled_transaction_id": str(settled.id),
                "used_transaction_id": str(used.id),
            },
        )
        return settled, used
