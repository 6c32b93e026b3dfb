"""
StandingOrderService -- registry of recurring obligations.

Responsibility:
    Create, update and deactivate standing orders, materialize one into a
    ledger entry (``execute``) and move its schedule forward (``advance``).

Architecture position:
    Kernel > Services.  Date math comes from ``household_kernel.domain.cadence``;
    ledger entries are created through LedgerService so every generated
    transaction passes the same validation as a hand-entered one.

Lifecycle:
    PENDING (next date in future) -> DUE (next date <= today) -> EXECUTING
    -> PENDING (advanced date).  Deactivation is absorbing; orders are never
    deleted so their history stays queryable.

Invariants enforced:
    - ``execute`` never touches the schedule; ``advance`` never touches the
      ledger.  Callers pair them inside one unit of work.
    - ``advance`` counts from the stored next date, not from today, so a
      late run does not shift the cadence.
    - Creation runs the order at once when its first date is today or
      earlier, repeating until the next date is in the future.
    - Only the creator may update or deactivate (when a requester is given).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from household_kernel.domain.cadence import (
    StandingOrderFrequency,
    initial_next_execution,
    next_occurrence,
    rescheduled_from_today,
    validate_monthly_parameters,
)
from household_kernel.domain.directory import MemberDirectory, require_same_household
from household_kernel.domain.clock import Clock
from household_kernel.domain.dtos import StandingOrderInfo, TransactionInfo
from household_kernel.domain.splits import build_split_lines
from household_kernel.domain.values import DebtorShare
from household_kernel.exceptions import (
    HouseholdKernelError,
    StandingOrderEditNotAllowedError,
    StandingOrderNotFoundError,
)
from household_kernel.logging_config import LogContext, get_logger
from household_kernel.models.standing_order import StandingOrder
from household_kernel.services.base import BaseService
from household_kernel.services.ledger_service import LedgerService

logger = get_logger("services.standing_order")

STANDING_ORDER_SUFFIX = " (Standing Order)"


class StandingOrderService(BaseService[StandingOrder]):
    """
    Registry of standing orders.

    Public methods return StandingOrderInfo / TransactionInfo DTOs, except
    ``execute`` and ``advance``, which operate on a loaded row so the due
    pass can pair them with its own claim.
    """

    def __init__(
        self,
        session: Session,
        directory: MemberDirectory,
        clock: Clock | None = None,
    ):
        super().__init__(session, directory, clock)
        self.ledger = LedgerService(session, directory, self.clock)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _get_by_id(self, order_id: UUID) -> StandingOrder:
        order = self.session.get(StandingOrder, order_id)
        if order is None:
            raise StandingOrderNotFoundError(str(order_id))
        return order

    def _require_creator(self, order: StandingOrder, actor_id: UUID) -> None:
        if order.created_by_id != actor_id:
            logger.warning(
                "standing_order_edit_denied",
                extra={
                    "order_id": str(order.id),
                    "actor_id": str(actor_id),
                    "created_by": str(order.created_by_id),
                },
            )
            raise StandingOrderEditNotAllowedError(
                str(order.id), str(actor_id), str(order.created_by_id)
            )

    def _validate(
        self,
        household_id: UUID,
        creditor_id: UUID,
        debtor_shares: Sequence[DebtorShare],
        total_amount: Decimal | int | float | str,
        frequency: StandingOrderFrequency,
        monthly_day: int | None,
        monthly_last_day: bool,
    ) -> Decimal:
        amount, lines = build_split_lines(debtor_shares, total_amount)
        validate_monthly_parameters(frequency, monthly_day, monthly_last_day)
        require_same_household(
            self.directory,
            household_id,
            [creditor_id] + [line.debtor_id for line in lines],
        )
        return amount

    def _run_until_future(self, order: StandingOrder) -> int:
        """Execute and advance while the order is due.  Returns run count."""
        today = self.clock.today()
        runs = 0
        while order.is_active and order.next_execution_date <= today:
            self.execute(order)
            self.advance(order)
            runs += 1
        return runs

    # =========================================================================
    # Commands
    # =========================================================================

    def create_standing_order(
        self,
        creator: UUID,
        creditor: UUID,
        household: UUID,
        total_amount: Decimal | int | float | str,
        description: str,
        frequency: StandingOrderFrequency | str,
        start_date: date | None,
        debtor_shares: Sequence[DebtorShare],
        monthly_day: int | None = None,
        monthly_last_day: bool = False,
    ) -> StandingOrderInfo:
        """
        Register a recurring obligation.

        Args:
            creator: Member creating the order (sole editor, recorder of
                every generated entry).
            creditor: Member owed the money; payer of generated entries.
            household: Household the order belongs to.
            frequency: WEEKLY, BI_WEEKLY or MONTHLY.
            start_date: First date for WEEKLY / BI_WEEKLY; ignored for MONTHLY.
            debtor_shares: Who owes which part.
            monthly_day / monthly_last_day: MONTHLY anchor, mutually exclusive.

        Returns:
            The order as stored after any immediate execution.

        Raises:
            HouseholdNotFoundError, MemberNotFoundError,
            HouseholdMismatchError, InvalidScheduleError and the split
            validation errors.
        """
        frequency = StandingOrderFrequency(frequency)
        self.directory.get_household(household)
        require_same_household(self.directory, household, [creator])
        amount = self._validate(
            household, creditor, debtor_shares, total_amount,
            frequency, monthly_day, monthly_last_day,
        )

        today = self.clock.today()
        next_date = initial_next_execution(
            today, frequency, monthly_day, monthly_last_day, start_date
        )

        order = StandingOrder(
            household_id=household,
            creditor_id=creditor,
            created_by_id=creator,
            total_amount=amount,
            description=description or "",
            frequency=frequency.value,
            next_execution_date=next_date,
            is_active=True,
            monthly_day=monthly_day,
            monthly_last_day=bool(monthly_last_day),
            debtor_shares=tuple(debtor_shares),
        )
        self.session.add(order)
        self.session.flush()

        logger.info(
            "standing_order_created",
            extra={
                "order_id": str(order.id),
                "household_id": str(household),
                "frequency": frequency.value,
                "next_execution_date": next_date,
                "total_amount": str(amount),
            },
        )

        if next_date <= today:
            try:
                runs = self._run_until_future(order)
            except HouseholdKernelError:
                # Left due; the next pass retries it.
                logger.exception(
                    "standing_order_immediate_execution_failed",
                    extra={"order_id": str(order.id)},
                )
            else:
                logger.info(
                    "standing_order_immediate_execution",
                    extra={
                        "order_id": str(order.id),
                        "runs": runs,
                        "next_execution_date": order.next_execution_date,
                    },
                )

        return order.to_dto()

    def execute(self, order: StandingOrder) -> TransactionInfo:
        """
        Materialize one occurrence of ``order`` as a ledger entry.

        Does not move the schedule.

        Raises:
            Any ledger validation error, e.g. a debtor who left the household.
        """
        with LogContext.bind(order_id=order.id, household_id=order.household_id):
            info = self.ledger.create_transaction(
                recorded_by=order.created_by_id,
                payer=order.creditor_id,
                debtor_shares=order.debtor_shares,
                total_amount=order.total_amount,
                description=f"{order.description}{STANDING_ORDER_SUFFIX}",
            )
            logger.info(
                "standing_order_executed",
                extra={
                    "transaction_id": str(info.id),
                    "execution_date": order.next_execution_date,
                },
            )
        return info

    def following_execution_date(self, order: StandingOrder) -> date:
        """Next date one period after the stored one."""
        return next_occurrence(
            order.next_execution_date,
            order.cadence,
            order.monthly_day,
            order.monthly_last_day,
        )

    def advance(self, order: StandingOrder) -> date:
        """Move ``order`` one period forward from its stored date and flush."""
        previous = order.next_execution_date
        order.next_execution_date = self.following_execution_date(order)
        self.session.flush()
        logger.debug(
            "standing_order_advanced",
            extra={
                "order_id": str(order.id),
                "previous_date": previous,
                "next_execution_date": order.next_execution_date,
            },
        )
        return order.next_execution_date

    def claim_next_occurrence(self, order: StandingOrder, expected_date: date) -> date | None:
        """
        Compare-and-swap advance used by the due pass.

        Moves the stored date from ``expected_date`` to the following
        occurrence only if the row still holds ``expected_date`` and is
        active.  Exactly one of several concurrent callers succeeds; the
        others get None.  The in-memory ``order`` is not refreshed, so it
        still describes the occurrence being executed.

        Returns:
            The new next_execution_date, or None if the claim was lost.
        """
        new_date = next_occurrence(
            expected_date, order.cadence, order.monthly_day, order.monthly_last_day
        )
        result = self.session.execute(
            update(StandingOrder)
            .where(
                StandingOrder.id == order.id,
                StandingOrder.next_execution_date == expected_date,
                StandingOrder.is_active == True,  # noqa: E712
            )
            .values(next_execution_date=new_date)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                "standing_order_claim_lost",
                extra={"order_id": str(order.id), "expected_date": expected_date},
            )
            return None
        return new_date

    def update_standing_order(
        self,
        order_id: UUID,
        editor_id: UUID,
        creditor: UUID,
        total_amount: Decimal | int | float | str,
        description: str,
        frequency: StandingOrderFrequency | str,
        debtor_shares: Sequence[DebtorShare],
        monthly_day: int | None = None,
        monthly_last_day: bool = False,
    ) -> StandingOrderInfo:
        """
        Replace the order's terms.

        If the stored next date is today or earlier it is recomputed one
        period forward from today using the new cadence; a future date is
        kept.

        Raises:
            StandingOrderNotFoundError, StandingOrderEditNotAllowedError and
            the validation errors of create_standing_order.
        """
        order = self._get_by_id(order_id)
        self._require_creator(order, editor_id)
        frequency = StandingOrderFrequency(frequency)
        amount = self._validate(
            order.household_id, creditor, debtor_shares, total_amount,
            frequency, monthly_day, monthly_last_day,
        )

        order.creditor_id = creditor
        order.total_amount = amount
        order.description = description or ""
        order.frequency = frequency.value
        order.debtor_shares = tuple(debtor_shares)
        order.monthly_day = monthly_day
        order.monthly_last_day = bool(monthly_last_day)

        today = self.clock.today()
        if order.next_execution_date <= today:
            order.next_execution_date = rescheduled_from_today(
                today, frequency, monthly_day, monthly_last_day
            )
        self.session.flush()

        logger.info(
            "standing_order_updated",
            extra={
                "order_id": str(order.id),
                "editor_id": str(editor_id),
                "frequency": frequency.value,
                "next_execution_date": order.next_execution_date,
            },
        )
        return order.to_dto()

    def deactivate_standing_order(
        self,
        order_id: UUID,
        requester_id: UUID | None = None,
    ) -> StandingOrderInfo:
        """
        Stop future firing.  The order and its generated entries remain.

        Raises:
            StandingOrderNotFoundError: Unknown id.
            StandingOrderEditNotAllowedError: ``requester_id`` given and not
                the creator.
        """
        order = self._get_by_id(order_id)
        if requester_id is not None:
            self._require_creator(order, requester_id)
        order.is_active = False
        self.session.flush()

        logger.info(
            "standing_order_deactivated",
            extra={"order_id": str(order.id), "requester_id": str(requester_id)},
        )
        return order.to_dto()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_standing_order(self, order_id: UUID) -> StandingOrderInfo:
        return self._get_by_id(order_id).to_dto()

    def get_active_standing_orders(self, household_id: UUID) -> list[StandingOrderInfo]:
        """Active orders of a household, soonest first."""
        stmt = (
            select(StandingOrder)
            .where(
                StandingOrder.household_id == household_id,
                StandingOrder.is_active == True,  # noqa: E712
            )
            .order_by(StandingOrder.next_execution_date, StandingOrder.created_at)
        )
        return [o.to_dto() for o in self.session.execute(stmt).scalars().all()]
