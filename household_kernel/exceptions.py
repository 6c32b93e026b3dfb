"""
Typed Exception Hierarchy for the Household Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (UI controllers, the due-order processor, the host script) must react
to failures by kind, not by message text:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.edit_transaction(tx_id, editor_id=member_id, ...)
    except TransactionEditNotAllowedError as e:
        show_error(code=e.code, owner=e.recorded_by)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    HouseholdKernelError (base)
    |
    +-- ValidationError
    |   +-- EmptyDebtorListError
    |   +-- NonPositiveAmountError
    |   +-- PercentageSumError
    |   +-- PercentageCountMismatchError
    |   +-- InvalidScheduleError
    |   +-- HouseholdMismatchError
    |
    +-- AuthorizationError
    |   +-- TransactionEditNotAllowedError
    |   +-- StandingOrderEditNotAllowedError
    |
    +-- NotFoundError
    |   +-- MemberNotFoundError
    |   +-- HouseholdNotFoundError
    |   +-- TransactionNotFoundError
    |   +-- StandingOrderNotFoundError
    |
    +-- ExecutionFailure
    |
    +-- DebtorShareDecodeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                             | When Raised
----------------|----------------------------------|-------------------------------------
Validation      | EMPTY_DEBTOR_LIST                | No debtors supplied
                | NON_POSITIVE_AMOUNT              | Amount <= 0
                | PERCENTAGE_SUM_INVALID           | Percentages not 100 +/- 0.01
                | PERCENTAGE_COUNT_MISMATCH        | Some shares without percentage
                | INVALID_SCHEDULE                 | Bad frequency/monthly parameters
                | HOUSEHOLD_MISMATCH               | Member outside the household
----------------|----------------------------------|-------------------------------------
Authorization   | TRANSACTION_EDIT_NOT_ALLOWED     | Non-recorder edits/deletes
                | STANDING_ORDER_EDIT_NOT_ALLOWED  | Non-creator edits/deactivates
----------------|----------------------------------|-------------------------------------
Not found       | MEMBER_NOT_FOUND                 | Unknown member id
                | HOUSEHOLD_NOT_FOUND              | Unknown household id
                | TRANSACTION_NOT_FOUND            | Unknown transaction id
                | STANDING_ORDER_NOT_FOUND         | Unknown standing order id
----------------|----------------------------------|-------------------------------------
Scheduler       | STANDING_ORDER_EXECUTION_FAILED  | One order failed in a due pass
Persistence     | DEBTOR_SHARE_DECODE_ERROR        | Stored debtor payload unreadable

ExecutionFailure never escapes ``DueOrderProcessor.run_due_pass()``; it is
reported as a FAILED item in the pass result.
"""


class HouseholdKernelError(Exception):
    """
    Base exception for all household kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "HOUSEHOLD_KERNEL_ERROR"


# Validation


class ValidationError(HouseholdKernelError):
    """Malformed input. The operation had no effect."""

    code: str = "VALIDATION_ERROR"


class EmptyDebtorListError(ValidationError):
    """A ledger entry needs at least one debtor."""

    code: str = "EMPTY_DEBTOR_LIST"

    def __init__(self):
        super().__init__("At least one debtor is required")


class NonPositiveAmountError(ValidationError):
    """Amounts must be strictly positive."""

    code: str = "NON_POSITIVE_AMOUNT"

    def __init__(self, amount: str):
        self.amount = amount
        super().__init__(f"Amount must be positive, got {amount}")


class MalformedNumberError(ValidationError):
    """An amount or percentage is not a finite decimal number."""

    code: str = "MALFORMED_NUMBER"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Expected a finite decimal number, got {value}")


class PercentageRangeError(ValidationError):
    """An explicit percentage lies outside 0..100."""

    code: str = "PERCENTAGE_OUT_OF_RANGE"

    def __init__(self, percentage: str):
        self.percentage = percentage
        super().__init__(f"Percentage must be between 0 and 100, got {percentage}")


class PercentageSumError(ValidationError):
    """Explicit percentages do not add up to 100 within tolerance."""

    code: str = "PERCENTAGE_SUM_INVALID"

    def __init__(self, total: str, tolerance: str):
        self.total = total
        self.tolerance = tolerance
        super().__init__(
            f"Percentages must sum to 100 (+/- {tolerance}), got {total}"
        )


class PercentageCountMismatchError(ValidationError):
    """Only some of the debtor shares carry a percentage."""

    code: str = "PERCENTAGE_COUNT_MISMATCH"

    def __init__(self, debtor_count: int, percentage_count: int):
        self.debtor_count = debtor_count
        self.percentage_count = percentage_count
        super().__init__(
            f"Number of percentages ({percentage_count}) must match "
            f"number of debtors ({debtor_count})"
        )


class InvalidScheduleError(ValidationError):
    """Frequency and monthly parameters are inconsistent."""

    code: str = "INVALID_SCHEDULE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid standing order schedule: {reason}")


class HouseholdMismatchError(ValidationError):
    """A referenced member does not belong to the operation's household."""

    code: str = "HOUSEHOLD_MISMATCH"

    def __init__(self, member_id: str, household_id: str):
        self.member_id = member_id
        self.household_id = household_id
        super().__init__(
            f"Member {member_id} does not belong to household {household_id}"
        )


# Authorization


class AuthorizationError(HouseholdKernelError):
    """The acting member may not perform this operation."""

    code: str = "NOT_AUTHORIZED"


class TransactionEditNotAllowedError(AuthorizationError):
    """Only the member who recorded a transaction may edit or delete it."""

    code: str = "TRANSACTION_EDIT_NOT_ALLOWED"

    def __init__(self, transaction_id: str, actor_id: str, recorded_by: str):
        self.transaction_id = transaction_id
        self.actor_id = actor_id
        self.recorded_by = recorded_by
        super().__init__(
            f"Member {actor_id} cannot modify transaction {transaction_id}: "
            f"only its recorder {recorded_by} can"
        )


class StandingOrderEditNotAllowedError(AuthorizationError):
    """Only the creator of a standing order may change it."""

    code: str = "STANDING_ORDER_EDIT_NOT_ALLOWED"

    def __init__(self, order_id: str, actor_id: str, created_by: str):
        self.order_id = order_id
        self.actor_id = actor_id
        self.created_by = created_by
        super().__init__(
            f"Member {actor_id} cannot modify standing order {order_id}: "
            f"only its creator {created_by} can"
        )


# Lookup


class NotFoundError(HouseholdKernelError):
    """A referenced entity does not exist."""

    code: str = "NOT_FOUND"


class MemberNotFoundError(NotFoundError):
    code: str = "MEMBER_NOT_FOUND"

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member not found: {member_id}")


class HouseholdNotFoundError(NotFoundError):
    code: str = "HOUSEHOLD_NOT_FOUND"

    def __init__(self, household_id: str):
        self.household_id = household_id
        super().__init__(f"Household not found: {household_id}")


class TransactionNotFoundError(NotFoundError):
    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class StandingOrderNotFoundError(NotFoundError):
    code: str = "STANDING_ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Standing order not found: {order_id}")


# Scheduler


class ExecutionFailure(HouseholdKernelError):
    """
    A single standing order could not be materialized into a transaction.

    Raised inside the due pass and caught per order; the order's schedule
    is left untouched so the next pass retries it.
    """

    code: str = "STANDING_ORDER_EXECUTION_FAILED"

    def __init__(self, order_id: str, cause_code: str, reason: str):
        self.order_id = order_id
        self.cause_code = cause_code
        self.reason = reason
        super().__init__(
            f"Standing order {order_id} failed to execute ({cause_code}): {reason}"
        )


# Persistence


class DebtorShareDecodeError(HouseholdKernelError):
    """A persisted debtor-share payload is not a valid share list."""

    code: str = "DEBTOR_SHARE_DECODE_ERROR"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot decode debtor shares: {reason}")
