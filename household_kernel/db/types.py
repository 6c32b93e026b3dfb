"""
Module: household_kernel.db.types
Responsibility: Annotated type aliases and helpers for amount and percentage
    columns.  Centralizes precision and the split-percentage tolerance so every
    model and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats: amounts and percentages are Decimal with explicit precision.
    - PERCENTAGE_TOLERANCE is the single source for "sums to 100".
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

from household_kernel.exceptions import MalformedNumberError

# Monetary amount: 38 digits, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Split percentage (0..100), same storage precision as money
Percentage = Annotated[Decimal, Numeric(38, 9)]

ShortText = Annotated[str, String(100)]
LongText = Annotated[str, String(500)]

HUNDRED = Decimal("100")
PERCENTAGE_TOLERANCE = Decimal("0.01")
AMOUNT_TOLERANCE = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Coerce a caller-supplied number to Decimal.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.

    Raises:
        MalformedNumberError: Not a number, NaN or infinite.
    """
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            result = Decimal(str(value))
        else:
            result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise MalformedNumberError(repr(value)) from exc
    if not result.is_finite():
        raise MalformedNumberError(repr(value))
    return result

