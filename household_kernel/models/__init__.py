"""SQLAlchemy ORM models for the household kernel."""

from household_kernel.models.standing_order import DebtorSharesType, StandingOrder
from household_kernel.models.transaction import Transaction, TransactionSplit

__all__ = [
    "Transaction",
    "TransactionSplit",
    "StandingOrder",
    "DebtorSharesType",
]
