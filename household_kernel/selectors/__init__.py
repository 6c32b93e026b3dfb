"""Read-only selectors over the transaction log."""

from household_kernel.selectors.balance_selector import BalanceSelector
from household_kernel.selectors.transaction_selector import TransactionSelector

__all__ = ["BalanceSelector", "TransactionSelector"]
