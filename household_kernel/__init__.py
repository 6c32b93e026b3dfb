"""
Household Kernel

Shared-expense ledger and standing-order registry for a household:
- Transactions split across any number of members by percentage
- Balances always recomputed from the transaction log
- Recurring standing orders with weekly, bi-weekly and monthly cadences
"""

__version__ = "0.1.0"
