"""Kernel write services (flush-only; callers own transactions)."""

from household_kernel.services.ledger_service import LedgerService
from household_kernel.services.standing_order_service import StandingOrderService

__all__ = ["LedgerService", "StandingOrderService"]
