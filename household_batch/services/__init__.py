"""Due-order processing services."""

from household_batch.services.due_order_processor import DueOrderProcessor
from household_batch.services.scheduler import StandingOrderScheduler

__all__ = ["DueOrderProcessor", "StandingOrderScheduler"]
