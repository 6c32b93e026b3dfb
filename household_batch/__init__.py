"""
household_batch -- Standing-order due pass and its triggers.

Provides the DueOrderProcessor (claim, execute, advance for every due
occurrence) and an in-process StandingOrderScheduler that fires it once at
startup and once a day.

Architecture:
    household_batch/ is a top-level package.  Nothing in household_kernel
    imports from household_batch.
"""
