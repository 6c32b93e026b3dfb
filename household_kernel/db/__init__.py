"""Database layer - engine, base classes and column types."""

from household_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from household_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)
from household_kernel.db.types import Money, Percentage

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Money",
    "Percentage",
]
