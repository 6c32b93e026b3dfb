"""
Module: household_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors over the
    transaction log.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    the pure domain layer.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.commit(), or session.flush().
    - DTO return convention: selectors return frozen dataclasses or computed
      values, never ORM instances.
    - No stored balances: every balance is derived from the log on each call.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from household_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
