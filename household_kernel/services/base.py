"""
BaseService -- abstract base for kernel write services.

Responsibility:
    Common constructor and session contract for every service that mutates
    ledger or standing-order state.  Services receive a SQLAlchemy
    ``Session`` and persist via ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services.  Imperative shell around the pure domain layer.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's transaction
      and never commit or roll back.  The caller (host request handler, the
      due-order processor, or a test) owns commit/rollback, which is what
      lets the processor put "create transaction" and "advance schedule" in
      one unit of work.
    - No ambient user: every acting member id is an explicit parameter.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from household_kernel.db.base import Base
from household_kernel.domain.clock import Clock, SystemClock
from household_kernel.domain.directory import MemberDirectory

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Read-only reporting queries belong in ``household_kernel/selectors/``.
    """

    def __init__(
        self,
        session: Session,
        directory: MemberDirectory,
        clock: Clock | None = None,
    ):
        """
        Args:
            session: SQLAlchemy session for database operations.
            directory: Membership lookups (external collaborator).
            clock: Time source; defaults to the system clock.
        """
        self.session = session
        self.directory = directory
        self.clock = clock or SystemClock()
