"""
Module: household_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  Single point of database connection
    configuration for the kernel and the batch processor.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/, domain/, or outer layers (except
    create_tables/drop_tables, which import models so metadata is complete).

Backends:
    - PostgreSQL (production): QueuePool with pre-ping, READ COMMITTED, and
      SELECT ... FOR UPDATE SKIP LOCKED during the due pass.
    - SQLite (tests, single-host installs): file or in-memory database.
      Connections may cross threads; writers wait up to ``busy_timeout``
      seconds for the database lock instead of failing immediately.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory is called
      before init_engine_from_url().
    - OperationalError ("database is locked") on SQLite if a writer holds the
      lock longer than busy_timeout.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from household_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    busy_timeout: float = 15.0,
) -> Engine:
    """
    Create an Engine configured for the URL's dialect without registering it
    as the module-level engine.

    Args:
        database_url: SQLAlchemy URL (postgresql://... or sqlite:///...).
        echo: If True, log all SQL statements.
        pool_size: PostgreSQL pool size.
        max_overflow: PostgreSQL connections beyond pool_size.
        pool_timeout: Seconds to wait for a pooled connection.
        pool_recycle: Seconds after which a connection is recycled.
        busy_timeout: SQLite seconds to wait on a locked database.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        in_memory = url.database in (None, "", ":memory:")
        kwargs: dict = {
            "echo": echo,
            "connect_args": {"check_same_thread": False, "timeout": busy_timeout},
        }
        if in_memory:
            # One shared connection, otherwise each checkout sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(database_url: str, **engine_options) -> Engine:
    """
    Initialize the module-level engine and session factory.

    A second call replaces the first (the old engine is disposed).

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(database_url, **engine_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "echo": engine_options.get("echo", False),
        },
    )
    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory.

    The due-order processor and scheduler take this so each pass (and each
    thread) opens its own session.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Commits on normal exit; rolls back and re-raises on exception; always
    closes the session.

    Usage:
        with session_scope() as session:
            LedgerService(session, directory, clock).create_transaction(...)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """
    Create all kernel tables.

    Args:
        engine: Target engine; defaults to the module-level engine.
    """
    from household_kernel.db.base import Base
    import household_kernel.models  # noqa: F401  (registers tables)

    target = engine or get_engine()
    Base.metadata.create_all(target)
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables(engine: Engine | None = None) -> None:
    """Drop all kernel tables. Use with caution - primarily for testing."""
    from household_kernel.db.base import Base
    import household_kernel.models  # noqa: F401

    target = engine or get_engine()
    Base.metadata.drop_all(target)


def reset_engine() -> None:
    """
    Reset the engine and session factory.

    Useful for test cleanup.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    """Dispose the engine on process exit to release pooled connections."""
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)


def is_postgres(engine: Engine | None = None) -> bool:
    """Check whether the given (or module-level) engine is PostgreSQL."""
    target = engine if engine is not None else _engine
    if target is None:
        return False
    return target.dialect.name == "postgresql"
