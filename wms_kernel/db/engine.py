"""
Module: wms_kernel.db.engine
Responsibility: Engine construction, the process-wide session factory, and
    the commit-or-rollback transaction scope.
Architecture position: Kernel > DB.  Imports only db/base.py (and models/,
    lazily, to populate metadata before DDL).

Backends:
    - PostgreSQL (production): pooled connections, READ COMMITTED, and
      SELECT ... FOR UPDATE on rows about to be mutated.
    - SQLite (tests, local tooling): one shared connection so an in-memory
      database outlives individual sessions.  FOR UPDATE is a no-op there;
      the compare-and-set in StockWriter still detects lost updates.

Transactions:
    Kernel services flush but never commit.  session_scope() (or a caller's
    own transaction) is the only commit point.
"""

import atexit
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wms_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> Engine:
    """Create an engine for the URL's backend without installing it globally."""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        return create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=1800,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> Engine:
    """
    Install the process-wide engine and session factory.

    Calling it again disposes the previous engine and replaces it.
    """
    global _engine, _session_factory

    reset_engine()
    _engine = build_engine(
        database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "pool_size": pool_size},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that open one session per thread."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on normal exit, roll back and re-raise on any exception.

    Usage:
        with session_scope() as session:
            ReservationService(session).reserve(product_id, 8, tenant_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """Create every kernel table (models are imported to fill the metadata)."""
    from wms_kernel.db.base import Base
    import wms_kernel.models  # noqa: F401

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop every kernel table. Tests and local tooling only."""
    from wms_kernel.db.base import Base
    import wms_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the installed engine, if any, and forget it."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


atexit.register(reset_engine)
