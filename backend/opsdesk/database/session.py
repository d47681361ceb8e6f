"""
Database engine and session helpers.

Sessions are created with autoflush=False; services flush explicitly and
routes (or the orchestrating service) commit.
"""

import logging
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def init_engine(database_url: str) -> Engine:
    """Create (or replace) the process-wide engine and session factory."""
    global _engine, _session_factory

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    _engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    logger.info("database.engine_initialized", extra={"dialect": _engine.dialect.name})
    return _engine


def get_db_session_sync() -> Generator[Session, None, None]:
    """Yield a session outside of FastAPI dependency injection."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialized; call init_engine() first")

    session = _session_factory()
    try:
        yield session
    finally:
        session.close()


def get_db_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    yield from get_db_session_sync()
