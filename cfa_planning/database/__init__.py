"""
Engine, session factory and declarative Base of the planning database.
"""

from __future__ import annotations

import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)


def _install_sqlite_hooks(engine: Engine) -> None:
    """
    Make SQLite behave like the production backend for the scheduling core:
    enforce foreign keys (ON DELETE CASCADE) and let SQLAlchemy emit BEGIN
    itself so SAVEPOINTs nest inside the surrounding transaction.

    Transactions start with BEGIN IMMEDIATE: the write lock is taken up
    front, so two materializations of the same slot queue on the busy
    timeout instead of failing when a shared read lock cannot be upgraded.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(db_url: str, **kwargs: Any) -> Engine:
    """Create an engine with dialect-appropriate connection arguments."""
    engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.sqlite_busy_timeout_seconds,
        }
    engine_kwargs.update(kwargs)
    new_engine = create_engine(db_url, **engine_kwargs)
    if is_sqlite:
        _install_sqlite_hooks(new_engine)
    logger.debug("Database engine created for dialect %s", new_engine.dialect.name)
    return new_engine


engine: Engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, committed on success."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Return the dialect name of the engine bound to a session."""
    try:
        bind = session.get_bind()
    except Exception:
        return default
    dialect = getattr(bind, "dialect", None)
    return getattr(dialect, "name", default) or default
