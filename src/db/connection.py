"""Database access for the hosted (Supabase) Postgres account table.

One engine per process.  The uploader writes through ``get_engine()``
directly; the territory analysis reads through ``readonly_connection()``,
whose transaction is marked READ ONLY so a stray statement cannot modify
the uploaded accounts.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)

_engine: Engine | None = None


def get_engine() -> Engine:
    """The process-wide engine, created on first use."""
    global _engine
    if _engine is not None:
        return _engine
    settings = get_settings()
    _engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,  # Supabase drops idle connections
        pool_size=5,
        max_overflow=5,
        connect_args={"application_name": "territory-copilot"},
    )
    logger.info(
        "Connected engine to %s:%s/%s (sslmode=%s)",
        settings.postgres_host, settings.postgres_port, settings.postgres_db, settings.postgres_sslmode,
    )
    return _engine


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None


def ping() -> bool:
    """True when the database answers ``SELECT 1``."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database unreachable: %s", exc)
        return False
    return True


@contextmanager
def readonly_connection() -> Iterator[Connection]:
    """Connection inside a READ ONLY transaction, rolled back on exit."""
    with get_engine().connect() as conn:
        trans = conn.begin()
        try:
            conn.execute(text("SET TRANSACTION READ ONLY"))
            yield conn
        finally:
            trans.rollback()
