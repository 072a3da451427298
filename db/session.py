"""
db/session.py

Lazily built PostgreSQL engine, session factory and the helpers the API,
the scheduler jobs and the health probe share.
"""

from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


@dataclass(frozen=True)
class PoolSettings:
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    recycle_seconds: int = 1800

    @classmethod
    def from_env(cls) -> PoolSettings:
        def _int(name: str, default: int) -> int:
            raw = os.getenv(name, "").strip()
            return int(raw) if raw.lstrip("-").isdigit() else default

        return cls(
            echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
            pool_size=max(1, _int("DB_POOL_SIZE", 5)),
            max_overflow=max(0, _int("DB_MAX_OVERFLOW", 10)),
            recycle_seconds=_int("DB_POOL_RECYCLE", 1800),
        )


def create_db_engine(settings: PoolSettings | None = None) -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    pool = settings or PoolSettings.from_env()
    return create_engine(
        database_url,
        echo=pool.echo,
        pool_pre_ping=True,
        pool_size=pool.pool_size,
        max_overflow=pool.max_overflow,
        pool_recycle=pool.recycle_seconds,
    )


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Return the shared engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    """Open a new session bound to the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for background work; callers commit, the scope only closes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping_database() -> None:
    """Run ``SELECT 1``; raises whatever the driver raises."""
    with get_engine().connect() as connection:
        connection.execute(text("SELECT 1"))


def dispose_engine() -> None:
    """
    Close every pooled connection and forget the engine; the next session
    builds a fresh pool.
    """
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
