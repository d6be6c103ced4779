from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings
from src.db.models.base import Base

settings = get_settings()


def _engine_options(url: str) -> dict[str, Any]:
    """Engine kwargs per backend; in-memory SQLite must share one connection."""
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
    **_engine_options(settings.database_url),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_engine():
    """Get the database engine."""
    return engine


def init_db() -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


def drop_db() -> None:
    """Drop all tables (tests and local resets only)."""
    Base.metadata.drop_all(bind=engine)
    logger.warning("Database tables dropped")


def check_connection() -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency: one transaction per request."""
    with session_scope() as session:
        yield session


# Alias for compatibility
get_db = get_session
