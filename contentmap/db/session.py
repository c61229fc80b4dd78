"""Database session and engine setup.

This module provides:
- SQLAlchemy Engine configured from DATABASE_URL (defaults to SQLite ./data/contentmap.db)
- SessionLocal factory
- create_tables() to create tables and ensure SQLite folders/PRAGMAs
- get_db() FastAPI-style dependency generator
"""
from __future__ import annotations

import logging
import os
import pathlib
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from contentmap.db.models import Base

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------------------------
load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/contentmap.db")
ECHO_SQL = os.getenv("SQL_ECHO", "0").lower() in {"1", "true", "yes"}


def make_engine(url: str, *, echo: bool = False, **kwargs) -> Engine:
    """Create an engine; SQLite gets check_same_thread=False and foreign keys ON."""
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        # Ensure directory exists for SQLite file paths like sqlite:///./data/app.db
        db_path = url.replace("sqlite:///", "", 1)
        if db_path and db_path != ":memory:" and url.startswith("sqlite:///"):
            pathlib.Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)

    eng = create_engine(url, future=True, echo=echo, pool_pre_ping=True, **kwargs)

    if is_sqlite:

        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[unused-ignore]
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
            finally:
                cursor.close()

    return eng


engine = make_engine(DATABASE_URL, echo=ECHO_SQL)

SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
)

__all__ = [
    "DATABASE_URL",
    "engine",
    "make_engine",
    "SessionLocal",
    "create_tables",
    "get_db",
    "ping_db",
]


def create_tables(bind: Engine | None = None) -> None:
    """Create database tables if they don't exist."""
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database tables ensured: %s", target.url)


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session and ensure close afterwards (FastAPI dependency)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping_db(bind: Engine | None = None) -> bool:
    """Lightweight connectivity check (SELECT 1). Returns True if OK, False otherwise."""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB ping failed")
        return False
