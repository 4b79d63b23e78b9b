"""
Iwry Review – Database initialisation & session management
===========================================================
Builds the SQLAlchemy engine (SQLite file under ``data/`` by default, or
whatever ``IWRY_DATABASE_URL`` points at) and provides a session factory
for the rest of the app.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from db.models import Base

DATABASE_URL_ENV = "IWRY_DATABASE_URL"


def _app_data_dir() -> Path:
    """Return a stable directory for the SQLite file."""
    data_dir = Path(__file__).resolve().parent.parent / "data"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def database_url() -> str:
    """Configured database URL, defaulting to ``data/iwry_review.db``."""
    url = os.environ.get(DATABASE_URL_ENV)
    if url:
        return url
    return f"sqlite:///{_app_data_dir() / 'iwry_review.db'}"


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key enforcement for every SQLite connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str | None = None) -> Engine:
    """Create an engine for *url* (or the configured one)."""
    url = url or database_url()
    if url.startswith("sqlite"):
        engine = create_engine(url, echo=False, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _set_sqlite_pragma)
    else:
        engine = create_engine(url, echo=False, pool_pre_ping=True)
    return engine


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _session_factory() -> sessionmaker:
    global _engine, _SessionLocal
    if _SessionLocal is None:
        _engine = make_engine()
        _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)
    return _SessionLocal


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def init_db(engine: Engine | None = None) -> None:
    """Create all tables if they do not exist yet."""
    if engine is None:
        _session_factory()
        engine = _engine
    Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    """Return a new SQLAlchemy session on the configured database."""
    return _session_factory()()
