"""
Database configuration and session management for the isotiler backend.

This module defines a SQLModel engine targeting a SQLite database stored
in the storage directory.  The storage root defaults to ``storage`` at
the repository root and can be moved with the ``ISOTILER_STORAGE_DIR``
environment variable, which the test suite uses to isolate its data.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

_DEFAULT_STORAGE_DIR = Path(__file__).resolve().parents[3] / "storage"
STORAGE_DIR = Path(os.getenv("ISOTILER_STORAGE_DIR") or _DEFAULT_STORAGE_DIR)
STORAGE_DIR.mkdir(parents=True, exist_ok=True)

engine = create_engine(
    f"sqlite:///{(STORAGE_DIR / 'isotiler.db').as_posix()}", echo=False
)


def create_db_and_tables() -> None:
    """Create all tables in the database.

    This should be called once on application startup.  If the
    database file does not exist it will be created automatically.
    """
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    """Return a new SQLModel session bound to the engine.

    Use as a context manager (``with get_session() as session: ...``)
    so that connections are closed.
    """
    return Session(engine)
