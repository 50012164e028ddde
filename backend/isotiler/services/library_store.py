"""
Metadata records for tile libraries and rendered scenes.

A ``TileLibraryRecord`` stores the identifier assigned to an uploaded
library along with its content hash, original filename, storage path
and tile count; only libraries that parse are stored.  A ``SceneRecord`` stores the summary of one
rendered scene and where its SVG was written.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Field, SQLModel, select

from .db import create_db_and_tables, get_session


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TileLibraryRecord(SQLModel, table=True):
    """Database model representing an uploaded tile library."""

    library_id: str = Field(primary_key=True)
    file_hash: str = Field(index=True)
    original_name: str
    file_path: str
    filesize_bytes: int
    tile_count: int = 0
    created_at: datetime = Field(default_factory=_utcnow)


class SceneRecord(SQLModel, table=True):
    """Database model representing a rendered scene."""

    scene_id: str = Field(primary_key=True)
    library_id: str = Field(foreign_key="tilelibraryrecord.library_id", index=True)
    svg_path: str
    width: float
    height: float
    shape_count: int
    component_count: int
    placement_count: int
    fusion_count: int = 0
    fill_mode: str = "explicit"
    created_at: datetime = Field(default_factory=_utcnow)


def init_db() -> None:
    """Initialise the database and create tables if they do not exist."""
    create_db_and_tables()


def insert_library_record(record: TileLibraryRecord) -> None:
    with get_session() as session:
        session.add(record)
        session.commit()


def get_library_record(library_id: str) -> Optional[TileLibraryRecord]:
    """Retrieve a ``TileLibraryRecord`` by its identifier.

    Returns:
        The matching record if found, otherwise ``None``.
    """
    with get_session() as session:
        return session.get(TileLibraryRecord, library_id)


def list_libraries() -> List[TileLibraryRecord]:
    """Return all library records in upload order."""
    with get_session() as session:
        statement = select(TileLibraryRecord).order_by(TileLibraryRecord.created_at)
        return list(session.exec(statement))


def count_libraries_with_hash(file_hash: str) -> int:
    with get_session() as session:
        statement = select(TileLibraryRecord).where(TileLibraryRecord.file_hash == file_hash)
        return len(session.exec(statement).all())


def delete_library(library_id: str) -> bool:
    """Delete a library and its scene records.

    Files on disk are left for the caller to clean up.

    Returns:
        ``False`` if no such library exists.
    """
    with get_session() as session:
        library = session.get(TileLibraryRecord, library_id)
        if library is None:
            return False
        scenes = session.exec(select(SceneRecord).where(SceneRecord.library_id == library_id)).all()
        for scene in scenes:
            session.delete(scene)
        session.delete(library)
        session.commit()
        return True


def insert_scene_record(record: SceneRecord) -> None:
    with get_session() as session:
        session.add(record)
        session.commit()


def get_scene_record(scene_id: str) -> Optional[SceneRecord]:
    with get_session() as session:
        return session.get(SceneRecord, scene_id)


def list_scene_records(library_id: str) -> List[SceneRecord]:
    with get_session() as session:
        statement = select(SceneRecord).where(SceneRecord.library_id == library_id)
        return list(session.exec(statement))
