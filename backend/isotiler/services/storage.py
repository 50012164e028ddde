"""
Local storage service for tile libraries and rendered scenes.

Uploaded libraries are streamed to a temporary file while their SHA-256
hash is computed, validated by parsing, and then moved to
``libraries/{file_hash}.svg`` under the storage root.  Identical
uploads share one file on disk and one cached parse.  Rendered scenes
are written to ``scenes/{scene_id}.svg``.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from pathlib import Path
from typing import Tuple

from fastapi import HTTPException, UploadFile

from ..api.models import TileLibraryInfo
from .db import STORAGE_DIR
from .library_cache import evict_library, get_library_from_cache, put_library_in_cache
from .library_parser import TileLibrary, parse_tile_library_file
from .library_store import (
    TileLibraryRecord,
    count_libraries_with_hash,
    get_library_record,
    insert_library_record,
)

logger = logging.getLogger(__name__)

STORAGE_LIBRARIES_DIR = STORAGE_DIR / "libraries"
STORAGE_LIBRARIES_DIR.mkdir(parents=True, exist_ok=True)

STORAGE_SCENES_DIR = STORAGE_DIR / "scenes"
STORAGE_SCENES_DIR.mkdir(parents=True, exist_ok=True)

# Uploads are streamed here while their hash is computed
STORAGE_TEMP_DIR = STORAGE_DIR / "tmp"
STORAGE_TEMP_DIR.mkdir(parents=True, exist_ok=True)


def _parse_cached(file_hash: str, path: Path) -> TileLibrary:
    library = get_library_from_cache(file_hash)
    if library is None:
        library = parse_tile_library_file(path)
        put_library_in_cache(file_hash, library)
    return library


def save_library_file(upload_file: UploadFile) -> TileLibraryInfo:
    """Validate and persist an uploaded tile library.

    Args:
        upload_file: Incoming file from the client.

    Returns:
        TileLibraryInfo: Metadata describing the stored library.

    Raises:
        HTTPException: 422 if the document is not a valid tile library.
    """
    filename = upload_file.filename or ""
    logger.info("Saving uploaded tile library %s", filename or "<unknown>")
    library_id = uuid.uuid4().hex
    sha256 = hashlib.sha256()
    temp_path = STORAGE_TEMP_DIR / f"tmp_{library_id}"
    with temp_path.open("wb") as tmp_file:
        while True:
            chunk = upload_file.file.read(8192)
            if not chunk:
                break
            tmp_file.write(chunk)
            sha256.update(chunk)
    file_hash = sha256.hexdigest()
    filesize_bytes = temp_path.stat().st_size

    try:
        library = _parse_cached(file_hash, temp_path)
    except ValueError as exc:
        temp_path.unlink(missing_ok=True)
        logger.warning("Rejected tile library %s: %s", filename, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    canonical_path = STORAGE_LIBRARIES_DIR / f"{file_hash}.svg"
    tile_ids = library.tile_ids
    record = TileLibraryRecord(
        library_id=library_id,
        file_hash=file_hash,
        original_name=filename,
        file_path=str(canonical_path),
        filesize_bytes=filesize_bytes,
        tile_count=len(tile_ids),
    )
    # a failed insert must leave no stored file or cache entry behind
    try:
        insert_library_record(record)
    except Exception:
        temp_path.unlink(missing_ok=True)
        if count_libraries_with_hash(file_hash) == 0:
            evict_library(file_hash)
        logger.exception("Failed to record tile library %s", filename)
        raise

    if canonical_path.exists():
        temp_path.unlink(missing_ok=True)
    else:
        temp_path.replace(canonical_path)
    return TileLibraryInfo(libraryId=library_id, filename=filename, status="stored", tileIds=tile_ids)


def get_library_record_or_404(library_id: str) -> TileLibraryRecord:
    record = get_library_record(library_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Tile library not found")
    return record


def load_library(library_id: str) -> Tuple[TileLibraryRecord, TileLibrary]:
    """Return the record and parsed library for ``library_id``.

    Raises:
        HTTPException: 404 if the library or its file is missing.
    """
    record = get_library_record_or_404(library_id)
    path = Path(record.file_path)
    if not path.exists():
        raise HTTPException(status_code=404, detail="Tile library file not found")
    return record, _parse_cached(record.file_hash, path)


def remove_library_file(file_hash: str, file_path: str) -> None:
    """Drop a library's file and cache entry once nothing references its hash."""
    if count_libraries_with_hash(file_hash) > 0:
        return
    evict_library(file_hash)
    Path(file_path).unlink(missing_ok=True)
    logger.info("Removed orphaned tile library file %s", file_path)


def save_scene_svg(scene_id: str, svg: str) -> Path:
    path = STORAGE_SCENES_DIR / f"{scene_id}.svg"
    path.write_text(svg, encoding="utf-8")
    return path
