"""
Routes for tile library upload, listing and inspection.

A library is validated when it is uploaded, so every stored library
parses and has a usable reference cube.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from .models import ProjectionAxesInfo, TileLibraryInfo, TileLibraryStatusInfo, TileListResponse
from ..services.compositor import projection_axes_from_cube
from ..services.library_store import (
    TileLibraryRecord,
    delete_library as delete_library_record,
    list_libraries as list_library_records,
    list_scene_records,
)
from ..services.storage import (
    get_library_record_or_404,
    load_library,
    remove_library_file,
    save_library_file,
)


router = APIRouter()


def _status_info(record: TileLibraryRecord) -> TileLibraryStatusInfo:
    return TileLibraryStatusInfo(
        libraryId=record.library_id,
        name=record.original_name,
        createdAt=record.created_at,
        tileCount=record.tile_count,
    )


@router.post("/libraries", response_model=TileLibraryInfo, status_code=201)
async def upload_library(file: UploadFile = File(...)) -> TileLibraryInfo:
    """Upload an SVG tile library.

    The document is parsed before it is stored; a malformed library is
    rejected with 422 and nothing is persisted.
    """
    return save_library_file(file)


@router.get("/libraries", response_model=list[TileLibraryStatusInfo])
async def list_libraries() -> list[TileLibraryStatusInfo]:
    return [_status_info(r) for r in list_library_records()]


@router.get("/libraries/{library_id}", response_model=TileLibraryStatusInfo)
async def get_library(library_id: str) -> TileLibraryStatusInfo:
    return _status_info(get_library_record_or_404(library_id))


@router.get("/libraries/{library_id}/tiles", response_model=TileListResponse)
async def get_library_tiles(library_id: str) -> TileListResponse:
    """Return the tile ids a library defines and its projection axes."""
    _, library = load_library(library_id)
    try:
        axes = projection_axes_from_cube(library.reference)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return TileListResponse(
        libraryId=library_id,
        tileIds=library.tile_ids,
        axes=ProjectionAxesInfo(x=list(axes.x), y=list(axes.y), z=list(axes.z)),
    )


@router.delete("/libraries/{library_id}", status_code=204)
async def delete_library(library_id: str) -> None:
    """Delete a library, its scenes and, once unreferenced, its file."""
    record = get_library_record_or_404(library_id)
    file_hash, file_path = record.file_hash, record.file_path
    scene_paths = [scene.svg_path for scene in list_scene_records(library_id)]
    delete_library_record(library_id)
    for path in scene_paths:
        Path(path).unlink(missing_ok=True)
    remove_library_file(file_hash, file_path)
    return None
