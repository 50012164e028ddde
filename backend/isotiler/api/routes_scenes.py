"""
Routes for compositing scenes and fetching the rendered SVG.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, HTTPException, Response

from .models import SceneRequest, SceneResponse
from ..services.library_store import SceneRecord, get_scene_record, insert_scene_record
from ..services.scene import render_scene
from ..services.storage import load_library, save_scene_svg

logger = logging.getLogger(__name__)

router = APIRouter()


def _scene_response(record: SceneRecord) -> SceneResponse:
    return SceneResponse(
        sceneId=record.scene_id,
        libraryId=record.library_id,
        width=record.width,
        height=record.height,
        shapeCount=record.shape_count,
        componentCount=record.component_count,
        placementCount=record.placement_count,
        metadata={"fillMode": record.fill_mode, "fusionCount": record.fusion_count},
    )


@router.post("/libraries/{library_id}/scenes", response_model=SceneResponse, status_code=201)
async def create_scene(library_id: str, request: SceneRequest) -> SceneResponse:
    """Composite a scene from a stored library.

    Returns:
        SceneResponse: Summary of the rendered scene.  The SVG itself
        is available from ``GET /scenes/{sceneId}/svg``.

    Raises:
        HTTPException: 404 for an unknown library, 422 if the scene
            cannot be rendered with it.
    """
    _, library = load_library(library_id)
    try:
        scene = render_scene(library, request)
    except ValueError as exc:
        logger.warning("Scene for library %s failed: %s", library_id, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    scene_id = uuid.uuid4().hex
    svg_path = save_scene_svg(scene_id, scene.svg)
    record = SceneRecord(
        scene_id=scene_id,
        library_id=library_id,
        svg_path=str(svg_path),
        width=scene.width,
        height=scene.height,
        shape_count=scene.shape_count,
        component_count=scene.component_count,
        placement_count=scene.placement_count,
        fusion_count=scene.fusion_count,
        fill_mode=request.fill.mode,
    )
    response = _scene_response(record)
    try:
        insert_scene_record(record)
    except Exception:
        svg_path.unlink(missing_ok=True)
        logger.exception("Failed to record scene %s", scene_id)
        raise
    return response


def _scene_or_404(scene_id: str) -> SceneRecord:
    record = get_scene_record(scene_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Scene not found")
    return record


@router.get("/scenes/{scene_id}", response_model=SceneResponse)
async def get_scene(scene_id: str) -> SceneResponse:
    return _scene_response(_scene_or_404(scene_id))


@router.get("/scenes/{scene_id}/svg")
async def get_scene_svg(scene_id: str) -> Response:
    """Return the rendered scene as an SVG document."""
    path = Path(_scene_or_404(scene_id).svg_path)
    if not path.exists():
        raise HTTPException(status_code=404, detail="Scene file not found")
    return Response(content=path.read_text(encoding="utf-8"), media_type="image/svg+xml")
