"""
End-to-end scene rendering.

``render_scene`` runs the full pipeline for one :class:`SceneRequest`:
build the voxel grid, composite it against a tile library, optionally
merge adjacent faces, and serialise the result as SVG.  The batch
helpers below read the library and a TOML scene configuration from
disk and write the SVG next to them.

A configuration file looks like::

    gridSize = [4, 2, 4]
    mergeFaces = true

    [fill]
    mode = "random"
    seed = 7
    choices = [0, 1, 3]

    [equalities]
    roof = [[0, 1, 0], [1, 1, 0]]
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from ..api.models import SceneRequest
from .compositor import Compositor
from .library_parser import TileLibrary, parse_tile_library_file
from .scene_writer import render_scene_svg
from .voxel_grid import grid_from_placements, random_grid

logger = logging.getLogger(__name__)


@dataclass
class RenderedScene:
    svg: str
    width: float
    height: float
    shape_count: int
    component_count: int
    placement_count: int
    fusion_count: int = 0


def build_grid(request: SceneRequest) -> np.ndarray:
    """Populate the voxel grid according to the request's fill policy."""
    if request.fill.mode == "random":
        return random_grid(request.gridSize, seed=request.fill.seed, choices=request.fill.choices)
    placements = [((p.x, p.y, p.z), p.tile) for p in request.placements]
    return grid_from_placements(request.gridSize, placements)


def render_scene(library: TileLibrary, request: SceneRequest) -> RenderedScene:
    """Composite and serialise one scene.

    Raises:
        LibraryFormatError: If the library's reference cube is unusable.
        ValueError: If the grid cannot be built from the request.
    """
    grid = build_grid(request)
    compositor = Compositor(library, request.equalities)
    result = compositor.composite(grid)

    fusions = 0
    if request.mergeFaces:
        fusions = sum(shape.merge_faces() for shape in result.shapes)
        logger.debug("Merged %d face pairs", fusions)

    svg = render_scene_svg(
        result.shapes,
        result.width,
        result.height,
        light_vector=request.lightVector,
        scene_colour=request.sceneColour,
    )
    return RenderedScene(
        svg=svg,
        width=result.width,
        height=result.height,
        shape_count=len(result.shapes),
        component_count=result.component_count,
        placement_count=len(result.placements),
        fusion_count=fusions,
    )


def load_scene_config(path: Union[str, Path]) -> SceneRequest:
    """Read and validate a scene configuration.

    ``.json`` files are read as JSON (the same body the HTTP API
    accepts); anything else is read as TOML.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    else:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    return SceneRequest.model_validate(data)


def render_scene_files(
    library_path: Union[str, Path],
    config_path: Union[str, Path],
    output_path: Union[str, Path],
) -> RenderedScene:
    """Render a scene from a library file and a configuration file."""
    library = parse_tile_library_file(library_path)
    request = load_scene_config(config_path)
    scene = render_scene(library, request)
    Path(output_path).write_text(scene.svg, encoding="utf-8")
    logger.info(
        "Wrote %s (%d shapes, %gx%g)", output_path, scene.shape_count, scene.width, scene.height
    )
    return scene
