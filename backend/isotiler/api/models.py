"""
Pydantic data models for the isotiler API.

These models define the shapes of requests and responses used by the
backend.  ``SceneRequest`` doubles as the scene configuration schema
for the batch renderer, which loads it from a TOML or JSON file.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class TileLibraryInfo(BaseModel):
    """Metadata returned after a tile library is uploaded."""

    libraryId: str = Field(..., description="Unique identifier for the uploaded library")
    filename: str = Field(..., description="Original filename provided by the client")
    status: str = Field(..., description="Current storage status of the library")
    tileIds: List[int] = Field(default_factory=list, description="Tile ids defined by the library")


class TileLibraryStatusInfo(BaseModel):
    """Summary information about a stored tile library."""

    libraryId: str = Field(..., description="Unique identifier for the library")
    name: str = Field(..., description="Original filename provided by the user")
    createdAt: Any = Field(..., description="Timestamp of when the library was uploaded")
    tileCount: int = Field(default=0, description="Number of tile ids defined by the library")


class ProjectionAxesInfo(BaseModel):
    """Screen-space step of one cell along each grid axis."""

    x: List[float] = Field(..., description="Displacement for one step along +x")
    y: List[float] = Field(..., description="Displacement for one step along +y")
    z: List[float] = Field(..., description="Displacement for one step along +z")


class TileListResponse(BaseModel):
    """Tile ids available in a library together with its projection."""

    libraryId: str = Field(..., description="Identifier of the library")
    tileIds: List[int] = Field(..., description="Sorted list of registered tile ids")
    axes: ProjectionAxesInfo = Field(..., description="Projection axes derived from the reference cube")


class TilePlacement(BaseModel):
    """A single cell assignment in the voxel grid."""

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    z: int = Field(..., ge=0)
    tile: int = Field(..., ge=0, le=255, description="Tile id placed at the cell")


class FillPolicy(BaseModel):
    """How the voxel grid is populated."""

    mode: Literal["explicit", "random"] = Field(
        default="explicit",
        description="'explicit' uses the placement list; 'random' fills every cell",
    )
    seed: Optional[int] = Field(default=None, description="Seed for random fill")
    choices: Optional[List[int]] = Field(
        default=None,
        description="Tile ids random fill draws from; all 256 ids when omitted",
    )

    @field_validator("choices")
    @classmethod
    def _check_choices(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        if not value:
            raise ValueError("choices must not be empty")
        for tile_id in value:
            if not 0 <= tile_id <= 255:
                raise ValueError(f"tile id {tile_id} is outside 0-255")
        return value


class SceneRequest(BaseModel):
    """Scene configuration: grid, contents, grouping and shading."""

    gridSize: Tuple[int, int, int] = Field(..., description="Grid dimensions (X, Y, Z)")
    placements: List[TilePlacement] = Field(
        default_factory=list, description="Explicit cell assignments"
    )
    fill: FillPolicy = Field(default_factory=FillPolicy, description="Grid fill policy")
    equalities: Dict[str, List[Tuple[int, int, int]]] = Field(
        default_factory=dict,
        description="Named groups of coordinates rendered as one shared shape",
    )
    lightVector: Tuple[float, float, float] = Field(
        default=(0.3, 0.7, 0.5), description="Direction of the light; normalised before use"
    )
    sceneColour: Tuple[float, float, float] = Field(
        default=(0.6, 0.2, 0.9), description="Base colour multiplied by face brightness"
    )
    mergeFaces: bool = Field(
        default=False,
        description="Fuse adjacent polygons inside each face after compositing",
    )

    @field_validator("gridSize")
    @classmethod
    def _check_grid_size(cls, value: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if any(n < 1 for n in value):
            raise ValueError("grid dimensions must be positive")
        return value

    @field_validator("lightVector")
    @classmethod
    def _check_light(cls, value: Tuple[float, float, float]) -> Tuple[float, float, float]:
        if not any(value):
            raise ValueError("light vector must not be zero")
        return value

    @model_validator(mode="after")
    def _check_bounds(self) -> "SceneRequest":
        size = self.gridSize
        for placement in self.placements:
            coordinate = (placement.x, placement.y, placement.z)
            if any(c >= n for c, n in zip(coordinate, size)):
                raise ValueError(f"placement {coordinate} is outside a grid of size {size}")
        for name, coordinates in self.equalities.items():
            for coordinate in coordinates:
                if any(not 0 <= c < n for c, n in zip(coordinate, size)):
                    raise ValueError(f"equality '{name}' lists {coordinate} outside a grid of size {size}")
        return self


class SceneResponse(BaseModel):
    """Summary of a rendered scene."""

    sceneId: str = Field(..., description="Unique identifier for the rendered scene")
    libraryId: str = Field(..., description="Identifier of the library used")
    width: float = Field(..., description="Canvas width")
    height: float = Field(..., description="Canvas height")
    shapeCount: int = Field(..., description="Number of shapes that survived occlusion")
    componentCount: int = Field(..., description="Number of shaded faces in the output")
    placementCount: int = Field(..., description="Number of non-empty cells visited")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Additional metadata such as the fill mode"
    )
