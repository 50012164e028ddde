"""
Isometric compositor.

The compositor takes a three-dimensional grid of tile ids and a
:class:`~.library_parser.TileLibrary` and produces the ordered list of
shapes that make up the projected scene.  Cells are visited in
painter's order, from the back of the scene to the front, so a shape
emitted later is always drawn over earlier ones.  Each time a shape is
placed, every earlier shape is trimmed of the faces the new shape fully
covers; shapes left with no faces are dropped from the scene.

Placements are recorded in an arena: the compositor owns a list of
shape instances and each :class:`PlacementRecord` refers to one by
index.  Cells in the same equivalence group share a single instance,
so several records may carry the same handle.  When an instance is
culled its arena slot is cleared and every record pointing at it loses
its handle.

Setting the ``COMPOSITE_DEBUG`` environment variable logs every
placement at debug level.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Union

import numpy as np

from .library_parser import LibraryFormatError, TileLibrary
from .shapes import Shape
from .vector import Point, Vector3, add2, scale2, sub2

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int, int]

# Tolerance when matching face normals of the reference cube
AXIS_TOLERANCE = 0.001

_X_NORMAL: Vector3 = (1.0, 0.0, 0.0)
_Y_NORMAL: Vector3 = (0.0, 1.0, 0.0)
_Z_NORMAL: Vector3 = (0.0, 0.0, 1.0)


def _debug_enabled() -> bool:
    return bool(os.getenv("COMPOSITE_DEBUG"))


@dataclass(frozen=True)
class ProjectionAxes:
    """Screen-space displacement of one cell step along each grid axis."""

    x: Point
    y: Point
    z: Point

    def project(self, origin: Point, coordinate: Coordinate) -> Point:
        """Screen position of the centre of the cell at ``coordinate``."""
        cx, cy, cz = coordinate
        position = add2(origin, scale2(self.x, cx))
        position = add2(position, scale2(self.y, cy))
        return add2(position, scale2(self.z, cz))

    def canvas_size(self, grid_size: Coordinate) -> Tuple[float, float]:
        """Width and height of the canvas needed for a grid of ``grid_size`` cells."""
        size_x, size_y, size_z = grid_size
        width = size_x * self.x[0] + size_z * -self.z[0]
        height = size_x * self.x[1] + size_y * -self.y[1] + size_z * self.z[1]
        return width, height

    def origin(self, grid_size: Coordinate) -> Point:
        """Projected centre of cell ``(0, 0, 0)``."""
        _, size_y, size_z = grid_size
        return (size_z * -self.z[0], size_y * -self.y[1])


def _matches(normal: Vector3, target: Vector3) -> bool:
    return all(abs(n - t) <= AXIS_TOLERANCE for n, t in zip(normal, target))


def projection_axes_from_cube(cube: Shape) -> ProjectionAxes:
    """Derive the projection axes from the reference cube.

    The cube must have one face for each of +x (right side), +y (top)
    and +z (left side).  Face widths give the horizontal components;
    the three face heights are solved for the vertical components.

    Raises:
        LibraryFormatError: If a face is missing or has zero extent.
    """
    x_width = z_width = None
    h_r = h_g = h_b = None
    for component in cube.components:
        if _matches(component.normal, _Z_NORMAL):
            z_width = -component.width()
            h_b = -component.height()
        elif _matches(component.normal, _Y_NORMAL):
            h_g = -component.height()
        elif _matches(component.normal, _X_NORMAL):
            x_width = component.width()
            h_r = -component.height()
    missing = [
        name
        for name, value in (("+x", x_width), ("+y", h_g), ("+z", z_width))
        if value is None
    ]
    if missing:
        raise LibraryFormatError(f"reference cube has no {', '.join(missing)} face")
    if x_width == 0.0 or z_width == 0.0:
        raise LibraryFormatError("reference cube side faces have zero width")

    x_axis = (x_width, (-h_r - h_g + h_b) / 2.0)
    y_axis = (0.0, (h_r - h_g + h_b) / 2.0)
    z_axis = (z_width, (h_r - h_g - h_b) / 2.0)
    return ProjectionAxes(x=x_axis, y=y_axis, z=z_axis)


def iter_painter_order(grid_size: Coordinate) -> Iterator[Coordinate]:
    """Yield every cell of the grid from back to front.

    Cells are grouped by their depth ``x + y + z``; within a depth ``x``
    varies slowest and ``y`` next, with ``z`` taking up the remainder.
    """
    size_x, size_y, size_z = grid_size
    for depth in range(size_x + size_y + size_z - 2):
        for x in range(min(size_x, depth + 1)):
            for y in range(min(size_y, depth + 1 - x)):
                z = depth - x - y
                if z >= size_z:
                    continue
                yield (x, y, z)


def tile_offset(prototype: Shape, reference: Shape) -> Point:
    """Offset of a prototype's centre from the cell centre.

    Prototypes that do not fill the whole cube (a floor slab, a single
    wall) have a bounding-box centre away from the cube's.  The
    difference is folded into one cube extent per axis so that the
    prototype keeps its position relative to the cell.
    """
    size = (reference.width(), reference.height())
    delta = sub2(prototype.centre(), reference.centre())
    return tuple(
        math.fmod(d + s / 2.0, s) - s / 2.0 for d, s in zip(delta, size)
    )  # type: ignore[return-value]


@dataclass
class PlacementRecord:
    """One visited cell and the arena slot of its shape instance."""

    coordinate: Coordinate
    handle: Optional[int]

    @property
    def deleted(self) -> bool:
        return self.handle is None


@dataclass
class CompositeResult:
    """Output of :meth:`Compositor.composite`."""

    shapes: List[Shape]
    width: float
    height: float
    placements: List[PlacementRecord] = field(default_factory=list)

    @property
    def component_count(self) -> int:
        return sum(len(shape.components) for shape in self.shapes)


EquivalenceGroups = Union[Mapping[str, Iterable[Sequence[int]]], Iterable[Iterable[Sequence[int]]]]


class Compositor:
    """Place, cull and order tile instances for one library.

    Args:
        library: Parsed tile library; must contain the reference cube.
        equivalence_groups: Sets of coordinates whose cells share a
            single shape instance, either as a mapping of group name to
            coordinates or as a plain iterable of coordinate sets.  A
            coordinate listed in several groups belongs to the first.
        axes: Projection axes; derived from the reference cube when
            omitted.
    """

    def __init__(
        self,
        library: TileLibrary,
        equivalence_groups: Optional[EquivalenceGroups] = None,
        axes: Optional[ProjectionAxes] = None,
    ) -> None:
        self.library = library
        self.axes = axes or projection_axes_from_cube(library.reference)
        self._groups: List[Set[Coordinate]] = []
        self._group_of: Dict[Coordinate, int] = {}
        if equivalence_groups is not None:
            members = (
                equivalence_groups.values()
                if isinstance(equivalence_groups, Mapping)
                else equivalence_groups
            )
            for index, group in enumerate(members):
                coords = {tuple(int(c) for c in coordinate) for coordinate in group}
                self._groups.append(coords)  # type: ignore[arg-type]
                for coord in coords:
                    self._group_of.setdefault(coord, index)  # type: ignore[arg-type]
        self._offsets: Dict[int, Point] = {}
        self._instances: List[Optional[Shape]] = []
        self._placements: List[PlacementRecord] = []

    def _offset_for(self, tile_id: int, prototype: Shape) -> Point:
        offset = self._offsets.get(tile_id)
        if offset is None:
            offset = tile_offset(prototype, self.library.reference)
            self._offsets[tile_id] = offset
        return offset

    def _shared_handle(self, coordinate: Coordinate) -> Optional[int]:
        """Handle of a living instance placed earlier in the same group."""
        group_index = self._group_of.get(coordinate)
        if group_index is None:
            return None
        group = self._groups[group_index]
        for record in self._placements:
            if record.handle is not None and record.coordinate in group:
                return record.handle
        return None

    def _cull_behind(self, handle: int, occluder: Shape) -> None:
        """Trim every earlier instance against ``occluder``."""
        swept: Set[int] = set()
        for record in self._placements:
            if record.handle is None or record.handle == handle:
                continue
            if record.handle not in swept:
                swept.add(record.handle)
                instance = self._instances[record.handle]
                if instance is not None and instance.reduce_if_obscured(occluder) is None:
                    self._instances[record.handle] = None
            if self._instances[record.handle] is None:
                record.handle = None

    def _place(self, coordinate: Coordinate, tile_id: int, prototype: Shape, origin: Point) -> None:
        handle = self._shared_handle(coordinate)
        if handle is None:
            instance = prototype.clone()
            position = self.axes.project(origin, coordinate)
            instance.move_to(add2(position, self._offset_for(tile_id, prototype)))
            handle = len(self._instances)
            self._instances.append(instance)
        else:
            instance = self._instances[handle]
        self._cull_behind(handle, instance)
        self._placements.append(PlacementRecord(coordinate, handle))
        if _debug_enabled():
            logger.debug(
                "Placed tile %d at %s as instance %d (%d components)",
                tile_id,
                coordinate,
                handle,
                len(instance.components),
            )

    def composite(self, grid: np.ndarray) -> CompositeResult:
        """Composite a tile-id grid into an ordered list of shapes.

        Args:
            grid: Array of shape ``(X, Y, Z)`` holding tile ids; an id
                with no prototype in the library leaves the cell empty.

        Returns:
            CompositeResult: Surviving shapes in draw order plus the
            canvas size.

        Raises:
            ValueError: If ``grid`` is not three-dimensional.
        """
        grid = np.asarray(grid)
        if grid.ndim != 3:
            raise ValueError(f"tile grid must be three-dimensional, got {grid.ndim} dimensions")
        grid_size: Coordinate = tuple(int(n) for n in grid.shape)  # type: ignore[assignment]
        self._instances = []
        self._placements = []
        origin = self.axes.origin(grid_size)

        for coordinate in iter_painter_order(grid_size):
            tile_id = int(grid[coordinate])
            prototype = self.library.get(tile_id)
            if prototype is None:
                continue
            self._place(coordinate, tile_id, prototype, origin)

        shapes: List[Shape] = []
        emitted: Set[int] = set()
        for record in self._placements:
            if record.handle is None or record.handle in emitted:
                continue
            emitted.add(record.handle)
            shapes.append(self._instances[record.handle])  # type: ignore[arg-type]

        width, height = self.axes.canvas_size(grid_size)
        logger.info(
            "Composited %d placements into %d shapes on a %gx%g canvas",
            len(self._placements),
            len(shapes),
            width,
            height,
        )
        return CompositeResult(shapes=shapes, width=width, height=height, placements=list(self._placements))


def composite(
    library: TileLibrary,
    grid: np.ndarray,
    equivalence_groups: Optional[EquivalenceGroups] = None,
) -> CompositeResult:
    """Convenience wrapper around :class:`Compositor`."""
    return Compositor(library, equivalence_groups).composite(grid)
