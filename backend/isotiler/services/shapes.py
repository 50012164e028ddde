"""
Primitive / Component / Shape data model.

A :class:`Primitive` is one closed polygon, a :class:`Component` is a
set of primitives sharing a face normal (the unit of shading) and a
:class:`Shape` is the full set of components of one tile.  All three
levels implement the :class:`Polygonal` contract (``points``,
``loops`` and ``edges``) and inherit bounding box, centre and
translation helpers from it, so the geometry kernel can treat any
level as a polygon.

Prototype shapes parsed from the tile library are never mutated.  The
compositor works on :meth:`Shape.clone` copies, moves them into place
and trims them in place with :meth:`Shape.reduce_if_obscured`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from .geometry import DegenerateGeometryError, encloses, fuse_shared_boundary, iter_edges
from .path_codec import encode_path
from .vector import Point, Vector3, add2, sub2


class Polygonal(ABC):
    """Shared contract for everything made of vertex loops."""

    @abstractmethod
    def loops(self) -> Iterator[Sequence[Point]]:
        """Yield each closed vertex loop."""

    @abstractmethod
    def _map_points(self, func: Callable[[Point], Point]) -> None:
        """Replace every vertex ``p`` with ``func(p)`` in place."""

    def points(self) -> Iterator[Point]:
        for loop in self.loops():
            yield from loop

    def edges(self) -> Iterator[Tuple[Point, Point]]:
        for loop in self.loops():
            yield from iter_edges(loop)

    def _xs(self) -> List[float]:
        xs = [p[0] for p in self.points()]
        if not xs:
            raise DegenerateGeometryError(f"{type(self).__name__} has no vertices")
        return xs

    def _ys(self) -> List[float]:
        ys = [p[1] for p in self.points()]
        if not ys:
            raise DegenerateGeometryError(f"{type(self).__name__} has no vertices")
        return ys

    def left(self) -> float:
        return min(self._xs())

    def right(self) -> float:
        return max(self._xs())

    def top(self) -> float:
        return min(self._ys())

    def bottom(self) -> float:
        return max(self._ys())

    def width(self) -> float:
        return self.right() - self.left()

    def height(self) -> float:
        return self.bottom() - self.top()

    def bounding_box(self) -> Tuple[Point, Point]:
        """Return ``((left, top), (right, bottom))``."""
        return (self.left(), self.top()), (self.right(), self.bottom())

    def centre(self) -> Point:
        """Centre of the bounding box (not the area centroid)."""
        return ((self.left() + self.right()) / 2.0, (self.top() + self.bottom()) / 2.0)

    def shift(self, offset: Point) -> None:
        self._map_points(lambda p: add2(p, offset))

    def move_to(self, point: Point) -> None:
        """Translate so that :meth:`centre` lands on ``point``."""
        self.shift(sub2(point, self.centre()))


@dataclass
class Primitive(Polygonal):
    """One closed polygon; the last vertex connects back to the first."""

    vertices: List[Point]

    def __post_init__(self) -> None:
        self.vertices = [(float(x), float(y)) for x, y in self.vertices]
        if len(self.vertices) < 3:
            raise DegenerateGeometryError(
                f"a primitive needs at least 3 vertices, got {len(self.vertices)}"
            )

    def loops(self) -> Iterator[Sequence[Point]]:
        yield self.vertices

    def _map_points(self, func: Callable[[Point], Point]) -> None:
        self.vertices = [func(p) for p in self.vertices]

    def clone(self) -> "Primitive":
        return Primitive(list(self.vertices))

    def reduce_if_obscured(self, occluder: Any) -> Optional["Primitive"]:
        return None if encloses(occluder, self) else self

    def fuse(self, other: "Primitive") -> Optional["Primitive"]:
        """Merge with ``other`` along a shared boundary run, if there is one."""
        fused = fuse_shared_boundary(self, other)
        return Primitive(fused) if fused is not None else None

    def to_d(self) -> str:
        return encode_path(self.vertices)


@dataclass
class Component(Polygonal):
    """Primitives sharing one face normal."""

    normal: Vector3
    primitives: List[Primitive] = field(default_factory=list)

    def loops(self) -> Iterator[Sequence[Point]]:
        for primitive in self.primitives:
            yield primitive.vertices

    def _map_points(self, func: Callable[[Point], Point]) -> None:
        for primitive in self.primitives:
            primitive._map_points(func)

    def clone(self) -> "Component":
        return Component(self.normal, [p.clone() for p in self.primitives])

    def reduce_if_obscured(self, occluder: Any) -> Optional["Component"]:
        """Drop every primitive ``occluder`` encloses, in place.

        Returns ``None`` once no primitive survives.
        """
        self.primitives = [p for p in self.primitives if p.reduce_if_obscured(occluder) is not None]
        return self if self.primitives else None

    def merge_faces(self) -> int:
        """Fuse primitives sharing a boundary until none do.

        Returns:
            The number of fusions performed.
        """
        fusions = 0
        merged = True
        while merged:
            merged = False
            for i in range(len(self.primitives)):
                for j in range(i + 1, len(self.primitives)):
                    fused = self.primitives[i].fuse(self.primitives[j])
                    if fused is None:
                        continue
                    self.primitives[i] = fused
                    del self.primitives[j]
                    fusions += 1
                    merged = True
                    break
                if merged:
                    break
        return fusions

    def to_d(self) -> str:
        return "".join(p.to_d() for p in self.primitives)


@dataclass
class Shape(Polygonal):
    """A tile prototype or a placed instance of one."""

    components: List[Component] = field(default_factory=list)

    def loops(self) -> Iterator[Sequence[Point]]:
        for component in self.components:
            yield from component.loops()

    def _map_points(self, func: Callable[[Point], Point]) -> None:
        for component in self.components:
            component._map_points(func)

    def clone(self) -> "Shape":
        """Deep copy; the result shares no mutable state with ``self``."""
        return Shape([c.clone() for c in self.components])

    def reduce_if_obscured(self, occluder: Any) -> Optional["Shape"]:
        """Trim components ``occluder`` hides, in place.

        Returns ``None`` once no component survives, which is the
        signal for the caller to drop the shape from the scene.
        """
        survivors = []
        for component in self.components:
            if component.reduce_if_obscured(occluder) is not None:
                survivors.append(component)
        self.components = survivors
        return self if survivors else None

    def merge_faces(self) -> int:
        return sum(c.merge_faces() for c in self.components)

    @property
    def primitive_count(self) -> int:
        return sum(len(c.primitives) for c in self.components)
