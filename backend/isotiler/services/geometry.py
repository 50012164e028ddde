"""
Polygon kernel used by the isometric compositor.

The operations here are deliberately restricted to what occlusion
culling of tile faces needs; this is not a general polygon clipper.
Polygons are closed vertex loops (the last vertex connects back to the
first).  Any object exposing a ``loops()`` method, such as the
primitives, components and shapes in :mod:`shapes`, is accepted
wherever a polygon is expected, and so is a plain sequence of
``(x, y)`` tuples.  Multi-loop polygons are classified with the
even-odd rule over all of their loops.

Functions defined here:

- ``get_containment(polygon, point)`` – classify a point as
  :attr:`Containment.INSIDE`, :attr:`Containment.EDGE` or
  :attr:`Containment.OUTSIDE` by ray casting.
- ``get_containment_along(polygon, point, direction)`` – the same with
  a caller-chosen ray direction.
- ``encloses(a, b)`` – true when every vertex of ``b`` is inside or on
  the boundary of ``a``.
- ``reduce_if_obscured(target, occluder)`` – drop ``target`` when the
  occluder encloses it.
- ``draw_direction(points)`` – winding direction from the signed sum of
  turning angles.
- ``fuse_shared_boundary(a, b)`` – merge two polygons that share a
  contiguous run of vertices into one.

``encloses`` samples vertices only.  That is exact for the polygons
this project deals with, whose edges come from axis-aligned and
isometric tile outlines, but it can report a false positive for
arbitrary polygons whose edges cross without any vertex crossing.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from .vector import Point, cross2, dot2, sub2


class DegenerateGeometryError(ValueError):
    """Raised when a polygon with fewer than three vertices reaches the kernel."""


class Containment(Enum):
    INSIDE = "inside"
    EDGE = "edge"
    OUTSIDE = "outside"


class CircleDirection(Enum):
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter_clockwise"


# Ray directions tried in order.  The second one is used for the whole
# polygon as soon as any edge runs parallel to the first.
RAY_DIRECTIONS: Tuple[Point, Point] = ((1.0, 0.0), (0.0, 1.0))


def _loops_of(polygon: Any) -> List[Sequence[Point]]:
    loops_method = getattr(polygon, "loops", None)
    if callable(loops_method):
        loops = [list(loop) for loop in loops_method()]
    else:
        loops = [list(polygon)]
    for loop in loops:
        if len(loop) < 3:
            raise DegenerateGeometryError(
                f"polygon loop has {len(loop)} vertices; at least 3 are required"
            )
    return loops


def iter_edges(points: Sequence[Point]) -> Iterator[Tuple[Point, Point]]:
    """Yield ``(start, end)`` pairs for every edge of a closed loop."""
    n = len(points)
    for i in range(n):
        yield points[i], points[(i + 1) % n]


def intersection_parameters(
    p_1: Point, d_1: Point, p_2: Point, d_2: Point
) -> Optional[Tuple[float, float]]:
    """Solve ``p_1 + λ·d_1 == p_2 + μ·d_2`` for ``(λ, μ)``.

    Returns ``None`` when the two directions are parallel and the
    parameters are undefined.
    """
    denominator = cross2(d_1, d_2)
    if denominator == 0.0:
        return None
    lam = cross2(sub2(p_2, p_1), d_2) / denominator
    mu = cross2(sub2(p_1, p_2), d_1) / -denominator
    return lam, mu


def _sign(value: float) -> int:
    return (value > 0.0) - (value < 0.0)


def _on_segment(start: Point, end: Point, point: Point) -> bool:
    if cross2(sub2(end, start), sub2(point, start)) != 0.0:
        return False
    return (
        min(start[0], end[0]) <= point[0] <= max(start[0], end[0])
        and min(start[1], end[1]) <= point[1] <= max(start[1], end[1])
    )


def _has_parallel_edge(loops: List[Sequence[Point]], direction: Point) -> bool:
    for loop in loops:
        for start, end in iter_edges(loop):
            if cross2(sub2(end, start), direction) == 0.0:
                return True
    return False


def _choose_direction(loops: List[Sequence[Point]]) -> Point:
    if _has_parallel_edge(loops, RAY_DIRECTIONS[0]):
        return RAY_DIRECTIONS[1]
    return RAY_DIRECTIONS[0]


def _incoming_edge(loop: Sequence[Point], index: int, direction: Point) -> Optional[Point]:
    # Nearest preceding edge that is not parallel to the ray.
    n = len(loop)
    for back in range(1, n):
        i = (index - back) % n
        edge = sub2(loop[(i + 1) % n], loop[i])
        if cross2(edge, direction) != 0.0:
            return edge
    return None


def _count_crossings(loop: Sequence[Point], point: Point, direction: Point) -> Optional[int]:
    """Count ray crossings for one loop, or ``None`` if ``point`` is on it."""
    crossings = 0
    for index, (start, end) in enumerate(iter_edges(loop)):
        edge = sub2(end, start)
        params = intersection_parameters(start, edge, point, direction)
        if params is None:
            # parallel to the ray: only matters if the point lies on it
            if _on_segment(start, end, point):
                return None
            continue
        lam, mu = params
        if mu == 0.0 and 0.0 <= lam <= 1.0:
            return None
        if mu <= 0.0:
            continue
        if 0.0 < lam < 1.0:
            crossings += 1
        elif lam == 0.0:
            # ray passes through a vertex: count it only if the boundary
            # actually crosses the ray there rather than touching it
            incoming = _incoming_edge(loop, index, direction)
            if incoming is not None and _sign(cross2(incoming, direction)) == _sign(
                cross2(edge, direction)
            ):
                crossings += 1
    return crossings


def _classify(loops: List[Sequence[Point]], direction: Point, point: Point) -> Containment:
    total = 0
    for loop in loops:
        crossings = _count_crossings(loop, point, direction)
        if crossings is None:
            return Containment.EDGE
        total += crossings
    return Containment.INSIDE if total % 2 == 1 else Containment.OUTSIDE


def get_containment(polygon: Any, point: Point) -> Containment:
    """Classify ``point`` against ``polygon`` by ray casting.

    A ray is cast along ``(1, 0)``; if any edge of the polygon runs
    parallel to that direction the whole polygon is classified along
    ``(0, 1)`` instead.  Points on an edge or vertex are reported as
    :attr:`Containment.EDGE`.  A ray passing exactly through a vertex
    counts as a crossing only when the edges on either side of the
    vertex lie on opposite sides of the ray.

    Raises:
        DegenerateGeometryError: If any loop has fewer than three
            vertices.
    """
    loops = _loops_of(polygon)
    return _classify(loops, _choose_direction(loops), point)


def get_containment_along(polygon: Any, point: Point, direction: Point) -> Containment:
    """Classify ``point`` casting the ray along ``direction``.

    Unlike :func:`get_containment` no fallback direction is chosen.
    """
    return _classify(_loops_of(polygon), direction, point)


def encloses(a: Any, b: Any) -> bool:
    """Return ``True`` if every vertex of ``b`` is inside or on ``a``."""
    loops_a = _loops_of(a)
    direction = _choose_direction(loops_a)
    for loop in _loops_of(b):
        for point in loop:
            if _classify(loops_a, direction, point) is Containment.OUTSIDE:
                return False
    return True


def reduce_if_obscured(target: Any, occluder: Any) -> Optional[Any]:
    """Return ``None`` if ``occluder`` encloses ``target``, else ``target``.

    There is no partial clipping: an obscured polygon is dropped whole.
    """
    if encloses(occluder, target):
        return None
    return target


def draw_direction(points: Sequence[Point]) -> CircleDirection:
    """Winding direction of a loop in a y-up frame.

    The signed turning angles at every vertex are summed; a positive
    total means the loop turns counter-clockwise.
    """
    if len(points) < 3:
        raise DegenerateGeometryError("winding needs at least 3 vertices")
    total = 0.0
    n = len(points)
    for i in range(n):
        e_1 = sub2(points[(i + 1) % n], points[i])
        e_2 = sub2(points[(i + 2) % n], points[(i + 1) % n])
        total += math.atan2(cross2(e_1, e_2), dot2(e_1, e_2))
    return CircleDirection.COUNTER_CLOCKWISE if total > 0.0 else CircleDirection.CLOCKWISE


def _longest_shared_run(a: Sequence[Point], b: Sequence[Point]) -> Optional[Tuple[int, int, int]]:
    """Find the longest run of ``a`` that is also contiguous in ``b``.

    Returns ``(start, length, step)`` where ``a[start + k]`` sits at
    ``b[b_start + step * k]``, or ``None`` if no run spans an edge.
    """
    b_index = {}
    for i, p in enumerate(b):
        b_index.setdefault(p, i)
    n, m = len(a), len(b)
    best: Optional[Tuple[int, int, int]] = None
    for start in range(n):
        b_start = b_index.get(a[start])
        if b_start is None:
            continue
        for step in (1, -1):
            length = 1
            while length < min(n, m):
                j = b_index.get(a[(start + length) % n])
                if j is None or j != (b_start + step * length) % m:
                    break
                length += 1
            if length >= 2 and (best is None or length > best[1]):
                best = (start, length, step)
    return best


def _drop_collinear(points: List[Point], indices: Sequence[int]) -> List[Point]:
    n = len(points)
    drop = set()
    for i in indices:
        before, here, after = points[(i - 1) % n], points[i], points[(i + 1) % n]
        if cross2(sub2(here, before), sub2(after, here)) == 0.0:
            drop.add(i)
    if n - len(drop) < 3:
        return points
    return [p for i, p in enumerate(points) if i not in drop]


def fuse_shared_boundary(a: Any, b: Any) -> Optional[List[Point]]:
    """Merge two single-loop polygons along their longest shared vertex run.

    The result walks ``a`` from the far end of the shared run around its
    unshared boundary to the near end, then follows ``b``'s unshared
    boundary back again.  Which way to walk ``b`` is decided from the
    winding of both polygons: the same winding walks ``b`` forward, the
    opposite winding walks it backward.  Shared vertices are matched by
    exact coordinate equality.  Run endpoints that end up collinear with
    their neighbours are removed.

    Returns:
        The fused vertex loop, or ``None`` if the polygons share no edge
        or overlap instead of abutting.
    """
    loops_a, loops_b = _loops_of(a), _loops_of(b)
    if len(loops_a) != 1 or len(loops_b) != 1:
        raise ValueError("boundary fusion works on single-loop polygons")
    pts_a, pts_b = loops_a[0], loops_b[0]

    run = _longest_shared_run(pts_a, pts_b)
    if run is None:
        return None
    start, length, step = run
    n, m = len(pts_a), len(pts_b)
    if length == n == m:
        return list(pts_a)

    end = (start + length - 1) % n
    fused: List[Point] = []
    i = end
    while True:
        fused.append(pts_a[i])
        if i == start:
            break
        i = (i + 1) % n
    splice_points = [0, len(fused) - 1]

    walk = 1 if draw_direction(pts_a) is draw_direction(pts_b) else -1
    if walk == step:
        return None
    b_start, b_end = pts_b.index(pts_a[start]), pts_b.index(pts_a[end])
    j = (b_start + walk) % m
    while j != b_end:
        fused.append(pts_b[j])
        j = (j + walk) % m
    return _drop_collinear(fused, splice_points)


__all__ = [
    "DegenerateGeometryError",
    "Containment",
    "CircleDirection",
    "RAY_DIRECTIONS",
    "iter_edges",
    "intersection_parameters",
    "get_containment",
    "get_containment_along",
    "encloses",
    "reduce_if_obscured",
    "draw_direction",
    "fuse_shared_boundary",
]
