"""
Tuple-based vector helpers shared by the geometry services.

Points in the scene are plain ``(x, y)`` tuples and face normals are
``(x, y, z)`` tuples.  Keeping them as tuples means they can be copied,
hashed and compared for exact equality freely, which the boundary
fusion code relies on.  The helpers below cover the handful of
operations the kernel and the compositor need.
"""

from __future__ import annotations

import math
from typing import Tuple

Point = Tuple[float, float]
Vector3 = Tuple[float, float, float]


def add2(a: Point, b: Point) -> Point:
    """Add two 2D vectors."""
    return (a[0] + b[0], a[1] + b[1])


def sub2(a: Point, b: Point) -> Point:
    """Subtract two 2D vectors (a - b)."""
    return (a[0] - b[0], a[1] - b[1])


def scale2(a: Point, s: float) -> Point:
    """Scale a 2D vector by ``s``."""
    return (a[0] * s, a[1] * s)


def cross2(a: Point, b: Point) -> float:
    """Return the z component of the cross product of two 2D vectors.

    Positive when ``b`` lies counter-clockwise of ``a`` in a y-up frame.
    """
    return a[0] * b[1] - a[1] * b[0]


def dot2(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def dot3(a: Vector3, b: Vector3) -> float:
    """Compute the dot product of two 3D vectors."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def scale3(a: Vector3, s: float) -> Vector3:
    return (a[0] * s, a[1] * s, a[2] * s)


def normalise3(a: Vector3) -> Vector3:
    """Return ``a`` scaled to unit length.

    Raises:
        ValueError: If ``a`` has zero length.
    """
    magnitude = math.sqrt(dot3(a, a))
    if magnitude == 0.0:
        raise ValueError("cannot normalise a zero-length vector")
    return (a[0] / magnitude, a[1] / magnitude, a[2] / magnitude)
