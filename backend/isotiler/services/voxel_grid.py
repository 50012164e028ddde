"""
Construction of tile-id grids.

A voxel grid is a ``uint8`` numpy array of shape ``(X, Y, Z)`` where
each cell holds a tile id.  Unset cells hold 0, which draws nothing
unless the library registers a prototype for id 0.  Grids are either filled
explicitly from a list of placements or randomly from a seeded
generator, optionally restricted to a list of allowed tile ids.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

GridSize = Tuple[int, int, int]
Placement = Tuple[Tuple[int, int, int], int]


def _check_size(grid_size: Sequence[int]) -> GridSize:
    if len(grid_size) != 3:
        raise ValueError(f"grid size must have three dimensions, got {len(grid_size)}")
    size = tuple(int(n) for n in grid_size)
    if any(n < 1 for n in size):
        raise ValueError(f"grid dimensions must be positive, got {size}")
    return size  # type: ignore[return-value]


def _check_tile(tile_id: int) -> int:
    if not 0 <= tile_id <= 255:
        raise ValueError(f"tile id {tile_id} is outside 0-255")
    return tile_id


def empty_grid(grid_size: Sequence[int]) -> np.ndarray:
    return np.zeros(_check_size(grid_size), dtype=np.uint8)


def grid_from_placements(grid_size: Sequence[int], placements: Iterable[Placement]) -> np.ndarray:
    """Build a grid with the given cells set and every other cell empty.

    Later placements at the same coordinate overwrite earlier ones.

    Raises:
        ValueError: If a coordinate lies outside the grid or a tile id
            does not fit in 8 bits.
    """
    grid = empty_grid(grid_size)
    for coordinate, tile_id in placements:
        if len(coordinate) != 3 or any(not 0 <= c < n for c, n in zip(coordinate, grid.shape)):
            raise ValueError(f"placement {tuple(coordinate)} is outside a grid of size {grid.shape}")
        grid[tuple(coordinate)] = _check_tile(int(tile_id))
    return grid


def random_grid(
    grid_size: Sequence[int],
    seed: Optional[int] = None,
    choices: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Fill every cell with a tile id drawn uniformly at random.

    Args:
        grid_size: Grid dimensions.
        seed: Seed for :func:`numpy.random.default_rng`; the same seed
            always yields the same grid.
        choices: Tile ids to draw from.  All 256 ids are used when
            omitted.
    """
    size = _check_size(grid_size)
    rng = np.random.default_rng(seed)
    if choices is None:
        grid = rng.integers(0, 256, size=size, dtype=np.uint8)
    else:
        if len(choices) == 0:
            raise ValueError("random fill needs at least one tile id to choose from")
        pool = np.asarray([_check_tile(int(c)) for c in choices], dtype=np.uint8)
        grid = rng.choice(pool, size=size)
    logger.debug("Random grid %s filled with seed %s", size, seed)
    return grid
