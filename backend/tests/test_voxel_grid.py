"""Tests for explicit and random voxel grid construction."""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from isotiler.services.voxel_grid import empty_grid, grid_from_placements, random_grid  # type: ignore


def test_explicit_placements() -> None:
    grid = grid_from_placements((2, 3, 4), [((0, 0, 0), 5), ((1, 2, 3), 255), ((0, 0, 0), 6)])
    assert grid.shape == (2, 3, 4)
    assert grid.dtype == np.uint8
    assert grid[0, 0, 0] == 6
    assert grid[1, 2, 3] == 255
    assert int(grid.sum()) == 261


@pytest.mark.parametrize(
    "placement",
    [((2, 0, 0), 1), ((0, -1, 0), 1), ((0, 0, 0), 256), ((0, 0, 0), -1)],
)
def test_invalid_placements_are_rejected(placement) -> None:
    with pytest.raises(ValueError):
        grid_from_placements((2, 2, 2), [placement])


def test_grid_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        empty_grid((0, 1, 1))
    with pytest.raises(ValueError):
        empty_grid((1, 1))


def test_random_fill_is_reproducible() -> None:
    a = random_grid((4, 4, 4), seed=11)
    b = random_grid((4, 4, 4), seed=11)
    assert np.array_equal(a, b)
    assert a.dtype == np.uint8


def test_random_fill_uses_choices() -> None:
    grid = random_grid((5, 5, 5), seed=3, choices=[0, 1, 3])
    assert set(np.unique(grid).tolist()) <= {0, 1, 3}
    with pytest.raises(ValueError):
        random_grid((1, 1, 1), choices=[])
