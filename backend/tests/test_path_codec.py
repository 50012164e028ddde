"""Tests for decoding and encoding SVG path notation."""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from isotiler.services.path_codec import (  # type: ignore
    CommandType,
    PathFormatError,
    decode_primitives,
    encode_path,
    format_number,
    iter_encoded_commands,
    iter_path_commands,
    iter_path_points,
)

PENTAGON = [(46.0, 33.0), (65.0, 38.0), (65.0, 19.0), (51.0, 4.0), (38.0, 18.0)]


def test_decode_absolute_path() -> None:
    assert decode_primitives("M 46 33 65 38 V 19 L 51 4 38 18 Z") == [PENTAGON]


def test_decode_relative_path() -> None:
    assert decode_primitives("m 46 33 19 5 v -19 l -14 -15 -13 14 z") == [PENTAGON]


def test_decode_comma_separated_pairs() -> None:
    assert decode_primitives("M46,33 65,38V19L51,4,38,18z") == [PENTAGON]


def test_decode_multiple_subpaths() -> None:
    d = "m 46 33 19 5 v -19 l -14 -15 -13 14 z M 11 59 32 45 h -9 L 16 30 v 4 z"
    assert decode_primitives(d) == [
        PENTAGON,
        [(11.0, 59.0), (32.0, 45.0), (23.0, 45.0), (16.0, 30.0), (16.0, 34.0)],
    ]


def test_relative_move_after_close_starts_from_subpath_start() -> None:
    primitives = decode_primitives("M 10 10 h 5 v 5 z m 1 1 h 2 v 2 z")
    assert primitives[1][0] == (11.0, 11.0)


def test_unclosed_trailing_subpath_is_kept() -> None:
    assert decode_primitives("M 0 0 H 4 V 4") == [[(0.0, 0.0), (4.0, 0.0), (4.0, 4.0)]]


def test_close_is_reported_as_boundary_at_start_point() -> None:
    points = list(iter_path_points("M 1 2 H 5 V 6 Z"))
    assert points[-1] == ((1.0, 2.0), True)
    assert all(not boundary for _, boundary in points[:-1])


def test_exponent_numbers_parse() -> None:
    commands = list(iter_path_commands("M 1e1 -2.5E-1 z"))
    assert commands[0].cmd_type is CommandType.MOVE_ABS
    assert commands[0].params == [10.0, -0.25]
    assert commands[1].cmd_type is CommandType.CLOSE


@pytest.mark.parametrize(
    "d",
    [
        "M 1 x",
        "Q 1 2 3 4",
        "M 1",
        "L 1 2 3",
        "12 M 0 0",
        "M 0 0 z 3",
        "M 0..1 2",
    ],
)
def test_malformed_paths_raise(d: str) -> None:
    with pytest.raises(PathFormatError):
        list(iter_path_points(d))


def test_encode_axis_aligned_square() -> None:
    square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    assert encode_path(square) == "M0 0 H1 V1 H0 z"


def test_encode_diagonal_polygon_stays_in_move_command() -> None:
    triangle = [(0.0, 0.0), (2.0, 1.0), (1.0, 3.0)]
    assert encode_path(triangle) == "M0 0 2 1 1 3 z"


def test_encode_groups_runs_of_vertical_steps() -> None:
    points = [(0.0, 0.0), (3.0, 1.0), (3.0, 2.0), (3.0, 5.0), (1.0, 6.0)]
    commands = list(iter_encoded_commands(points))
    assert [c.cmd_type for c in commands] == [
        CommandType.MOVE_ABS,
        CommandType.VERT_ABS,
        CommandType.LINE_ABS,
        CommandType.CLOSE,
    ]
    assert commands[1].params == [2.0, 5.0]


def test_encode_empty_sequence_raises() -> None:
    with pytest.raises(ValueError):
        encode_path([])


@pytest.mark.parametrize(
    "points",
    [
        [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        [(0.0, 0.0), (2.0, 1.0), (1.0, 3.0)],
        [(-1.5, 2.25), (4.0, 2.25), (4.0, -3.0), (0.5, -7.0)],
    ],
)
def test_encoded_path_decodes_to_same_vertices(points) -> None:
    assert decode_primitives(encode_path(points)) == [points]


def test_format_number_is_positional() -> None:
    assert format_number(1.0) == "1"
    assert format_number(-2.5) == "-2.5"
    assert format_number(1e-7) == "0.0000001"
    assert format_number(1e20) == "100000000000000000000"
