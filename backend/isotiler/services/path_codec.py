"""
Codec between SVG path notation and ordered polygon vertex lists.

Tile faces are authored as ``<path>`` elements whose ``d`` attribute
uses a small, line-only subset of the SVG path mini-language: absolute
and relative move (``M``/``m``), line (``L``/``l``), vertical line
(``V``/``v``), horizontal line (``H``/``h``) and close (``Z``/``z``).
This module converts such strings into point sequences and converts
point sequences back into compact path strings.

Decoding is lazy and stream-wise.  ``iter_path_commands`` tokenises the
string into :class:`PathCommand` objects, ``iter_path_points`` replays
them against a running current point and yields ``(point, is_boundary)``
pairs, and ``iter_primitive_points`` groups those pairs into one vertex
list per closed subpath.

Encoding is a greedy run-length compaction into absolute commands.  The
first command is always ``M`` and keeps absorbing points as implicit
line-tos until it meets an axis-aligned pair.  Every later command is
picked from the alignment of the pending anchor point with the point
before it (``V`` for equal x, ``H`` for equal y, ``L`` otherwise) and
then absorbs points while they continue that run.  The exact output
shape is relied upon by consumers of generated scenes, so the anchor
handoff between commands is kept as is even where a shorter encoding
exists.

Functions defined here:

- ``iter_path_commands(d)`` – tokenise a ``d`` string into commands.
- ``iter_path_points(d)`` – yield ``(point, is_boundary)`` pairs.
- ``iter_primitive_points(d)`` – yield one vertex list per subpath.
- ``decode_primitives(d)`` – eager list form of the above.
- ``iter_encoded_commands(points)`` – compact a vertex loop into commands.
- ``encode_path(points)`` – render a vertex loop as a ``d`` string.
- ``format_number(value)`` – canonical decimal rendering of a parameter.

Malformed input raises :class:`PathFormatError`; there is no partial
recovery.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from .vector import Point


class PathFormatError(ValueError):
    """Raised when a path string cannot be decoded."""


class CommandType(Enum):
    """The closed set of supported path commands."""

    MOVE_ABS = "M"
    MOVE_REL = "m"
    LINE_ABS = "L"
    LINE_REL = "l"
    VERT_ABS = "V"
    VERT_REL = "v"
    HORIZ_ABS = "H"
    HORIZ_REL = "h"
    CLOSE = "z"

    @classmethod
    def from_opcode(cls, opcode: str) -> "CommandType":
        """Map a single opcode letter to its command type.

        Both ``Z`` and ``z`` close the current subpath.

        Raises:
            PathFormatError: If ``opcode`` is not a supported command.
        """
        if opcode == "Z":
            return cls.CLOSE
        try:
            return cls(opcode)
        except ValueError:
            raise PathFormatError(f"'{opcode}' is not a supported path command") from None

    @property
    def opcode(self) -> str:
        return self.value

    @property
    def is_relative(self) -> bool:
        return self in (
            CommandType.MOVE_REL,
            CommandType.LINE_REL,
            CommandType.VERT_REL,
            CommandType.HORIZ_REL,
        )

    @property
    def is_move(self) -> bool:
        return self in (CommandType.MOVE_ABS, CommandType.MOVE_REL)

    @property
    def arity(self) -> int:
        """Number of parameters consumed by one repetition of the command."""
        if self is CommandType.CLOSE:
            return 0
        if self in (
            CommandType.VERT_ABS,
            CommandType.VERT_REL,
            CommandType.HORIZ_ABS,
            CommandType.HORIZ_REL,
        ):
            return 1
        return 2


@dataclass
class PathCommand:
    """One opcode together with its run of numeric parameters."""

    cmd_type: CommandType
    params: List[float] = field(default_factory=list)

    @property
    def is_relative(self) -> bool:
        return self.cmd_type.is_relative

    def to_d(self) -> str:
        """Render the command in the notation used by :func:`encode_path`.

        Every parameter is followed by a single space, so commands can be
        concatenated without further separators.
        """
        return self.cmd_type.opcode + "".join(f"{format_number(p)} " for p in self.params)


# An opcode letter followed by everything up to the next opcode letter.
# ``e``/``E`` are left out of the opcode class so that exponents stay
# attached to their numbers.
_COMMAND_RE = re.compile(r"(?P<cmd>[A-DF-Za-df-z])(?P<nums>[^A-DF-Za-df-z]*)")
_SEPARATOR_RE = re.compile(r"[\s,]+")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_numbers(run: str) -> List[float]:
    numbers: List[float] = []
    for token in _SEPARATOR_RE.split(run.strip()):
        if not token:
            continue
        if _NUMBER_RE.fullmatch(token) is None:
            raise PathFormatError(f"'{token}' could not be converted to a number")
        numbers.append(float(token))
    return numbers


def iter_path_commands(d: str) -> Iterator[PathCommand]:
    """Tokenise a path string into :class:`PathCommand` objects.

    Args:
        d: Contents of a ``d`` attribute.

    Yields:
        One command per opcode in the string, in order.

    Raises:
        PathFormatError: If the string contains an unknown opcode, a
            non-numeric parameter, a parameter count that does not fit
            the opcode, or stray text before the first command.
    """
    position = 0
    for match in _COMMAND_RE.finditer(d):
        if position == 0 and d[: match.start()].strip():
            raise PathFormatError(f"unexpected text before first command: '{d[: match.start()].strip()}'")
        position = match.end()
        cmd_type = CommandType.from_opcode(match.group("cmd"))
        params = _parse_numbers(match.group("nums"))
        arity = cmd_type.arity
        if arity == 0:
            if params:
                raise PathFormatError("close command does not take parameters")
        elif not params or len(params) % arity:
            raise PathFormatError(
                f"command '{match.group('cmd')}' expects parameters in groups of {arity}, got {len(params)}"
            )
        yield PathCommand(cmd_type=cmd_type, params=params)
    if position == 0 and d.strip():
        raise PathFormatError(f"no path commands found in '{d.strip()}'")


def iter_path_points(d: str) -> Iterator[Tuple[Point, bool]]:
    """Replay a path string and yield every vertex it visits.

    The current point starts at the origin.  Each move records the
    start of a new subpath; any further coordinate pairs on the same
    move are implicit line-tos of the same absolute/relative kind.  A
    close command returns to the subpath start and is reported with
    ``is_boundary`` set, marking the end of one primitive.

    Yields:
        ``(point, is_boundary)`` tuples.
    """
    x, y = 0.0, 0.0
    start: Point = (0.0, 0.0)
    for command in iter_path_commands(d):
        kind = command.cmd_type
        if kind is CommandType.CLOSE:
            x, y = start
            yield (x, y), True
            continue
        params = command.params
        for index in range(0, len(params), kind.arity):
            if kind in (CommandType.MOVE_ABS, CommandType.LINE_ABS):
                x, y = params[index], params[index + 1]
            elif kind in (CommandType.MOVE_REL, CommandType.LINE_REL):
                x, y = x + params[index], y + params[index + 1]
            elif kind is CommandType.VERT_ABS:
                y = params[index]
            elif kind is CommandType.VERT_REL:
                y += params[index]
            elif kind is CommandType.HORIZ_ABS:
                x = params[index]
            elif kind is CommandType.HORIZ_REL:
                x += params[index]
            if kind.is_move and index == 0:
                start = (x, y)
            yield (x, y), False


def iter_primitive_points(d: str) -> Iterator[List[Point]]:
    """Group decoded points into one vertex list per subpath.

    The closing point of a subpath is not repeated in its list.  A
    trailing subpath without a close command is still yielded.  Empty
    groups (for example ``z z``) are dropped.
    """
    group: List[Point] = []
    for point, is_boundary in iter_path_points(d):
        if is_boundary:
            if group:
                yield group
            group = []
        else:
            group.append(point)
    if group:
        yield group


def decode_primitives(d: str) -> List[List[Point]]:
    """Decode a path string into a list of vertex lists."""
    return list(iter_primitive_points(d))


def _aligned(a: Point, b: Point) -> bool:
    return a[0] == b[0] or a[1] == b[1]


def iter_encoded_commands(points: Iterable[Point]) -> Iterator[PathCommand]:
    """Compact a closed vertex loop into absolute path commands.

    See the module docstring for the compaction rules.  The last command
    is always a close.

    Raises:
        ValueError: If ``points`` is empty.
    """
    it = iter(points)
    first = next(it, None)
    if first is None:
        raise ValueError("cannot encode an empty point sequence")

    current: Point = first
    last: Point = first
    params = [first[0], first[1]]
    finished = True
    for point in it:
        last, current = current, point
        if _aligned(last, current):
            # the aligned point becomes the anchor of the next command
            finished = False
            break
        params.extend(point)
    yield PathCommand(CommandType.MOVE_ABS, params)

    while True:
        next_point = next(it, None)
        if next_point is None:
            break
        if current[0] == last[0]:
            kind = CommandType.VERT_ABS
            params = [current[1]]
        elif current[1] == last[1]:
            kind = CommandType.HORIZ_ABS
            params = [current[0]]
        else:
            kind = CommandType.LINE_ABS
            params = [current[0], current[1]]

        while _continues_run(kind, current, next_point):
            if kind is CommandType.VERT_ABS:
                params.append(next_point[1])
            elif kind is CommandType.HORIZ_ABS:
                params.append(next_point[0])
            else:
                params.extend(next_point)
            last, current = current, next_point
            following = next(it, None)
            if following is None:
                finished = True
                break
            next_point = following
        last, current = current, next_point
        yield PathCommand(kind, params)

    if not finished:
        if current[0] == last[0]:
            yield PathCommand(CommandType.VERT_ABS, [current[1]])
        elif current[1] == last[1]:
            yield PathCommand(CommandType.HORIZ_ABS, [current[0]])
        else:
            yield PathCommand(CommandType.LINE_ABS, [current[0], current[1]])
    yield PathCommand(CommandType.CLOSE)


def _continues_run(kind: CommandType, current: Point, candidate: Point) -> bool:
    if kind is CommandType.VERT_ABS:
        return candidate[0] == current[0]
    if kind is CommandType.HORIZ_ABS:
        return candidate[1] == current[1]
    return candidate != current


def encode_path(points: Sequence[Point]) -> str:
    """Render one closed vertex loop as a compact ``d`` string.

    Example::

        >>> encode_path([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])
        'M0 0 H1 V1 H0 z'
    """
    return "".join(command.to_d() for command in iter_encoded_commands(points))


def encode_loops(loops: Iterable[Sequence[Point]]) -> str:
    """Concatenate the encodings of several loops into one ``d`` string."""
    return "".join(encode_path(loop) for loop in loops)


def format_number(value: float) -> str:
    """Render a parameter in positional decimal form.

    The shortest digits that round-trip are used, trailing zeros and a
    trailing decimal point are dropped, and scientific notation is never
    produced (``1.0`` -> ``"1"``, ``1e-7`` -> ``"0.0000001"``).
    """
    return np.format_float_positional(float(value), trim="-")


__all__ = [
    "PathFormatError",
    "CommandType",
    "PathCommand",
    "iter_path_commands",
    "iter_path_points",
    "iter_primitive_points",
    "decode_primitives",
    "iter_encoded_commands",
    "encode_path",
    "encode_loops",
    "format_number",
]
