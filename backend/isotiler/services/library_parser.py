"""
Tile library parser.

A tile library is an SVG document drawn in Inkscape.  Each tile is a
``<g>`` element whose ``inkscape:label`` lists one or more tile ids as
``;``-separated 8-bit binary strings (``"00000001;00000011"``), and
whose child ``<path>`` elements are the tile's faces.  Every listed id
shares the same prototype :class:`~.shapes.Shape`.

The face normal is encoded in the path's fill colour: 128 is
subtracted from each channel and the result is normalised, with the
channels permuted so that blue maps to x, green to y and red to z.
Tile id 255 is reserved for the reference cube used to derive the
projection axes and must be present.

Groups marked as Inkscape layers, or without a label, are treated as
containers and are not tiles themselves.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .path_codec import iter_primitive_points
from .shapes import Component, Primitive, Shape
from .vector import Vector3, normalise3

logger = logging.getLogger(__name__)

INKSCAPE_NS = "http://www.inkscape.org/namespaces/inkscape"
LABEL_ATTR = f"{{{INKSCAPE_NS}}}label"
GROUPMODE_ATTR = f"{{{INKSCAPE_NS}}}groupmode"

REFERENCE_TILE_ID = 255

_FILL_RE = re.compile(
    r"fill\s*:\s*#(?P<r>[0-9a-fA-F]{2})(?P<g>[0-9a-fA-F]{2})(?P<b>[0-9a-fA-F]{2})"
)
_TILE_ID_RE = re.compile(r"[01]{1,8}")


class LibraryFormatError(ValueError):
    """Raised when a tile library document is malformed."""


@dataclass
class TileLibrary:
    """Prototype shapes indexed by tile id."""

    prototypes: Dict[int, Shape] = field(default_factory=dict)

    def get(self, tile_id: int) -> Optional[Shape]:
        """Return the prototype for ``tile_id`` or ``None`` if unregistered."""
        return self.prototypes.get(int(tile_id))

    @property
    def reference(self) -> Shape:
        """The reference cube (tile id 255)."""
        self.validate()
        return self.prototypes[REFERENCE_TILE_ID]

    def validate(self) -> None:
        """Check the library can be composited.

        Raises:
            LibraryFormatError: If the reference cube is missing.
        """
        if REFERENCE_TILE_ID not in self.prototypes:
            raise LibraryFormatError("tile library has no reference cube (tile id 255)")

    @property
    def tile_ids(self) -> List[int]:
        return sorted(self.prototypes)

    def __len__(self) -> int:
        return len(self.prototypes)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_tile_ids(label: str) -> List[int]:
    """Parse a ``;``-separated list of binary tile ids.

    Raises:
        LibraryFormatError: If any token is not a binary number that
            fits in 8 bits.
    """
    ids: List[int] = []
    for token in label.split(";"):
        token = token.strip()
        if _TILE_ID_RE.fullmatch(token) is None:
            raise LibraryFormatError(f"'{token}' in label '{label}' is not an 8-bit binary tile id")
        ids.append(int(token, 2))
    return ids


def decode_fill_normal(style: str) -> Vector3:
    """Recover a face normal from a ``fill:#RRGGBB`` style declaration."""
    match = _FILL_RE.search(style)
    if match is None:
        raise LibraryFormatError(f"style '{style}' has no fill:#RRGGBB colour")
    r, g, b = (int(match.group(channel), 16) - 128 for channel in ("r", "g", "b"))
    try:
        # channels are authored blue/green/red for x/y/z
        return normalise3((float(b), float(g), float(r)))
    except ValueError:
        raise LibraryFormatError(f"fill in '{style}' encodes a zero-length normal") from None


def parse_component(element: ET.Element) -> Component:
    """Build a :class:`Component` from a ``<path>`` element."""
    d = element.get("d")
    style = element.get("style")
    if d is None:
        raise LibraryFormatError("path element is missing its 'd' attribute")
    if style is None:
        raise LibraryFormatError("path element is missing its 'style' attribute")
    normal = decode_fill_normal(style)
    primitives = [Primitive(points) for points in iter_primitive_points(d)]
    if not primitives:
        raise LibraryFormatError(f"path '{d}' contains no polygons")
    return Component(normal=normal, primitives=primitives)


def _is_tile_group(element: ET.Element) -> bool:
    if _local_name(element.tag) != "g":
        return False
    if element.get(GROUPMODE_ATTR) == "layer":
        return False
    return element.get(LABEL_ATTR) is not None


def parse_tile_library(source: Union[str, bytes]) -> TileLibrary:
    """Parse a tile library document.

    Args:
        source: The SVG document as text or bytes.

    Returns:
        TileLibrary: Prototypes keyed by tile id.

    Raises:
        LibraryFormatError: If the document is not well-formed XML, a
            label or face is malformed, or the reference cube is missing.
        PathFormatError: If a face's ``d`` attribute cannot be decoded.
    """
    try:
        root = ET.fromstring(source)
    except ET.ParseError as exc:
        raise LibraryFormatError(f"tile library is not well-formed XML: {exc}") from exc

    library = TileLibrary()
    for group in root.iter():
        if not _is_tile_group(group):
            continue
        label = group.get(LABEL_ATTR, "")
        tile_ids = parse_tile_ids(label)
        components = [parse_component(child) for child in group if _local_name(child.tag) == "path"]
        if not components:
            raise LibraryFormatError(f"tile group '{label}' has no path elements")
        shape = Shape(components)
        for tile_id in tile_ids:
            if tile_id in library.prototypes:
                logger.warning("Tile id %d is defined more than once; keeping the later definition", tile_id)
            library.prototypes[tile_id] = shape

    library.validate()
    logger.info("Parsed tile library with %d tile ids", len(library))
    return library


def parse_tile_library_file(path: Union[str, Path]) -> TileLibrary:
    return parse_tile_library(Path(path).read_bytes())
