"""
Shared fixtures for the isotiler test suite.

The storage root is pointed at a throwaway directory before anything
imports the application, so tests never touch the real database.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("ISOTILER_STORAGE_DIR", tempfile.mkdtemp(prefix="isotiler-tests-"))

sys.path.append(str(Path(__file__).resolve().parents[1]))


# A cube drawn around (0, 0): the top face is 4 wide and 2 tall, the two
# side faces are 2 wide and 3 tall.  Fill colours encode the normals
# +y (#80ff80), +z (#ff8080) and +x (#8080ff).
CUBE_FACES = """
      <path d="M 0,-2 2,-1 0,0 -2,-1 Z" style="fill:#80ff80" />
      <path d="M -2,-1 0,0 0,2 -2,1 Z" style="fill:#ff8080" />
      <path d="M 0,0 2,-1 2,1 0,2 Z" style="fill:#8080ff" />
"""

TILE_LIBRARY_SVG = f"""<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg"
     xmlns:inkscape="http://www.inkscape.org/namespaces/inkscape"
     width="100" height="100" version="1.1">
  <g inkscape:groupmode="layer" inkscape:label="Tiles">
    <g inkscape:label="00000001;11111111">{CUBE_FACES}
    </g>
    <g inkscape:label="00000010">
      <path d="M 0,-2 2,-1 0,0 -2,-1 Z" style="fill:#80ff80" />
    </g>
    <g inkscape:label="00000011">
      <path d="M -1 -1 H 1 V 1 H -1 Z" style="fill:#80ff80" />
    </g>
    <g>
      <path d="M 0 0 H 9 V 9 Z" style="fill:#80ff80" />
    </g>
  </g>
</svg>
"""


@pytest.fixture
def library_svg() -> str:
    return TILE_LIBRARY_SVG


@pytest.fixture
def tile_library():
    from isotiler.services.library_parser import parse_tile_library  # type: ignore

    return parse_tile_library(TILE_LIBRARY_SVG)
