"""
SVG serialisation of a composited scene.

The document has a root ``<svg>`` carrying the canvas size, one ``<g>``
per shape in draw order and one ``<path>`` per component.  Each
component is flat-shaded from its face normal: the brightness is the
clamped dot product of the normal with the light vector, multiplied
into the scene colour and scaled to a byte per channel.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterable, Optional

from .path_codec import format_number
from .shapes import Shape
from .vector import Vector3, dot3, normalise3, scale3

SVG_NAMESPACE = "http://www.w3.org/2000/svg"

DEFAULT_LIGHT_VECTOR: Vector3 = normalise3((0.3, 0.7, 0.5))
DEFAULT_SCENE_COLOUR: Vector3 = (0.6, 0.2, 0.9)

ET.register_namespace("", SVG_NAMESPACE)


def _to_byte(value: float) -> int:
    return min(max(int(value * 256.0), 0), 255)


def shade(
    normal: Vector3,
    light_vector: Vector3 = DEFAULT_LIGHT_VECTOR,
    scene_colour: Vector3 = DEFAULT_SCENE_COLOUR,
) -> str:
    """Return the ``fill:#rrggbb`` style for a face with ``normal``."""
    brightness = max(dot3(normal, light_vector), 0.0)
    r, g, b = (_to_byte(c) for c in scale3(scene_colour, brightness))
    return f"fill:#{r:02x}{g:02x}{b:02x}"


def build_scene_element(
    shapes: Iterable[Shape],
    width: float,
    height: float,
    light_vector: Optional[Vector3] = None,
    scene_colour: Optional[Vector3] = None,
) -> ET.Element:
    """Build the scene document tree.

    ``light_vector`` is normalised before use; both shading inputs fall
    back to the module defaults when omitted.
    """
    light = normalise3(light_vector) if light_vector is not None else DEFAULT_LIGHT_VECTOR
    colour = scene_colour if scene_colour is not None else DEFAULT_SCENE_COLOUR

    root = ET.Element(
        f"{{{SVG_NAMESPACE}}}svg",
        {"width": format_number(width), "height": format_number(height), "version": "1.1"},
    )
    for shape in shapes:
        group = ET.SubElement(root, f"{{{SVG_NAMESPACE}}}g")
        for component in shape.components:
            ET.SubElement(
                group,
                f"{{{SVG_NAMESPACE}}}path",
                {"d": component.to_d(), "style": shade(component.normal, light, colour)},
            )
    return root


def render_scene_svg(
    shapes: Iterable[Shape],
    width: float,
    height: float,
    light_vector: Optional[Vector3] = None,
    scene_colour: Optional[Vector3] = None,
) -> str:
    """Serialise a scene to an SVG document string."""
    root = build_scene_element(shapes, width, height, light_vector, scene_colour)
    return ET.tostring(root, encoding="unicode")
