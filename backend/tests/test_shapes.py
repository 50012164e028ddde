"""Tests for the Primitive / Component / Shape model."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from isotiler.services.geometry import DegenerateGeometryError  # type: ignore
from isotiler.services.shapes import Component, Polygonal, Primitive, Shape  # type: ignore


def unit_square(x: float = 0.0, y: float = 0.0) -> Primitive:
    return Primitive([(x, y), (x + 1, y), (x + 1, y + 1), (x, y + 1)])


def test_bounding_box_and_centre() -> None:
    shape = Shape(
        [
            Component((0.0, 1.0, 0.0), [unit_square()]),
            Component((1.0, 0.0, 0.0), [unit_square(2.0, 3.0)]),
        ]
    )
    assert shape.bounding_box() == ((0.0, 0.0), (3.0, 4.0))
    assert shape.width() == 3.0
    assert shape.height() == 4.0
    assert shape.centre() == (1.5, 2.0)


def test_move_to_places_centre() -> None:
    primitive = unit_square()
    primitive.move_to((10.0, -4.0))
    assert primitive.centre() == (10.0, -4.0)
    assert primitive.vertices[0] == (9.5, -4.5)


def test_clone_is_independent() -> None:
    prototype = Shape([Component((0.0, 1.0, 0.0), [unit_square()])])
    instance = prototype.clone()
    instance.shift((5.0, 5.0))
    assert prototype.components[0].primitives[0].vertices[0] == (0.0, 0.0)
    assert instance.components[0].primitives[0].vertices[0] == (5.0, 5.0)


def test_primitive_needs_three_vertices() -> None:
    with pytest.raises(DegenerateGeometryError):
        Primitive([(0.0, 0.0), (1.0, 0.0)])


def test_polygonal_is_abstract() -> None:
    with pytest.raises(TypeError):
        Polygonal()  # type: ignore[abstract]


def test_empty_shape_has_no_bounding_box() -> None:
    with pytest.raises(DegenerateGeometryError):
        Shape([]).centre()


def test_reduce_drops_only_enclosed_primitives() -> None:
    occluder = Primitive([(-1.0, -1.0), (1.5, -1.0), (1.5, 1.5), (-1.0, 1.5)])
    component = Component((0.0, 1.0, 0.0), [unit_square(), unit_square(5.0, 5.0)])
    shape = Shape([component, Component((1.0, 0.0, 0.0), [unit_square(0.2, 0.2)])])

    assert shape.reduce_if_obscured(occluder) is shape
    assert len(shape.components) == 1
    assert shape.components[0].primitives == [unit_square(5.0, 5.0)]

    shape.reduce_if_obscured(Primitive([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]))
    assert shape.components == []


def test_reduce_returns_none_when_nothing_survives() -> None:
    shape = Shape([Component((0.0, 1.0, 0.0), [unit_square()])])
    assert shape.reduce_if_obscured(unit_square()) is None


def test_merge_faces_fuses_adjacent_primitives() -> None:
    component = Component(
        (0.0, 1.0, 0.0), [unit_square(), unit_square(1.0, 0.0), unit_square(4.0, 0.0)]
    )
    shape = Shape([component])
    assert shape.merge_faces() == 1
    assert len(component.primitives) == 2
    merged = component.primitives[0]
    assert set(merged.vertices) == {(0.0, 0.0), (2.0, 0.0), (2.0, 1.0), (0.0, 1.0)}
    assert shape.primitive_count == 2


def test_component_path_concatenates_primitives() -> None:
    component = Component((0.0, 1.0, 0.0), [unit_square(), unit_square(3.0, 0.0)])
    assert component.to_d() == "M0 0 H1 V1 H0 zM3 0 H4 V1 H3 z"
