from __future__ import annotations

import pytest

from geometry import reflect_across_line
from measurement import MeasurementType
from shapes import (
    CompositeTransformation,
    Dilation,
    Rectangle,
    Reflection,
    ReflectionAxis,
    RegularPolygon,
    Rotation,
    Translation,
    Triangle,
    apply_transformation,
)


def _sorted_points(points):
    return sorted((round(x, 6), round(y, 6)) for x, y in points)


def _skewed_triangle() -> Triangle:
    # Rotated and unevenly scaled so mirroring has to compose correctly.
    return Triangle.right_triangle(60, 40, x=30, y=-20).rotate(25).scale_xy(1.5, 0.5)


def test_translation_moves_a_copy():
    rect = Rectangle(10, 10, x=1, y=2)
    moved = apply_transformation(rect, Translation(5, -3))
    assert moved.get_position() == (6.0, -1.0)
    assert rect.get_position() == (1.0, 2.0)
    assert moved is not rect


def test_rotation_about_a_center():
    rect = Rectangle(10, 4, x=10, y=0)
    turned = apply_transformation(rect, Rotation(90))
    assert turned.get_position() == pytest.approx((0.0, 10.0))
    assert turned.rotation == pytest.approx(90.0)
    b = turned.get_bounds()
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((-4, 10, 0, 20))

    about = apply_transformation(rect, Rotation(180, center_x=10, center_y=0))
    assert about.get_position() == pytest.approx((10.0, 0.0))


@pytest.mark.parametrize("reflection,mirror", [
    (Reflection(ReflectionAxis.X_AXIS), lambda p: (p[0], -p[1])),
    (Reflection(ReflectionAxis.Y_AXIS), lambda p: (-p[0], p[1])),
    (Reflection(ReflectionAxis.LINE, m=1.0, b=1.0), lambda p: reflect_across_line(p, 1.0, 1.0)),
    (Reflection(ReflectionAxis.LINE, m=-0.5, b=20.0), lambda p: reflect_across_line(p, -0.5, 20.0)),
    (Reflection(ReflectionAxis.POINT, center_x=5.0, center_y=5.0), lambda p: (10.0 - p[0], 10.0 - p[1])),
])
def test_reflection_mirrors_every_vertex(reflection, mirror):
    tri = _skewed_triangle()
    mirrored = apply_transformation(tri, reflection)
    assert _sorted_points(mirrored.vertices()) == _sorted_points(mirror(v) for v in tri.vertices())


def test_reflection_keeps_measurement_geometry_consistent():
    tri = _skewed_triangle()
    mirrored = apply_transformation(tri, Reflection(ReflectionAxis.X_AXIS))
    original = tri.get_measurement_points(MeasurementType.BASE)
    flipped = mirrored.get_measurement_points(MeasurementType.BASE)
    assert _sorted_points([(flipped.x1, flipped.y1), (flipped.x2, flipped.y2)]) == \
        _sorted_points([(original.x1, -original.y1), (original.x2, -original.y2)])
    assert flipped.label == original.label


def test_dilation_scales_about_center():
    rect = Rectangle(10, 20, x=2, y=3)
    big = apply_transformation(rect, Dilation(2.0))
    b = big.get_bounds()
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((4, 6, 24, 46))

    centred = apply_transformation(rect, Dilation(0.5, center_x=2, center_y=3))
    assert centred.get_position() == pytest.approx((2, 3))
    assert (centred.scale_x, centred.scale_y) == (0.5, 0.5)


def test_composite_applies_steps_in_order():
    hexagon = RegularPolygon.hexagon(10, x=0, y=0)
    steps = CompositeTransformation((Translation(10, 0), Rotation(90)))
    out = apply_transformation(hexagon, steps)
    assert out.get_position() == pytest.approx((0.0, 10.0))

    reversed_steps = CompositeTransformation((Rotation(90), Translation(10, 0)))
    assert apply_transformation(hexagon, reversed_steps).get_position() == pytest.approx((10.0, 0.0))


def test_unknown_transformation_is_a_type_error():
    with pytest.raises(TypeError):
        apply_transformation(Rectangle(), "rotate 90")
