from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from measurement import MeasurementType
from plotting import Circle as CirclePrimitive
from plotting import DiagramOptions, Path, Polygon, RenderContext, RenderSurface, Text
from shapes import (
    Arc,
    Chord,
    Circle,
    CompositeOperation,
    CompositeShape,
    IrregularPolygon,
    Rectangle,
    Sector,
    Tangent,
    random_vertices,
)
from shapes.polygons import vertex_name


# ---- Shape contract ----

def test_unknown_measurement_is_skipped_with_warning(caplog):
    rect = Rectangle(100, 60)
    rect.add_measurement("hypotenuse").add_measurement("radius").add_measurement("width")
    with caplog.at_level(logging.WARNING, logger="shapes.base"):
        surface = rect.render_measurements()
    assert "hypotenuse" in caplog.text
    assert "Rectangle" in caplog.text
    assert len(surface.with_role("dimension-line")) == 1
    assert [t.text for t in surface.of_type(Text)] == ["100 units"]


def test_render_is_idempotent():
    rect = Rectangle(40, 30, x=5, y=7).rotate(15)
    rect.add_measurement("width")
    before = dict(vars(rect))
    first, second = rect.render(), rect.render()
    assert first.primitives == second.primitives
    assert vars(rect) == before

    shared = RenderSurface()
    rect.render(shared)
    rect.render(shared)
    assert len(shared) == 2 * len(first)


def test_set_style_merges_and_setters_chain():
    rect = Rectangle().set_style(fill="#000000").set_style({"stroke_width": 5})
    assert rect.style["fill"] == "#000000"
    assert rect.style["stroke_width"] == 5
    assert rect.style["stroke"] == "#2980b9"
    assert rect.set_position(3, 4).get_position() == (3.0, 4.0)


def test_label_only_measurements_draw_text_only():
    rect = Rectangle(5, 3).add_measurement("area")
    surface = rect.render_measurements()
    (text,) = surface.primitives
    assert isinstance(text, Text)
    assert (text.x, text.y) == pytest.approx((2.5, 1.5))


def test_zero_length_side_is_skipped_without_error():
    rect = Rectangle(0, 60).add_measurement("width").add_measurement("height")
    surface = rect.render_measurements()
    assert len(surface.with_role("dimension-line")) == 1
    assert [t.text for t in surface.of_type(Text)] == ["60 units"]


def test_label_override_and_clear():
    rect = Rectangle(5, 3).add_measurement("width", label="L")
    assert rect.render_measurements().of_type(Text)[0].text == "L"
    rect.clear_measurements()
    assert len(rect.render_measurements()) == 0


def test_center_in_canvas():
    rect = Rectangle(100, 60).center_in(400, 300)
    assert rect.get_bounds().center == pytest.approx((200, 150))
    assert rect.get_position() == pytest.approx((150, 120))


def test_copy_is_independent():
    rect = Rectangle(10, 10).add_measurement("width")
    clone = rect.copy()
    clone.set_style(fill="red").add_measurement("height")
    assert rect.style["fill"] == "#3498db"
    assert len(rect.measurements) == 1


# ---- Irregular polygon ----

def test_star_area_and_convexity():
    star = IrregularPolygon.star(5, 80, 40)
    assert len(star.vertices) == 10
    assert star.area() == pytest.approx(10 * 0.5 * 80 * 40 * math.sin(math.pi / 5))
    assert not star.is_convex()
    assert IrregularPolygon.convex(6, 50).is_convex()


def test_random_vertices_are_reproducible_and_bounded():
    a = random_vertices(8, 50, rng=np.random.default_rng(7))
    b = random_vertices(8, 50, rng=np.random.default_rng(7))
    assert a == b
    for x, y in a:
        assert 0.7 * 50 - 1e-9 <= math.hypot(x, y) <= 1.3 * 50 + 1e-9


def test_polygon_with_too_few_vertices_draws_nothing():
    poly = IrregularPolygon([(0, 0), (10, 0)])
    assert len(poly.render()) == 0
    assert poly.area() == 0.0
    single = IrregularPolygon([(0, 0)]).add_measurement("side")
    assert len(single.render_measurements()) == 0


def test_vertex_labels():
    square = [(0, 0), (10, 0), (10, 10), (0, 10)]
    poly = IrregularPolygon(square).set_show_vertex_labels()
    labels = [t.text for t in poly.render().with_role("vertex-label")]
    assert labels == ["A", "B", "C", "D"]

    ctx = RenderContext(options=DiagramOptions(show_vertex_labels=True))
    assert len(IrregularPolygon(square).render(context=ctx).with_role("vertex")) == 4
    assert vertex_name(25) == "Z"
    assert vertex_name(26) == "A1"


def test_irregular_polygon_measurements():
    poly = IrregularPolygon([(0, 0), (30, 0), (30, 40)])
    assert poly.perimeter() == pytest.approx(120.0)
    side = poly.get_measurement_points(MeasurementType.SIDE)
    assert side.label == "30.0"
    # The dimension line for the bottom edge is pushed away from the interior.
    poly.add_measurement("side")
    line = poly.render_measurements().with_role("dimension-line")[0]
    assert line.y1 == pytest.approx(-25.0)
    assert poly.get_measurement_points(MeasurementType.AREA).label == "Area = 600.0"


# ---- Composite ----

def _composite() -> CompositeShape:
    group = CompositeShape(x=10, y=10)
    group.add_shape(Rectangle(100, 60))
    group.add_shape(Rectangle(50, 50, x=80, y=40), CompositeOperation.SUBTRACT)
    return group


def test_composite_bounds_are_the_union_of_members():
    b = _composite().get_bounds()
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((10, 10, 140, 100))


def test_composite_styles_members_without_mutating_them():
    group = _composite()
    surface = group.render()
    first, second = surface.of_type(Polygon)
    assert first.points[0] == pytest.approx((10, 10))
    assert second.points[0] == pytest.approx((90, 50))
    assert second.style["fill"] == "#ffffff"
    assert second.style["stroke"] == "#e74c3c"
    assert group.shapes[1].style["fill"] == "#3498db"


def test_composite_measurements_delegate_to_first_member():
    group = _composite()
    points = group.get_measurement_points(MeasurementType.WIDTH)
    assert {points.y1, points.y2} == {70.0}
    assert sorted((points.x1, points.x2)) == pytest.approx([10.0, 110.0])
    assert points.label == "100 units"


def test_empty_composite():
    group = CompositeShape(x=3, y=4)
    assert len(group.render()) == 0
    assert group.get_bounds().center == (3.0, 4.0)


# ---- Circle parts ----

def test_circle_part_formulas():
    assert Arc(50, 0, 180).arc_length() == pytest.approx(50 * math.pi)
    assert Sector(50, 0, 90).sector_area() == pytest.approx(2500 * math.pi / 4)
    assert Chord(50, 0, 60).chord_length() == pytest.approx(50.0)


def test_arc_path_and_endpoints():
    arc = Arc(20, 0, 90, x=100, y=100)
    surface = arc.render()
    (path,) = surface.of_type(Path)
    move, curve = path.commands
    assert move == ("M", 120.0, 100.0)
    assert curve[0] == "A"
    assert curve[-2:] == pytest.approx((100.0, 120.0))
    assert len(surface.with_role("endpoint")) == 2


def test_sector_is_a_closed_wedge():
    (path,) = Sector(30, 0, 90).render().of_type(Path)
    assert [c[0] for c in path.commands] == ["M", "L", "A", "Z"]


def test_circle_part_labels():
    sector = Sector(30, 0, 90)
    assert sector.get_measurement_points(MeasurementType.CENTRAL_ANGLE).label == "θ = 90.0°"
    assert sector.get_measurement_points(MeasurementType.SECTOR_AREA).label == "A = 706.9"
    assert Chord(50, 0, 60).get_measurement_points(MeasurementType.CHORD_LENGTH).label == "c = 50.0"


def test_central_angle_renders_an_arc_at_the_centre():
    sector = Sector(30, 0, 90, x=100, y=100).add_measurement("central-angle")
    surface = sector.render_measurements()
    (arc,) = surface.with_role("angle-arc")
    move, curve = arc.commands
    assert move[1:] == pytest.approx((109.0, 100.0))
    assert curve[0] == "A"
    assert curve[4:6] == (0, 1)
    assert curve[-2:] == pytest.approx((100.0, 109.0))
    (text,) = surface.of_type(Text)
    assert text.text == "θ = 90.0°"
    assert math.hypot(text.x - 100, text.y - 100) > 9.0


def test_central_angle_of_a_reflex_sector_uses_the_large_arc():
    sector = Sector(30, 0, 270).add_measurement("central-angle")
    (arc,) = sector.render_measurements().with_role("angle-arc")
    assert arc.commands[1][4] == 1


def test_angles_past_a_full_turn_run_clockwise_from_start():
    arc = Arc(50, 300, 60)
    assert arc.span == pytest.approx(120.0)
    assert arc.arc_length() == pytest.approx(50 * 2 * math.pi / 3)
    (path,) = arc.render().of_type(Path)
    assert path.commands[1][4] == 0
    assert path.commands[1][-2:] == pytest.approx((25.0, 50 * math.sin(math.radians(60))))

    assert Sector(10, 90, 0).span == pytest.approx(270.0)
    assert Arc(10, 0, 360).span == pytest.approx(360.0)
    assert Tangent(10, angle=45).span == 0.0


def test_tangent_touches_circle_perpendicular_to_radius():
    tangent = Tangent(50, angle=0, length=100)
    (a, b) = tangent.tangent_endpoints()
    assert a == pytest.approx((50, -50))
    assert b == pytest.approx((50, 50))
    bounds = tangent.get_bounds()
    assert (bounds.min_y, bounds.max_y) == pytest.approx((-50, 50))
    surface = tangent.render()
    assert surface.with_role("radius-line")
    (touch,) = surface.with_role("touch-point")
    assert isinstance(touch, CirclePrimitive)
    assert (touch.cx, touch.cy) == pytest.approx((50, 0))


def test_plain_circle_unsupported_measurement():
    circle = Circle(10).add_measurement("arc-length")
    assert len(circle.render_measurements()) == 0
