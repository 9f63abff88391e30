from __future__ import annotations

import math

import pytest

from measurement import MeasurementType
from plotting import Circle as CirclePrimitive
from plotting import DiagramOptions, Ellipse, Polygon, RenderContext, Text
from shapes import Circle, Rectangle, RegularPolygon, Triangle, TriangleKind


# ---- Rectangle ----

def test_rectangle_from_length_and_width():
    rect = Rectangle.from_length_width(5, 3)
    assert rect.area() == pytest.approx(15.0)
    assert rect.perimeter() == pytest.approx(16.0)
    assert rect.diagonal() == pytest.approx(5.831, abs=1e-3)
    assert rect.get_dimensions() == (5.0, 3.0)


def test_rectangle_measurement_labels():
    rect = Rectangle(5, 3)
    assert rect.get_measurement_points(MeasurementType.WIDTH).label == "5 units"
    assert rect.get_measurement_points(MeasurementType.DIAGONAL).label == "5.8 units"
    assert rect.get_measurement_points(MeasurementType.AREA).label == "Area: 15 sq units"
    assert rect.get_measurement_points(MeasurementType.PERIMETER).label == "Perimeter: 16 units"


def test_rectangle_bounds_follow_rotation_and_scale():
    rect = Rectangle(100, 60, x=10, y=20)
    b = rect.get_bounds()
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((10, 20, 110, 80))

    rect.rotate(90).scale(2)
    b = rect.get_bounds()
    # Local (w, h) = (100, 60) -> scaled (200, 120) -> rotated 90 about the anchor.
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((-110, 20, 10, 220))


def test_rectangle_dimension_lines_sit_outside():
    rect = Rectangle(100, 60, x=10, y=20)
    rect.add_measurement("width").add_measurement("height")
    surface = rect.render_measurements()
    width_line, height_line = surface.with_role("dimension-line")
    assert width_line.y1 == pytest.approx(80 + 25)
    assert height_line.x1 == pytest.approx(110 + 25)


def test_rectangle_side_option_moves_width_to_top():
    rect = Rectangle(100, 60)
    points = rect.get_measurement_points(MeasurementType.WIDTH)
    assert {points.y1, points.y2} == {60.0}
    rect.add_measurement("width", side="top")
    line = rect.render_measurements().with_role("dimension-line")[0]
    assert line.y1 == pytest.approx(-25.0)


def test_rectangle_renders_one_polygon():
    rect = Rectangle(10, 20, x=5, y=5).set_style(fill="#ff0000")
    surface = rect.render()
    (poly,) = surface.of_type(Polygon)
    assert poly.role == "shape"
    assert poly.points == ((5.0, 5.0), (15.0, 5.0), (15.0, 25.0), (5.0, 25.0))
    assert poly.style["fill"] == "#ff0000"
    assert poly.style["stroke"] == "#2980b9"


# ---- Triangle ----

def test_right_triangle_height_is_the_vertical_leg():
    tri = Triangle.right_triangle(6, 4)
    points = tri.get_measurement_points(MeasurementType.HEIGHT)
    ends = {(round(points.x1, 9), round(points.y1, 9)), (round(points.x2, 9), round(points.y2, 9))}
    assert ends == {(0.0, 0.0), (0.0, 4.0)}
    assert tri.perimeter() == pytest.approx(10 + math.sqrt(52))
    assert tri.area() == pytest.approx(12.0)


def test_triangle_side_labels_use_measured_lengths():
    tri = Triangle.right_triangle(6, 4)
    assert tri.get_measurement_points(MeasurementType.SIDE1).label == "4.0 units"
    assert tri.get_measurement_points(MeasurementType.SIDE2).label == "7.2 units"


def test_isosceles_and_equilateral_perimeters():
    iso = Triangle.isosceles_triangle(6, 4)
    assert iso.perimeter() == pytest.approx(16.0)
    assert iso.side_lengths() == pytest.approx([6.0, 5.0, 5.0])

    eq = Triangle.equilateral_triangle(10)
    assert eq.kind == TriangleKind.EQUILATERAL
    assert eq.altitude == pytest.approx(5 * math.sqrt(3))
    assert eq.perimeter() == pytest.approx(30.0)
    assert eq.area() == pytest.approx(25 * math.sqrt(3))


def test_right_angle_mark_follows_context_and_style():
    tri = Triangle.right_triangle(60, 40)
    assert tri.render().with_role("right-angle-mark")

    no_marks = RenderContext(options=DiagramOptions(show_right_angle_marks=False))
    assert not tri.render(context=no_marks).with_role("right-angle-mark")

    tri.set_style(show_right_angle=True)
    assert tri.render(context=no_marks).with_role("right-angle-mark")

    assert not Triangle(60, 40).render().with_role("right-angle-mark")


def test_show_height_draws_dashed_altitude():
    tri = Triangle.isosceles_triangle(80, 60).show_height()
    (line,) = tri.render().with_role("height-line")
    assert (line.x1, line.y1, line.x2, line.y2) == pytest.approx((40, 0, 40, 60))
    assert line.style["stroke_dasharray"] == "5,5"


# ---- Circle ----

def test_circle_formulas():
    circle = Circle(3)
    assert circle.area() == pytest.approx(28.274, abs=1e-3)
    assert circle.circumference() == pytest.approx(18.850, abs=1e-3)
    assert circle.diameter() == 6.0


def test_circle_is_positioned_by_its_bounding_box():
    circle = Circle(50, x=10, y=20)
    b = circle.get_bounds()
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((10, 20, 110, 120))
    assert circle.get_center() == pytest.approx((60, 70))


def test_circle_radius_and_diameter_measurements():
    circle = Circle(50, x=10, y=20)
    radius = circle.get_measurement_points(MeasurementType.RADIUS)
    assert (radius.x1, radius.y1, radius.x2, radius.y2) == pytest.approx((60, 70, 110, 70))
    assert radius.label == "r = 50"

    circle.add_measurement("diameter", angle=90)
    request = circle.measurements[0]
    diameter = circle.get_measurement_points(MeasurementType.DIAMETER, request.options)
    assert (diameter.x1, diameter.y1, diameter.x2, diameter.y2) == pytest.approx((60, 20, 60, 120))
    assert diameter.label == "d = 100"


def test_circle_radius_and_diameter_render_through_the_centre():
    circle = Circle(50, x=10, y=20)
    circle.add_measurement("radius", offset=0).add_measurement("diameter", angle=90, offset=0)
    surface = circle.render_measurements()
    radius_line, diameter_line = surface.with_role("dimension-line")
    assert (radius_line.x1, radius_line.y1) == pytest.approx((60, 70))
    assert (radius_line.x2, radius_line.y2) == pytest.approx((110, 70))
    ends = sorted([(diameter_line.x1, diameter_line.y1), (diameter_line.x2, diameter_line.y2)], key=lambda p: p[1])
    assert ends[0] == pytest.approx((60, 20))
    assert ends[1] == pytest.approx((60, 120))
    assert [t.text for t in surface.of_type(Text)] == ["r = 50", "d = 100"]


def test_circle_render_uses_ellipse_only_for_uneven_scale():
    circle = Circle(10).show_center()
    surface = circle.render()
    shape = surface.with_role("shape")[0]
    assert isinstance(shape, CirclePrimitive)
    assert surface.with_role("center-point")

    stretched = Circle(10).scale_xy(2, 1).render().with_role("shape")[0]
    assert isinstance(stretched, Ellipse)
    assert (stretched.rx, stretched.ry) == pytest.approx((20, 10))


# ---- Regular polygon ----

def test_hexagon_area_and_perimeter():
    hexagon = RegularPolygon.hexagon(50)
    assert hexagon.perimeter() == pytest.approx(300.0)
    assert hexagon.area() == pytest.approx(6495.19, abs=1e-2)
    assert hexagon.local_vertices()[0] == pytest.approx((0.0, -50.0))


def test_regular_polygon_clamps_sides():
    poly = RegularPolygon(2, 10)
    assert poly.sides == 3
    assert len(poly.render().of_type(Polygon)[0].points) == 3


def test_regular_polygon_side_measurement_points_away_from_center():
    poly = RegularPolygon(4, 10, x=100, y=100)
    poly.add_measurement("side", side_index=1)
    surface = poly.render_measurements()
    line = surface.with_role("dimension-line")[0]
    mid = ((line.x1 + line.x2) / 2.0, (line.y1 + line.y2) / 2.0)
    # Side midpoint is at apothem distance; the dimension line is further out.
    assert math.hypot(mid[0] - 100, mid[1] - 100) == pytest.approx(poly.apothem() + 25.0)
    assert surface.of_type(Text)[0].text == "14.1 units"
