from __future__ import annotations

import math

import pytest

from geometry import UnsupportedMeasurementError
from measurement import (
    LabelFormat,
    MeasurementEngine,
    MeasurementOptions,
    MeasurementRequest,
    MeasurementType,
    arc_path_commands,
    arrow_points,
    dimension_geometry,
    label_placement,
)
from plotting import Line, MeasurementStyle, Polygon, RenderSurface, Text


def _length(segment):
    (ax, ay), (bx, by) = segment
    return math.hypot(bx - ax, by - ay)


# ---- Types ----

def test_measurement_type_parse_is_lenient_about_case_and_underscores():
    assert MeasurementType.parse("Arc_Length") == MeasurementType.ARC_LENGTH
    assert MeasurementType.parse(MeasurementType.VOLUME) == MeasurementType.VOLUME
    with pytest.raises(UnsupportedMeasurementError):
        MeasurementType.parse("hypotenuse")


def test_request_keeps_unknown_kind_for_later_reporting():
    request = MeasurementRequest.create("hypotenuse", offset=10)
    assert request.kind == "hypotenuse"
    assert request.options.offset == 10


def test_options_from_mapping_ignores_unknown_keys_and_none():
    options = MeasurementOptions.from_mapping({"offset": 40, "colour": "red", "side": None, "label": None})
    assert options.offset == 40
    assert options.side == "auto"
    assert options.label is None
    assert options.label_or("5 units") == "5 units"
    assert MeasurementOptions(label="x").label_or("5 units") == "x"


def test_label_format_wording():
    fmt = LabelFormat()
    assert fmt.length(5) == "5 units"
    assert fmt.length(5.8309, rounded=True) == "5.8 units"
    assert fmt.area(15) == "Area: 15 sq units"
    assert fmt.perimeter(16) == "Perimeter: 16 units"
    assert fmt.volume(24) == "V = 24 cubic units"
    assert LabelFormat(units="", decimals=2).length(1.234, rounded=True) == "1.23"


# ---- Pure geometry ----

@pytest.mark.parametrize("offset", [20.0, -20.0])
def test_horizontal_dimension_geometry(offset):
    geom = dimension_geometry(0, 0, 100, 0, offset=offset, label_offset=20.0, arrow_size=6.0)
    assert geom is not None
    start, end = geom.dimension_line
    assert start == pytest.approx((0.0, offset))
    assert end == pytest.approx((100.0, offset))
    assert [_length(e) for e in geom.extension_lines] == pytest.approx([20.0, 20.0])
    assert geom.length == pytest.approx(100.0)
    # Near-horizontal lines always put the label above (smaller y), upright.
    assert geom.label.rotation == pytest.approx(0.0)
    assert geom.label.x == pytest.approx(50.0)
    assert geom.label.y == pytest.approx(offset - 20.0)


def test_zero_length_segment_has_no_geometry():
    assert dimension_geometry(5, 5, 5, 5, offset=20, label_offset=20, arrow_size=6) is None


def test_arrowheads_point_outward():
    tip, base1, base2 = arrow_points(0.0, 0.0, 1.0, 0.0, 6.0, at_start=True)
    assert tip == (0.0, 0.0)
    assert {tuple(base1), tuple(base2)} == {(6.0, -3.0), (6.0, 3.0)}
    tip, base1, base2 = arrow_points(100.0, 0.0, 1.0, 0.0, 6.0, at_start=False)
    assert base1[0] == pytest.approx(94.0) and base2[0] == pytest.approx(94.0)


def test_upside_down_labels_are_flipped():
    # Right-to-left horizontal line: rotation flips by 180 but stays above.
    placement = label_placement(100, 0, 0, 0, offset=20, label_offset=20)
    assert abs(placement.line_angle) == pytest.approx(180.0)
    assert placement.rotation == pytest.approx(0.0, abs=1e-9)
    assert placement.x == pytest.approx(50.0)
    assert placement.y == pytest.approx(-20.0)
    assert label_placement(100, 0, 0, 0, offset=-20, label_offset=20).y == pytest.approx(-20.0)


def test_vertical_label_side_follows_offset_sign():
    down = label_placement(0, 0, 0, 100, offset=20, label_offset=20)
    up = label_placement(0, 0, 0, 100, offset=-20, label_offset=20)
    assert down.rotation == pytest.approx(90.0)
    assert down.x == pytest.approx(-20.0)
    assert up.x == pytest.approx(20.0)

    # Pointing up (-90 degrees) is within range, so no flip.
    upward = label_placement(0, 100, 0, 0, offset=20, label_offset=20)
    assert upward.rotation == pytest.approx(-90.0)
    assert upward.side == pytest.approx(90.0)


def test_steep_reversed_line_flips_side():
    placement = label_placement(0, 0, -100, 100, offset=20, label_offset=20)
    assert placement.line_angle == pytest.approx(135.0)
    assert placement.rotation == pytest.approx(-45.0)
    assert placement.side == pytest.approx(-90.0)


def test_arc_path_commands_large_arc_flag():
    small = arc_path_commands(0, 0, 10, 0.0, math.pi / 2)
    large = arc_path_commands(0, 0, 10, 0.0, 1.5 * math.pi)
    assert small[0] == ("M", 10.0, 0.0)
    assert small[1][4] == 0
    assert large[1][4] == 1
    assert small[1][-2:] == pytest.approx((0.0, 10.0))


# ---- Engine ----

def test_draw_dimension_emits_lines_arrows_and_label():
    surface = RenderSurface()
    engine = MeasurementEngine()
    geom = engine.draw_dimension(surface, 0, 0, 100, 0, "100 units", offset=20)
    assert geom is not None
    roles = [p.role for p in surface]
    assert roles == ["extension-line", "extension-line", "dimension-line",
                     "dimension-arrow", "dimension-arrow", "measurement-text"]
    text = surface.of_type(Text)[0]
    assert text.text == "100 units"
    assert text.style["fill"] == "#e74c3c"
    assert text.style["font_weight"] == "bold"
    assert surface.of_type(Line)[2].style["stroke_width"] == 2.0


def test_draw_dimension_zero_length_draws_nothing():
    surface = RenderSurface()
    assert MeasurementEngine().draw_dimension(surface, 3, 3, 3, 3, "0") is None
    assert len(surface) == 0


def test_text_background_is_drawn_under_the_label():
    surface = RenderSurface()
    engine = MeasurementEngine(MeasurementStyle(text_background=True))
    engine.draw_label(surface, 50, 50, "abc")
    background, text = surface.primitives
    assert isinstance(background, Polygon)
    assert background.role == "measurement-background"
    assert text.role == "measurement-text"
    xs = [p[0] for p in background.points]
    assert min(xs) < 50 < max(xs)


def test_draw_radius_and_diameter_labels():
    surface = RenderSurface()
    engine = MeasurementEngine()
    engine.draw_radius(surface, 0, 0, 30)
    engine.draw_diameter(surface, 0, 0, 30, angle=math.pi / 2)
    texts = [t.text for t in surface.of_type(Text)]
    assert texts == ["r = 30", "d = 60"]
    diameter_line = surface.with_role("dimension-line")[1]
    assert _length(((diameter_line.x1, diameter_line.y1), (diameter_line.x2, diameter_line.y2))) == pytest.approx(60.0)


def test_draw_angle_reports_degrees():
    surface = RenderSurface()
    text = MeasurementEngine().draw_angle(surface, 0, 0, 20, 0.0, math.pi / 3)
    assert text is not None
    assert text.text == "60.0°"
    assert surface.with_role("angle-arc")
    assert MeasurementEngine().draw_angle(RenderSurface(), 0, 0, 0, 0.0, 1.0) is None


def test_zero_label_offset_is_respected():
    surface = RenderSurface()
    engine = MeasurementEngine(MeasurementStyle(label_offset=15.0))
    engine.draw_dimension(surface, 0, 0, 100, 0, "100", offset=20, label_offset=0)
    line = surface.with_role("dimension-line")[0]
    text = surface.of_type(Text)[0]
    assert (text.x, text.y) == pytest.approx(((line.x1 + line.x2) / 2, (line.y1 + line.y2) / 2))

    arc_label = engine.draw_angle(RenderSurface(), 0, 0, 20, 0.0, math.pi / 2, label_offset=0)
    assert math.hypot(arc_label.x, arc_label.y) == pytest.approx(20.0)
