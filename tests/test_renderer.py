from __future__ import annotations

import math

import matplotlib.pyplot as plt
import pytest
from matplotlib.path import Path as MplPath

from plotting.diagram import Diagram
from plotting.renderer import ARC_SAMPLES, arc_center, draw_surface_on_axis, path_to_mpl, render_to_file, render_to_image
from plotting.surface import Path, RenderSurface
from shapes import (
    Arc,
    Circle,
    CompositeShape,
    Cone,
    Cylinder,
    IrregularPolygon,
    Pyramid,
    Rectangle,
    RectangularPrism,
    RegularPolygon,
    Sector,
    Sphere,
    Tangent,
    Triangle,
)


def test_path_commands_map_to_matplotlib_codes():
    mpl = path_to_mpl([("M", 0, 0), ("L", 10, 0), ("Q", 15, 5, 10, 10), ("Z",)])
    assert list(mpl.codes) == [MplPath.MOVETO, MplPath.LINETO, MplPath.CURVE3, MplPath.CURVE3, MplPath.CLOSEPOLY]
    assert tuple(mpl.vertices[-1]) == (0.0, 0.0)


def test_arc_is_sampled_into_line_segments():
    mpl = path_to_mpl([("M", 10, 0), ("A", 10, 10, 0, 0, 1, -10, 0)])
    assert len(mpl.codes) == ARC_SAMPLES
    assert all(code == MplPath.LINETO for code in mpl.codes[1:])
    assert tuple(mpl.vertices[-1]) == pytest.approx((-10.0, 0.0))
    # sweep=1 runs through positive y (downward on screen)
    assert max(y for _, y in mpl.vertices) == pytest.approx(10.0, abs=0.1)


def test_unknown_path_command_is_rejected():
    with pytest.raises(ValueError):
        path_to_mpl([("M", 0, 0), ("C", 1, 1, 2, 2, 3, 3)])


def test_arc_center_of_a_semicircle():
    cx, cy, rx, ry, theta1, dtheta = arc_center(10, 0, 10, 10, 0, 0, 1, -10, 0)
    assert (cx, cy) == pytest.approx((0.0, 0.0))
    assert (rx, ry) == (10.0, 10.0)
    assert theta1 == pytest.approx(0.0)
    assert dtheta == pytest.approx(math.pi)
    assert arc_center(0, 0, 10, 10, 0, 0, 1, 0, 0) is None


def test_undersized_arc_radius_is_scaled_up():
    _, _, rx, ry, _, _ = arc_center(0, 0, 1, 1, 0, 0, 1, 20, 0)
    assert (rx, ry) == pytest.approx((10.0, 10.0))


def _every_shape() -> Diagram:
    d = Diagram(width=600, height=400)
    d.add(Rectangle(80, 40, x=10, y=10).add_measurement("width").add_measurement("area"))
    d.add(Triangle.right_triangle(60, 40, x=120, y=10).add_measurement("side2"))
    d.add(Circle(25, x=200, y=10).add_measurement("diameter"))
    d.add(RegularPolygon.hexagon(30, x=320, y=50))
    d.add(IrregularPolygon.star(5, 30, 15, x=400, y=50).set_show_vertex_labels())
    group = CompositeShape(x=450, y=10)
    group.add_shape(Rectangle(60, 60)).add_shape(Circle(15, x=15, y=15), "subtract")
    d.add(group)
    d.add(Arc(30, 0, 120, x=60, y=200).add_measurement("arc-length"))
    d.add(Sector(30, 0, 90, x=140, y=200).add_measurement("central-angle"))
    d.add(Tangent(20, angle=45, x=220, y=200))
    d.add(RectangularPrism(60, 40, 50, x=320, y=220).add_measurement("depth"))
    d.add(Pyramid(50, 60, x=420, y=220))
    d.add(Cylinder(25, 60, x=500, y=220))
    d.add(Cone(25, 60, x=560, y=220))
    d.add(Sphere(30, x=320, y=330))
    return d


def test_every_primitive_kind_draws_on_an_axis():
    surface = _every_shape().render()
    fig, ax = plt.subplots()
    try:
        draw_surface_on_axis(ax, surface, width=600, height=400)
        assert ax.get_ylim() == (400.0, 0.0)
        assert ax.patches
    finally:
        plt.close(fig)


def test_axis_autoscales_when_no_canvas_given():
    surface = RenderSurface()
    surface.add(Path((("M", 0.0, 0.0), ("L", 50.0, 20.0)), style={"stroke": "#000000"}))
    fig, ax = plt.subplots()
    try:
        draw_surface_on_axis(ax, surface)
        assert ax.yaxis_inverted()
    finally:
        plt.close(fig)


def test_render_to_image_matches_canvas_size():
    image = render_to_image(_every_shape().render(), width=400, height=300)
    assert image.size == (400, 300)


def test_render_to_file_creates_directories(tmp_path):
    out = tmp_path / "nested" / "diagram.png"
    render_to_file(Diagram().add(Sphere(40, x=200, y=150)).render(), str(out))
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_to_file_svg_by_extension(tmp_path):
    out = tmp_path / "diagram.svg"
    render_to_file(Diagram().add(Rectangle(50, 50, x=10, y=10)).render(), str(out))
    assert "<svg" in out.read_text()
