from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import copy
import logging
import math

from geometry.affine import Affine2D
from geometry.errors import UnsupportedMeasurementError
from geometry.vectors import Bounds, Point, perpendicular
from measurement.engine import MeasurementEngine
from measurement.types import (
    LabelFormat,
    MeasurementOptions,
    MeasurementPoints,
    MeasurementRequest,
    MeasurementType,
)
from plotting.context import RenderContext
from plotting.surface import Circle as CirclePrimitive
from plotting.surface import Ellipse, RenderSurface

logger = logging.getLogger(__name__)

DEFAULT_STYLE: Dict[str, Any] = {
    "fill": "#3498db",
    "fill_opacity": 0.3,
    "stroke": "#2980b9",
    "stroke_width": 2,
}


class Shape:
    """
    Common contract for every diagram shape.

    Geometry lives in shape-local coordinates; `transform()` maps it into the
    parent frame using position, rotation (degrees) and scale in the order of
    an SVG `translate rotate scale` attribute. Setters return self so calls
    can be chained.
    """

    def __init__(self, x: float = 0.0, y: float = 0.0):
        self.x = float(x)
        self.y = float(y)
        self.rotation = 0.0
        self.scale_x = 1.0
        self.scale_y = 1.0
        self.style: Dict[str, Any] = dict(DEFAULT_STYLE)
        self.measurements: List[MeasurementRequest] = []

    # ---- Placement ----
    def set_position(self, x: float, y: float) -> "Shape":
        self.x = float(x)
        self.y = float(y)
        return self

    def get_position(self) -> Point:
        return (self.x, self.y)

    def rotate(self, degrees: float) -> "Shape":
        self.rotation = float(degrees)
        return self

    def scale(self, factor: float) -> "Shape":
        return self.scale_xy(factor, factor)

    def scale_xy(self, factor_x: float, factor_y: float) -> "Shape":
        self.scale_x = float(factor_x)
        self.scale_y = float(factor_y)
        return self

    def transform(self) -> Affine2D:
        return Affine2D.from_components(self.x, self.y, self.rotation, self.scale_x, self.scale_y)

    def center(self, context: RenderContext) -> "Shape":
        return self.center_in(context.width, context.height)

    def center_in(self, width: float, height: float) -> "Shape":
        """
        Move the shape so its bounding box is centred on a width x height canvas.
        """
        bx, by = self.get_bounds().center
        return self.set_position(self.x + width / 2.0 - bx, self.y + height / 2.0 - by)

    # ---- Style ----
    def set_style(self, style: Optional[Mapping[str, Any]] = None, **partial: Any) -> "Shape":
        if style:
            self.style.update(style)
        self.style.update(partial)
        return self

    def fill_style(self) -> Dict[str, Any]:
        keys = ("fill", "fill_opacity", "stroke", "stroke_width", "stroke_dasharray")
        return {k: self.style[k] for k in keys if k in self.style}

    def stroke_style(self) -> Dict[str, Any]:
        style = {"stroke": self.style.get("stroke"), "stroke_width": self.style.get("stroke_width", 1)}
        if "stroke_dasharray" in self.style:
            style["stroke_dasharray"] = self.style["stroke_dasharray"]
        return style

    # ---- Geometry ----
    def local_outline(self) -> Sequence[Point]:
        """
        Local-space points whose transformed hull bounds the shape.
        """
        return ()

    def get_bounds(self) -> Bounds:
        outline = self.local_outline()
        if not outline:
            return Bounds(self.x, self.y, 0.0, 0.0)
        return self.transform().bounds_of(outline)

    def to_parent(self, points: Iterable[Sequence[float]]) -> Tuple[Point, ...]:
        T = self.transform()
        return tuple(T.apply(p) for p in points)

    def copy(self) -> "Shape":
        return copy.deepcopy(self)

    # ---- Rendering ----
    def render(self, surface: Optional[RenderSurface] = None,
               context: Optional[RenderContext] = None) -> RenderSurface:
        """
        Append this shape's primitives to `surface` (a new one if omitted).
        Shape state is never modified.
        """
        surface = surface if surface is not None else RenderSurface()
        self.draw(surface, context if context is not None else surface.default_context(), self.transform())
        return surface

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        raise NotImplementedError

    # ---- Measurements ----
    def add_measurement(self, kind: Union[MeasurementType, str], **options: Any) -> "Shape":
        self.measurements.append(MeasurementRequest.create(kind, **options))
        return self

    def clear_measurements(self) -> "Shape":
        self.measurements = []
        return self

    def get_measurement_points(self, kind: Union[MeasurementType, str],
                               options: Optional[MeasurementOptions] = None,
                               fmt: Optional[LabelFormat] = None) -> MeasurementPoints:
        """
        Resolve a measurement to parent-space endpoints and a label.
        Raises UnsupportedMeasurementError for types this shape does not know.
        """
        raise UnsupportedMeasurementError(kind, type(self).__name__)

    def render_measurements(self, surface: Optional[RenderSurface] = None,
                            context: Optional[RenderContext] = None) -> RenderSurface:
        surface = surface if surface is not None else RenderSurface()
        ctx = context if context is not None else surface.default_context()
        engine = MeasurementEngine(ctx.measurement_style)
        fmt = LabelFormat(units=ctx.options.units, decimals=ctx.options.decimals)
        for request in self.measurements:
            try:
                kind = MeasurementType.parse(request.kind)
                points = self.get_measurement_points(kind, request.options, fmt)
            except UnsupportedMeasurementError as exc:
                logger.warning("Skipping measurement on %s: %s", type(self).__name__, exc)
                continue
            draw_measurement(surface, engine, kind, points, request.options)
        return surface


def draw_measurement(surface: RenderSurface, engine: MeasurementEngine, kind: MeasurementType,
                     points: MeasurementPoints, options: MeasurementOptions) -> None:
    if points.label_only:
        engine.draw_label(surface, points.x1, points.y1, points.label)
        return
    if points.sweep is not None:
        start, end = points.sweep
        engine.draw_angle(surface, points.x1, points.y1, points.length, start, end,
                          points.label, label_offset=options.label_offset)
        return
    offset = points.offset if points.offset is not None else options.offset
    if kind == MeasurementType.RADIUS:
        engine.draw_radius(surface, points.x1, points.y1, points.length, points.direction,
                           points.label, offset=offset, label_offset=options.label_offset)
    elif kind == MeasurementType.DIAMETER:
        cx = (points.x1 + points.x2) / 2.0
        cy = (points.y1 + points.y2) / 2.0
        engine.draw_diameter(surface, cx, cy, points.length / 2.0, points.direction,
                             points.label, offset=offset, label_offset=options.label_offset)
    else:
        engine.draw_dimension(surface, points.x1, points.y1, points.x2, points.y2,
                              points.label, offset=offset, label_offset=options.label_offset)


# ---- Helpers shared by concrete shapes ----

def map_points(transform: Affine2D, points: Iterable[Sequence[float]]) -> Tuple[Point, ...]:
    return tuple((float(x), float(y)) for x, y in transform.apply_many(points))


def segment(transform: Affine2D, p: Sequence[float], q: Sequence[float],
            label: str) -> MeasurementPoints:
    (x1, y1), (x2, y2) = transform.apply(p), transform.apply(q)
    return MeasurementPoints(x1, y1, x2, y2, label)


def outward_segment(transform: Affine2D, p: Sequence[float], q: Sequence[float],
                    inside: Sequence[float], label: str) -> MeasurementPoints:
    """
    Edge p-q in parent space, ordered so that a positive offset moves the
    dimension line away from the `inside` point.
    """
    return outward(transform.apply(p), transform.apply(q), transform.apply(inside), label)


def outward(a: Point, b: Point, inside: Point, label: str) -> MeasurementPoints:
    """
    Same as outward_segment for points already in parent space.
    """
    nx, ny = perpendicular((b[0] - a[0], b[1] - a[1]))
    mx, my = (a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0
    if nx * (mx - inside[0]) + ny * (my - inside[1]) < 0:
        a, b = b, a
    return MeasurementPoints(a[0], a[1], b[0], b[1], label)


def label_at(transform: Affine2D, p: Sequence[float], label: str) -> MeasurementPoints:
    x, y = transform.apply(p)
    return MeasurementPoints.at(x, y, label)


def below(bounds: Bounds, gap: float, label: str) -> MeasurementPoints:
    """
    Horizontal span under the bounding box, used for perimeter-style lines.
    """
    y = bounds.max_y + gap
    return MeasurementPoints(bounds.min_x, y, bounds.max_x, y, label)


def circle_primitive(transform: Affine2D, cx: float, cy: float, r: float,
                     style: Dict[str, Any], role: str) -> Union[CirclePrimitive, Ellipse]:
    """
    A local circle mapped through `transform`; stays a circle unless the
    transform scales the axes differently.
    """
    shape = ellipse_primitive(transform, cx, cy, r, r, style, role)
    if math.isclose(shape.rx, shape.ry):
        return CirclePrimitive(shape.cx, shape.cy, shape.rx, style=style, role=role)
    return shape


def ellipse_primitive(transform: Affine2D, cx: float, cy: float, rx: float, ry: float,
                      style: Dict[str, Any], role: str) -> Ellipse:
    """
    Axis-aligned local ellipse mapped through a scale-rotate-translate transform.
    """
    px, py = transform.apply((cx, cy))
    sx = math.hypot(transform.A[0, 0], transform.A[1, 0])
    sy = math.hypot(transform.A[0, 1], transform.A[1, 1])
    return Ellipse(px, py, rx * sx, ry * sy, rotation=transform.rotation_degrees, style=style, role=role)
