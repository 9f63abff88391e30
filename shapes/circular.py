from __future__ import annotations

from typing import Any, Dict, Tuple
import math

import numpy as np

from geometry.affine import Affine2D
from geometry.vectors import Bounds, Point
from measurement.types import LabelFormat, MeasurementOptions, MeasurementPoints, MeasurementType
from plotting.context import RenderContext
from plotting.surface import Circle as CirclePrimitive
from plotting.surface import Line, Path, RenderSurface

from .base import Shape, circle_primitive, label_at, segment

OUTLINE_STYLE: Dict[str, Any] = {"fill": "none", "stroke": "#bdc3c7", "stroke_width": 1}
POINT_RADIUS = 3.0
LABEL_GAP = 20.0
ANGLE_MARK_RATIO = 0.3


def clockwise_end(start: float, end: float) -> float:
    """
    `end` moved by whole turns so the clockwise run from `start` lies in
    (0, 360] degrees. Equal angles stay equal.
    """
    if end == start:
        return end
    delta = (end - start) % 360.0
    return start + (delta if delta else 360.0)


def arc_commands(transform: Affine2D, radius: float, start: float, end: float) -> Tuple[tuple, ...]:
    """
    "A" path segment for the local arc from `start` to `end` (radians) around
    the origin, mapped through `transform`. Does not include the initial move.
    """
    A = transform.A
    rx = radius * math.hypot(A[0, 0], A[1, 0])
    ry = radius * math.hypot(A[0, 1], A[1, 1])
    large_arc = 1 if (end - start) > math.pi else 0
    # A mirroring transform reverses the sweep direction.
    sweep = 1 if np.linalg.det(A) > 0 else 0
    ex, ey = transform.apply((radius * math.cos(end), radius * math.sin(end)))
    return (("A", rx, ry, transform.rotation_degrees, large_arc, sweep, ex, ey),)


class CirclePart(Shape):
    """
    Base for circle constructions centred on the shape's position.
    Angles are stored in degrees and measured clockwise on screen from +x.
    """

    def __init__(self, radius: float = 50.0, start_angle: float = 0.0, end_angle: float = 180.0,
                 x: float = 0.0, y: float = 0.0):
        super().__init__(x, y)
        self.radius = float(radius)
        self.set_angles(start_angle, end_angle)

    def set_radius(self, radius: float) -> "CirclePart":
        self.radius = float(radius)
        return self

    def set_angles(self, start_angle: float, end_angle: float) -> "CirclePart":
        self.start_angle = float(start_angle)
        self.end_angle = clockwise_end(self.start_angle, float(end_angle))
        return self

    @property
    def span(self) -> float:
        """
        Central angle in degrees, always the clockwise run from start to end.
        """
        return self.end_angle - self.start_angle

    def point_at(self, degrees: float, radius: float | None = None) -> Point:
        r = self.radius if radius is None else radius
        theta = math.radians(degrees)
        return (r * math.cos(theta), r * math.sin(theta))

    def mid_angle(self) -> float:
        return (self.start_angle + self.end_angle) / 2.0

    def arc_length(self) -> float:
        return self.radius * math.radians(self.span)

    def get_bounds(self) -> Bounds:
        T = self.transform()
        cx, cy = T.apply((0.0, 0.0))
        ex, ey = T.ellipse_extent(self.radius)
        return Bounds.from_extents(cx - ex, cy - ey, cx + ex, cy + ey)

    def _endpoint_dots(self, surface: RenderSurface, transform: Affine2D, color: str,
                       angles: Tuple[float, ...]) -> None:
        for a in angles:
            px, py = transform.apply(self.point_at(a))
            surface.add(CirclePrimitive(px, py, POINT_RADIUS, style={"fill": color}, role="endpoint"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()

        if kind == MeasurementType.ARC_LENGTH:
            return label_at(T, self.point_at(self.mid_angle(), self.radius + LABEL_GAP),
                            options.label_or(f"s = {fmt.rounded(self.arc_length())}"))
        if kind == MeasurementType.CENTRAL_ANGLE:
            label = options.label_or(f"θ = {fmt.rounded(self.span)}°")
            if self.span == 0:
                return label_at(T, (0.0, 0.0), label)
            return self._angle_mark(T, label)
        if kind == MeasurementType.RADIUS:
            return segment(T, (0.0, 0.0), self.point_at(self.start_angle),
                           options.label_or(f"r = {fmt.exact(self.radius)}"))
        return super().get_measurement_points(kind, options, fmt)

    def _angle_mark(self, T: Affine2D, label: str) -> MeasurementPoints:
        # Small arc at the centre, in parent angles; a mirror swaps which end leads.
        mark = self.radius * ANGLE_MARK_RATIO
        cx, cy = T.apply((0.0, 0.0))
        ax, ay = T.apply(self.point_at(self.start_angle, mark))
        bx, by = T.apply(self.point_at(self.end_angle, mark))
        start = math.atan2(ay - cy, ax - cx)
        end = math.atan2(by - cy, bx - cx)
        if np.linalg.det(T.A) < 0:
            start, end = end, start
        run = (end - start) % (2.0 * math.pi)
        if run == 0:
            run = 2.0 * math.pi
        return MeasurementPoints.angle(cx, cy, math.hypot(ax - cx, ay - cy), start, start + run, label)


class Arc(CirclePart):

    def __init__(self, radius: float = 50.0, start_angle: float = 0.0, end_angle: float = 180.0,
                 x: float = 0.0, y: float = 0.0):
        super().__init__(radius, start_angle, end_angle, x, y)
        self.show_endpoints = True

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        start = transform.apply(self.point_at(self.start_angle))
        commands = (("M",) + start,) + arc_commands(
            transform, self.radius, math.radians(self.start_angle), math.radians(self.end_angle))
        surface.add(Path(commands, style={"fill": "none", **self.stroke_style()}, role="shape"))
        if self.show_endpoints:
            self._endpoint_dots(surface, transform, self.style.get("stroke"),
                                (self.start_angle, self.end_angle))


class Sector(CirclePart):

    def __init__(self, radius: float = 50.0, start_angle: float = 0.0, end_angle: float = 90.0,
                 x: float = 0.0, y: float = 0.0):
        super().__init__(radius, start_angle, end_angle, x, y)

    def sector_area(self) -> float:
        return 0.5 * self.radius ** 2 * math.radians(self.span)

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        center = transform.apply((0.0, 0.0))
        start = transform.apply(self.point_at(self.start_angle))
        commands = (("M",) + center, ("L",) + start) + arc_commands(
            transform, self.radius, math.radians(self.start_angle), math.radians(self.end_angle)) + (("Z",),)
        surface.add(Path(commands, style=self.fill_style(), role="shape"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        if kind == MeasurementType.SECTOR_AREA:
            inner = self.point_at(self.mid_angle(), self.radius * 0.7)
            return label_at(self.transform(), inner, options.label_or(f"A = {fmt.rounded(self.sector_area())}"))
        return super().get_measurement_points(kind, options, fmt)


class Chord(CirclePart):

    def __init__(self, radius: float = 50.0, start_angle: float = 0.0, end_angle: float = 60.0,
                 x: float = 0.0, y: float = 0.0):
        super().__init__(radius, start_angle, end_angle, x, y)
        self.show_circle = True

    def chord_length(self) -> float:
        return 2.0 * self.radius * math.sin(math.radians(self.span) / 2.0)

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        if self.show_circle:
            surface.add(circle_primitive(transform, 0.0, 0.0, self.radius, dict(OUTLINE_STYLE), "outline"))
        (x1, y1), (x2, y2) = (transform.apply(self.point_at(a)) for a in (self.start_angle, self.end_angle))
        surface.add(Line(x1, y1, x2, y2, style=self.stroke_style(), role="shape"))
        self._endpoint_dots(surface, transform, self.style.get("stroke"), (self.start_angle, self.end_angle))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        if kind == MeasurementType.CHORD_LENGTH:
            outside = self.point_at(self.mid_angle(), self.radius + LABEL_GAP)
            return label_at(self.transform(), outside, options.label_or(f"c = {fmt.rounded(self.chord_length())}"))
        return super().get_measurement_points(kind, options, fmt)


class Tangent(CirclePart):
    """
    Line of `length` touching the circle at `angle` degrees, with the radius
    to the touch point drawn dashed.
    """

    def __init__(self, radius: float = 50.0, angle: float = 0.0, length: float = 100.0,
                 x: float = 0.0, y: float = 0.0):
        super().__init__(radius, angle, angle, x, y)
        self.length = float(length)
        self.show_circle = True
        self.show_touch_point = True

    @property
    def angle(self) -> float:
        return self.start_angle

    def tangent_endpoints(self) -> Tuple[Point, Point]:
        tx, ty = self.point_at(self.angle)
        theta = math.radians(self.angle) + math.pi / 2.0
        dx = math.cos(theta) * self.length / 2.0
        dy = math.sin(theta) * self.length / 2.0
        return (tx - dx, ty - dy), (tx + dx, ty + dy)

    def get_bounds(self) -> Bounds:
        return super().get_bounds().union(self.transform().bounds_of(self.tangent_endpoints()))

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        if self.show_circle:
            surface.add(circle_primitive(transform, 0.0, 0.0, self.radius, dict(OUTLINE_STYLE), "outline"))
        (x1, y1), (x2, y2) = (transform.apply(p) for p in self.tangent_endpoints())
        surface.add(Line(x1, y1, x2, y2, style=self.stroke_style(), role="shape"))

        cx, cy = transform.apply((0.0, 0.0))
        tx, ty = transform.apply(self.point_at(self.angle))
        surface.add(Line(cx, cy, tx, ty, style={"stroke": OUTLINE_STYLE["stroke"], "stroke_width": 1,
                                                "stroke_dasharray": "3,3"}, role="radius-line"))
        if self.show_touch_point:
            surface.add(CirclePrimitive(tx, ty, POINT_RADIUS,
                                        style={"fill": "#e74c3c", "stroke": "white", "stroke_width": 1},
                                        role="touch-point"))
