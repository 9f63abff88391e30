from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging
import math

from geometry.errors import DegenerateGeometryError
from geometry.vectors import Point, normalize_degrees, perpendicular, polar, unit_vector
from plotting.context import MeasurementStyle
from plotting.surface import Line, Path, Polygon, RenderSurface, Text

logger = logging.getLogger(__name__)

# Labels on lines closer than this to horizontal always sit above the line.
HORIZONTAL_TOLERANCE = 30.0
# Rough glyph metrics for sizing the optional label background.
_CHAR_WIDTH = 0.6
_LINE_HEIGHT = 1.2
_BACKGROUND_PADDING = 2.0


@dataclass(frozen=True)
class LabelPlacement:
    x: float
    y: float
    rotation: float    # degrees, already flipped to read upright
    line_angle: float  # degrees, raw direction of the dimension line
    side: float        # -90 or +90, relative to line_angle


@dataclass(frozen=True)
class DimensionGeometry:
    """
    Everything needed to draw one dimension line, in parent coordinates.
    """
    extension_lines: Tuple[Tuple[Point, Point], Tuple[Point, Point]]
    dimension_line: Tuple[Point, Point]
    arrows: Tuple[Tuple[Point, Point, Point], Tuple[Point, Point, Point]]
    label: LabelPlacement

    @property
    def length(self) -> float:
        (ax, ay), (bx, by) = self.dimension_line
        return math.hypot(bx - ax, by - ay)


def arrow_points(x: float, y: float, ux: float, uy: float, size: float,
                 at_start: bool) -> Tuple[Point, Point, Point]:
    """
    Triangle with its tip on (x, y), opening back along the line so that both
    arrows of a dimension line point outward at the measured endpoints.
    """
    direction = 1.0 if at_start else -1.0
    px, py = perpendicular((ux, uy))
    bx = x + direction * size * ux
    by = y + direction * size * uy
    base1 = (bx - size * px / 2.0, by - size * py / 2.0)
    base2 = (bx + size * px / 2.0, by + size * py / 2.0)
    return ((x, y), base1, base2)


def label_placement(dx1: float, dy1: float, dx2: float, dy2: float,
                    offset: float, label_offset: float) -> LabelPlacement:
    line_angle = math.degrees(math.atan2(dy2 - dy1, dx2 - dx1))
    near_horizontal = abs(line_angle) < HORIZONTAL_TOLERANCE or abs(line_angle) > 180.0 - HORIZONTAL_TOLERANCE

    flipped = line_angle > 90.0 or line_angle < -90.0
    rotation = normalize_degrees(line_angle + 180.0) if flipped else line_angle

    if near_horizontal:
        # Above on screen (negative y) whichever way the line runs.
        side = 90.0 if flipped else -90.0
    else:
        side = 90.0 if offset > 0 else -90.0
        if flipped:
            side = -side

    theta = math.radians(line_angle + side)
    mx = (dx1 + dx2) / 2.0
    my = (dy1 + dy2) / 2.0
    return LabelPlacement(
        x=mx + label_offset * math.cos(theta),
        y=my + label_offset * math.sin(theta),
        rotation=rotation,
        line_angle=line_angle,
        side=side,
    )


def dimension_geometry(x1: float, y1: float, x2: float, y2: float, offset: float,
                       label_offset: float, arrow_size: float) -> Optional[DimensionGeometry]:
    """
    Pure placement for a dimension line between (x1, y1) and (x2, y2).

    Returns None when the endpoints coincide; there is no direction to
    offset along, so nothing is drawn.
    """
    try:
        ux, uy = unit_vector((x1, y1), (x2, y2))
    except DegenerateGeometryError as exc:
        logger.debug("Skipping dimension line: %s", exc)
        return None

    px, py = perpendicular((ux, uy))
    px *= offset
    py *= offset
    d1 = (x1 + px, y1 + py)
    d2 = (x2 + px, y2 + py)

    return DimensionGeometry(
        extension_lines=(((x1, y1), d1), ((x2, y2), d2)),
        dimension_line=(d1, d2),
        arrows=(
            arrow_points(d1[0], d1[1], ux, uy, arrow_size, True),
            arrow_points(d2[0], d2[1], ux, uy, arrow_size, False),
        ),
        label=label_placement(d1[0], d1[1], d2[0], d2[1], offset, label_offset),
    )


def arc_path_commands(cx: float, cy: float, radius: float,
                      start: float, end: float) -> Tuple[tuple, ...]:
    """
    Single SVG-style arc from `start` to `end` (radians), sweeping clockwise
    on screen (y down).
    """
    sx, sy = polar(cx, cy, radius, start)
    ex, ey = polar(cx, cy, radius, end)
    large_arc = 1 if abs(end - start) > math.pi else 0
    return (("M", sx, sy), ("A", radius, radius, 0.0, large_arc, 1, ex, ey))


class MeasurementEngine:
    """
    Emits dimension lines, radius/diameter lines and angle arcs onto a
    RenderSurface using an already-resolved MeasurementStyle.
    """

    def __init__(self, style: Optional[MeasurementStyle] = None):
        self.style = style or MeasurementStyle()

    # ---- Styles ----
    def _line_style(self) -> dict:
        return {"stroke": self.style.line_color, "stroke_width": self.style.line_width}

    def _extension_style(self) -> dict:
        return {"stroke": self.style.extension_line_color, "stroke_width": self.style.extension_line_width}

    def _arrow_style(self) -> dict:
        return {"fill": self.style.arrow_color, "stroke": self.style.arrow_color}

    def _text_style(self, weight: bool = True) -> dict:
        style = {
            "fill": self.style.text_color,
            "font_family": self.style.font_family,
            "font_size": self.style.font_size,
        }
        if weight:
            style["font_weight"] = self.style.font_weight
        return style

    # ---- Dimension lines ----
    def draw_dimension(self, surface: RenderSurface, x1: float, y1: float, x2: float, y2: float,
                       text: str, offset: float = 20.0,
                       label_offset: Optional[float] = None) -> Optional[DimensionGeometry]:
        geom = dimension_geometry(
            x1, y1, x2, y2,
            offset=offset,
            label_offset=self.style.label_offset if label_offset is None else label_offset,
            arrow_size=self.style.arrow_size,
        )
        if geom is None:
            return None

        for start, end in geom.extension_lines:
            surface.add(Line(start[0], start[1], end[0], end[1],
                             style=self._extension_style(), role="extension-line"))
        (ax, ay), (bx, by) = geom.dimension_line
        surface.add(Line(ax, ay, bx, by, style=self._line_style(), role="dimension-line"))
        for arrow in geom.arrows:
            surface.add(Polygon(arrow, style=self._arrow_style(), role="dimension-arrow"))

        placement = geom.label
        self.draw_label(surface, placement.x, placement.y, text, rotation=placement.rotation)
        return geom

    def draw_radius(self, surface: RenderSurface, cx: float, cy: float, radius: float,
                    angle: float = 0.0, text: Optional[str] = None,
                    offset: float = 15.0, label_offset: Optional[float] = None) -> Optional[DimensionGeometry]:
        end = polar(cx, cy, radius, angle)
        label = text or f"r = {radius:g}"
        return self.draw_dimension(surface, cx, cy, end[0], end[1], label, offset, label_offset)

    def draw_diameter(self, surface: RenderSurface, cx: float, cy: float, radius: float,
                      angle: float = 0.0, text: Optional[str] = None,
                      offset: float = 25.0, label_offset: Optional[float] = None) -> Optional[DimensionGeometry]:
        start = polar(cx, cy, -radius, angle)
        end = polar(cx, cy, radius, angle)
        label = text or f"d = {radius * 2:g}"
        return self.draw_dimension(surface, start[0], start[1], end[0], end[1], label, offset, label_offset)

    # ---- Angles ----
    def arc_path(self, cx: float, cy: float, radius: float, start: float, end: float) -> Path:
        return Path(arc_path_commands(cx, cy, radius, start, end),
                    style={"fill": "none", **self._line_style()}, role="angle-arc")

    def draw_angle(self, surface: RenderSurface, cx: float, cy: float, radius: float,
                   start: float, end: float, text: Optional[str] = None,
                   label_offset: Optional[float] = None) -> Optional[Text]:
        """
        Arc from `start` to `end` (radians) with the label pushed radially out
        from the arc's mid-angle.
        """
        if radius <= 0 or start == end:
            logger.debug("Skipping angle arc with radius %s over [%s, %s]", radius, start, end)
            return None
        surface.add(self.arc_path(cx, cy, radius, start, end))

        mid = (start + end) / 2.0
        lx, ly = polar(cx, cy, radius + (self.style.label_offset if label_offset is None else label_offset), mid)
        label = text or f"{math.degrees(abs(end - start)):.1f}°"
        return surface.add(Text(lx, ly, label, style=self._text_style(weight=False), role="measurement-text"))

    # ---- Labels ----
    def draw_label(self, surface: RenderSurface, x: float, y: float, text: str,
                   rotation: float = 0.0) -> Text:
        if self.style.text_background:
            surface.add(self._label_background(x, y, text, rotation))
        return surface.add(Text(x, y, text, rotation=rotation,
                                style=self._text_style(), role="measurement-text"))

    def _label_background(self, x: float, y: float, text: str, rotation: float) -> Polygon:
        half_w = len(text) * self.style.font_size * _CHAR_WIDTH / 2.0 + _BACKGROUND_PADDING
        half_h = self.style.font_size * _LINE_HEIGHT / 2.0 + _BACKGROUND_PADDING
        c = math.cos(math.radians(rotation))
        s = math.sin(math.radians(rotation))
        corners: List[Point] = []
        for dx, dy in ((-half_w, -half_h), (half_w, -half_h), (half_w, half_h), (-half_w, half_h)):
            corners.append((x + dx * c - dy * s, y + dx * s + dy * c))
        return Polygon(
            tuple(corners),
            style={"fill": self.style.text_background_color,
                   "fill_opacity": self.style.text_background_opacity,
                   "stroke": "none"},
            role="measurement-background",
        )
