from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple
import logging
import math
import string

import numpy as np
from shapely.geometry import box
from shapely.ops import unary_union

from geometry.affine import Affine2D
from geometry.vectors import Bounds, Point, centroid, is_convex, polygon_perimeter, shoelace_area, side_lengths
from measurement.types import LabelFormat, MeasurementOptions, MeasurementPoints, MeasurementType
from plotting.context import RenderContext
from plotting.surface import Circle as CirclePrimitive
from plotting.surface import Polygon, RenderSurface, Text

from .base import Shape, map_points, outward_segment

logger = logging.getLogger(__name__)


def random_vertices(n: int = 6, radius: float = 80.0,
                    rng: Optional[np.random.Generator] = None) -> List[Point]:
    """
    Jittered polygon around the origin: each vertex angle moves by up to
    15% of the angular step, each radius lies in [0.7r, 1.3r].
    """
    rng = rng or np.random.default_rng()
    step = 2.0 * math.pi / n
    out: List[Point] = []
    for i in range(n):
        angle = i * step + (rng.random() - 0.5) * step * 0.3
        r = radius * (0.7 + rng.random() * 0.6)
        out.append((math.cos(angle) * r, math.sin(angle) * r))
    return out


def convex_vertices(n: int = 6, radius: float = 80.0) -> List[Point]:
    return [(math.cos(2.0 * math.pi * i / n) * radius, math.sin(2.0 * math.pi * i / n) * radius)
            for i in range(n)]


def star_vertices(points: int = 5, outer_radius: float = 80.0, inner_radius: float = 40.0) -> List[Point]:
    out: List[Point] = []
    for i in range(points * 2):
        angle = math.pi * i / points
        r = outer_radius if i % 2 == 0 else inner_radius
        out.append((math.cos(angle) * r, math.sin(angle) * r))
    return out


class IrregularPolygon(Shape):
    """
    Arbitrary vertex list in local space. Polygons with fewer than three
    vertices are kept but not drawn.
    """

    def __init__(self, vertices: Optional[Iterable[Sequence[float]]] = None, x: float = 0.0, y: float = 0.0,
                 rng: Optional[np.random.Generator] = None):
        super().__init__(x, y)
        if vertices is None:
            self.vertices: List[Point] = random_vertices(6, rng=rng)
        else:
            self.vertices = [(float(vx), float(vy)) for vx, vy in vertices]
        self.show_vertex_labels = False

    @staticmethod
    def star(points: int = 5, outer_radius: float = 80.0, inner_radius: float = 40.0,
             x: float = 0.0, y: float = 0.0) -> "IrregularPolygon":
        return IrregularPolygon(star_vertices(points, outer_radius, inner_radius), x, y)

    @staticmethod
    def convex(n: int = 6, radius: float = 80.0, x: float = 0.0, y: float = 0.0) -> "IrregularPolygon":
        return IrregularPolygon(convex_vertices(n, radius), x, y)

    def set_vertices(self, vertices: Iterable[Sequence[float]]) -> "IrregularPolygon":
        self.vertices = [(float(vx), float(vy)) for vx, vy in vertices]
        return self

    def add_vertex(self, x: float, y: float) -> "IrregularPolygon":
        self.vertices.append((float(x), float(y)))
        return self

    def generate_random(self, n: int = 6, radius: float = 80.0,
                        rng: Optional[np.random.Generator] = None) -> "IrregularPolygon":
        return self.set_vertices(random_vertices(n, radius, rng))

    def generate_convex(self, n: int = 6, radius: float = 80.0) -> "IrregularPolygon":
        return self.set_vertices(convex_vertices(n, radius))

    def generate_star(self, points: int = 5, outer_radius: float = 80.0,
                      inner_radius: float = 40.0) -> "IrregularPolygon":
        return self.set_vertices(star_vertices(points, outer_radius, inner_radius))

    def set_show_vertex_labels(self, show: bool = True) -> "IrregularPolygon":
        self.show_vertex_labels = show
        return self

    def area(self) -> float:
        return shoelace_area(self.vertices)

    def perimeter(self) -> float:
        return polygon_perimeter(self.vertices)

    def side_lengths(self) -> List[float]:
        return side_lengths(self.vertices)

    def is_convex(self) -> bool:
        return is_convex(self.vertices)

    def local_outline(self) -> Sequence[Point]:
        return self.vertices

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        if len(self.vertices) < 3:
            logger.debug("Not drawing polygon with %d vertices", len(self.vertices))
            return
        surface.add(Polygon(map_points(transform, self.vertices), style=self.fill_style(), role="shape"))

        if self.show_vertex_labels or context.options.show_vertex_labels:
            color = self.style.get("stroke")
            for index, (px, py) in enumerate(map_points(transform, self.vertices)):
                surface.add(CirclePrimitive(px, py, 3.0,
                                            style={"fill": color, "stroke": "white", "stroke_width": 1},
                                            role="vertex"))
                surface.add(Text(px + 8.0, py - 8.0, vertex_name(index), anchor="start",
                                 style={"fill": color, "font_size": 12, "font_family": "Arial, sans-serif"},
                                 role="vertex-label"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()
        n = len(self.vertices)

        if kind == MeasurementType.SIDE:
            if n < 2:
                # Zero-length segment; the engine draws nothing for it.
                return MeasurementPoints(self.x, self.y, self.x, self.y, options.label_or(""))
            i = options.side_index % n
            p, q = self.vertices[i], self.vertices[(i + 1) % n]
            length = math.hypot(q[0] - p[0], q[1] - p[1])
            return outward_segment(T, p, q, centroid(self.vertices), options.label_or(fmt.rounded(length)))
        if kind == MeasurementType.AREA:
            return MeasurementPoints.at(*self.get_bounds().center,
                                        options.label_or(f"Area = {fmt.rounded(self.area())}"))
        if kind == MeasurementType.PERIMETER:
            b = self.get_bounds()
            return MeasurementPoints.at(b.max_x + 10.0, b.center[1],
                                        options.label_or(f"P = {fmt.rounded(self.perimeter())}"))
        return super().get_measurement_points(kind, options, fmt)


def vertex_name(index: int) -> str:
    """
    A, B, ..., Z, then A1, B1, ...
    """
    letters = string.ascii_uppercase
    letter = letters[index % len(letters)]
    cycle = index // len(letters)
    return letter if cycle == 0 else f"{letter}{cycle}"


# ---- Composite ----

class CompositeOperation(str, Enum):
    UNION = "union"
    SUBTRACT = "subtract"
    INTERSECT = "intersect"


# Styling only: members are drawn as-is, no boolean geometry is computed.
OPERATION_STYLES = {
    CompositeOperation.UNION: {},
    CompositeOperation.SUBTRACT: {
        "fill": "#ffffff", "fill_opacity": 0.8, "stroke": "#e74c3c", "stroke_width": 2,
    },
    CompositeOperation.INTERSECT: {
        "fill": "#9b59b6", "fill_opacity": 0.3, "stroke": "#9b59b6", "stroke_width": 1,
    },
}


class CompositeShape(Shape):
    """
    Group of member shapes drawn in order inside the composite's own frame.
    """

    def __init__(self, x: float = 0.0, y: float = 0.0):
        super().__init__(x, y)
        self.members: List[Tuple[Shape, CompositeOperation]] = []

    def add_shape(self, shape: Shape, operation: CompositeOperation = CompositeOperation.UNION) -> "CompositeShape":
        self.members.append((shape, CompositeOperation(operation)))
        return self

    @property
    def shapes(self) -> List[Shape]:
        return [shape for shape, _ in self.members]

    def get_bounds(self) -> Bounds:
        if not self.members:
            return Bounds(self.x, self.y, 0.0, 0.0)
        T = self.transform()
        boxes = []
        for shape, _ in self.members:
            b = shape.get_bounds()
            corners = ((b.min_x, b.min_y), (b.max_x, b.min_y), (b.max_x, b.max_y), (b.min_x, b.max_y))
            mapped = T.bounds_of(corners)
            boxes.append(box(mapped.min_x, mapped.min_y, mapped.max_x, mapped.max_y))
        return Bounds.from_extents(*unary_union(boxes).bounds)

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        for shape, operation in self.members:
            styled = shape
            overrides = OPERATION_STYLES[operation]
            if overrides:
                styled = shape.copy()
                styled.set_style(overrides)
            styled.draw(surface, context, styled.transform().then(transform))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        if not self.members:
            return super().get_measurement_points(kind, options, fmt)
        points = self.members[0][0].get_measurement_points(kind, options, fmt)
        T = self.transform()
        x1, y1 = T.apply((points.x1, points.y1))
        x2, y2 = T.apply((points.x2, points.y2))
        sweep = points.sweep
        if sweep is not None:
            start = math.atan2(y2 - y1, x2 - x1)
            sweep = (start, start + sweep[1] - sweep[0])
        return MeasurementPoints(x1, y1, x2, y2, points.label, label_only=points.label_only,
                                 offset=points.offset, sweep=sweep)
