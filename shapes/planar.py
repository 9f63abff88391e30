from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Tuple
import logging
import math

from geometry.affine import Affine2D
from geometry.vectors import Bounds, Point, centroid, distance
from measurement.types import LabelFormat, MeasurementOptions, MeasurementPoints, MeasurementType
from plotting.context import RenderContext
from plotting.surface import Circle as CirclePrimitive
from plotting.surface import Line, Path, Polygon, RenderSurface

from .base import Shape, below, circle_primitive, label_at, map_points, outward_segment, segment

logger = logging.getLogger(__name__)

RIGHT_ANGLE_MARK = 10.0
PERIMETER_GAP = 30.0


# ---- Rectangle ----

class Rectangle(Shape):
    """
    Axis-aligned in local space with its top-left corner at the origin.
    """

    def __init__(self, width: float = 100.0, height: float = 60.0, x: float = 0.0, y: float = 0.0):
        super().__init__(x, y)
        self.width = float(width)
        self.height = float(height)

    @staticmethod
    def square(size: float, x: float = 0.0, y: float = 0.0) -> "Rectangle":
        return Rectangle(size, size, x, y)

    @staticmethod
    def from_length_width(length: float, width: float, x: float = 0.0, y: float = 0.0) -> "Rectangle":
        # "length x width" wording: length runs horizontally, width vertically.
        return Rectangle(length, width, x, y)

    def set_size(self, width: float, height: float) -> "Rectangle":
        self.width = float(width)
        self.height = float(height)
        return self

    def set_width(self, width: float) -> "Rectangle":
        self.width = float(width)
        return self

    def set_height(self, height: float) -> "Rectangle":
        self.height = float(height)
        return self

    def get_dimensions(self) -> Tuple[float, float]:
        return (self.width, self.height)

    def area(self) -> float:
        return self.width * self.height

    def perimeter(self) -> float:
        return 2.0 * (self.width + self.height)

    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    def local_outline(self) -> Sequence[Point]:
        w, h = self.width, self.height
        return ((0.0, 0.0), (w, 0.0), (w, h), (0.0, h))

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        surface.add(Polygon(map_points(transform, self.local_outline()), style=self.fill_style(), role="shape"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()
        w, h = self.width, self.height
        middle = (w / 2.0, h / 2.0)

        if kind == MeasurementType.WIDTH:
            side = "bottom" if options.side == "auto" else options.side
            y = 0.0 if side == "top" else h
            return outward_segment(T, (0.0, y), (w, y), middle, options.label_or(fmt.length(w)))
        if kind == MeasurementType.HEIGHT:
            side = "right" if options.side == "auto" else options.side
            x = 0.0 if side == "left" else w
            return outward_segment(T, (x, 0.0), (x, h), middle, options.label_or(fmt.length(h)))
        if kind == MeasurementType.DIAGONAL:
            return segment(T, (0.0, 0.0), (w, h), options.label_or(fmt.length(self.diagonal(), rounded=True)))
        if kind == MeasurementType.AREA:
            return label_at(T, middle, options.label_or(fmt.area(self.area())))
        if kind == MeasurementType.PERIMETER:
            return below(self.get_bounds(), PERIMETER_GAP, options.label_or(fmt.perimeter(self.perimeter())))
        return super().get_measurement_points(kind, options, fmt)


# ---- Triangle ----

class TriangleKind(str, Enum):
    RIGHT = "right"
    EQUILATERAL = "equilateral"
    ISOSCELES = "isosceles"


class Triangle(Shape):
    """
    Base along the bottom edge (local y = height), apex or right-angle leg
    at the top. Vertex order is base-left, base-right, apex.
    """

    def __init__(self, base: float = 100.0, height: float = 87.0, x: float = 0.0, y: float = 0.0,
                 kind: TriangleKind = TriangleKind.ISOSCELES):
        super().__init__(x, y)
        self.base = float(base)
        self.height = float(height)
        self.kind = TriangleKind(kind)

    @staticmethod
    def right_triangle(base: float, height: float, x: float = 0.0, y: float = 0.0) -> "Triangle":
        return Triangle(base, height, x, y, kind=TriangleKind.RIGHT)

    @staticmethod
    def equilateral_triangle(side: float, x: float = 0.0, y: float = 0.0) -> "Triangle":
        return Triangle(side, side * math.sqrt(3.0) / 2.0, x, y, kind=TriangleKind.EQUILATERAL)

    @staticmethod
    def isosceles_triangle(base: float, height: float, x: float = 0.0, y: float = 0.0) -> "Triangle":
        return Triangle(base, height, x, y, kind=TriangleKind.ISOSCELES)

    def set_dimensions(self, base: float, height: float) -> "Triangle":
        self.base = float(base)
        self.height = float(height)
        return self

    def set_kind(self, kind: TriangleKind) -> "Triangle":
        self.kind = TriangleKind(kind)
        return self

    def show_height(self, show: bool = True, color: Optional[str] = None, dash: Optional[str] = "5,5") -> "Triangle":
        self.style["show_height"] = show
        if color:
            self.style["height_line_color"] = color
        if dash:
            self.style["height_line_dash"] = dash
        return self

    @property
    def altitude(self) -> float:
        if self.kind == TriangleKind.EQUILATERAL:
            return self.base * math.sqrt(3.0) / 2.0
        return self.height

    def local_vertices(self) -> List[Point]:
        b, h = self.base, self.altitude
        if self.kind == TriangleKind.RIGHT:
            return [(0.0, h), (b, h), (0.0, 0.0)]
        return [(0.0, h), (b, h), (b / 2.0, 0.0)]

    def vertices(self) -> List[Point]:
        return list(map_points(self.transform(), self.local_vertices()))

    def local_outline(self) -> Sequence[Point]:
        return self.local_vertices()

    def area(self) -> float:
        return self.base * self.altitude / 2.0

    def perimeter(self) -> float:
        b, h = self.base, self.altitude
        if self.kind == TriangleKind.EQUILATERAL:
            return 3.0 * b
        if self.kind == TriangleKind.RIGHT:
            return b + h + math.hypot(b, h)
        slant = math.hypot(b / 2.0, h)
        return b + 2.0 * slant

    def side_lengths(self) -> List[float]:
        v = self.local_vertices()
        return [distance(v[i], v[(i + 1) % 3]) for i in range(3)]

    def centroid(self) -> Point:
        return centroid(self.vertices())

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        verts = self.local_vertices()
        surface.add(Polygon(map_points(transform, verts), style=self.fill_style(), role="shape"))

        if self.style.get("show_height"):
            top, foot = self._height_segment(verts)
            (x1, y1), (x2, y2) = map_points(transform, (top, foot))
            surface.add(Line(x1, y1, x2, y2, style={
                "stroke": self.style.get("height_line_color", self.style.get("stroke")),
                "stroke_width": self.style.get("height_line_width", 2),
                "stroke_dasharray": self.style.get("height_line_dash", "5,5"),
            }, role="height-line"))

        marks = self.style.get("show_right_angle", context.options.show_right_angle_marks)
        if self.kind == TriangleKind.RIGHT and marks:
            s = min(RIGHT_ANGLE_MARK, 0.25 * min(abs(self.base), abs(self.altitude)))
            h = self.altitude
            pts = map_points(transform, ((s, h), (s, h - s), (0.0, h - s)))
            surface.add(Path((("M",) + pts[0], ("L",) + pts[1], ("L",) + pts[2]),
                             style={"fill": "none", "stroke": self.style.get("stroke"), "stroke_width": 1},
                             role="right-angle-mark"))

    def _height_segment(self, verts: Sequence[Point]) -> Tuple[Point, Point]:
        if self.kind == TriangleKind.RIGHT:
            # The altitude of a right triangle is its vertical leg.
            return verts[2], verts[0]
        return verts[2], (verts[2][0], verts[0][1])

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()
        v = self.local_vertices()
        inside = centroid(v)
        rounded = self.kind == TriangleKind.EQUILATERAL

        if kind == MeasurementType.BASE:
            return outward_segment(T, v[0], v[1], inside, options.label_or(fmt.length(self.base)))
        if kind == MeasurementType.HEIGHT:
            top, foot = self._height_segment(v)
            label = options.label_or(fmt.length(self.altitude, rounded=rounded))
            if self.kind == TriangleKind.RIGHT:
                return outward_segment(T, top, foot, inside, label)
            return segment(T, top, foot, label)
        if kind == MeasurementType.SIDE1:
            return outward_segment(T, v[0], v[2], inside, options.label_or(fmt.length(distance(v[0], v[2]), rounded=True)))
        if kind == MeasurementType.SIDE2:
            return outward_segment(T, v[1], v[2], inside, options.label_or(fmt.length(distance(v[1], v[2]), rounded=True)))
        if kind == MeasurementType.AREA:
            return label_at(T, inside, options.label_or(fmt.area(self.area(), rounded=rounded)))
        if kind == MeasurementType.PERIMETER:
            return below(self.get_bounds(), PERIMETER_GAP,
                         options.label_or(fmt.perimeter(self.perimeter(), rounded=True)))
        return super().get_measurement_points(kind, options, fmt)


# ---- Circle ----

class Circle(Shape):
    """
    Positioned by its bounding-box corner: the centre sits at local (r, r).
    """

    def __init__(self, radius: float = 50.0, x: float = 0.0, y: float = 0.0):
        super().__init__(x, y)
        self.radius = float(radius)

    def set_radius(self, radius: float) -> "Circle":
        self.radius = float(radius)
        return self

    def show_center(self, show: bool = True, color: Optional[str] = None) -> "Circle":
        self.style["show_center"] = show
        if color:
            self.style["center_color"] = color
        return self

    def diameter(self) -> float:
        return 2.0 * self.radius

    def area(self) -> float:
        return math.pi * self.radius ** 2

    def circumference(self) -> float:
        return 2.0 * math.pi * self.radius

    def local_center(self) -> Point:
        return (self.radius, self.radius)

    def get_center(self) -> Point:
        return self.transform().apply(self.local_center())

    def get_bounds(self) -> Bounds:
        T = self.transform()
        cx, cy = T.apply(self.local_center())
        ex, ey = T.ellipse_extent(self.radius)
        return Bounds.from_extents(cx - ex, cy - ey, cx + ex, cy + ey)

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        r = self.radius
        surface.add(circle_primitive(transform, r, r, r, self.fill_style(), "shape"))
        if self.style.get("show_center"):
            cx, cy = transform.apply((r, r))
            color = self.style.get("center_color", self.style.get("stroke"))
            surface.add(CirclePrimitive(cx, cy, 3.0, style={"fill": color}, role="center-point"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()
        r = self.radius
        c = self.local_center()
        theta = math.radians(options.angle)
        ux, uy = math.cos(theta), math.sin(theta)

        if kind == MeasurementType.RADIUS:
            return segment(T, c, (c[0] + r * ux, c[1] + r * uy), options.label_or(f"r = {fmt.exact(r)}"))
        if kind == MeasurementType.DIAMETER:
            return segment(T, (c[0] - r * ux, c[1] - r * uy), (c[0] + r * ux, c[1] + r * uy),
                           options.label_or(f"d = {fmt.exact(self.diameter())}"))
        if kind == MeasurementType.CIRCUMFERENCE:
            return below(self.get_bounds(), 20.0, options.label_or(f"C = {fmt.rounded(self.circumference())}"))
        if kind == MeasurementType.AREA:
            return label_at(T, c, options.label_or(f"A = {fmt.rounded(self.area())}"))
        return super().get_measurement_points(kind, options, fmt)


# ---- Regular polygon ----

class RegularPolygon(Shape):
    """
    n equal sides inscribed in a circle of `radius` around the local origin,
    first vertex straight up.
    """

    def __init__(self, sides: int = 6, radius: float = 50.0, x: float = 0.0, y: float = 0.0):
        super().__init__(x, y)
        self.sides = 3
        self.radius = float(radius)
        self.set_sides(sides)

    @staticmethod
    def pentagon(radius: float = 50.0, x: float = 0.0, y: float = 0.0) -> "RegularPolygon":
        return RegularPolygon(5, radius, x, y)

    @staticmethod
    def hexagon(radius: float = 50.0, x: float = 0.0, y: float = 0.0) -> "RegularPolygon":
        return RegularPolygon(6, radius, x, y)

    @staticmethod
    def octagon(radius: float = 50.0, x: float = 0.0, y: float = 0.0) -> "RegularPolygon":
        return RegularPolygon(8, radius, x, y)

    def set_sides(self, sides: int) -> "RegularPolygon":
        if sides < 3:
            logger.debug("Clamping polygon side count %s to 3", sides)
        self.sides = max(3, int(sides))
        return self

    def set_radius(self, radius: float) -> "RegularPolygon":
        self.radius = float(radius)
        return self

    def local_vertices(self) -> List[Point]:
        n, r = self.sides, self.radius
        step = 2.0 * math.pi / n
        return [(r * math.cos(-math.pi / 2.0 + i * step), r * math.sin(-math.pi / 2.0 + i * step))
                for i in range(n)]

    def vertices(self) -> List[Point]:
        return list(map_points(self.transform(), self.local_vertices()))

    def local_outline(self) -> Sequence[Point]:
        return self.local_vertices()

    def side_length(self) -> float:
        return 2.0 * self.radius * math.sin(math.pi / self.sides)

    def apothem(self) -> float:
        return self.radius * math.cos(math.pi / self.sides)

    def area(self) -> float:
        n = self.sides
        return n * self.radius ** 2 * math.sin(2.0 * math.pi / n) / 2.0

    def perimeter(self) -> float:
        return self.sides * self.side_length()

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        surface.add(Polygon(map_points(transform, self.local_vertices()), style=self.fill_style(), role="shape"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()
        v = self.local_vertices()
        i = options.side_index % self.sides

        if kind == MeasurementType.SIDE:
            return outward_segment(T, v[i], v[(i + 1) % self.sides], (0.0, 0.0),
                                   options.label_or(fmt.length(self.side_length(), rounded=True)))
        if kind == MeasurementType.RADIUS:
            return segment(T, (0.0, 0.0), v[i], options.label_or(f"r = {fmt.exact(self.radius)}"))
        if kind == MeasurementType.AREA:
            return label_at(T, (0.0, 0.0), options.label_or(fmt.area(self.area(), rounded=True)))
        if kind == MeasurementType.PERIMETER:
            bounds = self.get_bounds()
            label = options.label_or(fmt.perimeter(self.perimeter(), rounded=True))
            return MeasurementPoints.at(bounds.center[0], bounds.max_y + PERIMETER_GAP, label)
        return super().get_measurement_points(kind, options, fmt)
