from __future__ import annotations

from typing import List, Tuple
import logging
import math

import numpy as np

from geometry.affine import Affine2D
from geometry.vectors import Bounds
from measurement.types import LabelFormat, MeasurementOptions, MeasurementPoints, MeasurementType
from plotting.context import RenderContext
from plotting.surface import GradientStop, Path, Polygon, RadialGradient, RenderSurface

from .base import circle_primitive, ellipse_primitive, map_points
from .solids import Edge, Face, Solid

logger = logging.getLogger(__name__)

MIN_SEGMENTS = 6


def visible_segments(n: int) -> List[int]:
    """
    Side segments treated as facing the viewer: the quarter-to-three-quarter
    range of the ring. A fixed heuristic for the default isometric view,
    not a visibility test.
    """
    return [i % n for i in range(math.floor(n * 0.25), math.ceil(n * 0.75))]


class RoundSolid(Solid):
    """
    Cylinder and cone share a ring of `segments` points around the y axis.
    """

    def __init__(self, radius: float = 50.0, height: float = 100.0, segments: int = 16,
                 x: float = 0.0, y: float = 0.0, z: float = 0.0):
        super().__init__(x, y, z)
        self.radius = float(radius)
        self.height = float(height)
        self.segments = MIN_SEGMENTS
        self.set_segments(segments)

    def set_dimensions(self, radius: float, height: float) -> "RoundSolid":
        self.radius, self.height = float(radius), float(height)
        return self

    def set_segments(self, segments: int) -> "RoundSolid":
        # Vertices, faces and edges are all derived from this count on demand.
        if segments < MIN_SEGMENTS:
            logger.debug("Clamping segment count %s to %d", segments, MIN_SEGMENTS)
        self.segments = max(MIN_SEGMENTS, int(segments))
        return self

    def ring(self, y: float) -> np.ndarray:
        angles = 2.0 * np.pi * np.arange(self.segments) / self.segments
        return np.stack([self.radius * np.cos(angles), np.full(self.segments, y), self.radius * np.sin(angles)], axis=1)

    def cap(self, surface: RenderSurface, transform: Affine2D, center3d: Tuple[float, float, float],
            fill: str, role: str) -> None:
        cx, cy = self.project_raw(np.array([center3d], dtype=float))[0]
        rx = self.radius * self.projection.scale
        ry = rx * self.projection.ellipse_ratio
        surface.add(ellipse_primitive(transform, float(cx), float(cy), rx, ry, {
            "fill": fill,
            "stroke": self.style["edge_color"],
            "stroke_width": self.style["edge_width"],
        }, role))

    def side_style(self) -> dict:
        return {"fill": self.style["right_face"], "stroke": self.style["edge_color"],
                "stroke_width": self.style["edge_width"]}

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        r, h = self.radius, self.height / 2.0

        if kind == MeasurementType.RADIUS:
            return self.edge_points((0.0, -h, 0.0), (r, -h, 0.0), options.label_or(f"r = {fmt.exact(r)}"))
        if kind == MeasurementType.DIAMETER:
            return self.edge_points((-r, -h, 0.0), (r, -h, 0.0), options.label_or(f"d = {fmt.exact(2.0 * r)}"))
        if kind == MeasurementType.VOLUME:
            return self.label_point((0.0, 0.0, 0.0), options.label_or(fmt.volume(self.volume(), rounded=True)))
        return super().get_measurement_points(kind, options, fmt)

    def volume(self) -> float:
        raise NotImplementedError


class Cylinder(RoundSolid):
    """
    Ring vertices alternate bottom/top; the two cap centres come last.
    """

    def volume(self) -> float:
        return math.pi * self.radius ** 2 * self.height

    def surface_area(self) -> float:
        return 2.0 * math.pi * self.radius * (self.radius + self.height)

    def vertices3d(self) -> np.ndarray:
        h = self.height / 2.0
        bottom, top = self.ring(-h), self.ring(h)
        interleaved = np.empty((2 * self.segments, 3), dtype=float)
        interleaved[0::2] = bottom
        interleaved[1::2] = top
        return np.vstack([interleaved, [[0.0, -h, 0.0], [0.0, h, 0.0]]])

    def faces(self) -> List[Face]:
        n = self.segments
        bottom_center, top_center = 2 * n, 2 * n + 1
        sides = [(2 * i, 2 * ((i + 1) % n), 2 * ((i + 1) % n) + 1, 2 * i + 1) for i in range(n)]
        bottom = [(bottom_center, 2 * i, 2 * ((i + 1) % n)) for i in range(n)]
        top = [(top_center, 2 * ((i + 1) % n) + 1, 2 * i + 1) for i in range(n)]
        return sides + bottom + top

    def edges(self) -> List[Edge]:
        n = self.segments
        bottom = [(2 * i, 2 * ((i + 1) % n)) for i in range(n)]
        top = [(2 * i + 1, 2 * ((i + 1) % n) + 1) for i in range(n)]
        verticals = [(2 * i, 2 * i + 1) for i in range(n)]
        return bottom + top + verticals

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        n = self.segments
        h = self.height / 2.0
        pts = map_points(transform, self.project_raw(self.vertices3d()))

        self.cap(surface, transform, (0.0, -h, 0.0), self.style["front_face"], "bottom-cap")
        for i in visible_segments(n):
            j = (i + 1) % n
            quad = (pts[2 * i], pts[2 * j], pts[2 * j + 1], pts[2 * i + 1])
            surface.add(Polygon(quad, style=self.side_style(), role="side"))
        self.cap(surface, transform, (0.0, h, 0.0), self.style["top_face"], "top-cap")

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        if kind == MeasurementType.HEIGHT:
            r, h = self.radius, self.height / 2.0
            return self.edge_points((-r, -h, 0.0), (-r, h, 0.0), options.label_or(f"h = {fmt.exact(self.height)}"))
        return super().get_measurement_points(kind, options, fmt)


class Cone(RoundSolid):
    """
    Base ring, then the base centre, then the apex.
    """

    def slant_height(self) -> float:
        return math.hypot(self.radius, self.height)

    def volume(self) -> float:
        return math.pi * self.radius ** 2 * self.height / 3.0

    def surface_area(self) -> float:
        return math.pi * self.radius * (self.radius + self.slant_height())

    def vertices3d(self) -> np.ndarray:
        h = self.height / 2.0
        return np.vstack([self.ring(-h), [[0.0, -h, 0.0], [0.0, h, 0.0]]])

    def faces(self) -> List[Face]:
        n = self.segments
        base_center, apex = n, n + 1
        sides = [(i, (i + 1) % n, apex) for i in range(n)]
        base = [(base_center, (i + 1) % n, i) for i in range(n)]
        return sides + base

    def edges(self) -> List[Edge]:
        n = self.segments
        return [(i, (i + 1) % n) for i in range(n)] + [(i, n + 1) for i in range(n)]

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        n = self.segments
        pts = map_points(transform, self.project_raw(self.vertices3d()))
        apex = pts[n + 1]

        self.cap(surface, transform, (0.0, -self.height / 2.0, 0.0), self.style["front_face"], "bottom-cap")
        for i in visible_segments(n):
            surface.add(Polygon((pts[i], pts[(i + 1) % n], apex), style=self.side_style(), role="side"))

        start, end = math.floor(n * 0.25), math.ceil(n * 0.75)
        outline = [("M",) + pts[start % n]] + [("L",) + pts[i % n] for i in range(start + 1, end + 1)]
        surface.add(Path(tuple(outline), style={
            "fill": "none", "stroke": self.style["edge_color"], "stroke_width": self.style["edge_width"],
        }, role="base-outline"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        r, h = self.radius, self.height / 2.0
        if kind == MeasurementType.HEIGHT:
            return self.edge_points((0.0, -h, 0.0), (0.0, h, 0.0), options.label_or(f"h = {fmt.exact(self.height)}"))
        if kind == MeasurementType.SLANT_HEIGHT:
            return self.edge_points((0.0, -h, r), (0.0, h, 0.0),
                                    options.label_or(f"s = {fmt.rounded(self.slant_height())}"))
        return super().get_measurement_points(kind, options, fmt)


class Sphere(Solid):
    """
    Drawn as a gradient-shaded circle with an equator ellipse and a meridian.

    The latitude/longitude mesh is still generated so callers can query
    vertices3d/faces/edges like any other solid, but drawing does not use it.
    """

    def __init__(self, radius: float = 50.0, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        super().__init__(x, y, z)
        self.radius = float(radius)
        self.latitude_segments = 8
        self.longitude_segments = 12

    def set_radius(self, radius: float) -> "Sphere":
        self.radius = float(radius)
        return self

    def set_segments(self, latitude: int, longitude: int) -> "Sphere":
        self.latitude_segments = max(4, int(latitude))
        self.longitude_segments = max(6, int(longitude))
        return self

    def volume(self) -> float:
        return 4.0 / 3.0 * math.pi * self.radius ** 3

    def surface_area(self) -> float:
        return 4.0 * math.pi * self.radius ** 2

    def circumference(self) -> float:
        return 2.0 * math.pi * self.radius

    # ---- Mesh ----
    def vertices3d(self) -> np.ndarray:
        r, lat_n, lon_n = self.radius, self.latitude_segments, self.longitude_segments
        out = [[0.0, r, 0.0]]
        for lat in range(1, lat_n):
            theta = math.pi * lat / lat_n
            ring_r = r * math.sin(theta)
            for lon in range(lon_n):
                phi = 2.0 * math.pi * lon / lon_n
                out.append([ring_r * math.cos(phi), r * math.cos(theta), ring_r * math.sin(phi)])
        out.append([0.0, -r, 0.0])
        return np.array(out, dtype=float)

    def _ring_index(self, lat: int, lon: int) -> int:
        # lat counts rings from 0 (just below the top pole).
        return 1 + lat * self.longitude_segments + lon % self.longitude_segments

    def faces(self) -> List[Face]:
        lat_n, lon_n = self.latitude_segments, self.longitude_segments
        top, bottom = 0, 1 + (lat_n - 1) * lon_n
        faces: List[Face] = [(top, self._ring_index(0, lon + 1), self._ring_index(0, lon)) for lon in range(lon_n)]
        for lat in range(lat_n - 2):
            for lon in range(lon_n):
                faces.append((self._ring_index(lat, lon), self._ring_index(lat, lon + 1),
                              self._ring_index(lat + 1, lon + 1), self._ring_index(lat + 1, lon)))
        last = lat_n - 2
        faces.extend((bottom, self._ring_index(last, lon), self._ring_index(last, lon + 1)) for lon in range(lon_n))
        return faces

    def edges(self) -> List[Edge]:
        lat_n, lon_n = self.latitude_segments, self.longitude_segments
        bottom = 1 + (lat_n - 1) * lon_n
        edges: List[Edge] = []
        for lon in sorted({0, lon_n // 4, lon_n // 2, 3 * lon_n // 4}):
            edges.append((0, self._ring_index(0, lon)))
            for lat in range(lat_n - 2):
                edges.append((self._ring_index(lat, lon), self._ring_index(lat + 1, lon)))
            edges.append((self._ring_index(lat_n - 2, lon), bottom))
        for lat in sorted({1, lat_n // 2}):
            if lat >= lat_n - 1:
                continue
            edges.extend((self._ring_index(lat - 1, lon), self._ring_index(lat - 1, lon + 1)) for lon in range(lon_n))
        return edges

    # ---- Drawing ----
    def projected_radius(self) -> float:
        return self.radius * self.projection.scale

    def get_bounds(self) -> Bounds:
        T = self.transform()
        cx, cy = T.apply((0.0, 0.0))
        ex, ey = T.ellipse_extent(self.projected_radius())
        return Bounds.from_extents(cx - ex, cy - ey, cx + ex, cy + ey)

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        r = self.projected_radius()
        gradient = surface.define(RadialGradient(
            id=context.next_id("sphere-gradient"),
            stops=(
                GradientStop(0.0, "#87CEEB", 0.8),
                GradientStop(0.7, self.style["front_face"], 0.6),
                GradientStop(1.0, self.style["right_face"], 0.9),
            ),
        ))
        surface.add(circle_primitive(transform, 0.0, 0.0, r, {
            "fill": f"url(#{gradient.id})",
            "stroke": self.style["edge_color"],
            "stroke_width": self.style["edge_width"],
        }, "shape"))

        overlay = {"fill": "none", "stroke": self.style["edge_color"], "stroke_width": 1, "opacity": 0.5}
        surface.add(ellipse_primitive(transform, 0.0, 0.0, r, r * 0.3, dict(overlay), "equator"))
        left, top, right, bottom_ = map_points(transform, ((-r, 0.0), (0.0, -r * 0.8), (r, 0.0), (0.0, r * 0.8)))
        surface.add(Path((("M",) + left, ("Q",) + top + right, ("Q",) + bottom_ + left),
                         style=dict(overlay), role="meridian"))

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        T = self.transform()
        r = self.projected_radius()

        if kind == MeasurementType.RADIUS:
            (x1, y1), (x2, y2) = T.apply((0.0, 0.0)), T.apply((r, 0.0))
            return MeasurementPoints(x1, y1, x2, y2, options.label_or(f"r = {fmt.exact(self.radius)}"))
        if kind == MeasurementType.DIAMETER:
            b = self.get_bounds()
            y = b.max_y + 25.0
            return MeasurementPoints(b.min_x, y, b.max_x, y, options.label_or(f"d = {fmt.exact(2.0 * self.radius)}"))
        if kind == MeasurementType.CIRCUMFERENCE:
            b = self.get_bounds()
            return MeasurementPoints.at(b.center[0], b.min_y - 20.0,
                                        options.label_or(f"C = {fmt.rounded(self.circumference())}"))
        if kind == MeasurementType.VOLUME:
            x, y = T.apply((0.0, 0.0))
            return MeasurementPoints.at(x, y, options.label_or(fmt.volume(self.volume(), rounded=True)))
        return super().get_measurement_points(kind, options, fmt)
