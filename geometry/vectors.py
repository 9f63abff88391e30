from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple
import math

import numpy as np
from shapely.geometry import MultiPoint

from .errors import DegenerateGeometryError


Point = Tuple[float, float]

EPSILON = 1e-9


@dataclass(frozen=True)
class Bounds:
    """
    Axis-aligned box in parent coordinates (SVG convention: y grows downward).
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def union(self, other: "Bounds") -> "Bounds":
        x0 = min(self.min_x, other.min_x)
        y0 = min(self.min_y, other.min_y)
        x1 = max(self.max_x, other.max_x)
        y1 = max(self.max_y, other.max_y)
        return Bounds(x0, y0, x1 - x0, y1 - y0)

    @staticmethod
    def from_extents(x0: float, y0: float, x1: float, y1: float) -> "Bounds":
        return Bounds(float(x0), float(y0), float(x1 - x0), float(y1 - y0))


# ---- Scalars ----

def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else hi if value > hi else value


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def normalize_degrees(angle: float) -> float:
    """
    Wrap an angle into (-180, 180].
    """
    wrapped = math.fmod(angle, 360.0)
    if wrapped <= -180.0:
        wrapped += 360.0
    elif wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


# ---- Points and vectors ----

def distance(p: Sequence[float], q: Sequence[float]) -> float:
    return math.hypot(q[0] - p[0], q[1] - p[1])


def angle_between(p: Sequence[float], q: Sequence[float]) -> float:
    """
    Direction of the segment p -> q in radians.
    """
    return math.atan2(q[1] - p[1], q[0] - p[0])


def lerp_point(p: Sequence[float], q: Sequence[float], t: float) -> Point:
    return (lerp(p[0], q[0], t), lerp(p[1], q[1], t))


def unit_vector(p: Sequence[float], q: Sequence[float]) -> Point:
    length = distance(p, q)
    if length < EPSILON:
        raise DegenerateGeometryError(f"zero-length segment at ({p[0]}, {p[1]})")
    return ((q[0] - p[0]) / length, (q[1] - p[1]) / length)


def perpendicular(u: Sequence[float]) -> Point:
    # +90 degrees: (x, y) -> (-y, x)
    return (-u[1], u[0])


def polar(cx: float, cy: float, radius: float, angle_radians: float) -> Point:
    return (cx + radius * math.cos(angle_radians), cy + radius * math.sin(angle_radians))


def reflect_across_line(point: Sequence[float], m: float, b: float) -> Point:
    """
    Mirror a point across the line y = m*x + b.
    """
    x, y = float(point[0]), float(point[1])
    denom = 1.0 + m * m
    rx = ((1.0 - m * m) * x + 2.0 * m * (y - b)) / denom
    ry = ((m * m - 1.0) * y + 2.0 * m * x + 2.0 * b) / denom
    return (rx, ry)


# ---- Polygons ----

def as_points(points: Iterable[Sequence[float]]) -> np.ndarray:
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=float)
    return arr.reshape(-1, 2)


def shoelace_area(points: Iterable[Sequence[float]]) -> float:
    """
    Unsigned polygon area. Winding order and starting vertex do not matter.
    """
    pts = as_points(points)
    if pts.shape[0] < 3:
        return 0.0
    xs, ys = pts[:, 0], pts[:, 1]
    cross = xs * np.roll(ys, -1) - np.roll(xs, -1) * ys
    return float(abs(cross.sum()) / 2.0)


def side_lengths(points: Iterable[Sequence[float]]) -> list[float]:
    pts = as_points(points)
    if pts.shape[0] < 2:
        return []
    diffs = np.roll(pts, -1, axis=0) - pts
    return [float(v) for v in np.linalg.norm(diffs, axis=1)]


def polygon_perimeter(points: Iterable[Sequence[float]]) -> float:
    return float(sum(side_lengths(points)))


def centroid(points: Iterable[Sequence[float]]) -> Point:
    """
    Vertex average (not the area centroid).
    """
    pts = as_points(points)
    if pts.shape[0] == 0:
        return (0.0, 0.0)
    cx, cy = pts.mean(axis=0)
    return (float(cx), float(cy))


def is_convex(points: Iterable[Sequence[float]]) -> bool:
    pts = as_points(points)
    n = pts.shape[0]
    if n < 3:
        return False
    sign = 0
    for i in range(n):
        prev = pts[i - 1]
        cur = pts[i]
        nxt = pts[(i + 1) % n]
        cross = (cur[0] - prev[0]) * (nxt[1] - cur[1]) - (cur[1] - prev[1]) * (nxt[0] - cur[0])
        if abs(cross) < EPSILON:
            continue
        current = 1 if cross > 0 else -1
        if sign == 0:
            sign = current
        elif current != sign:
            return False
    return True


def bounds_of(points: Iterable[Sequence[float]]) -> Bounds:
    pts = as_points(points)
    if pts.shape[0] == 0:
        return Bounds(0.0, 0.0, 0.0, 0.0)
    minx, miny, maxx, maxy = MultiPoint([tuple(p) for p in pts]).bounds
    return Bounds.from_extents(minx, miny, maxx, maxy)
