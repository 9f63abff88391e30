from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence
import math

import numpy as np

from .vectors import Bounds, Point, as_points, bounds_of


@dataclass(frozen=True)
class Affine2D:
    """
    Plane map p -> A p + t used to place shape-local geometry in its parent.

    Shapes build one per render from position, rotation and scale; composites
    chain their own on top with `then`.
    """
    A: np.ndarray  # (2, 2) linear part
    t: np.ndarray  # (2,) offset

    def __post_init__(self):
        A = np.asarray(self.A, dtype=float)
        t = np.asarray(self.t, dtype=float)
        if A.shape != (2, 2) or t.shape != (2,):
            raise ValueError(f"Affine2D needs a 2x2 matrix and a 2-vector, got {A.shape} and {t.shape}")
        object.__setattr__(self, "A", A)
        object.__setattr__(self, "t", t)

    # ---- Mapping points ----
    def apply(self, point_xy: Sequence[float]) -> Point:
        x, y = self.A @ np.asarray(point_xy, dtype=float) + self.t
        return (float(x), float(y))

    def apply_many(self, points: Iterable[Sequence[float]]) -> np.ndarray:
        pts = as_points(points)
        if len(pts) == 0:
            return pts
        return pts @ self.A.T + self.t

    def inverse_apply(self, point_xy: Sequence[float]) -> Point:
        x, y = np.linalg.solve(self.A, np.asarray(point_xy, dtype=float) - self.t)
        return (float(x), float(y))

    def bounds_of(self, points: Iterable[Sequence[float]]) -> Bounds:
        return bounds_of(self.apply_many(points))

    def ellipse_extent(self, radius: float) -> tuple[float, float]:
        # Half-extents of the mapped circle: r times the norm of each row of A.
        return (radius * float(np.hypot(*self.A[0])), radius * float(np.hypot(*self.A[1])))

    @property
    def rotation_degrees(self) -> float:
        return math.degrees(math.atan2(self.A[1, 0], self.A[0, 0]))

    # ---- Builders ----
    @staticmethod
    def identity() -> "Affine2D":
        return Affine2D.from_translate(0.0, 0.0)

    @staticmethod
    def from_translate(dx: float, dy: float) -> "Affine2D":
        return Affine2D(A=np.eye(2), t=np.array([dx, dy]))

    @staticmethod
    def from_scale(sx: float, sy: float | None = None) -> "Affine2D":
        return Affine2D(A=np.diag([sx, sx if sy is None else sy]), t=np.zeros(2))

    @staticmethod
    def from_rotation(theta_radians: float) -> "Affine2D":
        c, s = math.cos(theta_radians), math.sin(theta_radians)
        return Affine2D(A=np.array([[c, -s], [s, c]]), t=np.zeros(2))

    @staticmethod
    def from_components(x: float, y: float, rotation_degrees: float = 0.0,
                        sx: float = 1.0, sy: float = 1.0) -> "Affine2D":
        """
        Same order as an SVG `translate(x, y) rotate(r) scale(sx, sy)` attribute:
        scale first, then rotate, then translate.
        """
        return (Affine2D.from_scale(sx, sy)
                .then(Affine2D.from_rotation(math.radians(rotation_degrees)))
                .then(Affine2D.from_translate(x, y)))

    def then(self, after: "Affine2D") -> "Affine2D":
        """
        Apply self first, then `after`.
        """
        return Affine2D(A=after.A @ self.A, t=after.A @ self.t + after.t)
