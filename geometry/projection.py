from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Sequence, Tuple
import logging
import math

import numpy as np

from .vectors import EPSILON, Point

logger = logging.getLogger(__name__)


class ProjectionMode(str, Enum):
    ISOMETRIC = "isometric"
    PERSPECTIVE = "perspective"
    ORTHOGRAPHIC = "orthographic"


@dataclass(frozen=True)
class ProjectionConfig:
    """
    How a solid's local 3D vertices map onto the 2D drawing plane.

    angle/scale drive the isometric mapping, distance the perspective one.
    The orthographic mode is a fixed half-depth skew and ignores all three.
    """
    mode: ProjectionMode = ProjectionMode.ISOMETRIC
    angle: float = 30.0
    scale: float = 0.8
    distance: float = 500.0

    @staticmethod
    def from_mapping(mapping: Mapping[str, Any]) -> "ProjectionConfig":
        known = {f.name for f in fields(ProjectionConfig)}
        kwargs = {}
        for key, value in mapping.items():
            if key not in known:
                logger.debug("Ignoring unknown projection option %r", key)
                continue
            kwargs[key] = value
        mode = kwargs.get("mode", ProjectionMode.ISOMETRIC)
        try:
            kwargs["mode"] = ProjectionMode(mode)
        except ValueError:
            logger.warning("Unknown projection mode %r, falling back to isometric", mode)
            kwargs["mode"] = ProjectionMode.ISOMETRIC
        return ProjectionConfig(**kwargs)

    @property
    def ellipse_ratio(self) -> float:
        """
        Vertical squash applied to horizontal circles (cylinder/cone caps).
        """
        return math.sin(math.radians(self.angle))


def _isometric(x: np.ndarray, y: np.ndarray, z: np.ndarray, cfg: ProjectionConfig) -> Tuple[np.ndarray, np.ndarray]:
    theta = math.radians(cfg.angle)
    px = (x - z) * math.cos(theta) * cfg.scale
    py = ((x + z) * math.sin(theta) - y) * cfg.scale
    return px, py


def _perspective(x: np.ndarray, y: np.ndarray, z: np.ndarray, cfg: ProjectionConfig) -> Tuple[np.ndarray, np.ndarray]:
    d = cfg.distance
    # Points at or behind the viewer would divide by zero or flip sign.
    denom = np.maximum(d + z, EPSILON)
    factor = d / denom
    return x * factor, y * factor


def _orthographic(x: np.ndarray, y: np.ndarray, z: np.ndarray, cfg: ProjectionConfig) -> Tuple[np.ndarray, np.ndarray]:
    return x + 0.5 * z, y - 0.5 * z


_PROJECTORS = {
    ProjectionMode.ISOMETRIC: _isometric,
    ProjectionMode.PERSPECTIVE: _perspective,
    ProjectionMode.ORTHOGRAPHIC: _orthographic,
}


def project_points(points: np.ndarray, cfg: ProjectionConfig) -> np.ndarray:
    """
    Project an (N, 3) array of local points to an (N, 2) array, relative to
    the solid's anchor. Pure: depends only on the inputs.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    px, py = _PROJECTORS[cfg.mode](pts[:, 0], pts[:, 1], pts[:, 2], cfg)
    return np.stack([px, py], axis=1)


def project_point(point: Sequence[float], cfg: ProjectionConfig) -> Point:
    px, py = project_points(np.asarray(point, dtype=float), cfg)[0]
    return (float(px), float(py))


def rotation_matrix3d(rx: float, ry: float, rz: float) -> np.ndarray:
    """
    Rotation about X, then Y, then Z (degrees).
    """
    ax, ay, az = (math.radians(a) for a in (rx, ry, rz))
    cx, sx = math.cos(ax), math.sin(ax)
    cy, sy = math.cos(ay), math.sin(ay)
    cz, sz = math.cos(az), math.sin(az)
    Rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    Ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    Rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return Rz @ Ry @ Rx


def rotate_points3d(points: np.ndarray, rx: float = 0.0, ry: float = 0.0, rz: float = 0.0) -> np.ndarray:
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if rx == 0.0 and ry == 0.0 and rz == 0.0:
        return pts.copy()
    return pts @ rotation_matrix3d(rx, ry, rz).T
