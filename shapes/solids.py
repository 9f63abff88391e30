from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Set, Tuple
import logging
import math

import numpy as np

from geometry.affine import Affine2D
from geometry.projection import ProjectionConfig, ProjectionMode, project_points, rotate_points3d
from geometry.vectors import Bounds, Point, bounds_of
from measurement.types import LabelFormat, MeasurementOptions, MeasurementPoints, MeasurementType
from plotting.context import RenderContext
from plotting.surface import Line, Polygon, RenderSurface

from .base import Shape, outward

logger = logging.getLogger(__name__)

Face = Tuple[int, ...]
Edge = Tuple[int, int]

SOLID_STYLE: Dict[str, Any] = {
    "front_face": "#5dade2",
    "top_face": "#85c1e9",
    "right_face": "#2e86c1",
    "edge_color": "#2980b9",
    "edge_width": 1.5,
    "face_opacity": 0.8,
    "cull_back_faces": False,
    "hidden_edge_dash": "4,4",
    "hidden_edge_opacity": 0.3,
}


class Mesh(Protocol):
    def vertices3d(self) -> np.ndarray: ...

    def faces(self) -> List[Face]: ...

    def edges(self) -> List[Edge]: ...


# ---- Painter's algorithm ----

@dataclass(frozen=True)
class FaceOrder:
    index: int
    front_facing: bool
    depth: float


def face_winding(projected: np.ndarray, face: Sequence[int]) -> float:
    """
    Cross product of the face's first two edge vectors after projection,
    measured with y pointing up so counter-clockwise faces come out positive.
    """
    p0, p1, p2 = projected[face[0]], projected[face[1]], projected[face[2]]
    ux, uy = p1[0] - p0[0], p1[1] - p0[1]
    vx, vy = p2[0] - p0[0], p2[1] - p0[1]
    # Projected coordinates are screen coordinates (y down).
    return -(ux * vy - uy * vx)


def order_faces(depth_vertices: np.ndarray, projected: np.ndarray, faces: Sequence[Face]) -> List[FaceOrder]:
    """
    Faces sorted back to front by the mean z of their vertices. The sort is
    stable, so faces at equal depth keep their declared order.
    """
    z = np.asarray(depth_vertices, dtype=float)[:, 2]
    orders = [
        FaceOrder(index=i, front_facing=face_winding(projected, face) > 0.0, depth=float(z[list(face)].mean()))
        for i, face in enumerate(faces)
    ]
    return sorted(orders, key=lambda o: o.depth)


def hidden_edges(faces: Sequence[Face], edges: Sequence[Edge], order: Sequence[FaceOrder]) -> Set[int]:
    """
    Indices of edges whose adjacent faces all face away from the viewer.
    """
    front = {o.index: o.front_facing for o in order}
    adjacent: Dict[frozenset, List[int]] = {}
    for fi, face in enumerate(faces):
        for k in range(len(face)):
            adjacent.setdefault(frozenset((face[k], face[(k + 1) % len(face)])), []).append(fi)
    hidden = set()
    for ei, (a, b) in enumerate(edges):
        owners = adjacent.get(frozenset((a, b)), [])
        if owners and not any(front[fi] for fi in owners):
            hidden.add(ei)
    return hidden


def paint_mesh(surface: RenderSurface, points: np.ndarray, faces: Sequence[Face], edges: Sequence[Edge],
               order: Sequence[FaceOrder], face_colors: Sequence[str], style: Mapping[str, Any],
               cull_back_faces: bool = False, dashed: Optional[Set[int]] = None) -> None:
    """
    Filled faces in painter's order, then every edge on top. `points` are
    the projected vertices already in parent coordinates.
    """
    for o in order:
        if cull_back_faces and not o.front_facing:
            continue
        face = faces[o.index]
        surface.add(Polygon(
            tuple((float(points[i][0]), float(points[i][1])) for i in face),
            style={
                "fill": face_colors[o.index % len(face_colors)],
                "stroke": style["edge_color"],
                "stroke_width": style["edge_width"],
                "opacity": style["face_opacity"],
            },
            role="face",
        ))
    dashed = dashed or set()
    for ei, (a, b) in enumerate(edges):
        edge_style = {"stroke": style["edge_color"], "stroke_width": style["edge_width"]}
        if ei in dashed:
            edge_style["stroke_dasharray"] = style["hidden_edge_dash"]
            edge_style["opacity"] = style["hidden_edge_opacity"]
        surface.add(Line(float(points[a][0]), float(points[a][1]), float(points[b][0]), float(points[b][1]),
                         style=edge_style, role="hidden-edge" if ei in dashed else "edge"))


# ---- Solid base ----

class Solid(Shape):
    """
    Shared 3D state: depth position, rotation about X/Y/Z and projection.

    Local vertices are rotated, projected, then placed with the 2D transform,
    so the local origin always lands on (x, y). z only matters under
    perspective, where it pushes the solid away from the viewer.
    """

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        super().__init__(x, y)
        self.z = float(z)
        self.rotation3d: Tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.projection = ProjectionConfig()
        self.style.update(SOLID_STYLE)

    def set_position3d(self, x: float, y: float, z: float) -> "Solid":
        self.set_position(x, y)
        self.z = float(z)
        return self

    def set_rotation3d(self, rx: float = 0.0, ry: float = 0.0, rz: float = 0.0) -> "Solid":
        self.rotation3d = (float(rx), float(ry), float(rz))
        return self

    def set_projection(self, mode: ProjectionMode | str = ProjectionMode.ISOMETRIC, **params: Any) -> "Solid":
        self.projection = ProjectionConfig.from_mapping({"mode": mode, **params})
        return self

    # ---- Mesh ----
    def vertices3d(self) -> np.ndarray:
        raise NotImplementedError

    def faces(self) -> List[Face]:
        raise NotImplementedError

    def edges(self) -> List[Edge]:
        raise NotImplementedError

    def face_colors(self) -> List[str]:
        return [self.style["front_face"], self.style["right_face"], self.style["top_face"]]

    # ---- Projection ----
    def rotated(self, points: np.ndarray) -> np.ndarray:
        return rotate_points3d(points, *self.rotation3d)

    def project_raw(self, points: np.ndarray) -> np.ndarray:
        """
        Rotate and project local points; result is relative to the anchor,
        before position, 2D rotation and scale.
        """
        pts = self.rotated(points)
        if self.projection.mode == ProjectionMode.PERSPECTIVE and self.z:
            pts = pts + np.array([0.0, 0.0, self.z])
        return project_points(pts, self.projection)

    def projected_vertices(self) -> np.ndarray:
        return self.transform().apply_many(self.project_raw(self.vertices3d()))

    def project_local(self, x: float, y: float, z: float) -> Point:
        raw = self.project_raw(np.array([[x, y, z]], dtype=float))[0]
        return self.transform().apply(raw)

    def get_bounds(self) -> Bounds:
        return bounds_of(self.projected_vertices())

    def draw(self, surface: RenderSurface, context: RenderContext, transform: Affine2D) -> None:
        vertices = self.vertices3d()
        faces = self.faces()
        edges = self.edges()
        raw = self.project_raw(vertices)
        order = order_faces(self.rotated(vertices), raw, faces)
        dashed = hidden_edges(faces, edges, order) if context.options.show_hidden_edges else None
        paint_mesh(surface, transform.apply_many(raw), faces, edges, order, self.face_colors(), self.style,
                   cull_back_faces=bool(self.style.get("cull_back_faces")), dashed=dashed)

    # ---- Measurement helpers ----
    def edge_points(self, p: Sequence[float], q: Sequence[float], label: str) -> MeasurementPoints:
        """
        Projected span between two local points, ordered to push the
        dimension line away from the projected local origin.
        """
        return outward(self.project_local(*p), self.project_local(*q), self.project_local(0.0, 0.0, 0.0), label)

    def label_point(self, p: Sequence[float], label: str) -> MeasurementPoints:
        x, y = self.project_local(*p)
        return MeasurementPoints.at(x, y, label)


# ---- Polyhedra ----

class RectangularPrism(Solid):

    def __init__(self, width: float = 100.0, height: float = 60.0, depth: float = 80.0,
                 x: float = 0.0, y: float = 0.0, z: float = 0.0):
        super().__init__(x, y, z)
        self.width = float(width)
        self.height = float(height)
        self.depth = float(depth)

    @staticmethod
    def cube(size: float = 100.0, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> "RectangularPrism":
        return RectangularPrism(size, size, size, x, y, z)

    def set_dimensions(self, width: float, height: float, depth: float) -> "RectangularPrism":
        self.width, self.height, self.depth = float(width), float(height), float(depth)
        return self

    def volume(self) -> float:
        return self.width * self.height * self.depth

    def surface_area(self) -> float:
        w, h, d = self.width, self.height, self.depth
        return 2.0 * (w * h + w * d + h * d)

    def vertices3d(self) -> np.ndarray:
        w, h, d = self.width / 2.0, self.height / 2.0, self.depth / 2.0
        return np.array([
            [-w, -h, d], [w, -h, d], [w, h, d], [-w, h, d],      # front
            [-w, -h, -d], [w, -h, -d], [w, h, -d], [-w, h, -d],  # back
        ], dtype=float)

    def faces(self) -> List[Face]:
        return [(0, 1, 2, 3), (5, 4, 7, 6), (4, 0, 3, 7), (1, 5, 6, 2), (3, 2, 6, 7), (4, 5, 1, 0)]

    def edges(self) -> List[Edge]:
        return [(0, 1), (1, 2), (2, 3), (3, 0),
                (4, 5), (5, 6), (6, 7), (7, 4),
                (0, 4), (1, 5), (2, 6), (3, 7)]

    def face_colors(self) -> List[str]:
        s = self.style
        return [s["front_face"], s["front_face"], s["right_face"], s["right_face"], s["top_face"], s["front_face"]]

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        v = self.vertices3d()

        if kind == MeasurementType.WIDTH:
            return self.edge_points(v[0], v[1], options.label_or(fmt.length(self.width)))
        if kind == MeasurementType.HEIGHT:
            return self.edge_points(v[0], v[3], options.label_or(fmt.length(self.height)))
        if kind == MeasurementType.DEPTH:
            return self.edge_points(v[1], v[5], options.label_or(fmt.length(self.depth)))
        if kind == MeasurementType.VOLUME:
            return self.label_point((0.0, 0.0, 0.0), options.label_or(fmt.volume(self.volume())))
        return super().get_measurement_points(kind, options, fmt)


class Pyramid(Solid):
    """
    Square base centred under the apex.
    """

    def __init__(self, base_size: float = 80.0, height: float = 100.0,
                 x: float = 0.0, y: float = 0.0, z: float = 0.0):
        super().__init__(x, y, z)
        self.base_size = float(base_size)
        self.height = float(height)

    def set_dimensions(self, base_size: float, height: float) -> "Pyramid":
        self.base_size, self.height = float(base_size), float(height)
        return self

    def base_area(self) -> float:
        return self.base_size ** 2

    def slant_height(self) -> float:
        return math.hypot(self.height, self.base_size / 2.0)

    def volume(self) -> float:
        return self.base_area() * self.height / 3.0

    def surface_area(self) -> float:
        return self.base_area() + 4.0 * 0.5 * self.base_size * self.slant_height()

    def vertices3d(self) -> np.ndarray:
        b, h = self.base_size / 2.0, self.height / 2.0
        return np.array([
            [-b, -h, -b], [b, -h, -b], [b, -h, b], [-b, -h, b],
            [0.0, h, 0.0],
        ], dtype=float)

    def faces(self) -> List[Face]:
        return [(0, 1, 2, 3), (0, 4, 1), (1, 4, 2), (2, 4, 3), (3, 4, 0)]

    def edges(self) -> List[Edge]:
        return [(0, 1), (1, 2), (2, 3), (3, 0), (0, 4), (1, 4), (2, 4), (3, 4)]

    def face_colors(self) -> List[str]:
        s = self.style
        return [s["front_face"], s["right_face"], s["right_face"], s["top_face"], s["right_face"]]

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        v = self.vertices3d()
        h = self.height / 2.0
        base_center = (0.0, -h, 0.0)

        if kind == MeasurementType.BASE:
            return self.edge_points(v[3], v[2], options.label_or(fmt.length(self.base_size)))
        if kind == MeasurementType.HEIGHT:
            return self.edge_points(base_center, v[4], options.label_or(f"h = {fmt.exact(self.height)}"))
        if kind == MeasurementType.SLANT_HEIGHT:
            return self.edge_points((0.0, -h, self.base_size / 2.0), v[4],
                                    options.label_or(f"s = {fmt.rounded(self.slant_height())}"))
        if kind == MeasurementType.BASE_AREA:
            return self.label_point(base_center, options.label_or(f"A = {fmt.exact(self.base_area())}"))
        if kind == MeasurementType.VOLUME:
            return self.label_point((0.0, -h / 2.0, 0.0), options.label_or(fmt.volume(self.volume(), rounded=True)))
        return super().get_measurement_points(kind, options, fmt)


class TriangularPyramid(Solid):
    """
    Regular tetrahedron with edge length `size`.
    """

    def __init__(self, size: float = 80.0, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        super().__init__(x, y, z)
        self.size = float(size)

    @property
    def height(self) -> float:
        return self.size * math.sqrt(2.0 / 3.0)

    def volume(self) -> float:
        return self.size ** 3 / (6.0 * math.sqrt(2.0))

    def surface_area(self) -> float:
        return 4.0 * (math.sqrt(3.0) / 4.0) * self.size ** 2

    def vertices3d(self) -> np.ndarray:
        h = self.height / 2.0
        r = self.size / math.sqrt(3.0)
        return np.array([
            [0.0, -h, r],
            [-r * math.sqrt(3.0) / 2.0, -h, -r / 2.0],
            [r * math.sqrt(3.0) / 2.0, -h, -r / 2.0],
            [0.0, h, 0.0],
        ], dtype=float)

    def faces(self) -> List[Face]:
        return [(0, 2, 1), (0, 1, 3), (1, 2, 3), (2, 0, 3)]

    def edges(self) -> List[Edge]:
        return [(0, 1), (1, 2), (2, 0), (0, 3), (1, 3), (2, 3)]

    def get_measurement_points(self, kind, options=None, fmt=None) -> MeasurementPoints:
        options = options or MeasurementOptions()
        fmt = fmt or LabelFormat()
        v = self.vertices3d()
        h = self.height / 2.0

        if kind == MeasurementType.BASE:
            return self.edge_points(v[2], v[0], options.label_or(fmt.length(self.size)))
        if kind == MeasurementType.HEIGHT:
            return self.edge_points((0.0, -h, 0.0), v[3], options.label_or(f"h = {fmt.rounded(self.height)}"))
        if kind == MeasurementType.VOLUME:
            return self.label_point((0.0, -h / 2.0, 0.0), options.label_or(fmt.volume(self.volume(), rounded=True)))
        return super().get_measurement_points(kind, options, fmt)
