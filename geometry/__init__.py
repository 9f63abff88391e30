# Re-export core geometry API for convenience
from .errors import GeometryError, DegenerateGeometryError, UnsupportedMeasurementError
from .vectors import (
    EPSILON,
    Bounds,
    Point,
    angle_between,
    bounds_of,
    centroid,
    clamp,
    degrees_to_radians,
    distance,
    is_convex,
    lerp,
    lerp_point,
    normalize_degrees,
    perpendicular,
    polar,
    polygon_perimeter,
    radians_to_degrees,
    reflect_across_line,
    shoelace_area,
    side_lengths,
    unit_vector,
)
from .affine import Affine2D
from .projection import (
    ProjectionConfig,
    ProjectionMode,
    project_point,
    project_points,
    rotate_points3d,
)
