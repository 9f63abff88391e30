# Re-export the shape families for convenience
from .base import DEFAULT_STYLE, Shape
from .planar import Circle, Rectangle, RegularPolygon, Triangle, TriangleKind
from .polygons import (
    CompositeOperation,
    CompositeShape,
    IrregularPolygon,
    convex_vertices,
    random_vertices,
    star_vertices,
)
from .circular import Arc, Chord, CirclePart, Sector, Tangent
from .solids import (
    SOLID_STYLE,
    FaceOrder,
    Mesh,
    Pyramid,
    RectangularPrism,
    Solid,
    TriangularPyramid,
    order_faces,
    paint_mesh,
)
from .curved import Cone, Cylinder, RoundSolid, Sphere
from .transforms import (
    CompositeTransformation,
    Dilation,
    Reflection,
    ReflectionAxis,
    Rotation,
    Translation,
    apply_transformation,
)
