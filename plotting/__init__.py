# Context is a leaf and surface depends only on it; renderer/diagram are imported explicitly
# (plotting.renderer pulls in matplotlib, plotting.diagram pulls in shapes).
from .surface import (
    Circle,
    Ellipse,
    GradientStop,
    Line,
    Path,
    Polygon,
    RadialGradient,
    RenderSurface,
    Text,
)
from .context import DiagramOptions, MeasurementStyle, RenderContext
