from .types import LabelFormat, MeasurementOptions, MeasurementPoints, MeasurementRequest, MeasurementType
from .engine import (
    DimensionGeometry,
    LabelPlacement,
    MeasurementEngine,
    arc_path_commands,
    arrow_points,
    dimension_geometry,
    label_placement,
)
