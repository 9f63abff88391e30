from __future__ import annotations


class GeometryError(Exception):
    """Base error for the diagram engine."""


class DegenerateGeometryError(GeometryError):
    """
    Geometry that has no meaningful direction or area (coincident endpoints,
    polygons with fewer than three vertices).
    """


class UnsupportedMeasurementError(GeometryError):
    """A measurement tag the shape does not know how to place."""

    def __init__(self, kind: object, shape_name: str | None = None):
        self.kind = kind
        self.shape_name = shape_name
        where = f" for {shape_name}" if shape_name else ""
        super().__init__(f"unsupported measurement type {kind!r}{where}")
