from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union
import logging

from geometry.vectors import EPSILON, Bounds
from plotting.context import DiagramOptions, MeasurementStyle, RenderContext
from plotting.surface import RenderSurface
from shapes.base import Shape

logger = logging.getLogger(__name__)


class Diagram:
    """
    A canvas of shapes rendered together.

    Shapes are drawn first, then every shape's measurements on top, so
    dimension lines are never hidden by a later fill. The context is kept
    for the diagram's lifetime and issues ids that stay unique across
    repeated renders.
    """

    def __init__(
        self,
        width: float = 400.0,
        height: float = 300.0,
        margin: float = 20.0,
        options: Union[DiagramOptions, Mapping[str, Any], None] = None,
        measurement_style: Union[MeasurementStyle, Mapping[str, Any], None] = None,
    ):
        if not isinstance(options, DiagramOptions):
            options = DiagramOptions.from_mapping(options)
        if not isinstance(measurement_style, MeasurementStyle):
            measurement_style = MeasurementStyle.from_mapping(measurement_style)
        self.margin = float(margin)
        self.context = RenderContext(options=options, measurement_style=measurement_style,
                                     width=float(width), height=float(height))
        self.shapes: List[Shape] = []

    @property
    def width(self) -> float:
        return self.context.width

    @property
    def height(self) -> float:
        return self.context.height

    @property
    def options(self) -> DiagramOptions:
        return self.context.options

    def content_box(self) -> Bounds:
        return Bounds(self.margin, self.margin,
                      max(0.0, self.width - 2 * self.margin), max(0.0, self.height - 2 * self.margin))

    # ---- Shape list ----
    def add(self, shape: Shape) -> "Diagram":
        self.shapes.append(shape)
        return self

    def remove(self, shape: Shape) -> "Diagram":
        for i, s in enumerate(self.shapes):
            if s is shape:
                del self.shapes[i]
                break
        return self

    def clear(self) -> "Diagram":
        self.shapes = []
        return self

    # ---- Layout ----
    def center(self, shape: Shape) -> Shape:
        box = self.content_box()
        cx, cy = box.center
        bx, by = shape.get_bounds().center
        return shape.set_position(shape.x + cx - bx, shape.y + cy - by)

    def bounds(self) -> Optional[Bounds]:
        if not self.shapes:
            return None
        total = self.shapes[0].get_bounds()
        for shape in self.shapes[1:]:
            total = total.union(shape.get_bounds())
        return total

    def fit_to_canvas(self, padding: float = 0.8) -> "Diagram":
        """
        Scale and move every shape so the group fills `padding` of the
        content box, centred. Positions and scales are updated in place.
        """
        total = self.bounds()
        if total is None:
            return self
        if total.width < EPSILON or total.height < EPSILON:
            logger.debug("fit_to_canvas skipped: degenerate bounds %s", total)
            return self
        box = self.content_box()
        k = min(box.width / total.width, box.height / total.height) * padding
        off_x = box.x + (box.width - total.width * k) / 2.0 - total.min_x * k
        off_y = box.y + (box.height - total.height * k) / 2.0 - total.min_y * k
        for shape in self.shapes:
            shape.set_position(shape.x * k + off_x, shape.y * k + off_y)
            shape.scale_xy(shape.scale_x * k, shape.scale_y * k)
        return self

    # ---- Rendering ----
    def render(self, surface: Optional[RenderSurface] = None) -> RenderSurface:
        surface = surface if surface is not None else RenderSurface()
        for shape in self.shapes:
            shape.render(surface, self.context)
        if self.options.show_measurements:
            for shape in self.shapes:
                shape.render_measurements(surface, self.context)
        return surface
