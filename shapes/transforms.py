"""
Rigid motions and dilations applied to whole shapes.

Every operation returns a transformed copy. The copy's own placement
(position, rotation, scale) is rewritten so that its local->parent transform
equals the motion composed with the previous one; reflections therefore
mirror the shape itself, not just its anchor point.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, TypeVar, Union
import math

from geometry.vectors import normalize_degrees, reflect_across_line

from .base import Shape

S = TypeVar("S", bound=Shape)


class ReflectionAxis(str, Enum):
    X_AXIS = "x-axis"
    Y_AXIS = "y-axis"
    LINE = "line"
    POINT = "point"


@dataclass(frozen=True)
class Translation:
    dx: float
    dy: float


@dataclass(frozen=True)
class Rotation:
    angle: float  # degrees
    center_x: float = 0.0
    center_y: float = 0.0


@dataclass(frozen=True)
class Reflection:
    """
    LINE uses y = m*x + b; POINT uses (center_x, center_y).
    """
    axis: ReflectionAxis
    m: float = 0.0
    b: float = 0.0
    center_x: float = 0.0
    center_y: float = 0.0


@dataclass(frozen=True)
class Dilation:
    factor: float
    center_x: float = 0.0
    center_y: float = 0.0


@dataclass(frozen=True)
class CompositeTransformation:
    steps: Tuple["Transformation", ...] = field(default_factory=tuple)


Transformation = Union[Translation, Rotation, Reflection, Dilation, CompositeTransformation]


def apply_transformation(shape: S, transformation: Transformation) -> S:
    """
    Return a transformed copy of `shape`; the input is left untouched.
    """
    result = shape.copy()
    _apply_in_place(result, transformation)
    return result


def _apply_in_place(shape: Shape, t: Transformation) -> None:
    if isinstance(t, Translation):
        shape.set_position(shape.x + t.dx, shape.y + t.dy)
    elif isinstance(t, Rotation):
        theta = math.radians(t.angle)
        c, s = math.cos(theta), math.sin(theta)
        rx, ry = shape.x - t.center_x, shape.y - t.center_y
        shape.set_position(t.center_x + rx * c - ry * s, t.center_y + rx * s + ry * c)
        shape.rotate(normalize_degrees(shape.rotation + t.angle))
    elif isinstance(t, Reflection):
        _reflect(shape, t)
    elif isinstance(t, Dilation):
        shape.set_position(t.center_x + t.factor * (shape.x - t.center_x),
                           t.center_y + t.factor * (shape.y - t.center_y))
        shape.scale_xy(shape.scale_x * t.factor, shape.scale_y * t.factor)
    elif isinstance(t, CompositeTransformation):
        for step in t.steps:
            _apply_in_place(shape, step)
    else:
        raise TypeError(f"Unsupported transformation: {type(t).__name__}")


def _reflect(shape: Shape, t: Reflection) -> None:
    axis = ReflectionAxis(t.axis)
    if axis == ReflectionAxis.POINT:
        shape.set_position(2.0 * t.center_x - shape.x, 2.0 * t.center_y - shape.y)
        shape.rotate(normalize_degrees(shape.rotation + 180.0))
        return

    if axis == ReflectionAxis.X_AXIS:
        line_angle = 0.0
        x, y = shape.x, -shape.y
    elif axis == ReflectionAxis.Y_AXIS:
        line_angle = 90.0
        x, y = -shape.x, shape.y
    else:
        line_angle = math.degrees(math.atan(t.m))
        x, y = reflect_across_line((shape.x, shape.y), t.m, t.b)

    # Mirror across a line at angle a: R(a) diag(1, -1) R(-a) R(r) = R(2a - r) diag(1, -1)
    shape.set_position(x, y)
    shape.rotate(normalize_degrees(2.0 * line_angle - shape.rotation))
    shape.scale_xy(shape.scale_x, -shape.scale_y)
