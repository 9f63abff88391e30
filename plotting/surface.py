from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from plotting.context import RenderContext

Style = Dict[str, Any]
PathCommand = Tuple[Any, ...]


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    style: Style = field(default_factory=dict)
    role: str = ""


@dataclass(frozen=True)
class Polygon:
    points: Tuple[Tuple[float, float], ...]
    style: Style = field(default_factory=dict)
    role: str = ""


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    style: Style = field(default_factory=dict)
    role: str = ""


@dataclass(frozen=True)
class Ellipse:
    cx: float
    cy: float
    rx: float
    ry: float
    rotation: float = 0.0  # degrees
    style: Style = field(default_factory=dict)
    role: str = ""


@dataclass(frozen=True)
class Path:
    """
    SVG-like command list:
      ("M", x, y), ("L", x, y), ("Q", cx, cy, x, y),
      ("A", rx, ry, x_axis_rotation, large_arc, sweep, x, y), ("Z",)
    """
    commands: Tuple[PathCommand, ...]
    style: Style = field(default_factory=dict)
    role: str = ""


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    rotation: float = 0.0  # degrees, about (x, y)
    anchor: str = "middle"
    baseline: str = "middle"
    style: Style = field(default_factory=dict)
    role: str = ""


@dataclass(frozen=True)
class GradientStop:
    offset: float  # 0..1
    color: str
    opacity: float = 1.0


@dataclass(frozen=True)
class RadialGradient:
    id: str
    stops: Tuple[GradientStop, ...]
    cx: float = 0.3
    cy: float = 0.3
    r: float = 0.7


Primitive = Union[Line, Polygon, Circle, Ellipse, Path, Text]
P = TypeVar("P")


class RenderSurface:
    """
    Append-only, ordered collection of vector primitives.

    Shapes write into it; turning it into SVG/PNG/etc. is the caller's job
    (see plotting.renderer for a matplotlib preview).
    """

    def __init__(self) -> None:
        self._primitives: List[Primitive] = []
        self._definitions: List[RadialGradient] = []
        self._context: Optional[RenderContext] = None

    def add(self, primitive: P) -> P:
        self._primitives.append(primitive)  # type: ignore[arg-type]
        return primitive

    def extend(self, primitives: Sequence[Primitive]) -> None:
        for p in primitives:
            self.add(p)

    def default_context(self) -> RenderContext:
        """
        Context used by renders into this surface that pass none, so gradient
        ids stay unique across shapes sharing the surface.
        """
        if self._context is None:
            self._context = RenderContext()
        return self._context

    def define(self, definition: RadialGradient) -> RadialGradient:
        self._definitions.append(definition)
        return definition

    def definition(self, def_id: str) -> Optional[RadialGradient]:
        for d in self._definitions:
            if d.id == def_id:
                return d
        return None

    @property
    def primitives(self) -> Tuple[Primitive, ...]:
        return tuple(self._primitives)

    @property
    def definitions(self) -> Tuple[RadialGradient, ...]:
        return tuple(self._definitions)

    def of_type(self, kind: Type[P]) -> List[P]:
        return [p for p in self._primitives if isinstance(p, kind)]

    def with_role(self, role: str) -> List[Primitive]:
        return [p for p in self._primitives if p.role == role]

    def __len__(self) -> int:
        return len(self._primitives)

    def __iter__(self) -> Iterator[Primitive]:
        return iter(self._primitives)
