from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Tuple, Type, TypeVar
import itertools
import logging

logger = logging.getLogger(__name__)

C = TypeVar("C")


def _from_mapping(cls: Type[C], mapping: Mapping[str, Any] | None) -> C:
    # Recognised keys are passed through; anything else is dropped, not an error.
    if not mapping:
        return cls()
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    kwargs = {}
    for key, value in mapping.items():
        if key in known:
            kwargs[key] = value
        else:
            logger.debug("Ignoring unrecognised %s option %r", cls.__name__, key)
    return cls(**kwargs)


@dataclass(frozen=True)
class DiagramOptions:
    show_measurements: bool = True
    show_right_angle_marks: bool = True
    show_hidden_edges: bool = False
    show_vertex_labels: bool = False
    units: str = "units"
    decimals: int = 1

    @staticmethod
    def from_mapping(mapping: Mapping[str, Any] | None) -> "DiagramOptions":
        return _from_mapping(DiagramOptions, mapping)


@dataclass(frozen=True)
class MeasurementStyle:
    """
    Theme-resolved values for dimension lines and labels.
    """
    line_color: str = "#e74c3c"
    line_width: float = 2.0
    extension_line_color: str = "#e74c3c"
    extension_line_width: float = 1.0
    arrow_color: str = "#e74c3c"
    arrow_size: float = 6.0
    text_color: str = "#e74c3c"
    font_family: str = "Courier New, monospace"
    font_size: float = 14.0
    font_weight: str = "bold"
    label_offset: float = 20.0
    text_background: bool = False
    text_background_color: str = "#ffffff"
    text_background_opacity: float = 0.8

    @staticmethod
    def from_mapping(mapping: Mapping[str, Any] | None) -> "MeasurementStyle":
        return _from_mapping(MeasurementStyle, mapping)


@dataclass
class RenderContext:
    """
    Per-session state passed into render calls.

    Owns the id source for render-time unique names (gradient ids), so
    repeated renders within one session never collide.
    """
    options: DiagramOptions = field(default_factory=DiagramOptions)
    measurement_style: MeasurementStyle = field(default_factory=MeasurementStyle)
    width: float = 400.0
    height: float = 300.0
    _ids: "itertools.count[int]" = field(default_factory=itertools.count, repr=False)

    def next_id(self, prefix: str = "id") -> str:
        return f"{prefix}-{next(self._ids)}"

    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)
