from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union
import logging
import math

from geometry.errors import UnsupportedMeasurementError

logger = logging.getLogger(__name__)


class MeasurementType(str, Enum):
    WIDTH = "width"
    HEIGHT = "height"
    DEPTH = "depth"
    BASE = "base"
    DIAGONAL = "diagonal"
    AREA = "area"
    PERIMETER = "perimeter"
    RADIUS = "radius"
    DIAMETER = "diameter"
    CIRCUMFERENCE = "circumference"
    SIDE = "side"
    SIDE1 = "side1"
    SIDE2 = "side2"
    ARC_LENGTH = "arc-length"
    CENTRAL_ANGLE = "central-angle"
    SECTOR_AREA = "sector-area"
    CHORD_LENGTH = "chord-length"
    SLANT_HEIGHT = "slant-height"
    BASE_AREA = "base-area"
    VOLUME = "volume"

    @staticmethod
    def parse(value: Union[str, "MeasurementType"]) -> "MeasurementType":
        if isinstance(value, MeasurementType):
            return value
        try:
            return MeasurementType(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            raise UnsupportedMeasurementError(value) from None


@dataclass(frozen=True)
class MeasurementOptions:
    """
    Per-request placement options.

    offset is the perpendicular distance of the dimension line from the
    measured segment; its sign picks the side. angle is in degrees and only
    used by radius/diameter requests.
    """
    offset: float = 25.0
    side: str = "auto"
    label: Optional[str] = None
    angle: float = 0.0
    side_index: int = 0
    label_offset: Optional[float] = None

    @staticmethod
    def from_mapping(mapping: Mapping[str, Any] | None) -> "MeasurementOptions":
        if not mapping:
            return MeasurementOptions()
        known = {f.name for f in fields(MeasurementOptions)}
        kwargs = {}
        for key, value in mapping.items():
            if key not in known:
                logger.debug("Ignoring unknown measurement option %r", key)
                continue
            if value is None and key not in ("label", "label_offset"):
                continue
            kwargs[key] = value
        return MeasurementOptions(**kwargs)

    def label_or(self, default: str) -> str:
        return self.label if self.label else default


@dataclass(frozen=True)
class MeasurementRequest:
    """
    A type tag plus options. `kind` keeps whatever the caller passed so an
    unknown tag can be reported at render time instead of at creation.
    """
    kind: Union[MeasurementType, str]
    options: MeasurementOptions = field(default_factory=MeasurementOptions)

    @staticmethod
    def create(kind: Union[MeasurementType, str], **options: Any) -> "MeasurementRequest":
        try:
            parsed: Union[MeasurementType, str] = MeasurementType.parse(kind)
        except UnsupportedMeasurementError:
            parsed = kind
        return MeasurementRequest(kind=parsed, options=MeasurementOptions.from_mapping(options))

    def with_options(self, **changes: Any) -> "MeasurementRequest":
        return replace(self, options=replace(self.options, **changes))


@dataclass(frozen=True)
class LabelFormat:
    """
    Default label wording. Given dimensions print as entered, derived
    values (diagonals, areas of circles, ...) are rounded to `decimals`.
    """
    units: str = "units"
    decimals: int = 1

    def exact(self, value: float) -> str:
        return f"{value:g}"

    def rounded(self, value: float) -> str:
        return f"{value:.{self.decimals}f}"

    def length(self, value: float, rounded: bool = False) -> str:
        text = self.rounded(value) if rounded else self.exact(value)
        return f"{text} {self.units}" if self.units else text

    def area(self, value: float, rounded: bool = False) -> str:
        text = self.rounded(value) if rounded else self.exact(value)
        return f"Area: {text} sq {self.units}" if self.units else f"Area: {text}"

    def perimeter(self, value: float, rounded: bool = False) -> str:
        text = self.rounded(value) if rounded else self.exact(value)
        return f"Perimeter: {text} {self.units}" if self.units else f"Perimeter: {text}"

    def volume(self, value: float, rounded: bool = False) -> str:
        text = self.rounded(value) if rounded else self.exact(value)
        return f"V = {text} cubic {self.units}" if self.units else f"V = {text}"


@dataclass(frozen=True)
class MeasurementPoints:
    """
    Resolved endpoints in parent coordinates. label_only requests (area,
    volume, ...) place just the text at (x1, y1). Angle requests carry a
    sweep in radians: (x1, y1) is the vertex and the arc passes through
    (x2, y2).
    """
    x1: float
    y1: float
    x2: float
    y2: float
    label: str
    label_only: bool = False
    offset: Optional[float] = None
    sweep: Optional[Tuple[float, float]] = None

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    @property
    def direction(self) -> float:
        return math.atan2(self.y2 - self.y1, self.x2 - self.x1)

    @staticmethod
    def at(x: float, y: float, label: str) -> "MeasurementPoints":
        return MeasurementPoints(x, y, x, y, label, label_only=True)

    @staticmethod
    def angle(cx: float, cy: float, radius: float, start: float, end: float,
              label: str) -> "MeasurementPoints":
        return MeasurementPoints(cx, cy, cx + radius * math.cos(start), cy + radius * math.sin(start),
                                 label, sweep=(start, end))
