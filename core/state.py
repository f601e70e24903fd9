from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple


BRIGHTNESS_RANGE: Tuple[int, int] = (-255, 255)
CONTRAST_RANGE: Tuple[int, int] = (-255, 255)


def _clamp_int(value: float, lo: int, hi: int) -> int:
    return int(max(lo, min(hi, int(value))))


class Edge(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"

    @property
    def is_vertical(self) -> bool:
        return self in (Edge.LEFT, Edge.RIGHT)


class FlipAxis(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value: "FlipAxis | str") -> "FlipAxis":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class RotateDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: "RotateDirection | str") -> "RotateDirection":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())

    @property
    def clockwise(self) -> bool:
        return self is RotateDirection.RIGHT


@dataclass(frozen=True)
class FilterSettings:
    grayscale: bool = False
    brightness: int = 0
    contrast: int = 0

    def __post_init__(self) -> None:
        # Keep values inside the slider domain; the contrast formula is undefined at 259.
        object.__setattr__(self, "grayscale", bool(self.grayscale))
        object.__setattr__(self, "brightness", _clamp_int(self.brightness, *BRIGHTNESS_RANGE))
        object.__setattr__(self, "contrast", _clamp_int(self.contrast, *CONTRAST_RANGE))

    def with_changes(self, **changes) -> "FilterSettings":
        return replace(self, **changes)

    @property
    def is_identity(self) -> bool:
        return (not self.grayscale) and self.brightness == 0 and self.contrast == 0


@dataclass
class CropRect:
    """Crop rectangle in source-buffer pixel coordinates (floats while dragging)."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    def copy(self) -> "CropRect":
        return CropRect(self.x, self.y, self.width, self.height)
