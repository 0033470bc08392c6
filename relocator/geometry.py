"""Rectangle geometry shared by the spatial strategy and DOM providers."""

import math
from dataclasses import dataclass
from typing import Any, Optional

SIZE_TOLERANCE = 0.3


@dataclass(frozen=True)
class BoundingBox:
    """An axis-aligned rectangle in CSS pixels."""

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

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["BoundingBox"]:
        if not data:
            return None
        return cls(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
        )


def point_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def center_distance(a: BoundingBox, b: BoundingBox) -> float:
    return point_distance(*a.center, *b.center)


def box_distance(a: BoundingBox, b: BoundingBox) -> float:
    """Gap between the nearest edges of two boxes.

    Overlapping or edge-touching boxes are at distance 0.
    """
    dx = 0.0
    if b.right < a.x:
        dx = a.x - b.right
    elif a.right < b.x:
        dx = b.x - a.right

    dy = 0.0
    if b.bottom < a.y:
        dy = a.y - b.bottom
    elif a.bottom < b.y:
        dy = b.y - a.bottom

    if dx == 0 and dy == 0:
        return 0.0
    return math.sqrt(dx * dx + dy * dy)


def sizes_match(a: BoundingBox, b: BoundingBox, tolerance: float = SIZE_TOLERANCE) -> bool:
    """True when both dimensions are within ``tolerance`` of each other."""
    if max(a.width, b.width) <= 0 or max(a.height, b.height) <= 0:
        return False
    width_ratio = min(a.width, b.width) / max(a.width, b.width)
    height_ratio = min(a.height, b.height) / max(a.height, b.height)
    return width_ratio >= 1 - tolerance and height_ratio >= 1 - tolerance
