"""World window geometry and the eight labeled boundary half-edges.

Segment ids (world orientation, y grows upward):

    0 top-left      1 top-right
    2 bottom-left   3 bottom-right
    4 left-top      5 left-bottom
    6 right-top     7 right-bottom
"""
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

from slopefield.errors import WindowError

EXIT_TOLERANCE = 1e-9


class Segment(IntEnum):
    TOP_LEFT = 0
    TOP_RIGHT = 1
    BOTTOM_LEFT = 2
    BOTTOM_RIGHT = 3
    LEFT_TOP = 4
    LEFT_BOTTOM = 5
    RIGHT_TOP = 6
    RIGHT_BOTTOM = 7

    @property
    def label(self) -> str:
        return self.name.replace('_', '-').lower()


@dataclass(frozen=True)
class WorldWindow:
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self):
        bounds = (self.x_min, self.x_max, self.y_min, self.y_max)
        if not all(math.isfinite(v) for v in bounds):
            raise WindowError(f"Window bounds must be finite: {bounds}")
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise WindowError(f"Window needs x_min < x_max and y_min < y_max: {bounds}")

    @property
    def x_range(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_range(self) -> float:
        return self.y_max - self.y_min

    @property
    def mid_x(self) -> float:
        return (self.x_min + self.x_max) / 2

    @property
    def mid_y(self) -> float:
        return (self.y_min + self.y_max) / 2

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max

    def clamp(self, x: float, y: float) -> Tuple[float, float]:
        return (min(max(x, self.x_min), self.x_max),
                min(max(y, self.y_min), self.y_max))

    def inset(self, margin: float) -> "WorldWindow":
        """Shrink by ``margin`` (a fraction of each axis range) on every edge."""
        if not 0 <= margin < 0.5:
            raise WindowError(f"Inset margin must be in [0, 0.5): {margin}")
        dx = margin * self.x_range
        dy = margin * self.y_range
        return WorldWindow(self.x_min + dx, self.x_max - dx, self.y_min + dy, self.y_max - dy)


DEFAULT_WINDOW = WorldWindow(-5.0, 5.0, -5.0, 5.0)


def classify_exit(x: float, y: float, window: WorldWindow,
                  tol: float = EXIT_TOLERANCE) -> Optional[Segment]:
    """Segment for a point on the boundary, or None for an interior point.

    Corners belong to the first matching wall in the order top, bottom, left, right.
    """
    if abs(y - window.y_max) <= tol:
        return Segment.TOP_LEFT if x <= window.mid_x else Segment.TOP_RIGHT
    if abs(y - window.y_min) <= tol:
        return Segment.BOTTOM_LEFT if x <= window.mid_x else Segment.BOTTOM_RIGHT
    if abs(x - window.x_min) <= tol:
        return Segment.LEFT_TOP if y >= window.mid_y else Segment.LEFT_BOTTOM
    if abs(x - window.x_max) <= tol:
        return Segment.RIGHT_TOP if y >= window.mid_y else Segment.RIGHT_BOTTOM
    return None


def segment_endpoints(segment: int, window: WorldWindow) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """World-space endpoints of a half-edge, used to highlight targets."""
    w = window
    ends = {
        Segment.TOP_LEFT: ((w.x_min, w.y_max), (w.mid_x, w.y_max)),
        Segment.TOP_RIGHT: ((w.mid_x, w.y_max), (w.x_max, w.y_max)),
        Segment.BOTTOM_LEFT: ((w.x_min, w.y_min), (w.mid_x, w.y_min)),
        Segment.BOTTOM_RIGHT: ((w.mid_x, w.y_min), (w.x_max, w.y_min)),
        Segment.LEFT_TOP: ((w.x_min, w.mid_y), (w.x_min, w.y_max)),
        Segment.LEFT_BOTTOM: ((w.x_min, w.y_min), (w.x_min, w.mid_y)),
        Segment.RIGHT_TOP: ((w.x_max, w.mid_y), (w.x_max, w.y_max)),
        Segment.RIGHT_BOTTOM: ((w.x_max, w.y_min), (w.x_max, w.mid_y)),
    }
    return ends[Segment(segment)]
