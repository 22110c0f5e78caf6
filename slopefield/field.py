"""Direction field sampling over the world window."""
import math
from dataclasses import dataclass
from typing import Callable, List, Tuple

import numpy as np

from slopefield.expression import Slope, SlopeKind, classify_slope
from slopefield.window import WorldWindow

STEEP_SLOPE = 1e6
DEFAULT_DENSITY = 20


@dataclass(frozen=True)
class FieldArrow:
    world_x: float
    world_y: float
    angle: float  # radians, world orientation (y up)

    def components(self, length: float = 1.0) -> Tuple[float, float]:
        return length * math.cos(self.angle), length * math.sin(self.angle)


def arrow_angle(slope: Slope) -> float:
    if slope.kind is SlopeKind.UNDEFINED:
        return math.pi / 2  # unoriented
    if slope.is_vertical or abs(slope.value) > STEEP_SLOPE:
        return math.copysign(math.pi / 2, slope.value)
    return math.atan(slope.value)


def grid_axes(window: WorldWindow, density: int = DEFAULT_DENSITY) -> Tuple[np.ndarray, np.ndarray]:
    """Inclusive lattice with density cells per axis."""
    if density <= 0:
        raise ValueError("density must be positive")
    xs = window.x_min + np.arange(density + 1) * (window.x_range / density)
    ys = window.y_min + np.arange(density + 1) * (window.y_range / density)
    return xs, ys


def sample_field(f: Callable[[float, float], float], window: WorldWindow,
                 density: int = DEFAULT_DENSITY) -> List[FieldArrow]:
    xs, ys = grid_axes(window, density)
    arrows = []
    for gx in xs:
        for gy in ys:
            if not (np.isfinite(gx) and np.isfinite(gy)):
                continue
            try:
                value = float(f(float(gx), float(gy)))
            except Exception:
                # skip cells that error
                continue
            arrows.append(FieldArrow(float(gx), float(gy), arrow_angle(classify_slope(value))))
    return arrows
