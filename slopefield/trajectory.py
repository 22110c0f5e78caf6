"""Solution curve through a point: adaptive RK45 with an RK4 fallback.

The curve is integrated forward to x_max and backward to x_min. The backward
leg is solved as a forward problem in s = x0 - x with the derivative negated.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.integrate import RK45, OdeSolution

from slopefield.expression import evaluate_slope
from slopefield.window import WorldWindow

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

MIN_SOLVER_POINTS = 5
JUMP_FRACTION = 0.25


@dataclass
class Trajectory:
    segments: List[List[Point]] = field(default_factory=list)
    used_fallback: bool = False

    @property
    def points(self) -> List[Point]:
        return [p for seg in self.segments for p in seg]

    @property
    def is_empty(self) -> bool:
        return not any(self.segments)


def _safe(f: Callable[[float, float], float]) -> Callable[[float, float], float]:
    return lambda px, py: evaluate_slope(f, px, py).value


def rk4_step(f: Callable[[float, float], float], px: float, py: float, h: float) -> float:
    """One classical Runge-Kutta step of y' = f(x, y) from (px, py) to px + h."""
    k1 = f(px, py)
    k2 = f(px + h / 2, py + (h / 2) * k1)
    k3 = f(px + h / 2, py + (h / 2) * k2)
    k4 = f(px + h, py + h * k3)
    return py + (h / 6) * (k1 + 2 * k2 + 2 * k3 + k4)


class _NonFinite(ArithmeticError):
    pass


def _dense_solution(f, start: float, end: float, y0: float) -> Optional[OdeSolution]:
    """Dormand-Prince (the solve_ivp default) stepped by hand.

    solve_ivp can spin forever shrinking its step once the derivative turns
    nan, so the derivative raises instead and the steps accepted up to that
    point are kept.
    """
    def rhs(t, yv):
        value = f(t, yv[0])
        if not math.isfinite(value):
            raise _NonFinite(t)
        return [value]

    ts, interpolants = [start], []
    try:
        solver = RK45(rhs, start, [y0], end, rtol=1e-6, atol=1e-9)
        while solver.status == 'running':
            message = solver.step()
            if solver.status == 'failed':
                logger.debug("RK45 failed at %g of [%g, %g]: %s", solver.t, start, end, message)
                break
            ts.append(solver.t)
            interpolants.append(solver.dense_output())
    except _NonFinite as e:
        logger.debug("non-finite slope at %g of [%g, %g]", e.args[0], start, end)
    except Exception as e:
        logger.debug("RK45 raised on [%g, %g]: %s", start, end, e)
    if not interpolants:
        return None
    return OdeSolution(ts, interpolants)


def _solve_leg(f, start: float, end: float, y0: float, samples: int,
               map_x: Optional[Callable[[float], float]] = None) -> List[Point]:
    sol = _dense_solution(f, start, end, y0)
    if sol is None:
        return []

    xs = np.linspace(start, end, samples)
    # dense output extrapolates past the last accepted step; don't trust it
    xs = xs[xs <= sol.t_max]
    if xs.size == 0:
        return []
    with np.errstate(all='ignore'):
        ys = sol(xs)[0]

    seg = []
    for xv, yv in zip(xs, ys):
        xx = map_x(xv) if map_x else float(xv)
        if math.isfinite(xx) and math.isfinite(yv):
            seg.append((float(xx), float(yv)))
    return seg


def _adaptive(f, x0: float, y0: float, window: WorldWindow, samples: int) -> List[Point]:
    points: List[Point] = []
    if window.x_max > x0:
        points.extend(_solve_leg(f, x0, window.x_max, y0, samples))
    if window.x_min < x0:
        backward = _solve_leg(lambda s, yv: -f(x0 - s, yv), 0.0, x0 - window.x_min, y0,
                              samples, map_x=lambda s: x0 - s)
        points[:0] = reversed(backward)
    return points


def _fixed_step(f, x0: float, y0: float, window: WorldWindow, steps: int) -> List[Point]:
    def leg(h):
        out = []
        yv = y0
        for i in range(steps + 1):
            xv = x0 + i * h
            if window.x_min <= xv <= window.x_max:
                out.append((xv, yv))
            yv = rk4_step(f, xv, yv, h)
        return out

    forward = leg((window.x_max - x0) / steps) if window.x_max > x0 else []
    backward = leg(-(x0 - window.x_min) / steps) if window.x_min < x0 else []
    return backward[::-1] + forward


def split_segments(points: List[Point], window: WorldWindow,
                   jump_fraction: float = JUMP_FRACTION) -> List[List[Point]]:
    """Cut the polyline at non-finite or out-of-window points and at large jumps."""
    segments: List[List[Point]] = []
    current: List[Point] = []
    max_dx = jump_fraction * window.x_range
    max_dy = jump_fraction * window.y_range
    for px, py in points:
        if not (math.isfinite(px) and math.isfinite(py)) or not window.contains(px, py):
            if current:
                segments.append(current)
            current = []
            continue
        if current:
            lx, ly = current[-1]
            if abs(px - lx) > max_dx or abs(py - ly) > max_dy:
                segments.append(current)
                current = []
        current.append((px, py))
    if current:
        segments.append(current)
    return segments


def integrate(f: Callable[[float, float], float], x0: float, y0: float, window: WorldWindow,
              samples: int = 600, fallback_steps: int = 800) -> Trajectory:
    safe_f = _safe(f)
    points = _adaptive(safe_f, x0, y0, window, samples)
    used_fallback = False
    if len(points) < MIN_SOLVER_POINTS:
        logger.debug("adaptive solver gave %d points from (%g, %g); using RK4", len(points), x0, y0)
        with np.errstate(all='ignore'):
            points = _fixed_step(safe_f, x0, y0, window, fallback_steps)
        used_fallback = True
    return Trajectory(split_segments(points, window), used_fallback)
