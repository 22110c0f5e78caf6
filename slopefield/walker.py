"""Frame-stepped walkers that follow the field until they leave the window.

Each tick moves a walker a fixed arc length along the unit field direction.
A walker that would cross a wall within the step lands exactly on it and is
done; its exit is then classified into one of the eight boundary segments.
"""
import math
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple

from slopefield.expression import evaluate_slope
from slopefield.window import Segment, WorldWindow, classify_exit

FORWARD = 1
BACKWARD = -1


@dataclass(frozen=True)
class WalkerState:
    x: float
    y: float
    direction: int = FORWARD
    done: bool = False
    exit_segment: Optional[Segment] = None

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y


def spawn_walkers(start: Tuple[float, float], count: int = 2) -> Tuple[WalkerState, ...]:
    """Forward walker, plus a backward one when two targets are in play."""
    directions = (FORWARD, BACKWARD)[:count]
    return tuple(WalkerState(start[0], start[1], d) for d in directions)


def tangent(f: Callable[[float, float], float], state: WalkerState,
            window: WorldWindow) -> Tuple[float, float]:
    """Unit vector along the field at the walker, oriented by its direction."""
    d = state.direction
    slope = evaluate_slope(f, state.x, state.y)
    if slope.is_finite:
        vx, vy = d, d * slope.value
    elif slope.is_vertical:
        vx, vy = 0.0, d * slope.sign
    else:
        # undefined here: borrow the slope just above, then just below
        eps = max(window.y_range * 1e-6, 1e-6)
        above = evaluate_slope(f, state.x, state.y + eps)
        below = evaluate_slope(f, state.x, state.y - eps)
        if above.is_finite:
            s = above.value
        elif below.is_finite:
            s = below.value
        else:
            s = 0.0
        vx, vy = d, d * s
    length = math.hypot(vx, vy) or 1.0
    return vx / length, vy / length


def _wall_hit(px: float, py: float, ux: float, uy: float,
              window: WorldWindow, limit: float) -> Tuple[float, Optional[str]]:
    t_hit, wall = limit + 1, None
    candidates = []
    if ux > 0:
        candidates.append(((window.x_max - px) / ux, 'right'))
    if ux < 0:
        candidates.append(((window.x_min - px) / ux, 'left'))
    if uy > 0:
        candidates.append(((window.y_max - py) / uy, 'top'))
    if uy < 0:
        candidates.append(((window.y_min - py) / uy, 'bottom'))
    for t, name in candidates:
        if t < t_hit:
            t_hit, wall = t, name
    return t_hit, wall


def step(state: WalkerState, f: Callable[[float, float], float],
         window: WorldWindow, step_size: float) -> WalkerState:
    if state.done:
        return state
    ux, uy = tangent(f, state, window)
    t_hit, wall = _wall_hit(state.x, state.y, ux, uy, window, step_size)

    done = 0 <= t_hit <= step_size
    t = t_hit if done else step_size
    nx, ny = state.x + ux * t, state.y + uy * t
    if done:
        if wall == 'right':
            nx = window.x_max
        elif wall == 'left':
            nx = window.x_min
        elif wall == 'top':
            ny = window.y_max
        else:
            ny = window.y_min

    nx, ny = window.clamp(nx, ny)
    if not done:
        return replace(state, x=nx, y=ny)
    return replace(state, x=nx, y=ny, done=True, exit_segment=classify_exit(nx, ny, window))


def advance(walkers: Sequence[WalkerState], f: Callable[[float, float], float],
            window: WorldWindow, step_size: float) -> Tuple[Tuple[WalkerState, ...], bool]:
    """One tick for every walker; True once all of them have exited."""
    moved = tuple(step(w, f, window, step_size) for w in walkers)
    return moved, all(w.done for w in moved)


def is_win(exits: Sequence[Optional[int]], targets: Sequence[int]) -> bool:
    """Exits match targets as multisets, so walker order never matters."""
    if len(exits) != len(targets) or any(e is None for e in exits):
        return False
    return sorted(int(e) for e in exits) == sorted(int(t) for t in targets)
