"""Game rounds: random start point, target segments, walker animation.

All mutable game state lives in one SimulationContext owned by a
GameSession. Animation is driven by a FrameScheduler that calls back once
per frame; cancelling a round is just dropping the pending callback.
"""
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from slopefield.config import GameConfig
from slopefield.expression import SlopeFunction, compile_equation
from slopefield.field import FieldArrow, sample_field
from slopefield.trajectory import Trajectory, integrate
from slopefield.walker import WalkerState, advance, is_win, spawn_walkers
from slopefield.window import Segment, WorldWindow

logger = logging.getLogger(__name__)


class Outcome(Enum):
    PENDING = 'pending'
    WIN = 'win'
    LOSE = 'lose'
    INCONCLUSIVE = 'inconclusive'  # tick budget ran out before every walker exited


@dataclass(frozen=True)
class Round:
    start: Tuple[float, float]
    targets: Tuple[int, ...]
    outcome: Outcome = Outcome.PENDING

    def __post_init__(self):
        if not 1 <= len(self.targets) <= 2:
            raise ValueError(f"A round needs one or two targets, got {self.targets}")
        if len(set(self.targets)) != len(self.targets):
            raise ValueError(f"Targets must be distinct: {self.targets}")
        if not all(0 <= t <= 7 for t in self.targets):
            raise ValueError(f"Targets must be segment ids 0-7: {self.targets}")


def randomize(window: WorldWindow, rng: random.Random, target_count: int = 2,
              margin: float = 0.1) -> Round:
    """Start strictly inside the window, targets drawn without repeats."""
    inner = window.inset(margin)
    start = (rng.uniform(inner.x_min, inner.x_max), rng.uniform(inner.y_min, inner.y_max))
    targets = tuple(Segment(t) for t in rng.sample(range(8), target_count))
    return Round(start, targets)


# ---------------- Frame scheduling ----------------

class FrameScheduler:
    """Calls a callback on the next frame; at most one callback is pending."""

    def schedule(self, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        raise NotImplementedError


class ManualScheduler(FrameScheduler):
    """Frames advance only when the caller says so (tests, headless runs)."""

    def __init__(self):
        self.pending: Optional[Callable[[], None]] = None

    def schedule(self, callback):
        self.pending = callback

    def cancel(self):
        self.pending = None

    def run_pending(self) -> bool:
        callback, self.pending = self.pending, None
        if callback is None:
            return False
        callback()
        return True

    def drain(self, max_frames: Optional[int] = None) -> int:
        frames = 0
        while self.pending is not None and (max_frames is None or frames < max_frames):
            self.run_pending()
            frames += 1
        return frames


# ---------------- Session ----------------

@dataclass
class SimulationContext:
    window: WorldWindow
    equation: str = '0'
    slope: Optional[SlopeFunction] = None
    current_round: Optional[Round] = None
    walkers: Tuple[WalkerState, ...] = ()
    ticks: int = 0
    animating: bool = False


@dataclass(frozen=True)
class TickReport:
    positions: Tuple[Tuple[float, float], ...]
    finished: bool
    outcome: Outcome
    exits: Tuple[Optional[Segment], ...]


class GameSession:
    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None,
                 scheduler: Optional[FrameScheduler] = None, equation: str = '0'):
        self.config = config or GameConfig()
        self.rng = rng or random.Random()
        self.scheduler = scheduler or ManualScheduler()
        self.context = SimulationContext(window=self.config.default_window)
        self.listeners: List[Callable[[TickReport], None]] = []
        self.set_equation(equation)

    @property
    def current_round(self) -> Optional[Round]:
        return self.context.current_round

    @property
    def window(self) -> WorldWindow:
        return self.context.window

    # ----- state changes -----

    def set_equation(self, text: str) -> SlopeFunction:
        """Compile new equation text; the round keeps its start point and targets.

        On InputRejected / ExpressionError the context is left as it was.
        """
        slope = compile_equation(text)
        self.cancel()
        self.context.equation = text
        self.context.slope = slope
        if self.context.current_round is not None:
            self.context.current_round = replace(self.context.current_round, outcome=Outcome.PENDING)
        return slope

    def randomize(self) -> Round:
        self.cancel()
        r = randomize(self.context.window, self.rng, self.config.target_count, self.config.start_margin)
        self.context.current_round = r
        self.context.walkers = ()
        logger.debug("new round: start=(%.3f, %.3f) targets=%s", r.start[0], r.start[1], list(r.targets))
        return r

    def set_round(self, start: Tuple[float, float], targets: Tuple[int, ...]) -> Round:
        """Use a chosen start point and targets instead of random ones."""
        if not self.context.window.contains(*start):
            raise ValueError(f"Start point {start} is outside the window")
        self.cancel()
        r = Round((float(start[0]), float(start[1])), tuple(Segment(t) for t in targets))
        self.context.current_round = r
        self.context.walkers = ()
        return r

    def reset(self) -> Round:
        self.cancel()
        self.context.window = self.config.default_window
        self.context.current_round = None
        return self.randomize()

    def cancel(self) -> None:
        self.scheduler.cancel()
        if self.context.animating:
            logger.debug("round cancelled after %d ticks", self.context.ticks)
        self.context.animating = False
        self.context.walkers = ()
        self.context.ticks = 0

    # ----- animation -----

    def go(self) -> None:
        self.cancel()
        if self.context.current_round is None:
            self.randomize()
        r = replace(self.context.current_round, outcome=Outcome.PENDING)
        self.context.current_round = r
        self.context.walkers = spawn_walkers(r.start, len(r.targets))
        self.context.animating = True
        self.scheduler.schedule(self._frame)

    def _frame(self) -> None:
        report = self.tick()
        for listener in self.listeners:
            listener(report)
        if not report.finished:
            self.scheduler.schedule(self._frame)

    def tick(self) -> TickReport:
        ctx = self.context
        if not ctx.animating:
            raise RuntimeError("No round is animating")
        walkers, finished = advance(ctx.walkers, ctx.slope, ctx.window, self.config.step_size(ctx.window))
        ctx.walkers = walkers
        ctx.ticks += 1
        exits = tuple(w.exit_segment for w in walkers)

        outcome = Outcome.PENDING
        if finished:
            outcome = Outcome.WIN if is_win(exits, ctx.current_round.targets) else Outcome.LOSE
        elif ctx.ticks >= self.config.max_ticks:
            outcome = Outcome.INCONCLUSIVE
            finished = True
        if finished:
            ctx.animating = False
            ctx.current_round = replace(ctx.current_round, outcome=outcome)
            logger.info("round finished after %d ticks: exits=%s targets=%s -> %s",
                        ctx.ticks, [None if e is None else int(e) for e in exits],
                        [int(t) for t in ctx.current_round.targets], outcome.value)
        return TickReport(tuple(w.position for w in walkers), finished, outcome, exits)

    def run_to_end(self) -> Outcome:
        """Start a round and drive every frame synchronously."""
        if not isinstance(self.scheduler, ManualScheduler):
            raise RuntimeError("run_to_end needs a ManualScheduler")
        self.go()
        self.scheduler.drain()
        return self.context.current_round.outcome

    # ----- render data -----

    def field(self) -> List[FieldArrow]:
        return sample_field(self.context.slope, self.context.window, self.config.density)

    def solution_curve(self) -> Trajectory:
        r = self.context.current_round
        if r is None:
            return Trajectory()
        return integrate(self.context.slope, r.start[0], r.start[1], self.context.window,
                         self.config.curve_samples, self.config.fallback_steps)
