"""Direction fields for y' = f(x, y) and the boundary-exit game built on them."""

from slopefield.config import GameConfig
from slopefield.errors import ExpressionError, InputRejected, SlopeFieldError, WindowError
from slopefield.expression import (
    Slope, SlopeFunction, SlopeKind, classify_slope, compile_equation, compile_slope, evaluate_slope
)
from slopefield.field import FieldArrow, sample_field
from slopefield.game import (
    FrameScheduler, GameSession, ManualScheduler, Outcome, Round, SimulationContext, TickReport, randomize
)
from slopefield.normalize import normalize, validate_characters
from slopefield.trajectory import Trajectory, integrate, rk4_step
from slopefield.walker import WalkerState, advance, is_win, spawn_walkers, step
from slopefield.window import DEFAULT_WINDOW, Segment, WorldWindow, classify_exit, segment_endpoints

__all__ = [
    "GameConfig",
    "SlopeFieldError", "InputRejected", "ExpressionError", "WindowError",
    "Slope", "SlopeKind", "SlopeFunction", "classify_slope", "compile_slope", "compile_equation",
    "evaluate_slope",
    "FieldArrow", "sample_field",
    "FrameScheduler", "ManualScheduler", "GameSession", "Outcome", "Round", "SimulationContext",
    "TickReport", "randomize",
    "normalize", "validate_characters",
    "Trajectory", "integrate", "rk4_step",
    "WalkerState", "advance", "is_win", "spawn_walkers", "step",
    "DEFAULT_WINDOW", "Segment", "WorldWindow", "classify_exit", "segment_endpoints",
]
