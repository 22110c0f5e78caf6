from dataclasses import dataclass, field

from slopefield.window import DEFAULT_WINDOW, WorldWindow


@dataclass
class GameConfig:
    default_window: WorldWindow = field(default_factory=lambda: DEFAULT_WINDOW)
    density: int = 20            # grid cells per axis for the direction field
    step_divisor: int = 420      # walker step = x_range / step_divisor
    start_margin: float = 0.1    # start point keeps this fraction away from every edge
    target_count: int = 2        # 2 = two walkers (forward + backward), 1 = forward only
    max_ticks: int = 20000       # round gives up as inconclusive after this many ticks
    curve_samples: int = 600
    fallback_steps: int = 800
    frame_ms: int = 16

    def __post_init__(self):
        if self.target_count not in (1, 2):
            raise ValueError("target_count must be 1 or 2")
        if self.density <= 0 or self.step_divisor <= 0 or self.max_ticks <= 0:
            raise ValueError("density, step_divisor and max_ticks must be positive")

    def step_size(self, window: WorldWindow) -> float:
        return window.x_range / self.step_divisor
