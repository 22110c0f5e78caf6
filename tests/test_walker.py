"""Tests for field-following walkers and win detection."""
import math

import pytest

from slopefield.expression import compile_equation
from slopefield.walker import (
    BACKWARD, FORWARD, WalkerState, advance, is_win, spawn_walkers, step, tangent
)
from slopefield.window import DEFAULT_WINDOW, Segment

STEP = DEFAULT_WINDOW.x_range / 420


def run(walkers, f, step_size=STEP, max_ticks=10000):
    for _ in range(max_ticks):
        walkers, done = advance(walkers, f, DEFAULT_WINDOW, step_size)
        if done:
            return walkers
    raise AssertionError("walkers never exited")


def test_spawn():
    fwd, back = spawn_walkers((1.0, 2.0))
    assert (fwd.direction, back.direction) == (FORWARD, BACKWARD)
    assert fwd.position == back.position == (1.0, 2.0)
    assert len(spawn_walkers((0.0, 0.0), count=1)) == 1


@pytest.mark.parametrize("start, exits", [
    ((1.0, 2.0), (Segment.RIGHT_TOP, Segment.LEFT_TOP)),
    ((1.0, -1.5), (Segment.RIGHT_BOTTOM, Segment.LEFT_BOTTOM)),
])
def test_zero_field_runs_horizontally(start, exits):
    walkers = run(spawn_walkers(start), compile_equation("0"))
    assert tuple(w.exit_segment for w in walkers) == exits
    assert walkers[0].position == (5.0, start[1])
    assert walkers[1].position == (-5.0, start[1])


def test_vertical_field():
    walkers = run(spawn_walkers((1.0, 0.0)), lambda px, py: math.inf)
    assert [w.exit_segment for w in walkers] == [Segment.TOP_RIGHT, Segment.BOTTOM_RIGHT]
    assert walkers[0].x == 1.0


def test_step_is_unit_arc_length():
    w = step(WalkerState(0.0, 0.0), lambda px, py: 1.0, DEFAULT_WINDOW, 0.1)
    assert math.hypot(w.x, w.y) == pytest.approx(0.1)
    assert w.x == pytest.approx(w.y)
    assert not w.done


def test_lands_exactly_on_wall():
    w = step(WalkerState(4.99, 0.0), lambda px, py: 0.0, DEFAULT_WINDOW, 0.1)
    assert w.done
    assert w.x == 5.0
    assert w.exit_segment == Segment.RIGHT_TOP


def test_corner_goes_to_top():
    w = step(WalkerState(4.9, 4.9), lambda px, py: 1.0, DEFAULT_WINDOW, 0.5)
    assert w.done
    assert w.exit_segment == Segment.TOP_RIGHT


def test_done_walker_does_not_move():
    w = WalkerState(5.0, 1.0, done=True, exit_segment=Segment.RIGHT_TOP)
    assert step(w, lambda px, py: 1.0, DEFAULT_WINDOW, 0.1) is w


def test_undefined_slope_borrows_from_neighbour():
    """nan on the walker's row: use the slope just above."""
    def f(px, py):
        return math.nan if py == 0.0 else 1.0

    ux, uy = tangent(f, WalkerState(0.0, 0.0), DEFAULT_WINDOW)
    assert (ux, uy) == pytest.approx((math.sqrt(0.5), math.sqrt(0.5)))


def test_undefined_everywhere_goes_flat():
    ux, uy = tangent(lambda px, py: math.nan, WalkerState(0.0, 0.0, BACKWARD), DEFAULT_WINDOW)
    assert (ux, uy) == (-1.0, 0.0)


def test_linear_field_exits():
    """x - y from the origin: y = x - 1 + exp(-x) leaves right-top forward, top-left backward."""
    walkers = run(spawn_walkers((0.0, 0.0)), compile_equation("x - y"))
    assert walkers[0].exit_segment == Segment.RIGHT_TOP
    assert walkers[0].y == pytest.approx(4.0067, abs=0.05)
    assert walkers[1].exit_segment == Segment.TOP_LEFT


def test_is_win_ignores_order():
    assert is_win([Segment.RIGHT_TOP, Segment.TOP_LEFT], (0, 6))
    assert is_win([6], [6])
    assert not is_win([6, 6], [6, 0])
    assert not is_win([6, None], [6, 0])
    assert not is_win([6], [6, 0])
