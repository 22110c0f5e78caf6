"""Tests for rounds, the game session and frame scheduling."""
import random

import pytest

from slopefield.config import GameConfig
from slopefield.errors import ExpressionError, InputRejected
from slopefield.game import GameSession, ManualScheduler, Outcome, Round, randomize
from slopefield.window import DEFAULT_WINDOW, Segment


def test_randomize_stays_inside_margin():
    rng = random.Random(3)
    for _ in range(200):
        r = randomize(DEFAULT_WINDOW, rng, target_count=2, margin=0.1)
        assert -4.0 <= r.start[0] <= 4.0
        assert -4.0 <= r.start[1] <= 4.0
        assert len(set(r.targets)) == 2
        assert all(isinstance(t, Segment) for t in r.targets)
        assert r.outcome is Outcome.PENDING


def test_randomize_is_seeded():
    a = randomize(DEFAULT_WINDOW, random.Random(11))
    b = randomize(DEFAULT_WINDOW, random.Random(11))
    assert a == b


@pytest.mark.parametrize("targets", [(), (1, 1), (0, 8), (1, 2, 3)])
def test_round_validation(targets):
    with pytest.raises(ValueError):
        Round((0.0, 0.0), targets)


def test_config_validation():
    with pytest.raises(ValueError):
        GameConfig(target_count=3)
    with pytest.raises(ValueError):
        GameConfig(density=0)
    assert GameConfig().step_size(DEFAULT_WINDOW) == pytest.approx(10 / 420)


def test_win(make_session):
    """x - y from the origin exits right-top and top-left."""
    session = make_session("x - y")
    session.set_round((0.0, 0.0), (Segment.TOP_LEFT, Segment.RIGHT_TOP))
    assert session.run_to_end() is Outcome.WIN
    exits = sorted(w.exit_segment for w in session.context.walkers)
    assert exits == [Segment.TOP_LEFT, Segment.RIGHT_TOP]
    assert not session.context.animating


def test_lose(make_session):
    session = make_session("0")
    session.set_round((1.0, 2.0), (1, 2))
    assert session.run_to_end() is Outcome.LOSE
    assert session.current_round.outcome is Outcome.LOSE


def test_single_target(make_session):
    session = make_session("0", target_count=1)
    assert len(session.randomize().targets) == 1
    session.set_round((1.0, 2.0), (6,))
    assert session.run_to_end() is Outcome.WIN
    assert len(session.context.walkers) == 1


def test_tick_budget_is_inconclusive(make_session):
    session = make_session("0", max_ticks=5)
    session.set_round((0.0, 0.0), (4, 6))
    assert session.run_to_end() is Outcome.INCONCLUSIVE
    assert session.context.ticks == 5
    assert session.scheduler.pending is None


def test_listeners_get_every_frame(make_session, scheduler):
    session = make_session("0")
    reports = []
    session.listeners.append(reports.append)
    session.set_round((4.0, 1.0), (6, 4))
    session.go()
    frames = scheduler.drain()
    assert len(reports) == frames == session.context.ticks
    assert [r.finished for r in reports].count(True) == 1
    assert reports[-1].finished and reports[-1].outcome is Outcome.WIN
    assert reports[-1].exits == (Segment.RIGHT_TOP, Segment.LEFT_TOP)


def test_cancel_stops_animation(make_session, scheduler):
    session = make_session("0")
    session.set_round((0.0, 0.0), (4, 6))
    session.go()
    scheduler.run_pending()
    assert session.context.ticks == 1
    session.cancel()
    assert scheduler.pending is None
    assert not session.context.animating
    assert session.context.walkers == ()
    with pytest.raises(RuntimeError):
        session.tick()


def test_go_restarts_cleanly(make_session, scheduler):
    session = make_session("0")
    session.set_round((0.0, 0.0), (4, 6))
    session.go()
    scheduler.drain(max_frames=3)
    session.go()
    assert session.context.ticks == 0
    assert all(w.position == (0.0, 0.0) for w in session.context.walkers)
    assert session.run_to_end() is Outcome.WIN


def test_go_without_round_creates_one(make_session):
    session = make_session("0")
    assert session.current_round is None
    session.go()
    assert session.current_round is not None
    assert len(session.context.walkers) == 2


def test_bad_equation_leaves_state_alone(make_session):
    session = make_session("x")
    before = session.context.slope
    with pytest.raises(InputRejected):
        session.set_equation("x $ 2")
    with pytest.raises(ExpressionError):
        session.set_equation("foo(x)")
    assert session.context.equation == "x"
    assert session.context.slope is before


def test_equation_change_keeps_round(make_session, scheduler):
    session = make_session("0")
    r = session.set_round((1.0, 2.0), (6, 4))
    session.go()
    scheduler.run_pending()
    session.set_equation("x - y")
    assert scheduler.pending is None
    assert not session.context.animating
    assert session.current_round.start == r.start
    assert session.current_round.targets == r.targets
    assert session.current_round.outcome is Outcome.PENDING


def test_set_round_outside_window(make_session):
    with pytest.raises(ValueError):
        make_session().set_round((6.0, 0.0), (1, 2))


def test_reset(make_session):
    session = make_session("0")
    session.set_round((1.0, 1.0), (1, 2))
    r = session.reset()
    assert session.window == DEFAULT_WINDOW
    assert session.current_round is r


def test_render_data(make_session):
    session = make_session("x")
    assert len(session.field()) == 441
    assert session.solution_curve().is_empty
    session.set_round((0.0, 0.0), (1, 2))
    assert not session.solution_curve().is_empty


def test_run_to_end_needs_manual_scheduler():
    class Never:
        def schedule(self, callback):
            pass

        def cancel(self):
            pass

    session = GameSession(scheduler=Never())
    with pytest.raises(RuntimeError):
        session.run_to_end()


def test_manual_scheduler_runs_one_callback():
    sched = ManualScheduler()
    calls = []
    assert not sched.run_pending()
    sched.schedule(lambda: calls.append(1))
    sched.schedule(lambda: calls.append(2))
    assert sched.run_pending()
    assert calls == [2]
