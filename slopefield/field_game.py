#!/usr/bin/env python3
"""
Slope Field Game: 'field_game.py'

Run:
  slopefield-game [--equation "x - y"] [--single-target] [--seed N] [--density N] [-v]
  python -m slopefield.field_game

Type a right-hand side f(x, y) for y' = f(x, y) and press Enter. The direction
field is redrawn over the window [-5, 5] x [-5, 5]. A red dot marks a random
start point and one or two half-edges of the window are highlighted.
Go releases a walker forward along the field (and a second one backward, in
two-target mode); you win when the walkers leave the window exactly through
the highlighted half-edges.

Input accepts implicit multiplication and a few shorthands:
  2x, xy, 3(x+1), sin x, ln(x), log_2(x), log(x) = log base 10, x^2

Controls (focus the plot window, not the text box):
  Go: G/Enter | New round: N | Reset window: R | Solution curve: C
  Grid: Shift+G | Help: H/? | Save PNG: S | Quit: Esc/Ctrl+W
"""
import argparse
import logging
import random
import time
from typing import List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.mathtext import MathTextParser
from matplotlib.widgets import Button, TextBox

from slopefield.config import GameConfig
from slopefield.errors import USER_MESSAGE, SlopeFieldError
from slopefield.game import FrameScheduler, GameSession, Outcome, TickReport
from slopefield.window import Segment, segment_endpoints

logger = logging.getLogger(__name__)

ARROW_LENGTH = 0.4  # world units in the default window
_MATHTEXT = MathTextParser("path")


class TimerScheduler(FrameScheduler):
    """One-shot matplotlib canvas timer, re-armed for every frame."""

    def __init__(self, canvas, interval_ms: int = 16):
        self._timer = canvas.new_timer(interval=interval_ms)
        self._timer.single_shot = True
        self._timer.add_callback(self._fire)
        self._callback = None

    def schedule(self, callback):
        self._callback = callback
        self._timer.start()

    def cancel(self):
        self._callback = None
        self._timer.stop()

    def _fire(self):
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class FieldGameApp:
    def __init__(self, config: Optional[GameConfig] = None, equation: str = 'x - y',
                 seed: Optional[int] = None, scheduler: Optional[FrameScheduler] = None):
        self.config = config or GameConfig()
        self.fig, self.ax = plt.subplots(figsize=(8.4, 7.2))
        try:
            self.fig.canvas.manager.set_window_title("Slope Field Game")
        except Exception:
            pass
        plt.subplots_adjust(left=0.08, right=0.78, bottom=0.16, top=0.90)

        if scheduler is None:
            scheduler = TimerScheduler(self.fig.canvas, self.config.frame_ms)
        self.session = GameSession(self.config, random.Random(seed), scheduler, equation=equation)
        self.session.listeners.append(self._on_tick)
        self.session.randomize()

        # state toggles
        self.grid_on = True
        self.show_help = False
        self.show_curve = False
        self.message = ""

        # walker trails, one per walker
        self.trails: List[List[Tuple[float, float]]] = []
        self.trail_lines = []
        self.walker_dots = None

        self._build_widgets()
        self.cid_key = self.fig.canvas.mpl_connect('key_press_event', self._on_key)
        self._plot_all()

    # ----- UI -----

    def _build_widgets(self):
        self.tb_eq = TextBox(plt.axes([0.16, 0.04, 0.46, 0.05]), "y' = ",
                             initial=self.session.context.equation)
        self.tb_eq.on_submit(self._on_submit)

        self.btn_go    = Button(plt.axes([0.81, 0.80, 0.16, 0.055]), 'Go (G)')
        self.btn_new   = Button(plt.axes([0.81, 0.73, 0.16, 0.055]), 'New round (N)')
        self.btn_reset = Button(plt.axes([0.81, 0.66, 0.16, 0.055]), 'Reset (R)')
        self.btn_curve = Button(plt.axes([0.81, 0.59, 0.16, 0.055]), 'Curve (C)')
        self.btn_help  = Button(plt.axes([0.81, 0.52, 0.16, 0.055]), 'Help (H/?)')
        self.btn_save  = Button(plt.axes([0.81, 0.45, 0.16, 0.055]), 'Save PNG (S)')

        self.btn_go.on_clicked(lambda e: self._go())
        self.btn_new.on_clicked(lambda e: self._new_round())
        self.btn_reset.on_clicked(lambda e: self._reset())
        self.btn_curve.on_clicked(lambda e: self._toggle_curve())
        self.btn_help.on_clicked(lambda e: self._toggle_help())
        self.btn_save.on_clicked(lambda e: self._save_png())

    # ----- Events -----

    def _on_submit(self, text: str):
        try:
            self.session.set_equation(text)
        except SlopeFieldError as e:
            # keep the current field on screen; only the message changes
            logger.info("rejected equation %r: %s", text, e)
            self._set_message(USER_MESSAGE)
            return
        self.trails = []
        self.message = ""
        self._plot_all()

    def _on_key(self, ev):
        if self.tb_eq.capturekeystrokes:
            return
        k = ev.key or ''
        if k in ('escape', 'ctrl+w'):
            plt.close(self.fig); return
        if k in ('g', 'enter'):
            self._go()
        elif k == 'n':
            self._new_round()
        elif k == 'r':
            self._reset()
        elif k == 'c':
            self._toggle_curve()
        elif k == 'G':
            self.grid_on = not self.grid_on; self._plot_all()
        elif k in ('h', '?'):
            self._toggle_help()
        elif k == 's':
            self._save_png()

    def _on_tick(self, report: TickReport):
        for trail, pos in zip(self.trails, report.positions):
            trail.append(pos)
        for line, trail in zip(self.trail_lines, self.trails):
            xs, ys = zip(*trail)
            line.set_data(xs, ys)
        if self.walker_dots is not None:
            self.walker_dots.set_data([p[0] for p in report.positions], [p[1] for p in report.positions])
        if report.finished:
            self._set_message(self._outcome_text(report.outcome))
        else:
            self.fig.canvas.draw_idle()

    # ----- Actions -----

    def _go(self):
        r = self.session.current_round
        if r is None:
            r = self.session.randomize()
        self.message = ""
        self.trails = [[r.start] for _ in r.targets]
        self._plot_all()
        self.session.go()

    def _new_round(self):
        self.session.randomize()
        self.trails = []
        self.message = ""
        self._plot_all()

    def _reset(self):
        self.session.reset()
        self.trails = []
        self.message = ""
        self._plot_all()

    def _toggle_curve(self):
        self.show_curve = not self.show_curve; self._plot_all()

    def _toggle_help(self):
        self.show_help = not self.show_help; self._plot_all()

    def _save_png(self):
        ts = time.strftime("%Y%m%d-%H%M%S")
        fname = f"slopefield_{ts}.png"
        self.fig.savefig(fname, dpi=180, bbox_inches='tight')
        logger.info("saved %s", fname)
        self._set_message(f"Saved {fname}")

    def _set_message(self, text: str):
        self.message = text
        self.msg_text.set_text(text)
        self.msg_text.set_visible(bool(text))
        self.fig.canvas.draw_idle()

    @staticmethod
    def _outcome_text(outcome: Outcome) -> str:
        if outcome is Outcome.WIN:
            return "You Win!"
        return "Try another function."

    # ----- Plotting -----

    def _plot_all(self):
        ctx = self.session.context
        w = ctx.window
        self.ax.clear()
        self.ax.set_xlim(w.x_min, w.x_max)
        self.ax.set_ylim(w.y_min, w.y_max)
        self.ax.set_aspect('equal', adjustable='box')
        self.ax.grid(self.grid_on, alpha=0.3)
        self.ax.axhline(0, color='#aaa', lw=1)
        self.ax.axvline(0, color='#aaa', lw=1)
        self.ax.set_xlabel("x")
        self.ax.set_ylabel("y")

        self._draw_field()
        self._draw_targets()
        if self.show_curve:
            self._draw_curve()
        self._draw_walkers()
        self._draw_formula_header()

        self.msg_text = self.ax.text(0.5, 0.04, self.message, transform=self.ax.transAxes,
                                     ha='center', va='bottom', fontsize=12,
                                     bbox=dict(boxstyle='round', alpha=0.2, ec='none'))
        self.msg_text.set_visible(bool(self.message))
        if self.show_help:
            self._draw_help()
        self.fig.canvas.draw_idle()

    def _draw_field(self):
        scale = ARROW_LENGTH * self.session.window.x_range / 10
        arrows = self.session.field()
        if not arrows:
            return
        X = np.array([a.world_x for a in arrows])
        Y = np.array([a.world_y for a in arrows])
        U, V = np.array([a.components(scale) for a in arrows]).T
        self.ax.quiver(X, Y, U, V, angles='xy', scale_units='xy', scale=1, pivot='mid',
                       color='dodgerblue', width=0.003, headwidth=4, headlength=4)

    def _draw_targets(self):
        r = self.session.current_round
        if r is None:
            return
        for seg in r.targets:
            (x0, y0), (x1, y1) = segment_endpoints(seg, self.session.window)
            self.ax.plot([x0, x1], [y0, y1], color=(1.0, 0.92, 0.23), lw=10, alpha=0.8,
                         solid_capstyle='butt', clip_on=False, zorder=3)
            self.ax.annotate(Segment(seg).label, ((x0 + x1) / 2, (y0 + y1) / 2),
                             fontsize=8, ha='center', va='center', zorder=4, annotation_clip=False)
        self.ax.plot([r.start[0]], [r.start[1]], 'o', color='crimson', ms=8, zorder=6)

    def _draw_curve(self):
        for seg in self.session.solution_curve().segments:
            xs, ys = zip(*seg)
            self.ax.plot(xs, ys, color='red', lw=2, alpha=0.6, zorder=4)

    def _draw_walkers(self):
        self.trail_lines = []
        for trail in self.trails:
            xs, ys = zip(*trail)
            line, = self.ax.plot(xs, ys, color='red', lw=2, solid_capstyle='round', zorder=5)
            self.trail_lines.append(line)
        self.walker_dots, = self.ax.plot([t[-1][0] for t in self.trails], [t[-1][1] for t in self.trails],
                                         'o', color='crimson', ms=4, zorder=7)

    def _draw_formula_header(self):
        try:
            txt = r"$y' = %s$" % self.session.context.slope.latex()
            _MATHTEXT.parse(txt)
        except Exception:
            # SymPy LaTeX that mathtext can't render; show the raw text
            txt = "y' = " + self.session.context.equation
        self.ax.set_title(txt, fontsize=12)

    def _draw_help(self):
        text = (
            "Type f(x, y) and press Enter\n"
            "Go: G/Enter | New round: N | Reset: R\n"
            "Curve through start: C | Grid: Shift+G\n"
            "Save: S | Help: H/? | Quit: Esc\n"
            "Win: walkers exit through the yellow edges"
        )
        self.ax.text(0.99, 0.98, text, transform=self.ax.transAxes,
                     ha='right', va='top', fontsize=9,
                     bbox=dict(boxstyle='round', alpha=0.15, ec='none', pad=0.4))


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Direction field game for y' = f(x, y).")
    p.add_argument('--equation', default='x - y', help="right-hand side f(x, y)")
    p.add_argument('--single-target', action='store_true', help="one forward walker, one target")
    p.add_argument('--seed', type=int, default=None)
    p.add_argument('--density', type=int, default=20, help="arrows per axis")
    p.add_argument('-v', '--verbose', action='store_true')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    config = GameConfig(density=args.density, target_count=1 if args.single_target else 2)
    try:
        app = FieldGameApp(config, equation=args.equation, seed=args.seed)
    except SlopeFieldError as e:
        raise SystemExit(f"{USER_MESSAGE} ({e})")
    plt.show()
    return app


if __name__ == "__main__":
    main()
