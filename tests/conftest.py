"""Shared fixtures; plots render off-screen."""
import random

import matplotlib

matplotlib.use("Agg")

import pytest

from slopefield.config import GameConfig
from slopefield.game import GameSession, ManualScheduler
from slopefield.window import DEFAULT_WINDOW


@pytest.fixture
def window():
    return DEFAULT_WINDOW


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_session(scheduler):
    def _make(equation="0", **config):
        return GameSession(GameConfig(**config), random.Random(7), scheduler, equation=equation)
    return _make
