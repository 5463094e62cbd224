import os
import sys

import numpy as np
import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from sim.engine import Game  # noqa: E402


@pytest.fixture()
def rng():
    return np.random.default_rng(1234)


@pytest.fixture()
def make_game():
    def _make(text: str, seed: int = 7) -> Game:
        game = Game(seed=seed)
        game.load_text(text)
        return game
    return _make
