from __future__ import annotations

import random
from typing import Callable, Iterable, List

import pytest

from grid_text import build_grid_from_lines
from models import GameConfig, GameState, GlitchConfig


class ScriptedRandom(random.Random):
    """random.Random whose random() replays fixed values, then falls back to the seed."""

    def __init__(self, values: Iterable[float], seed: int = 0) -> None:
        super().__init__(seed)
        self.values: List[float] = list(values)

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return super().random()

    # Keeps randrange/choice/sample on getrandbits so they never eat scripted values.
    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def quiet_cfg() -> GameConfig:
    """Default config with the glitch accumulator disabled."""
    return GameConfig(glitch=GlitchConfig(max_increment=0.0))


@pytest.fixture
def make_state() -> Callable[..., GameState]:
    def _make(lines: List[str], empty_score: int = 10) -> GameState:
        generated = build_grid_from_lines(lines, empty_score=empty_score)
        state = GameState(
            grid=generated.grid,
            start_col=generated.start_col,
            end_col=generated.end_col,
        )
        state.player_position = state.start
        return state

    return _make
