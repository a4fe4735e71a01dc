from __future__ import annotations

import logging
import random

import pytest

from game_types import Position
from grid_generator import GenerationFailed, GridGenerator, LevelScaling, ReachabilityChecker
from grid_text import build_grid_from_lines
from models import GridConfig, ObstacleConfig, TileKind


def _generator(seed: int = 7, **grid_kwargs) -> GridGenerator:
    scaling = LevelScaling(GridConfig(**grid_kwargs), ObstacleConfig())
    return GridGenerator(scaling, random.Random(seed))


def test_grid_size_scales_with_level_and_caps():
    scaling = LevelScaling(GridConfig(), ObstacleConfig())
    assert scaling.grid_size(1) == 5
    assert scaling.grid_size(4) == 8
    assert scaling.grid_size(16) == 20
    assert scaling.grid_size(40) == 20


def test_fixed_size_ignores_level():
    scaling = LevelScaling(GridConfig(scale_with_level=False, fixed_size=10), ObstacleConfig())
    assert scaling.grid_size(1) == 10
    assert scaling.grid_size(9) == 10


def test_obstacle_count_formula():
    scaling = LevelScaling(GridConfig(), ObstacleConfig())
    params = scaling.for_level(1)
    # floor((25 - 2) * 25 / 100) = 5
    assert params.obstacle_percent == 25
    assert params.obstacle_count == 5
    params = scaling.for_level(3)
    # size 7, 31%: floor(47 * 31 / 100) = 14
    assert params.size == 7
    assert params.obstacle_count == 14


def test_obstacle_count_capped_to_interior_rows():
    scaling = LevelScaling(GridConfig(), ObstacleConfig(base_percent=100.0))
    assert scaling.obstacle_count(5, 100.0) == 15


@pytest.mark.parametrize("level", range(1, 13))
def test_generated_grid_invariants(level):
    gen = _generator(seed=level)
    result = gen.generate(level)
    grid = result.grid
    size = gen.scaling.grid_size(level)

    assert grid.size == size
    assert grid.find(TileKind.START) == [Position(size - 1, result.start_col)]
    assert grid.find(TileKind.END) == [Position(0, result.end_col)]

    obstacles = grid.find(TileKind.OBSTACLE)
    assert len(obstacles) == gen.scaling.for_level(level).obstacle_count
    assert all(1 <= p.row <= size - 2 for p in obstacles)

    for pos in grid.positions():
        tile = grid.tile(pos.row, pos.col)
        if tile.kind == TileKind.EMPTY:
            assert tile.score in gen.rewards
        else:
            assert tile.score == 0

    if result.valid:
        start = Position(size - 1, result.start_col)
        assert ReachabilityChecker().is_reachable(grid, start)


def test_reachability_blocked_by_wall():
    g = build_grid_from_lines([".E.", "###", ".S."]).grid
    assert not ReachabilityChecker().is_reachable(g, Position(2, 1))


def test_reachability_through_gap():
    g = build_grid_from_lines([".E.", "##.", ".S."]).grid
    assert ReachabilityChecker().is_reachable(g, Position(2, 1))


def test_reachability_targets_top_row_not_end_column():
    # Row 0 is reached in column 2; the wall at (0, 1) cuts it off from the end tile.
    g = build_grid_from_lines(["E#.", "#..", "..S"]).grid
    assert ReachabilityChecker().is_reachable(g, Position(2, 2))


def test_exhausted_generation_returns_last_layout(caplog):
    scaling = LevelScaling(GridConfig(max_attempts=3), ObstacleConfig(base_percent=100.0))
    gen = GridGenerator(scaling, random.Random(3))
    with caplog.at_level(logging.WARNING, logger="grid_generator"):
        result = gen.generate(1)
    assert result.valid is False
    assert result.attempts == 3
    assert result.grid.count(TileKind.START) == 1
    assert "no reachable layout" in caplog.text


def test_strict_generation_raises():
    scaling = LevelScaling(
        GridConfig(max_attempts=2, strict_generation=True),
        ObstacleConfig(base_percent=100.0),
    )
    with pytest.raises(GenerationFailed):
        GridGenerator(scaling, random.Random(3)).generate(1)


def test_same_seed_same_grid():
    a = _generator(seed=99).generate(4)
    b = _generator(seed=99).generate(4)
    assert a.grid == b.grid
    assert (a.start_col, a.end_col) == (b.start_col, b.end_col)
