from __future__ import annotations

import logging
import random

from game_types import Position
from grid_text import build_grid_from_lines
from level_controller import LevelController
from models import GameConfig, GlitchConfig, Move, ReplayStatus, StopReason, TileKind


def _controller(cfg: GameConfig, lines=None, seed: int = 1) -> LevelController:
    c = LevelController(cfg, rng=random.Random(seed))
    if lines is not None:
        c.state.install(build_grid_from_lines(lines, empty_score=10))
        c.state.player_position = c.state.start
    return c


def test_initial_state(quiet_cfg):
    c = _controller(quiet_cfg)
    assert c.level == 1
    assert c.state.grid.size == 5
    assert c.state.player_position == Position(4, c.state.start_col)
    assert c.replay.status == ReplayStatus.IDLE
    assert c.state.run.score == 0


def test_derived_parameters_follow_level(quiet_cfg):
    c = _controller(quiet_cfg)
    c.enter_level(3)
    assert c.grid_size == 7
    assert c.obstacle_percent == 31
    assert c.glitch_multiplier == 4
    assert c.state.grid.size == 7


def test_replay_is_paced_by_scheduler(quiet_cfg):
    c = _controller(quiet_cfg, ["..E", "...", ".S."])
    for m in (Move.UP, Move.UP, Move.RIGHT):
        c.path_append(m)

    assert c.execute()
    c.scheduler.advance(99)
    assert c.state.player_position == Position(2, 1)
    c.scheduler.advance(1)
    assert c.state.player_position == Position(1, 1)
    c.scheduler.advance(499)
    assert c.state.player_position == Position(1, 1)
    c.scheduler.advance(1)
    assert c.state.player_position == Position(0, 1)


def test_goal_advances_level_after_delay(quiet_cfg):
    c = _controller(quiet_cfg, ["..E", "...", ".S."])
    for m in (Move.UP, Move.UP, Move.RIGHT):
        c.path_append(m)

    c.execute()
    c.scheduler.advance(100 + 500 + 500)
    assert c.replay.stop_reason == StopReason.COMPLETED
    assert c.state.run.score == 20
    assert c.level == 1

    c.scheduler.advance(1499)
    assert c.level == 1
    c.scheduler.advance(1)

    assert c.level == 2
    assert len(c.path) == 0
    assert c.state.run.score == 120
    assert c.state.grid.size == 6
    assert c.state.player_position == c.state.start
    assert c.replay.stop_reason == StopReason.LEVEL_ADVANCE
    assert c.scheduler.pending() == 0


def test_execute_ignored_while_level_advance_pending(quiet_cfg):
    c = _controller(quiet_cfg, [".E.", "...", ".S."])
    c.path_append(Move.UP)
    c.path_append(Move.UP)
    c.execute()
    c.scheduler.advance(600)
    assert c.replay.stop_reason == StopReason.COMPLETED
    assert c.execute() is False
    c.scheduler.advance(1500)
    assert c.level == 2


def test_obstacle_ends_run_and_keeps_level(quiet_cfg):
    c = _controller(quiet_cfg, ["E..", ".#.", ".S."])
    c.path_append(Move.UP)
    c.execute()
    c.scheduler.advance(10_000)
    assert c.replay.stop_reason == StopReason.HIT_OBSTACLE
    assert c.state.run.score == 0
    assert c.level == 1
    assert c.scheduler.pending() == 0


def test_execute_while_running_changes_nothing(quiet_cfg):
    c = _controller(quiet_cfg, ["..E", "...", ".S."])
    for m in (Move.UP, Move.UP, Move.RIGHT):
        c.path_append(m)
    c.execute()
    c.scheduler.advance(100)

    grid_before = c.state.grid.copy()
    run_before = (
        c.state.run.is_executing,
        c.state.run.current_step_index,
        c.state.run.score,
        c.state.run.level,
    )
    pending_before = c.scheduler.pending()

    assert c.execute() is False
    assert c.state.grid == grid_before
    assert (
        c.state.run.is_executing,
        c.state.run.current_step_index,
        c.state.run.score,
        c.state.run.level,
    ) == run_before
    assert c.scheduler.pending() == pending_before


def test_path_overwrite_out_of_range_is_rejected(quiet_cfg, caplog):
    c = _controller(quiet_cfg)
    c.path_append(Move.UP)
    with caplog.at_level(logging.WARNING, logger="level_controller"):
        assert c.path_overwrite(5) is False
    assert "path edit rejected" in caplog.text
    assert c.path.snapshot() == (Move.UP,)
    assert c.path_overwrite(0) is True
    assert c.path[0] != Move.UP


def test_reset_game_restores_initial_state(quiet_cfg):
    c = _controller(quiet_cfg, ["..E", "...", ".S."])
    for m in (Move.UP, Move.UP):
        c.path_append(m)
    c.advance_level()
    c.path_append(Move.LEFT)
    c.execute()
    c.state.local_glitch = "noise"

    c.reset_game()

    assert c.level == 1
    assert c.state.run.score == 0
    assert len(c.path) == 0
    assert c.replay.status == ReplayStatus.IDLE
    assert c.scheduler.pending() == 0
    assert c.state.local_glitch is None
    assert c.state.grid.size == 5
    assert 0 <= c.glitch.accumulator < 25

    c.scheduler.advance(10_000)
    assert c.state.player_position == c.state.start


def test_reset_cancels_pending_steps(quiet_cfg):
    c = _controller(quiet_cfg, ["..E", "...", ".S."])
    c.path_append(Move.UP)
    c.execute()
    c.reset_game()
    c.scheduler.advance(10_000)
    assert c.state.run.current_step_index == 0
    assert c.state.run.score == 0
    assert not c.state.run.is_executing


def test_level_advance_keeps_glitch_accumulator(quiet_cfg):
    c = _controller(quiet_cfg)
    c.glitch.accumulator = 42.0
    c.advance_level()
    assert c.glitch.accumulator == 42.0
    assert c.level == 2


def test_glitch_on_append_sets_and_clears_overlay():
    c = _controller(GameConfig())
    c.path_append(Move.UP)
    c.glitch.accumulator = 100.0

    event = c.path_append(Move.LEFT)

    assert event is not None
    flag = c.state.global_glitch if event.is_global else c.state.local_glitch
    assert flag == event.message.text
    c.scheduler.advance(2999)
    assert (c.state.global_glitch or c.state.local_glitch) == event.message.text
    c.scheduler.advance(1)
    assert c.state.global_glitch is None
    assert c.state.local_glitch is None


def test_glitches_fire_over_many_appends():
    c = _controller(GameConfig(glitch=GlitchConfig(multiplier_base=2.0)), seed=21)
    events = [c.path_append(Move.UP) for _ in range(200)]
    fired = [e for e in events if e is not None]
    # mean increment is 12.5, so roughly one glitch per 8 appends
    assert len(fired) >= 10
    assert c.state.grid.count(TileKind.START) == 1
