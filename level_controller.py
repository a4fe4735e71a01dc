from __future__ import annotations

import logging
import random
from typing import Optional

from glitch import GlitchEngine, GlitchEvent
from grid_generator import GridGenerator, LevelScaling
from models import GameConfig, GameState, ImpactType, StopReason, Symbol
from path_store import IndexOutOfRange, PathStore
from replay import ReplayEngine, StepEvent
from scheduler import TickScheduler

logger = logging.getLogger(__name__)


class LevelController:
    """Top-level game orchestration (levels, input, replay pacing, glitches).

    The front-end only calls the input methods below and reads ``state``; all
    timing goes through ``scheduler``.
    """

    def __init__(
        self,
        cfg: GameConfig,
        rng: Optional[random.Random] = None,
        scheduler: Optional[TickScheduler] = None,
    ) -> None:
        self.cfg = cfg
        self.rng = rng or random.Random(cfg.seed)
        self.scheduler = scheduler or TickScheduler()

        self.scaling = LevelScaling(cfg.grid, cfg.obstacles)
        self.generator = GridGenerator(self.scaling, self.rng)
        self.path = PathStore(self.rng, on_append=self._on_path_appended)

        first = self.generator.generate(1)
        self.state = GameState(grid=first.grid, start_col=first.start_col, end_col=first.end_col)
        self.state.player_position = self.state.start

        self.glitch = GlitchEngine(cfg.glitch, self.rng, self.path, self.generator)
        self.replay = ReplayEngine(self.state, self.path, self.rng, cfg.grid.rewards)

        self.last_glitch: Optional[GlitchEvent] = None
        self._step_handle: Optional[int] = None
        self._advance_handle: Optional[int] = None
        self._overlay_handle: Optional[int] = None

    # ----------------------------
    # Derived level parameters
    # ----------------------------

    @property
    def level(self) -> int:
        return self.state.run.level

    @property
    def grid_size(self) -> int:
        return self.scaling.grid_size(self.level)

    @property
    def obstacle_percent(self) -> float:
        return self.scaling.obstacle_percent(self.level)

    @property
    def glitch_multiplier(self) -> float:
        return self.glitch.multiplier(self.level)

    # ----------------------------
    # Input events
    # ----------------------------

    def path_append(self, move: Symbol) -> Optional[GlitchEvent]:
        """Record a move. Returns the glitch it triggered, if any."""
        self.last_glitch = None
        self.path.append(move)
        return self.last_glitch

    def path_overwrite(self, index: int) -> bool:
        """Replace one path entry with a different random move."""
        try:
            self.path.overwrite(index)
        except IndexOutOfRange as e:
            logger.warning("path edit rejected: %s", e)
            return False
        return True

    def execute(self) -> bool:
        # A completed run keeps control until the level advance has happened.
        if self._advance_handle is not None:
            logger.debug("execute ignored: level advance pending")
            return False
        if not self.replay.execute():
            return False
        self._step_handle = self.scheduler.schedule(self.cfg.timing.kickoff_ms, self._step)
        return True

    def reset_game(self) -> None:
        """Back to level 1 with an empty path and zero score."""
        self.scheduler.cancel_all()
        self._step_handle = self._advance_handle = self._overlay_handle = None
        self.path.clear()
        self.state.run.score = 0
        self.state.global_glitch = None
        self.state.local_glitch = None
        self.last_glitch = None
        self.glitch.reset()
        self.replay.reset()
        self.enter_level(1)
        logger.info("game reset")

    # ----------------------------
    # Level management
    # ----------------------------

    def enter_level(self, level: int) -> None:
        """Generate the grid for level and put the avatar on the start tile.

        Score, path and the glitch accumulator are left alone.
        """
        self.state.run.level = level
        self.state.install(self.generator.generate(level))
        self.state.player_position = self.state.start
        logger.info(
            "entered level %s: size=%s obstacles=%.0f%% glitch x%s",
            level,
            self.grid_size,
            self.obstacle_percent,
            self.glitch_multiplier,
        )

    def advance_level(self) -> None:
        self._advance_handle = None
        self._cancel(self._step_handle)
        self._step_handle = None
        self.state.run.score += self.cfg.scoring.completion_bonus
        self.path.clear()
        self.enter_level(self.level + 1)
        self.replay.stop(StopReason.LEVEL_ADVANCE)

    # ----------------------------
    # Scheduled callbacks
    # ----------------------------

    def _step(self) -> Optional[StepEvent]:
        self._step_handle = None
        event = self.replay.tick()
        if event is None:
            return None
        if self.replay.is_running:
            self._step_handle = self.scheduler.schedule(self.cfg.timing.step_ms, self._step)
        elif event.outcome == StopReason.COMPLETED:
            self._advance_handle = self.scheduler.schedule(
                self.cfg.timing.advance_ms, self.advance_level
            )
        return event

    def _on_path_appended(self) -> None:
        event = self.glitch.on_path_appended(self.state)
        if event is None:
            return
        self.last_glitch = event
        if event.impact == ImpactType.GRID and event.applied and not self.replay.is_running:
            self.state.player_position = self.state.start
        self._show_overlay(event)

    def _show_overlay(self, event: GlitchEvent) -> None:
        if event.is_global:
            self.state.global_glitch = event.message.text
        else:
            self.state.local_glitch = event.message.text
        self._cancel(self._overlay_handle)
        self._overlay_handle = self.scheduler.schedule(
            self.cfg.glitch.overlay_ms, self._clear_overlay
        )

    def _clear_overlay(self) -> None:
        self._overlay_handle = None
        self.state.global_glitch = None
        self.state.local_glitch = None

    def _cancel(self, handle: Optional[int]) -> None:
        if handle is not None:
            self.scheduler.cancel(handle)
