from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from game_types import Position
from models import GameState, Move, ReplayStatus, StopReason, TileKind
from path_store import PathStore
from utils import clamp_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepEvent:
    step_index: int
    position: Position
    score_delta: int = 0
    skipped: bool = False
    outcome: Optional[StopReason] = None


class ReplayEngine:
    """Step-by-step replay of the recorded path against the current grid.

    ``execute()`` arms a run and ``tick()`` performs exactly one step; pacing is
    left to whoever calls ``tick()``.
    """

    def __init__(
        self,
        state: GameState,
        path: PathStore,
        rng: random.Random,
        rewards: Sequence[int],
    ) -> None:
        self.state = state
        self.path = path
        self.rng = rng
        self.rewards = rewards
        self.status = ReplayStatus.IDLE
        self.stop_reason: Optional[StopReason] = None
        self.step_index = 0

    @property
    def is_running(self) -> bool:
        return self.status == ReplayStatus.RUNNING

    def execute(self) -> bool:
        """Start a run from the start tile. Returns False if one is already active."""
        if self.is_running:
            logger.debug("execute ignored: replay already running")
            return False

        state = self.state
        state.player_position = state.start
        state.grid.clear_path_markers(self.rng, self.rewards)
        self.step_index = 0
        self.stop_reason = None
        self.status = ReplayStatus.RUNNING
        self._sync()
        logger.info("replay started with %s steps", len(self.path))
        return True

    def stop(self, reason: StopReason) -> None:
        self.status = ReplayStatus.STOPPED
        self.stop_reason = reason
        self._sync()

    def reset(self) -> None:
        """Back to Idle, forgetting any previous outcome."""
        self.status = ReplayStatus.IDLE
        self.stop_reason = None
        self.step_index = 0
        self._sync()

    def _sync(self) -> None:
        run = self.state.run
        run.is_executing = self.is_running
        run.current_step_index = self.step_index

    def _finish(self, reason: StopReason, event: StepEvent) -> StepEvent:
        self.stop(reason)
        logger.info(
            "replay stopped at step %s: %s (score %s)",
            event.step_index,
            reason.value,
            self.state.run.score,
        )
        return StepEvent(
            event.step_index, event.position, event.score_delta, event.skipped, reason
        )

    def _destination(self, move: Move, pos: Position) -> Position:
        dr, dc = move.delta
        last = self.state.size - 1
        return Position(clamp_int(pos.row + dr, 0, last), clamp_int(pos.col + dc, 0, last))

    def tick(self) -> Optional[StepEvent]:
        """Perform one replay step. Returns None when no run is active."""
        if not self.is_running:
            return None

        state = self.state
        index = self.step_index
        position = state.player_position or state.start

        if index >= len(self.path):
            return self._finish(StopReason.EXHAUSTED_PATH, StepEvent(index, position))

        symbol = self.path[index]
        move = Move.from_symbol(symbol)
        if move is None:
            logger.debug("step %s: skipping invalid symbol %r", index, symbol)
            self.step_index += 1
            self._sync()
            return StepEvent(index, position, skipped=True)

        dest = self._destination(move, position)
        tile = state.grid.tile(dest.row, dest.col)

        if tile.kind == TileKind.OBSTACLE:
            state.player_position = dest
            return self._finish(StopReason.HIT_OBSTACLE, StepEvent(index, dest))

        gained = tile.score
        state.run.score += gained
        tile.score = 0
        if tile.kind not in (TileKind.START, TileKind.END):
            tile.kind = TileKind.PATH
        state.player_position = dest
        event = StepEvent(index, dest, gained)
        logger.debug("step %s: %s -> (%s, %s) +%s", index, move.name, dest.row, dest.col, gained)

        if dest == state.goal:
            return self._finish(StopReason.COMPLETED, event)
        if index == len(self.path) - 1:
            return self._finish(StopReason.EXHAUSTED_PATH, event)

        self.step_index += 1
        self._sync()
        return event
