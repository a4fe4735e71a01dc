"""
grid_generator.py

Procedural square grids for Avatared.

Per level:
- Exactly one start tile in the bottom row, one end tile in the top row
- Empty tiles carry a collectible score from the reward set
- Obstacles are scattered in rows [1, size-2] only
- A route from start to the top row is validated with BFS (Up/Left/Right)
"""

from __future__ import annotations

import logging
import math
import random
from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from game_types import Position
from grid_text import grid_to_lines
from models import GeneratedGrid, Grid, GridConfig, ObstacleConfig, Tile, TileKind
from utils import clamp_int

logger = logging.getLogger(__name__)

# Down is never used: the route search only climbs toward the goal row.
SEARCH_DIRECTIONS: Tuple[Tuple[int, int], ...] = ((-1, 0), (0, -1), (0, 1))


class GenerationFailed(RuntimeError):
    """No layout passed the reachability check within the attempt bound."""


@dataclass(frozen=True)
class LevelParams:
    level: int
    size: int
    obstacle_percent: float
    obstacle_count: int


# ----------------------------
# Sizing
# ----------------------------


class LevelScaling:
    """Grid size and obstacle density rise with the level number."""

    def __init__(self, grid_cfg: GridConfig, obstacle_cfg: ObstacleConfig) -> None:
        self.grid_cfg = grid_cfg
        self.obstacle_cfg = obstacle_cfg

    def grid_size(self, level: int) -> int:
        cfg = self.grid_cfg
        if not cfg.scale_with_level:
            return cfg.fixed_size
        return clamp_int(cfg.min_size + (max(1, level) - 1), cfg.min_size, cfg.max_size)

    def obstacle_percent(self, level: int) -> float:
        cfg = self.obstacle_cfg
        return cfg.base_percent + (max(1, level) - 1) * cfg.increment_percent

    def obstacle_count(self, size: int, percent: float) -> int:
        wanted = math.floor((size * size - 2) * percent / 100)
        # Only rows [1, size-2] may hold obstacles.
        capacity = max(0, size - 2) * size
        return clamp_int(wanted, 0, capacity)

    def for_level(self, level: int) -> LevelParams:
        size = self.grid_size(level)
        percent = self.obstacle_percent(level)
        return LevelParams(
            level=level,
            size=size,
            obstacle_percent=percent,
            obstacle_count=self.obstacle_count(size, percent),
        )


# ----------------------------
# Validation
# ----------------------------


class ReachabilityChecker:
    """BFS from the start tile to any cell of the top row.

    The target is row 0 as a whole rather than the end column: the player may
    walk along the top row, so this is a deliberately lenient guarantee.
    """

    def is_reachable(self, grid: Grid, start: Position) -> bool:
        if not grid.in_bounds(start.row, start.col):
            return False
        if grid.tile(start.row, start.col).kind == TileKind.OBSTACLE:
            return False

        q = deque([start])
        visited = {start}

        while q:
            cur = q.popleft()
            if cur.row == 0:
                return True
            for nxt in self._neighbors(grid, cur):
                if nxt not in visited:
                    visited.add(nxt)
                    q.append(nxt)
        return False

    def _neighbors(self, grid: Grid, pos: Position) -> Iterable[Position]:
        for dr, dc in SEARCH_DIRECTIONS:
            row, col = pos.row + dr, pos.col + dc
            if grid.in_bounds(row, col) and grid.tile(row, col).kind != TileKind.OBSTACLE:
                yield Position(row, col)


# ----------------------------
# Generator
# ----------------------------


class GridGenerator:
    def __init__(
        self,
        scaling: LevelScaling,
        rng: random.Random,
        checker: Optional[ReachabilityChecker] = None,
    ) -> None:
        self.scaling = scaling
        self.rng = rng
        self.checker = checker or ReachabilityChecker()

    @property
    def rewards(self) -> Sequence[int]:
        return self.scaling.grid_cfg.rewards

    def generate(self, level: int) -> GeneratedGrid:
        """Build a grid for the level, retrying until a route exists.

        Raises:
            GenerationFailed: Only when strict generation is configured and every
                attempt failed; otherwise the last layout is returned with
                ``valid=False``.
        """
        params = self.scaling.for_level(level)
        size = params.size
        max_attempts = self.scaling.grid_cfg.max_attempts

        start_col = self.rng.randrange(size)
        end_col = self.rng.randrange(size)
        grid = Grid([[Tile() for _ in range(size)] for _ in range(size)])
        grid.tiles[size - 1][start_col] = Tile(TileKind.START, 0)
        grid.tiles[0][end_col] = Tile(TileKind.END, 0)
        start = Position(size - 1, start_col)
        interior = [Position(r, c) for r in range(1, size - 1) for c in range(size)]

        attempts = 0
        while attempts < max_attempts:
            attempts += 1
            self._reset_cells(grid)
            self._scatter_obstacles(grid, interior, params.obstacle_count)

            if self.checker.is_reachable(grid, start):
                logger.info(
                    "generated level %s grid: %sx%s, %s obstacles, attempt %s",
                    level,
                    size,
                    size,
                    params.obstacle_count,
                    attempts,
                )
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("level %s layout:\n%s", level, "\n".join(grid_to_lines(grid)))
                return GeneratedGrid(grid, start_col, end_col, attempts, True)
            logger.debug("level %s attempt %s has no route to the top row", level, attempts)

        if self.scaling.grid_cfg.strict_generation:
            raise GenerationFailed(
                f"Failed to generate a reachable grid for level {level} "
                f"after {max_attempts} attempts."
            )
        logger.warning(
            "level %s: no reachable layout after %s attempts, keeping the last one",
            level,
            max_attempts,
        )
        return GeneratedGrid(grid, start_col, end_col, attempts, False)

    def _reset_cells(self, grid: Grid) -> None:
        for row in grid.tiles:
            for tile in row:
                if tile.kind in (TileKind.START, TileKind.END):
                    continue
                tile.kind = TileKind.EMPTY
                tile.score = self.rng.choice(self.rewards)

    def _scatter_obstacles(
        self, grid: Grid, interior: List[Position], count: int
    ) -> None:
        for pos in self.rng.sample(interior, min(count, len(interior))):
            tile = grid.tile(pos.row, pos.col)
            tile.kind = TileKind.OBSTACLE
            tile.score = 0
