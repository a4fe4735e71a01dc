from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from game_types import Color, Position
from utils import as_color, as_float, as_int, clamp_float, clamp_int


class TileKind(str, Enum):
    START = "start"
    END = "end"
    PATH = "path"
    OBSTACLE = "obstacle"
    EMPTY = "empty"


class Move(str, Enum):
    UP = "↑"
    DOWN = "↓"
    LEFT = "←"
    RIGHT = "→"

    @property
    def delta(self) -> Tuple[int, int]:
        """Return the (row, col) offset for this move."""
        return _MOVE_DELTAS[self]

    @classmethod
    def from_symbol(cls, symbol: Any) -> Optional["Move"]:
        """Resolve an arrow glyph or move name ("up", "Left", ...) to a Move.

        Returns None for anything that is not one of the four moves.
        """
        if isinstance(symbol, Move):
            return symbol
        if not isinstance(symbol, str):
            return None
        try:
            return cls(symbol)
        except ValueError:
            pass
        return cls.__members__.get(symbol.strip().upper())


_MOVE_DELTAS: Dict[Move, Tuple[int, int]] = {
    Move.UP: (-1, 0),
    Move.DOWN: (1, 0),
    Move.LEFT: (0, -1),
    Move.RIGHT: (0, 1),
}

# Path entries are either a Move or an arbitrary placeholder string.
Symbol = Union[Move, str]


class ImpactType(str, Enum):
    PATH = "path"
    SCORE = "score"
    GRID = "grid"


class ReplayStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class StopReason(str, Enum):
    COMPLETED = "completed"
    LEVEL_ADVANCE = "level_advance"
    HIT_OBSTACLE = "hit_obstacle"
    EXHAUSTED_PATH = "exhausted_path"


@dataclass
class Tile:
    kind: TileKind = TileKind.EMPTY
    score: int = 0


@dataclass
class Grid:
    """Square matrix of tiles, indexed [row][col] with row 0 at the top."""

    tiles: List[List[Tile]]

    @property
    def size(self) -> int:
        return len(self.tiles)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def tile(self, row: int, col: int) -> Tile:
        return self.tiles[row][col]

    def positions(self) -> Iterator[Position]:
        for row in range(self.size):
            for col in range(self.size):
                yield Position(row, col)

    def find(self, kind: TileKind) -> List[Position]:
        """Return every position holding a tile of the given kind."""
        return [p for p in self.positions() if self.tiles[p.row][p.col].kind == kind]

    def count(self, kind: TileKind) -> int:
        return len(self.find(kind))

    def clear_path_markers(self, rng: random.Random, rewards: Sequence[int]) -> int:
        """Turn path tiles back into empty tiles with fresh scores.

        Returns:
            The number of tiles cleared.
        """
        cleared = 0
        for row in self.tiles:
            for tile in row:
                if tile.kind == TileKind.PATH:
                    tile.kind = TileKind.EMPTY
                    tile.score = rng.choice(rewards)
                    cleared += 1
        return cleared

    def reroll_scores(self, rng: random.Random, rewards: Sequence[int]) -> None:
        """Draw new scores for empty tiles and zero every other tile."""
        for row in self.tiles:
            for tile in row:
                tile.score = rng.choice(rewards) if tile.kind == TileKind.EMPTY else 0

    def copy(self) -> "Grid":
        return Grid([[Tile(t.kind, t.score) for t in row] for row in self.tiles])


@dataclass
class GeneratedGrid:
    grid: Grid
    start_col: int
    end_col: int
    attempts: int
    valid: bool


@dataclass
class RunState:
    is_executing: bool = False
    current_step_index: int = 0
    score: int = 0
    level: int = 1


@dataclass
class GameState:
    """Everything the front-end renders; mutated only through the controller."""

    grid: Grid
    start_col: int
    end_col: int
    run: RunState = field(default_factory=RunState)
    player_position: Optional[Position] = None
    global_glitch: Optional[str] = None
    local_glitch: Optional[str] = None

    @property
    def size(self) -> int:
        return self.grid.size

    @property
    def start(self) -> Position:
        return Position(self.grid.size - 1, self.start_col)

    @property
    def goal(self) -> Position:
        return Position(0, self.end_col)

    def install(self, generated: GeneratedGrid) -> None:
        """Replace the grid and its start/end columns wholesale."""
        self.grid = generated.grid
        self.start_col = generated.start_col
        self.end_col = generated.end_col


# ----------------------------
# Configuration
# ----------------------------


DEFAULT_REWARDS: Tuple[int, ...] = (5, 10, 15, 20)


@dataclass(frozen=True)
class GlitchMessage:
    text: str
    base_chance: float


DEFAULT_GLOBAL_MESSAGES: Tuple[GlitchMessage, ...] = (
    GlitchMessage("CRITICAL: Reality buffer overflow", 20.0),
    GlitchMessage("SYSTEM FAILURE: Avatar core dumped", 15.0),
    GlitchMessage("FATAL: Path integrity compromised", 25.0),
    GlitchMessage("KERNEL PANIC: Grid matrix desynchronized", 10.0),
)

DEFAULT_LOCAL_MESSAGES: Tuple[GlitchMessage, ...] = (
    GlitchMessage("Warning: Tile checksum mismatch", 30.0),
    GlitchMessage("Notice: Move buffer corrupted", 35.0),
    GlitchMessage("Error: Score register drift", 25.0),
    GlitchMessage("Warning: Obstacle cache invalidated", 20.0),
)


def _parse_messages(
    raw: Any, default: Tuple[GlitchMessage, ...]
) -> Tuple[GlitchMessage, ...]:
    if not isinstance(raw, list):
        return default
    parsed: List[GlitchMessage] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        text = entry.get("text")
        if not isinstance(text, str) or not text.strip():
            continue
        chance = max(0.0, as_float(entry.get("base_chance"), 0.0))
        parsed.append(GlitchMessage(text.strip(), chance))
    # A pool with no positive weight cannot be sampled from.
    if not parsed or not any(m.base_chance > 0 for m in parsed):
        return default
    return tuple(parsed)


@dataclass(frozen=True)
class GridConfig:
    min_size: int = 5
    max_size: int = 20
    scale_with_level: bool = True
    fixed_size: int = 10
    max_attempts: int = 100
    rewards: Tuple[int, ...] = DEFAULT_REWARDS
    strict_generation: bool = False

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "GridConfig":
        min_size = clamp_int(as_int(raw.get("min_size"), 5), 2, 64)
        max_size = clamp_int(as_int(raw.get("max_size"), 20), min_size, 64)
        rewards_raw = raw.get("rewards")
        rewards = DEFAULT_REWARDS
        if isinstance(rewards_raw, list):
            values = tuple(max(0, as_int(x, 0)) for x in rewards_raw)
            if values:
                rewards = values
        return GridConfig(
            min_size=min_size,
            max_size=max_size,
            scale_with_level=bool(raw.get("scale_with_level", True)),
            fixed_size=clamp_int(as_int(raw.get("fixed_size"), 10), 2, 64),
            max_attempts=max(1, as_int(raw.get("max_attempts"), 100)),
            rewards=rewards,
            strict_generation=bool(raw.get("strict_generation", False)),
        )


@dataclass(frozen=True)
class ObstacleConfig:
    base_percent: float = 25.0
    increment_percent: float = 3.0

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "ObstacleConfig":
        return ObstacleConfig(
            base_percent=clamp_float(as_float(raw.get("base_percent"), 25.0), 0.0, 100.0),
            increment_percent=max(0.0, as_float(raw.get("increment_percent"), 3.0)),
        )


@dataclass(frozen=True)
class GlitchConfig:
    max_increment: float = 25.0
    threshold: float = 100.0
    multiplier_base: float = 2.0
    overlay_ms: int = 3000
    global_chance: float = 0.5
    global_messages: Tuple[GlitchMessage, ...] = DEFAULT_GLOBAL_MESSAGES
    local_messages: Tuple[GlitchMessage, ...] = DEFAULT_LOCAL_MESSAGES

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "GlitchConfig":
        max_increment = max(0.0, as_float(raw.get("max_increment"), 25.0))
        # One append may cross the threshold at most once.
        threshold = max(1.0, max_increment, as_float(raw.get("threshold"), 100.0))
        return GlitchConfig(
            max_increment=max_increment,
            threshold=threshold,
            multiplier_base=max(1.0, as_float(raw.get("multiplier_base"), 2.0)),
            overlay_ms=max(0, as_int(raw.get("overlay_ms"), 3000)),
            global_chance=clamp_float(as_float(raw.get("global_chance"), 0.5), 0.0, 1.0),
            global_messages=_parse_messages(
                raw.get("global_messages"), DEFAULT_GLOBAL_MESSAGES
            ),
            local_messages=_parse_messages(
                raw.get("local_messages"), DEFAULT_LOCAL_MESSAGES
            ),
        )


@dataclass(frozen=True)
class TimingConfig:
    kickoff_ms: int = 100
    step_ms: int = 500
    advance_ms: int = 1500

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "TimingConfig":
        return TimingConfig(
            kickoff_ms=max(0, as_int(raw.get("kickoff_ms"), 100)),
            step_ms=max(0, as_int(raw.get("step_ms"), 500)),
            advance_ms=max(0, as_int(raw.get("advance_ms"), 1500)),
        )


@dataclass(frozen=True)
class ScoringConfig:
    completion_bonus: int = 100

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "ScoringConfig":
        return ScoringConfig(
            completion_bonus=max(0, as_int(raw.get("completion_bonus"), 100))
        )


@dataclass(frozen=True)
class WindowConfig:
    width: int = 1100
    height: int = 860
    title: str = "Avatared"
    tile_size: int = 40
    bg: Color = (17, 17, 17)
    fps: int = 60


@dataclass(frozen=True)
class TileColors:
    start: Color = (0, 128, 0)
    end: Color = (255, 0, 0)
    path: Color = (255, 255, 0)
    obstacle: Color = (0, 0, 255)
    empty: Color = (34, 34, 34)
    player: Color = (128, 0, 128)
    border: Color = (85, 85, 85)

    def for_kind(self, kind: TileKind) -> Color:
        return getattr(self, kind.value)

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "TileColors":
        d = TileColors()
        return TileColors(
            start=as_color(raw.get("start"), d.start),
            end=as_color(raw.get("end"), d.end),
            path=as_color(raw.get("path"), d.path),
            obstacle=as_color(raw.get("obstacle"), d.obstacle),
            empty=as_color(raw.get("empty"), d.empty),
            player=as_color(raw.get("player"), d.player),
            border=as_color(raw.get("border"), d.border),
        )


@dataclass(frozen=True)
class GameConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    obstacles: ObstacleConfig = field(default_factory=ObstacleConfig)
    glitch: GlitchConfig = field(default_factory=GlitchConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    colors: TileColors = field(default_factory=TileColors)
    seed: Optional[int] = None
