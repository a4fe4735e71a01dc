from __future__ import annotations

import logging
import random
from typing import Callable, Iterator, List, Optional, Tuple

from models import Move, Symbol

logger = logging.getLogger(__name__)


class IndexOutOfRange(IndexError):
    """Raised when a path edit targets an index outside the recorded path."""


class PathStore:
    """Ordered list of programmed moves.

    Entries are normally Move values; unrecognised strings are kept as-is so
    the replay can skip them.
    """

    def __init__(
        self,
        rng: random.Random,
        on_append: Optional[Callable[[], None]] = None,
    ) -> None:
        self.rng = rng
        self.on_append = on_append
        self._moves: List[Symbol] = []

    def __len__(self) -> int:
        return len(self._moves)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._moves)

    def __getitem__(self, index: int) -> Symbol:
        return self._moves[index]

    def snapshot(self) -> Tuple[Symbol, ...]:
        return tuple(self._moves)

    def append(self, move: Symbol) -> None:
        """Record a move at the end of the path and notify the glitch hook."""
        self._moves.append(Move.from_symbol(move) or move)
        if self.on_append is not None:
            self.on_append()

    def overwrite(self, index: int, move: Optional[Symbol] = None) -> Symbol:
        """Replace the entry at index.

        Without an explicit move a random one is chosen among the moves that
        differ from the current entry, so the edit is always visible.

        Raises:
            IndexOutOfRange: If index is not in [0, len(path)).
        """
        if not 0 <= index < len(self._moves):
            raise IndexOutOfRange(
                f"path index {index} out of range for length {len(self._moves)}"
            )
        if move is None:
            current = self._moves[index]
            choices = [m for m in Move if m != current]
            move = self.rng.choice(choices)
        else:
            move = Move.from_symbol(move) or move
        logger.debug("path[%s]: %s -> %s", index, self._moves[index], move)
        self._moves[index] = move
        return move

    def overwrite_random(self) -> Optional[int]:
        """Overwrite a uniformly chosen index; returns it, or None on an empty path."""
        if not self._moves:
            return None
        index = self.rng.randrange(len(self._moves))
        self.overwrite(index)
        return index

    def clear(self) -> None:
        self._moves.clear()
