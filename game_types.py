from __future__ import annotations

from typing import NamedTuple, Tuple

Color = Tuple[int, int, int]


class Position(NamedTuple):
    row: int
    col: int
