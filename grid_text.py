from __future__ import annotations

from typing import Dict, List, Tuple

from models import GeneratedGrid, Grid, Tile, TileKind

KIND_TO_CHAR: Dict[TileKind, str] = {
    TileKind.START: "S",
    TileKind.END: "E",
    TileKind.OBSTACLE: "#",
    TileKind.PATH: "*",
    TileKind.EMPTY: ".",
}
CHAR_TO_KIND: Dict[str, TileKind] = {ch: kind for kind, ch in KIND_TO_CHAR.items()}


def normalize_grid_lines(lines: List[str], pad_char: str = ".") -> Tuple[List[str], int]:
    """Normalize grid lines into a square block.

    Args:
        lines: Raw grid lines (blank lines are dropped).
        pad_char: Character to pad short lines with.

    Returns:
        (normalized_lines, size)

    Raises:
        ValueError: If no lines are provided or a line is wider than the row count.
    """
    rows = [line.rstrip() for line in lines if line.strip()]
    if not rows:
        raise ValueError("Grid map is empty.")
    size = len(rows)
    if max(len(row) for row in rows) > size:
        raise ValueError(f"Grid map is not square: {size} rows but a wider line.")
    return [row.ljust(size, pad_char) for row in rows], size


def build_grid_from_lines(lines: List[str], empty_score: int = 0) -> GeneratedGrid:
    """Build a grid from text rows (S start, E end, # obstacle, * path, . empty).

    Raises:
        ValueError: On unknown characters, or unless there is exactly one S in the
            bottom row and one E in the top row.
    """
    rows, size = normalize_grid_lines(lines)
    tiles: List[List[Tile]] = []
    for r, line in enumerate(rows):
        row: List[Tile] = []
        for c, ch in enumerate(line):
            kind = CHAR_TO_KIND.get(ch)
            if kind is None:
                raise ValueError(f"Unknown tile '{ch}' at row {r}, col {c}.")
            row.append(Tile(kind, empty_score if kind == TileKind.EMPTY else 0))
        tiles.append(row)

    grid = Grid(tiles)
    starts = grid.find(TileKind.START)
    ends = grid.find(TileKind.END)
    if len(starts) != 1 or starts[0].row != size - 1:
        raise ValueError("Grid map needs exactly one S, placed in the bottom row.")
    if len(ends) != 1 or ends[0].row != 0:
        raise ValueError("Grid map needs exactly one E, placed in the top row.")
    return GeneratedGrid(grid, starts[0].col, ends[0].col, attempts=0, valid=True)


def grid_to_lines(grid: Grid) -> List[str]:
    return ["".join(KIND_TO_CHAR[t.kind] for t in row) for row in grid.tiles]
