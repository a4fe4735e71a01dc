from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import pygame

from game_types import Color, Position
from models import Grid, ReplayStatus, RunState, StopReason, Symbol, TileColors, TileKind

MAX_PER_ROW = 10
PATH_BOX_SIZE = 34
PATH_BOX_GAP = 5
SIDE_PANEL_W = 250
MARGIN = 20

STATUS_LABELS = {
    StopReason.COMPLETED: "Reached the end!",
    StopReason.LEVEL_ADVANCE: "Level up!",
    StopReason.HIT_OBSTACLE: "Hit an obstacle",
    StopReason.EXHAUSTED_PATH: "Path ran out",
}


@dataclass
class FrameLayout:
    """Clickable screen regions produced by the last rendered frame."""

    path_boxes: List[Tuple[int, pygame.Rect]] = field(default_factory=list)
    execute_button: Optional[pygame.Rect] = None


def path_rows(path: Sequence[Symbol]) -> List[List[Tuple[int, str]]]:
    """Split the path into rows of (index, glyph); an empty path shows one blank box."""
    if not path:
        return [[(-1, " ")]]
    glyphs = [(i, getattr(s, "value", str(s))) for i, s in enumerate(path)]
    return [glyphs[i : i + MAX_PER_ROW] for i in range(0, len(glyphs), MAX_PER_ROW)]


def _draw_text_lines(
    surf: pygame.Surface,
    font: pygame.font.Font,
    lines: Sequence[str],
    x: int,
    y: int,
    color: Color = (255, 255, 255),
) -> int:
    for line in lines:
        surf.blit(font.render(line, True, color), (x, y))
        y += font.get_height() + 6
    return y


def draw_path(
    surf: pygame.Surface,
    font: pygame.font.Font,
    path: Sequence[Symbol],
    center_x: int,
    top: int,
    highlight: Optional[int],
) -> Tuple[List[Tuple[int, pygame.Rect]], int]:
    """Draw the programmed path as rows of boxes.

    Returns:
        ([(index, rect), ...] for clickable boxes, bottom y of the block)
    """
    boxes: List[Tuple[int, pygame.Rect]] = []
    y = top
    for row in path_rows(path):
        row_w = len(row) * PATH_BOX_SIZE + (len(row) - 1) * PATH_BOX_GAP
        x = center_x - row_w // 2
        for index, glyph in row:
            rect = pygame.Rect(x, y, PATH_BOX_SIZE, PATH_BOX_SIZE)
            fill = (70, 70, 120) if index == highlight else (40, 40, 40)
            pygame.draw.rect(surf, fill, rect, border_radius=4)
            pygame.draw.rect(surf, (200, 200, 200), rect, width=1, border_radius=4)
            text = font.render(glyph, True, (255, 255, 255))
            surf.blit(text, text.get_rect(center=rect.center))
            if index >= 0:
                boxes.append((index, rect))
            x += PATH_BOX_SIZE + PATH_BOX_GAP
        y += PATH_BOX_SIZE + PATH_BOX_GAP
    return boxes, y


def draw_grid(
    surf: pygame.Surface,
    grid: Grid,
    colors: TileColors,
    origin: Tuple[int, int],
    tile_size: int,
    player: Optional[Position],
    score_font: pygame.font.Font,
) -> pygame.Rect:
    """Draw tiles, scores and the avatar. Returns the grid's screen rect."""
    ox, oy = origin
    for row in range(grid.size):
        for col in range(grid.size):
            tile = grid.tile(row, col)
            rect = pygame.Rect(ox + col * tile_size, oy + row * tile_size, tile_size, tile_size)
            is_player = player is not None and player == (row, col)
            fill = colors.player if is_player else colors.for_kind(tile.kind)
            pygame.draw.rect(surf, fill, rect)
            pygame.draw.rect(surf, colors.border, rect, width=1)

            if is_player:
                pygame.draw.circle(surf, (255, 255, 255), rect.center, max(3, tile_size // 4))
            elif tile.kind == TileKind.EMPTY and tile.score > 0:
                text = score_font.render(str(tile.score), True, (150, 150, 150))
                surf.blit(text, text.get_rect(center=rect.center))
    return pygame.Rect(ox, oy, grid.size * tile_size, grid.size * tile_size)


def draw_execute_button(
    surf: pygame.Surface, font: pygame.font.Font, center_x: int, top: int, enabled: bool
) -> pygame.Rect:
    rect = pygame.Rect(0, 0, 160, 44)
    rect.centerx = center_x
    rect.top = top
    pygame.draw.rect(surf, (30, 120, 60) if enabled else (60, 60, 60), rect, border_radius=8)
    text = font.render("Execute", True, (255, 255, 255))
    surf.blit(text, text.get_rect(center=rect.center))
    return rect


def draw_glitch_banner(
    surf: pygame.Surface, font: pygame.font.Font, message: str, area: pygame.Rect
) -> None:
    """Draw a translucent red overlay with the glitch message centered in area."""
    overlay = pygame.Surface((area.w, area.h), pygame.SRCALPHA)
    overlay.fill((120, 0, 0, 170))
    surf.blit(overlay, area.topleft)
    pygame.draw.rect(surf, (255, 60, 60), area, width=2)
    text = font.render(message, True, (255, 255, 255))
    surf.blit(text, text.get_rect(center=area.center))


def status_label(status: ReplayStatus, reason: Optional[StopReason]) -> str:
    if status == ReplayStatus.RUNNING:
        return "Executing..."
    if status == ReplayStatus.STOPPED and reason is not None:
        return STATUS_LABELS[reason]
    return "Ready"


class GameRenderer:
    """Renderer that centralizes fonts and the screen layout."""

    def __init__(self, window_w: int, window_h: int, tile_size: int, colors: TileColors) -> None:
        self.window_w = window_w
        self.window_h = window_h
        self.tile_size = tile_size
        self.colors = colors
        self.title_font = pygame.font.SysFont("monospace", 32, bold=True)
        self.font = pygame.font.SysFont("monospace", 18)
        self.glyph_font = pygame.font.SysFont("dejavusans", 20)
        self.score_font = pygame.font.SysFont("monospace", max(10, tile_size // 3))
        self.banner_font = pygame.font.SysFont("monospace", 26, bold=True)

    def render_frame(
        self,
        screen: pygame.Surface,
        bg: Color,
        grid: Grid,
        player: Optional[Position],
        path: Sequence[Symbol],
        run: RunState,
        status: ReplayStatus,
        reason: Optional[StopReason],
        global_glitch: Optional[str],
        local_glitch: Optional[str],
    ) -> FrameLayout:
        """Render and present a full frame."""
        screen.fill(bg)
        center_x = self.window_w // 2

        _draw_text_lines(
            screen,
            self.font,
            [
                "Instructions",
                "Arrows: program moves",
                "Enter: execute",
                "Click a box: edit",
                "R: restart  Esc: quit",
                "",
                "Watch out - something",
                "may change...",
            ],
            MARGIN,
            MARGIN,
        )

        title = self.title_font.render("Avatared", True, (255, 255, 255))
        screen.blit(title, title.get_rect(midtop=(center_x, MARGIN)))

        highlight = run.current_step_index if run.is_executing else None
        boxes, path_bottom = draw_path(
            screen, self.glyph_font, path, center_x, MARGIN + 50, highlight
        )

        grid_px = grid.size * self.tile_size
        grid_rect = draw_grid(
            screen,
            grid,
            self.colors,
            (center_x - grid_px // 2, path_bottom + 15),
            self.tile_size,
            player,
            self.score_font,
        )
        button = draw_execute_button(
            screen, self.font, center_x, grid_rect.bottom + 20, not run.is_executing
        )

        _draw_text_lines(
            screen,
            self.font,
            [
                "Status",
                f"Level: {run.level}",
                f"Score: {run.score}",
                f"Current Steps: {len(path)}",
                f"Path Index: {run.current_step_index}",
                status_label(status, reason),
            ],
            self.window_w - SIDE_PANEL_W + MARGIN,
            MARGIN,
        )

        if local_glitch:
            draw_glitch_banner(screen, self.banner_font, local_glitch, grid_rect)
        if global_glitch:
            draw_glitch_banner(
                screen, self.banner_font, global_glitch, screen.get_rect()
            )

        pygame.display.flip()
        return FrameLayout(path_boxes=boxes, execute_button=button)
