from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Dict, Optional, Tuple

import pygame

from config_io import load_json_config
from config_parsing import parse_game_config
from level_controller import LevelController
from models import GameConfig, Move
from rendering import FrameLayout, GameRenderer

logger = logging.getLogger(__name__)

KEY_MOVES: Dict[int, Move] = {
    pygame.K_UP: Move.UP,
    pygame.K_DOWN: Move.DOWN,
    pygame.K_LEFT: Move.LEFT,
    pygame.K_RIGHT: Move.RIGHT,
}


class Game:
    """pygame front-end: input wiring, clock-driven scheduling and rendering."""

    def __init__(self, cfg_path: Path, seed: Optional[int] = None) -> None:
        self.cfg: GameConfig = parse_game_config(load_json_config(cfg_path))
        rng_seed = seed if seed is not None else self.cfg.seed
        self.controller = LevelController(self.cfg, rng=random.Random(rng_seed))
        self.layout = FrameLayout()

        self._init_pygame()
        self.renderer = GameRenderer(
            self.window_w, self.window_h, self.cfg.window.tile_size, self.cfg.colors
        )

    # ----------------------------
    # Initialization
    # ----------------------------

    def _init_pygame(self) -> None:
        """Initialize pygame and create window + clock."""
        pygame.init()
        win = self.cfg.window
        self.screen = pygame.display.set_mode((win.width, win.height))
        # Capture the actual size in case the platform adjusted it.
        self.window_w, self.window_h = self.screen.get_size()
        pygame.display.set_caption(win.title)
        self.clock = pygame.time.Clock()

    # ----------------------------
    # Events / loop
    # ----------------------------

    def _handle_keydown(self, key: int) -> bool:
        """Handle KEYDOWN events.

        Returns:
            False if the game should exit, True otherwise.
        """
        if key == pygame.K_ESCAPE:
            return False
        if key in KEY_MOVES:
            event = self.controller.path_append(KEY_MOVES[key])
            if event is not None:
                logger.debug("glitch on append: %s", event)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self.controller.execute()
        elif key == pygame.K_r:
            self.controller.reset_game()
        return True

    def _handle_mouse_click(self, pos: Tuple[int, int]) -> None:
        """Clicking a path box edits it; the Execute button starts a run."""
        for index, rect in self.layout.path_boxes:
            if rect.collidepoint(pos):
                self.controller.path_overwrite(index)
                return
        button = self.layout.execute_button
        if button is not None and button.collidepoint(pos):
            self.controller.execute()

    def _handle_events(self) -> bool:
        """Process pygame events.

        Returns:
            False if the game should exit, True otherwise.
        """
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                return False
            if e.type == pygame.KEYDOWN:
                if not self._handle_keydown(e.key):
                    return False
            if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                self._handle_mouse_click(e.pos)
        return True

    def _render(self) -> None:
        c = self.controller
        state = c.state
        self.layout = self.renderer.render_frame(
            screen=self.screen,
            bg=self.cfg.window.bg,
            grid=state.grid,
            player=state.player_position,
            path=c.path.snapshot(),
            run=state.run,
            status=c.replay.status,
            reason=c.replay.stop_reason,
            global_glitch=state.global_glitch,
            local_glitch=state.local_glitch,
        )

    def run(self) -> None:
        """Run the main game loop."""
        running = True
        while running:
            dt_ms = self.clock.tick(self.cfg.window.fps)
            running = self._handle_events()
            self.controller.scheduler.advance(dt_ms)
            self._render()

        self.controller.scheduler.cancel_all()
        pygame.quit()
