from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from grid_generator import GridGenerator
from models import GameState, GlitchConfig, GlitchMessage, ImpactType
from path_store import PathStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlitchEvent:
    is_global: bool
    message: GlitchMessage
    impact: ImpactType
    multiplier: float
    applied: bool
    changed_indices: Tuple[int, ...] = ()


class GlitchEngine:
    """Probability accumulator that corrupts the path, grid or scores.

    Every appended move adds U(0, max_increment) to the accumulator. Crossing
    the threshold fires one glitch and subtracts the threshold, keeping the
    remainder.
    """

    def __init__(
        self,
        cfg: GlitchConfig,
        rng: random.Random,
        path: PathStore,
        generator: GridGenerator,
    ) -> None:
        self.cfg = cfg
        self.rng = rng
        self.path = path
        self.generator = generator
        self.accumulator = 0.0
        self.reset()

    def reset(self) -> None:
        """Re-seed the accumulator with a fresh random value."""
        self.accumulator = self.rng.random() * self.cfg.max_increment

    def multiplier(self, level: int) -> float:
        return self.cfg.multiplier_base ** (max(1, level) - 1)

    def accumulate(self) -> bool:
        """Add one random increment; return True if a glitch is due."""
        self.accumulator += self.rng.random() * self.cfg.max_increment
        if self.accumulator >= self.cfg.threshold:
            self.accumulator -= self.cfg.threshold
            return True
        return False

    def on_path_appended(self, state: GameState) -> Optional[GlitchEvent]:
        if not self.accumulate():
            return None
        return self.fire(state)

    def fire(self, state: GameState) -> GlitchEvent:
        is_global = self.rng.random() < self.cfg.global_chance
        pool = self.cfg.global_messages if is_global else self.cfg.local_messages
        message = self._pick_message(pool)
        # The message is flavor text; it does not steer the impact.
        impact = self.rng.choice(list(ImpactType))
        mult = self.multiplier(state.run.level)

        changed: Tuple[int, ...] = ()
        if impact == ImpactType.PATH:
            changed = self.apply_path_glitch(mult)
            applied = bool(changed)
        elif impact == ImpactType.GRID:
            applied = self.apply_grid_glitch(state, message.base_chance, mult)
        else:
            applied = self.apply_score_glitch(state, message.base_chance, mult)

        event = GlitchEvent(is_global, message, impact, mult, applied, changed)
        logger.info(
            "glitch fired: %s %s impact=%s multiplier=%s applied=%s",
            "global" if is_global else "local",
            message.text,
            impact.value,
            mult,
            applied,
        )
        return event

    def _pick_message(self, pool: Sequence[GlitchMessage]) -> GlitchMessage:
        weights = [m.base_chance for m in pool]
        return self.rng.choices(list(pool), weights=weights, k=1)[0]

    def _rolls(self, base_chance: float, mult: float) -> bool:
        chance = base_chance * mult / 100
        if chance >= 1:
            return True
        return self.rng.random() < chance

    def apply_path_glitch(self, mult: float) -> Tuple[int, ...]:
        """Overwrite floor(mult) random indices, plus one more with p=frac(mult)."""
        if len(self.path) == 0:
            return ()
        whole = math.floor(mult)
        frac = mult - whole
        changed = []
        logger.debug("path glitch: %s overwrites over %s moves", whole, len(self.path))
        for _ in range(whole):
            index = self.path.overwrite_random()
            if index is not None:
                changed.append(index)
        if frac > 0 and self.rng.random() < frac:
            index = self.path.overwrite_random()
            if index is not None:
                changed.append(index)
        return tuple(changed)

    def apply_grid_glitch(self, state: GameState, base_chance: float, mult: float) -> bool:
        if not self._rolls(base_chance, mult):
            return False
        state.install(self.generator.generate(state.run.level))
        return True

    def apply_score_glitch(self, state: GameState, base_chance: float, mult: float) -> bool:
        if not self._rolls(base_chance, mult):
            return False
        state.grid.reroll_scores(self.rng, self.generator.rewards)
        return True
