from __future__ import annotations

from typing import Any, Dict, Optional

from models import (
    GameConfig,
    GlitchConfig,
    GridConfig,
    ObstacleConfig,
    ScoringConfig,
    TileColors,
    TimingConfig,
    WindowConfig,
)
from utils import as_color, as_int, clamp_int, deep_get


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    raw = cfg.get(name, {})
    return raw if isinstance(raw, dict) else {}


def parse_window_config(cfg: Dict[str, Any]) -> WindowConfig:
    """Parse window settings from config data.

    Args:
        cfg: Full config dict (reads the "window" section).

    Returns:
        WindowConfig with defaults applied.
    """
    d = WindowConfig()
    title_raw = deep_get(cfg, "window.title", d.title)
    title = title_raw.strip() if isinstance(title_raw, str) and title_raw.strip() else d.title
    return WindowConfig(
        width=clamp_int(as_int(deep_get(cfg, "window.width", d.width), d.width), 320, 4096),
        height=clamp_int(as_int(deep_get(cfg, "window.height", d.height), d.height), 240, 4096),
        title=title,
        tile_size=clamp_int(
            as_int(deep_get(cfg, "window.tile_size", d.tile_size), d.tile_size), 12, 128
        ),
        bg=as_color(deep_get(cfg, "window.bg", None), d.bg),
        fps=clamp_int(as_int(deep_get(cfg, "window.fps", d.fps), d.fps), 10, 240),
    )


def _parse_seed(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def parse_game_config(cfg: Dict[str, Any]) -> GameConfig:
    """Parse the whole game config, falling back to defaults per section."""
    if not isinstance(cfg, dict):
        cfg = {}
    return GameConfig(
        grid=GridConfig.from_dict(_section(cfg, "grid")),
        obstacles=ObstacleConfig.from_dict(_section(cfg, "obstacles")),
        glitch=GlitchConfig.from_dict(_section(cfg, "glitch")),
        timing=TimingConfig.from_dict(_section(cfg, "timing")),
        scoring=ScoringConfig.from_dict(_section(cfg, "scoring")),
        window=parse_window_config(cfg),
        colors=TileColors.from_dict(_section(cfg, "colors")),
        seed=_parse_seed(cfg.get("seed")),
    )
