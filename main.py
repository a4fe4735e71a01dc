from __future__ import annotations

import argparse
import logging
from pathlib import Path


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Play Avatared.")
    p.add_argument(
        "config",
        nargs="?",
        default="config.json",
        help="Game config file (default: config.json)",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed for reproducible grids and glitches.",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    return p.parse_args()


def main() -> None:
    """Entrypoint for running the game from the command line."""
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    from game import Game  # local import keeps module load side effects minimal

    Game(Path(args.config), seed=args.seed).run()


if __name__ == "__main__":
    main()
