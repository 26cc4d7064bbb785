# rogue_kernel/__main__.py
"""Headless dungeon preview: generate a level and print it as text."""

import argparse
import logging
import sys
import time
from pathlib import Path

import structlog

from rogue_kernel.config import load_kernel_config
from rogue_kernel.constants import TILE_CHARS, Tile
from rogue_kernel.utils.logging_utils import setup_logging
from rogue_kernel.world.grid import grid_to_text
from rogue_kernel.world.procgen import generate_dungeon

log = structlog.get_logger(__name__)

DEFAULT_SEED = int(time.time() * 1000) & 0xFFFFFFFF


def render_dungeon(dungeon) -> str:
    """Text map with enemies as ``e``, items as ``!`` and the start as ``@``."""
    rows = [list(line) for line in grid_to_text(dungeon.tiles).split("\n")]
    for spawn in dungeon.item_spawns:
        rows[spawn.position.y][spawn.position.x] = "!"
    for spawn in dungeon.enemy_spawns:
        rows[spawn.position.y][spawn.position.x] = "e"
    start = dungeon.player_start
    if rows[start.y][start.x] != TILE_CHARS[Tile.STAIRS_UP]:
        rows[start.y][start.x] = "@"
    return "\n".join("".join(row) for row in rows)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate and print a dungeon level.")
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help=f"Seed for the level (default: time-based, currently {DEFAULT_SEED})",
    )
    parser.add_argument("--depth", type=int, default=1, help="Dungeon depth (>= 1).")
    parser.add_argument("--config", type=Path, default=None, help="Kernel YAML config.")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level",
    )
    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    try:
        config = load_kernel_config(args.config)
        dungeon = generate_dungeon(args.seed, args.depth, config=config)
    except (ValueError, RuntimeError, FileNotFoundError) as e:
        log.error("Dungeon generation failed", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(render_dungeon(dungeon))
    print(
        f"\nseed={dungeon.seed} depth={dungeon.depth} rooms={len(dungeon.rooms)} "
        f"enemies={len(dungeon.enemy_spawns)} items={len(dungeon.item_spawns)}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
