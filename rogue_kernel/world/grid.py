# rogue_kernel/world/grid.py
"""Tile grids, coordinate conversion and spatial helpers.

Grids are ``uint8`` numpy arrays of :class:`~rogue_kernel.constants.Tile`
values with shape ``(height, width)``, indexed ``grid[y, x]``.
"""

import math
from typing import List, Tuple

import numpy as np
import structlog

from rogue_kernel.constants import CHAR_TILES, TILE_CHARS, TILE_SIZE, Tile
from rogue_kernel.entities.components import Position, WorldPosition

log = structlog.get_logger(__name__)

WALKABLE_TILES = (Tile.FLOOR, Tile.DOOR, Tile.STAIRS_DOWN, Tile.STAIRS_UP)
# Neighbour order is fixed so path tie-breaking is reproducible.
CARDINAL_OFFSETS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
EIGHT_WAY_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)


def create_grid(width: int, height: int, fill: Tile = Tile.WALL) -> np.ndarray:
    """Allocate a ``(height, width)`` grid filled with ``fill``."""
    if width <= 0 or height <= 0:
        log.error("Invalid grid dimensions", width=width, height=height)
        raise ValueError("Grid width and height must be positive integers.")
    return np.full((height, width), fill_value=int(fill), dtype=np.uint8, order="C")


def _check_tile_size(tile_size: float) -> None:
    if not math.isfinite(tile_size) or tile_size <= 0:
        log.error("Invalid tile size", tile_size=tile_size)
        raise ValueError(f"tile_size must be a positive finite number, got {tile_size}")


def world_to_grid(x: float, z: float, tile_size: float = TILE_SIZE) -> Position:
    _check_tile_size(tile_size)
    if not (math.isfinite(x) and math.isfinite(z)):
        log.error("Non-finite world coordinate", x=x, z=z)
        raise ValueError(f"World coordinates must be finite, got ({x}, {z})")
    return Position(math.floor(x / tile_size), math.floor(z / tile_size))


def grid_to_world(gx: int, gy: int, tile_size: float = TILE_SIZE) -> WorldPosition:
    """World coordinate of the center of tile ``(gx, gy)``."""
    _check_tile_size(tile_size)
    half = tile_size / 2
    return WorldPosition(gx * tile_size + half, gy * tile_size + half)


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def manhattan_distance(x1: int, y1: int, x2: int, y2: int) -> int:
    return abs(x2 - x1) + abs(y2 - y1)


def adjacent_positions(x: int, y: int) -> List[Position]:
    """The four orthogonal neighbours of ``(x, y)``, in +x, -x, +y, -y order."""
    return [Position(x + dx, y + dy) for dx, dy in CARDINAL_OFFSETS]


def tiles_in_radius(cx: int, cy: int, radius: int) -> List[Position]:
    r2 = radius * radius
    return [
        Position(cx + dx, cy + dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
        if dx * dx + dy * dy <= r2
    ]


def in_bounds(grid: np.ndarray, x: int, y: int) -> bool:
    height, width = grid.shape
    return 0 <= x < width and 0 <= y < height


def is_walkable(grid: np.ndarray, x: int, y: int) -> bool:
    """True for floor, door and stairs tiles inside the grid."""
    if grid is None or grid.size == 0 or not in_bounds(grid, x, y):
        return False
    return int(grid[y, x]) in WALKABLE_TILES


def walkable_mask(grid: np.ndarray) -> np.ndarray:
    return np.isin(grid, np.asarray(WALKABLE_TILES, dtype=np.uint8))


def pack_key(x: int, y: int) -> int:
    """Pack a coordinate into one int as ``(x << 16) | y``."""
    if not (0 <= x < 0x10000 and 0 <= y < 0x10000):
        raise ValueError(f"Coordinate out of packable range: ({x}, {y})")
    return (x << 16) | y


def unpack_key(key: int) -> Position:
    return Position(key >> 16, key & 0xFFFF)


def grid_to_text(grid: np.ndarray) -> str:
    """Render one character per tile, one line per row."""
    return "\n".join("".join(TILE_CHARS[Tile(int(t))] for t in row) for row in grid)


def grid_from_text(text: str) -> np.ndarray:
    """Inverse of :func:`grid_to_text`.

    Raises ``ValueError`` on unknown characters, ragged rows or empty input.
    """
    rows = [line for line in text.strip("\n").split("\n")]
    if not rows or not rows[0]:
        raise ValueError("Cannot build a grid from empty text")
    width = len(rows[0])
    grid = create_grid(width, len(rows))
    for y, row in enumerate(rows):
        if len(row) != width:
            log.error("Ragged grid text", row=y, expected=width, got=len(row))
            raise ValueError(f"Row {y} has {len(row)} tiles, expected {width}")
        for x, char in enumerate(row):
            tile = CHAR_TILES.get(char)
            if tile is None:
                raise ValueError(f"Unknown tile character {char!r} at ({x}, {y})")
            grid[y, x] = int(tile)
    return grid
