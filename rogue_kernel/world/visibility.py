"""Radius-based visibility and fog of war.

Visible and explored sets are boolean masks shaped like the tile grid. Walls
do not block sight; a tile is visible when its distance from the viewer,
measured in world units, is within the visibility radius.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Set, TypeVar

import numpy as np
import structlog

from rogue_kernel.constants import TILE_SIZE, VISIBILITY_RADIUS, StatusType
from rogue_kernel.entities.components import Position
from rogue_kernel.systems.status_effects import StatusEffect, effect_magnitude
from rogue_kernel.world.grid import pack_key

log = structlog.get_logger(__name__)

E = TypeVar("E")


class TileVisibility(str, Enum):
    VISIBLE = "visible"
    EXPLORED = "explored"
    HIDDEN = "hidden"


def effective_visibility_radius(
    base_radius: float = VISIBILITY_RADIUS,
    effects: Sequence[StatusEffect] = (),
) -> float:
    """Base radius widened by the magnitude of an active ``sight`` effect."""
    return base_radius + effect_magnitude(effects, StatusType.SIGHT)


def compute_visible_tiles(
    grid: np.ndarray,
    position: Position,
    radius: float = VISIBILITY_RADIUS,
    tile_size: float = TILE_SIZE,
) -> np.ndarray:
    """Boolean mask of tiles within ``radius`` world units of ``position``."""
    if tile_size <= 0:
        raise ValueError(f"tile_size must be positive, got {tile_size}")
    height, width = grid.shape
    ys, xs = np.ogrid[0:height, 0:width]
    dist = np.sqrt((xs - position.x) ** 2 + (ys - position.y) ** 2)
    return dist * tile_size <= radius


def update_explored_tiles(explored: np.ndarray, visible: np.ndarray) -> np.ndarray:
    """Fold ``visible`` into ``explored`` in place. Explored never shrinks."""
    if explored.shape != visible.shape:
        raise ValueError(
            f"Mask shapes differ: explored {explored.shape}, visible {visible.shape}"
        )
    np.logical_or(explored, visible, out=explored)
    return explored


def tile_visibility_state(
    visible: np.ndarray, explored: np.ndarray, x: int, y: int
) -> TileVisibility:
    height, width = visible.shape
    if not (0 <= x < width and 0 <= y < height):
        return TileVisibility.HIDDEN
    if visible[y, x]:
        return TileVisibility.VISIBLE
    if explored[y, x]:
        return TileVisibility.EXPLORED
    return TileVisibility.HIDDEN


def _is_visible(visible: np.ndarray, pos: Position) -> bool:
    height, width = visible.shape
    return 0 <= pos.x < width and 0 <= pos.y < height and bool(visible[pos.y, pos.x])


def filter_visible_entities(entities: Iterable[E], visible: np.ndarray) -> List[E]:
    """Entities (anything with a ``position``) standing on a visible tile."""
    return [e for e in entities if _is_visible(visible, e.position)]


def mask_to_keys(mask: np.ndarray) -> Set[int]:
    """Packed ``(x << 16) | y`` keys of every set cell."""
    ys, xs = np.nonzero(mask)
    return {pack_key(int(x), int(y)) for x, y in zip(xs, ys)}


@dataclass
class FogOfWar:
    """Visible and explored masks for one dungeon level."""

    visible: np.ndarray
    explored: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.explored is None:
            self.explored = np.zeros_like(self.visible, dtype=bool)

    @classmethod
    def for_grid(cls, grid: np.ndarray) -> "FogOfWar":
        return cls(visible=np.zeros(grid.shape, dtype=bool))

    def update(
        self,
        grid: np.ndarray,
        position: Position,
        radius: float,
        tile_size: float = TILE_SIZE,
    ) -> None:
        self.visible = compute_visible_tiles(grid, position, radius, tile_size)
        update_explored_tiles(self.explored, self.visible)

    def state(self, x: int, y: int) -> TileVisibility:
        return tile_visibility_state(self.visible, self.explored, x, y)
