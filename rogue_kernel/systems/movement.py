"""Input-adapter contract: turning stick axes into collision-checked movement."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from rogue_kernel.constants import (
    COMBAT_DETECTION_RADIUS,
    INPUT_DEADZONE,
    MOVEMENT_SPEED,
    MOVEMENT_THRESHOLD,
    TILE_SIZE,
)
from rogue_kernel.entities.components import WorldPosition
from rogue_kernel.world.grid import distance, is_walkable, world_to_grid


@dataclass(frozen=True)
class MovementInput:
    """Normalized stick axes in ``[-1, 1]`` and a yaw change in radians."""

    axis_x: float = 0.0
    axis_y: float = 0.0
    rotation_delta: float = 0.0

    @property
    def idle(self) -> bool:
        return self.axis_x == 0.0 and self.axis_y == 0.0 and self.rotation_delta == 0.0


def apply_deadzone(value: float, deadzone: float = INPUT_DEADZONE) -> float:
    return value if abs(value) > deadzone else 0.0


def calculate_movement_delta(
    movement: MovementInput,
    dt: float,
    speed: float = MOVEMENT_SPEED,
    deadzone: float = INPUT_DEADZONE,
) -> Tuple[float, float]:
    """World-space ``(dx, dz)`` for one tick after applying the deadzone."""
    if not math.isfinite(dt) or dt < 0:
        raise ValueError(f"dt must be finite and >= 0, got {dt}")
    x = apply_deadzone(movement.axis_x, deadzone)
    y = apply_deadzone(movement.axis_y, deadzone)
    return x * speed * dt, y * speed * dt


def movement_distance(delta: Tuple[float, float]) -> float:
    return math.hypot(*delta)


def movement_budget(accumulated: float, threshold: float = MOVEMENT_THRESHOLD) -> float:
    """Fraction of the current turn's movement still unspent, in ``[0, 1]``."""
    return max(0.0, (threshold - accumulated) / threshold)


def check_collision(
    new_position: WorldPosition, grid: np.ndarray, tile_size: float = TILE_SIZE
) -> bool:
    """True if ``new_position`` lands on a walkable tile."""
    cell = world_to_grid(new_position.x, new_position.z, tile_size)
    return is_walkable(grid, cell.x, cell.y)


def detect_combat_mode(
    player_position: WorldPosition,
    enemy_positions: Iterable[WorldPosition],
    radius: float = COMBAT_DETECTION_RADIUS,
) -> bool:
    """True if any enemy stands within ``radius`` world units of the player."""
    return any(
        distance(player_position.x, player_position.z, e.x, e.z) <= radius
        for e in enemy_positions
    )
