# rogue_kernel/world/procgen.py
"""Seeded room-and-corridor dungeon generation.

``generate_dungeon`` is a pure function of (seed, depth, config, templates):
the same inputs always produce the same tiles, rooms and spawn tables.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

import numpy as np
import structlog

from rogue_kernel.config import KernelConfig, load_enemy_templates, load_item_templates
from rogue_kernel.constants import Tile
from rogue_kernel.entities.components import Position, SpawnDescriptor
from rogue_kernel.entities.template_registry import (
    EnemyTemplate,
    ItemTemplate,
    TemplateRegistry,
)
from rogue_kernel.rng import GameRNG
from rogue_kernel.world.grid import create_grid

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Room:
    """Axis-aligned rectangle of floor. ``(x, y)`` is the top-left tile."""

    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width - 1

    @property
    def y2(self) -> int:
        return self.y + self.height - 1

    @property
    def center(self) -> Position:
        return Position(self.x + self.width // 2, self.y + self.height // 2)

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x <= self.x2 and self.y <= y <= self.y2

    def intersects(self, other: "Room") -> bool:
        """True if the rooms overlap or touch.

        Edges are compared one tile past each room, so two accepted rooms
        always have at least one wall tile between them.
        """
        return (
            self.x <= other.x + other.width
            and self.x + self.width >= other.x
            and self.y <= other.y + other.height
            and self.y + self.height >= other.y
        )

    def carve(self, tiles: np.ndarray) -> None:
        tiles[self.y : self.y + self.height, self.x : self.x + self.width] = Tile.FLOOR


@dataclass(frozen=True)
class Dungeon:
    tiles: np.ndarray
    rooms: Tuple[Room, ...]
    stairs_position: Position
    player_start: Position
    enemy_spawns: Tuple[SpawnDescriptor, ...]
    item_spawns: Tuple[SpawnDescriptor, ...]
    seed: int
    depth: int

    @property
    def width(self) -> int:
        return int(self.tiles.shape[1])

    @property
    def height(self) -> int:
        return int(self.tiles.shape[0])


def _carve_corridor(tiles: np.ndarray, start: Position, end: Position, rng: GameRNG) -> None:
    """Carve an L-shaped corridor from ``start`` to ``end``."""
    x, y = start
    horizontal_first = rng.coin_flip()
    legs = ("x", "y") if horizontal_first else ("y", "x")
    for axis in legs:
        if axis == "x":
            while x != end.x:
                tiles[y, x] = Tile.FLOOR
                x += 1 if x < end.x else -1
        else:
            while y != end.y:
                tiles[y, x] = Tile.FLOOR
                y += 1 if y < end.y else -1
    tiles[y, x] = Tile.FLOOR


def _place_rooms(tiles: np.ndarray, cfg: KernelConfig, rng: GameRNG) -> List[Room]:
    height, width = tiles.shape
    target = rng.next_int(cfg.min_rooms, cfg.max_rooms)
    rooms: List[Room] = []
    attempts = 0
    while len(rooms) < target and attempts < cfg.room_attempt_budget:
        attempts += 1
        room_w = rng.next_int(cfg.min_room_size, cfg.max_room_size)
        room_h = rng.next_int(cfg.min_room_size, cfg.max_room_size)
        room = Room(
            rng.next_int(1, width - room_w - 1),
            rng.next_int(1, height - room_h - 1),
            room_w,
            room_h,
        )
        if any(room.intersects(other) for other in rooms):
            continue
        room.carve(tiles)
        if rooms:
            _carve_corridor(tiles, rooms[-1].center, room.center, rng)
        rooms.append(room)

    if len(rooms) < target:
        log.warning(
            "Room attempt budget exhausted before target",
            target=target,
            placed=len(rooms),
            attempts=attempts,
        )
    log.debug("Rooms placed", count=len(rooms), attempts=attempts)
    return rooms


def _spawn_table(registry: TemplateRegistry, depth: int) -> list:
    available = registry.available_at(depth)
    if available:
        return available
    # Nothing unlocked yet: fall back to the shallowest template.
    return [min(registry, key=lambda t: t.spawn_depth)]


def _generate_spawns(
    kind: str,
    count: int,
    spawn_rooms: Sequence[Room],
    table: Sequence,
    depth: int,
    tiles: np.ndarray,
    occupied: Set[Tuple[int, int]],
    cfg: KernelConfig,
    rng: GameRNG,
) -> List[SpawnDescriptor]:
    spawns: List[SpawnDescriptor] = []
    if not spawn_rooms or count <= 0:
        return spawns
    weights = [t.spawn_weight for t in table]
    for _ in range(count):
        position: Optional[Position] = None
        for _attempt in range(cfg.spawn_attempt_budget):
            room = rng.choice(spawn_rooms)
            candidate = Position(
                rng.next_int(room.x + 1, room.x + room.width - 2),
                rng.next_int(room.y + 1, room.y + room.height - 2),
            )
            if tiles[candidate.y, candidate.x] == Tile.FLOOR and (
                (candidate.x, candidate.y) not in occupied
            ):
                position = candidate
                break
        if position is None:
            log.debug("Skipping spawn, no free tile found", kind=kind)
            continue
        template = rng.weighted_choice(table, weights)
        occupied.add((position.x, position.y))
        spawns.append(SpawnDescriptor(kind, template.key, position, depth))
    return spawns


def player_start_position(dungeon: Dungeon) -> Position:
    """Center of the first room, or ``(1, 1)`` for a roomless dungeon."""
    if not dungeon.rooms:
        return Position(1, 1)
    return dungeon.rooms[0].center


def generate_dungeon(
    seed: int,
    depth: int = 1,
    width: Optional[int] = None,
    height: Optional[int] = None,
    config: Optional[KernelConfig] = None,
    enemy_templates: Optional[TemplateRegistry[EnemyTemplate]] = None,
    item_templates: Optional[TemplateRegistry[ItemTemplate]] = None,
) -> Dungeon:
    """Build one dungeon level.

    Rooms are sampled until the target count is reached or the attempt budget
    runs out; each accepted room is joined to the previous one by an L-shaped
    corridor. The descent stairs sit at the center of the last room, and at
    depth > 1 the up stairs sit at the center of the first. Enemy and item
    spawns are drawn from rooms other than the first and last.

    Raises ``ValueError`` for invalid depth or dimensions and ``RuntimeError``
    if no room could be placed.
    """
    cfg = config or KernelConfig()
    if width is not None or height is not None:
        cfg = cfg.with_overrides(
            dungeon_width=width if width is not None else cfg.dungeon_width,
            dungeon_height=height if height is not None else cfg.dungeon_height,
        )
    if depth < 1:
        log.error("Invalid dungeon depth", depth=depth)
        raise ValueError(f"Dungeon depth must be >= 1, got {depth}")

    enemy_templates = enemy_templates or load_enemy_templates()
    item_templates = item_templates or load_item_templates()

    log.info(
        "Starting dungeon generation",
        seed=seed,
        depth=depth,
        width=cfg.dungeon_width,
        height=cfg.dungeon_height,
    )
    rng = GameRNG(seed)
    tiles = create_grid(cfg.dungeon_width, cfg.dungeon_height)

    rooms = _place_rooms(tiles, cfg, rng)
    if not rooms:
        log.error("Dungeon generation failed to create any rooms!", seed=seed)
        raise RuntimeError(f"Dungeon generation failed to create any rooms (seed={seed})")

    stairs = rooms[-1].center
    tiles[stairs.y, stairs.x] = Tile.STAIRS_DOWN
    start = rooms[0].center
    if depth > 1 and len(rooms) > 1:
        tiles[start.y, start.x] = Tile.STAIRS_UP

    spawn_rooms = rooms[1:-1]
    occupied: Set[Tuple[int, int]] = {(stairs.x, stairs.y), (start.x, start.y)}
    enemy_spawns = _generate_spawns(
        "enemy",
        int(depth * cfg.enemy_scale_factor),
        spawn_rooms,
        _spawn_table(enemy_templates, depth),
        depth,
        tiles,
        occupied,
        cfg,
        rng,
    )
    item_count = rng.next_int(cfg.min_items, cfg.max_items) if spawn_rooms else 0
    item_spawns = _generate_spawns(
        "item",
        item_count,
        spawn_rooms,
        _spawn_table(item_templates, depth),
        depth,
        tiles,
        occupied,
        cfg,
        rng,
    )

    tiles.flags.writeable = False
    dungeon = Dungeon(
        tiles=tiles,
        rooms=tuple(rooms),
        stairs_position=stairs,
        player_start=start,
        enemy_spawns=tuple(enemy_spawns),
        item_spawns=tuple(item_spawns),
        seed=seed,
        depth=depth,
    )
    log.info(
        "Dungeon generation complete",
        seed=seed,
        depth=depth,
        rooms=len(rooms),
        enemies=len(enemy_spawns),
        items=len(item_spawns),
        stairs=tuple(stairs),
    )
    return dungeon
