"""Configuration loading for the dungeon kernel.

``KernelConfig`` holds every tunable number the simulation reads.  Defaults
reproduce the stock game; a YAML file can override any subset of them.  Enemy
and item templates ship as package data and are loaded through the same YAML
path.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog
import yaml

from rogue_kernel import constants as C
from rogue_kernel.entities.template_registry import (
    EnemyTemplate,
    ItemTemplate,
    TemplateRegistry,
    enemy_template_from_mapping,
    item_template_from_mapping,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class KernelConfig:
    tile_size: float = C.TILE_SIZE
    visibility_radius: float = C.VISIBILITY_RADIUS
    combat_detection_radius: float = C.COMBAT_DETECTION_RADIUS
    movement_threshold: float = C.MOVEMENT_THRESHOLD
    movement_speed: float = C.MOVEMENT_SPEED
    input_deadzone: float = C.INPUT_DEADZONE
    hunger_rate: int = C.HUNGER_RATE
    starting_hunger: int = C.STARTING_HUNGER
    starting_hp: int = C.STARTING_HP
    player_base_ac: int = C.PLAYER_BASE_AC
    xp_per_level: int = C.XP_PER_LEVEL
    xp_multiplier: float = C.XP_MULTIPLIER
    level_up_hp: int = C.LEVEL_UP_HP
    level_up_attack: int = C.LEVEL_UP_ATTACK
    dungeon_width: int = C.DUNGEON_WIDTH
    dungeon_height: int = C.DUNGEON_HEIGHT
    min_rooms: int = C.MIN_ROOMS
    max_rooms: int = C.MAX_ROOMS
    min_room_size: int = C.MIN_ROOM_SIZE
    max_room_size: int = C.MAX_ROOM_SIZE
    enemy_scale_factor: float = C.ENEMY_SCALE_FACTOR
    min_items: int = C.MIN_ITEMS
    max_items: int = C.MAX_ITEMS
    room_attempt_budget: int = C.ROOM_ATTEMPT_BUDGET
    spawn_attempt_budget: int = C.SPAWN_ATTEMPT_BUDGET

    def __post_init__(self) -> None:
        errors = []
        for name in (
            "tile_size",
            "movement_threshold",
            "movement_speed",
            "dungeon_width",
            "dungeon_height",
            "min_rooms",
            "min_room_size",
            "room_attempt_budget",
            "spawn_attempt_budget",
            "starting_hp",
            "starting_hunger",
            "xp_per_level",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                errors.append(f"{name} must be positive, got {value}")
        for name in ("visibility_radius", "combat_detection_radius", "hunger_rate",
                     "enemy_scale_factor", "min_items"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                errors.append(f"{name} must be non-negative, got {value}")
        if not 0.0 <= self.input_deadzone < 1.0:
            errors.append(f"input_deadzone must be in [0, 1), got {self.input_deadzone}")
        if self.xp_multiplier < 1.0:
            errors.append(f"xp_multiplier must be >= 1, got {self.xp_multiplier}")
        if self.min_rooms > self.max_rooms:
            errors.append("min_rooms must not exceed max_rooms")
        # Spawns are placed inside a room's one-tile inner margin.
        if self.min_room_size < 3:
            errors.append(f"min_room_size must be at least 3, got {self.min_room_size}")
        if self.min_room_size > self.max_room_size:
            errors.append("min_room_size must not exceed max_room_size")
        if self.min_items > self.max_items:
            errors.append("min_items must not exceed max_items")
        # Rooms need a one-tile wall border on each side.
        if self.max_room_size + 2 > min(self.dungeon_width, self.dungeon_height):
            errors.append(
                "dungeon dimensions too small for max_room_size "
                f"({self.dungeon_width}x{self.dungeon_height}, rooms up to {self.max_room_size})"
            )
        if errors:
            log.error("Invalid kernel configuration", errors=errors)
            raise ValueError("Invalid kernel configuration: " + "; ".join(errors))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "KernelConfig":
        """Build a config from a mapping, rejecting keys it does not know."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            log.error("Unknown configuration keys", keys=unknown)
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**dict(data))

    def with_overrides(self, **overrides: Any) -> "KernelConfig":
        return KernelConfig.from_mapping({**dataclasses.asdict(self), **overrides})


def load_yaml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a generic YAML configuration file."""
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(f"{config_name} configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(
            f"Error parsing YAML for {config_name}",
            path=str(config_path),
            error=str(e),
            exc_info=True,
        )
        raise
    if config_data is None:
        log.warning(f"{config_name} config file is empty.", path=str(config_path))
        return {}
    if not isinstance(config_data, dict):
        log.error(f"{config_name} config is not a mapping", path=str(config_path))
        raise ValueError(f"{config_name} configuration must be a mapping: {config_path}")
    log.info(f"{config_name} config loaded", path=str(config_path))
    return config_data


def load_kernel_config(
    path: Optional[Path] = None, overrides: Optional[Mapping[str, Any]] = None
) -> KernelConfig:
    """Load kernel settings from ``path`` (a ``kernel:`` section is optional)."""
    data: Dict[str, Any] = {}
    if path is not None:
        raw = load_yaml_config(Path(path), "Kernel")
        data = dict(raw.get("kernel", raw)) if raw else {}
    if overrides:
        data.update(overrides)
    return KernelConfig.from_mapping(data)


def _load_package_yaml(filename: str, config_name: str) -> Dict[str, Any]:
    resource = resources.files("rogue_kernel") / "data" / filename
    with resources.as_file(resource) as path:
        return load_yaml_config(Path(path), config_name)


def load_enemy_templates(path: Optional[Path] = None) -> TemplateRegistry[EnemyTemplate]:
    raw = (
        load_yaml_config(Path(path), "Enemy templates")
        if path is not None
        else _load_package_yaml("enemies.yaml", "Enemy templates")
    )
    return TemplateRegistry(
        {key: enemy_template_from_mapping(key, data) for key, data in raw.items()}
    )


def load_item_templates(path: Optional[Path] = None) -> TemplateRegistry[ItemTemplate]:
    raw = (
        load_yaml_config(Path(path), "Item templates")
        if path is not None
        else _load_package_yaml("items.yaml", "Item templates")
    )
    return TemplateRegistry(
        {key: item_template_from_mapping(key, data) for key, data in raw.items()}
    )
