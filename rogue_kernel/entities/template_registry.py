from __future__ import annotations

"""Registry for enemy and item templates.

Templates are immutable stat blocks loaded from YAML at start-up.  The dungeon
generator reads their spawn depth and weight to build spawn tables; the entity
factory turns them into live actors and items.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Tuple, TypeVar

import structlog

from rogue_kernel.constants import ItemType, StatusType
from rogue_kernel.entities.components import DamageDice
from rogue_kernel.utils.dice import parse_dice

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EnemyTemplate:
    key: str
    name: str
    hp: int
    ac: int
    damage: DamageDice
    xp_value: int
    spawn_depth: int
    spawn_weight: float


@dataclass(frozen=True)
class ItemTemplate:
    key: str
    item_type: ItemType
    name: str
    spawn_depth: int
    spawn_weight: float
    damage: Optional[DamageDice] = None
    attack_bonus: int = 0
    ac_bonus: int = 0
    amount: int = 0
    heal: int = 0
    effect: Optional[StatusType] = None
    effect_duration: int = 0
    effect_magnitude: int = 1
    appearance: str = ""


T = TypeVar("T", EnemyTemplate, ItemTemplate)


def _require(data: Mapping[str, Any], key: str, field_name: str) -> Any:
    if field_name not in data:
        log.error("Template missing field", template=key, field=field_name)
        raise ValueError(f"Template '{key}' is missing required field '{field_name}'")
    return data[field_name]


def _positive_int(key: str, field_name: str, value: Any, allow_zero: bool = False) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Template '{key}': {field_name} must be an integer")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"Template '{key}': {field_name} must be positive, got {value}")
    return value


def _spawn_fields(key: str, data: Mapping[str, Any]) -> Tuple[int, float]:
    depth = _positive_int(key, "spawn_depth", _require(data, key, "spawn_depth"))
    weight = _require(data, key, "spawn_weight")
    if not isinstance(weight, (int, float)) or weight <= 0:
        log.error("Invalid spawn weight", template=key, weight=weight)
        raise ValueError(f"Template '{key}': spawn_weight must be positive")
    return depth, float(weight)


def enemy_template_from_mapping(key: str, data: Mapping[str, Any]) -> EnemyTemplate:
    depth, weight = _spawn_fields(key, data)
    return EnemyTemplate(
        key=key,
        name=str(data.get("name", key.title())),
        hp=_positive_int(key, "hp", _require(data, key, "hp")),
        ac=_positive_int(key, "ac", _require(data, key, "ac"), allow_zero=True),
        damage=parse_dice(_require(data, key, "damage")),
        xp_value=_positive_int(key, "xp_value", data.get("xp_value", 0), allow_zero=True),
        spawn_depth=depth,
        spawn_weight=weight,
    )


def item_template_from_mapping(key: str, data: Mapping[str, Any]) -> ItemTemplate:
    depth, weight = _spawn_fields(key, data)
    try:
        item_type = ItemType(_require(data, key, "item_type"))
        effect = StatusType(data["effect"]) if data.get("effect") else None
    except ValueError as e:
        log.error("Invalid item template", template=key, error=str(e))
        raise ValueError(f"Template '{key}': {e}") from e
    damage = parse_dice(data["damage"]) if data.get("damage") else None
    return ItemTemplate(
        key=key,
        item_type=item_type,
        name=str(data.get("name", key.replace("_", " ").title())),
        spawn_depth=depth,
        spawn_weight=weight,
        damage=damage,
        attack_bonus=int(data.get("attack_bonus", 0)),
        ac_bonus=int(data.get("ac_bonus", 0)),
        amount=int(data.get("amount", 0)),
        heal=int(data.get("heal", 0)),
        effect=effect,
        effect_duration=int(data.get("effect_duration", 0)),
        effect_magnitude=int(data.get("effect_magnitude", 1)),
        appearance=str(data.get("appearance", "")),
    )


class TemplateRegistry(Generic[T]):
    """Ordered, read-only lookup of templates by key.

    Iteration order is the order the templates were declared in, which keeps
    spawn-table weights deterministic.
    """

    def __init__(self, templates: Mapping[str, T]):
        if not templates:
            raise ValueError("TemplateRegistry requires at least one template")
        self._templates: Dict[str, T] = dict(templates)
        log.debug("TemplateRegistry initialized", templates=len(self._templates))

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    def __iter__(self) -> Iterator[T]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def keys(self) -> List[str]:
        return list(self._templates)

    def get(self, key: str) -> T:
        template = self._templates.get(key)
        if template is None:
            log.error("Unknown template key", key=key, known=self.keys())
            raise ValueError(f"Unknown template type: {key!r}")
        return template

    def available_at(self, depth: int) -> List[T]:
        """Templates whose ``spawn_depth`` has been reached at ``depth``."""
        return [t for t in self._templates.values() if depth >= t.spawn_depth]
