from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from rogue_kernel import constants as C
from rogue_kernel.constants import ItemType, StatusType

if TYPE_CHECKING:
    from rogue_kernel.systems.status_effects import StatusEffect


@dataclass(frozen=True)
class Position:
    """Integer grid coordinate. ``x`` is the column, ``y`` the row."""

    x: int
    y: int

    def __iter__(self):
        yield self.x
        yield self.y

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class WorldPosition:
    """Continuous coordinate on the ground plane."""

    x: float
    z: float

    def __iter__(self):
        yield self.x
        yield self.z


@dataclass(frozen=True)
class DamageDice:
    count: int
    sides: int
    bonus: int = 0

    def __str__(self) -> str:
        if self.bonus:
            return f"{self.count}d{self.sides}{self.bonus:+d}"
        return f"{self.count}d{self.sides}"


@dataclass(frozen=True)
class SpawnDescriptor:
    """A generator decision: put an entity of ``type_key`` at ``position``."""

    kind: str  # "enemy" or "item"
    type_key: str
    position: Position
    depth: int


@dataclass
class Item:
    item_type: ItemType
    name: str
    type_key: str = ""
    position: Optional[Position] = None
    damage: Optional[DamageDice] = None
    attack_bonus: int = 0
    ac_bonus: int = 0
    amount: int = 0
    heal: int = 0
    effect: Optional[StatusType] = None
    effect_duration: int = 0
    effect_magnitude: int = 1
    appearance: str = ""
    identified: bool = True

    @property
    def display_name(self) -> str:
        if self.identified or self.item_type in (
            ItemType.WEAPON,
            ItemType.ARMOR,
            ItemType.GOLD,
        ):
            return self.name
        return self.appearance or self.name


@dataclass
class Actor:
    """A combatant on the grid.

    ``hp`` stays within ``[0, max_hp]`` and ``alive`` is true exactly while
    ``hp > 0``; use :meth:`apply_damage` and :meth:`heal` rather than writing
    ``hp`` directly.
    """

    name: str
    type_key: str
    hp: int
    max_hp: int
    ac: int
    attack_bonus: int
    damage: DamageDice
    position: Position
    xp_value: int = 0
    alive: bool = True
    status_effects: List["StatusEffect"] = field(default_factory=list)
    last_action: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_hp <= 0:
            raise ValueError(f"{self.name}: max_hp must be positive, got {self.max_hp}")
        self.hp = max(0, min(self.hp, self.max_hp))
        self.alive = self.hp > 0

    def apply_damage(self, amount: int) -> int:
        """Subtract ``amount`` hp (never below 0). Returns hp actually lost."""
        if amount < 0:
            raise ValueError("damage amount must be non-negative")
        before = self.hp
        self.hp = max(0, self.hp - amount)
        self.alive = self.hp > 0
        return before - self.hp

    def heal(self, amount: int) -> int:
        if amount < 0:
            raise ValueError("heal amount must be non-negative")
        if not self.alive:
            return 0
        before = self.hp
        self.hp = min(self.max_hp, self.hp + amount)
        return self.hp - before

    @property
    def damage_dice(self) -> DamageDice:
        return self.damage

    @property
    def to_hit_bonus(self) -> int:
        return self.attack_bonus

    @property
    def armor_class(self) -> int:
        return self.ac


@dataclass
class Player(Actor):
    hunger: int = C.STARTING_HUNGER
    max_hunger: int = C.STARTING_HUNGER
    level: int = C.STARTING_LEVEL
    xp: int = 0
    xp_to_next: int = C.XP_PER_LEVEL
    world_position: WorldPosition = WorldPosition(0.0, 0.0)
    rotation: float = 0.0
    weapon: Optional[Item] = None
    armor: Optional[Item] = None

    @property
    def damage_dice(self) -> DamageDice:
        if self.weapon is not None and self.weapon.damage is not None:
            return self.weapon.damage
        return self.damage

    @property
    def to_hit_bonus(self) -> int:
        bonus = self.weapon.attack_bonus if self.weapon is not None else 0
        return self.attack_bonus + bonus

    @property
    def armor_class(self) -> int:
        bonus = self.armor.ac_bonus if self.armor is not None else 0
        return self.ac + bonus

    def equip(self, item: Item) -> Optional[Item]:
        """Put a weapon or armor in its slot, returning what it replaced."""
        if item.item_type == ItemType.WEAPON:
            previous, self.weapon = self.weapon, item
        elif item.item_type == ItemType.ARMOR:
            previous, self.armor = self.armor, item
        else:
            raise ValueError(f"Cannot equip {item.item_type.value} item {item.name!r}")
        return previous

    def decrease_hunger(self, amount: int = C.HUNGER_RATE) -> bool:
        """Lower hunger, floored at 0. Returns True if the player is starving."""
        self.hunger = max(0, self.hunger - amount)
        return self.hunger == 0

    def add_experience(
        self,
        amount: int,
        multiplier: float = C.XP_MULTIPLIER,
        hp_per_level: int = C.LEVEL_UP_HP,
        attack_per_level: int = C.LEVEL_UP_ATTACK,
    ) -> int:
        """Add XP, applying as many level-ups as it pays for.

        Each level grants ``hp_per_level`` max hp and hp and ``attack_per_level``
        attack bonus; the next threshold grows by ``multiplier`` (floored).
        Returns the number of levels gained.
        """
        self.xp += amount
        gained = 0
        while self.xp >= self.xp_to_next:
            self.xp -= self.xp_to_next
            self.level += 1
            self.max_hp += hp_per_level
            self.hp = min(self.hp + hp_per_level, self.max_hp)
            self.attack_bonus += attack_per_level
            self.xp_to_next = int(self.xp_to_next * multiplier)
            gained += 1
        return gained


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a player-facing action.

    Expected failures (nothing there, not adjacent, game over) come back with
    ``success=False`` and a ``reason`` instead of raising.
    """

    success: bool
    reason: str = ""
    message: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **payload: Any) -> "ActionResult":
        return cls(True, "", message, payload)

    @classmethod
    def fail(cls, reason: str, message: str = "") -> "ActionResult":
        return cls(False, reason, message or reason)


