"""What the player can interact with from where they stand.

Unlike enemy targeting, which only considers orthogonal neighbours, the
player may attack any living enemy in the eight surrounding tiles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from rogue_kernel.constants import Tile, TurnActionType
from rogue_kernel.entities.components import Actor, Item, Position
from rogue_kernel.systems.turn_manager import TurnAction


@dataclass
class Interactables:
    items: List[Item] = field(default_factory=list)
    stairs: bool = False
    enemies: List[Actor] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.items or self.stairs or self.enemies)


def is_adjacent_8(a: Position, b: Position) -> bool:
    dx = abs(a.x - b.x)
    dy = abs(a.y - b.y)
    return dx <= 1 and dy <= 1 and (dx, dy) != (0, 0)


def find_interactables(
    position: Position,
    tile: int,
    items: Sequence[Item] = (),
    enemies: Sequence[Actor] = (),
) -> Interactables:
    return Interactables(
        items=[i for i in items if i.position == position],
        stairs=tile == Tile.STAIRS_DOWN,
        enemies=[e for e in enemies if e.alive and is_adjacent_8(e.position, position)],
    )


def interaction_prompt(found: Interactables) -> str:
    messages = []
    if found.items:
        messages.append(f"Pick up {found.items[0].display_name or 'item'}")
    if found.stairs:
        messages.append("Descend stairs")
    if found.enemies:
        messages.append(f"Attack {found.enemies[0].name}")
    return " / ".join(messages)


def interaction_action(found: Interactables) -> Optional[TurnAction]:
    """Highest-priority action: attack, then pick up, then descend."""
    if found.enemies:
        return TurnAction(TurnActionType.ATTACK, {"target": found.enemies[0]})
    if found.items:
        return TurnAction(TurnActionType.PICKUP, {"target": found.items[0]})
    if found.stairs:
        return TurnAction(TurnActionType.DESCEND)
    return None
