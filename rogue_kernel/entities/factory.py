"""Reference entity factory: templates in, live actors and items out."""

from __future__ import annotations

from typing import Optional

import structlog

from rogue_kernel import constants as C
from rogue_kernel.config import KernelConfig
from rogue_kernel.entities.components import (
    Actor,
    DamageDice,
    Item,
    Player,
    Position,
    SpawnDescriptor,
)
from rogue_kernel.entities.template_registry import (
    EnemyTemplate,
    ItemTemplate,
    TemplateRegistry,
)
from rogue_kernel.world.grid import grid_to_world

log = structlog.get_logger(__name__)

PLAYER_UNARMED = DamageDice(1, 4)


def depth_multiplier(depth: int) -> float:
    """Stat multiplier for ``depth``: +20% per level below the first."""
    if depth < 1:
        raise ValueError(f"Depth must be >= 1, got {depth}")
    return 1 + (depth - 1) * C.DEPTH_STAT_SCALE


def create_actor(
    type_key: str,
    position: Position,
    depth: int,
    templates: TemplateRegistry[EnemyTemplate],
) -> Actor:
    """Instantiate the enemy ``type_key`` scaled for ``depth``.

    Hit points and XP value scale with :func:`depth_multiplier` (floored);
    armor class gains one point every two levels. Unknown keys raise
    ``ValueError``.
    """
    template = templates.get(type_key)
    multiplier = depth_multiplier(depth)
    hp = int(template.hp * multiplier)
    actor = Actor(
        name=template.name,
        type_key=template.key,
        hp=hp,
        max_hp=hp,
        ac=template.ac + depth // 2,
        attack_bonus=0,
        damage=template.damage,
        position=position,
        xp_value=int(template.xp_value * multiplier),
    )
    log.debug("Actor created", type=type_key, depth=depth, hp=actor.hp, ac=actor.ac)
    return actor


def create_item(
    spawn: SpawnDescriptor, templates: TemplateRegistry[ItemTemplate]
) -> Item:
    template = templates.get(spawn.type_key)
    amount = template.amount * spawn.depth if template.amount else 0
    return Item(
        item_type=template.item_type,
        name=template.name,
        type_key=template.key,
        position=spawn.position,
        damage=template.damage,
        attack_bonus=template.attack_bonus,
        ac_bonus=template.ac_bonus,
        amount=amount,
        heal=template.heal,
        effect=template.effect,
        effect_duration=template.effect_duration,
        effect_magnitude=template.effect_magnitude,
        appearance=template.appearance,
        identified=not template.appearance,
    )


def create_player(position: Position, config: Optional[KernelConfig] = None) -> Player:
    cfg = config or KernelConfig()
    return Player(
        name="You",
        type_key="player",
        hp=cfg.starting_hp,
        max_hp=cfg.starting_hp,
        ac=cfg.player_base_ac,
        attack_bonus=0,
        damage=PLAYER_UNARMED,
        position=position,
        hunger=cfg.starting_hunger,
        max_hunger=cfg.starting_hunger,
        xp_to_next=cfg.xp_per_level,
        world_position=grid_to_world(position.x, position.y, cfg.tile_size),
    )
