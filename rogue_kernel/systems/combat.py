# rogue_kernel/systems/combat.py
"""Attack and damage resolution plus the enemy decision rule.

Resolution functions are pure: they roll dice and report what happened but
leave the defender untouched. Call :func:`apply_attack` to commit a result.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Optional, Sequence, Tuple

import numpy as np
import structlog

from rogue_kernel.constants import StatusType
from rogue_kernel.entities.components import Actor, Position
from rogue_kernel.rng import GameRNG
from rogue_kernel.systems.status_effects import (
    StatusEffect,
    effect_magnitude,
    has_status_effect,
)
from rogue_kernel.world.pathfinding import find_path

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AttackRoll:
    roll: int
    total: int
    hit: bool
    natural20: bool
    natural1: bool


@dataclass(frozen=True)
class CombatResult:
    hit: bool
    damage: int
    killed: bool
    critical: bool
    blocked: bool
    attack_roll: AttackRoll


class EnemyActionType(str, Enum):
    WAIT = "wait"
    ATTACK = "attack"
    MOVE = "move"


@dataclass(frozen=True)
class EnemyAction:
    action: EnemyActionType
    target: Optional[Position] = None


def roll_d20(rng: GameRNG) -> int:
    return rng.next_int(1, 20)


def roll_damage(count: int, sides: int, bonus: int, rng: GameRNG) -> int:
    """Sum of ``count`` d``sides`` plus ``bonus``, never less than 1."""
    total = bonus + sum(rng.next_int(1, sides) for _ in range(count))
    return max(1, total)


def calculate_hit(
    attacker: Actor, defender: Actor, rng: GameRNG, roll: Optional[int] = None
) -> AttackRoll:
    """Roll to hit.

    The attack lands when the d20 plus the attacker's to-hit bonus and
    ``skill`` magnitude meets the defender's armor class, or on a natural 20.
    A natural 1 is only flagged; it does not force a miss.
    """
    if roll is None:
        roll = roll_d20(rng)
    elif not 1 <= roll <= 20:
        raise ValueError(f"d20 roll must be in 1..20, got {roll}")
    total = roll + attacker.to_hit_bonus + effect_magnitude(
        attacker.status_effects, StatusType.SKILL
    )
    natural20 = roll == 20
    return AttackRoll(
        roll=roll,
        total=total,
        hit=total >= defender.armor_class or natural20,
        natural20=natural20,
        natural1=roll == 1,
    )


def calculate_damage(attacker: Actor, rng: GameRNG, critical: bool = False) -> int:
    dice = attacker.damage_dice
    bonus = dice.bonus + effect_magnitude(attacker.status_effects, StatusType.STRENGTH)
    damage = roll_damage(dice.count, dice.sides, bonus, rng)
    return damage * 2 if critical else damage


def execute_attack(
    attacker: Actor, defender: Actor, rng: GameRNG, roll: Optional[int] = None
) -> CombatResult:
    """Resolve one melee attack without mutating either actor.

    A defender under ``stone`` takes no damage from a landed blow; the result
    is still a hit, marked ``blocked``.
    """
    attack_roll = calculate_hit(attacker, defender, rng, roll)
    if not attack_roll.hit:
        return CombatResult(False, 0, False, False, False, attack_roll)

    critical = attack_roll.natural20
    if has_status_effect(defender.status_effects, StatusType.STONE):
        return CombatResult(True, 0, False, critical, True, attack_roll)

    damage = calculate_damage(attacker, rng, critical)
    return CombatResult(
        hit=True,
        damage=damage,
        killed=defender.hp - damage <= 0,
        critical=critical,
        blocked=False,
        attack_roll=attack_roll,
    )


def apply_attack(defender: Actor, result: CombatResult) -> int:
    """Commit ``result`` to ``defender``; returns hp actually lost."""
    if not result.hit or result.damage <= 0:
        return 0
    return defender.apply_damage(result.damage)


def is_adjacent(a: Position, b: Position) -> bool:
    """Orthogonal (4-directional) adjacency; diagonals do not count."""
    dx = abs(a.x - b.x)
    dy = abs(a.y - b.y)
    return dx + dy == 1


def decide_enemy_action(
    enemy: Actor,
    target_position: Position,
    grid: np.ndarray,
    target_effects: Sequence[StatusEffect] = (),
    blocked: AbstractSet[Tuple[int, int]] = frozenset(),
) -> EnemyAction:
    """Pick this turn's action for ``enemy``.

    In order: dead enemies wait; an invisible target is ignored; an
    orthogonally adjacent target is attacked; otherwise the enemy steps along
    the A* path toward the target, or waits when there is none or the next
    step is in ``blocked``.
    """
    if not enemy.alive:
        return EnemyAction(EnemyActionType.WAIT)
    if has_status_effect(target_effects, StatusType.INVISIBILITY):
        return EnemyAction(EnemyActionType.WAIT)
    if is_adjacent(enemy.position, target_position):
        return EnemyAction(EnemyActionType.ATTACK, target_position)

    path = find_path(grid, enemy.position, target_position)
    if not path:
        return EnemyAction(EnemyActionType.WAIT)
    step = path[0]
    if (step.x, step.y) in blocked:
        return EnemyAction(EnemyActionType.WAIT)
    return EnemyAction(EnemyActionType.MOVE, step)


def combat_message(attacker_name: str, defender_name: str, result: CombatResult) -> str:
    if not result.hit:
        return f"{attacker_name} attacks {defender_name} but misses!"
    if result.blocked:
        return f"{attacker_name} hits {defender_name}, but the blow glances off stone!"
    message = f"{attacker_name} hits {defender_name} for {result.damage} damage!"
    if result.critical:
        message = f"CRITICAL! {message}"
    if result.killed:
        message += f" {defender_name} is defeated!"
    return message
