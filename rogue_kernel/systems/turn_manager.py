# rogue_kernel/systems/turn_manager.py
"""Movement-driven turn clock.

The player's continuous movement accumulates on a :class:`TurnClock`. Once the
accumulated distance reaches the movement threshold a game turn advances and
every per-turn process runs in a fixed order:

1. the turn counter increments;
2. the player's hunger decays (floored at 0);
3. status effects on the player and on every enemy tick down once;
4. accumulated movement resets to 0, discarding any overshoot;
5. the enemy pass runs.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence, Tuple

import structlog

from rogue_kernel.constants import HUNGER_RATE, MOVEMENT_THRESHOLD, StatusType, TurnActionType
from rogue_kernel.entities.components import Actor, Player
from rogue_kernel.events import EventBus, KernelEventType
from rogue_kernel.systems.status_effects import (
    StatusEffect,
    has_status_effect,
    update_status_effects,
)

log = structlog.get_logger(__name__)


class TurnPhase(str, Enum):
    IDLE = "idle"
    ADVANCING = "advancing"


@dataclass
class TurnClock:
    accumulated_movement: float = 0.0
    turn_count: int = 0
    phase: TurnPhase = TurnPhase.IDLE

    def accumulate(self, distance: float) -> float:
        if not math.isfinite(distance) or distance < 0:
            log.error("Invalid movement distance", distance=distance)
            raise ValueError(f"Movement distance must be finite and >= 0, got {distance}")
        self.accumulated_movement += distance
        return self.accumulated_movement


@dataclass
class TurnReport:
    turn: int
    hunger: int
    starved: bool
    expired_effects: List[Tuple[str, StatusType]] = field(default_factory=list)
    enemy_results: Any = None


EnemyPass = Callable[[int], Any]


def effective_movement_threshold(
    effects: Sequence[StatusEffect], base_threshold: float = MOVEMENT_THRESHOLD
) -> float:
    """Distance needed for one turn; an active ``speed`` effect doubles it."""
    if has_status_effect(effects, StatusType.SPEED):
        return base_threshold * 2
    return base_threshold


def should_advance_turn(accumulated: float, threshold: float = MOVEMENT_THRESHOLD) -> bool:
    return accumulated >= threshold


def check_turn_advancement(
    clock: TurnClock, player: Player, base_threshold: float = MOVEMENT_THRESHOLD
) -> bool:
    threshold = effective_movement_threshold(player.status_effects, base_threshold)
    return should_advance_turn(clock.accumulated_movement, threshold)


def advance_turn(
    clock: TurnClock,
    player: Player,
    *,
    hunger_rate: int = HUNGER_RATE,
    enemies: Sequence[Actor] = (),
    enemy_pass: Optional[EnemyPass] = None,
    events: Optional[EventBus] = None,
) -> TurnReport:
    """Advance exactly one turn. See the module docstring for the order."""
    if clock.phase is TurnPhase.ADVANCING:
        raise RuntimeError("advance_turn re-entered while a turn is already advancing")
    clock.phase = TurnPhase.ADVANCING
    try:
        clock.turn_count += 1
        starved = player.decrease_hunger(hunger_rate)

        expired: List[Tuple[str, StatusType]] = []
        for actor in (player, *enemies):
            for effect in update_status_effects(actor.status_effects):
                expired.append((actor.name, effect.type))

        clock.accumulated_movement = 0.0
        enemy_results = enemy_pass(clock.turn_count) if enemy_pass is not None else None
    finally:
        clock.phase = TurnPhase.IDLE

    report = TurnReport(
        turn=clock.turn_count,
        hunger=player.hunger,
        starved=starved,
        expired_effects=expired,
        enemy_results=enemy_results,
    )
    log.debug(
        "Turn advanced",
        turn=report.turn,
        hunger=report.hunger,
        expired=len(expired),
    )
    if events is not None:
        events.emit(KernelEventType.FOOTSTEP, clock.turn_count, position=tuple(player.position))
    return report


def record_movement(
    clock: TurnClock,
    player: Player,
    distance: float,
    *,
    base_threshold: float = MOVEMENT_THRESHOLD,
    hunger_rate: int = HUNGER_RATE,
    enemies: Sequence[Actor] = (),
    enemy_pass: Optional[EnemyPass] = None,
    events: Optional[EventBus] = None,
) -> Optional[TurnReport]:
    """Accumulate ``distance`` and advance at most one turn if it is due."""
    clock.accumulate(distance)
    if not check_turn_advancement(clock, player, base_threshold):
        return None
    return advance_turn(
        clock,
        player,
        hunger_rate=hunger_rate,
        enemies=enemies,
        enemy_pass=enemy_pass,
        events=events,
    )


@dataclass(frozen=True)
class TurnAction:
    type: TurnActionType
    params: Dict[str, Any] = field(default_factory=dict)


class ActionQueue:
    """FIFO of pending player actions."""

    def __init__(self) -> None:
        self._queue: Deque[TurnAction] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, action: TurnAction) -> None:
        self._queue.append(action)

    def process_next(self) -> Optional[TurnAction]:
        return self._queue.popleft() if self._queue else None

    def clear(self) -> None:
        self._queue.clear()
