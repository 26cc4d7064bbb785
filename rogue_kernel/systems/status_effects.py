"""Timed status effects attached to actors.

An actor holds at most one effect per :class:`StatusType`. Effects tick down
once per game turn and are removed when they reach zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import structlog

from rogue_kernel.constants import StatusType

log = structlog.get_logger(__name__)


@dataclass
class StatusEffect:
    type: StatusType
    duration: int
    magnitude: int = 1
    turns_remaining: Optional[int] = None

    def __post_init__(self) -> None:
        if self.turns_remaining is None:
            self.turns_remaining = self.duration


def create_status_effect(
    effect_type: Union[StatusType, str], duration: int, magnitude: int = 1
) -> StatusEffect:
    try:
        status = StatusType(effect_type)
    except ValueError:
        log.error("Unknown status effect type", effect_type=effect_type)
        raise ValueError(f"Unknown status effect type: {effect_type!r}") from None
    if duration <= 0:
        log.error("Non-positive status effect duration", effect_type=status.value, duration=duration)
        raise ValueError(f"Status effect duration must be positive, got {duration}")
    return StatusEffect(type=status, duration=duration, magnitude=magnitude)


def get_status_effect(
    effects: Sequence[StatusEffect], effect_type: StatusType
) -> Optional[StatusEffect]:
    for effect in effects:
        if effect.type == effect_type:
            return effect
    return None


def has_status_effect(effects: Sequence[StatusEffect], effect_type: StatusType) -> bool:
    return get_status_effect(effects, effect_type) is not None


def effect_magnitude(effects: Sequence[StatusEffect], effect_type: StatusType) -> int:
    """Magnitude of the active effect of ``effect_type``, or 0 if absent."""
    effect = get_status_effect(effects, effect_type)
    return effect.magnitude if effect is not None else 0


def add_status_effect(effects: List[StatusEffect], effect: StatusEffect) -> bool:
    """Attach ``effect`` to ``effects`` in place.

    If an effect of the same type is already active it is replaced only when
    the new effect's duration exceeds the turns the old one has left; a
    shorter effect never cuts a longer one short. Returns True if ``effects``
    changed.
    """
    for i, existing in enumerate(effects):
        if existing.type == effect.type:
            if effect.duration > existing.turns_remaining:
                effects[i] = effect
                return True
            return False
    effects.append(effect)
    return True


def update_status_effects(effects: List[StatusEffect]) -> List[StatusEffect]:
    """Tick every effect down by one turn; drop and return the expired ones."""
    expired: List[StatusEffect] = []
    remaining: List[StatusEffect] = []
    for effect in effects:
        effect.turns_remaining -= 1
        (remaining if effect.turns_remaining > 0 else expired).append(effect)
    effects[:] = remaining
    return expired


def effect_display_strings(effects: Sequence[StatusEffect]) -> List[str]:
    return [f"{e.type.value.capitalize()} ({e.turns_remaining})" for e in effects]
