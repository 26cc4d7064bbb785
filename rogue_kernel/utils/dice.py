import re

import structlog

from rogue_kernel.entities.components import DamageDice
from rogue_kernel.rng import GameRNG

log = structlog.get_logger(__name__)

DICE_PATTERN = re.compile(r"^(\d+)?d(\d+)(?:([+-])(\d+))?$")


def parse_dice(dice_str: str) -> DamageDice:
    """Parse ``"NdS[+/-B]"`` notation (``"d6"`` means ``"1d6"``).

    Raises ``ValueError`` for malformed strings or non-positive dice.
    """
    match = DICE_PATTERN.match(dice_str.strip()) if isinstance(dice_str, str) else None
    if not match:
        log.error("Invalid dice string format", dice_str=dice_str)
        raise ValueError(f"Invalid dice string: {dice_str!r}")

    num_dice_str, sides_str, operator, bonus_str = match.groups()
    count = int(num_dice_str) if num_dice_str else 1
    sides = int(sides_str)
    bonus = int(f"{operator}{bonus_str}") if operator and bonus_str else 0
    if count <= 0 or sides <= 0:
        log.error("Dice must have positive count and sides", dice_str=dice_str)
        raise ValueError(f"Invalid dice string: {dice_str!r}")
    return DamageDice(count=count, sides=sides, bonus=bonus)


def roll_dice(dice_str: str, rng: GameRNG) -> int:
    """Roll a dice string with the kernel RNG and return the raw total."""
    dice = parse_dice(dice_str)
    return sum(rng.next_int(1, dice.sides) for _ in range(dice.count)) + dice.bonus
