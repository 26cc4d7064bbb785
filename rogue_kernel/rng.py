"""Deterministic random number generator for the dungeon kernel.

Every random decision in the kernel (room layout, spawn tables, attack rolls)
is drawn from a :class:`GameRNG`.  The stream is a 32-bit Mulberry32 generator
implemented with explicit masking, so a seed reproduces the same sequence on
every platform and interpreter.
"""

from __future__ import annotations

import random
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import structlog

log = structlog.get_logger(__name__)

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


class GameRNG:
    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = random.randint(0, _MASK32)
            log.debug("No seed supplied, picked one", seed=seed)
        if not isinstance(seed, (int, np.integer)) or isinstance(seed, bool):
            log.error("Invalid RNG seed", seed=seed)
            raise TypeError(f"Seed must be an integer, got {type(seed).__name__}")
        self.initial_seed = int(seed) & _MASK32
        self._state = self.initial_seed

    # ------------------------------------------------------------------
    # core stream
    # ------------------------------------------------------------------
    def next(self) -> float:
        """Return the next float in ``[0, 1)``."""
        self._state = (self._state + _INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_int(self, a: int, b: int) -> int:
        """Inclusive integer in ``[a, b]``."""
        if a > b:
            raise ValueError(f"next_int bounds out of order: {a} > {b}")
        return int(self.next() * (b - a + 1)) + a

    def next_float(self, a: float = 0.0, b: float = 1.0) -> float:
        return self.next() * (b - a) + a

    # ------------------------------------------------------------------
    # selection helpers
    # ------------------------------------------------------------------
    def choice(self, seq: Sequence[Any]) -> Any:
        if len(seq) == 0:
            raise ValueError("choice from empty sequence")
        return seq[self.next_int(0, len(seq) - 1)]

    def weighted_choice(self, items: Sequence[Any], weights: Sequence[float]) -> Any:
        """Pick one item with probability proportional to its weight.

        Draws a single float in ``[0, total)`` and returns the first item whose
        cumulative weight reaches it.
        """
        if len(items) != len(weights):
            raise ValueError("items/weights length mismatch")
        if not items:
            raise ValueError("items empty")
        cdf = np.cumsum(np.asarray(weights, dtype=float))
        total = float(cdf[-1])
        if total <= 0:
            raise ValueError("weight sum must be positive")

        r = self.next_float(0.0, total)
        idx = int(np.searchsorted(cdf, r, side="left"))
        return items[min(idx, len(items) - 1)]

    def roll_dice(
        self, num_dice: int = 1, sides: int = 6, modifier: int = 0
    ) -> Dict[str, Any]:
        if sides < 1 or num_dice < 0:
            raise ValueError(f"invalid dice: {num_dice}d{sides}")
        rolls: List[int] = [self.next_int(1, sides) for _ in range(num_dice)]
        return {"total": sum(rolls) + modifier, "rolls": rolls, "modifier": modifier}

    def coin_flip(self) -> bool:
        return self.next() > 0.5

    # ------------------------------------------------------------------
    # state management
    # ------------------------------------------------------------------
    def get_state(self) -> Dict[str, int]:
        return {"state": self._state, "initial_seed": self.initial_seed}

    def set_state(self, state: Dict[str, int]) -> None:
        if "state" in state:
            self._state = int(state["state"]) & _MASK32
        if "initial_seed" in state:
            self.initial_seed = int(state["initial_seed"]) & _MASK32
