"""Deterministic simulation kernel for a turn-based dungeon crawler."""

from rogue_kernel.config import KernelConfig, load_kernel_config
from rogue_kernel.kernel import DungeonKernel, KernelSnapshot
from rogue_kernel.rng import GameRNG
from rogue_kernel.world.procgen import Dungeon, generate_dungeon

__all__ = [
    "Dungeon",
    "DungeonKernel",
    "GameRNG",
    "KernelConfig",
    "KernelSnapshot",
    "generate_dungeon",
    "load_kernel_config",
]

__version__ = "0.1.0"
