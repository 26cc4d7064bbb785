"""A* search over a tile grid."""

import heapq
import itertools
from typing import AbstractSet, Dict, List, Optional, Tuple

import numpy as np
import structlog

from rogue_kernel.entities.components import Position
from rogue_kernel.world.grid import CARDINAL_OFFSETS, is_walkable, manhattan_distance

log = structlog.get_logger(__name__)

Coord = Tuple[int, int]


def find_path(
    grid: np.ndarray,
    start: Position,
    goal: Position,
    blocked: Optional[AbstractSet[Coord]] = None,
) -> List[Position]:
    """Shortest 4-directional path from ``start`` to ``goal``.

    Parameters
    ----------
    grid:
        Tile grid indexed ``[y, x]``.
    start, goal:
        Grid positions.
    blocked:
        Optional extra impassable ``(x, y)`` coordinates (e.g. occupied
        tiles). The goal itself is never treated as blocked.

    Returns
    -------
    list[Position]
        Steps from the tile after ``start`` up to and including ``goal``.
        Empty when the goal is not walkable, cannot be reached, or equals
        ``start``.

    Notes
    -----
    Unit step cost with a Manhattan heuristic. Nodes with equal ``f`` are
    expanded in the order they were pushed, so results are deterministic.
    """
    start_xy: Coord = (start.x, start.y)
    goal_xy: Coord = (goal.x, goal.y)
    if start_xy == goal_xy or not is_walkable(grid, goal.x, goal.y):
        return []

    counter = itertools.count()
    open_set: List[Tuple[int, int, Coord]] = []
    g_score: Dict[Coord, int] = {start_xy: 0}
    came_from: Dict[Coord, Coord] = {}
    closed: set = set()

    heapq.heappush(
        open_set, (manhattan_distance(*start_xy, *goal_xy), next(counter), start_xy)
    )

    while open_set:
        _, _, current = heapq.heappop(open_set)
        if current in closed:
            continue
        if current == goal_xy:
            path: List[Position] = []
            node = current
            while node in came_from:
                path.append(Position(*node))
                node = came_from[node]
            path.reverse()
            return path
        closed.add(current)

        for dx, dy in CARDINAL_OFFSETS:
            neighbor = (current[0] + dx, current[1] + dy)
            if neighbor in closed or not is_walkable(grid, *neighbor):
                continue
            if blocked and neighbor in blocked and neighbor != goal_xy:
                continue
            tentative_g = g_score[current] + 1
            if tentative_g < g_score.get(neighbor, tentative_g + 1):
                g_score[neighbor] = tentative_g
                came_from[neighbor] = current
                f = tentative_g + manhattan_distance(*neighbor, *goal_xy)
                heapq.heappush(open_set, (f, next(counter), neighbor))

    log.debug("No path found", start=start_xy, goal=goal_xy)
    return []
