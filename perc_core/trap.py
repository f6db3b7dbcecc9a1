"""Trapped-region detector.

Read-only over the grid: flood the origin's colour region, then search the
unset space around it for a cell at least ``max_dist`` from (0, 0).
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Set

from perc_core.codec import HEX_DIRS, Cell, hex_distance
from perc_core.errors import GridStateError
from perc_core.grid import LazyGrid

LOG = logging.getLogger("perc_core.trap")

DEFAULT_TRAP_SEARCH_BUDGET = 10000


def region_of(grid: LazyGrid, origin: Cell) -> Set[Cell]:
    """Same-colour connected component containing ``origin``."""
    color = grid.get(origin)
    if color is None:
        raise GridStateError(f"Cell {origin} has no colour yet")
    region: Set[Cell] = {origin}
    queue: Deque[Cell] = deque([origin])
    while queue:
        q, r = queue.popleft()
        for dq, dr in HEX_DIRS:
            cell = (q + dq, r + dr)
            if cell not in region and grid.get(cell) is color:
                region.add(cell)
                queue.append(cell)
    return region


def breathing_frontier(grid: LazyGrid, region: Set[Cell]) -> List[Cell]:
    """Unset cells touching ``region``, in discovery order."""
    seen: Set[Cell] = set()
    frontier: List[Cell] = []
    for q, r in region:
        for dq, dr in HEX_DIRS:
            cell = (q + dq, r + dr)
            if cell not in seen and grid.get(cell) is None:
                seen.add(cell)
                frontier.append(cell)
    return frontier


def is_trapped(
    grid: LazyGrid,
    origin: Cell,
    max_dist: int,
    budget: int = DEFAULT_TRAP_SEARCH_BUDGET,
) -> bool:
    """True when the origin's region can no longer reach ``max_dist``.

    Exhausting ``budget`` explored cells counts as "not trapped": the
    unexplored unset space is assumed to lead out. This is a heuristic and
    can miss very large enclosed areas.
    """
    region = region_of(grid, origin)
    frontier = breathing_frontier(grid, region)
    if not frontier:
        return True

    explored: Set[Cell] = set(frontier)
    queue: Deque[Cell] = deque(frontier)
    for q, r in frontier:
        if hex_distance(q, r) >= max_dist:
            return False

    while queue:
        if len(explored) >= budget:
            LOG.debug("Trap search budget %d exhausted from %s; assuming open", budget, origin)
            return False
        q, r = queue.popleft()
        for dq, dr in HEX_DIRS:
            cell = (q + dq, r + dr)
            if cell in explored or grid.get(cell) is not None:
                continue
            if hex_distance(cell[0], cell[1]) >= max_dist:
                return False
            explored.add(cell)
            queue.append(cell)
    return True


__all__ = ["DEFAULT_TRAP_SEARCH_BUDGET", "breathing_frontier", "is_trapped", "region_of"]
