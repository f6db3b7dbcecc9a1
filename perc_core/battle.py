"""Two-origin battle: white and black grow from adjacent origins.

Each round colours exactly one contested cell (an unset cell touching both
colours) with a fair coin flip, then asks whether either origin has been
walled in.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import numpy as np

from perc_core.codec import HEX_DIRS, Cell, are_adjacent, clockwise_angle, hex_distance
from perc_core.errors import GridStateError
from perc_core.escape import DEFAULT_ESCAPE_DISTANCE
from perc_core.grid import Color, LazyGrid
from perc_core.outcome import Result, RunMode, RunOutcome
from perc_core.scheduler import EngineSteps, Pacer
from perc_core.trap import DEFAULT_TRAP_SEARCH_BUDGET, is_trapped

LOG = logging.getLogger("perc_core.battle")


@dataclass
class FrontierPartition:
    """Unset cells next to coloured cells, split by which colours they touch."""

    boundary: Set[Cell] = field(default_factory=set)
    white_only: Set[Cell] = field(default_factory=set)
    black_only: Set[Cell] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self.boundary) + len(self.white_only) + len(self.black_only)


def classify_frontier(grid: LazyGrid) -> FrontierPartition:
    """Recompute the three-way frontier partition from the whole grid."""
    touching: Dict[Cell, Set[Color]] = {}
    for (q, r), color in grid.snapshot():
        for dq, dr in HEX_DIRS:
            cell = (q + dq, r + dr)
            if grid.get(cell) is None:
                touching.setdefault(cell, set()).add(color)
    partition = FrontierPartition()
    for cell, colors in touching.items():
        if len(colors) == 2:
            partition.boundary.add(cell)
        elif Color.WHITE in colors:
            partition.white_only.add(cell)
        else:
            partition.black_only.add(cell)
    return partition


class FrontierTracker:
    """Incrementally maintained frontier partition.

    Counts, per unset cell, how many white and black neighbours it has.
    Must be told about every cell coloured after construction.
    """

    def __init__(self, grid: LazyGrid) -> None:
        self.grid = grid
        self._touch: Dict[Cell, List[int]] = {}
        self.boundary: Set[Cell] = set()
        for cell, color in grid.snapshot():
            self._spread(cell, color)

    def _spread(self, cell: Cell, color: Color) -> None:
        slot = 0 if color is Color.WHITE else 1
        q, r = cell
        for dq, dr in HEX_DIRS:
            nb = (q + dq, r + dr)
            if self.grid.get(nb) is not None:
                continue
            counts = self._touch.setdefault(nb, [0, 0])
            counts[slot] += 1
            if counts[0] and counts[1]:
                self.boundary.add(nb)

    def colored(self, cell: Cell, color: Color) -> None:
        self._touch.pop(cell, None)
        self.boundary.discard(cell)
        self._spread(cell, color)

    def partition(self) -> FrontierPartition:
        result = FrontierPartition(boundary=set(self.boundary))
        for cell, (white, black) in self._touch.items():
            if white and black:
                continue
            if white:
                result.white_only.add(cell)
            else:
                result.black_only.add(cell)
        return result


def select_boundary_cell(boundary: Set[Cell]) -> Cell:
    """Outermost contested cell, then the largest clockwise angle from east.

    Cells at equal distance always differ in angle; the packed key only
    settles float ties.
    """
    if not boundary:
        raise GridStateError("No contested cells to choose from")
    cells = sorted(boundary)
    distances = np.fromiter((hex_distance(q, r) for q, r in cells), dtype=np.int64, count=len(cells))
    angles = np.fromiter((clockwise_angle(q, r) for q, r in cells), dtype=np.float64, count=len(cells))
    order = np.arange(len(cells))
    # lexsort sorts by the last key first; take the maximum.
    best = np.lexsort((order, angles, distances))[-1]
    return cells[int(best)]


class BattleEngine:
    """Competitive colouring between a white and a black origin."""

    def __init__(
        self,
        grid: LazyGrid,
        white_origin: Cell,
        black_origin: Cell,
        escape_distance: int = DEFAULT_ESCAPE_DISTANCE,
        trap_budget: int = DEFAULT_TRAP_SEARCH_BUDGET,
        pacer: Optional[Pacer] = None,
    ) -> None:
        if not are_adjacent(white_origin, black_origin):
            raise GridStateError(f"Origins {white_origin} and {black_origin} are not adjacent")
        if grid.get(white_origin) is not Color.WHITE or grid.get(black_origin) is not Color.BLACK:
            raise GridStateError("Battle origins must be pre-coloured white and black")
        self.grid = grid
        self.white_origin = white_origin
        self.black_origin = black_origin
        self.escape_distance = int(escape_distance)
        self.trap_budget = int(trap_budget)
        self.pacer = pacer or Pacer.disabled()
        self.max_distance = max(hex_distance(*white_origin), hex_distance(*black_origin))
        self.rounds = 0
        self.tracker = FrontierTracker(grid)

    def interrupted(self) -> RunOutcome:
        return RunOutcome(RunMode.BATTLE, Result.INTERRUPTED, self.max_distance, self.rounds)

    def _finish(self, result: Result) -> RunOutcome:
        LOG.info("Battle over after %d rounds: %s (distance %d)", self.rounds, result.value, self.max_distance)
        return RunOutcome(RunMode.BATTLE, result, self.max_distance, self.rounds)

    def _judge(self) -> Optional[Result]:
        """Winner if exactly one origin is trapped, UNRESOLVED if both, else None."""
        white_trapped = is_trapped(self.grid, self.white_origin, self.escape_distance, self.trap_budget)
        black_trapped = is_trapped(self.grid, self.black_origin, self.escape_distance, self.trap_budget)
        if white_trapped and black_trapped:
            return Result.UNRESOLVED
        if white_trapped:
            return Result.BLACK_WINS
        if black_trapped:
            return Result.WHITE_WINS
        return None

    def step(self) -> Optional[Result]:
        """Play one round. Returns a terminal result, or None to keep going."""
        boundary = self.tracker.boundary
        if not boundary:
            return self._judge() or Result.UNRESOLVED

        cell = select_boundary_cell(boundary)
        color = self.grid.get_or_assign(cell)
        self.tracker.colored(cell, color)
        self.rounds += 1
        self.max_distance = max(self.max_distance, hex_distance(*cell))
        LOG.debug("Round %d: %s -> %s", self.rounds, cell, color.value)

        if self.max_distance >= self.escape_distance:
            return Result.UNRESOLVED
        return self._judge()

    def run(self) -> EngineSteps:
        LOG.info(
            "Battle between white %s and black %s (threshold %d)",
            self.white_origin,
            self.black_origin,
            self.escape_distance,
        )
        while True:
            result = self.step()
            if result is not None:
                return self._finish(result)
            checkpoint = self.pacer.checkpoint(
                self.rounds, len(self.tracker.boundary), self.max_distance, len(self.grid)
            )
            if checkpoint is not None:
                yield checkpoint


__all__ = [
    "BattleEngine",
    "FrontierPartition",
    "FrontierTracker",
    "classify_frontier",
    "select_boundary_cell",
]
