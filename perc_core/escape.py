"""Single-origin escape search: breadth-first over friendly cells."""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Optional, Set, Tuple

from perc_core.codec import HEX_DIRS, Cell
from perc_core.errors import GridStateError
from perc_core.grid import Color, LazyGrid
from perc_core.outcome import Result, RunMode, RunOutcome
from perc_core.scheduler import EngineSteps, Pacer

LOG = logging.getLogger("perc_core.escape")

DEFAULT_ESCAPE_DISTANCE = 1000


class EscapeSearch:
    """BFS from a white origin; black cells are dead ends.

    Distance is BFS depth, not hex distance, because friendly paths wind.
    The run escapes as soon as a dequeued cell sits at depth
    ``escape_distance``; it is encircled when the queue drains first.
    """

    def __init__(
        self,
        grid: LazyGrid,
        origin: Cell,
        escape_distance: int = DEFAULT_ESCAPE_DISTANCE,
        pacer: Optional[Pacer] = None,
    ) -> None:
        if grid.get(origin) is not Color.WHITE:
            raise GridStateError(f"Escape origin {origin} must be pre-coloured white")
        self.grid = grid
        self.origin = origin
        self.escape_distance = int(escape_distance)
        self.pacer = pacer or Pacer.disabled()
        self.max_distance = 0
        self.steps = 0
        self.visited: Set[int] = set()
        self.queue: Deque[Tuple[int, int, int]] = deque()

    @property
    def frontier(self) -> int:
        return len(self.queue)

    def interrupted(self) -> RunOutcome:
        return RunOutcome(RunMode.ESCAPE, Result.INTERRUPTED, self.max_distance, self.steps)

    def run(self) -> EngineSteps:
        grid = self.grid
        key = grid.key
        visited = self.visited
        queue = self.queue
        pacer = self.pacer

        q0, r0 = self.origin
        visited.add(key(self.origin))
        queue.append((q0, r0, 0))
        LOG.info("Escape search from %s (threshold %d)", self.origin, self.escape_distance)

        while queue:
            q, r, dist = queue.popleft()
            if dist > self.max_distance:
                self.max_distance = dist
            # Cells still waiting, counting the one being expanded.
            exposed = len(queue) + 1

            if dist >= self.escape_distance:
                LOG.info("Escaped at distance %d after %d steps", dist, self.steps)
                return RunOutcome(RunMode.ESCAPE, Result.ESCAPED, dist, self.steps)

            for dq, dr in HEX_DIRS:
                cell = (q + dq, r + dr)
                nk = key(cell)
                if nk in visited:
                    continue
                visited.add(nk)

                color = grid.get_or_assign(cell)
                self.steps += 1

                checkpoint = pacer.checkpoint(self.steps, exposed, dist, len(visited))
                if checkpoint is not None:
                    yield checkpoint

                if color is Color.WHITE:
                    queue.append((cell[0], cell[1], dist + 1))

        LOG.info("Encircled; max distance %d after %d steps", self.max_distance, self.steps)
        return RunOutcome(RunMode.ESCAPE, Result.ENCIRCLED, self.max_distance, self.steps)


__all__ = ["DEFAULT_ESCAPE_DISTANCE", "EscapeSearch"]
