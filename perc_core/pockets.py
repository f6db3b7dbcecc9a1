"""Enumerate finite unset regions enclosed by black cells."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Set, Tuple

import numpy as np

from perc_core.codec import HEX_DIRS
from perc_core.grid import Color, LazyGrid

LOG = logging.getLogger("perc_core.pockets")

DEFAULT_POCKET_SIZE_LIMIT = 10000


@dataclass(frozen=True)
class PocketStats:
    sizes: Tuple[int, ...] = ()

    @property
    def count(self) -> int:
        return len(self.sizes)

    @property
    def largest(self) -> int:
        return int(np.max(self.sizes)) if self.sizes else 0

    @property
    def total(self) -> int:
        return int(np.sum(self.sizes)) if self.sizes else 0

    def describe(self) -> str:
        if not self.sizes:
            return "No pockets"
        return f"Pockets: {self.count} (max: {self.largest}, total: {self.total})"


def _pocket_candidates(grid: LazyGrid) -> List[int]:
    """Keys of unset cells next to black cells, in grid order."""
    codec = grid.codec
    candidates: List[int] = []
    seen: Set[int] = set()
    for (q, r), color in grid.snapshot():
        if color is not Color.BLACK:
            continue
        for dq, dr in HEX_DIRS:
            if not codec.in_range(q + dq, r + dr):
                continue
            nk = codec.encode(q + dq, r + dr)
            if nk not in seen and grid.get((q + dq, r + dr)) is None:
                seen.add(nk)
                candidates.append(nk)
    return candidates


def find_pockets(grid: LazyGrid, size_limit: int = DEFAULT_POCKET_SIZE_LIMIT) -> List[int]:
    """Sizes of unset components that never touch white and stay within ``size_limit``.

    Every unset cell belongs to at most one component. A flood that runs
    into a cell claimed by an earlier open component is part of that same
    component, so it is open too.
    """
    codec = grid.codec
    owner: Dict[int, int] = {}
    open_components: Set[int] = set()
    sizes: List[int] = []

    for component, start in enumerate(_pocket_candidates(grid)):
        if start in owner:
            continue
        owner[start] = component
        queue: Deque[int] = deque([start])
        size = 0
        is_open = False

        while queue:
            q, r = codec.decode(queue.popleft())
            size += 1
            if size > size_limit:
                is_open = True
                break
            for dq, dr in HEX_DIRS:
                cell = (q + dq, r + dr)
                if not codec.in_range(cell[0], cell[1]):
                    # Reaching the edge of the representable lattice means unbounded.
                    is_open = True
                    continue
                color = grid.get(cell)
                if color is not None:
                    if color is Color.WHITE:
                        is_open = True
                    continue
                nk = codec.encode(cell[0], cell[1])
                claimed = owner.get(nk)
                if claimed is None:
                    owner[nk] = component
                    queue.append(nk)
                elif claimed != component and claimed in open_components:
                    is_open = True

        if is_open:
            open_components.add(component)
        else:
            sizes.append(size)

    LOG.debug("Pocket scan: %d pockets, %d open regions", len(sizes), len(open_components))
    return sizes


__all__ = ["DEFAULT_POCKET_SIZE_LIMIT", "PocketStats", "find_pockets"]
