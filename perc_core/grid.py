"""Lazy coordinate-to-colour store for an unbounded hex lattice."""
from __future__ import annotations

import random
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from perc_core.codec import DEFAULT_CODEC, Cell, CoordinateCodec
from perc_core.errors import GridStateError

FRIENDLY_PROBABILITY = 0.5


class Color(Enum):
    WHITE = "white"
    BLACK = "black"


class LazyGrid:
    """Cells receive a fair coin-flip colour the first time they are read.

    Once a cell holds a colour it never changes for the life of the grid.
    ``rng`` is any object with a ``random()`` method returning floats in
    ``[0, 1)``; a draw below one half means white.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        codec: Optional[CoordinateCodec] = None,
    ) -> None:
        self.codec = codec or DEFAULT_CODEC
        self.rng = rng if rng is not None else random.Random(seed)
        self._colors: Dict[int, Color] = {}

    def __len__(self) -> int:
        return len(self._colors)

    def __contains__(self, cell: Cell) -> bool:
        return self.contains(cell)

    def key(self, cell: Cell) -> int:
        return self.codec.encode(cell[0], cell[1])

    def contains(self, cell: Cell) -> bool:
        return self.key(cell) in self._colors

    def get(self, cell: Cell) -> Optional[Color]:
        """Return the stored colour, or None for an unset cell. Never assigns."""
        return self._colors.get(self.key(cell))

    def get_or_assign(self, cell: Cell) -> Color:
        key = self.key(cell)
        color = self._colors.get(key)
        if color is None:
            color = Color.WHITE if self.rng.random() < FRIENDLY_PROBABILITY else Color.BLACK
            self._colors[key] = color
        return color

    def set(self, cell: Cell, color: Color) -> None:
        key = self.key(cell)
        if key in self._colors:
            raise GridStateError(
                f"Cell {cell} is already {self._colors[key].value}; colours are immutable"
            )
        self._colors[key] = color

    def snapshot(self) -> Iterator[Tuple[Cell, Color]]:
        decode = self.codec.decode
        for key, color in list(self._colors.items()):
            yield decode(key), color

    def counts(self) -> Tuple[int, int]:
        white = sum(1 for color in self._colors.values() if color is Color.WHITE)
        return white, len(self._colors) - white

    def clear(self) -> None:
        self._colors.clear()


__all__ = ["Color", "FRIENDLY_PROBABILITY", "LazyGrid"]
