"""Axial coordinate packing and the hex geometry shared by the engines."""
from __future__ import annotations

import math
from typing import Iterable, Tuple

from perc_core.errors import CoordinateRangeError

Cell = Tuple[int, int]

# Fixed neighbour order; every traversal visits offsets as indices 0..5.
HEX_DIRS: Tuple[Cell, ...] = ((1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1))

DEFAULT_KEY_OFFSET = 50000
SQRT3 = math.sqrt(3)
TWO_PI = 2.0 * math.pi


class CoordinateCodec:
    """Bijection between axial (q, r) pairs and a single non-negative int.

    Each axis is shifted by ``offset`` and the pair is packed in base
    ``2 * offset + 1``, so the supported range is ``[-offset, offset]`` on
    both axes.
    """

    def __init__(self, offset: int = DEFAULT_KEY_OFFSET) -> None:
        if offset <= 0:
            raise ValueError(f"Codec offset must be positive, got {offset}")
        self.offset = int(offset)
        self.base = 2 * self.offset + 1
        self.max_key = self.base * self.base - 1

    def in_range(self, q: int, r: int) -> bool:
        limit = self.offset
        return -limit <= q <= limit and -limit <= r <= limit

    def encode(self, q: int, r: int) -> int:
        if not self.in_range(q, r):
            raise CoordinateRangeError(
                f"Cell ({q}, {r}) outside supported range +/-{self.offset}"
            )
        return (q + self.offset) * self.base + (r + self.offset)

    def decode(self, key: int) -> Cell:
        if key < 0 or key > self.max_key:
            raise CoordinateRangeError(f"Key {key} outside [0, {self.max_key}]")
        shifted_q, shifted_r = divmod(key, self.base)
        return (shifted_q - self.offset, shifted_r - self.offset)

    def __repr__(self) -> str:
        return f"CoordinateCodec(offset={self.offset})"


DEFAULT_CODEC = CoordinateCodec()


def encode(q: int, r: int) -> int:
    return DEFAULT_CODEC.encode(q, r)


def decode(key: int) -> Cell:
    return DEFAULT_CODEC.decode(key)


# --------------------------- Geometry ---------------------------
def neighbors(q: int, r: int) -> Iterable[Cell]:
    for dq, dr in HEX_DIRS:
        yield (q + dq, r + dr)


def are_adjacent(a: Cell, b: Cell) -> bool:
    return (b[0] - a[0], b[1] - a[1]) in HEX_DIRS


def hex_distance(q: int, r: int) -> int:
    """Hex steps from the grid origin (0, 0)."""
    return max(abs(q), abs(r), abs(q + r))


def axial_to_pixel(q: int, r: int, size: float = 1.0) -> Tuple[float, float]:
    """Pointy-top centre position; screen y grows downward."""
    x = SQRT3 * size * (q + r / 2.0)
    y = 1.5 * size * r
    return (x, y)


def clockwise_angle(q: int, r: int) -> float:
    """Angle from due east in [0, 2*pi), increasing clockwise on screen."""
    x, y = axial_to_pixel(q, r)
    angle = math.atan2(y, x)
    if angle < 0:
        angle += TWO_PI
    return angle


__all__ = [
    "Cell",
    "CoordinateCodec",
    "DEFAULT_CODEC",
    "DEFAULT_KEY_OFFSET",
    "HEX_DIRS",
    "are_adjacent",
    "axial_to_pixel",
    "clockwise_angle",
    "decode",
    "encode",
    "hex_distance",
    "neighbors",
]
