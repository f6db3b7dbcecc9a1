"""Exceptions raised by the percolation core for broken invariants."""
from __future__ import annotations


class CoordinateRangeError(ValueError):
    """A coordinate or key lies outside the codec's supported range."""


class GridStateError(RuntimeError):
    """The grid or session was used in a way that violates its lifecycle."""


__all__ = ["CoordinateRangeError", "GridStateError"]
