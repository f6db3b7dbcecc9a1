"""Shared fixtures: deterministic random sources and a fake clock."""
from __future__ import annotations

from typing import Iterable, List

import pytest


class FixedRandom:
    """Always returns the same draw; 0.0 means white, 0.99 means black."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class SequenceRandom:
    """Cycles through a fixed list of draws."""

    def __init__(self, values: Iterable[float]) -> None:
        self.values: List[float] = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def always_white() -> FixedRandom:
    return FixedRandom(0.0)


@pytest.fixture
def always_black() -> FixedRandom:
    return FixedRandom(0.99)


@pytest.fixture
def sequence_random():
    return SequenceRandom


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
