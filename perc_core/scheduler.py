"""Cooperative pacing for the incremental engines.

Engines are generators that yield a :class:`Checkpoint` whenever the host
should get a chance to redraw or breathe, and return a
:class:`~perc_core.outcome.RunOutcome` when they finish. Nothing here runs
concurrently: the host resumes the generator when it is ready.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generator, Optional, Union

from perc_core.outcome import RunOutcome

LOG = logging.getLogger("perc_core.scheduler")

MAX_SPEED = math.inf
MAX_SLIDER_VALUE = 5


@dataclass(frozen=True)
class Checkpoint:
    """Suspension point handed to the host."""

    delay: float  # seconds the host should wait before resuming
    render: bool
    distance: int
    frontier: int
    visited: int
    steps: int


EngineSteps = Generator[Checkpoint, None, RunOutcome]


# ------------------------- Speed helpers -------------------------
def speed_from_slider(value: float) -> float:
    if value >= MAX_SLIDER_VALUE:
        return MAX_SPEED
    return 0.25 * math.pow(2, value)


def parse_speed(value: Union[str, float, int]) -> float:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("max", "inf", "infinity"):
            return MAX_SPEED
        value = float(text)
    speed = float(value)
    if not speed > 0:
        raise ValueError(f"Speed must be positive, got {value!r}")
    return speed


def speed_label(speed: float) -> str:
    if math.isinf(speed):
        return "MAX"
    if speed < 1:
        return f"{speed:.2f}x"
    if speed >= 10:
        return f"{round(speed)}x"
    return f"{speed:.1f}x"


# ---------------------------- Pacer ------------------------------
class Pacer:
    """Decides when an engine step should become a suspension point.

    Batches grow with the live frontier and with ``speed``; delays shrink
    with both. At MAX speed there is no delay and the engine only yields
    on batch boundaries that also land on every ``unthrottled_yield_every``
    step; a due redraw rides along on that checkpoint.
    """

    def __init__(
        self,
        speed: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        render_interval_ms: float = 16.0,
        base_max_delay_ms: float = 50.0,
        base_min_delay_ms: float = 1.0,
        unthrottled_batch_min: int = 500,
        unthrottled_yield_every: int = 2000,
        enabled: bool = True,
    ) -> None:
        self.speed = parse_speed(speed)
        self.clock = clock
        self.render_interval_ms = float(render_interval_ms)
        self.base_max_delay_ms = float(base_max_delay_ms)
        self.base_min_delay_ms = float(base_min_delay_ms)
        self.unthrottled_batch_min = max(1, int(unthrottled_batch_min))
        self.unthrottled_yield_every = max(1, int(unthrottled_yield_every))
        self.enabled = enabled
        self._last_render = clock()

    @classmethod
    def from_settings(
        cls,
        settings: Dict[str, Any],
        clock: Optional[Callable[[], float]] = None,
        enabled: bool = True,
    ) -> "Pacer":
        return cls(
            speed=settings.get("speed", 1.0),
            clock=clock or time.monotonic,
            render_interval_ms=settings.get("render_interval_ms", 16.0),
            base_max_delay_ms=settings.get("base_max_delay_ms", 50.0),
            base_min_delay_ms=settings.get("base_min_delay_ms", 1.0),
            unthrottled_batch_min=settings.get("unthrottled_batch_min", 500),
            unthrottled_yield_every=settings.get("unthrottled_yield_every", 2000),
            enabled=enabled,
        )

    @classmethod
    def disabled(cls) -> "Pacer":
        return cls(enabled=False)

    @property
    def unthrottled(self) -> bool:
        return math.isinf(self.speed)

    def batch_size(self, frontier: int) -> int:
        frontier = max(1, frontier)
        if self.unthrottled:
            return max(self.unthrottled_batch_min, frontier * 2)
        return max(1, int(frontier / 5 * self.speed))

    def delay_ms(self, frontier: int) -> float:
        if self.unthrottled:
            return 0.0
        frontier = max(1, frontier)
        base = max(self.base_min_delay_ms, self.base_max_delay_ms / math.sqrt(frontier))
        return base / self.speed

    def checkpoint(self, steps: int, frontier: int, distance: int, visited: int) -> Optional[Checkpoint]:
        """Return a checkpoint if ``steps`` lands on a suspension point."""
        if not self.enabled or steps <= 0:
            return None
        if steps % self.batch_size(frontier):
            return None
        if self.unthrottled and steps % self.unthrottled_yield_every:
            return None
        now = self.clock()
        render = (now - self._last_render) * 1000.0 > self.render_interval_ms
        if render:
            self._last_render = now
        delay = self.delay_ms(frontier)
        return Checkpoint(
            delay=delay / 1000.0,
            render=render,
            distance=distance,
            frontier=frontier,
            visited=visited,
            steps=steps,
        )


# ---------------------------- Tasks ------------------------------
class RunTask:
    """Host-side handle on an engine generator.

    Iterate it to receive checkpoints, or call :meth:`run` /
    :meth:`run_async`. :meth:`cancel` abandons the run between two
    checkpoints and records an interrupted outcome.
    """

    def __init__(
        self,
        steps: EngineSteps,
        engine: Any,
        on_finish: Optional[Callable[[RunOutcome], RunOutcome]] = None,
    ) -> None:
        self.engine = engine
        self._steps = steps
        self._on_finish = on_finish
        self.outcome: Optional[RunOutcome] = None
        self.last_checkpoint: Optional[Checkpoint] = None

    @property
    def done(self) -> bool:
        return self.outcome is not None

    @property
    def distance(self) -> int:
        if self.outcome is not None:
            return self.outcome.distance
        return self.engine.max_distance

    def __iter__(self) -> "RunTask":
        return self

    def __next__(self) -> Checkpoint:
        if self.outcome is not None:
            raise StopIteration
        try:
            checkpoint = next(self._steps)
        except StopIteration as stop:
            self._finish(stop.value)
            raise StopIteration from None
        except Exception:
            # The grid stays readable; the run ends as interrupted.
            self._steps.close()
            LOG.error("Run failed at distance %d", self.engine.max_distance)
            self._finish(self.engine.interrupted())
            raise
        self.last_checkpoint = checkpoint
        return checkpoint

    def run(self) -> RunOutcome:
        """Drive the engine to completion, ignoring requested delays."""
        for _ in self:
            pass
        return self.outcome

    async def run_async(
        self,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> RunOutcome:
        """Drive the engine, awaiting ``sleep(delay)`` at every checkpoint."""
        for checkpoint in self:
            await sleep(checkpoint.delay)
        return self.outcome

    def cancel(self) -> int:
        """Abandon the run and return the best distance reached."""
        if self.outcome is None:
            self._steps.close()
            LOG.info("Run interrupted at distance %d", self.engine.max_distance)
            self._finish(self.engine.interrupted())
        return self.outcome.distance

    def _finish(self, outcome: RunOutcome) -> None:
        if self._on_finish is not None:
            outcome = self._on_finish(outcome)
        self.outcome = outcome


__all__ = [
    "Checkpoint",
    "EngineSteps",
    "MAX_SPEED",
    "Pacer",
    "RunTask",
    "parse_speed",
    "speed_from_slider",
    "speed_label",
]
