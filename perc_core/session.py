"""Run lifecycle for one grid: origin selection, runs, queries and reset."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from perc_core.battle import BattleEngine
from perc_core.codec import Cell, CoordinateCodec, are_adjacent, hex_distance
from perc_core.errors import CoordinateRangeError, GridStateError
from perc_core.escape import EscapeSearch
from perc_core.grid import Color, LazyGrid
from perc_core.outcome import RunMode, RunOutcome
from perc_core.pockets import PocketStats, find_pockets
from perc_core.scheduler import Pacer, RunTask
from perc_core.settings import DEFAULT_SETTINGS

LOG = logging.getLogger("perc_core.session")


class PercolationSession:
    """Owns one :class:`LazyGrid` and at most one active run at a time.

    ``pacing=False`` builds engines that never suspend, which keeps runs
    deterministic and fast in tests.
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        pacing: bool = True,
    ) -> None:
        self.settings: Dict[str, Any] = dict(DEFAULT_SETTINGS)
        if settings:
            self.settings.update(settings)
        self.clock = clock
        self.pacing = pacing
        if rng is None:
            rng = random.Random(self.settings.get("seed"))
        codec = CoordinateCodec(int(self.settings["coordinate_limit"]))
        self.grid = LazyGrid(rng=rng, codec=codec)
        self.origins: Tuple[Cell, ...] = ()
        self.task: Optional[RunTask] = None
        self.outcome: Optional[RunOutcome] = None
        self._pocket_sizes: Optional[List[int]] = None

    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done

    def _require_idle(self) -> None:
        if self.running:
            raise GridStateError("A run is already active")
        if self.task is not None:
            raise GridStateError("Run finished; reset() before starting another")

    def select_origin(self, cell: Cell) -> None:
        self._require_idle()
        if self.origins:
            raise GridStateError(f"Origin already selected at {self.origins[0]}")
        self.grid.set(cell, Color.WHITE)
        self.origins = (cell,)
        LOG.info("Selected origin %s", cell)

    def select_origin_pair(self, white: Cell, black: Cell) -> None:
        self._require_idle()
        if self.origins:
            raise GridStateError("Origins already selected")
        if not are_adjacent(white, black):
            raise GridStateError(f"Origins {white} and {black} must be adjacent")
        if self.grid.contains(white) or self.grid.contains(black):
            raise GridStateError("Origins must be chosen on unset cells")
        self.grid.set(white, Color.WHITE)
        self.grid.set(black, Color.BLACK)
        self.origins = (white, black)
        LOG.info("Selected origin pair white=%s black=%s", white, black)

    # ------------------------------------------------------------------
    def _pacer(self) -> Pacer:
        return Pacer.from_settings(self.settings, clock=self.clock, enabled=self.pacing)

    def _check_horizon(self, *cells: Cell) -> None:
        """Refuse runs whose escape horizon leaves the codec range."""
        limit = self.grid.codec.offset
        reach = int(self.settings["escape_distance"]) + 1
        for cell in cells:
            if hex_distance(*cell) + reach > limit:
                raise CoordinateRangeError(
                    f"Escape distance {reach - 1} from {cell} exceeds coordinate limit {limit}"
                )

    def run_escape(self, origin: Optional[Cell] = None) -> RunTask:
        if origin is not None:
            self._check_horizon(origin)
            self.select_origin(origin)
        self._require_idle()
        if len(self.origins) != 1:
            raise GridStateError("Escape runs need exactly one selected origin")
        self._check_horizon(*self.origins)
        engine = EscapeSearch(
            self.grid,
            self.origins[0],
            escape_distance=int(self.settings["escape_distance"]),
            pacer=self._pacer(),
        )
        self.task = RunTask(engine.run(), engine, on_finish=self._finish_escape)
        return self.task

    def run_battle(self, white: Optional[Cell] = None, black: Optional[Cell] = None) -> RunTask:
        if white is not None or black is not None:
            if white is None or black is None:
                raise GridStateError("Battle runs need both origins")
            self._check_horizon(white, black)
            self.select_origin_pair(white, black)
        self._require_idle()
        if len(self.origins) != 2:
            raise GridStateError("Battle runs need a selected origin pair")
        self._check_horizon(*self.origins)
        engine = BattleEngine(
            self.grid,
            self.origins[0],
            self.origins[1],
            escape_distance=int(self.settings["escape_distance"]),
            trap_budget=int(self.settings["trap_search_budget"]),
            pacer=self._pacer(),
        )
        self.task = RunTask(engine.run(), engine, on_finish=self._finish)
        return self.task

    def _finish(self, outcome: RunOutcome) -> RunOutcome:
        self.outcome = outcome
        LOG.info("%s", outcome.status_line())
        return outcome

    def _finish_escape(self, outcome: RunOutcome) -> RunOutcome:
        if not outcome.interrupted and self.settings.get("analyze_pockets", True):
            self._pocket_sizes = find_pockets(self.grid, int(self.settings["pocket_size_limit"]))
            outcome = replace(outcome, pockets=PocketStats(tuple(self._pocket_sizes)))
        return self._finish(outcome)

    def interrupt(self) -> int:
        """Abandon the active run; returns the best distance reached."""
        if not self.running:
            raise GridStateError("No active run to interrupt")
        return self.task.cancel()

    # ------------------------------------------------------------------
    def pockets(self) -> List[int]:
        if self.outcome is None or self.outcome.mode is not RunMode.ESCAPE or self.outcome.interrupted:
            raise GridStateError("Pockets are only available after a completed escape run")
        if self._pocket_sizes is None:
            self._pocket_sizes = find_pockets(self.grid, int(self.settings["pocket_size_limit"]))
        return list(self._pocket_sizes)

    def snapshot(self) -> List[Tuple[Cell, Color]]:
        return list(self.grid.snapshot())

    def reset(self) -> None:
        if self.running:
            self.task.cancel()
        self.grid.clear()
        self.origins = ()
        self.task = None
        self.outcome = None
        self._pocket_sizes = None
        LOG.debug("Session reset")


__all__ = ["PercolationSession"]
