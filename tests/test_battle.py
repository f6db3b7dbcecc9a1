import pytest

from perc_core.battle import (
    BattleEngine,
    FrontierTracker,
    classify_frontier,
    select_boundary_cell,
)
from perc_core.codec import HEX_DIRS, hex_distance, neighbors
from perc_core.errors import GridStateError
from perc_core.grid import Color, LazyGrid
from perc_core.outcome import Result, RunMode, Winner
from perc_core.scheduler import RunTask


def _battle_grid(rng, white=(0, 0), black=(1, 0)):
    grid = LazyGrid(rng=rng)
    grid.set(white, Color.WHITE)
    grid.set(black, Color.BLACK)
    return grid


def _run(engine):
    return RunTask(engine.run(), engine).run()


def test_tie_break_prefers_larger_clockwise_angle():
    assert select_boundary_cell({(1, 0), (0, 1)}) == (0, 1)
    assert select_boundary_cell({(0, 1), (1, -1)}) == (1, -1)


def test_selection_prefers_outermost_cell():
    assert select_boundary_cell({(0, 1), (2, 0), (-1, 0)}) == (2, 0)
    assert select_boundary_cell({(3, -3), (-3, 0), (1, 1)}) == (3, -3)


def test_selection_requires_candidates():
    with pytest.raises(GridStateError):
        select_boundary_cell(set())


def test_initial_boundary_is_the_shared_neighbours(always_white):
    grid = _battle_grid(always_white)
    partition = classify_frontier(grid)
    assert partition.boundary == {(1, -1), (0, 1)}
    assert partition.white_only == {(0, -1), (-1, 0), (-1, 1)}
    assert partition.black_only == {(2, 0), (2, -1), (1, 1)}


def test_tracker_partition_matches_full_scan(sequence_random):
    rng = sequence_random([0.1, 0.7, 0.8, 0.3, 0.6, 0.2, 0.9])
    grid = _battle_grid(rng)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=30, trap_budget=100)
    for _ in range(12):
        tracked = engine.tracker.partition()
        scanned = classify_frontier(grid)
        assert tracked.boundary == scanned.boundary
        assert tracked.white_only == scanned.white_only
        assert tracked.black_only == scanned.black_only
        assert not tracked.boundary & tracked.white_only
        assert not tracked.boundary & tracked.black_only
        assert not tracked.white_only & tracked.black_only
        for cell in tracked.boundary | tracked.white_only | tracked.black_only:
            assert grid.get(cell) is None
            assert any(grid.get(nb) is not None for nb in neighbors(*cell))
        if engine.step() is not None:
            break


def test_white_walls_in_black(always_white):
    grid = _battle_grid(always_white)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=50, trap_budget=200)
    outcome = _run(engine)
    assert outcome.mode is RunMode.BATTLE
    assert outcome.result is Result.WHITE_WINS
    assert outcome.winner is Winner.WHITE
    # The black origin has four free neighbours once the first round is played.
    assert outcome.steps == 5
    assert outcome.distance == 2
    assert all(grid.get(nb) is Color.WHITE for nb in neighbors(1, 0))


def test_black_walls_in_white(always_black):
    grid = _battle_grid(always_black)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=50, trap_budget=200)
    outcome = _run(engine)
    assert outcome.result is Result.BLACK_WINS
    assert outcome.winner is Winner.BLACK


def test_first_contested_cell_is_most_clockwise(always_white):
    grid = _battle_grid(always_white)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=50, trap_budget=200)
    engine.step()
    assert grid.get((1, -1)) is Color.WHITE
    assert grid.get((0, 1)) is None


def test_reaching_threshold_is_unresolved(always_white):
    grid = _battle_grid(always_white)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=1)
    outcome = _run(engine)
    assert outcome.result is Result.UNRESOLVED
    assert outcome.winner is Winner.UNRESOLVED
    assert outcome.steps == 1


def test_separated_colours_are_judged_once_more(always_white):
    grid = _battle_grid(always_white)
    for dq, dr in HEX_DIRS:
        cell = (dq, dr)
        if grid.get(cell) is None:
            grid.set(cell, Color.BLACK)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=50, trap_budget=200)
    assert not engine.tracker.boundary
    outcome = _run(engine)
    assert outcome.result is Result.BLACK_WINS
    assert outcome.steps == 0


def test_both_sides_trapped_is_unresolved(always_white):
    grid = LazyGrid(rng=always_white)
    grid.set((0, 0), Color.WHITE)
    for dq, dr in HEX_DIRS:
        grid.set((dq, dr), Color.BLACK)
    for q in range(-2, 3):
        for r in range(-2, 3):
            if hex_distance(q, r) == 2:
                grid.set((q, r), Color.WHITE)
    engine = BattleEngine(grid, (0, 0), (1, 0), escape_distance=50, trap_budget=200)
    outcome = _run(engine)
    assert outcome.result is Result.UNRESOLVED
    assert outcome.steps == 0


def test_origins_must_be_adjacent_and_coloured(always_white):
    grid = _battle_grid(always_white, white=(0, 0), black=(3, 0))
    with pytest.raises(GridStateError):
        BattleEngine(grid, (0, 0), (3, 0))
    with pytest.raises(GridStateError):
        BattleEngine(LazyGrid(rng=always_white), (0, 0), (1, 0))


def test_tracker_built_from_existing_grid(always_white):
    grid = _battle_grid(always_white)
    tracker = FrontierTracker(grid)
    assert tracker.boundary == {(1, -1), (0, 1)}
    grid.set((0, 1), Color.WHITE)
    tracker.colored((0, 1), Color.WHITE)
    assert (0, 1) not in tracker.boundary
    assert (1, 1) in tracker.boundary
