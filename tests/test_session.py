from dataclasses import FrozenInstanceError, replace

import pytest

from perc_core.errors import CoordinateRangeError, GridStateError
from perc_core.grid import Color
from perc_core.outcome import Result, RunMode, Winner
from perc_core.session import PercolationSession

SMALL = {"escape_distance": 8, "trap_search_budget": 300, "pocket_size_limit": 200}


def _session(rng=None, pacing=False, **overrides):
    settings = dict(SMALL)
    settings.update(overrides)
    return PercolationSession(settings, rng=rng, pacing=pacing)


def test_escape_run_reports_pockets(always_white):
    session = _session(always_white)
    outcome = session.run_escape((0, 0)).run()
    assert outcome.mode is RunMode.ESCAPE
    assert outcome.escaped
    assert outcome.distance == 8
    assert outcome.pockets is not None
    assert outcome.pockets.count == 0
    assert session.pockets() == []
    assert session.outcome is outcome
    assert outcome.status_line() == "ESCAPED! Distance 8 | No pockets"


def test_encircled_run_finds_the_sealed_hole(always_black):
    session = _session(always_black)
    outcome = session.run_escape((0, 0)).run()
    assert outcome.result is Result.ENCIRCLED
    assert outcome.distance == 0
    # Only the origin and its six black walls exist; nothing is enclosed.
    assert len(session.snapshot()) == 7
    assert session.pockets() == []
    assert outcome.status_line().startswith("ENCIRCLED! Max dist: 0")


def test_pocket_analysis_can_be_skipped(always_white):
    session = _session(always_white, analyze_pockets=False)
    outcome = session.run_escape((0, 0)).run()
    assert outcome.pockets is None
    assert session.pockets() == []


def test_battle_run_through_session(always_white):
    session = _session(always_white)
    outcome = session.run_battle((0, 0), (1, 0)).run()
    assert outcome.mode is RunMode.BATTLE
    assert outcome.winner is Winner.WHITE
    assert outcome.status_line() == "WHITE WINS! Distance 2"
    with pytest.raises(GridStateError):
        session.pockets()


def test_origin_selection_rules(always_white):
    session = _session(always_white)
    session.select_origin((2, 3))
    assert session.snapshot() == [((2, 3), Color.WHITE)]
    with pytest.raises(GridStateError):
        session.select_origin((4, 4))
    with pytest.raises(GridStateError):
        session.select_origin_pair((0, 0), (1, 0))
    with pytest.raises(GridStateError):
        session.run_battle()

    other = _session(always_white)
    with pytest.raises(GridStateError):
        other.select_origin_pair((0, 0), (2, 0))
    with pytest.raises(GridStateError):
        other.run_battle((0, 0))


def test_queries_before_an_origin_fail(always_white):
    session = _session(always_white)
    with pytest.raises(GridStateError):
        session.run_escape()
    with pytest.raises(GridStateError):
        session.interrupt()
    with pytest.raises(GridStateError):
        session.pockets()


def test_interrupt_mid_run(always_white):
    session = _session(always_white, pacing=True, speed=0.001, escape_distance=100)
    task = session.run_escape((0, 0))
    for _ in range(30):
        next(task)
    assert session.running
    with pytest.raises(GridStateError):
        session.select_origin((5, 5))
    distance = session.interrupt()
    assert not session.running
    assert session.outcome.result is Result.INTERRUPTED
    assert session.outcome.distance == distance
    assert session.outcome.pockets is None
    assert len(session.snapshot()) > 1
    with pytest.raises(GridStateError):
        session.pockets()
    with pytest.raises(GridStateError):
        session.interrupt()


def test_new_run_requires_reset(always_white):
    session = _session(always_white)
    session.run_escape((0, 0)).run()
    with pytest.raises(GridStateError):
        session.run_escape()
    session.reset()
    assert session.snapshot() == []
    assert session.outcome is None
    outcome = session.run_escape((7, -7)).run()
    assert outcome.escaped


def test_reset_cancels_an_active_run(always_white):
    session = _session(always_white, pacing=True, speed=0.001)
    task = session.run_escape((0, 0))
    next(task)
    session.reset()
    assert task.done
    assert task.outcome.interrupted
    assert not session.running
    assert session.snapshot() == []


def test_seeded_sessions_replay_identically():
    first = _session(seed=2024)
    second = _session(seed=2024)
    a = first.run_escape((0, 0)).run()
    b = second.run_escape((0, 0)).run()
    assert a == b
    assert first.snapshot() == second.snapshot()


def test_independent_sessions_do_not_share_grids(always_white, always_black):
    white = _session(always_white)
    black = _session(always_black)
    white.run_escape((0, 0)).run()
    black.run_escape((0, 0)).run()
    assert all(color is Color.WHITE for _, color in white.snapshot())
    assert black.grid.counts() == (1, 6)


def test_coordinate_limit_setting_bounds_origins(always_white):
    session = _session(always_white, coordinate_limit=20)
    with pytest.raises(ValueError):
        session.select_origin((21, 0))


def test_finished_outcome_is_frozen(always_black):
    session = _session(always_black)
    outcome = session.run_escape((0, 0)).run()
    assert hash(outcome) == hash(replace(outcome))
    assert isinstance(outcome.pockets.sizes, tuple)
    with pytest.raises(AttributeError):
        outcome.pockets.sizes.append(99)
    with pytest.raises(FrozenInstanceError):
        outcome.pockets.sizes = (99,)
    assert outcome.status_line() == "ENCIRCLED! Max dist: 0 | No pockets"


def test_horizon_beyond_coordinate_limit_is_refused(always_white):
    session = PercolationSession({"coordinate_limit": 20}, rng=always_white, pacing=False)
    with pytest.raises(CoordinateRangeError):
        session.run_escape((0, 0))
    with pytest.raises(CoordinateRangeError):
        session.run_battle((0, 0), (1, 0))
    assert not session.running
    assert session.origins == ()
    assert session.snapshot() == []

    session.select_origin((1, 1))
    with pytest.raises(CoordinateRangeError):
        session.run_escape()
    assert not session.running


def test_horizon_inside_coordinate_limit_runs(always_white):
    session = _session(always_white, coordinate_limit=12)
    outcome = session.run_escape((-3, 0)).run()
    assert outcome.escaped
    assert outcome.distance == 8
