#!/usr/bin/env python3
"""Headless percolation runs on the lazy hex grid."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from perc_core.errors import GridStateError
from perc_core.scheduler import Checkpoint, RunTask, parse_speed, speed_label
from perc_core.session import PercolationSession
from perc_core.settings import load_settings

LOG = logging.getLogger("hex_percolation")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lazy hex-grid percolation runs")
    parser.add_argument("--config", help="Path to a JSON settings file", default=None)
    parser.add_argument("--mode", choices=("escape", "battle"), default="escape")
    parser.add_argument(
        "--origin",
        nargs=2,
        type=int,
        metavar=("Q", "R"),
        default=(0, 0),
        help="Axial origin; in battle mode black starts one step east of it",
    )
    parser.add_argument("--seed", type=int, help="Seed for the colour coin flips")
    parser.add_argument("--escape-distance", type=int, help="Distance treated as infinity")
    parser.add_argument("--speed", help="Speed multiplier or 'max'")
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Honour pacing delays instead of running flat out",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging verbosity (e.g. DEBUG, INFO, WARNING)",
    )
    return parser.parse_args(argv)


def _report(checkpoint: Checkpoint) -> None:
    if checkpoint.render:
        LOG.debug(
            "Distance: %d | Frontier: %d | Visited: %d",
            checkpoint.distance,
            checkpoint.frontier,
            checkpoint.visited,
        )


async def _drive_realtime(task: RunTask) -> None:
    for checkpoint in task:
        _report(checkpoint)
        await asyncio.sleep(checkpoint.delay)


def _drive(task: RunTask, realtime: bool) -> None:
    if realtime:
        asyncio.run(_drive_realtime(task))
        return
    for checkpoint in task:
        _report(checkpoint)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_level_name = str(args.log_level).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except RuntimeError as exc:
        LOG.error("%s", exc)
        return 2
    if args.seed is not None:
        settings["seed"] = args.seed
    if args.escape_distance is not None:
        settings["escape_distance"] = args.escape_distance
    if args.speed is not None:
        try:
            settings["speed"] = parse_speed(args.speed)
        except ValueError as exc:
            LOG.error("Invalid speed: %s", exc)
            return 2

    session = PercolationSession(settings)
    origin = tuple(args.origin)
    LOG.info("Launching %s run at %s (speed=%s)", args.mode, origin, speed_label(parse_speed(settings["speed"])))
    try:
        if args.mode == "battle":
            task = session.run_battle(origin, (origin[0] + 1, origin[1]))
        else:
            task = session.run_escape(origin)
    except (ValueError, GridStateError) as exc:
        LOG.error("Cannot start run: %s", exc)
        return 2

    try:
        _drive(task, args.realtime)
    except KeyboardInterrupt:
        session.interrupt()

    print(session.outcome.status_line())
    return 0


if __name__ == "__main__":
    sys.exit(main())
