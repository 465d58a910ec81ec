#!/usr/bin/env python3
"""
Wrapping Solver - Main Entry Point

Solves grid-wrapping problems (JSON, see wrapbot/problem_io.py) and writes
one <problem>.sol file next to each input.

Usage:
    python solver_main.py problems/*.json --threads 8
    python solver_main.py corridor.json --interactive

Planner tunables default to planner_config.py; --config takes a JSON object
of PlannerConfig overrides (unknown keys are rejected).

Interactive mode opens the pygame replay viewer for every solved problem:
- SPACE: Start/stop autoplay
- RIGHT / N: Next round
- ESC: Next problem / exit
"""

import argparse
import sys
import threading

from planner_config import PLANNER, PLANNER_INFO
from wrapbot.batch import run_files
from wrapbot.grid_map import GridMap
from wrapbot.planner import PlannerConfig
from wrapbot.problem_io import load_problem


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Greedy multi-worker grid wrapping solver")
    parser.add_argument("problems", nargs="+", help="problem files (JSON)")
    parser.add_argument("--threads", type=int, default=1, help="solver threads (default 1)")
    parser.add_argument("--interactive", action="store_true",
                        help="step through each solution in the replay viewer")
    parser.add_argument("--config", default=None, help="JSON file with planner overrides")
    parser.add_argument("--no-write", action="store_true", help="do not write .sol files")
    parser.add_argument("--delay-ms", type=int, default=50,
                        help="autoplay delay between rounds in the viewer")
    parser.add_argument("--verbose", action="store_true", help="print planner decisions")
    args = parser.parse_args(argv)
    if args.threads < 1:
        parser.error("--threads must be at least 1")
    return args


def show_replays(results, paths, delay_ms: int) -> None:
    # pygame is only needed here
    from viewer.graphics import ReplayViewer

    for result, path in zip(results, paths):
        if not result.ok:
            continue
        grid = GridMap.load(load_problem(path))
        ReplayViewer(grid, result.solution.logs, delay_ms=delay_ms).run()


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        config = PlannerConfig.from_json(args.config) if args.config else PlannerConfig()
    except (OSError, ValueError) as e:
        print(f"Error: bad planner config: {e}")
        return 2
    if args.verbose:
        config.verbose = True

    info = PLANNER_INFO[PLANNER]
    print(f"[BATCH] {info['name']}: {len(args.problems)} problem(s) on {args.threads} thread(s)")
    cancel = threading.Event()
    try:
        results = run_files(args.problems, threads=args.threads, config=config,
                            write_solutions=not args.no_write, cancel=cancel)
    except KeyboardInterrupt:
        cancel.set()
        print("\nSolver interrupted by user.")
        return 130

    for result in results:
        print(result.summary())

    if args.interactive:
        show_replays(results, args.problems, args.delay_ms)

    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
