"""
Batch Scheduler

Fans problems out over a fixed-size thread pool, one problem per task from
load to finished logs. Problems share nothing mutable, so no locking is
needed. A problem that fails (bad map, planner stuck, file error, planner
fault) is reported and never takes its siblings down with it.

Status lines are tagged like the rest of the tooling:
    [MAP]   problem could not be loaded
    [DONE]  solved: score (time steps) and wall time
    [STUCK] planner gave up
    [BATCH] summary
"""

import threading
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from wrapbot.grid_map import GridMap, MapError, ProblemDescription
from wrapbot.planner import PlannerConfig, PlannerFailure, Solution, solve
from wrapbot.problem_io import load_problem, solution_path_for, write_solution

Problem = Union[ProblemDescription, GridMap]


@dataclass
class BatchResult:
    name: str
    solution: Optional[Solution] = None
    failure: Optional[PlannerFailure] = None
    error: Optional[str] = None
    elapsed_s: float = 0.0
    output_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.solution is not None

    def summary(self) -> str:
        ms = int(self.elapsed_s * 1000)
        if self.solution is not None:
            return f"{self.name} \tscore {self.solution.time_steps} \ttime {ms} ms"
        if self.failure is not None:
            return f"{self.name} \tfailed: {self.failure} \ttime {ms} ms"
        return f"{self.name} \terror: {self.error} \ttime {ms} ms"


def _problem_name(problem) -> str:
    return getattr(problem, "name", str(problem))


def solve_timed(problem: Problem, config: Optional[PlannerConfig] = None,
                name: Optional[str] = None) -> BatchResult:
    """Solve one problem, catching everything that only concerns this problem."""
    name = name or _problem_name(problem)
    start = time.perf_counter()
    result = BatchResult(name)
    try:
        result.solution = solve(problem, config)
    except MapError as e:
        result.error = f"map error: {e}"
        print(f"[MAP] {name}: {e}")
    except PlannerFailure as e:
        result.failure = e
        print(f"[STUCK] {name}: {e}")
    except Exception as e:
        # leaked ActionError, GEOS or numpy errors: a bug, but only this problem's
        result.error = f"planner fault: {type(e).__name__}: {e}"
        print(f"[BATCH] {name}: {result.error}")
        traceback.print_exc()
    result.elapsed_s = time.perf_counter() - start
    if result.solution is not None:
        print(f"[DONE] {result.summary()}")
    return result


def _solve_file(path: Path, config: Optional[PlannerConfig], write_solutions: bool,
                cancel: Optional[threading.Event]) -> BatchResult:
    if cancel is not None and cancel.is_set():
        return BatchResult(path.name, error="cancelled")
    start = time.perf_counter()
    try:
        problem = load_problem(path)
    except MapError as e:
        print(f"[MAP] {e}")
        return BatchResult(path.name, error=f"map error: {e}",
                           elapsed_s=time.perf_counter() - start)
    except OSError as e:
        print(f"[MAP] {path}: {e}")
        return BatchResult(path.name, error=f"I/O error: {e}",
                           elapsed_s=time.perf_counter() - start)
    except Exception as e:
        print(f"[BATCH] {path.name}: could not load: {type(e).__name__}: {e}")
        traceback.print_exc()
        return BatchResult(path.name, error=f"planner fault: {type(e).__name__}: {e}",
                           elapsed_s=time.perf_counter() - start)
    result = solve_timed(problem, config, name=path.name)
    if result.solution is not None and write_solutions:
        try:
            result.output_path = write_solution(solution_path_for(path), result.solution.logs)
        except OSError as e:
            print(f"[BATCH] {path.name}: could not write solution: {e}")
            result.error = f"I/O error: {e}"
    return result


def _solve_problem(problem: Problem, config: Optional[PlannerConfig],
                   cancel: Optional[threading.Event]) -> BatchResult:
    if cancel is not None and cancel.is_set():
        return BatchResult(_problem_name(problem), error="cancelled")
    return solve_timed(problem, config)


def _run(tasks, threads: int, cancel: Optional[threading.Event]) -> List[BatchResult]:
    start = time.perf_counter()
    threads = max(1, int(threads))
    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = [pool.submit(fn, *args) for fn, args in tasks]
        try:
            results = [f.result() for f in futures]
        except KeyboardInterrupt:
            # running problems finish, queued ones are dropped
            if cancel is not None:
                cancel.set()
            for f in futures:
                f.cancel()
            raise
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    solved = sum(1 for r in results if r.ok)
    print(f"[BATCH] Finished {len(results)} tasks in {elapsed_ms} ms "
          f"({solved} solved, {threads} thread(s))")
    return results


def run_batch(problems: Sequence[Problem], threads: int = 1,
              config: Optional[PlannerConfig] = None,
              cancel: Optional[threading.Event] = None) -> List[BatchResult]:
    """Solve in-memory problems; results come back in submission order."""
    return _run([(_solve_problem, (p, config, cancel)) for p in problems], threads, cancel)


def run_files(paths: Sequence[Union[str, Path]], threads: int = 1,
              config: Optional[PlannerConfig] = None, write_solutions: bool = True,
              cancel: Optional[threading.Event] = None) -> List[BatchResult]:
    """Load, solve and (optionally) write <stem>.sol for each problem file."""
    return _run([(_solve_file, (Path(p), config, write_solutions, cancel)) for p in paths],
                threads, cancel)
