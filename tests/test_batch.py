from __future__ import annotations

import json
import threading

import wrapbot.batch
from wrapbot.batch import run_batch, run_files, solve_timed
from wrapbot.grid_map import ProblemDescription
from wrapbot.planner import PlannerFailure


def rect(width: int, height: int) -> list:
    return [(0, 0), (width, 0), (width, height), (0, height)]


GOOD = ProblemDescription(rect(1, 4), (0, 0), name="good")
STUCK = ProblemDescription(rect(5, 1), (0, 0),
                           obstacles=[[(2, 0), (3, 0), (3, 1), (2, 1)]], name="stuck")
BAD_MAP = ProblemDescription(rect(2, 2), (7, 7), name="bad_map")


class TestSolveTimed:
    def test_success(self, capsys) -> None:
        result = solve_timed(GOOD)
        assert result.ok
        assert result.solution.tokens() == "WWW"
        assert result.elapsed_s >= 0
        out = capsys.readouterr().out
        assert "[DONE] good \tscore 3 \ttime" in out

    def test_planner_failure_is_captured(self, capsys) -> None:
        result = solve_timed(STUCK)
        assert not result.ok
        assert isinstance(result.failure, PlannerFailure)
        assert "[STUCK] stuck" in capsys.readouterr().out

    def test_map_error_is_captured(self, capsys) -> None:
        result = solve_timed(BAD_MAP)
        assert not result.ok
        assert result.error.startswith("map error")
        assert "[MAP] bad_map" in capsys.readouterr().out

    def test_unexpected_exception_is_a_planner_fault(self, monkeypatch, capsys) -> None:
        def broken_solve(problem, config=None):
            raise RuntimeError("GEOS exploded")

        monkeypatch.setattr(wrapbot.batch, "solve", broken_solve)
        result = solve_timed(GOOD)
        assert not result.ok
        assert result.error == "planner fault: RuntimeError: GEOS exploded"
        assert "[BATCH] good: planner fault" in capsys.readouterr().out


class TestRunBatch:
    def test_failures_do_not_affect_siblings(self) -> None:
        results = run_batch([STUCK, GOOD, BAD_MAP, GOOD], threads=3)
        assert [r.name for r in results] == ["stuck", "good", "bad_map", "good"]
        assert [r.ok for r in results] == [False, True, False, True]

    def test_crash_in_one_problem_keeps_the_others(self, monkeypatch) -> None:
        real_solve = wrapbot.batch.solve

        def flaky_solve(problem, config=None):
            if problem.name == "stuck":
                raise ValueError("cell (9, 9) is not inside")
            return real_solve(problem, config)

        monkeypatch.setattr(wrapbot.batch, "solve", flaky_solve)
        results = run_batch([GOOD, STUCK, GOOD], threads=2)
        assert [r.ok for r in results] == [True, False, True]
        assert results[1].error.startswith("planner fault: ValueError")

    def test_summary_line(self, capsys) -> None:
        run_batch([GOOD, GOOD], threads=2)
        assert "Finished 2 tasks in" in capsys.readouterr().out

    def test_cancelled_before_start(self) -> None:
        cancel = threading.Event()
        cancel.set()
        results = run_batch([GOOD, GOOD], cancel=cancel)
        assert [r.error for r in results] == ["cancelled", "cancelled"]


class TestRunFiles:
    def test_writes_solutions_next_to_inputs(self, tmp_path) -> None:
        good = tmp_path / "good.json"
        good.write_text(json.dumps({"boundary": rect(1, 3), "spawn": [0, 0]}))
        broken = tmp_path / "broken.json"
        broken.write_text("[")
        missing = tmp_path / "missing.json"

        results = run_files([good, broken, missing], threads=2)

        assert [r.ok for r in results] == [True, False, False]
        assert (tmp_path / "good.sol").read_text() == "WW\n"
        assert results[0].output_path == tmp_path / "good.sol"
        assert results[1].error.startswith("map error")
        assert results[2].error.startswith("I/O error")
        assert not (tmp_path / "broken.sol").exists()

    def test_no_write(self, tmp_path) -> None:
        good = tmp_path / "good.json"
        good.write_text(json.dumps({"boundary": rect(1, 2), "spawn": [0, 0]}))
        results = run_files([good], write_solutions=False)
        assert results[0].ok
        assert not (tmp_path / "good.sol").exists()

    def test_non_list_fields_fail_only_their_file(self, tmp_path, capsys) -> None:
        good = tmp_path / "good.json"
        good.write_text(json.dumps({"boundary": rect(1, 3), "spawn": [0, 0]}))
        no_obstacles = tmp_path / "no_obstacles.json"
        no_obstacles.write_text(json.dumps({"boundary": rect(2, 2), "spawn": [0, 0],
                                            "obstacles": None}))
        bad_boosters = tmp_path / "bad_boosters.json"
        bad_boosters.write_text(json.dumps({"boundary": rect(2, 2), "spawn": [0, 0],
                                            "boosters": 3}))

        results = run_files([good, no_obstacles, bad_boosters], threads=2)

        assert [r.ok for r in results] == [True, False, False]
        assert results[1].error.startswith("map error")
        assert "'obstacles' must be a list" in results[1].error
        assert "'boosters' must be a list" in results[2].error
        assert (tmp_path / "good.sol").read_text() == "WW\n"
        assert "Finished 3 tasks in" in capsys.readouterr().out
