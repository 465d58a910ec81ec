from __future__ import annotations

import pytest

from wrapbot.actions import parse_actions, parse_solution
from wrapbot.grid_map import Booster, BoosterKind, GridMap, ProblemDescription
from wrapbot.replay import ReplayError, iter_replay, replay


def rect(width: int, height: int) -> list:
    return [(0, 0), (width, 0), (width, height), (0, height)]


def corridor(length: int, boosters=()) -> GridMap:
    return GridMap.load(ProblemDescription(rect(length, 1), (0, 0),
                                           boosters=[Booster(k, c) for k, c in boosters]))


class TestReplay:
    def test_yields_initial_state_then_each_round(self) -> None:
        grid = corridor(4)
        rounds = [(r, m.workers[0].position) for r, m in iter_replay(grid, [parse_actions("DD")])]
        assert rounds == [(0, (0, 0)), (1, (1, 0)), (2, (2, 0))]

    def test_final_state(self) -> None:
        mission = replay(corridor(4), [parse_actions("DD")])
        assert mission.wrap_set.is_full
        assert mission.workers[0].position == (2, 0)

    def test_illegal_action_names_round_and_worker(self) -> None:
        with pytest.raises(ReplayError, match="round 2, worker 0"):
            replay(corridor(2), [parse_actions("DD")])

    def test_log_for_worker_never_spawned(self) -> None:
        with pytest.raises(ReplayError, match="2 logs"):
            replay(corridor(3), parse_solution("D#D"))

    def test_clone_starts_next_round(self) -> None:
        grid = corridor(5, boosters=[(BoosterKind.CLONE, (1, 0))])
        logs = parse_solution("DCDD#D")
        positions = []
        for _, mission in iter_replay(grid, logs):
            positions.append([w.position for w in mission.workers])
        assert positions == [
            [(0, 0)],
            [(1, 0)],
            [(1, 0), (1, 0)],
            [(2, 0), (2, 0)],
            [(3, 0), (2, 0)],
        ]

    def test_clone_without_token_is_rejected(self) -> None:
        grid = corridor(3, boosters=[(BoosterKind.SPAWN, (1, 0))])
        with pytest.raises(ReplayError, match="clone token"):
            replay(grid, parse_solution("DC"))
