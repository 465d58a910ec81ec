from __future__ import annotations

import pytest

from wrapbot.actions import Action, Direction
from wrapbot.grid_map import Booster, BoosterKind, GridMap, ProblemDescription
from wrapbot.worker import (
    DEFAULT_MANIPULATORS,
    Blocked,
    Disconnected,
    MissionState,
    NoCredit,
    apply_action,
)


def rect(width: int, height: int) -> list:
    return [(0, 0), (width, 0), (width, height), (0, height)]


def mission_for(width: int, height: int, boosters=(), obstacles=(), spawn=(0, 0)) -> MissionState:
    problem = ProblemDescription(rect(width, height), spawn, obstacles=list(obstacles),
                                 boosters=[Booster(k, c) for k, c in boosters])
    return MissionState(GridMap.load(problem))


RIGHT = Action.move(Direction.RIGHT)


class TestMissionStart:
    def test_single_worker_at_spawn(self) -> None:
        mission = mission_for(3, 3, spawn=(1, 1))
        assert len(mission.workers) == 1
        worker = mission.workers[0]
        assert worker.position == (1, 1)
        assert worker.facing == Direction.RIGHT
        assert worker.manipulators == list(DEFAULT_MANIPULATORS)
        assert mission.wrap_set.wrapped_count == 4

    def test_booster_on_spawn_is_collected(self) -> None:
        mission = mission_for(3, 1, boosters=[(BoosterKind.DRILL, (0, 0))])
        assert mission.workers[0].charges(BoosterKind.DRILL) == 1
        assert mission.boosters == {}


class TestMove:
    def test_move_wraps_and_logs(self) -> None:
        mission = mission_for(4, 1)
        worker = mission.workers[0]
        assert apply_action(RIGHT, worker, mission) is None
        assert worker.position == (1, 0)
        assert mission.wrap_set.is_wrapped((2, 0))
        assert worker.log == [RIGHT]

    def test_blocked_move_changes_nothing(self) -> None:
        mission = mission_for(2, 1)
        worker = mission.workers[0]
        with pytest.raises(Blocked):
            apply_action(Action.move(Direction.LEFT), worker, mission)
        assert worker.position == (0, 0)
        assert worker.log == []

    def test_obstacle_blocks_without_drill(self) -> None:
        hole = [(1, 0), (2, 0), (2, 1), (1, 1)]
        mission = mission_for(3, 1, obstacles=[hole])
        with pytest.raises(Blocked):
            apply_action(RIGHT, mission.workers[0], mission)

    def test_collects_booster(self) -> None:
        mission = mission_for(3, 1, boosters=[(BoosterKind.MANIPULATOR, (1, 0))])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        assert worker.charges(BoosterKind.MANIPULATOR) == 1
        assert (1, 0) not in mission.boosters


class TestBoosters:
    def test_fast_wheels_double_step(self) -> None:
        mission = mission_for(5, 1, boosters=[(BoosterKind.FAST_WHEELS, (1, 0))])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        apply_action(Action.activate("F"), worker, mission)
        assert worker.fast_wheels_ticks == 50
        apply_action(RIGHT, worker, mission)
        assert worker.position == (3, 0)
        assert worker.fast_wheels_ticks == 49
        # second step would leave the map, so only one cell is covered
        apply_action(RIGHT, worker, mission)
        assert worker.position == (4, 0)

    def test_activation_needs_charge(self) -> None:
        mission = mission_for(3, 1)
        worker = mission.workers[0]
        with pytest.raises(NoCredit):
            apply_action(Action.activate("F"), worker, mission)
        with pytest.raises(NoCredit):
            apply_action(Action.activate("L"), worker, mission)
        assert worker.log == []

    def test_drill_converts_obstacle(self) -> None:
        hole = [(3, 0), (4, 0), (4, 1), (3, 1)]
        mission = mission_for(6, 1, boosters=[(BoosterKind.DRILL, (0, 0))], obstacles=[hole])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        apply_action(RIGHT, worker, mission)
        with pytest.raises(Blocked):
            apply_action(RIGHT, worker, mission)
        apply_action(Action.activate("L"), worker, mission)
        assert worker.drill_ticks == 30
        apply_action(RIGHT, worker, mission)
        assert worker.position == (3, 0)
        assert mission.wrap_set.is_inside((3, 0))
        assert mission.wrap_set.is_wrapped((3, 0))
        assert mission.grid.is_obstacle((3, 0))

    def test_drill_runs_out(self) -> None:
        hole = [(1, 0), (2, 0), (2, 1), (1, 1)]
        mission = mission_for(3, 1, boosters=[(BoosterKind.DRILL, (0, 0))], obstacles=[hole])
        worker = mission.workers[0]
        apply_action(Action.activate("L"), worker, mission)
        for _ in range(30):
            apply_action(Action.wait(), worker, mission)
        assert worker.drill_ticks == 0
        with pytest.raises(Blocked):
            apply_action(RIGHT, worker, mission)

    def test_attach_extra_arm(self) -> None:
        mission = mission_for(4, 4, boosters=[(BoosterKind.MANIPULATOR, (0, 0))])
        worker = mission.workers[0]
        apply_action(Action.attach((1, 2)), worker, mission)
        assert (1, 2) in worker.manipulators
        assert mission.wrap_set.is_wrapped((1, 2))
        assert worker.charges(BoosterKind.MANIPULATOR) == 0

    def test_attach_is_stored_in_body_frame(self) -> None:
        mission = mission_for(4, 4, boosters=[(BoosterKind.MANIPULATOR, (0, 0))])
        worker = mission.workers[0]
        apply_action(Action.rotate(clockwise=False), worker, mission)
        assert worker.facing == Direction.UP
        apply_action(Action.attach((-2, 1)), worker, mission)
        assert worker.manipulators[-1] == (1, 2)

    def test_attach_rules(self) -> None:
        mission = mission_for(4, 4, boosters=[(BoosterKind.MANIPULATOR, (0, 0))])
        worker = mission.workers[0]
        with pytest.raises(Disconnected):
            apply_action(Action.attach((1, 0)), worker, mission)
        with pytest.raises(Disconnected):
            apply_action(Action.attach((3, 3)), worker, mission)
        apply_action(Action.attach((1, -2)), worker, mission)
        with pytest.raises(NoCredit):
            apply_action(Action.attach((1, 2)), worker, mission)
        assert len(worker.log) == 1

    def test_rotate_wraps_new_side(self) -> None:
        mission = mission_for(3, 3, spawn=(1, 1))
        worker = mission.workers[0]
        apply_action(Action.rotate(clockwise=True), worker, mission)
        assert worker.facing == Direction.DOWN
        assert mission.wrap_set.is_wrapped((0, 0))
        assert mission.wrap_set.is_wrapped((1, 0))


class TestTeleport:
    def test_beacon_and_teleport(self) -> None:
        mission = mission_for(5, 1, boosters=[(BoosterKind.TELEPORT, (0, 0))])
        worker = mission.workers[0]
        apply_action(Action.activate("R"), worker, mission)
        assert worker.beacons_placed == [(0, 0)]
        apply_action(RIGHT, worker, mission)
        apply_action(RIGHT, worker, mission)
        apply_action(Action.teleport((0, 0)), worker, mission)
        assert worker.position == (0, 0)
        assert worker.log[-1].token == "T(0,0)"

    def test_teleport_needs_own_beacon(self) -> None:
        mission = mission_for(5, 1)
        with pytest.raises(NoCredit):
            apply_action(Action.teleport((3, 0)), mission.workers[0], mission)

    def test_one_beacon_per_cell(self) -> None:
        mission = mission_for(5, 1, boosters=[(BoosterKind.TELEPORT, (0, 0)),
                                              (BoosterKind.TELEPORT, (1, 0))])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        apply_action(Action.activate("R"), worker, mission)
        with pytest.raises(Blocked):
            apply_action(Action.activate("R"), worker, mission)
        assert worker.charges(BoosterKind.TELEPORT) == 1


class TestClone:
    def test_clone_needs_token(self) -> None:
        mission = mission_for(3, 1, boosters=[(BoosterKind.SPAWN, (0, 0))])
        with pytest.raises(NoCredit):
            apply_action(Action.clone(), mission.workers[0], mission)

    def test_clone_needs_site(self) -> None:
        mission = mission_for(3, 1, boosters=[(BoosterKind.CLONE, (1, 0))])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        apply_action(RIGHT, worker, mission)
        with pytest.raises(Blocked):
            apply_action(Action.clone(), worker, mission)
        assert worker.pending_clone_tokens == 1

    def test_clone_spawns_fresh_worker(self) -> None:
        mission = mission_for(3, 1, boosters=[(BoosterKind.CLONE, (1, 0)),
                                              (BoosterKind.DRILL, (0, 0))])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        clone = apply_action(Action.clone(), worker, mission)
        assert clone is not None
        assert clone.worker_id == 1
        assert clone.position == (1, 0)
        assert clone.manipulators == list(DEFAULT_MANIPULATORS)
        assert clone.inventory == {}
        assert clone.log == []
        assert mission.workers == [worker, clone]
        assert worker.pending_clone_tokens == 0

    def test_spawn_site_accepts_clone(self) -> None:
        mission = mission_for(3, 1, boosters=[(BoosterKind.CLONE, (1, 0)),
                                              (BoosterKind.SPAWN, (2, 0))])
        worker = mission.workers[0]
        apply_action(RIGHT, worker, mission)
        apply_action(RIGHT, worker, mission)
        clone = apply_action(Action.clone(), worker, mission)
        assert clone.position == (2, 0)
