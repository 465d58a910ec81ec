"""
Worker State & action application

Per-robot record plus the shared per-problem MissionState, and
apply_action(), the only place where game rules mutate state:

- move:     destination must be live INSIDE (or a grid obstacle while the
            drill runs); fast wheels add a second step when it is passable
- rotate:   turn 90 degrees, arms follow (they live in the body frame)
- attach:   spend an extra-manipulator charge on an adjacent arm slot
- activate: spend a fast-wheels / drill charge, or place a teleport beacon
- teleport: jump to one of this worker's beacons
- clone:    spend a clone token on a clone site, spawning a new worker
- wait:     nothing

Every successful action wraps what the worker sees afterwards, is appended
to the worker's log and ticks its booster countdowns. A failed action raises
ActionError and leaves the state untouched.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import planner_config
from wrapbot.actions import Action, ActionKind, Direction, unrotate_offset
from wrapbot.grid_map import BoosterKind, GridMap
from wrapbot.visibility import VisibilityEngine
from wrapbot.wrap_set import WrapSet

Point = Tuple[int, int]

DEFAULT_MANIPULATORS: Tuple[Point, ...] = ((0, 0), (1, -1), (1, 0), (1, 1))


class ActionError(Exception):
    """Action is illegal in the current state; nothing was changed."""


class Blocked(ActionError):
    pass


class NoCredit(ActionError):
    pass


class Disconnected(ActionError):
    pass


@dataclass
class Worker:
    """One robot. Manipulator offsets are body-frame (as if facing RIGHT)."""
    worker_id: int
    position: Point
    facing: Direction = Direction.RIGHT
    manipulators: List[Point] = field(default_factory=lambda: list(DEFAULT_MANIPULATORS))
    fast_wheels_ticks: int = 0
    drill_ticks: int = 0
    inventory: Dict[BoosterKind, int] = field(default_factory=dict)
    beacons_placed: List[Point] = field(default_factory=list)
    pending_clone_tokens: int = 0
    log: List[Action] = field(default_factory=list)

    def charges(self, kind: BoosterKind) -> int:
        return self.inventory.get(kind, 0)

    def spend(self, kind: BoosterKind) -> None:
        if self.inventory.get(kind, 0) <= 0:
            raise NoCredit(f"W{self.worker_id}: no {kind.value} charge")
        self.inventory[kind] -= 1

    def tick(self) -> None:
        """Advance booster countdowns by one action."""
        if self.fast_wheels_ticks > 0:
            self.fast_wheels_ticks -= 1
        if self.drill_ticks > 0:
            self.drill_ticks -= 1

    def status(self) -> str:
        boosters = "".join(f"{k.value}{n}" for k, n in sorted(
            self.inventory.items(), key=lambda item: item[0].value) if n)
        return (f"W{self.worker_id} @{self.position} {self.facing.name} "
                f"arms={len(self.manipulators) - 1} F{self.fast_wheels_ticks} "
                f"L{self.drill_ticks} [{boosters}]")


class MissionState:
    """
    Everything one problem run mutates: remaining boosters, wrap set,
    workers. Owned by a single solving thread.
    """

    def __init__(self, grid: GridMap):
        self.grid = grid
        self.boosters: Dict[Point, BoosterKind] = grid.boosters_at()
        self.wrap_set = WrapSet(grid)
        self.visibility = VisibilityEngine(self.wrap_set)
        self.clone_sites: Set[Point] = set(grid.spawn_sites)
        self.clones_collected = 0
        self.workers: List[Worker] = []
        first = Worker(0, grid.spawn)
        self.workers.append(first)
        self.arrive(first, grid.spawn)

    # ── Shared helpers ──────────────────────────────────────────────────

    def wrap_visible(self, worker: Worker) -> int:
        cells = self.visibility.visible_cells(worker.position, worker.facing,
                                              worker.manipulators)
        return self.wrap_set.wrap(cells)

    def collect(self, worker: Worker, cell: Point) -> Optional[BoosterKind]:
        kind = self.boosters.pop(cell, None)
        if kind is None:
            return None
        if kind == BoosterKind.CLONE:
            worker.pending_clone_tokens += 1
            self.clone_sites.add(cell)
            self.clones_collected += 1
        else:
            worker.inventory[kind] = worker.inventory.get(kind, 0) + 1
        return kind

    def arrive(self, worker: Worker, cell: Point) -> None:
        worker.position = cell
        self.collect(worker, cell)
        self.wrap_visible(worker)

    def is_passable(self, cell: Point, worker: Worker) -> bool:
        if self.wrap_set.is_inside(cell):
            return True
        return worker.drill_ticks > 0 and self.wrap_set.is_drillable(cell)

    def beacon_cells(self) -> Set[Point]:
        return {cell for w in self.workers for cell in w.beacons_placed}

    def is_clone_site(self, cell: Point) -> bool:
        return cell in self.clone_sites


# ── Action application ──────────────────────────────────────────────────

def _enter(cell: Point, worker: Worker, mission: MissionState) -> None:
    if not mission.wrap_set.is_inside(cell):
        mission.wrap_set.drill(cell)
    mission.arrive(worker, cell)


def _move(direction: Direction, worker: Worker, mission: MissionState) -> None:
    first = direction.step(worker.position)
    if not mission.is_passable(first, worker):
        raise Blocked(f"W{worker.worker_id}: cannot move {direction.name} to {first}")
    double = worker.fast_wheels_ticks > 0
    _enter(first, worker, mission)
    if double:
        second = direction.step(first)
        if mission.is_passable(second, worker):
            _enter(second, worker, mission)


def _attach(offset: Point, worker: Worker, mission: MissionState) -> None:
    body = unrotate_offset(offset, worker.facing)
    if body in worker.manipulators:
        raise Disconnected(f"W{worker.worker_id}: arm {offset} already attached")
    adjacent = any(abs(body[0] - mx) + abs(body[1] - my) == 1
                   for mx, my in worker.manipulators)
    if not adjacent:
        raise Disconnected(f"W{worker.worker_id}: arm {offset} not adjacent to body")
    worker.spend(BoosterKind.MANIPULATOR)
    worker.manipulators.append(body)
    mission.wrap_visible(worker)


def _activate(code: str, worker: Worker, mission: MissionState) -> None:
    if code == BoosterKind.FAST_WHEELS.value:
        worker.spend(BoosterKind.FAST_WHEELS)
        worker.fast_wheels_ticks += planner_config.FAST_WHEELS_DURATION + 1
    elif code == BoosterKind.DRILL.value:
        worker.spend(BoosterKind.DRILL)
        worker.drill_ticks += planner_config.DRILL_DURATION + 1
    elif code == BoosterKind.TELEPORT.value:
        if worker.position in mission.beacon_cells():
            raise Blocked(f"W{worker.worker_id}: beacon already at {worker.position}")
        worker.spend(BoosterKind.TELEPORT)
        worker.beacons_placed.append(worker.position)
    else:
        raise ValueError(f"Booster {code!r} cannot be activated")


def _teleport(target: Point, worker: Worker, mission: MissionState) -> None:
    if target not in worker.beacons_placed:
        raise NoCredit(f"W{worker.worker_id}: no beacon at {target}")
    mission.arrive(worker, target)


def _clone(worker: Worker, mission: MissionState) -> Worker:
    if worker.pending_clone_tokens <= 0:
        raise NoCredit(f"W{worker.worker_id}: no clone token")
    if not mission.is_clone_site(worker.position):
        raise Blocked(f"W{worker.worker_id}: {worker.position} is not a clone site")
    worker.pending_clone_tokens -= 1
    clone = Worker(len(mission.workers), worker.position)
    mission.workers.append(clone)
    mission.wrap_visible(clone)
    return clone


def apply_action(action: Action, worker: Worker, mission: MissionState) -> Optional[Worker]:
    """Apply one action for `worker`. Returns the spawned worker for a clone.

    Raises ActionError (Blocked / NoCredit / Disconnected) without touching
    any state when the action is illegal.
    """
    spawned = None
    if action.kind == ActionKind.MOVE:
        _move(action.direction, worker, mission)
    elif action.kind == ActionKind.ROTATE_CW:
        worker.facing = worker.facing.clockwise()
        mission.wrap_visible(worker)
    elif action.kind == ActionKind.ROTATE_CCW:
        worker.facing = worker.facing.counterclockwise()
        mission.wrap_visible(worker)
    elif action.kind == ActionKind.ATTACH:
        _attach(action.offset, worker, mission)
    elif action.kind == ActionKind.ACTIVATE:
        _activate(action.booster, worker, mission)
    elif action.kind == ActionKind.TELEPORT:
        _teleport(action.target, worker, mission)
    elif action.kind == ActionKind.CLONE:
        spawned = _clone(worker, mission)
    worker.log.append(action)
    worker.tick()
    return spawned
