"""
Planner: greedy multi-worker wrapping
VERSION: 1.0

STRATEGY (per round, workers act in id order):
A SEEKING worker picks the first thing that applies:
  1. clone          token in hand, standing on a clone site, work left far away
  2. attach         extra-manipulator charge -> next front-line arm slot
  3. beacon         teleport charge and no own beacon nearby
  4. rotate         turning wraps >= rotate_min_gain new cells right away
  5. route (BFS)    booster close by -> clone site (token in hand) ->
                    clone booster hunt (worker 0) -> nearest unclaimed
                    unwrapped cell -> nearest unwrapped cell
  6. drill route    nothing reachable on foot (or drilling saves a lot)
  7. wait           idle for this round
A MOVING worker follows its route, re-checking the next step every round.
An IDLE worker waits without searching again until drilling changes the
terrain or its own drill countdown moves.

BFS expands up/down/left/right, adds teleport edges from the start cell to
the worker's own beacons and crosses obstacles only while the drill
countdown covers the depth. Ties between equally near targets go to the
smallest y, then x. Nothing here depends on set iteration order, so a
problem always produces the same logs.

MULTI-WORKER:
- targets are claimed; others prefer unclaimed cells (claimed_by_others)
- clones spawned during a round start acting the round after

TERMINATION:
- DONE:  no live INSIDE cell is left unwrapped
- STUCK: a full round where every worker waited, or the round cap
         (10 x inside cells + 100 unless configured) -> PlannerFailure
"""

import json
from collections import deque
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple, Union

import planner_config
from wrapbot.actions import DIRECTIONS, Action, ActionKind, format_solution, rotate_offset
from wrapbot.grid_map import BoosterKind, GridMap, ProblemDescription
from wrapbot.worker import ActionError, MissionState, Worker, apply_action

Point = Tuple[int, int]
Step = Tuple[Action, Point]


# ── Configuration ───────────────────────────────────────────────────────

@dataclass
class PlannerConfig:
    """Planner tunables; defaults come from planner_config.py."""
    fast_wheels_min_path: int = planner_config.FAST_WHEELS_MIN_PATH
    booster_detour_radius: int = planner_config.BOOSTER_DETOUR_RADIUS
    beacon_min_spacing: int = planner_config.BEACON_MIN_SPACING
    clone_min_separation: int = planner_config.CLONE_MIN_SEPARATION
    rotate_min_gain: int = planner_config.ROTATE_MIN_GAIN
    drill_shortcut_gain: int = planner_config.DRILL_SHORTCUT_GAIN
    max_rounds: Optional[int] = None
    verbose: bool = False

    @classmethod
    def from_dict(cls, overrides: Dict) -> "PlannerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown planner setting(s): {', '.join(unknown)}")
        return cls(**overrides)

    @classmethod
    def from_json(cls, path) -> "PlannerConfig":
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: planner config must be a JSON object")
        return cls.from_dict(data)

    def round_cap(self, inside_count: int) -> int:
        if self.max_rounds is not None:
            return self.max_rounds
        return 10 * inside_count + 100


# ── Results ─────────────────────────────────────────────────────────────

@dataclass
class Solution:
    name: str
    logs: List[List[Action]]
    rounds: int
    coverage: float = 1.0

    @property
    def worker_count(self) -> int:
        return len(self.logs)

    @property
    def time_steps(self) -> int:
        """Lock-step rounds until the last cell got wrapped."""
        return self.rounds

    def tokens(self) -> str:
        return format_solution(self.logs)


class PlannerFailure(Exception):
    """Planner gave up: stuck or out of rounds. Carries the partial logs."""

    def __init__(self, reason: str, rounds: int, coverage: float,
                 logs: Optional[List[List[Action]]] = None):
        super().__init__(f"{reason} after {rounds} rounds ({coverage:.1%} wrapped)")
        self.reason = reason
        self.rounds = rounds
        self.coverage = coverage
        self.logs = logs or []


# ── Per-worker plan state ───────────────────────────────────────────────

class WorkerMode(Enum):
    SEEKING = "SEEKING"
    MOVING = "MOVING"
    IDLE = "IDLE"


class Goal(Enum):
    BOOSTER = "booster"
    CLONE_SITE = "clone_site"
    UNWRAPPED = "unwrapped"


@dataclass
class WorkerPlan:
    goal: Goal
    target: Point
    steps: Deque[Step] = field(default_factory=deque)
    drilling: bool = False


# ── Planner ─────────────────────────────────────────────────────────────

class Planner:
    """Runs one problem to completion. Not shared between threads."""

    def __init__(self, grid: GridMap, config: Optional[PlannerConfig] = None):
        self.grid = grid
        self.config = config or PlannerConfig()
        self.mission = MissionState(grid)
        self.wrap_set = self.mission.wrap_set
        self.plans: Dict[int, WorkerPlan] = {}
        self.modes: Dict[int, WorkerMode] = {0: WorkerMode.SEEKING}
        # terrain an IDLE worker last searched; it only re-seeks once that changes
        self.idle_terrain: Dict[int, Tuple[int, int]] = {}
        self.rounds = 0

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(f"[PLAN] {self.grid.name} r{self.rounds}: {message}")

    # ── Main loop ───────────────────────────────────────────────────────

    def run(self) -> Solution:
        cap = self.config.round_cap(self.grid.inside_count)
        while not self.wrap_set.is_full:
            if self.rounds >= cap:
                raise self._failure("round cap reached")
            active = len(self.mission.workers)
            progressed = False
            for worker_id in range(active):
                if self.wrap_set.is_full:
                    break
                if self._take_turn(self.mission.workers[worker_id]):
                    progressed = True
            self.rounds += 1
            if not progressed and not self.wrap_set.is_full:
                raise self._failure("stuck")
        logs = [_trim_waits(w.log) for w in self.mission.workers]
        self._log(f"done with {len(logs)} worker(s) in {self.rounds} rounds")
        return Solution(self.grid.name, logs, self.rounds, self.wrap_set.coverage)

    def _failure(self, reason: str) -> PlannerFailure:
        self._log(f"{reason}, {self.wrap_set.remaining} cell(s) left")
        return PlannerFailure(reason, self.rounds, self.wrap_set.coverage,
                              [list(w.log) for w in self.mission.workers])

    def _take_turn(self, worker: Worker) -> bool:
        """One action for `worker`. False if it ended up waiting."""
        failed = False
        for _attempt in range(2):
            action = self._choose_action(worker)
            if action.kind == ActionKind.WAIT:
                break
            before = worker.position
            try:
                spawned = apply_action(action, worker, self.mission)
            except ActionError as exc:
                self._log(f"W{worker.worker_id} {action.token} failed: {exc}")
                self._drop_plan(worker)
                failed = True
                continue
            self._after_action(worker, action, before)
            if spawned is not None:
                self.modes[spawned.worker_id] = WorkerMode.SEEKING
                self._log(f"W{worker.worker_id} cloned W{spawned.worker_id} at {spawned.position}")
            return True
        self.modes[worker.worker_id] = WorkerMode.IDLE
        if failed:
            self.idle_terrain.pop(worker.worker_id, None)
        else:
            self.idle_terrain[worker.worker_id] = self._terrain_key(worker)
        apply_action(Action.wait(), worker, self.mission)
        return False

    def _terrain_key(self, worker: Worker) -> Tuple[int, int]:
        return self.wrap_set.version, worker.drill_ticks

    # ── Route bookkeeping ───────────────────────────────────────────────

    def _drop_plan(self, worker: Worker) -> None:
        self.plans.pop(worker.worker_id, None)
        self.modes[worker.worker_id] = WorkerMode.SEEKING

    def _after_action(self, worker: Worker, action: Action, before: Point) -> None:
        plan = self.plans.get(worker.worker_id)
        if plan is None:
            self.modes[worker.worker_id] = WorkerMode.SEEKING
            return
        if action.kind not in (ActionKind.MOVE, ActionKind.TELEPORT):
            return  # booster activation ahead of the route
        # fast wheels may cover two route cells, or push the worker off route
        if plan.steps and plan.steps[0][1] == worker.position:
            plan.steps.popleft()
        elif (len(plan.steps) >= 2 and plan.steps[1][1] == worker.position
              and plan.steps[0][0].kind == ActionKind.MOVE):
            plan.steps.popleft()
            plan.steps.popleft()
        else:
            self._log(f"W{worker.worker_id} left its route at {worker.position} (from {before})")
            self._drop_plan(worker)
            return
        if not plan.steps:
            self._drop_plan(worker)

    def _plan_valid(self, worker: Worker, plan: WorkerPlan) -> bool:
        if not plan.steps:
            return False
        if plan.goal == Goal.UNWRAPPED and self.wrap_set.is_wrapped(plan.target):
            return False
        if plan.goal == Goal.BOOSTER and plan.target not in self.mission.boosters:
            return False
        if plan.goal == Goal.CLONE_SITE and worker.pending_clone_tokens == 0:
            return False
        action, cell = plan.steps[0]
        if action.kind == ActionKind.TELEPORT:
            return cell in worker.beacons_placed
        return self.mission.is_passable(cell, worker)

    def _claimed_by_others(self, worker: Worker) -> Dict[Point, int]:
        return {plan.target: wid for wid, plan in self.plans.items()
                if wid != worker.worker_id}

    # ── Decision ────────────────────────────────────────────────────────

    def _choose_action(self, worker: Worker) -> Action:
        mode = self.modes[worker.worker_id]
        if mode == WorkerMode.MOVING:
            plan = self.plans[worker.worker_id]
            if self._plan_valid(worker, plan):
                return plan.steps[0][0]
            self._drop_plan(worker)
        elif (mode == WorkerMode.IDLE
              and self.idle_terrain.get(worker.worker_id) == self._terrain_key(worker)):
            # wrapping only shrinks the work left, so nothing new to find
            return Action.wait()
        return self._seek(worker)

    def _seek(self, worker: Worker) -> Action:
        cfg = self.config
        mission = self.mission

        # 1. clone
        if (worker.pending_clone_tokens > 0 and mission.is_clone_site(worker.position)
                and self._clone_worthwhile()):
            return Action.clone()

        # 2. extra arm
        if worker.charges(BoosterKind.MANIPULATOR) > 0:
            return Action.attach(rotate_offset(_next_arm_slot(worker), worker.facing))

        # 3. teleport beacon
        if (worker.charges(BoosterKind.TELEPORT) > 0
                and worker.position not in mission.beacon_cells()
                and all(_manhattan(worker.position, b) >= cfg.beacon_min_spacing
                        for b in worker.beacons_placed)):
            return Action.activate(BoosterKind.TELEPORT.value)

        # 4. rotation
        gain_cw = mission.visibility.unwrapped_gain(
            worker.position, worker.facing.clockwise(), worker.manipulators)
        gain_ccw = mission.visibility.unwrapped_gain(
            worker.position, worker.facing.counterclockwise(), worker.manipulators)
        if max(gain_cw, gain_ccw) >= cfg.rotate_min_gain:
            return Action.rotate(clockwise=gain_cw >= gain_ccw)

        # 5./6. routes
        plan = self._plan_route(worker)
        if plan is None:
            return Action.wait()
        self.plans[worker.worker_id] = plan
        self.modes[worker.worker_id] = WorkerMode.MOVING
        self._log(f"W{worker.worker_id} -> {plan.goal.value} {plan.target} "
                  f"({len(plan.steps)} steps{', drilling' if plan.drilling else ''})")

        if plan.drilling and worker.drill_ticks == 0:
            return Action.activate(BoosterKind.DRILL.value)
        if (not plan.drilling and len(plan.steps) >= cfg.fast_wheels_min_path
                and worker.fast_wheels_ticks == 0
                and worker.charges(BoosterKind.FAST_WHEELS) > 0):
            return Action.activate(BoosterKind.FAST_WHEELS.value)
        return plan.steps[0][0]

    def _clone_worthwhile(self) -> bool:
        """Some unwrapped cell lies clone_min_separation away from every worker."""
        positions = [w.position for w in self.mission.workers]
        for cell in self.wrap_set.unwrapped_cells():
            if all(_manhattan(cell, p) >= self.config.clone_min_separation for p in positions):
                return True
        return False

    def _plan_route(self, worker: Worker) -> Optional[WorkerPlan]:
        cfg = self.config
        mission = self.mission
        claimed = self._claimed_by_others(worker)
        budget = worker.drill_ticks

        def make(goal: Goal, found) -> Optional[WorkerPlan]:
            if found is None:
                return None
            target, steps = found
            drilling = any(self.wrap_set.is_drillable(cell) for action, cell in steps
                           if action.kind == ActionKind.MOVE)
            return WorkerPlan(goal, target, deque(steps), drilling)

        # boosters close by
        found = self._search(worker, lambda c: c in mission.boosters and c not in claimed,
                             budget, max_depth=cfg.booster_detour_radius)
        if found is not None:
            return make(Goal.BOOSTER, found)

        if worker.pending_clone_tokens > 0 and self._clone_worthwhile():
            found = self._search(worker, mission.is_clone_site, budget)
            if found is not None:
                return make(Goal.CLONE_SITE, found)

        if (worker.worker_id == 0 and mission.clones_collected == 0
                and BoosterKind.CLONE in mission.boosters.values()):
            found = self._search(
                worker, lambda c: mission.boosters.get(c) == BoosterKind.CLONE, budget)
            if found is not None:
                return make(Goal.BOOSTER, found)

        plain = self._search(
            worker, lambda c: self.wrap_set.is_unwrapped(c) and c not in claimed, budget)
        if plain is None:
            plain = self._search(worker, self.wrap_set.is_unwrapped, budget)

        # an already running drill is covered by `budget` above
        if worker.charges(BoosterKind.DRILL) > 0 and worker.drill_ticks == 0:
            drilled = self._search(worker, self.wrap_set.is_unwrapped,
                                   planner_config.DRILL_DURATION)
            if drilled is not None and (
                    plain is None
                    or len(drilled[1]) + cfg.drill_shortcut_gain <= len(plain[1])):
                plan = make(Goal.UNWRAPPED, drilled)
                if plan.drilling:
                    return plan
        return make(Goal.UNWRAPPED, plain)

    def _search(self, worker: Worker, accept: Callable[[Point], bool], drill_budget: int,
                max_depth: Optional[int] = None) -> Optional[Tuple[Point, List[Step]]]:
        """Layered BFS from the worker; nearest accepted cell, row-major tie-break."""
        start = worker.position
        parents: Dict[Point, Optional[Tuple[Point, Action]]] = {start: None}
        frontier = [start]
        depth = 0
        while frontier:
            depth += 1
            if max_depth is not None and depth > max_depth:
                return None
            layer: List[Point] = []
            for cell in frontier:
                for direction in DIRECTIONS:
                    neighbour = direction.step(cell)
                    if neighbour in parents:
                        continue
                    if self.wrap_set.is_inside(neighbour) or (
                            depth <= drill_budget and self.wrap_set.is_drillable(neighbour)):
                        parents[neighbour] = (cell, Action.move(direction))
                        layer.append(neighbour)
                if cell == start:
                    for beacon in worker.beacons_placed:
                        if beacon not in parents:
                            parents[beacon] = (cell, Action.teleport(beacon))
                            layer.append(beacon)
            hits = [c for c in layer if accept(c)]
            if hits:
                target = min(hits, key=lambda c: (c[1], c[0]))
                return target, _unwind(parents, target)
            frontier = layer
        return None


# ── Helpers ─────────────────────────────────────────────────────────────

def _manhattan(a: Point, b: Point) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def _unwind(parents: Dict[Point, Optional[Tuple[Point, Action]]], target: Point) -> List[Step]:
    steps: List[Step] = []
    cell = target
    while parents[cell] is not None:
        prev, action = parents[cell]
        steps.append((action, cell))
        cell = prev
    steps.reverse()
    return steps


def _next_arm_slot(worker: Worker) -> Point:
    """Front line x=1, growing upwards and downwards in turn (body frame)."""
    front = [y for x, y in worker.manipulators if x == 1]
    if not front:
        return (1, 0)
    if len(worker.manipulators) % 2 == 0:
        return (1, max(front) + 1)
    return (1, min(front) - 1)


def _trim_waits(log: List[Action]) -> List[Action]:
    end = len(log)
    while end > 0 and log[end - 1].kind == ActionKind.WAIT:
        end -= 1
    return log[:end]


def solve(problem: Union[ProblemDescription, GridMap],
          config: Optional[PlannerConfig] = None) -> Solution:
    """Solve one problem. Raises MapError or PlannerFailure."""
    grid = problem if isinstance(problem, GridMap) else GridMap.load(problem)
    return Planner(grid, config).run()
