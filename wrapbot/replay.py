"""
Replay: re-execute worker logs from the initial state

Used to check solutions (every cell wrapped, no illegal action) and to drive
the step-by-step viewer. Rounds are lock-step: in each round every worker
that existed when the round began executes its next logged action, in id
order; a worker cloned during a round starts with the next one.
"""

from typing import Iterator, List, Tuple

from wrapbot.actions import Action
from wrapbot.grid_map import GridMap
from wrapbot.worker import ActionError, MissionState, apply_action


class ReplayError(ValueError):
    """A logged action is illegal at the point where it is replayed."""


def iter_replay(grid: GridMap, logs: List[List[Action]]) -> Iterator[Tuple[int, MissionState]]:
    """Yield (round, mission) before the first round and after every round.

    The same MissionState object is yielded each time; callers that keep
    frames must copy what they need.
    """
    mission = MissionState(grid)
    cursors = [0] * len(logs)
    round_no = 0
    yield round_no, mission
    while True:
        active = min(len(mission.workers), len(logs))
        pending = [wid for wid in range(active) if cursors[wid] < len(logs[wid])]
        if not pending:
            break
        for wid in pending:
            action = logs[wid][cursors[wid]]
            try:
                apply_action(action, mission.workers[wid], mission)
            except ActionError as exc:
                raise ReplayError(f"round {round_no + 1}, worker {wid}, "
                                  f"action #{cursors[wid]} {action.token}: {exc}") from exc
            cursors[wid] += 1
        round_no += 1
        yield round_no, mission
    if len(logs) > len(mission.workers):
        raise ReplayError(f"{len(logs)} logs but only {len(mission.workers)} worker(s) spawned")


def replay(grid: GridMap, logs: List[List[Action]]) -> MissionState:
    """Run all logs to the end and return the final state. Raises ReplayError."""
    mission = None
    for _round, mission in iter_replay(grid, logs):
        pass
    return mission
