"""
Problem / solution files

Problems are JSON objects holding the already-parsed description:

    {"name": "corridor",
     "boundary": [[0, 0], [6, 0], [6, 1], [0, 1]],
     "obstacles": [[[3, 0], [4, 0], [4, 1], [3, 1]]],
     "boosters": [["L", [1, 0]]],
     "spawn": [0, 0]}

"name" defaults to the file stem, "obstacles" and "boosters" to empty.
Solutions are written next to the problem as <stem>.sol, one line of
action tokens with worker logs separated by '#'.
"""

import json
from pathlib import Path
from typing import Dict, List, Union

from wrapbot.actions import Action, format_solution, parse_solution
from wrapbot.grid_map import MapError, ProblemDescription, booster_from_code

PathLike = Union[str, Path]


def _point(value, what: str):
    if (not isinstance(value, (list, tuple)) or len(value) != 2
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)):
        raise MapError(f"{what}: expected [x, y] integers, got {value!r}")
    return (value[0], value[1])


def _list_field(data: Dict, key: str, name: str) -> List:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise MapError(f"{name}: {key!r} must be a list, got {value!r}")
    return value


def problem_from_dict(data: Dict, default_name: str = "problem") -> ProblemDescription:
    """Build a ProblemDescription from decoded JSON. Raises MapError."""
    if not isinstance(data, dict):
        raise MapError(f"{default_name}: problem must be a JSON object")
    name = data.get("name", default_name)
    try:
        boundary = [_point(p, f"{name}: boundary") for p in data["boundary"]]
        spawn = _point(data["spawn"], f"{name}: spawn")
    except KeyError as exc:
        raise MapError(f"{name}: missing field {exc.args[0]!r}") from None
    except TypeError:
        raise MapError(f"{name}: boundary must be a list of points") from None
    obstacles = []
    for i, hole in enumerate(_list_field(data, "obstacles", name)):
        if not isinstance(hole, list):
            raise MapError(f"{name}: obstacle #{i} must be a list of points")
        obstacles.append([_point(p, f"{name}: obstacle #{i}") for p in hole])
    boosters = []
    for entry in _list_field(data, "boosters", name):
        if not isinstance(entry, list) or len(entry) != 2 or not isinstance(entry[0], str):
            raise MapError(f"{name}: booster entries look like [\"B\", [x, y]], got {entry!r}")
        boosters.append(booster_from_code(entry[0], _point(entry[1], f"{name}: booster")))
    return ProblemDescription(boundary=boundary, spawn=spawn, obstacles=obstacles,
                              boosters=boosters, name=name)


def load_problem(path: PathLike) -> ProblemDescription:
    """Read a JSON problem file. Raises MapError (naming the file) or OSError."""
    path = Path(path)
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise MapError(f"{path.name}: malformed JSON ({exc.msg}, line {exc.lineno})") from None
    try:
        return problem_from_dict(data, default_name=path.stem)
    except MapError as exc:
        raise MapError(f"{path.name}: {exc}") from None


def problem_to_dict(problem: ProblemDescription) -> Dict:
    return {
        "name": problem.name,
        "boundary": [list(p) for p in problem.boundary],
        "obstacles": [[list(p) for p in hole] for hole in problem.obstacles],
        "boosters": [[b.kind.value, list(b.location)] for b in problem.boosters],
        "spawn": list(problem.spawn),
    }


def solution_path_for(problem_path: PathLike) -> Path:
    return Path(problem_path).with_suffix(".sol")


def write_solution(path: PathLike, logs: List[List[Action]]) -> Path:
    path = Path(path)
    with open(path, "w") as f:
        f.write(format_solution(logs) + "\n")
    return path


def read_solution(path: PathLike) -> List[List[Action]]:
    """Read a .sol file back into per-worker logs. Raises ValueError on bad tokens."""
    with open(path, "r") as f:
        return parse_solution(f.read())
