"""
Worker actions and their text tokens

Every action a worker can take, plus conversion to and from the textual
action-log format:

    W/S/A/D      move up/down/left/right
    E/Q          rotate manipulators clockwise/counterclockwise
    B(dx,dy)     attach manipulator at world-frame offset
    F/L/R        activate fast wheels / drill / place teleport beacon
    T(x,y)       teleport to a placed beacon
    C            clone
    Z            wait

Worker logs are joined with '#' in a solution file.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

Point = Tuple[int, int]


class Direction(Enum):
    """Grid directions. y grows upwards."""
    UP = (0, 1)
    DOWN = (0, -1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def step(self, cell: Point, distance: int = 1) -> Point:
        return (cell[0] + self.dx * distance, cell[1] + self.dy * distance)

    def clockwise(self) -> "Direction":
        return _CLOCKWISE[self]

    def counterclockwise(self) -> "Direction":
        return _COUNTERCLOCKWISE[self]


# Fixed expansion order used by every search, keeps plans reproducible
DIRECTIONS = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)

_CLOCKWISE = {
    Direction.RIGHT: Direction.DOWN,
    Direction.DOWN: Direction.LEFT,
    Direction.LEFT: Direction.UP,
    Direction.UP: Direction.RIGHT,
}
_COUNTERCLOCKWISE = {v: k for k, v in _CLOCKWISE.items()}

_MOVE_TOKENS = {
    Direction.UP: "W",
    Direction.DOWN: "S",
    Direction.LEFT: "A",
    Direction.RIGHT: "D",
}
_TOKEN_MOVES = {v: k for k, v in _MOVE_TOKENS.items()}


def rotate_offset(offset: Point, facing: Direction) -> Point:
    """Rotate a body-frame offset (defined facing RIGHT) into the world frame."""
    dx, dy = offset
    if facing == Direction.RIGHT:
        return (dx, dy)
    if facing == Direction.UP:
        return (-dy, dx)
    if facing == Direction.LEFT:
        return (-dx, -dy)
    return (dy, -dx)


def unrotate_offset(offset: Point, facing: Direction) -> Point:
    """Inverse of rotate_offset: world-frame offset back to the body frame."""
    dx, dy = offset
    if facing == Direction.RIGHT:
        return (dx, dy)
    if facing == Direction.UP:
        return (dy, -dx)
    if facing == Direction.LEFT:
        return (-dx, -dy)
    return (-dy, dx)


class ActionKind(Enum):
    MOVE = "move"
    ROTATE_CW = "rotate_cw"
    ROTATE_CCW = "rotate_ccw"
    ATTACH = "attach"
    ACTIVATE = "activate"
    TELEPORT = "teleport"
    CLONE = "clone"
    WAIT = "wait"


@dataclass(frozen=True)
class Action:
    """One entry of a worker's action log."""
    kind: ActionKind
    direction: Optional[Direction] = None
    offset: Optional[Point] = None      # ATTACH: world-frame offset from the worker
    booster: Optional[str] = None       # ACTIVATE: booster code 'F', 'L' or 'R'
    target: Optional[Point] = None      # TELEPORT: beacon cell

    @staticmethod
    def move(direction: Direction) -> "Action":
        return Action(ActionKind.MOVE, direction=direction)

    @staticmethod
    def rotate(clockwise: bool) -> "Action":
        return Action(ActionKind.ROTATE_CW if clockwise else ActionKind.ROTATE_CCW)

    @staticmethod
    def attach(offset: Point) -> "Action":
        return Action(ActionKind.ATTACH, offset=(int(offset[0]), int(offset[1])))

    @staticmethod
    def activate(booster_code: str) -> "Action":
        return Action(ActionKind.ACTIVATE, booster=booster_code)

    @staticmethod
    def teleport(target: Point) -> "Action":
        return Action(ActionKind.TELEPORT, target=(int(target[0]), int(target[1])))

    @staticmethod
    def clone() -> "Action":
        return Action(ActionKind.CLONE)

    @staticmethod
    def wait() -> "Action":
        return Action(ActionKind.WAIT)

    @property
    def token(self) -> str:
        if self.kind == ActionKind.MOVE:
            return _MOVE_TOKENS[self.direction]
        if self.kind == ActionKind.ROTATE_CW:
            return "E"
        if self.kind == ActionKind.ROTATE_CCW:
            return "Q"
        if self.kind == ActionKind.ATTACH:
            return f"B({self.offset[0]},{self.offset[1]})"
        if self.kind == ActionKind.ACTIVATE:
            return self.booster
        if self.kind == ActionKind.TELEPORT:
            return f"T({self.target[0]},{self.target[1]})"
        if self.kind == ActionKind.CLONE:
            return "C"
        return "Z"

    def __str__(self) -> str:
        return self.token


_TOKEN_RE = re.compile(r"(?P<op>[BT])\((?P<x>-?\d+),(?P<y>-?\d+)\)|(?P<single>[WSADEQFLRCZ])")


def parse_actions(text: str) -> List[Action]:
    """Parse one worker's action log. Raises ValueError on unknown tokens."""
    actions: List[Action] = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ValueError(f"Unknown action token at offset {pos}: {text[pos:pos + 8]!r}")
        pos = match.end()
        single = match.group("single")
        if single is None:
            point = (int(match.group("x")), int(match.group("y")))
            if match.group("op") == "B":
                actions.append(Action.attach(point))
            else:
                actions.append(Action.teleport(point))
        elif single in _TOKEN_MOVES:
            actions.append(Action.move(_TOKEN_MOVES[single]))
        elif single == "E":
            actions.append(Action.rotate(clockwise=True))
        elif single == "Q":
            actions.append(Action.rotate(clockwise=False))
        elif single in ("F", "L", "R"):
            actions.append(Action.activate(single))
        elif single == "C":
            actions.append(Action.clone())
        else:
            actions.append(Action.wait())
    return actions


def format_actions(actions: List[Action]) -> str:
    return "".join(action.token for action in actions)


def format_solution(logs: List[List[Action]]) -> str:
    """Serialize all worker logs, separated by '#'."""
    return "#".join(format_actions(log) for log in logs)


def parse_solution(text: str) -> List[List[Action]]:
    return [parse_actions(part) for part in text.strip().split("#")]
