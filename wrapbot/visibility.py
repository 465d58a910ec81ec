"""
Visibility / Coverage Engine

Decides which cells a worker wraps from a pose. A manipulator arm reaches
its target cell only if every lattice cell touched by the segment joining
the centre of the worker's cell and the centre of the target is INSIDE.

"Touched" is the supercover of the segment: a cell counts if the segment
meets its closed square, corner grazes included, so an arm never reaches
through a diagonal gap between two obstacle cells.

The touched-cell list ("blockers") depends only on the world-frame offset,
so it is computed once per offset for the whole process. Whole-pose results
are memoized per problem run and dropped whenever drilling changes terrain.
"""

from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, Sequence, Tuple

from wrapbot.actions import Direction, rotate_offset
from wrapbot.wrap_set import WrapSet

Point = Tuple[int, int]

MEMO_LIMIT = 200_000


def _segment_touches_cell(bx: int, by: int, cx: int, cy: int) -> bool:
    """Exact closed-square test in doubled coordinates.

    Segment runs from A=(1, 1) to B=(bx, by); cell (cx, cy) is the box
    [2cx, 2cx+2] x [2cy, 2cy+2]. Separating axes: x, y and the segment normal.
    """
    ax, ay = 1, 1
    x0, x1 = 2 * cx, 2 * cx + 2
    y0, y1 = 2 * cy, 2 * cy + 2
    if max(min(ax, bx), x0) > min(max(ax, bx), x1):
        return False
    if max(min(ay, by), y0) > min(max(ay, by), y1):
        return False
    ux, uy = bx - ax, by - ay
    signs = [ux * (py - ay) - uy * (px - ax)
             for px, py in ((x0, y0), (x1, y0), (x0, y1), (x1, y1))]
    if all(s > 0 for s in signs) or all(s < 0 for s in signs):
        return False
    return True


@lru_cache(maxsize=None)
def sight_line_cells(offset: Point) -> Tuple[Point, ...]:
    """Relative cells an arm at `offset` passes over, nearest first.

    The worker's own cell is left out (it is always inside: the worker
    stands there). The target cell itself is always included.
    """
    dx, dy = offset
    if dx == 0 and dy == 0:
        return ()
    bx, by = 2 * dx + 1, 2 * dy + 1
    cells = []
    for cx in range(min(0, dx), max(0, dx) + 1):
        for cy in range(min(0, dy), max(0, dy) + 1):
            if (cx, cy) == (0, 0):
                continue
            if _segment_touches_cell(bx, by, cx, cy):
                cells.append((cx, cy))
    cells.sort(key=lambda c: (abs(c[0]) + abs(c[1]), c[1], c[0]))
    return tuple(cells)


def arm_reaches(position: Point, offset: Point, terrain: WrapSet) -> bool:
    """True if the world-frame arm offset is not blocked from `position`."""
    px, py = position
    for cx, cy in sight_line_cells(offset):
        if not terrain.is_inside((px + cx, py + cy)):
            return False
    return True


def visible_cells(position: Point, facing: Direction,
                  manipulators: Iterable[Point], terrain: WrapSet) -> FrozenSet[Point]:
    """Cells wrapped from a pose. Manipulators are body-frame offsets (facing RIGHT)."""
    px, py = position
    out = set()
    for body_offset in manipulators:
        offset = rotate_offset(body_offset, facing)
        if arm_reaches(position, offset, terrain):
            target = (px + offset[0], py + offset[1])
            if terrain.is_inside(target):
                out.add(target)
    return frozenset(out)


class VisibilityEngine:
    """
    Memoizing front for visible_cells(), one instance per problem run.
    Poses repeat a lot while planning (BFS probes, rotation checks), so
    results are cached by (position, facing, arm layout) for the current
    terrain version only.
    """

    def __init__(self, terrain: WrapSet):
        self.terrain = terrain
        self._memo: Dict[Tuple[Point, Direction, Tuple[Point, ...]], FrozenSet[Point]] = {}
        self._memo_version = terrain.version
        self.hits = 0
        self.misses = 0

    def visible_cells(self, position: Point, facing: Direction,
                      manipulators: Sequence[Point]) -> FrozenSet[Point]:
        if self.terrain.version != self._memo_version or len(self._memo) >= MEMO_LIMIT:
            self._memo.clear()
            self._memo_version = self.terrain.version
        key = (position, facing, tuple(manipulators))
        cached = self._memo.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        result = visible_cells(position, facing, manipulators, self.terrain)
        self._memo[key] = result
        return result

    def unwrapped_gain(self, position: Point, facing: Direction,
                       manipulators: Sequence[Point]) -> int:
        """How many not-yet-wrapped cells this pose would wrap."""
        return sum(1 for cell in self.visible_cells(position, facing, manipulators)
                   if not self.terrain.is_wrapped(cell))
