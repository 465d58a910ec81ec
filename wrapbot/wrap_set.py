"""
Wrap Tracking Set
Records which cells have been wrapped and drives termination.

Holds two [y, x] bool masks for one problem run:
- inside:  live INSIDE cells (grid INSIDE plus cells drilled so far)
- wrapped: monotone, a cell never becomes unwrapped again

The GridMap itself stays immutable; drilling only touches the live mask and
bumps `version` so memoized visibility results keyed on it go stale.
"""

from typing import Iterable, Iterator, List, Tuple

import numpy as np

from wrapbot.grid_map import GridMap

Point = Tuple[int, int]


class WrapSet:
    """Per-problem wrapped-cell tracker (exclusively owned by the solving thread)."""

    def __init__(self, grid: GridMap):
        self.grid = grid
        self.inside = grid.inside_mask()
        self.wrapped = np.zeros_like(self.inside)
        self.total = int(np.count_nonzero(self.inside))
        self.wrapped_count = 0
        self.drilled: List[Point] = []
        self.version = 0

    # ── Queries ─────────────────────────────────────────────────────────

    def is_inside(self, cell: Point) -> bool:
        """Live INSIDE test (out-of-grid cells are never inside)."""
        x, y = cell
        if x < 0 or y < 0 or x >= self.grid.width or y >= self.grid.height:
            return False
        return bool(self.inside[y, x])

    def is_wrapped(self, cell: Point) -> bool:
        x, y = cell
        if x < 0 or y < 0 or x >= self.grid.width or y >= self.grid.height:
            return False
        return bool(self.wrapped[y, x])

    def is_unwrapped(self, cell: Point) -> bool:
        return self.is_inside(cell) and not self.is_wrapped(cell)

    def is_drillable(self, cell: Point) -> bool:
        """Grid OBSTACLE cell that has not been drilled yet."""
        return self.grid.is_obstacle(cell) and not self.is_inside(cell)

    @property
    def remaining(self) -> int:
        return self.total - self.wrapped_count

    @property
    def is_full(self) -> bool:
        return self.wrapped_count >= self.total

    @property
    def coverage(self) -> float:
        """Wrapped fraction of live INSIDE cells (1.0 for an empty field)."""
        if self.total == 0:
            return 1.0
        return self.wrapped_count / self.total

    def unwrapped_cells(self) -> Iterator[Point]:
        """Unwrapped INSIDE cells in row-major order."""
        ys, xs = np.nonzero(self.inside & ~self.wrapped)
        for y, x in zip(ys, xs):
            yield (int(x), int(y))

    # ── Mutation ────────────────────────────────────────────────────────

    def wrap(self, cells: Iterable[Point]) -> int:
        """Mark cells wrapped; returns how many were newly wrapped.

        Raises ValueError for a cell that is not live INSIDE: the visibility
        engine must never hand those out.
        """
        newly = 0
        for cell in cells:
            if not self.is_inside(cell):
                raise ValueError(f"Cannot wrap {cell}: not an inside cell")
            x, y = cell
            if not self.wrapped[y, x]:
                self.wrapped[y, x] = True
                newly += 1
        self.wrapped_count += newly
        return newly

    def drill(self, cell: Point) -> bool:
        """Convert an OBSTACLE cell into a live INSIDE cell. False if not drillable."""
        if not self.is_drillable(cell):
            return False
        x, y = cell
        self.inside[y, x] = True
        self.total += 1
        self.drilled.append(cell)
        self.version += 1
        return True

    def snapshot(self) -> np.ndarray:
        """Copy of the wrapped mask (for replay comparison and rendering)."""
        return self.wrapped.copy()
