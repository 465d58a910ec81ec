"""
Grid Map - immutable description of the playing field

Rasterizes the boundary polygon and obstacle holes into a per-cell
classification (INSIDE / OBSTACLE / OUT_OF_BOUNDS) once per problem.
Cell (x, y) is the unit square [x, x+1] x [y, y+1]; classification uses a
parity test on the cell centre (x + 0.5, y + 0.5).

Grid values are stored row-major as grid[y, x], like the occupancy grid
of the mapping code.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List, Sequence, Tuple

import numpy as np
from shapely.geometry import Polygon
from shapely.validation import explain_validity

Point = Tuple[int, int]


class MapError(ValueError):
    """Problem geometry is unusable (bad boundary, spawn outside, ...)."""


class CellClass(IntEnum):
    INSIDE = 0
    OBSTACLE = 1
    OUT_OF_BOUNDS = 2


class BoosterKind(Enum):
    """Booster codes as they appear in problem and solution files."""
    MANIPULATOR = "B"
    FAST_WHEELS = "F"
    DRILL = "L"
    TELEPORT = "R"
    CLONE = "C"
    SPAWN = "X"   # reserved: fixed clone site, never collected

    @property
    def collectable(self) -> bool:
        return self != BoosterKind.SPAWN


@dataclass(frozen=True)
class Booster:
    kind: BoosterKind
    location: Point


@dataclass
class ProblemDescription:
    """Already-parsed problem: what the core receives from the outside."""
    boundary: List[Point]
    spawn: Point
    obstacles: List[List[Point]] = field(default_factory=list)
    boosters: List[Booster] = field(default_factory=list)
    name: str = "problem"


# ── Polygon checks and rasterization ────────────────────────────────────

def _validate_polygon(vertices: Sequence[Point], what: str) -> None:
    if len(vertices) < 3:
        raise MapError(f"{what}: needs at least 3 vertices, got {len(vertices)}")
    if any(x < 0 or y < 0 for x, y in vertices):
        raise MapError(f"{what}: negative coordinates are not supported")
    polygon = Polygon(vertices)
    if polygon.area == 0:
        raise MapError(f"{what}: degenerate polygon (zero area)")
    if not polygon.is_valid:
        raise MapError(f"{what}: invalid polygon ({explain_validity(polygon)})")


def _parity_mask(vertices: Sequence[Point], width: int, height: int) -> np.ndarray:
    """Even-odd point-in-polygon test for every cell centre, vectorized.

    A horizontal ray from each centre towards +x crosses edge e iff the
    centre's row lies between the edge endpoints and the crossing x is
    right of the centre. Each edge therefore flips a prefix of a row; the
    prefixes are accumulated with a suffix sum instead of a loop per cell.
    """
    flips = np.zeros((height, width + 1), dtype=np.int32)
    count = len(vertices)
    for i in range(count):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % count]
        if y1 == y2:
            continue  # horizontal edges never cross a half-integer row
        lo, hi = (y1, y2) if y1 < y2 else (y2, y1)
        rows = np.arange(max(lo, 0), min(hi, height))
        if rows.size == 0:
            continue
        centres_y = rows + 0.5
        crossing_x = x1 + (centres_y - y1) * (x2 - x1) / (y2 - y1)
        # cells with x + 0.5 < crossing_x are flipped
        prefix = np.clip(np.ceil(crossing_x - 0.5), 0, width).astype(np.int64)
        np.add.at(flips, (rows, prefix), 1)
    # flips[row, k] flips cells [0, k); cell x is flipped by every k > x
    suffix = np.cumsum(flips[:, ::-1], axis=1)[:, ::-1]
    return (suffix[:, 1:] % 2).astype(bool)


class GridMap:
    """
    Static, read-only playing field.
    Built once per problem with GridMap.load() and shared by everything that
    solves that problem; the classification array is locked against writes.
    """

    def __init__(self, name: str, cells: np.ndarray, spawn: Point,
                 boosters: Sequence[Booster]):
        self.name = name
        self.cells = cells
        self.cells.flags.writeable = False
        self.height, self.width = cells.shape
        self.spawn = spawn
        self.boosters: Tuple[Booster, ...] = tuple(
            b for b in boosters if b.kind.collectable)
        self.spawn_sites: FrozenSet[Point] = frozenset(
            b.location for b in boosters if b.kind == BoosterKind.SPAWN)
        self.inside_count = int(np.count_nonzero(cells == CellClass.INSIDE))

    @classmethod
    def load(cls, description: ProblemDescription) -> "GridMap":
        """Validate geometry and rasterize. Raises MapError."""
        boundary = [(int(x), int(y)) for x, y in description.boundary]
        _validate_polygon(boundary, f"{description.name}: boundary")
        obstacles = [[(int(x), int(y)) for x, y in hole] for hole in description.obstacles]
        for i, hole in enumerate(obstacles):
            _validate_polygon(hole, f"{description.name}: obstacle #{i}")

        width = max(x for x, _ in boundary)
        height = max(y for _, y in boundary)

        inside_boundary = _parity_mask(boundary, width, height)
        in_obstacle = np.zeros_like(inside_boundary)
        for hole in obstacles:
            in_obstacle |= _parity_mask(hole, width, height)

        cells = np.full((height, width), CellClass.OUT_OF_BOUNDS, dtype=np.int8)
        cells[inside_boundary] = CellClass.INSIDE
        cells[inside_boundary & in_obstacle] = CellClass.OBSTACLE

        grid = cls(description.name, cells, (int(description.spawn[0]), int(description.spawn[1])),
                   description.boosters)
        if not grid.is_inside(grid.spawn):
            raise MapError(f"{description.name}: spawn {grid.spawn} is not inside the map")
        for booster in description.boosters:
            if not grid.is_inside(booster.location):
                raise MapError(f"{description.name}: booster {booster.kind.value} at "
                               f"{booster.location} is not inside the map")
        return grid

    def in_grid(self, cell: Point) -> bool:
        return 0 <= cell[0] < self.width and 0 <= cell[1] < self.height

    def classify(self, cell: Point) -> CellClass:
        if not self.in_grid(cell):
            return CellClass.OUT_OF_BOUNDS
        return CellClass(int(self.cells[cell[1], cell[0]]))

    def is_inside(self, cell: Point) -> bool:
        return self.classify(cell) == CellClass.INSIDE

    def is_obstacle(self, cell: Point) -> bool:
        return self.classify(cell) == CellClass.OBSTACLE

    def inside_mask(self) -> np.ndarray:
        """Fresh writable bool copy of the INSIDE cells, indexed [y, x]."""
        return self.cells == CellClass.INSIDE

    def boosters_at(self) -> Dict[Point, BoosterKind]:
        """Pickup map (location -> kind) for a fresh mission."""
        return {b.location: b.kind for b in self.boosters}

    def inside_cells(self) -> List[Point]:
        """All INSIDE cells in row-major order (y, then x)."""
        ys, xs = np.nonzero(self.cells == CellClass.INSIDE)
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def describe(self) -> str:
        return (f"{self.name}: {self.width}x{self.height}, {self.inside_count} inside, "
                f"{len(self.boosters)} boosters")


def booster_from_code(code: str, location: Point) -> Booster:
    """Build a Booster from its one-letter code. Raises MapError."""
    try:
        kind = BoosterKind(code)
    except ValueError:
        raise MapError(f"Unknown booster code {code!r}") from None
    return Booster(kind, (int(location[0]), int(location[1])))
