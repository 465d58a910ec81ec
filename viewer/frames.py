"""
Frame builder: mission state -> numpy RGB image

Kept separate from the pygame window so frames can be produced (and tested)
without a display. Rows are flipped so that y grows upwards on screen.
"""

from typing import Tuple

import numpy as np

from wrapbot.grid_map import BoosterKind, CellClass
from wrapbot.worker import MissionState


class Colors:
    """Color constants for visualization."""
    OUT_OF_BOUNDS = (40, 40, 40)
    OBSTACLE = (90, 60, 40)
    UNWRAPPED = (240, 240, 240)
    WRAPPED = (255, 220, 80)
    DRILLED = (255, 165, 0)
    WORKER = (220, 30, 30)
    ARM = (100, 100, 255)

    BOOSTERS = {
        BoosterKind.MANIPULATOR: (200, 200, 0),
        BoosterKind.FAST_WHEELS: (150, 75, 0),
        BoosterKind.DRILL: (0, 200, 0),
        BoosterKind.TELEPORT: (0, 0, 255),
        BoosterKind.CLONE: (128, 0, 128),
        BoosterKind.SPAWN: (0, 180, 180),
    }
    BEACON = (0, 255, 255)


def render_frame(mission: MissionState, cell_px: int = 1) -> np.ndarray:
    """RGB uint8 array of shape (height * cell_px, width * cell_px, 3)."""
    grid = mission.grid
    wrap_set = mission.wrap_set
    image = np.zeros((grid.height, grid.width, 3), dtype=np.uint8)
    image[:] = Colors.OUT_OF_BOUNDS
    image[grid.cells == CellClass.OBSTACLE] = Colors.OBSTACLE
    image[wrap_set.inside] = Colors.UNWRAPPED
    image[wrap_set.inside & (grid.cells == CellClass.OBSTACLE)] = Colors.DRILLED
    image[wrap_set.wrapped] = Colors.WRAPPED

    def paint(cell: Tuple[int, int], color) -> None:
        x, y = cell
        if grid.in_grid(cell):
            image[y, x] = color

    for site in sorted(mission.clone_sites):
        paint(site, Colors.BOOSTERS[BoosterKind.SPAWN])
    for cell, kind in mission.boosters.items():
        paint(cell, Colors.BOOSTERS[kind])
    for cell in mission.beacon_cells():
        paint(cell, Colors.BEACON)
    for worker in mission.workers:
        for cell in mission.visibility.visible_cells(worker.position, worker.facing,
                                                     worker.manipulators):
            if cell != worker.position:
                paint(cell, Colors.ARM)
    for worker in mission.workers:
        paint(worker.position, Colors.WORKER)

    image = image[::-1]
    if cell_px > 1:
        image = np.repeat(np.repeat(image, cell_px, axis=0), cell_px, axis=1)
    return np.ascontiguousarray(image)
