"""
Replay viewer (pygame)
Steps through a solution round by round.

Controls:
- SPACE: Start/stop autoplay
- RIGHT / N: Next round
- ESC: Exit
"""

from typing import List, Optional, Tuple

import numpy as np
import pygame

from viewer.frames import render_frame
from wrapbot.actions import Action
from wrapbot.grid_map import GridMap
from wrapbot.replay import iter_replay

STATUS_HEIGHT = 28


class ReplayViewer:
    """
    Window that renders MissionState frames produced by iter_replay().
    pygame.init() is called by run(); the viewer owns the display until closed.
    """

    def __init__(self, grid: GridMap, logs: List[List[Action]],
                 window_size: Tuple[int, int] = (900, 900), delay_ms: int = 50):
        self.grid = grid
        self.logs = logs
        self.delay_ms = delay_ms
        self.cell_px = max(1, min(window_size[0] // max(1, grid.width),
                                  (window_size[1] - STATUS_HEIGHT) // max(1, grid.height)))
        self.window_size = (grid.width * self.cell_px,
                            grid.height * self.cell_px + STATUS_HEIGHT)
        self.autoplay = False
        self.running = True
        self.finished = False
        self.screen = None
        self.font = None

    def _draw(self, frame: np.ndarray, status: str) -> None:
        # surfarray wants [x, y] ordering
        surface = pygame.surfarray.make_surface(frame.transpose(1, 0, 2))
        self.screen.fill((0, 0, 0))
        self.screen.blit(surface, (0, STATUS_HEIGHT))
        text = self.font.render(status, True, (255, 255, 255))
        self.screen.blit(text, (6, 6))
        pygame.display.flip()

    def _status(self, round_no: int, mission) -> str:
        ws = mission.wrap_set
        state = "done" if self.finished else ("play" if self.autoplay else "paused")
        return (f"{self.grid.name}  round {round_no}  workers {len(mission.workers)}  "
                f"wrapped {ws.wrapped_count}/{ws.total} ({ws.coverage:.1%})  [{state}]")

    def _wait_for_step(self, clock) -> bool:
        """Block until the next round should be shown. False when the window closes."""
        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        self.running = False
                    elif event.key == pygame.K_SPACE:
                        self.autoplay = not self.autoplay
                    elif event.key in (pygame.K_RIGHT, pygame.K_n):
                        return True
            if self.autoplay and not self.finished:
                pygame.time.wait(self.delay_ms)
                return True
            clock.tick(30)
        return False

    def run(self) -> Optional[int]:
        """Show the replay; returns the last round displayed."""
        pygame.init()
        try:
            self.screen = pygame.display.set_mode(self.window_size)
            pygame.display.set_caption(f"wrapbot replay - {self.grid.name}")
            self.font = pygame.font.Font(None, 24)
            clock = pygame.time.Clock()
            last_round = None
            for round_no, mission in iter_replay(self.grid, self.logs):
                last_round = round_no
                self._draw(render_frame(mission, self.cell_px), self._status(round_no, mission))
                if not self._wait_for_step(clock):
                    return last_round
            self.finished = True
            print(f"[VIEW] {self.grid.name}: replay finished after {last_round} rounds")
            while self._wait_for_step(clock):
                pass
            return last_round
        finally:
            pygame.quit()
