from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from ..config import MazeConfig
from .grid import Cell, Grid
from .repair import carve_guaranteed_path
from .solver import is_solvable

logger = logging.getLogger(__name__)

Point = Tuple[int, int]

CARVE_ORIGIN: Point = (1, 1)
_LATTICE_STEPS = ((0, -2), (2, 0), (0, 2), (-2, 0))


@dataclass(frozen=True)
class GenerationResult:
    grid: Grid
    attempts: int
    repaired: bool


def _carvable(grid: Grid, x: int, y: int) -> bool:
    return 1 <= x < grid.width - 1 and 1 <= y < grid.height - 1


def _unvisited_neighbors(grid: Grid, x: int, y: int, visited: Set[Point]) -> List[Point]:
    out = []
    for dx, dy in _LATTICE_STEPS:
        nx, ny = x + dx, y + dy
        if _carvable(grid, nx, ny) and (nx, ny) not in visited:
            out.append((nx, ny))
    return out


def carve_passages(grid: Grid, rng: random.Random, origin: Point = CARVE_ORIGIN) -> int:
    """Randomized iterative depth-first carving ("recursive backtracking").

    Works on the lattice reachable from ``origin`` in steps of two cells. The
    carved cells form a spanning tree over that lattice, and carving never
    touches the border. Returns the number of lattice cells visited.
    """
    ox, oy = origin
    grid.set_cell(ox, oy, Cell.PATH)
    stack = [origin]
    visited = {origin}
    while stack:
        x, y = stack[-1]
        neighbors = _unvisited_neighbors(grid, x, y, visited)
        if not neighbors:
            stack.pop()
            continue
        nx, ny = rng.choice(neighbors)
        grid.set_cell((x + nx) // 2, (y + ny) // 2, Cell.PATH)
        grid.set_cell(nx, ny, Cell.PATH)
        visited.add((nx, ny))
        stack.append((nx, ny))
    return len(visited)


class MazeGenerator:
    """Builds a solvable maze grid.

    Each attempt carves a fresh grid and stamps start and exit. If no attempt
    within ``max_generation_attempts`` connects them, the last grid gets a
    forced corridor, so every returned grid is solvable.
    """

    def __init__(self, config: MazeConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.rng = rng or random.Random()

    def generate(self) -> GenerationResult:
        cfg = self.config
        for attempt in range(1, cfg.max_generation_attempts + 1):
            grid = Grid.filled(cfg.width, cfg.height, tuple(cfg.start), cfg.exit_position)
            visited = carve_passages(grid, self.rng)
            grid.stamp_endpoints()
            logger.debug(
                "Attempt %d carved %d lattice cells on %dx%d grid", attempt, visited, cfg.width, cfg.height
            )
            if is_solvable(grid):
                return GenerationResult(grid=grid, attempts=attempt, repaired=False)
            logger.warning("Maze attempt %d/%d is not solvable", attempt, cfg.max_generation_attempts)

        # Every attempt failed; repair the last one.
        carve_guaranteed_path(grid)
        return GenerationResult(grid=grid, attempts=cfg.max_generation_attempts, repaired=True)
