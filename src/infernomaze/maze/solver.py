from collections import deque
from typing import Optional, Set, Tuple

from .grid import Grid

Point = Tuple[int, int]


def find_path_length(grid: Grid, start: Point, goal: Point) -> Optional[int]:
    """Breadth-first search shortest path length over walkable cells; returns steps or None.

    Uses 4-directional movement. Runs in O(width * height).
    """
    if not grid.is_walkable(*start) or not grid.is_walkable(*goal):
        return None

    q = deque([(start, 0)])
    seen = {start}
    while q:
        (x, y), d = q.popleft()
        if (x, y) == goal:
            return d
        for n in grid.walkable_neighbors(x, y):
            if n not in seen:
                seen.add(n)
                q.append((n, d + 1))
    return None


def is_solvable(grid: Grid) -> bool:
    """True when the grid's exit is reachable from its start. Never mutates the grid."""
    return find_path_length(grid, grid.start, grid.exit) is not None


def reachable_cells(grid: Grid, origin: Point) -> Set[Point]:
    """Return every walkable cell connected to ``origin`` (4-neighbourhood)."""
    if not grid.is_walkable(*origin):
        return set()
    visited = {origin}
    q = deque([origin])
    while q:
        x, y = q.popleft()
        for n in grid.walkable_neighbors(x, y):
            if n not in visited:
                visited.add(n)
                q.append(n)
    return visited
