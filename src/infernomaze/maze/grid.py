from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Tuple

Point = Tuple[int, int]

_DIRECTIONS_4 = ((0, -1), (1, 0), (0, 1), (-1, 0))


class Cell(IntEnum):
    WALL = 0
    PATH = 1
    START = 2
    EXIT = 3


_GLYPHS = {Cell.WALL: "#", Cell.PATH: ".", Cell.START: "S", Cell.EXIT: "E"}


@dataclass
class Grid:
    """A rectangular cell grid with start/exit coordinates and helpers.

    Coordinates are (x, y) with (0,0) at top-left; x grows to the right, y grows down.
    Reads outside the grid behave as walls and never raise.
    """

    width: int
    height: int
    cells: List[List[Cell]]  # cells[y][x]
    start: Point
    exit: Point

    @classmethod
    def filled(cls, width: int, height: int, start: Point, exit: Point) -> "Grid":
        """Build an all-wall grid."""
        cells = [[Cell.WALL for _ in range(width)] for _ in range(height)]
        return cls(width, height, cells, start, exit)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_border(self, x: int, y: int) -> bool:
        return x in (0, self.width - 1) or y in (0, self.height - 1)

    def cell_at(self, x: int, y: int) -> Cell:
        if not self.in_bounds(x, y):
            return Cell.WALL
        return self.cells[y][x]

    def set_cell(self, x: int, y: int, cell: Cell) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell {(x, y)} is outside a {self.width}x{self.height} grid")
        self.cells[y][x] = cell

    def is_walkable(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.cells[y][x] != Cell.WALL

    def neighbors4(self, x: int, y: int) -> Iterator[Point]:
        for dx, dy in _DIRECTIONS_4:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield nx, ny

    def walkable_neighbors(self, x: int, y: int) -> Iterator[Point]:
        for nx, ny in self.neighbors4(x, y):
            if self.cells[ny][nx] != Cell.WALL:
                yield nx, ny

    def walkable_positions(self) -> List[Point]:
        """All walkable cells in row-major order."""
        return [(x, y) for y in range(self.height) for x in range(self.width) if self.cells[y][x] != Cell.WALL]

    def stamp_endpoints(self) -> None:
        """Write START and EXIT into their cells, overwriting whatever is there."""
        self.set_cell(*self.start, Cell.START)
        self.set_cell(*self.exit, Cell.EXIT)

    def copy(self) -> "Grid":
        return Grid(self.width, self.height, [row[:] for row in self.cells], self.start, self.exit)

    def render(self) -> List[str]:
        return ["".join(_GLYPHS[c] for c in row) for row in self.cells]

    def signature(self) -> str:
        """Deterministic digest of dimensions, endpoints and cell contents."""
        payload = {
            "w": self.width,
            "h": self.height,
            "start": list(self.start),
            "exit": list(self.exit),
            "rows": self.render(),
        }
        h = hashlib.blake2b(str(payload).encode("utf-8"), digest_size=16)
        return h.hexdigest()
