from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

from .errors import InvalidMove
from .maze import Maze

Point = Tuple[int, int]


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Point:
        return _DELTAS[self]


_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


@dataclass
class MoveResult:
    new_pos: Point
    moved: bool


@dataclass
class Player:
    """The player's grid position. Every accepted move is checked against the maze."""

    x: int = 0
    y: int = 0
    previous: Point = field(default=(0, 0))
    steps: int = 0

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def place(self, position: Point) -> None:
        self.x, self.y = position
        self.previous = position

    def attempt_move(self, direction: Union[Direction, str], maze: Maze) -> MoveResult:
        """Try to step one cell. Walls and out-of-bounds targets leave the player in place."""
        try:
            direction = Direction(direction)
        except ValueError:
            raise InvalidMove(f"Unknown direction: {direction!r}") from None
        dx, dy = direction.delta
        tx, ty = self.x + dx, self.y + dy
        if not maze.is_walkable(tx, ty):
            return MoveResult(new_pos=self.position, moved=False)
        self.previous = self.position
        self.x, self.y = tx, ty
        self.steps += 1
        return MoveResult(new_pos=self.position, moved=True)
