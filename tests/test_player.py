import random

import pytest

from infernomaze.config import MazeConfig
from infernomaze.errors import InvalidMove
from infernomaze.maze import Maze
from infernomaze.player import Direction, Player


@pytest.fixture
def maze():
    m = Maze(MazeConfig(width=9, height=9), rng=random.Random(3))
    m.generate()
    return m


def test_walls_block_movement(maze):
    player = Player()
    player.place(maze.start_position)
    # (1, 0) is border wall
    result = player.attempt_move(Direction.UP, maze)
    assert not result.moved
    assert result.new_pos == (1, 1)
    assert player.steps == 0


def test_moves_along_open_cells(maze):
    player = Player()
    player.place(maze.start_position)
    for direction in Direction:
        dx, dy = direction.delta
        if maze.is_walkable(1 + dx, 1 + dy):
            result = player.attempt_move(direction.value, maze)
            assert result.moved
            assert result.new_pos == (1 + dx, 1 + dy)
            assert player.previous == (1, 1)
            assert player.steps == 1
            break
    else:
        pytest.fail("start cell has no open neighbour")


def test_unknown_direction(maze):
    with pytest.raises(InvalidMove):
        Player().attempt_move("sideways", maze)
