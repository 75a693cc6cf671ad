import random

import pytest

from infernomaze.config import MazeConfig
from infernomaze.maze import (
    Cell,
    Grid,
    Maze,
    MazeGenerator,
    carve_guaranteed_path,
    carve_passages,
    find_path_length,
    is_solvable,
    reachable_cells,
)


def assert_well_formed(grid: Grid):
    # Borders closed
    border = [(x, y) for y in range(grid.height) for x in range(grid.width) if grid.is_border(x, y)]
    assert len(border) == 2 * (grid.width + grid.height) - 4
    assert all(grid.cell_at(x, y) == Cell.WALL for x, y in border)

    # Exactly one start and one exit, at the configured coordinates
    flat = [c for row in grid.cells for c in row]
    assert flat.count(Cell.START) == 1
    assert flat.count(Cell.EXIT) == 1
    assert grid.cell_at(*grid.start) == Cell.START
    assert grid.cell_at(*grid.exit) == Cell.EXIT

    assert is_solvable(grid)


@pytest.mark.parametrize("size", [5, 6, 7, 9, 12, 15, 18, 21, 24, 39])
@pytest.mark.parametrize("seed", [0, 1, 7, 123])
def test_generated_mazes_are_closed_and_solvable(size, seed):
    maze = Maze(MazeConfig(width=size, height=size), rng=random.Random(seed))
    grid = maze.generate()
    assert_well_formed(grid)


@pytest.mark.parametrize("width,height", [(5, 9), (15, 7), (20, 11), (11, 20)])
def test_rectangular_mazes(width, height):
    maze = Maze(MazeConfig(width=width, height=height), rng=random.Random(3))
    assert_well_formed(maze.generate())


def test_odd_grid_carving_spans_lattice():
    grid = Grid.filled(15, 15, (1, 1), (13, 13))
    visited = carve_passages(grid, random.Random(5))
    # 7 x 7 odd lattice cells
    assert visited == 49
    for y in range(1, 14, 2):
        for x in range(1, 14, 2):
            assert grid.cell_at(x, y) == Cell.PATH
    # A spanning tree over 49 nodes has 48 carved connectors
    assert len(grid.walkable_positions()) == 49 + 48


def test_odd_sizes_never_need_repair():
    result = MazeGenerator(MazeConfig(width=21, height=21), random.Random(11)).generate()
    assert result.repaired is False
    assert result.attempts == 1


def test_even_sizes_fall_back_to_repair():
    # The default exit (w-2, h-2) is off the odd lattice on even grids
    result = MazeGenerator(MazeConfig(width=18, height=18), random.Random(2)).generate()
    assert result.repaired is True
    assert_well_formed(result.grid)


def test_retry_budget_is_exhausted_before_repair():
    cfg = MazeConfig(width=10, height=10, max_generation_attempts=4)
    result = MazeGenerator(cfg, random.Random(0)).generate()
    assert result.attempts == 4
    assert result.repaired is True


def test_same_seed_same_layout():
    cfg = MazeConfig(width=25, height=25)
    a = Maze(cfg, rng=random.Random(42))
    b = Maze(cfg, rng=random.Random(42))
    assert a.generate().signature() == b.generate().signature()

    c = Maze(cfg, rng=random.Random(43))
    assert c.generate().signature() != a.grid.signature()


def test_repair_connects_blank_grid():
    grid = Grid.filled(12, 9, (1, 1), (10, 7))
    grid.stamp_endpoints()
    assert not is_solvable(grid)

    carved = carve_guaranteed_path(grid)

    assert is_solvable(grid)
    assert carved == 9 + 6
    assert grid.cell_at(1, 1) == Cell.START
    assert grid.cell_at(10, 7) == Cell.EXIT
    # x first, then y
    assert all(grid.cell_at(x, 1) != Cell.WALL for x in range(1, 11))
    assert all(grid.cell_at(10, y) != Cell.WALL for y in range(1, 8))
    assert find_path_length(grid, grid.start, grid.exit) == 15


def test_repair_walks_backwards_when_exit_is_up_left():
    grid = Grid.filled(9, 9, (7, 7), (1, 2))
    grid.stamp_endpoints()
    carve_guaranteed_path(grid)
    assert is_solvable(grid)
    assert grid.cell_at(7, 7) == Cell.START
    assert grid.cell_at(1, 2) == Cell.EXIT


def test_solver_does_not_mutate():
    grid = Maze(MazeConfig(width=11, height=11), rng=random.Random(1)).generate()
    before = grid.signature()
    is_solvable(grid)
    reachable_cells(grid, grid.start)
    assert grid.signature() == before


def test_reachable_cells_covers_the_whole_tree():
    grid = Maze(MazeConfig(width=15, height=15), rng=random.Random(9)).generate()
    assert reachable_cells(grid, grid.start) == set(grid.walkable_positions())
    assert reachable_cells(grid, (0, 0)) == set()
