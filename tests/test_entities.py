import random

import pytest

from infernomaze.config import MazeConfig
from infernomaze.maze import EntityKind, Grid, Maze, available_positions, place_entities


def _maze(size=15, seed=4):
    maze = Maze(MazeConfig(width=size, height=size), rng=random.Random(seed))
    maze.generate()
    return maze


@pytest.mark.parametrize("seed", range(10))
def test_entities_never_share_cells_or_touch_endpoints(seed):
    maze = _maze(seed=seed)
    maze.place_entities(wants_guide=True, fragment_count=8)
    positions = [e.position for e in maze.entities]
    assert len(positions) == len(set(positions)) == 9
    assert maze.start_position not in positions
    assert maze.exit_position not in positions
    assert all(maze.is_walkable(*p) for p in positions)


def test_guide_first_then_sequential_fragment_ids():
    maze = _maze()
    maze.place_entities(wants_guide=True, fragment_count=4)
    assert maze.entities[0].kind == EntityKind.GUIDE
    assert maze.entities[0].id is None
    assert [e.id for e in maze.entities[1:]] == [0, 1, 2, 3]


def test_small_maze_places_as_many_as_fit():
    maze = _maze(size=5, seed=0)
    free = len(available_positions(maze.grid))
    placed = maze.place_entities(wants_guide=False, fragment_count=20)
    assert placed == free
    assert maze.total_fragment_count() == free


def test_no_free_cells_places_nothing(caplog):
    grid = Grid.filled(5, 5, (1, 1), (3, 3))
    grid.stamp_endpoints()
    with caplog.at_level("WARNING"):
        assert place_entities(grid, random.Random(0), True, 3) == []
    assert "No available positions" in caplog.text


def test_negative_fragment_count_rejected():
    grid = _maze().grid
    with pytest.raises(ValueError):
        place_entities(grid, random.Random(0), False, -1)


def test_collect_by_position_is_idempotent():
    maze = _maze()
    maze.place_entities(wants_guide=True, fragment_count=2)
    frag = maze.entities_by_kind(EntityKind.FRAGMENT)[0]

    assert maze.entity_at(*frag.position) is frag
    assert maze.collect_entity(*frag.position) is frag
    assert frag.collected
    assert maze.collect_entity(*frag.position) is None
    assert maze.entity_at(*frag.position) is None
    assert maze.collect_entity(*maze.start_position) is None


def test_guide_found_and_fragment_queries():
    maze = _maze()
    maze.place_entities(wants_guide=False, fragment_count=0)
    assert not maze.has_guide()
    assert not maze.guide_found()
    assert not maze.all_fragments_collected()

    maze.place_entities(wants_guide=True, fragment_count=2)
    assert maze.has_guide() and not maze.guide_found()
    for e in list(maze.entities):
        maze.collect_entity(*e.position)
    assert maze.guide_found()
    assert maze.all_fragments_collected()
    assert maze.collected_fragment_count() == 2
    assert maze.render_data() == []

    maze.reset_entities()
    assert len(maze.uncollected_entities()) == 3


def test_render_overlays_entities():
    maze = _maze()
    maze.place_entities(wants_guide=True, fragment_count=1)
    rows = maze.render()
    guide = maze.entities_by_kind(EntityKind.GUIDE)[0]
    frag = maze.entities_by_kind(EntityKind.FRAGMENT)[0]
    assert rows[guide.y][guide.x] == "G"
    assert rows[frag.y][frag.x] == "F"
    assert {d["kind"] for d in maze.render_data()} == {"guide", "fragment"}


def test_placement_is_deterministic_for_a_seed():
    a, b = _maze(seed=8), _maze(seed=8)
    a.placement_rng = random.Random(1)
    b.placement_rng = random.Random(1)
    a.place_entities(True, 5)
    b.place_entities(True, 5)
    assert [e.to_dict() for e in a.entities] == [e.to_dict() for e in b.entities]
