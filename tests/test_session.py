from collections import deque

import pytest

from infernomaze.config import GameConfig
from infernomaze.errors import InfernoError
from infernomaze.events import EventBus, EventType
from infernomaze.levels import LevelConfig, LevelTable
from infernomaze.persistence import AutoSaveOutcome, LoadStatus, MemoryStorage, SaveStore
from infernomaze.player import Direction
from infernomaze.session import GameSession

_STEP_TO_DIRECTION = {d.delta: d for d in Direction}


class Clock:
    def __init__(self):
        self.now = 1_000_000

    def __call__(self):
        return self.now


def _table():
    return LevelTable(
        [
            LevelConfig(number=1, name="Uno", width=7, height=7, required_fragments=1, has_guide=True),
            LevelConfig(number=2, name="Dos", width=9, height=9, required_fragments=2),
        ]
    )


def _session(storage=None, events=None):
    clock = Clock()
    store = SaveStore(storage if storage is not None else MemoryStorage(), clock=clock)
    return GameSession(GameConfig(), store=store, events=events, table=_table(), clock=clock)


def _route(session, goal):
    grid = session.maze.grid
    start = session.player.position
    came_from = {start: None}
    queue = deque([start])
    while queue:
        cur = queue.popleft()
        if cur == goal:
            break
        for nxt in grid.walkable_neighbors(*cur):
            if nxt not in came_from:
                came_from[nxt] = cur
                queue.append(nxt)
    path = []
    cur = goal
    while came_from[cur] is not None:
        prev = came_from[cur]
        path.append(_STEP_TO_DIRECTION[(cur[0] - prev[0], cur[1] - prev[1])])
        cur = prev
    return list(reversed(path))


def _walk_to(session, goal):
    outcome = None
    for direction in _route(session, goal):
        outcome = session.move(direction)
        assert outcome.moved
        if outcome.level_completed:
            break
    return outcome


def _clear_level(session):
    level = session.current_level
    while session.maze.uncollected_entities():
        _walk_to(session, session.maze.uncollected_entities()[0].position)
        assert session.current_level == level
    assert session.objectives.is_exit_unlocked()
    return _walk_to(session, session.maze.exit_position)


def test_new_game_starts_on_level_one():
    session = _session()
    maze = session.new_game(seed=5)
    assert session.current_level == 1
    assert session.player.position == maze.start_position
    assert session.objectives.total_fragments == 1
    assert session.objectives.guide_required is True


def test_move_requires_a_game():
    with pytest.raises(InfernoError):
        _session().move(Direction.UP)


def test_exit_is_locked_until_objectives_are_met():
    session = _session()
    session.new_game(seed=5)
    exit_pos = session.maze.exit_position
    beside = next(session.maze.grid.walkable_neighbors(*exit_pos))
    session.player.place(beside)
    step = (exit_pos[0] - beside[0], exit_pos[1] - beside[1])

    outcome = session.move(_STEP_TO_DIRECTION[step])
    assert outcome.moved
    assert not outcome.level_completed
    assert session.current_level == 1


def test_play_through_every_level():
    bus = EventBus()
    names = []
    for name in (EventType.LEVEL_COMPLETED, EventType.GAME_COMPLETED, EventType.EXIT_UNLOCKED):
        bus.subscribe(name, lambda e: names.append(e.name))
    session = _session(events=bus)
    session.new_game(seed=11)

    first = _clear_level(session)
    assert first.level_completed and not first.game_completed
    assert session.current_level == 2
    assert session.player.position == session.maze.start_position
    assert session.stats.levels_completed == 1
    assert session.store.load().state.current_level == 2

    last = _clear_level(session)
    assert last.game_completed
    assert session.game_completed
    assert not session.move(Direction.LEFT).moved
    assert names.count(EventType.LEVEL_COMPLETED) == 2
    assert names.count(EventType.GAME_COMPLETED) == 1
    assert session.stats.fragments_collected == 3
    assert session.stats.total_distance > 0


def test_reloading_a_finished_game_stays_finished():
    storage = MemoryStorage()
    first = _session(storage)
    first.new_game(seed=11)
    _clear_level(first)
    assert _clear_level(first).game_completed

    second = _session(storage)
    assert second.start() == LoadStatus.OK
    assert second.game_completed
    outcome = second.move(Direction.LEFT)
    assert not outcome.moved and outcome.game_completed
    assert [r.level for r in second.levels.level_history] == [1, 2]
    assert second.stats.levels_completed == 2


def test_restore_rebuilds_the_same_level():
    session = _session()
    session.new_game(seed="restore-me")
    target = session.maze.uncollected_entities()[0]
    _walk_to(session, target.position)
    state = session.to_game_state()

    resumed = _session()
    resumed.restore(state)
    assert resumed.maze.grid.signature() == session.maze.grid.signature()
    assert resumed.player.position == session.player.position
    assert resumed.objectives.snapshot() == session.objectives.snapshot()
    assert [e.to_dict() for e in resumed.maze.uncollected_entities()] == [
        e.to_dict() for e in session.maze.uncollected_entities()
    ]


def test_start_without_save_begins_fresh():
    session = _session()
    assert session.start(seed=3) == LoadStatus.EMPTY
    assert session.current_level == 1
    assert session.stats.total_sessions == 1


def test_start_resumes_saved_game():
    storage = MemoryStorage()
    first = _session(storage)
    first.new_game(seed=9)
    _clear_level(first)
    assert first.autosave(force=True) == AutoSaveOutcome.SAVED

    second = _session(storage)
    assert second.start() == LoadStatus.OK
    assert second.current_level == 2
    assert second.maze.grid.signature() == first.maze.grid.signature()


def test_start_with_unrecoverable_save_begins_fresh():
    storage = MemoryStorage({"infernoMazeSave": "{broken"})
    session = _session(storage)
    assert session.start(seed=1) == LoadStatus.CORRUPT
    assert session.current_level == 1


def test_tick_accumulates_play_time_and_autosaves():
    session = _session()
    session.new_game(seed=2)
    assert session.tick(1_000) == AutoSaveOutcome.SAVED
    assert session.stats.play_time == 1_000
    assert session.tick(1_000) == AutoSaveOutcome.UNCHANGED
    assert session.end_session() == AutoSaveOutcome.SAVED


def test_track_dialogue():
    session = _session()
    session.new_game(seed=2)
    assert session.track_dialogue("virgil") is True
    assert session.track_dialogue("virgil") is False
    assert session.to_game_state().game_stats.dialogues_seen == ["virgil"]
