import dataclasses

import pytest

from infernomaze.config import AutoSaveConfig
from infernomaze.persistence import (
    AutoSaveOutcome,
    AutoSaver,
    GameState,
    LoadStatus,
    MemoryStorage,
    Position,
    SaveStore,
    StorageError,
)


class BrokenStorage(MemoryStorage):
    def __init__(self):
        super().__init__()
        self.broken = True

    def set(self, key, value):
        if self.broken:
            raise StorageError("disk full")
        super().set(key, value)


@pytest.fixture
def saver(clock):
    return AutoSaver(SaveStore(MemoryStorage(), clock=clock))


def _moved(state, x):
    return dataclasses.replace(state, player_position=Position(x=x, y=1))


def test_first_save_goes_through(saver):
    assert saver.auto_save(GameState()) == AutoSaveOutcome.SAVED
    assert saver.store.load().status == LoadStatus.OK


def test_unchanged_state_is_skipped(saver, clock):
    state = GameState()
    saver.auto_save(state)
    clock.advance(60_000)
    assert saver.auto_save(state) == AutoSaveOutcome.UNCHANGED


def test_small_play_time_change_is_not_significant(saver, clock):
    state = GameState()
    saver.auto_save(state)
    clock.advance(60_000)
    state.game_stats.play_time += 29_999
    assert saver.auto_save(state) == AutoSaveOutcome.UNCHANGED
    state.game_stats.play_time += 1
    assert saver.auto_save(state) == AutoSaveOutcome.SAVED


@pytest.mark.parametrize(
    "change",
    [
        lambda s: setattr(s, "current_level", 2),
        lambda s: setattr(s.player_position, "x", 3),
        lambda s: setattr(s.objectives_completed, "guide_found", True),
        lambda s: setattr(s.objectives_completed, "fragments_collected", 1),
        lambda s: setattr(s.objectives_completed, "exit_unlocked", True),
    ],
)
def test_significant_changes(saver, change):
    state = GameState()
    saver.auto_save(state)
    changed = GameState.from_dict(state.to_dict())
    change(changed)
    assert saver.has_significant_changes(changed)


def test_throttle_keeps_pending_and_flushes_later(saver, clock):
    base = GameState()
    saver.auto_save(base)
    clock.advance(1_000)
    assert saver.auto_save(_moved(base, 3)) == AutoSaveOutcome.THROTTLED
    assert saver.status()["pending"] is True
    assert saver.flush_pending() is None

    clock.advance(4_000)
    assert saver.flush_pending() == AutoSaveOutcome.SAVED
    assert saver.store.load().state.player_position.x == 3
    assert saver.flush_pending() is None


def test_force_bypasses_throttle_and_change_check(saver, clock):
    state = GameState()
    saver.auto_save(state)
    clock.advance(10)
    assert saver.force_save(state) == AutoSaveOutcome.SAVED


def test_invalid_state_is_not_saved(saver):
    bad = GameState(current_level=0)
    assert saver.auto_save(bad) == AutoSaveOutcome.INVALID
    assert not saver.store.has_save()


def test_disabled(saver):
    saver.disable()
    assert saver.auto_save(GameState()) == AutoSaveOutcome.DISABLED
    assert saver.force_save(GameState()) == AutoSaveOutcome.SAVED
    saver.enable()
    assert saver.status()["enabled"] is True


def test_backoff_after_repeated_failures(clock):
    storage = BrokenStorage()
    cfg = AutoSaveConfig(base_interval_ms=1_000, max_failures=3, backoff_multiplier=2.0, max_interval_ms=10_000)
    saver = AutoSaver(SaveStore(storage, clock=clock), cfg)

    intervals = []
    for i in range(6):
        assert saver.auto_save(_moved(GameState(), i + 1), force=True) == AutoSaveOutcome.FAILED
        intervals.append(saver.interval_ms)
    assert saver.consecutive_failures == 6
    assert intervals == [1_000, 1_000, 2_000, 4_000, 8_000, 10_000]

    storage.broken = False
    assert saver.force_save(GameState()) == AutoSaveOutcome.SAVED
    assert saver.consecutive_failures == 0
    assert saver.interval_ms == 1_000


def test_backed_off_interval_throttles(clock):
    storage = BrokenStorage()
    cfg = AutoSaveConfig(base_interval_ms=1_000, max_failures=1, max_interval_ms=60_000)
    saver = AutoSaver(SaveStore(storage, clock=clock), cfg)
    saver.auto_save(GameState())
    assert saver.interval_ms == 2_000

    storage.broken = False
    clock.advance(1_500)
    assert saver.auto_save(GameState()) == AutoSaveOutcome.THROTTLED
    clock.advance(500)
    assert saver.auto_save(GameState()) == AutoSaveOutcome.SAVED
