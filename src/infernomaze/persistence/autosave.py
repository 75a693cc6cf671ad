"""Throttled auto-save on top of SaveStore.

A save goes through when the state differs meaningfully from the last saved
one and the current interval has elapsed. Inside the interval the newest
state is kept as pending and written by ``flush_pending``. Repeated failures
stretch the interval exponentially up to a ceiling; one success resets it.
"""
from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..config import AutoSaveConfig
from .errors import SaveError
from .models import GameState
from .store import SaveStore

logger = logging.getLogger(__name__)


class AutoSaveOutcome(str, Enum):
    SAVED = "saved"
    UNCHANGED = "unchanged"
    THROTTLED = "throttled"
    INVALID = "invalid"
    FAILED = "failed"
    DISABLED = "disabled"


class AutoSaver:
    def __init__(
        self,
        store: SaveStore,
        config: Optional[AutoSaveConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.store = store
        self.config = config or AutoSaveConfig()
        self.clock = clock or store.clock
        self.enabled = True
        self.interval_ms = self.config.base_interval_ms
        self.consecutive_failures = 0
        self.last_save_time: Optional[int] = None
        self.last_attempt_time: Optional[int] = None
        self.pending: Optional[GameState] = None
        self._last_saved: Optional[Dict[str, Any]] = None

    def enable(self) -> None:
        self.enabled = True
        logger.info("Auto-save enabled")

    def disable(self) -> None:
        self.enabled = False
        self.pending = None
        logger.info("Auto-save disabled")

    def auto_save(self, state: GameState, force: bool = False) -> AutoSaveOutcome:
        if not self.enabled and not force:
            return AutoSaveOutcome.DISABLED
        if not self.is_saveable(state):
            logger.warning("Auto-save skipped: state fails basic checks")
            return AutoSaveOutcome.INVALID
        if not force and not self.has_significant_changes(state):
            logger.debug("Auto-save skipped: no significant changes")
            return AutoSaveOutcome.UNCHANGED

        now = self.clock()
        if not force and self.last_attempt_time is not None and now - self.last_attempt_time < self.interval_ms:
            self.pending = copy.deepcopy(state)
            logger.debug("Auto-save throttled; %d ms remaining", self.interval_ms - (now - self.last_attempt_time))
            return AutoSaveOutcome.THROTTLED

        self.last_attempt_time = now
        try:
            self.store.save(state)
        except SaveError as e:
            self._record_failure(e)
            return AutoSaveOutcome.FAILED

        self.consecutive_failures = 0
        self.interval_ms = self.config.base_interval_ms
        self.last_save_time = now
        self.pending = None
        self._last_saved = self._fingerprint(state)
        return AutoSaveOutcome.SAVED

    def force_save(self, state: GameState) -> AutoSaveOutcome:
        return self.auto_save(state, force=True)

    def flush_pending(self) -> Optional[AutoSaveOutcome]:
        """Write the pending state if the interval has elapsed. None when nothing was due."""
        if self.pending is None:
            return None
        now = self.clock()
        if self.last_attempt_time is not None and now - self.last_attempt_time < self.interval_ms:
            return None
        state = self.pending
        self.pending = None
        return self.auto_save(state, force=True)

    def _record_failure(self, error: Exception) -> None:
        self.consecutive_failures += 1
        logger.error("Auto-save failed (%d consecutive): %s", self.consecutive_failures, error)
        if self.consecutive_failures >= self.config.max_failures:
            exponent = self.consecutive_failures - self.config.max_failures + 1
            grown = self.config.base_interval_ms * self.config.backoff_multiplier ** exponent
            self.interval_ms = int(min(grown, self.config.max_interval_ms))
            logger.warning("Auto-save interval backed off to %d ms", self.interval_ms)

    @staticmethod
    def is_saveable(state: GameState) -> bool:
        """Lenient check: a positive level and an integer position."""
        if not isinstance(state, GameState):
            return False
        level = state.current_level
        if isinstance(level, bool) or not isinstance(level, int) or level < 1:
            return False
        pos = state.player_position
        return all(isinstance(v, int) and not isinstance(v, bool) for v in (pos.x, pos.y))

    @staticmethod
    def _fingerprint(state: GameState) -> Dict[str, Any]:
        obj = state.objectives_completed
        return {
            "level": state.current_level,
            "position": (state.player_position.x, state.player_position.y),
            "objectives": (obj.guide_found, obj.fragments_collected, obj.exit_unlocked),
            "collected": len(state.collected_items),
            "playTime": state.game_stats.play_time,
        }

    def has_significant_changes(self, state: GameState) -> bool:
        if self._last_saved is None:
            return True
        current = self._fingerprint(state)
        last = self._last_saved
        for key in ("level", "position", "objectives", "collected"):
            if current[key] != last[key]:
                return True
        return abs(current["playTime"] - last["playTime"]) >= self.config.play_time_threshold_ms

    def status(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "lastSaveTime": self.last_save_time,
            "intervalMs": self.interval_ms,
            "consecutiveFailures": self.consecutive_failures,
            "pending": self.pending is not None,
        }
