from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..events import EventBus, EventType
from ..maze import Maze
from ..rng import RNGManager
from .table import LevelConfig, LevelTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelRecord:
    level: int
    completed_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "completedAt": self.completed_at}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "LevelRecord":
        return LevelRecord(level=int(data["level"]), completed_at=str(data.get("completedAt", "")))


class LevelManager:
    """Level progression and per-level maze construction.

    Mazes are derived from (master seed, level number), so reloading a level
    rebuilds exactly the same layout and entity positions.
    """

    def __init__(
        self,
        table: LevelTable,
        rngm: RNGManager,
        events: Optional[EventBus] = None,
        max_generation_attempts: int = 1,
    ) -> None:
        self.table = table
        self.rngm = rngm
        self.events = events
        self.max_generation_attempts = max_generation_attempts
        self.current_level = 1
        self.level_config: Optional[LevelConfig] = None
        self.current_maze: Optional[Maze] = None
        self.level_history: List[LevelRecord] = []

    @property
    def max_level(self) -> int:
        return self.table.max_level

    def build_maze(self, level: LevelConfig) -> Maze:
        maze = Maze(
            level.maze_config(self.max_generation_attempts),
            rng=self.rngm.context_rng("maze_layout", level.number),
            placement_rng=self.rngm.context_rng("entity_placement", level.number),
        )
        maze.generate()
        placed = maze.place_entities(wants_guide=level.has_guide, fragment_count=level.required_fragments)
        logger.debug("Level %d maze built with %d entities", level.number, placed)
        return maze

    def load_level(self, number: int) -> Maze:
        """Make ``number`` the current level and build its maze.

        Raises LevelNotFoundError for numbers outside the table.
        """
        level = self.table.get(number)
        self.current_level = number
        self.level_config = level
        self.current_maze = self.build_maze(level)
        logger.info("Loaded level %d (%s) %dx%d", number, level.name, level.width, level.height)
        if self.events is not None:
            self.events.publish(EventType.LEVEL_LOADED, {"level": number, "name": level.name})
        return self.current_maze

    def progress_to_next(self) -> bool:
        """Record the current level as completed and load the next one.

        Returns False when the completed level was the last one.
        """
        finished = self.current_level
        self.level_history.append(
            LevelRecord(level=finished, completed_at=datetime.now(timezone.utc).isoformat())
        )
        if self.events is not None:
            self.events.publish(EventType.LEVEL_COMPLETED, {"level": finished})

        next_level = finished + 1
        if next_level > self.max_level:
            logger.info("Final level %d completed", finished)
            if self.events is not None:
                self.events.publish(EventType.GAME_COMPLETED, {"levels": [r.level for r in self.level_history]})
            return False
        self.load_level(next_level)
        return True

    def reset_to_level(self, number: int = 1) -> Maze:
        self.level_history = []
        self.current_maze = None
        self.level_config = None
        return self.load_level(number)

    def is_level_unlocked(self, number: int) -> bool:
        if number == 1:
            return True
        return any(r.level == number - 1 for r in self.level_history)

    def next_level_preview(self) -> Optional[LevelConfig]:
        nxt = self.current_level + 1
        return self.table.get(nxt) if self.table.exists(nxt) else None

    def progression_stats(self) -> Dict[str, Any]:
        completed = len({r.level for r in self.level_history})
        return {
            "currentLevel": self.current_level,
            "maxLevel": self.max_level,
            "completedLevels": completed,
            "progressPercentage": completed / self.max_level * 100,
            "isGameComplete": completed >= self.max_level,
            "levelsRemaining": max(0, self.max_level - completed),
        }

    def validate_progression(self) -> Dict[str, Any]:
        issues: List[str] = []
        if not self.table.exists(self.current_level):
            issues.append(f"Current level {self.current_level} does not exist")
        for prev, nxt in zip(self.level_history, self.level_history[1:]):
            if nxt.level != prev.level + 1:
                issues.append(f"Level progression gap: {prev.level} -> {nxt.level}")
        if self.current_maze is None:
            issues.append("No maze generated for current level")
        return {"isValid": not issues, "issues": issues, "currentLevel": self.current_level}

    def history_snapshot(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.level_history]

    def restore_history(self, records: List[Dict[str, Any]]) -> None:
        self.level_history = [LevelRecord.from_dict(r) for r in records]
