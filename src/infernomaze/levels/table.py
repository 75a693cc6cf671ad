from __future__ import annotations

import logging
from importlib.resources import files as resource_files
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..config import MAX_MAZE_SIZE, MIN_MAZE_SIZE, MazeConfig
from ..errors import LevelNotFoundError

logger = logging.getLogger(__name__)


class LevelConfig(BaseModel):
    """One row of the level table.

    ``has_guide`` doubles as the "guide required this level" flag for the exit gate.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    number: int = Field(..., ge=1)
    name: str
    circle: str = ""
    width: int = Field(..., ge=MIN_MAZE_SIZE, le=MAX_MAZE_SIZE)
    height: int = Field(..., ge=MIN_MAZE_SIZE, le=MAX_MAZE_SIZE)
    difficulty: int = Field(1, ge=1)
    required_fragments: int = Field(3, ge=0)
    has_guide: bool = False

    def maze_config(self, max_attempts: int = 1) -> MazeConfig:
        return MazeConfig(width=self.width, height=self.height, max_generation_attempts=max_attempts)


class LevelTable:
    """Ordered, contiguous collection of levels numbered from 1."""

    def __init__(self, levels: List[LevelConfig]) -> None:
        if not levels:
            raise ValueError("Level table must contain at least one level")
        by_number: Dict[int, LevelConfig] = {}
        for level in levels:
            if level.number in by_number:
                raise ValueError(f"Duplicate level number {level.number}")
            by_number[level.number] = level
        expected = list(range(1, len(by_number) + 1))
        if sorted(by_number) != expected:
            raise ValueError(f"Level numbers must be contiguous from 1, got {sorted(by_number)}")
        self._levels = by_number

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self):
        return iter(self._levels[n] for n in sorted(self._levels))

    @property
    def max_level(self) -> int:
        return len(self._levels)

    def exists(self, number: int) -> bool:
        return number in self._levels

    def get(self, number: int) -> LevelConfig:
        try:
            return self._levels[number]
        except KeyError:
            raise LevelNotFoundError(f"Level {number} does not exist") from None


def load_level_table(path: Optional[Path] = None) -> LevelTable:
    """Load the level table from YAML.

    If path is None, loads the embedded default resource infernomaze/levels/levels.yaml.
    """
    if path is None:
        data = resource_files("infernomaze.levels").joinpath("levels.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded embedded level table resource")
    else:
        with open(path, "r", encoding="utf-8") as f:
            data = f.read()
        logger.debug("Loaded level table from path: %s", path)

    raw = yaml.safe_load(data) or {}
    levels = [LevelConfig.model_validate(row) for row in raw.get("levels", [])]
    table = LevelTable(levels)
    logger.info("Level table ready: %d levels", len(table))
    return table
