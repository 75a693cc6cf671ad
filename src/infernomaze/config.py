from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

# Below this the odd-coordinate lattice degenerates to the start cell alone.
MIN_MAZE_SIZE = 5
MAX_MAZE_SIZE = 201

Point = Tuple[int, int]


class MazeConfig(BaseModel):
    """Geometry and generation budget for a single maze.

    ``exit`` defaults to the bottom-right interior cell ``(width - 2, height - 2)``.
    Start and exit must both be interior (non-border) cells and must differ.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: int = Field(15, ge=MIN_MAZE_SIZE, le=MAX_MAZE_SIZE)
    height: int = Field(15, ge=MIN_MAZE_SIZE, le=MAX_MAZE_SIZE)
    start: Point = (1, 1)
    exit: Optional[Point] = None
    max_generation_attempts: int = Field(1, ge=1, le=50)

    @model_validator(mode="after")
    def _check_positions(self) -> "MazeConfig":
        for label, (x, y) in (("start", self.start), ("exit", self.exit_position)):
            if not (1 <= x <= self.width - 2 and 1 <= y <= self.height - 2):
                raise ValueError(f"{label} position {(x, y)} must be an interior cell")
        if tuple(self.start) == self.exit_position:
            raise ValueError("start and exit must be different cells")
        return self

    @property
    def exit_position(self) -> Point:
        if self.exit is not None:
            return tuple(self.exit)  # type: ignore[return-value]
        return (self.width - 2, self.height - 2)


class GenerationConfig(BaseModel):
    """Options applied to every level's maze."""

    model_config = ConfigDict(extra="forbid")

    max_attempts: int = Field(1, ge=1, le=50)


class SaveConfig(BaseModel):
    """Persistence policy. The size cap and version are policy, not algorithm."""

    model_config = ConfigDict(extra="forbid")

    version: str = "1.0.0"
    save_key: str = "infernoMazeSave"
    backup_key: str = "infernoMazeSave_backup"
    settings_key: str = "infernoMazeSettings"
    max_save_bytes: int = Field(1024 * 1024, gt=0)
    write_retries: int = Field(3, ge=1, le=10)

    @model_validator(mode="after")
    def _distinct_keys(self) -> "SaveConfig":
        keys = {self.save_key, self.backup_key, self.settings_key}
        if len(keys) != 3:
            raise ValueError("save, backup and settings keys must be distinct")
        return self


class AutoSaveConfig(BaseModel):
    """Auto-save throttling, change detection and failure backoff (milliseconds)."""

    model_config = ConfigDict(extra="forbid")

    base_interval_ms: int = Field(5000, ge=0)
    max_failures: int = Field(3, ge=1)
    backoff_multiplier: float = Field(2.0, ge=1.0)
    max_interval_ms: int = Field(300_000, ge=0)
    play_time_threshold_ms: int = Field(30_000, ge=0)

    @model_validator(mode="after")
    def _interval_ceiling(self) -> "AutoSaveConfig":
        if self.max_interval_ms < self.base_interval_ms:
            raise ValueError("max_interval_ms must not be smaller than base_interval_ms")
        return self


class GameConfig(BaseModel):
    """Top-level configuration aggregating every subsystem's options."""

    model_config = ConfigDict(extra="forbid")

    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    save: SaveConfig = Field(default_factory=SaveConfig)
    autosave: AutoSaveConfig = Field(default_factory=AutoSaveConfig)
    levels_path: Optional[Path] = None

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "GameConfig":
        """Load defaults, overlaid with an optional user YAML file.

        A missing user file is logged and ignored; invalid values raise
        ``pydantic.ValidationError``.
        """
        defaults = cls().model_dump()
        user_data: Dict[str, Any] = {}
        if user_path is not None:
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user config from %s", user_path)
            else:
                logger.warning("User config file not found: %s", user_path)
        merged = cls._deep_merge(defaults, user_data)
        cfg = cls.model_validate(merged)
        logger.debug("Config merged: %s", cfg)
        return cfg
