"""Persistable game state.

Field names are snake_case in Python and camelCase in the stored JSON so that
saves written by older builds of the game stay readable.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_GAME_SETTINGS: Dict[str, Any] = {
    "volume": 0.7,
    "difficulty": "normal",
    "showMinimap": True,
}


@dataclass
class Position:
    x: int = 1
    y: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Position":
        return Position(x=int(data["x"]), y=int(data["y"]))


@dataclass
class ObjectivesCompleted:
    guide_found: bool = False
    fragments_collected: int = 0
    exit_unlocked: bool = False
    total_fragments: int = 0
    collected_fragment_ids: List[int] = field(default_factory=list)
    guide_required: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guideFound": self.guide_found,
            "fragmentsCollected": self.fragments_collected,
            "exitUnlocked": self.exit_unlocked,
            "totalFragments": self.total_fragments,
            "collectedFragmentIds": list(self.collected_fragment_ids),
            "guideRequired": self.guide_required,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ObjectivesCompleted":
        return ObjectivesCompleted(
            guide_found=bool(data.get("guideFound", False)),
            fragments_collected=int(data.get("fragmentsCollected", 0)),
            exit_unlocked=bool(data.get("exitUnlocked", False)),
            total_fragments=int(data.get("totalFragments", 0)),
            collected_fragment_ids=[int(i) for i in data.get("collectedFragmentIds", [])],
            guide_required=bool(data.get("guideRequired", True)),
        )


@dataclass
class GameStats:
    """Cumulative statistics. Durations are milliseconds."""

    play_time: int = 0
    death_count: int = 0
    dialogues_seen: List[str] = field(default_factory=list)
    total_sessions: int = 0
    levels_completed: int = 0
    objectives_completed: int = 0
    fragments_collected: int = 0
    total_distance: int = 0
    achievements: List[str] = field(default_factory=list)
    fastest_level_completion: Dict[str, int] = field(default_factory=dict)
    session_start_time: Optional[int] = None
    average_session_time: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playTime": self.play_time,
            "deathCount": self.death_count,
            "dialoguesSeen": list(self.dialogues_seen),
            "totalSessions": self.total_sessions,
            "levelsCompleted": self.levels_completed,
            "objectivesCompleted": self.objectives_completed,
            "fragmentsCollected": self.fragments_collected,
            "totalDistance": self.total_distance,
            "achievements": list(self.achievements),
            "fastestLevelCompletion": dict(self.fastest_level_completion),
            "sessionStartTime": self.session_start_time,
            "averageSessionTime": self.average_session_time,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GameStats":
        start = data.get("sessionStartTime")
        return GameStats(
            play_time=int(data.get("playTime", 0)),
            death_count=int(data.get("deathCount", 0)),
            dialogues_seen=[str(d) for d in data.get("dialoguesSeen", [])],
            total_sessions=int(data.get("totalSessions", 0)),
            levels_completed=int(data.get("levelsCompleted", 0)),
            objectives_completed=int(data.get("objectivesCompleted", 0)),
            fragments_collected=int(data.get("fragmentsCollected", 0)),
            total_distance=int(data.get("totalDistance", 0)),
            achievements=[str(a) for a in data.get("achievements", [])],
            fastest_level_completion={str(k): int(v) for k, v in data.get("fastestLevelCompletion", {}).items()},
            session_start_time=int(start) if start is not None else None,
            average_session_time=int(data.get("averageSessionTime", 0)),
        )


@dataclass
class CollectedItem:
    kind: str
    x: int
    y: int
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind, "x": self.x, "y": self.y}
        if self.id is not None:
            data["id"] = self.id
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "CollectedItem":
        ident = data.get("id")
        return CollectedItem(
            kind=str(data["kind"]),
            x=int(data["x"]),
            y=int(data["y"]),
            id=int(ident) if ident is not None else None,
        )


@dataclass
class GameState:
    """Everything needed to resume a game.

    ``seed`` is the hex form of the master seed; with ``current_level`` it is
    enough to rebuild the exact maze the player was in.
    """

    current_level: int = 1
    player_position: Position = field(default_factory=Position)
    collected_items: List[CollectedItem] = field(default_factory=list)
    objectives_completed: ObjectivesCompleted = field(default_factory=ObjectivesCompleted)
    game_settings: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_GAME_SETTINGS))
    game_stats: GameStats = field(default_factory=GameStats)
    level_progress: List[Dict[str, Any]] = field(default_factory=list)
    seed: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentLevel": self.current_level,
            "playerPosition": self.player_position.to_dict(),
            "collectedItems": [i.to_dict() for i in self.collected_items],
            "objectivesCompleted": self.objectives_completed.to_dict(),
            "gameSettings": copy.deepcopy(self.game_settings),
            "gameStats": self.game_stats.to_dict(),
            "levelProgress": copy.deepcopy(self.level_progress),
            "seed": self.seed,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GameState":
        """Build from an already schema-validated dict."""
        return GameState(
            current_level=int(data["currentLevel"]),
            player_position=Position.from_dict(data["playerPosition"]),
            collected_items=[CollectedItem.from_dict(i) for i in data.get("collectedItems", [])],
            objectives_completed=ObjectivesCompleted.from_dict(data["objectivesCompleted"]),
            game_settings=copy.deepcopy(data.get("gameSettings", {})),
            game_stats=GameStats.from_dict(data.get("gameStats", {})),
            level_progress=copy.deepcopy(data.get("levelProgress", [])),
            seed=data.get("seed"),
        )


@dataclass
class SaveRecord:
    """Envelope stored under the primary and backup keys."""

    version: str
    timestamp: int
    payload: GameState

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "timestamp": self.timestamp, "payload": self.payload.to_dict()}
