from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Union

from .models import GameStats

logger = logging.getLogger(__name__)


class StatKind(str, Enum):
    PLAY_TIME = "playTime"
    INCREMENT_PLAY_TIME = "incrementPlayTime"
    DEATH = "death"
    DIALOGUE = "dialogue"
    SESSION_START = "sessionStart"
    SESSION_END = "sessionEnd"
    LEVEL_COMPLETE = "levelComplete"
    OBJECTIVE_COMPLETE = "objectiveComplete"
    FRAGMENT_COLLECTED = "fragmentCollected"
    DISTANCE = "distance"
    ACHIEVEMENT = "achievement"


def update_statistics(
    stats: GameStats,
    kind: Union[StatKind, str],
    value: object = None,
    now: Optional[int] = None,
) -> GameStats:
    """Apply one statistics event to ``stats`` in place and return it.

    ``value`` depends on ``kind``: milliseconds for play time, a dialogue id,
    ``{"level": n, "time": ms}`` for level completion, a step count for
    distance, an achievement id. ``now`` is the clock in ms for session events.

    Raises:
        ValueError: unknown ``kind``.
    """
    kind = StatKind(kind)

    if kind is StatKind.PLAY_TIME:
        stats.play_time = int(value or 0)
    elif kind is StatKind.INCREMENT_PLAY_TIME:
        stats.play_time += int(value or 0)
    elif kind is StatKind.DEATH:
        stats.death_count += 1
    elif kind is StatKind.DIALOGUE:
        track_dialogue(stats, str(value))
    elif kind is StatKind.SESSION_START:
        stats.total_sessions += 1
        stats.session_start_time = now
    elif kind is StatKind.SESSION_END:
        if stats.session_start_time is not None and now is not None:
            length = max(0, now - stats.session_start_time)
            sessions = max(1, stats.total_sessions)
            stats.average_session_time = (stats.average_session_time * (sessions - 1) + length) // sessions
        stats.session_start_time = None
    elif kind is StatKind.LEVEL_COMPLETE:
        stats.levels_completed += 1
        if isinstance(value, dict) and "level" in value and "time" in value:
            key = str(value["level"])
            elapsed = int(value["time"])
            best = stats.fastest_level_completion.get(key)
            if best is None or elapsed < best:
                stats.fastest_level_completion[key] = elapsed
    elif kind is StatKind.OBJECTIVE_COMPLETE:
        stats.objectives_completed += 1
    elif kind is StatKind.FRAGMENT_COLLECTED:
        stats.fragments_collected += 1
    elif kind is StatKind.DISTANCE:
        stats.total_distance += int(value or 0)
    elif kind is StatKind.ACHIEVEMENT:
        ident = str(value)
        if ident not in stats.achievements:
            stats.achievements.append(ident)
            logger.info("Achievement unlocked: %s", ident)
    return stats


def track_dialogue(stats: GameStats, dialogue_id: str) -> bool:
    """Mark a dialogue as seen. Returns True the first time an id is seen."""
    if not dialogue_id or dialogue_id in stats.dialogues_seen:
        return False
    stats.dialogues_seen.append(dialogue_id)
    return True


def format_time(ms: int) -> str:
    """``H:MM:SS`` when at least an hour, otherwise ``M:SS``."""
    if not ms or ms < 0:
        return "0:00:00"
    total = int(ms) // 1000
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
