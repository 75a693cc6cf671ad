"""Objective tracking for a single level.

Three conditions feed the exit gate:

- the guide has been found (one-way, only required when the level has a guide)
- every fragment id in ``0 .. total_fragments - 1`` has been collected
- ``exit_unlocked`` is derived from the two above and never goes back to False
  until ``reset``

UI, audio and narrative layers react to the events published on the optional
EventBus instead of polling.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from .events import EventBus, EventType
from .maze import Entity, EntityKind, Maze

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


@dataclass(frozen=True)
class ObjectiveStatus:
    guide_found: bool
    fragments_collected: int
    total_fragments: int
    exit_unlocked: bool
    all_completed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guideFound": self.guide_found,
            "fragmentsCollected": self.fragments_collected,
            "totalFragments": self.total_fragments,
            "exitUnlocked": self.exit_unlocked,
            "allCompleted": self.all_completed,
        }


@dataclass
class ObjectiveCheck:
    """Outcome of ``check_objectives``.

    ``status_changed`` is True only when the call mutated tracker state, so
    callers can skip side effects when the player stands still.
    """

    collected: List[Entity] = field(default_factory=list)
    status_changed: bool = False


class ObjectiveTracker:
    def __init__(
        self,
        maze: Optional[Maze] = None,
        total_fragments: int = 3,
        guide_required: Optional[bool] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.maze: Optional[Maze] = None
        self.events = events
        self.guide_found = False
        self.fragments_collected = 0
        self.total_fragments = total_fragments
        self.guide_required = guide_required is not False
        self.exit_unlocked = False
        self.collected_fragment_ids: Set[int] = set()
        if maze is not None:
            self.set_maze(maze, guide_required=guide_required)
        else:
            self.reset(total_fragments, self.guide_required)

    def set_maze(self, maze: Maze, guide_required: Optional[bool] = None) -> None:
        """Attach a freshly populated maze and start its objectives from zero.

        The fragment total is what was actually placed. When ``guide_required``
        is None it follows whether a guide entity exists in the maze.
        """
        self.maze = maze
        if guide_required is None:
            guide_required = maze.has_guide()
        self.reset(maze.total_fragment_count(), guide_required)

    def reset(self, total_fragments: int = 3, guide_required: bool = True) -> None:
        if total_fragments < 0:
            raise ValueError("total_fragments must be non-negative")
        self.guide_found = False
        self.fragments_collected = 0
        self.total_fragments = total_fragments
        self.guide_required = guide_required
        self.exit_unlocked = False
        self.collected_fragment_ids = set()
        self._update_exit_status()

    # Mutations

    def find_guide(self) -> bool:
        """Record the guide encounter. Returns False if it was already found."""
        if self.guide_found:
            return False
        self.guide_found = True
        logger.info("Guide found")
        self._publish(EventType.GUIDE_FOUND, {})
        self._update_exit_status()
        return True

    def collect_fragment(self, fragment_id: int) -> bool:
        """Record a fragment. Returns False if that id was already collected."""
        if not 0 <= fragment_id < self.total_fragments:
            raise ValueError(f"Fragment id {fragment_id} outside 0..{self.total_fragments - 1}")
        if fragment_id in self.collected_fragment_ids:
            return False
        self.collected_fragment_ids.add(fragment_id)
        self.fragments_collected = len(self.collected_fragment_ids)
        logger.info("Fragment %d collected (%d/%d)", fragment_id, self.fragments_collected, self.total_fragments)
        self._publish(
            EventType.FRAGMENT_COLLECTED,
            {"id": fragment_id, "collected": self.fragments_collected, "total": self.total_fragments},
        )
        self._update_exit_status()
        return True

    def check_objectives(self, position: Point) -> ObjectiveCheck:
        """Collect whatever uncollected entity sits at ``position``."""
        result = ObjectiveCheck()
        if self.maze is None:
            return result

        x, y = position
        entity = self.maze.collect_entity(x, y)
        if entity is not None:
            result.collected.append(entity)
            if entity.kind == EntityKind.GUIDE:
                result.status_changed = self.find_guide()
            elif entity.id is not None:
                result.status_changed = self.collect_fragment(entity.id)

        if self._update_exit_status():
            result.status_changed = True
        return result

    def _update_exit_status(self) -> bool:
        if self.exit_unlocked or not self.are_all_objectives_completed():
            return False
        self.exit_unlocked = True
        logger.info("Exit unlocked")
        self._publish(EventType.EXIT_UNLOCKED, {})
        return True

    def _publish(self, name: str, payload: Dict[str, Any]) -> None:
        if self.events is not None:
            self.events.publish(name, payload)

    # Queries

    def are_all_objectives_completed(self) -> bool:
        guide_ok = self.guide_found or not self.guide_required
        return guide_ok and self.fragments_collected == self.total_fragments

    def is_exit_unlocked(self) -> bool:
        return self.exit_unlocked

    def can_exit_level(self, position: Point) -> bool:
        """The sole gate for level transition: on the exit cell with the exit unlocked."""
        if self.maze is None or not self.exit_unlocked:
            return False
        return tuple(position) == self.maze.exit_position

    def status(self) -> ObjectiveStatus:
        return ObjectiveStatus(
            guide_found=self.guide_found,
            fragments_collected=self.fragments_collected,
            total_fragments=self.total_fragments,
            exit_unlocked=self.exit_unlocked,
            all_completed=self.are_all_objectives_completed(),
        )

    def fragment_progress(self) -> Dict[str, float]:
        total = self.total_fragments
        return {
            "collected": self.fragments_collected,
            "total": total,
            "remaining": total - self.fragments_collected,
            "percentage": (self.fragments_collected / total) * 100 if total > 0 else 0,
        }

    # Serialization

    def snapshot(self) -> Dict[str, Any]:
        return {
            "guideFound": self.guide_found,
            "fragmentsCollected": self.fragments_collected,
            "totalFragments": self.total_fragments,
            "exitUnlocked": self.exit_unlocked,
            "collectedFragmentIds": sorted(self.collected_fragment_ids),
            "guideRequired": self.guide_required,
        }

    def restore(self, data: Dict[str, Any]) -> None:
        """Load a snapshot. The counter and the exit gate are re-derived, not trusted."""
        total = int(data.get("totalFragments", self.total_fragments))
        ids = {int(i) for i in data.get("collectedFragmentIds", [])}
        out_of_range = {i for i in ids if not 0 <= i < total}
        if out_of_range:
            logger.warning("Dropping fragment ids outside 0..%d: %s", total - 1, sorted(out_of_range))
            ids -= out_of_range

        self.total_fragments = total
        self.guide_required = bool(data.get("guideRequired", self.guide_required))
        self.guide_found = bool(data.get("guideFound", False))
        self.collected_fragment_ids = ids
        self.fragments_collected = len(ids)
        self.exit_unlocked = self.are_all_objectives_completed()
        if bool(data.get("exitUnlocked", False)) != self.exit_unlocked:
            logger.warning("Stored exitUnlocked disagrees with objectives; using derived value %s", self.exit_unlocked)
