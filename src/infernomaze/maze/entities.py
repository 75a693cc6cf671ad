from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .grid import Grid

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


class EntityKind(str, Enum):
    GUIDE = "guide"
    FRAGMENT = "fragment"


@dataclass
class Entity:
    """An object placed on a maze cell. Entities never move.

    ``id`` is only set for fragments; it is the stable collection key, assigned
    in placement order starting at 0.
    """

    kind: EntityKind
    x: int
    y: int
    collected: bool = False
    id: Optional[int] = None

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value, "x": self.x, "y": self.y}
        if self.id is not None:
            data["id"] = self.id
        return data


def available_positions(grid: Grid) -> List[Point]:
    """Walkable cells minus start and exit, in row-major order."""
    reserved = {grid.start, grid.exit}
    return [p for p in grid.walkable_positions() if p not in reserved]


def place_entities(
    grid: Grid,
    rng: random.Random,
    wants_guide: bool = True,
    fragment_count: int = 3,
) -> List[Entity]:
    """Place the guide (optional) and up to ``fragment_count`` fragments.

    Positions are drawn uniformly without replacement, so no two entities share
    a cell and none lands on start or exit. Requesting more fragments than
    there is room for places as many as fit.
    """
    if fragment_count < 0:
        raise ValueError("fragment_count must be non-negative")

    pool = available_positions(grid)
    if not pool:
        logger.warning("No available positions for entity placement on %dx%d grid", grid.width, grid.height)
        return []

    entities: List[Entity] = []
    if wants_guide:
        x, y = pool.pop(rng.randrange(len(pool)))
        entities.append(Entity(EntityKind.GUIDE, x, y))

    to_place = min(fragment_count, len(pool))
    if to_place < fragment_count:
        logger.warning("Only %d of %d requested fragments fit in the maze", to_place, fragment_count)
    for fragment_id in range(to_place):
        x, y = pool.pop(rng.randrange(len(pool)))
        entities.append(Entity(EntityKind.FRAGMENT, x, y, id=fragment_id))

    logger.debug("Placed %d entities (guide=%s, fragments=%d)", len(entities), wants_guide, to_place)
    return entities
