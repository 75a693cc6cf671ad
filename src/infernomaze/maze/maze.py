from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from ..config import MazeConfig
from .entities import Entity, EntityKind, place_entities
from .generator import MazeGenerator
from .grid import Cell, Grid

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


class Maze:
    """One level's maze: the cell grid plus the entities placed on it.

    The maze exclusively owns both. Typical use::

        maze = Maze(MazeConfig(width=15, height=15), rng=random.Random(7))
        maze.generate()
        maze.place_entities(wants_guide=True, fragment_count=3)

    Entities are replaced wholesale by ``place_entities``; afterwards only their
    ``collected`` flag changes, through position lookups.
    """

    def __init__(
        self,
        config: Optional[MazeConfig] = None,
        rng: Optional[random.Random] = None,
        placement_rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or MazeConfig()
        self.rng = rng or random.Random()
        self.placement_rng = placement_rng or self.rng
        self.grid: Grid = Grid.filled(
            self.config.width, self.config.height, tuple(self.config.start), self.config.exit_position
        )
        self.entities: List[Entity] = []
        self.repaired = False

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def start_position(self) -> Point:
        return self.grid.start

    @property
    def exit_position(self) -> Point:
        return self.grid.exit

    # Layout

    def generate(self) -> Grid:
        """Generate a new layout. Start and exit are always connected afterwards."""
        result = MazeGenerator(self.config, self.rng).generate()
        self.grid = result.grid
        self.repaired = result.repaired
        self.entities = []
        if result.repaired:
            logger.info("Maze %dx%d needed path repair", self.width, self.height)
        return self.grid

    def cell_at(self, x: int, y: int) -> Cell:
        return self.grid.cell_at(x, y)

    def is_walkable(self, x: int, y: int) -> bool:
        return self.grid.is_walkable(x, y)

    def walkable_positions(self) -> List[Point]:
        return self.grid.walkable_positions()

    # Entities

    def place_entities(self, wants_guide: bool = True, fragment_count: int = 3) -> int:
        """Replace the entity set; returns how many entities were placed."""
        self.entities = place_entities(self.grid, self.placement_rng, wants_guide, fragment_count)
        return len(self.entities)

    def entity_at(self, x: int, y: int) -> Optional[Entity]:
        """Uncollected entity at (x, y), if any."""
        for entity in self.entities:
            if entity.x == x and entity.y == y and not entity.collected:
                return entity
        return None

    def collect_entity(self, x: int, y: int) -> Optional[Entity]:
        """Mark the entity at (x, y) collected. Returns None when nothing was there to collect."""
        entity = self.entity_at(x, y)
        if entity is None:
            return None
        entity.collected = True
        return entity

    def entities_by_kind(self, kind: EntityKind) -> List[Entity]:
        return [e for e in self.entities if e.kind == kind]

    def uncollected_entities(self) -> List[Entity]:
        return [e for e in self.entities if not e.collected]

    def has_guide(self) -> bool:
        return bool(self.entities_by_kind(EntityKind.GUIDE))

    def guide_found(self) -> bool:
        # False both when there is no guide and when it is still uncollected.
        guides = self.entities_by_kind(EntityKind.GUIDE)
        return guides[0].collected if guides else False

    def all_fragments_collected(self) -> bool:
        fragments = self.entities_by_kind(EntityKind.FRAGMENT)
        return bool(fragments) and all(f.collected for f in fragments)

    def collected_fragment_count(self) -> int:
        return sum(1 for f in self.entities_by_kind(EntityKind.FRAGMENT) if f.collected)

    def total_fragment_count(self) -> int:
        return len(self.entities_by_kind(EntityKind.FRAGMENT))

    def reset_entities(self) -> None:
        for entity in self.entities:
            entity.collected = False

    def render_data(self) -> List[Dict[str, Any]]:
        """Read-only view of uncollected entities for the renderer."""
        return [{"kind": e.kind.value, "x": e.x, "y": e.y} for e in self.uncollected_entities()]

    def render(self) -> List[str]:
        """ASCII rows with uncollected entities drawn over the cells (G guide, F fragment)."""
        rows = [list(r) for r in self.grid.render()]
        for e in self.uncollected_entities():
            rows[e.y][e.x] = "G" if e.kind == EntityKind.GUIDE else "F"
        return ["".join(r) for r in rows]
