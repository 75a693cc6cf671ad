"""One player's game: level progression, objectives, movement and saving wired together.

Every collaborator is an explicitly owned instance so several sessions can
coexist, e.g. in tests.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

from .config import GameConfig
from .errors import InfernoError
from .events import EventBus
from .levels import LevelManager, LevelTable, load_level_table
from .maze import Entity, EntityKind, Maze
from .objectives import ObjectiveTracker
from .persistence import (
    AutoSaveOutcome,
    AutoSaver,
    CollectedItem,
    FileStorage,
    GameState,
    GameStats,
    LoadStatus,
    ObjectivesCompleted,
    Position,
    SaveStore,
    StatKind,
    track_dialogue,
    update_statistics,
)
from .persistence.models import DEFAULT_GAME_SETTINGS
from .player import Direction, Player
from .rng import RNGManager

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


@dataclass
class MoveOutcome:
    moved: bool
    position: Point
    collected: List[Entity] = field(default_factory=list)
    exit_unlocked: bool = False
    level_completed: bool = False
    game_completed: bool = False


class GameSession:
    def __init__(
        self,
        config: Optional[GameConfig] = None,
        store: Optional[SaveStore] = None,
        events: Optional[EventBus] = None,
        table: Optional[LevelTable] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.events = events or EventBus()
        self.table = table or load_level_table(self.config.levels_path)
        self.store = store or SaveStore(FileStorage(), self.config.save, clock)
        self.clock = clock or self.store.clock
        self.autosaver = AutoSaver(self.store, self.config.autosave, self.clock)
        self.objectives = ObjectiveTracker(events=self.events)
        self.player = Player()
        self.rngm: Optional[RNGManager] = None
        self.levels: Optional[LevelManager] = None
        self.collected_items: List[CollectedItem] = []
        self.stats = GameStats()
        self.settings = copy.deepcopy(DEFAULT_GAME_SETTINGS)
        self.game_completed = False
        self._level_started_at = 0

    @property
    def maze(self) -> Maze:
        if self.levels is None or self.levels.current_maze is None:
            raise InfernoError("No game in progress")
        return self.levels.current_maze

    @property
    def current_level(self) -> int:
        return self.levels.current_level if self.levels is not None else 0

    # Lifecycle

    def start(self, seed: Union[int, str, bytes, None] = None) -> LoadStatus:
        """Resume the stored game, or start a fresh one when nothing loadable is stored."""
        result = self.store.load()
        resumed = False
        if result.state is not None:
            try:
                self.restore(result.state)
                resumed = True
            except InfernoError:
                logger.exception("Stored game could not be restored; starting fresh")
        if not resumed:
            self.new_game(seed)
        update_statistics(self.stats, StatKind.SESSION_START, now=self.clock())
        return result.status

    def new_game(self, seed: Union[int, str, bytes, None] = None) -> Maze:
        self.rngm = RNGManager(seed)
        self.levels = self._level_manager()
        self.stats = GameStats()
        self.game_completed = False
        maze = self.levels.load_level(1)
        self._enter_level(maze)
        logger.info("New game started with seed %s", self.rngm.get_master_seed_hex())
        return maze

    def end_session(self) -> AutoSaveOutcome:
        update_statistics(self.stats, StatKind.SESSION_END, now=self.clock())
        return self.autosave(force=True)

    def _level_manager(self) -> LevelManager:
        return LevelManager(
            self.table,
            self.rngm,
            events=self.events,
            max_generation_attempts=self.config.generation.max_attempts,
        )

    def _enter_level(self, maze: Maze) -> None:
        level = self.levels.level_config
        self.objectives.set_maze(maze, guide_required=level.has_guide and maze.has_guide())
        self.player = Player()
        self.player.place(maze.start_position)
        self.collected_items = []
        self._level_started_at = self.clock()

    # Play

    def move(self, direction: Union[Direction, str]) -> MoveOutcome:
        """Move the player one cell, collect what is there and leave the level when allowed.

        Raises:
            InvalidMove: unknown direction.
            InfernoError: no game in progress.
        """
        maze = self.maze
        if self.game_completed:
            return MoveOutcome(moved=False, position=self.player.position, exit_unlocked=True, game_completed=True)

        result = self.player.attempt_move(direction, maze)
        outcome = MoveOutcome(moved=result.moved, position=result.new_pos)
        if not result.moved:
            outcome.exit_unlocked = self.objectives.is_exit_unlocked()
            return outcome

        update_statistics(self.stats, StatKind.DISTANCE, 1)
        check = self.objectives.check_objectives(result.new_pos)
        for entity in check.collected:
            self.collected_items.append(CollectedItem(kind=entity.kind.value, x=entity.x, y=entity.y, id=entity.id))
            if entity.kind == EntityKind.FRAGMENT:
                update_statistics(self.stats, StatKind.FRAGMENT_COLLECTED)
            else:
                update_statistics(self.stats, StatKind.OBJECTIVE_COMPLETE)
        outcome.collected = check.collected
        outcome.exit_unlocked = self.objectives.is_exit_unlocked()

        if self.objectives.can_exit_level(result.new_pos):
            self._complete_level(outcome)
        return outcome

    def _complete_level(self, outcome: MoveOutcome) -> None:
        finished = self.levels.current_level
        elapsed = max(0, self.clock() - self._level_started_at)
        update_statistics(self.stats, StatKind.LEVEL_COMPLETE, {"level": finished, "time": elapsed})
        outcome.level_completed = True
        if self.levels.progress_to_next():
            self._enter_level(self.levels.current_maze)
            outcome.position = self.player.position
            outcome.exit_unlocked = self.objectives.is_exit_unlocked()
        else:
            self.game_completed = True
            outcome.game_completed = True
        self.autosave(force=True)

    def tick(self, elapsed_ms: int) -> Optional[AutoSaveOutcome]:
        """Advance play time and give the auto-saver a chance to run."""
        update_statistics(self.stats, StatKind.INCREMENT_PLAY_TIME, elapsed_ms)
        if self.levels is None:
            return None
        flushed = self.autosaver.flush_pending()
        return flushed if flushed is not None else self.autosave()

    def track_dialogue(self, dialogue_id: str) -> bool:
        return track_dialogue(self.stats, dialogue_id)

    # Persistence

    def autosave(self, force: bool = False) -> AutoSaveOutcome:
        return self.autosaver.auto_save(self.to_game_state(), force=force)

    def to_game_state(self) -> GameState:
        if self.levels is None or self.rngm is None:
            raise InfernoError("No game in progress")
        x, y = self.player.position
        return GameState(
            current_level=self.levels.current_level,
            player_position=Position(x=x, y=y),
            collected_items=copy.deepcopy(self.collected_items),
            objectives_completed=ObjectivesCompleted.from_dict(self.objectives.snapshot()),
            game_settings=copy.deepcopy(self.settings),
            game_stats=copy.deepcopy(self.stats),
            level_progress=self.levels.history_snapshot(),
            seed=self.rngm.get_master_seed_hex(),
        )

    def restore(self, state: GameState) -> Maze:
        """Rebuild the saved level from seed and level number, then re-apply progress.

        Raises:
            LevelNotFoundError: the saved level is not in the level table.
        """
        self.rngm = RNGManager.from_saved_hex(state.seed)
        self.levels = self._level_manager()
        maze = self.levels.load_level(state.current_level)
        self.levels.restore_history(state.level_progress)
        self._enter_level(maze)
        self.game_completed = any(r.level == self.table.max_level for r in self.levels.level_history)

        for item in state.collected_items:
            if maze.collect_entity(item.x, item.y) is None:
                logger.warning("Saved item %s at (%d, %d) not found in regenerated maze", item.kind, item.x, item.y)
        self.collected_items = copy.deepcopy(state.collected_items)

        objectives = state.objectives_completed.to_dict()
        # The regenerated maze is authoritative for what the level contains.
        objectives["totalFragments"] = maze.total_fragment_count()
        objectives["guideRequired"] = self.objectives.guide_required
        objectives["guideFound"] = objectives["guideFound"] or maze.guide_found()
        ids = set(objectives["collectedFragmentIds"])
        ids.update(i.id for i in state.collected_items if i.kind == EntityKind.FRAGMENT.value and i.id is not None)
        objectives["collectedFragmentIds"] = sorted(ids)
        self.objectives.restore(objectives)

        position = (state.player_position.x, state.player_position.y)
        if maze.is_walkable(*position):
            self.player.place(position)
        else:
            logger.warning("Saved position %s is not walkable; placing player at start", position)

        self.stats = copy.deepcopy(state.game_stats)
        self.settings = copy.deepcopy(state.game_settings)
        logger.info("Restored game at level %d", state.current_level)
        return maze
