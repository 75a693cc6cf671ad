"""Save/load persistence for game progress."""

from .autosave import AutoSaveOutcome, AutoSaver
from .codec import decode_record, encode_record
from .errors import (
    CorruptSaveError,
    SaveError,
    SaveSizeError,
    SaveValidationError,
    StorageError,
    VersionMismatchError,
)
from .models import CollectedItem, GameState, GameStats, ObjectivesCompleted, Position, SaveRecord
from .schema import validate_game_state
from .stats import StatKind, format_time, track_dialogue, update_statistics
from .storage import FileStorage, KeyValueStorage, MemoryStorage, default_save_root
from .store import LoadResult, LoadStatus, SaveStore

__all__ = [
    "AutoSaveOutcome",
    "AutoSaver",
    "CollectedItem",
    "CorruptSaveError",
    "FileStorage",
    "GameState",
    "GameStats",
    "KeyValueStorage",
    "LoadResult",
    "LoadStatus",
    "MemoryStorage",
    "ObjectivesCompleted",
    "Position",
    "SaveError",
    "SaveRecord",
    "SaveSizeError",
    "SaveStore",
    "SaveValidationError",
    "StatKind",
    "StorageError",
    "VersionMismatchError",
    "decode_record",
    "default_save_root",
    "encode_record",
    "format_time",
    "track_dialogue",
    "update_statistics",
    "validate_game_state",
]
