"""Versioned save slot with a backup copy.

Layout in the backing storage:

- ``save_key``: the current encoded SaveRecord
- ``backup_key``: the previous primary blob, copied verbatim before each overwrite
- ``settings_key``: user settings, independent of game progress
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..config import SaveConfig
from .codec import decode_record, encode_record
from .errors import (
    CorruptSaveError,
    SaveError,
    SaveSizeError,
    SaveValidationError,
    StorageError,
    VersionMismatchError,
)
from .models import GameState, SaveRecord
from .schema import validate_game_state
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"


def now_ms() -> int:
    return int(time.time() * 1000)


class LoadStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    RECOVERED_FROM_BACKUP = "recovered_from_backup"
    NEEDS_MIGRATION = "needs_migration"
    CORRUPT = "corrupt"


@dataclass(frozen=True)
class LoadResult:
    state: Optional[GameState]
    status: LoadStatus
    timestamp: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.state is not None


class SaveStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        config: Optional[SaveConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.storage = storage
        self.config = config or SaveConfig()
        self.clock = clock or now_ms

    # Save

    def save(self, state: Union[GameState, Mapping[str, Any]]) -> SaveRecord:
        """Validate, encode and write ``state``, archiving the previous blob first.

        Raises:
            SaveValidationError: state is structurally invalid. Nothing is written.
            SaveSizeError: encoded record exceeds ``max_save_bytes``. Nothing is written.
            StorageError: the backup copy or the primary write failed.
        """
        if isinstance(state, GameState):
            data = state.to_dict()
        elif isinstance(state, Mapping):
            data = dict(state)
        else:
            raise SaveValidationError(f"Unsupported state type: {type(state).__name__}")
        validate_game_state(data)

        record = SaveRecord(version=self.config.version, timestamp=self.clock(), payload=GameState.from_dict(data))
        text = encode_record(record)
        size = len(text.encode("utf-8"))
        if size > self.config.max_save_bytes:
            logger.error("Save rejected: %d bytes exceeds cap of %d", size, self.config.max_save_bytes)
            raise SaveSizeError(f"Encoded save is {size} bytes, cap is {self.config.max_save_bytes}")

        self._backup_primary()
        self._write_verified(self.config.save_key, text)
        logger.info("Game saved (level %d, %d bytes)", record.payload.current_level, size)
        return record

    def _backup_primary(self) -> None:
        current = self.storage.get(self.config.save_key)
        if current is None:
            return
        self.storage.set(self.config.backup_key, current)
        logger.debug("Archived previous save to %s", self.config.backup_key)

    def _write_verified(self, key: str, text: str) -> None:
        """Write ``text`` and read it back, retrying up to ``write_retries`` times."""
        last_error: Optional[Exception] = None
        for attempt in range(1, self.config.write_retries + 1):
            try:
                self.storage.set(key, text)
                if self.storage.get(key) == text:
                    return
                last_error = StorageError(f"Read-back of {key} did not match what was written")
            except StorageError as e:
                last_error = e
            logger.warning("Write attempt %d/%d for %s failed: %s", attempt, self.config.write_retries, key, last_error)
        raise StorageError(f"Failed to write {key} after {self.config.write_retries} attempts") from last_error

    # Load

    def load(self) -> LoadResult:
        """Read the primary save, falling back to the backup on corruption.

        A version mismatch is reported as NEEDS_MIGRATION and the backup is not
        consulted.
        """
        try:
            raw = self.storage.get(self.config.save_key)
        except StorageError:
            logger.exception("Primary save unreadable")
            return self._load_backup()
        if raw is None:
            return LoadResult(state=None, status=LoadStatus.EMPTY)

        try:
            record = decode_record(raw, self.config.version)
        except VersionMismatchError as e:
            logger.warning("Save needs migration: found %s, expected %s", e.found, e.expected)
            return LoadResult(state=None, status=LoadStatus.NEEDS_MIGRATION)
        except (CorruptSaveError, SaveValidationError) as e:
            logger.warning("Primary save corrupt (%s); trying backup", e)
            return self._load_backup()
        return LoadResult(state=record.payload, status=LoadStatus.OK, timestamp=record.timestamp)

    def _load_backup(self) -> LoadResult:
        try:
            raw = self.storage.get(self.config.backup_key)
            if raw is None:
                logger.error("No backup available; save is unrecoverable")
                return LoadResult(state=None, status=LoadStatus.CORRUPT)
            record = decode_record(raw, self.config.version)
        except SaveError as e:
            logger.error("Backup recovery failed: %s", e)
            return LoadResult(state=None, status=LoadStatus.CORRUPT)
        logger.info("Recovered game state from backup")
        return LoadResult(state=record.payload, status=LoadStatus.RECOVERED_FROM_BACKUP, timestamp=record.timestamp)

    # Housekeeping

    def clear(self) -> bool:
        """Remove primary, backup and settings entries. False if storage failed."""
        try:
            for key in (self.config.save_key, self.config.backup_key, self.config.settings_key):
                self.storage.remove(key)
        except StorageError:
            logger.exception("Failed to clear save data")
            return False
        logger.info("Save data cleared")
        return True

    def has_save(self) -> bool:
        try:
            return self.storage.get(self.config.save_key) is not None
        except StorageError:
            logger.exception("Failed to check for save")
            return False

    def get_save_info(self) -> Optional[Dict[str, Any]]:
        """Summary of the stored save, or None when nothing loadable is stored."""
        result = self.load()
        if result.state is None:
            return None
        state = result.state
        return {
            "version": self.config.version,
            "timestamp": result.timestamp,
            "currentLevel": state.current_level,
            "playTime": state.game_stats.play_time,
            "status": result.status.value,
        }

    def get_storage_info(self) -> Dict[str, Any]:
        sizes: Dict[str, int] = {}
        for key in (self.config.save_key, self.config.backup_key, self.config.settings_key):
            raw = self.storage.get(key)
            sizes[key] = len(raw.encode("utf-8")) if raw is not None else 0
        used = sizes[self.config.save_key]
        return {
            "sizes": sizes,
            "totalBytes": sum(sizes.values()),
            "maxSaveBytes": self.config.max_save_bytes,
            "usagePercentage": used / self.config.max_save_bytes * 100,
        }

    # Export / import

    def export_save_data(self) -> Optional[str]:
        """Pretty-printed export envelope around the raw stored record."""
        raw = self.storage.get(self.config.save_key)
        if raw is None:
            return None
        try:
            game_data = json.loads(raw)
        except ValueError as e:
            raise CorruptSaveError(f"Stored save is not valid JSON: {e}") from e
        envelope = {"exportVersion": EXPORT_VERSION, "exportTimestamp": self.clock(), "gameData": game_data}
        return json.dumps(envelope, ensure_ascii=False, indent=2, sort_keys=True)

    def import_save_data(self, text: str) -> GameState:
        """Replace the current save with exported data.

        The embedded record must decode cleanly for this version. The existing
        save is archived to the backup slot before it is replaced.
        """
        try:
            envelope = json.loads(text)
        except ValueError as e:
            raise CorruptSaveError(f"Import data is not valid JSON: {e}") from e
        if not isinstance(envelope, dict) or "gameData" not in envelope:
            raise CorruptSaveError("Import data has no gameData")
        record = decode_record(json.dumps(envelope["gameData"]), self.config.version)
        text = encode_record(record)
        if len(text.encode("utf-8")) > self.config.max_save_bytes:
            raise SaveSizeError("Imported save exceeds the size cap")
        self._backup_primary()
        self._write_verified(self.config.save_key, text)
        logger.info("Imported save for level %d", record.payload.current_level)
        return record.payload

    # Settings

    def save_settings(self, settings: Mapping[str, Any]) -> None:
        self._write_verified(self.config.settings_key, json.dumps(dict(settings), sort_keys=True))

    def load_settings(self) -> Dict[str, Any]:
        raw = self.storage.get(self.config.settings_key)
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored settings are not valid JSON; ignoring")
            return {}
        if not isinstance(data, dict):
            logger.warning("Stored settings are not an object; ignoring")
            return {}
        return data
