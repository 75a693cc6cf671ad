from __future__ import annotations

import json
from typing import Any, Dict

from .errors import CorruptSaveError, VersionMismatchError
from .models import GameState, SaveRecord
from .schema import validate_envelope, validate_game_state


def encode_record(record: SaveRecord) -> str:
    """Encode a SaveRecord to compact JSON."""
    return json.dumps(record.to_dict(), ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def decode_record(text: str, expected_version: str) -> SaveRecord:
    """Decode stored text into a SaveRecord.

    Raises:
        CorruptSaveError: the text is not JSON or the envelope is malformed.
        VersionMismatchError: the record was written by another save version.
        SaveValidationError: the payload fails structural validation.
    """
    try:
        data: Dict[str, Any] = json.loads(text)
    except (TypeError, ValueError) as e:
        raise CorruptSaveError(f"Invalid JSON: {e}") from e

    validate_envelope(data)
    version = data["version"]
    if version != expected_version:
        raise VersionMismatchError(found=version, expected=expected_version)

    payload = data["payload"]
    validate_game_state(payload)
    return SaveRecord(version=version, timestamp=int(data["timestamp"]), payload=GameState.from_dict(payload))
