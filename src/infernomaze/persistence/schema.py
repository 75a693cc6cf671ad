import json
import logging
from functools import lru_cache
from importlib.resources import files as resource_files
from typing import Any, Dict

from jsonschema import Draft202012Validator

from .errors import CorruptSaveError, SaveValidationError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _load_schema(name: str) -> Dict[str, Any]:
    """Load a bundled JSON schema from infernomaze/persistence/schemas/."""
    text = resource_files("infernomaze.persistence").joinpath("schemas").joinpath(name).read_text(encoding="utf-8")
    logger.debug("Loaded schema %s", name)
    return json.loads(text)


@lru_cache(maxsize=None)
def _validator(name: str) -> Draft202012Validator:
    return Draft202012Validator(_load_schema(name))


def _collect_errors(name: str, data: Any):
    errors = sorted(_validator(name).iter_errors(data), key=lambda e: [str(p) for p in e.path])
    for err in errors:
        logger.error("Schema %s validation error at %s: %s", name, list(err.path), err.message)
    return errors


def validate_game_state(data: Dict[str, Any]) -> None:
    """Check a camelCase game state dict.

    Raises:
        SaveValidationError: when required fields are missing or have the wrong type.
    """
    errors = _collect_errors("game_state.schema.json", data)
    if errors:
        first = errors[0]
        where = "/".join(str(p) for p in first.path) or "<root>"
        raise SaveValidationError(f"Invalid game state at {where}: {first.message}") from first


def validate_envelope(data: Any) -> None:
    """Check the outer ``{version, timestamp, payload}`` record.

    Raises:
        CorruptSaveError: when the record shape itself is broken.
    """
    errors = _collect_errors("envelope.schema.json", data)
    if errors:
        raise CorruptSaveError(f"Malformed save record: {errors[0].message}") from errors[0]


__all__ = ["validate_envelope", "validate_game_state"]
