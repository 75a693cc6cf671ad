"""Seeded randomness for maze layout and entity placement.

A game owns one master seed. Each level draws its layout and its entity
positions from separate streams keyed by (purpose, level number), so loading
a save only needs the seed hex and the level to rebuild the same maze.
"""
from __future__ import annotations

import hashlib
import json
import logging
import random
import secrets
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

Seed = Union[int, str, bytes, None]

_DERIVATION_VERSION = 1


def _hash_input(domain: str, identifiers: tuple, master: bytes) -> bytes:
    payload = {
        "domain": domain,
        "ids": identifiers,
        "master": master.hex(),
        "algo": "blake2b-64",
        "version": _DERIVATION_VERSION,
    }
    # sort_keys keeps the digest independent of dict ordering
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _int_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8 or 1, "big", signed=False)


def seed_bytes(seed: Optional[Union[int, str, bytes]]) -> bytes:
    """Turn a user-facing seed into the bytes every level stream is derived from.

    Integers and ``0x`` strings become their big-endian bytes; other strings are
    UTF-8 encoded. ``None`` maps to empty bytes.
    """
    if seed is None:
        return b""
    if isinstance(seed, bytes):
        return seed
    if isinstance(seed, int):
        if seed < 0:
            raise ValueError("Seed integers must be non-negative")
        return _int_bytes(seed)
    if isinstance(seed, str):
        text = seed.strip()
        if text.startswith("0x"):
            try:
                return _int_bytes(int(text, 16))
            except ValueError:
                pass
        return text.encode("utf-8")
    raise TypeError("Unsupported seed type: %r" % (type(seed),))


@dataclass(frozen=True)
class RNGManager:
    """Master seed for one game plus the per-level streams derived from it.

        rngm = RNGManager("dante")
        layout_rng = rngm.context_rng("maze_layout", level)
        placement_rng = rngm.context_rng("entity_placement", level)

    With no seed a random 16-byte one is drawn. ``get_master_seed_hex`` is the
    form written to saves and :meth:`from_saved_hex` reads it back.
    """

    master_seed: Seed

    def __post_init__(self) -> None:
        if self.master_seed is None:
            drawn = secrets.token_bytes(16)
            object.__setattr__(self, "_master_seed_bytes", drawn)
            logger.info("No seed given; drew random seed %s", drawn.hex())
        else:
            object.__setattr__(self, "_master_seed_bytes", seed_bytes(self.master_seed))
            logger.debug("Using seed %r", self.master_seed)

    @classmethod
    def from_saved_hex(cls, seed: Optional[str]) -> "RNGManager":
        """Rebuild the manager from the ``seed`` field of a save.

        A missing seed yields a random one, so the rebuilt maze will differ. A
        value that is not valid hex is used as a plain string seed.
        """
        if seed is None:
            logger.warning("Saved game has no seed; the maze will differ from the original")
            return cls(None)
        try:
            return cls(bytes.fromhex(seed))
        except ValueError:
            return cls(seed)

    def derive_seed(self, domain: str, *identifiers: Any) -> int:
        """64-bit seed for ``domain`` (e.g. ``"maze_layout"``) and identifiers such as the level number."""
        digest = hashlib.blake2b(_hash_input(domain, identifiers, self._master_seed_bytes), digest_size=8)
        value = int.from_bytes(digest.digest(), "big", signed=False)
        logger.debug("Level stream %s%s -> %d", domain, identifiers, value)
        return value

    def context_rng(self, domain: str, *identifiers: Any) -> random.Random:
        return random.Random(self.derive_seed(domain, *identifiers))

    def get_master_seed_hex(self) -> str:
        return self._master_seed_bytes.hex()
