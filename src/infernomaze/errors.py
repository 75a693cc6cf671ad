class InfernoError(Exception):
    """Base error for Inferno Maze domain exceptions."""


class LevelNotFoundError(InfernoError):
    """Raised when a level number has no entry in the level table."""


class InvalidMove(InfernoError):
    """Raised when a movement direction cannot be interpreted."""
