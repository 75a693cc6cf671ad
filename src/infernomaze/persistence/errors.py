from ..errors import InfernoError


class SaveError(InfernoError):
    """Base exception for save/load errors."""


class SaveValidationError(SaveError):
    """Raised when a game state is missing required fields or has wrong types."""


class SaveSizeError(SaveError):
    """Raised when the encoded save exceeds the configured size cap. Nothing is written."""


class VersionMismatchError(SaveError):
    """Raised when stored data was written by a different save version.

    No conversion is attempted; callers treat this as "needs migration".
    """

    def __init__(self, found: str, expected: str) -> None:
        super().__init__(f"Save version {found!r} does not match expected {expected!r}")
        self.found = found
        self.expected = expected


class CorruptSaveError(SaveError):
    """Raised when stored bytes cannot be decoded into a save record."""


class StorageError(SaveError):
    """Raised when the backing key-value storage fails."""
