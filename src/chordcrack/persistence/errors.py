from ..errors import ChordCrackError


class PersistenceError(ChordCrackError):
    """Base exception for profile save/load errors."""


class ProfileValidationError(PersistenceError):
    """Raised when profile data fails validation."""


class CorruptProfileError(PersistenceError):
    """Raised when a profile file is corrupted and cannot be recovered from backup."""
