class ChordCrackError(Exception):
    """Base error for ChordCrack domain exceptions."""


class UnknownChord(ChordCrackError, KeyError):
    """Raised when a chord identifier is not in the catalog."""


class ConfigError(ChordCrackError):
    """Raised when configuration is missing or cannot be parsed."""
