"""Local player profile persistence and session recording."""
from .errors import CorruptProfileError, PersistenceError, ProfileValidationError
from .models import Achievement, CategoryStats, GameSessionRecord, UserProfile
from .recorder import SessionRecorder
from .store import ProfileStore, decode_profile, encode_profile

__all__ = [
    "Achievement",
    "CategoryStats",
    "CorruptProfileError",
    "GameSessionRecord",
    "PersistenceError",
    "ProfileStore",
    "ProfileValidationError",
    "SessionRecorder",
    "UserProfile",
    "decode_profile",
    "encode_profile",
]
