from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..catalog.models import Chord
from .constants import MAX_ATTEMPTS, SessionType, SocialChallengeType


@dataclass(frozen=True)
class SessionConfig:
    """How a game session was started.

    A session is a social challenge when ``challenge_id`` is set; its session
    type then follows the challenge type.
    """

    session_type: SessionType = SessionType.DAILY_CHALLENGE
    challenge_id: Optional[str] = None
    challenge_type: Optional[SocialChallengeType] = None

    @property
    def is_challenge(self) -> bool:
        return bool(self.challenge_id)

    @classmethod
    def for_challenge(cls, challenge_id: str, challenge_type: SocialChallengeType) -> "SessionConfig":
        if not challenge_id:
            raise ValueError("challenge_id must be a non-empty string")
        return cls(
            session_type=challenge_type.session_type,
            challenge_id=challenge_id,
            challenge_type=challenge_type,
        )


@dataclass
class RoundState:
    """Transient state of the round in progress."""

    number: int
    target: Chord
    attempt: int = 1
    guesses: List[Optional[Chord]] = field(default_factory=lambda: [None] * MAX_ATTEMPTS)
    jumbled_frets: List[int] = field(default_factory=list)
    revealed_finger_index: Optional[int] = None
    solved: bool = False
