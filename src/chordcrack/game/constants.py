from __future__ import annotations

from enum import Enum

MAX_ATTEMPTS = 6
MAX_ROUNDS = 5

# Scoring: first-attempt points, penalty per extra attempt and the floor.
BASE_POINTS = 60
ATTEMPT_PENALTY = 10
MIN_POINTS = 10

# Attempts at which the visual hints unlock.
JUMBLED_HINT_ATTEMPT = 5
FINGER_REVEAL_ATTEMPT = 6

CORRECT_ADVANCE_DELAY = 2.0
INCORRECT_ADVANCE_DELAY = 3.0


class SessionType(str, Enum):
    """Game type tag stored with every recorded session."""

    DAILY_CHALLENGE = "dailyChallenge"
    BASIC_CHORDS = "basicChords"
    POWER_CHORDS = "powerChords"
    BARRE_CHORDS = "barreChords"
    BLUES_CHORDS = "bluesChords"
    MIXED_PRACTICE = "mixedPractice"
    CHORD_PROGRESSIONS = "chordProgressions"
    SPEED_ROUND = "speedRound"


class SocialChallengeType(str, Enum):
    DAILY_CHALLENGE = "dailyChallenge"
    SPEED_ROUND = "speedRound"

    @property
    def session_type(self) -> SessionType:
        return SessionType(self.value)
