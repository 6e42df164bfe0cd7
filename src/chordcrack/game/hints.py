"""Scoring and hint progression rules for a single round."""
from __future__ import annotations

from enum import Enum

from .constants import (
    ATTEMPT_PENALTY,
    BASE_POINTS,
    FINGER_REVEAL_ATTEMPT,
    JUMBLED_HINT_ATTEMPT,
    MAX_ATTEMPTS,
    MIN_POINTS,
)


class HintType(str, Enum):
    FULL_CHORD = "full_chord"
    CHORD_SLOW = "chord_slow"
    INDIVIDUAL_STRINGS = "individual_strings"
    JUMBLED_FINGERS = "jumbled_fingers"
    FINGER_REVEAL = "finger_reveal"

    @property
    def description(self) -> str:
        return _HINT_DESCRIPTIONS[self]


_HINT_DESCRIPTIONS = {
    HintType.FULL_CHORD: "Listen to the full chord",
    HintType.CHORD_SLOW: "Chord played arpeggiated",
    HintType.INDIVIDUAL_STRINGS: "Each string played separately",
    HintType.JUMBLED_FINGERS: "Mixed up finger positions shown!",
    HintType.FINGER_REVEAL: "One finger position revealed!",
}


class AudioOption(str, Enum):
    CHORD = "Full Chord"
    INDIVIDUAL = "Individual Strings"
    BASS = "Bass Notes"
    TREBLE = "Treble Notes"


def points_for_attempt(attempt: int) -> int:
    """Points for a correct guess on ``attempt`` (1-based): 60, 50, ... floored at 10."""
    return max(BASE_POINTS - (attempt - 1) * ATTEMPT_PENALTY, MIN_POINTS)


def hint_for_attempt(attempt: int) -> HintType:
    if attempt <= 2:
        return HintType.FULL_CHORD
    if attempt == 3:
        return HintType.CHORD_SLOW
    if attempt == 4:
        return HintType.INDIVIDUAL_STRINGS
    if attempt == JUMBLED_HINT_ATTEMPT:
        return HintType.JUMBLED_FINGERS
    if attempt == FINGER_REVEAL_ATTEMPT:
        return HintType.FINGER_REVEAL
    # Past the last attempt the round is over; fall back to the plain chord.
    return HintType.FULL_CHORD


def audio_options_available(attempt: int) -> bool:
    """Attempts 3 through 6 let the player pick what to hear."""
    return 3 <= attempt <= MAX_ATTEMPTS
