from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .samples import map_to_available_sample, sample_name


class ChordCategory(str, Enum):
    BASIC = "basic"
    BARRE = "barre"
    BLUES = "blues"
    POWER = "power"

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} Chords"

    @property
    def description(self) -> str:
        return _CATEGORY_DESCRIPTIONS[self]

    @property
    def difficulty_level(self) -> str:
        return _CATEGORY_DIFFICULTY[self]


_CATEGORY_DESCRIPTIONS = {
    ChordCategory.BASIC: "Open major and minor chords",
    ChordCategory.BARRE: "Advanced fingering patterns",
    ChordCategory.BLUES: "7th and extended chords",
    ChordCategory.POWER: "Rock & metal fundamentals",
}

_CATEGORY_DIFFICULTY = {
    ChordCategory.BASIC: "Beginner",
    ChordCategory.POWER: "Easy",
    ChordCategory.BARRE: "Medium",
    ChordCategory.BLUES: "Hard",
}


@dataclass(frozen=True)
class FingerPosition:
    string: str
    fret: int

    @property
    def sample_file(self) -> str:
        return map_to_available_sample(self.string, self.fret)


@dataclass(frozen=True)
class Chord:
    """A catalog entry. Instances are shared and never mutated."""

    id: str
    category: ChordCategory
    positions: Tuple[FingerPosition, ...]
    full_chord_file: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Chord.id must be a non-empty string")
        if not self.positions:
            raise ValueError(f"Chord {self.id!r} has no finger positions")

    @property
    def display_name(self) -> str:
        return self.id

    @property
    def is_basic(self) -> bool:
        return self.category is ChordCategory.BASIC

    @property
    def is_allowed_in_daily_challenge(self) -> bool:
        return self.is_basic

    @property
    def difficulty_level(self) -> str:
        return self.category.difficulty_level

    @property
    def fingered_positions(self) -> List[FingerPosition]:
        """Positions that need a finger (fret > 0), in string order."""
        return [p for p in self.positions if p.fret > 0]

    @property
    def sample_files(self) -> List[str]:
        """Single-string sample files, one per position, low to high."""
        return [p.sample_file for p in self.positions]

    @property
    def audio_asset_key(self) -> str:
        """Primary audio asset: the full-chord recording when one exists."""
        if self.full_chord_file:
            return self.full_chord_file
        files = self.sample_files
        return files[0] if files else sample_name("E2", 0)

    def __str__(self) -> str:
        return self.id
