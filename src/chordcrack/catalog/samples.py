"""Mapping from finger positions to the recorded single-string samples.

Samples exist for frets 0-4 on every string and frets 0-12 on the high E
string. Positions outside that range are mapped onto an equivalent pitch.
"""
from __future__ import annotations

from typing import Dict, Optional

SAMPLE_EXTENSION = ".m4a"
HIGH_E = "E4"
MAX_FRET_DEFAULT = 4
MAX_FRET_HIGH_E = 12

# Standard tuning, in semitones above the low E string. Order matters when
# searching for an equivalent pitch: lower strings are tried first.
STRING_OFFSETS: Dict[str, int] = {
    "E2": 0,
    "A3": 5,
    "D3": 10,
    "G3": 15,
    "B4": 19,
    "E4": 24,
}

BASS_STRINGS = ("E2", "A3", "D3")
TREBLE_STRINGS = ("G3", "B4", "E4")


def sample_name(string: str, fret: int) -> str:
    return f"{string}_fret{fret}{SAMPLE_EXTENSION}"


def max_sampled_fret(string: str) -> int:
    return MAX_FRET_HIGH_E if string == HIGH_E else MAX_FRET_DEFAULT


def string_of_sample(file_name: str) -> Optional[str]:
    """Return the string prefix of a sample file name, e.g. 'A3' for 'A3_fret2.m4a'."""
    prefix, sep, _ = file_name.partition("_")
    if not sep or prefix not in STRING_OFFSETS:
        return None
    return prefix


def map_to_available_sample(string: str, fret: int) -> str:
    """Return the sample file that best represents ``string`` at ``fret``."""
    if fret <= max_sampled_fret(string):
        return sample_name(string, fret)

    base = STRING_OFFSETS.get(string)
    if base is None:
        return sample_name(string, 0)

    target = base + fret
    high_e_base = STRING_OFFSETS[HIGH_E]
    if high_e_base <= target <= high_e_base + MAX_FRET_HIGH_E:
        return sample_name(HIGH_E, target - high_e_base)

    for other, offset in STRING_OFFSETS.items():
        if other == HIGH_E:
            continue
        required = target - offset
        if 0 <= required <= MAX_FRET_DEFAULT:
            return sample_name(other, required)

    # No equivalent pitch recorded; fall back to the highest sampled fret.
    return sample_name(string, MAX_FRET_DEFAULT)
