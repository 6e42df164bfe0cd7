"""Decide which samples to play, and how, for a chord at a given hint tier."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..catalog.models import Chord
from ..catalog.samples import BASS_STRINGS, TREBLE_STRINGS, string_of_sample
from ..game.hints import AudioOption, HintType
from ..settings import DEFAULT_ASSET_BASE_URL
from .assets import asset_url

logger = logging.getLogger(__name__)

SLOW_GAP = 0.15
INDIVIDUAL_GAP = 0.3
OPTION_INDIVIDUAL_GAP = 0.4


class PlaybackMode(str, Enum):
    SIMULTANEOUS = "simultaneous"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class PlaybackPlan:
    chord_id: str
    files: Tuple[str, ...]
    mode: PlaybackMode = PlaybackMode.SIMULTANEOUS
    gap: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.files

    def urls(self, base_url: str = DEFAULT_ASSET_BASE_URL) -> Tuple[str, ...]:
        """Download URLs of the plan's sample files under ``base_url``."""
        return tuple(asset_url(f, base_url) for f in self.files)


def _simultaneous(chord: Chord, files) -> PlaybackPlan:
    return PlaybackPlan(chord.id, tuple(files), PlaybackMode.SIMULTANEOUS, 0.0)


def _sequential(chord: Chord, files, gap: float) -> PlaybackPlan:
    return PlaybackPlan(chord.id, tuple(files), PlaybackMode.SEQUENTIAL, gap)


def _filter_strings(files, strings) -> list:
    return [f for f in files if string_of_sample(f) in strings]


def plan_for_option(chord: Chord, option: AudioOption) -> PlaybackPlan:
    files = chord.sample_files
    if option is AudioOption.INDIVIDUAL:
        return _sequential(chord, files, OPTION_INDIVIDUAL_GAP)
    if option is AudioOption.BASS:
        return _simultaneous(chord, _filter_strings(files, BASS_STRINGS))
    if option is AudioOption.TREBLE:
        return _simultaneous(chord, _filter_strings(files, TREBLE_STRINGS))
    return _simultaneous(chord, files)


def plan_playback(chord: Chord, hint: HintType, option: Optional[AudioOption] = None) -> PlaybackPlan:
    """Build the playback plan for ``chord`` at ``hint``.

    A non-default audio option, when given, overrides the hint's own audio.
    The visual hints (jumbled fingers, finger reveal) play the full chord
    unless an option is chosen.
    """
    if option is not None and option is not AudioOption.CHORD:
        plan = plan_for_option(chord, option)
    elif hint is HintType.CHORD_SLOW:
        plan = _sequential(chord, chord.sample_files, SLOW_GAP)
    elif hint is HintType.INDIVIDUAL_STRINGS:
        plan = _sequential(chord, chord.sample_files, INDIVIDUAL_GAP)
    else:
        plan = _simultaneous(chord, chord.sample_files)
    if plan.is_empty:
        logger.warning("No samples to play for chord %s (hint=%s, option=%s)", chord.id, hint.value, option)
    else:
        logger.debug("Playback plan for %s: %s %s", chord.id, plan.mode.value, list(plan.files))
    return plan
