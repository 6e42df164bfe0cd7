from __future__ import annotations

import logging
from typing import List

from ..settings import DEFAULT_ASSET_BASE_URL
from .interfaces import AudioPlaybackService
from .planner import PlaybackPlan

logger = logging.getLogger(__name__)


class NullAudioService(AudioPlaybackService):
    """Audio service that plays nothing; logs and remembers requests.

    Used for headless runs and as the default when the shell supplies no player.
    Each accepted plan is resolved to download URLs under ``base_url``, the way
    a real player would fetch them. A plan already played since the last reset
    is ignored, like the real player.
    """

    def __init__(self, base_url: str = DEFAULT_ASSET_BASE_URL) -> None:
        self.base_url = base_url
        self.played: List[PlaybackPlan] = []
        self.requested_urls: List[str] = []
        self.resets = 0
        self._played_since_reset: set = set()

    def play(self, plan: PlaybackPlan) -> None:
        if plan in self._played_since_reset:
            logger.debug("Playback blocked; %s already played this attempt", plan.chord_id)
            return
        self._played_since_reset.add(plan)
        self.played.append(plan)
        urls = plan.urls(self.base_url)
        self.requested_urls.extend(urls)
        logger.info("Play %s (%s, %d files)", plan.chord_id, plan.mode.value, len(plan.files))
        logger.debug("Sample URLs: %s", list(urls))

    def reset_for_new_attempt(self) -> None:
        self.resets += 1
        self._played_since_reset.clear()
