from __future__ import annotations

from abc import ABC, abstractmethod

from .planner import PlaybackPlan


class AudioPlaybackService(ABC):
    """Audio playback interface to decouple game logic from the platform player.

    Implementations fetch the sample files named in a plan and play them, and
    report failures through logging; nothing is surfaced back to the game.
    """

    @abstractmethod
    def play(self, plan: PlaybackPlan) -> None:
        """Start playing ``plan``. Must not block the caller."""
        raise NotImplementedError

    @abstractmethod
    def reset_for_new_attempt(self) -> None:
        """Cancel in-flight playback and allow the next hint to play."""
        raise NotImplementedError
