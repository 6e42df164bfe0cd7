"""Audio playback interface and hint playback planning."""
from .assets import asset_url
from .interfaces import AudioPlaybackService
from .null import NullAudioService
from .planner import PlaybackMode, PlaybackPlan, plan_for_option, plan_playback

__all__ = [
    "AudioPlaybackService",
    "NullAudioService",
    "PlaybackMode",
    "PlaybackPlan",
    "asset_url",
    "plan_for_option",
    "plan_playback",
]
