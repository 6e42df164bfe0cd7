"""
ChordCrack package root.

Core of the guitar-chord ear-training game: the round/attempt state machine,
the chord catalog and the collaborators it talks to (audio playback, local
stats persistence and the Supabase backend). UI and audio output stay in the
app shell.
"""

__version__ = "0.1.0"

__all__ = [
    "audio",
    "auth",
    "backend",
    "catalog",
    "game",
    "persistence",
]
