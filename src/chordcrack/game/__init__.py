"""Round/attempt state machine and its scoring, hint and scheduling rules.

Import from the submodules (``chordcrack.game.manager`` etc.); this package
root stays import-light so the audio planner can depend on the hint rules.
"""

__all__ = [
    "constants",
    "events",
    "hints",
    "interfaces",
    "manager",
    "scheduler",
    "session",
    "stats",
]
