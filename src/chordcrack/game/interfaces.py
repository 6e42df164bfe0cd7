from __future__ import annotations

from typing import Protocol


class PersistenceService(Protocol):
    """Append-only session log keyed by the signed-in user.

    The game manager calls this once per completed game. Failures are the
    implementation's concern; the manager only logs a False/raised result.
    """

    def record_session(
        self,
        score: int,
        best_streak: int,
        correct_answers: int,
        total_questions: int,
        session_type: str,
    ) -> bool:
        """Record a finalized session. Returns True when it was accepted."""


class ChallengeService(Protocol):
    """Social challenge submission, used only for challenge sessions."""

    def submit_challenge_score(
        self,
        challenge_id: str,
        score: int,
        correct_answers: int,
        total_questions: int,
    ) -> bool:
        """Submit the player's score for a challenge. Returns True on success."""
