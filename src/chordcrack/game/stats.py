from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .constants import SessionType

logger = logging.getLogger(__name__)


@dataclass
class SessionStats:
    """Shadow tally of a session, kept alongside the manager's live counters.

    Both tallies are merged in :func:`reconcile` when the game ends.
    """

    session_type: SessionType = SessionType.DAILY_CHALLENGE
    start_time: Optional[datetime] = None
    total_questions: int = 0
    correct_answers: int = 0
    current_streak: int = 0
    best_streak: int = 0
    total_score: int = 0

    def reset(self, session_type: Optional[SessionType] = None) -> None:
        self.start_time = datetime.now(timezone.utc)
        if session_type is not None:
            self.session_type = session_type
        self.total_questions = 0
        self.correct_answers = 0
        self.current_streak = 0
        self.best_streak = 0
        self.total_score = 0

    def record_correct(self, points: int, streak: int) -> None:
        self.correct_answers += 1
        self.current_streak = streak
        self.best_streak = max(self.best_streak, streak)
        self.total_score += points

    def record_incorrect(self) -> None:
        self.current_streak = 0

    def add_question(self) -> None:
        self.total_questions += 1


@dataclass(frozen=True)
class FinalStats:
    score: int
    best_streak: int
    correct_answers: int
    total_questions: int

    @property
    def accuracy(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.correct_answers / self.total_questions * 100


def reconcile(live: FinalStats, shadow: SessionStats) -> FinalStats:
    """Merge the live counters with the shadow tally.

    Takes the per-field maximum. A session with no questions, or more correct
    answers than questions, is clamped to one correct answer out of
    ``max(total, 1)`` questions; score and best streak are floored at zero.
    """
    score = max(live.score, shadow.total_score)
    best_streak = max(live.best_streak, shadow.best_streak)
    correct = max(live.correct_answers, shadow.correct_answers)
    total = max(live.total_questions, shadow.total_questions)

    if live != FinalStats(shadow.total_score, shadow.best_streak, shadow.correct_answers, shadow.total_questions):
        logger.warning(
            "Session tallies disagree: live=%s shadow=(score=%d, best_streak=%d, correct=%d, total=%d)",
            live,
            shadow.total_score,
            shadow.best_streak,
            shadow.correct_answers,
            shadow.total_questions,
        )

    if total <= 0 or correct > total:
        logger.warning("Degenerate session (correct=%d, total=%d); clamping", correct, total)
        return FinalStats(
            score=max(score, 0),
            best_streak=max(best_streak, 0),
            correct_answers=1,
            total_questions=max(total, 1),
        )
    return FinalStats(score=score, best_streak=best_streak, correct_answers=correct, total_questions=total)


@dataclass
class SessionSummary:
    """Finalized record handed to collaborators at game over."""

    stats: FinalStats
    session_type: SessionType
    started_at: Optional[datetime] = None
    ended_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    challenge_id: Optional[str] = None
